"""CLI tests for run, validate and inspect."""

import json

import pytest
from click.testing import CliRunner

from vmbridge.cli import main as cli_main

EMPTY_WASM = b"\0asm\x01\x00\x00\x00"


class TestRunCommand:
    """Tests for the run CLI command."""

    @pytest.fixture
    def runner(self):
        """CLI runner."""
        return CliRunner()

    def test_run_with_import(self, runner, write_module, calls_host_wat):
        """Test binding an import to a Python callable."""
        path = write_module(calls_host_wat)
        result = runner.invoke(cli_main, ["run", path, "run", "2", "3", "--import", "host.add=operator:add"])
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "5"

    def test_run_json_output(self, runner, write_module, arithmetic_wat):
        """Test JSON output."""
        path = write_module(arithmetic_wat, "arithmetic.wat")
        result = runner.invoke(cli_main, ["run", path, "pair", "-j"])
        assert result.exit_code == 0, result.output
        output = json.loads(result.output)
        assert output["success"] is True
        assert output["module_id"] == "arithmetic"
        assert output["export"] == "pair"
        assert output["result"] == [1, 2]
        assert output["error"] is None

    def test_run_hex_argument(self, runner, write_module, arithmetic_wat):
        """Test integer arguments accept Python literal prefixes."""
        path = write_module(arithmetic_wat)
        result = runner.invoke(cli_main, ["run", path, "add", "0x10", "1"])
        assert result.exit_code == 0
        assert result.output.strip() == "17"

    def test_run_missing_import(self, runner, write_module, calls_host_wat):
        """Test a module import with no binding."""
        path = write_module(calls_host_wat)
        result = runner.invoke(cli_main, ["run", path, "run", "1", "2"])
        assert result.exit_code == 1
        assert "missing import host.add" in result.output

    def test_run_trap(self, runner, write_module, arithmetic_wat):
        """Test an engine trap is reported and exits non-zero."""
        path = write_module(arithmetic_wat)
        result = runner.invoke(cli_main, ["run", path, "div", "1", "0"])
        assert result.exit_code == 1
        assert "Could not invoke function" in result.output
        assert "integer divide by zero" in result.output

    def test_run_unknown_export(self, runner, write_module, arithmetic_wat):
        """Test calling an export that does not exist."""
        path = write_module(arithmetic_wat)
        result = runner.invoke(cli_main, ["run", path, "nope"])
        assert result.exit_code == 2

    def test_run_wrong_argument_count(self, runner, write_module, arithmetic_wat):
        """Test passing too few arguments."""
        path = write_module(arithmetic_wat)
        result = runner.invoke(cli_main, ["run", path, "add", "1"])
        assert result.exit_code == 2

    def test_run_fuel(self, runner, write_module, arithmetic_wat):
        """Test the fuel option stops a runaway loop."""
        path = write_module(arithmetic_wat)
        result = runner.invoke(cli_main, ["run", path, "spin", "--fuel", "5000"])
        assert result.exit_code == 1
        assert "fuel" in result.output

    def test_run_binary_module(self, runner, write_module, arithmetic_wat):
        """Test a .wasm file is loaded as binary."""
        import wasmtime

        path = write_module(wasmtime.wat2wasm(arithmetic_wat), "arithmetic.wasm")
        result = runner.invoke(cli_main, ["run", path, "add", "2", "2"])
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "4"

    def test_run_module_not_found(self, runner):
        """Test run with a non-existent module file."""
        result = runner.invoke(cli_main, ["run", "/nonexistent/module.wasm", "f"])
        assert result.exit_code != 0

    def test_run_debug_logging(self, runner, write_module, arithmetic_wat):
        """Test the log level option is accepted."""
        path = write_module(arithmetic_wat)
        result = runner.invoke(cli_main, ["--log-level", "DEBUG", "run", path, "add", "1", "2"])
        assert result.exit_code == 0


class TestValidateCommand:
    """Tests for the validate CLI command."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    def test_validate_valid(self, runner, write_module, arithmetic_wat):
        """Test a valid module."""
        result = runner.invoke(cli_main, ["validate", write_module(arithmetic_wat)])
        assert result.exit_code == 0
        assert "Module valid" in result.output
        assert "Exports: 6" in result.output

    def test_validate_json(self, runner, write_module, calls_host_wat):
        """Test JSON output for a valid module."""
        result = runner.invoke(cli_main, ["validate", write_module(calls_host_wat), "-j"])
        assert result.exit_code == 0
        output = json.loads(result.output)
        assert output["valid"] is True
        assert output["import_count"] == 1
        assert output["errors"] == []

    def test_validate_binary(self, runner, write_module):
        """Test the smallest binary module."""
        result = runner.invoke(cli_main, ["validate", write_module(EMPTY_WASM, "empty.wasm"), "-j"])
        assert result.exit_code == 0, result.output
        output = json.loads(result.output)
        assert output["module_id"] == "empty"
        assert output["export_count"] == 0

    def test_validate_invalid(self, runner, write_module):
        """Test a module with an unknown instruction."""
        text = '(module (func (export "f") i32.frobnicate))'
        result = runner.invoke(cli_main, ["validate", write_module(text)])
        assert result.exit_code == 1
        assert '"valid": false' in result.output

    def test_validate_garbage(self, runner, write_module):
        """Test a file that is neither binary nor text format."""
        result = runner.invoke(cli_main, ["validate", write_module("not a module")])
        assert result.exit_code == 1


class TestInspectCommand:
    """Tests for the inspect CLI command."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    def test_inspect_json(self, runner, write_module, introspect_wat):
        """Test listing imports and exports."""
        result = runner.invoke(cli_main, ["inspect", write_module(introspect_wat), "-j"])
        assert result.exit_code == 0
        output = json.loads(result.output)
        assert output["imports"] == [{"module": "host", "name": "check", "type": "() -> (i32)"}]
        kinds = {e["name"]: e["kind"] for e in output["exports"]}
        assert kinds == {"helper": "func", "run": "func", "mem": "memory",
                         "counter": "global", "tbl": "table"}

    def test_inspect_text(self, runner, write_module, calls_host_wat):
        """Test the plain listing."""
        result = runner.invoke(cli_main, ["inspect", write_module(calls_host_wat)])
        assert result.exit_code == 0
        assert "host.add: (i32, i32) -> (i32)" in result.output
        assert "run (func): (i32, i32) -> (i32)" in result.output

    def test_inspect_invalid(self, runner, write_module):
        """Test an unparseable module."""
        result = runner.invoke(cli_main, ["inspect", write_module("(module")])
        assert result.exit_code == 1
        assert "Error:" in result.output
