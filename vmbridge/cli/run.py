"""Run command: instantiate a module and call one of its exports."""

import importlib
import sys
import time
from pathlib import Path
from typing import Any, Callable, Dict, Sequence

import click
from wasmtime import ValType

from vmbridge.cli.reports import RunReport
from vmbridge.config import BridgeConfig, EngineConfig
from vmbridge.errors import LinkError
from vmbridge.runtime import Func, Instance, Module, Store
from vmbridge.runtime.types import FLOAT_TYPES, INTEGER_TYPES, type_name


def load_callable(target: str) -> Callable[..., Any]:
    """Resolve 'package.module:attr' to a callable."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter(f"expected package.module:attr, got {target!r}")
    obj = importlib.import_module(module_name)
    for part in attr.split("."):
        obj = getattr(obj, part)
    if not callable(obj):
        raise click.BadParameter(f"{target} is not callable")
    return obj


def parse_bindings(specs: Sequence[str]) -> Dict[str, Callable[..., Any]]:
    """Parse --import NAME=package.module:attr options."""
    bindings = {}
    for spec in specs:
        name, sep, target = spec.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected module.name=package.module:attr, got {spec!r}")
        bindings[name] = load_callable(target)
    return bindings


def parse_arg(text: str, ty: ValType) -> Any:
    """Parse a command-line argument for a parameter type."""
    name = type_name(ty)
    if name in INTEGER_TYPES:
        return int(text, 0)
    if name in FLOAT_TYPES:
        return float(text)
    if text == "null":
        return None
    if name == "externref":
        return text
    raise click.BadParameter(f"cannot pass {text!r} as {name} from the command line")


def _jsonable(value: Any) -> Any:
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, (int, float, str)) or value is None:
        return value
    return repr(value)


@click.command()
@click.argument("module", type=click.Path(exists=True, dir_okay=False))
@click.argument("export")
@click.argument("args", nargs=-1)
@click.option("--import", "-i", "imports", multiple=True,
              help="Bind an import: module.name=package.module:attr")
@click.option("--caller", is_flag=True, help="Pass a Caller as the first argument to bound imports")
@click.option("--fuel", type=int, default=None, help="Instruction budget for the call")
@click.option("--max-memory", type=int, default=None, help="Linear memory cap in bytes")
@click.option("--json-output", "-j", "json_output", is_flag=True, help="Output as JSON")
def run_command(module, export, args, imports, caller, fuel, max_memory, json_output):
    """Call EXPORT of MODULE (.wasm or .wat) with ARGS."""
    start = time.time()
    module_id = Path(module).stem
    try:
        engine_config = EngineConfig(fuel=fuel, max_memory_bytes=max_memory)
        store = Store(config=BridgeConfig(engine=engine_config))
        mod = Module.from_file(store.engine, module)

        functype = mod.export_type(export)
        if functype is None:
            raise click.UsageError(f"module {module_id!r} has no function export {export!r}")
        params = list(functype.params)
        if len(args) != len(params):
            raise click.UsageError(f"{export} takes {len(params)} arguments, got {len(args)}")
        values = [parse_arg(a, ty) for a, ty in zip(args, params)]

        bindings = parse_bindings(imports)
        funcs: Dict[str, Func] = {}
        for mod_name, name, import_type in mod.imports:
            key = f"{mod_name}.{name}"
            if key not in bindings:
                raise LinkError(f"missing import {key}; bind it with --import {key}=package.module:attr")
            funcs[key] = Func(store, import_type, bindings[key], caller=caller)

        instance = Instance(store, mod, funcs)
        result = instance.export(export).call(*values)
    except click.UsageError:
        raise
    except Exception as e:
        if json_output:
            report = RunReport(
                success=False,
                module_id=module_id,
                export=export,
                execution_time_ms=(time.time() - start) * 1000,
                error=str(e),
            )
            click.echo(report.model_dump_json(indent=2))
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    report = RunReport(
        success=True,
        module_id=module_id,
        export=export,
        result=_jsonable(result),
        execution_time_ms=(time.time() - start) * 1000,
    )
    if json_output:
        click.echo(report.model_dump_json(indent=2))
    elif isinstance(result, list):
        for value in result:
            click.echo(value)
    elif result is not None:
        click.echo(result)
