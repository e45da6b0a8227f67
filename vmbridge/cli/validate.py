"""Validate command: check that a .wasm or .wat file compiles."""

import sys
from pathlib import Path

import click

from vmbridge.cli.reports import ValidateReport
from vmbridge.errors import ModuleValidationError
from vmbridge.runtime import Module, Store


@click.command()
@click.argument("module", type=click.Path(exists=True, dir_okay=False))
@click.option("--json-output", "-j", "json_output", is_flag=True, help="Output as JSON")
def validate_command(module, json_output):
    """Validate MODULE (binary or text format)."""
    store = Store()
    try:
        mod = Module.from_file(store.engine, module)
    except ModuleValidationError as e:
        report = ValidateReport(valid=False, module_id=Path(module).stem, errors=e.errors)
        click.echo(report.model_dump_json(indent=2), err=True)
        sys.exit(1)

    report = ValidateReport(
        valid=True,
        module_id=mod.name,
        import_count=len(mod.imports),
        export_count=len(mod.exports),
    )
    if json_output:
        click.echo(report.model_dump_json(indent=2))
    else:
        click.echo("✓ Module valid")
        click.echo(f"  Module: {report.module_id}")
        click.echo(f"  Imports: {report.import_count}")
        click.echo(f"  Exports: {report.export_count}")
