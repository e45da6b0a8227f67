"""Inspect command: list a module's imports and exports."""

import sys

import click

from vmbridge.cli.reports import ExportEntry, ImportEntry, ModuleReport
from vmbridge.errors import ModuleValidationError
from vmbridge.runtime import Module, Store, signature


@click.command()
@click.argument("module", type=click.Path(exists=True, dir_okay=False))
@click.option("--json-output", "-j", "json_output", is_flag=True, help="Output as JSON")
def inspect_command(module, json_output):
    """Show imports and exports of MODULE with their signatures."""
    try:
        mod = Module.from_file(Store().engine, module)
    except ModuleValidationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    imports = [
        ImportEntry(module=m, name=n, type=signature(ty))
        for m, n, ty in mod.imports
    ]
    exports = []
    for name, kind in mod.exports:
        functype = mod.export_type(name)
        exports.append(ExportEntry(
            name=name,
            kind=kind.value,
            type=signature(functype) if functype is not None else None,
        ))
    report = ModuleReport(module_id=mod.name, imports=imports, exports=exports)

    if json_output:
        click.echo(report.model_dump_json(indent=2))
        return

    click.echo(f"Module: {report.module_id}")
    click.echo(f"  Imports: {len(imports)}")
    for entry in imports:
        click.echo(f"    {entry.module}.{entry.name}: {entry.type}")
    click.echo(f"  Exports: {len(exports)}")
    for entry in exports:
        suffix = f": {entry.type}" if entry.type else ""
        click.echo(f"    {entry.name} ({entry.kind}){suffix}")
