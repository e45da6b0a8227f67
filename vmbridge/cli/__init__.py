"""vmbridge CLI - run, validate and inspect WebAssembly modules."""

import logging

import click

from vmbridge.cli.inspect import inspect_command
from vmbridge.cli.run import run_command
from vmbridge.cli.validate import validate_command


@click.group()
@click.option("--log-level", default="WARNING", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Logging level")
def main(log_level):
    """vmbridge - call exported wasm functions and bind Python imports."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


main.add_command(run_command, "run")
main.add_command(validate_command, "validate")
main.add_command(inspect_command, "inspect")

__all__ = [
    "main",
    "run_command",
    "validate_command",
    "inspect_command",
]
