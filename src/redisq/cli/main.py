import importlib
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from redisq.api import BATCH_TYPE, CLIENT_TYPE, plan_adaptation
from redisq.cli.callbacks import module_callback
from redisq.discovery import collect_command_names
from redisq.exceptions import AdaptationError
from redisq.logging import setup_logging
from redisq.options import DEFAULT_SUFFIX

app = typer.Typer(no_args_is_help=True)

ModuleOption = Annotated[
    str,
    typer.Option(
        "-m",
        "--module",
        help="Module exposing the client and batch builder classes",
        callback=module_callback,
    ),
]


@app.callback()
def main(
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging (same as REDISQ_DEBUG=1)"),
    ] = False,
):
    """Inspect how redisq adapts a callback-style client module."""
    load_dotenv()
    setup_logging(debug=True if debug else None)


@app.command(name="commands")
def list_commands(
    module: ModuleOption = "redisq.memory",
    batch: Annotated[
        bool,
        typer.Option("-b", "--batch", help="List the batch builder commands instead"),
    ] = False,
):
    """List the command methods discovered on a client module"""
    target = importlib.import_module(module)
    surface_name = BATCH_TYPE if batch else CLIENT_TYPE
    surface = getattr(target, surface_name, None)
    if not isinstance(surface, type):
        typer.secho(f"{module} has no {surface_name} class", fg=typer.colors.RED)
        raise typer.Exit(1)
    for name in collect_command_names(surface, getattr(target, "COMMANDS", None)):
        typer.echo(name)


@app.command(name="inspect")
def inspect_module(
    module: ModuleOption = "redisq.memory",
    prefix: Annotated[str, typer.Option("-p", "--prefix", help="Prefix for adapted names")] = "",
    suffix: Annotated[str, typer.Option("-s", "--suffix", help="Suffix for adapted names")] = DEFAULT_SUFFIX,
    json: Annotated[bool, typer.Option("--json/--raw", help="Enable the JSON codec")] = False,
):
    """Show the methods redisq would install, without installing them"""
    target = importlib.import_module(module)
    try:
        planned = plan_adaptation(target, prefix=prefix, suffix=suffix, json=json)
    except AdaptationError as error:
        typer.secho(str(error), fg=typer.colors.RED)
        raise typer.Exit(1) from None
    table = Table("Surface", "Command", "Adapted Name", "Kind", title=module)
    for method in planned:
        table.add_row(method.surface, method.command, method.mapped, method.kind)
    console = Console()
    console.print(table)
