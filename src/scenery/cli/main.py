"""Main CLI entry point for scenery."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from scenery import __version__
from scenery.cli import config, run

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
)

console = Console()

app = typer.Typer(
    name="scenery",
    help="Given/When/Then scenario runner for in-process aiohttp applications",
    add_completion=True,
    no_args_is_help=True,
)

app.command("run")(run.run_command)
app.add_typer(config.app, name="config", help="Configuration management")


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        console.print(f"scenery version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
        exists=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """scenery - run Given/When/Then scenarios and report each step."""
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


if __name__ == "__main__":
    app()
