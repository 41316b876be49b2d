"""Scenario run command."""

from __future__ import annotations

import importlib
import importlib.util
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from scenery.config.loader import ConfigFileError, load_config
from scenery.core.errors import ScenarioFailedError, SceneryError
from scenery.core.scenario import Scenario

console = Console()
logger = logging.getLogger(__name__)


def load_target(target: str) -> Scenario:
    """Resolve ``module:attribute`` or ``path/to/file.py:attribute``.

    The attribute may be a Scenario or a zero-argument callable returning one.
    """
    module_ref, sep, attribute = target.partition(":")
    if not sep or not module_ref or not attribute:
        raise SceneryError(f"Target must look like 'module:attribute', got '{target}'")

    if module_ref.endswith(".py"):
        path = Path(module_ref)
        if not path.exists():
            raise SceneryError(f"Scenario file not found: {path}")
        spec = importlib.util.spec_from_file_location(path.stem, path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
    else:
        module = importlib.import_module(module_ref)

    try:
        obj = getattr(module, attribute)
    except AttributeError:
        raise SceneryError(f"'{module_ref}' has no attribute '{attribute}'") from None

    if not isinstance(obj, Scenario) and callable(obj):
        obj = obj()
    if not isinstance(obj, Scenario):
        raise SceneryError(f"'{target}' is not a Scenario (got {type(obj).__name__})")
    return obj


def run_command(
    ctx: typer.Context,
    target: Optional[str] = typer.Argument(
        None, help="Scenario to run, as module:attribute or file.py:attribute"
    ),
    name: Optional[str] = typer.Option(
        None, "--name", "-n", help="Scenario name shown in the report"
    ),
    output_json: bool = typer.Option(
        False, "--json", "-j", help="Output result as JSON"
    ),
):
    """Run a scenario and print its report."""
    config_file = (ctx.obj or {}).get("config_file")

    try:
        config = load_config(config_file)
        target = target or config.default_target
        if not target:
            console.print("[red]Error:[/red] no target given and no default_target configured")
            raise typer.Exit(1)

        scenario = load_target(target)
        if output_json:
            config.report.enabled = False
        scenario.configure(config)
    except (SceneryError, ConfigFileError) as e:
        console.print(f"[red]Error loading scenario:[/red] {e}")
        raise typer.Exit(1)

    scenario_name = name or target.rpartition(":")[2]

    try:
        result = scenario.execute_sync(scenario_name)
    except ScenarioFailedError as e:
        if output_json:
            console.print_json(json.dumps(e.result.to_dict(), ensure_ascii=False))
        else:
            console.print(f"[red]✗ {scenario_name} failed[/red]")
        raise typer.Exit(1)
    except Exception as e:
        logger.debug("Scenario run aborted", exc_info=True)
        console.print(f"[red]Error running scenario:[/red] {e}")
        raise typer.Exit(1)

    if output_json:
        console.print_json(json.dumps(result.to_dict(), ensure_ascii=False))
    else:
        console.print(
            f"[green]✓ {scenario_name} passed[/green] "
            f"[dim]({result.total_steps} steps)[/dim]"
        )
