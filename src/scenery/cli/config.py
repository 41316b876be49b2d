"""Config CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from scenery.config.loader import ConfigFileError, load_config
from scenery.config.schema import SceneryConfig

console = Console()
app = typer.Typer(no_args_is_help=True)


@app.command("init")
def config_init(
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output file path"
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite existing config"
    ),
):
    """Create a new .scenery.yaml configuration file."""
    if output is None:
        output = Path.cwd() / ".scenery.yaml"

    if output.exists() and not force:
        console.print(f"[yellow]Warning:[/yellow] {output} already exists. Use --force to overwrite.")
        raise typer.Exit(1)

    output.write_text(_generate_config_yaml(SceneryConfig.get_default()), encoding="utf-8")
    console.print(f"[green]✓[/green] Created: {output}")


def _generate_config_yaml(config: SceneryConfig) -> str:
    """Generate YAML config with helpful comments."""
    return f"""# scenery configuration

version: 1

# Scenario to run when `scenery run` gets no target (module:attribute)
default_target: null

# Text report printed after each scenario
report:
  enabled: true
  stream: {config.report.stream}
  separator_char: "{config.report.separator_char}"
  separator_width: {config.report.separator_width}
  indent: "{config.report.indent}"
  null_placeholder: "{config.report.null_placeholder}"

# Log capture while a scenario runs
trace:
  enabled: true
  # Logger to capture from (empty = root logger)
  logger: "{config.trace.logger}"
  level: {config.trace.level}
  strip_executable_prefix: true

# In-process test server
transport:
  host: {config.transport.host}
  unsafe_cookies: true
  concurrent_user_setup: true
"""


@app.command("show")
def config_show(
    ctx: typer.Context,
    format: str = typer.Option(
        "yaml", "--format", "-f", help="Output format (yaml, table)"
    ),
):
    """Display current configuration."""
    try:
        config = load_config((ctx.obj or {}).get("config_file"))
    except ConfigFileError as e:
        console.print(f"[red]✗[/red] Configuration error: {e}")
        raise typer.Exit(1)

    if format == "yaml":
        data = config.model_dump()
        yaml_str = yaml.dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
        console.print(Syntax(yaml_str, "yaml", theme="monokai"))

    elif format == "table":
        table = Table(title="scenery configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Default target", config.default_target or "(none)")
        table.add_row("Report stream", config.report.stream)
        table.add_row("Report width", str(config.report.separator_width))
        table.add_row("Trace enabled", str(config.trace.enabled))
        table.add_row("Trace level", config.trace.level)
        table.add_row("Server host", config.transport.host)

        console.print(table)

    else:
        console.print(f"[red]Unknown format:[/red] {format}")
        raise typer.Exit(1)


@app.command("validate")
def config_validate(ctx: typer.Context):
    """Validate configuration file."""
    try:
        config = load_config((ctx.obj or {}).get("config_file"))
    except ConfigFileError as e:
        console.print(f"[red]✗[/red] Configuration error: {e}")
        raise typer.Exit(1)

    console.print("[green]✓[/green] Configuration is valid")
    if config.default_target:
        console.print(f"  Default target: {config.default_target}")
