"""Typer-based CLI for chartscan."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__, config
from .config_manager import (
    build_scan_config,
    find_project_config,
    load_project_config,
    load_user_config,
    reset_user_config,
    set_user_option,
)
from .errors import ChartScanError, ConfigError, WalkError
from .finder import find_chart_dirs
from .helm import HelmClient, is_valid_release_name, release_name_for, resolved_dependencies
from .processor import ChartProcessor
from .reporting import render_environments, render_json, render_junit, render_pretty, render_yaml

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="🔎 ChartScan: find undefined values in Helm charts.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    help="⚙️  Configuration: user defaults stored in config.toml.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[chartscan] %(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"ChartScan version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable debug logging."),
):
    """ChartScan: static checks for Helm charts and their values files."""
    configure_logging(verbose)


def _fail(message: str) -> None:
    err_console.print(f"[red]{escape(message)}[/red]", highlight=False)
    raise typer.Exit(code=1)


def _load_config(
    config_file: Optional[Path],
    values_files: Optional[List[str]],
    output_format: Optional[str],
    environment: Optional[str],
):
    try:
        return build_scan_config(
            config_file=config_file,
            values_files=values_files or [],
            output_format=output_format,
            environment=environment,
        )
    except ConfigError as exc:
        _fail(f"Error loading config: {exc}")


def _chart_targets(chart_paths: Optional[List[str]], fallback: str) -> List[str]:
    targets = list(chart_paths or [])
    if not targets and fallback:
        targets = [fallback]
    if not targets:
        raise typer.BadParameter("No chart path given and no chartPath in chartscan.yaml.")
    return targets


@app.command("scan")
def scan(
    chart_paths: Optional[List[str]] = typer.Argument(None, help="Chart directories or trees containing charts."),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False, help="Path to chartscan.yaml."),
    values_files: Optional[List[str]] = typer.Option(None, "--values", "-f", help="Additional values file (repeatable)."),
    output_format: Optional[str] = typer.Option(None, "--output-format", "-o", help="pretty, json, yaml or junit."),
    environment: Optional[str] = typer.Option(None, "--environment", "-e", help="Use the values files of an environment from chartscan.yaml."),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Charts scanned in parallel."),
):
    """Scan Helm charts for undefined values and lint errors.

    Example:
      chartscan scan ./charts
      chartscan scan ./charts -f values-prod.yaml -o junit
    """
    cfg = _load_config(config_file, values_files, output_format, environment)
    targets = _chart_targets(chart_paths, cfg.chart_path)

    chart_dirs: List[str] = []
    for target in targets:
        try:
            chart_dirs.extend(find_chart_dirs(target))
        except WalkError as exc:
            _fail(f"Error finding Helm charts in {target}: {exc}")

    processor = ChartProcessor(HelmClient(cfg.helm_binary), max_workers=workers or cfg.max_workers)
    if cfg.output_format == "pretty":
        with err_console.status(f"Scanning {len(chart_dirs)} chart(s)..."):
            report = processor.process_charts(chart_dirs, cfg.values_files)
        render_pretty(report, console)
    else:
        report = processor.process_charts(chart_dirs, cfg.values_files)
        if cfg.output_format == "json":
            typer.echo(render_json(report))
        elif cfg.output_format == "yaml":
            typer.echo(render_yaml(report), nl=False)
        else:
            typer.echo(render_junit(report))

    if not report.success:
        raise typer.Exit(code=1)


@app.command("template")
def template(
    chart_paths: List[str] = typer.Argument(..., help="Chart directories to render."),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False, help="Path to chartscan.yaml."),
    values_files: Optional[List[str]] = typer.Option(None, "--values", "-f", help="Additional values file (repeatable)."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Append rendered manifests to this file."),
    environment: Optional[str] = typer.Option(None, "--environment", "-e", help="Use the values files of an environment from chartscan.yaml."),
):
    """Render Helm charts with helm template.

    Example:
      chartscan template ./charts/web -f values-prod.yaml -o rendered.yaml
    """
    cfg = _load_config(config_file, values_files, None, environment)
    helm = HelmClient(cfg.helm_binary)

    for chart_path in chart_paths:
        release = release_name_for(chart_path)
        if not is_valid_release_name(release):
            _fail(f"Error rendering chart {chart_path}: invalid release name: {release}")
        try:
            with resolved_dependencies(chart_path, helm):
                rendered = helm.template(release, chart_path, cfg.values_files)
        except ChartScanError as exc:
            _fail(f"Error rendering chart {chart_path}: {exc}")

        if output is None:
            typer.echo(rendered)
            continue
        try:
            with open(output, "a", encoding="utf-8") as f:
                f.write(rendered)
                f.write("\n")
        except OSError as exc:
            _fail(f"Error writing to output file {output}: {exc}")


@app.command("environments")
def environments(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False, help="Path to chartscan.yaml."),
):
    """List environments configured in chartscan.yaml."""
    path = config_file or find_project_config()
    if path is None:
        console.print("No environments configured.")
        return
    try:
        project = load_project_config(path)
    except ConfigError as exc:
        _fail(f"Error listing environments: {exc}")
    render_environments(project.environments, console)


@config_app.command("show")
def config_show():
    """Show user defaults."""
    settings = load_user_config()
    table = Table(title=str(config.CONFIG_FILE))
    table.add_column("Option")
    table.add_column("Value")
    for key, value in settings.items():
        table.add_row(key, str(value))
    console.print(table)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="output_format, max_workers or helm_binary."),
    value: str = typer.Argument(..., help="New value."),
):
    """Persist a user default."""
    try:
        set_user_option(key, value)
    except ConfigError as exc:
        _fail(str(exc))
    typer.echo(f"Set {key} = {value}")


@config_app.command("reset")
def config_reset():
    """Remove user defaults."""
    if reset_user_config():
        typer.echo(f"Removed {config.CONFIG_FILE}")
    else:
        typer.echo("No user config to remove.")


if __name__ == "__main__":
    app()
