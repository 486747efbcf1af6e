"""Rendering of scan results: pretty table, JSON, YAML and JUnit XML."""

from __future__ import annotations

import json
from typing import Dict, List, Optional
from xml.etree.ElementTree import Element, SubElement, tostring

import yaml
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .loader import chart_name
from .models import EnvironmentConfig, ScanReport


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    return f"{seconds:.2f}s"


def _details(errors: List[str]) -> str:
    if not errors:
        return ""
    return "• " + "\n• ".join(errors)


def render_pretty(report: ScanReport, console: Optional[Console] = None) -> None:
    """Print a table with one row per chart, followed by a summary line."""
    console = console or Console()
    table = Table(show_lines=True)
    table.add_column("Chart Name", no_wrap=True)
    table.add_column("Success", justify="center")
    table.add_column("Details", overflow="fold")

    for result in report.sorted_results():
        mark = Text("✔", style="green") if result.success else Text("✘", style="red")
        # Text() keeps helm's "[ERROR]" from being read as rich markup
        table.add_row(chart_name(result.path), mark, Text(_details(result.errors)))

    console.print(table)
    console.print(
        f"\nSummary: {report.valid_charts} valid charts, {report.invalid_charts} invalid charts "
        f"scanned in {format_duration(report.duration)}",
        markup=False,
        highlight=False,
    )


def render_json(report: ScanReport) -> str:
    return json.dumps([r.to_dict() for r in report.sorted_results()], indent=2, default=str)


def render_yaml(report: ScanReport) -> str:
    return yaml.safe_dump(
        [r.to_dict() for r in report.sorted_results()],
        sort_keys=False,
        allow_unicode=True,
    )


def render_junit(report: ScanReport) -> str:
    """JUnit-style report: one test case per chart."""
    suite = Element(
        "testsuite",
        name="Helm Chart Scan",
        tests=str(len(report.results)),
        failures=str(report.invalid_charts),
        time=f"{report.duration:.3f}",
    )
    for result in report.sorted_results():
        case = SubElement(suite, "testcase", name=result.path, classname="ChartScan", time="0")
        if result.success:
            out = SubElement(case, "system-out")
            out.text = f"Chart {result.path} rendered successfully"
        else:
            failure = SubElement(case, "failure", message="Chart rendering failed", type="RenderingError")
            failure.text = "\n".join(result.errors)
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + tostring(suite, encoding="unicode")


def render_environments(environments: Dict[str, EnvironmentConfig], console: Optional[Console] = None) -> None:
    console = console or Console()
    if not environments:
        console.print("No environments configured.")
        return
    table = Table(show_lines=True)
    table.add_column("Environment")
    table.add_column("Values Files", overflow="fold")
    for name in sorted(environments):
        table.add_row(name, Text(_details(environments[name].values_files)))
    console.print(table)
