"""Per-chart scan pipeline and concurrent processing of many charts.

Each chart moves through the states of ``ChartState`` in order. Failing to
resolve dependencies or finding a missing explicit values file ends the chart
straight away; lint, template and values problems are accumulated so a single
result can report all of them.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import ExitStack
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import DEFAULT_MAX_WORKERS, DEFAULT_VALUES_FILE, ERROR_MARKER
from .errors import ExternalToolError, LoadError, ParseError
from .extractor import parse_templates
from .helm import HelmClient, parse_error_lines, resolved_dependencies
from .loader import load_values
from .merger import merge
from .models import ChartResult, ScanReport
from .resolver import check_references
from .values import MappingValue

logger = logging.getLogger(__name__)


class ChartState(Enum):
    PENDING = "pending"
    DEPENDENCIES_RESOLVED = "dependencies-resolved"
    LINTED = "linted"
    TEMPLATES_PARSED = "templates-parsed"
    VALUES_LOADED = "values-loaded"
    RESOLVED = "resolved"
    DONE = "done"


class ResultCollector:
    """Results shared between workers; every update happens under one lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._results: List[ChartResult] = []
        self._invalid = 0

    def add(self, result: ChartResult) -> None:
        with self._lock:
            self._results.append(result)
            if not result.success:
                self._invalid += 1

    @property
    def results(self) -> List[ChartResult]:
        with self._lock:
            return list(self._results)

    @property
    def invalid_charts(self) -> int:
        with self._lock:
            return self._invalid


def missing_values_files(values_files: Sequence[str]) -> List[str]:
    return [
        f"Values file does not exist: {values_file}"
        for values_file in values_files
        if not os.path.exists(values_file)
    ]


def load_and_merge_values(chart_path: str, values_files: Sequence[str]) -> Tuple[MappingValue, List[str]]:
    """Merge the chart's values.yaml with *values_files*, in that order.

    A chart without values.yaml is fine. Files that fail to load are reported
    and left out of the merge.
    """
    merged = MappingValue()
    errors: List[str] = []
    chart_values_file = os.path.join(chart_path, DEFAULT_VALUES_FILE)

    try:
        os.stat(chart_values_file)
    except FileNotFoundError:
        logger.debug("No %s in %s", DEFAULT_VALUES_FILE, chart_path)
    except OSError as exc:
        errors.append(f"Error checking values.yaml: {exc}")
    else:
        try:
            merge(merged, load_values(chart_values_file))
        except (LoadError, ParseError) as exc:
            errors.append(f"Error loading values.yaml: {exc}")

    chart_values_abs = os.path.abspath(chart_values_file)
    for values_file in values_files:
        if os.path.abspath(values_file) == chart_values_abs:
            continue
        try:
            merge(merged, load_values(values_file))
        except (LoadError, ParseError) as exc:
            errors.append(f"Error loading additional values file {values_file}: {exc}")

    return merged, errors


class ChartProcessor:
    """Scans charts, one worker thread per chart."""

    def __init__(self, helm: Optional[HelmClient] = None, max_workers: int = DEFAULT_MAX_WORKERS):
        self.helm = helm or HelmClient()
        self.max_workers = max(1, max_workers)

    def _advance(self, chart_path: str, state: ChartState) -> ChartState:
        logger.debug("%s -> %s", chart_path, state.value)
        return state

    def _lint(self, chart_path: str, values_files: Sequence[str]) -> List[str]:
        try:
            ok, output = self.helm.lint(chart_path, values_files)
        except ExternalToolError as exc:
            return [f"Error running helm lint: {exc}"]
        if ok:
            return []
        errors = parse_error_lines(output)
        if not errors:
            logger.warning("helm lint failed for %s without %s lines", chart_path, ERROR_MARKER)
            errors = [f"helm lint failed for {chart_path}"]
        return errors

    def scan_chart(self, chart_path: str, values_files: Sequence[str] = ()) -> ChartResult:
        """Run the full pipeline for one chart and return its result."""
        if not chart_path:
            return ChartResult.build("", ["Chart path is empty"])
        chart_path = str(chart_path)
        values_files = [str(f) for f in values_files]

        with ExitStack() as stack:
            try:
                stack.enter_context(resolved_dependencies(chart_path, self.helm))
            except (LoadError, ParseError) as exc:
                return ChartResult.build(chart_path, [f"Error reading Chart.yaml: {exc}"])
            except ExternalToolError as exc:
                return ChartResult.build(chart_path, [f"Error updating dependencies: {exc}"])
            self._advance(chart_path, ChartState.DEPENDENCIES_RESOLVED)

            missing = missing_values_files(values_files)
            if missing:
                self._advance(chart_path, ChartState.DONE)
                return ChartResult.build(chart_path, missing)

            errors = self._lint(chart_path, values_files)
            self._advance(chart_path, ChartState.LINTED)

            references, template_errors = parse_templates(chart_path)
            errors.extend(template_errors)
            self._advance(chart_path, ChartState.TEMPLATES_PARSED)

            values, load_errors = load_and_merge_values(chart_path, values_files)
            errors.extend(load_errors)
            self._advance(chart_path, ChartState.VALUES_LOADED)

            undefined = check_references(references, values)
            errors.extend(undefined)
            self._advance(chart_path, ChartState.RESOLVED)

        self._advance(chart_path, ChartState.DONE)
        return ChartResult.build(chart_path, errors, values, undefined)

    def _scan_into(self, chart_path: str, values_files: Sequence[str], collector: ResultCollector) -> None:
        try:
            result = self.scan_chart(chart_path, values_files)
        except Exception as exc:
            logger.exception("Unexpected error while scanning %s", chart_path)
            result = ChartResult.build(str(chart_path), [f"Unexpected error: {exc}"])
        collector.add(result)

    def process_charts(self, chart_dirs: Iterable[str], values_files: Sequence[str] = ()) -> ScanReport:
        """Scan every chart concurrently.

        The order of ``ScanReport.results`` is completion order; use
        ``ScanReport.sorted_results()`` for a stable order.
        """
        collector = ResultCollector()
        start = time.perf_counter()
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [
                pool.submit(self._scan_into, str(chart_dir), values_files, collector)
                for chart_dir in chart_dirs
            ]
            for future in futures:
                future.result()
        duration = time.perf_counter() - start
        return ScanReport(
            results=collector.results,
            invalid_charts=collector.invalid_charts,
            duration=duration,
        )
