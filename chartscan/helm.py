"""Thin wrapper around the helm binary.

chartscan never renders templates itself; dependency updates, linting and
``helm template`` are delegated to helm and only its exit status and output
are interpreted here.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .config import CHARTS_DIR, DEFAULT_HELM_BINARY, ERROR_MARKER, LOCK_FILE
from .errors import ExternalToolError
from .loader import has_dependencies

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

RELEASE_NAME = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")


def parse_error_lines(output: str) -> List[str]:
    """Lines of helm output that carry the ``[ERROR]`` marker, verbatim."""
    return [line for line in output.split("\n") if ERROR_MARKER in line]


def is_valid_release_name(name: str) -> bool:
    return bool(RELEASE_NAME.match(name))


def release_name_for(chart_path: PathLike) -> str:
    """Release name used by ``helm template``: the chart directory's name."""
    resolved = Path(chart_path)
    name = resolved.name
    if not name or name in (".", ".."):
        name = resolved.resolve().name
    return name.strip()


def _values_args(values_files: Sequence[str]) -> List[str]:
    args: List[str] = []
    for values_file in values_files:
        args.extend(["--values", str(values_file)])
    return args


class HelmClient:
    """Runs helm subcommands and reports failures as ExternalToolError."""

    def __init__(self, binary: str = DEFAULT_HELM_BINARY):
        self.binary = binary

    def _run(self, args: List[str]) -> subprocess.CompletedProcess:
        cmd = [self.binary, *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            return subprocess.run(cmd, capture_output=True, text=True)
        except OSError as exc:
            raise ExternalToolError(f"cannot run {self.binary}: {exc}") from exc

    def dependency_update(self, chart_path: PathLike, cache_dir: PathLike) -> None:
        proc = self._run([
            "dependency", "update", "--repository-cache", str(cache_dir), str(chart_path),
        ])
        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout).strip()
            raise ExternalToolError(f"exit status {proc.returncode}: {detail}")

    def lint(self, chart_path: PathLike, values_files: Sequence[str] = ()) -> Tuple[bool, str]:
        """Run ``helm lint --strict``; returns success and combined output."""
        proc = self._run(["lint", "--strict", str(chart_path), *_values_args(values_files)])
        return proc.returncode == 0, (proc.stdout or "") + (proc.stderr or "")

    def template(
        self,
        release_name: str,
        chart_path: PathLike,
        values_files: Sequence[str] = (),
    ) -> str:
        """Render a chart with ``helm template`` and return the manifests."""
        proc = self._run(["template", release_name, str(chart_path), *_values_args(values_files)])
        if proc.returncode != 0:
            raise ExternalToolError(
                f"error running helm template: exit status {proc.returncode}\nstderr: {proc.stderr}"
            )
        return proc.stdout


def _remove_paths(paths: Sequence[Path]) -> None:
    for path in paths:
        if path.is_dir():
            shutil.rmtree(path, ignore_errors=True)
        elif path.exists():
            try:
                path.unlink()
            except OSError as exc:
                logger.warning("Could not remove %s: %s", path, exc)


@contextmanager
def resolved_dependencies(chart_path: PathLike, helm: Optional[HelmClient] = None) -> Iterator[bool]:
    """Fetch declared chart dependencies for the duration of the block.

    Yields True when an update was performed. The repository cache lives in a
    temporary directory that is gone before the block starts; ``charts/`` and
    ``Chart.lock`` are removed on exit unless they were there beforehand.

    Raises LoadError/ParseError when Chart.yaml cannot be read and
    ExternalToolError when the update fails.
    """
    chart = Path(chart_path)
    if not has_dependencies(chart):
        yield False
        return

    helm = helm or HelmClient()
    created = [p for p in (chart / CHARTS_DIR, chart / LOCK_FILE) if not p.exists()]
    try:
        with tempfile.TemporaryDirectory(prefix="chartscan") as cache_dir:
            helm.dependency_update(chart, cache_dir)
        logger.debug("Updated dependencies for %s", chart)
        yield True
    finally:
        _remove_paths(created)
