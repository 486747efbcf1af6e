"""Exception taxonomy shared by the scanning pipeline."""

from __future__ import annotations


class ChartScanError(Exception):
    """Base class for all errors raised by chartscan."""


class ConfigError(ChartScanError):
    """Malformed chart path, missing explicit values file, or bad config."""


class ExternalToolError(ChartScanError):
    """The helm binary failed or could not be started."""


class ParseError(ChartScanError):
    """Malformed manifest, values document, or placeholder."""


class LoadError(ChartScanError):
    """A file could not be read."""


class WalkError(ChartScanError):
    """A path inside the templates directory could not be accessed."""

    def __init__(self, path: str, detail: str):
        super().__init__(f"Error accessing file {path}: {detail}")
        self.path = path
        self.detail = detail
