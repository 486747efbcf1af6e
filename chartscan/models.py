"""Core data models shared by extraction, processing and reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .values import MappingValue, to_plain


@dataclass(frozen=True)
class ValueReference:
    """One ``{{ .Values.x.y }}`` occurrence inside a template file."""
    name: str
    file: str
    line: int
    full_text: str

    def __str__(self) -> str:
        return f"{self.file}:{self.line} {self.full_text}"


@dataclass(frozen=True)
class ChartResult:
    """Outcome of scanning a single chart."""
    path: str
    success: bool
    errors: List[str] = field(default_factory=list)
    values: MappingValue = field(default_factory=MappingValue)
    undefined_values: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Keep the success flag consistent with the diagnostics."""
        if self.success != (len(self.errors) == 0):
            raise ValueError("success must be True exactly when there are no errors")
        missing = [msg for msg in self.undefined_values if msg not in self.errors]
        if missing:
            raise ValueError(f"undefined values not reported as errors: {missing}")

    @classmethod
    def build(
        cls,
        path: str,
        errors: List[str],
        values: Optional[MappingValue] = None,
        undefined_values: Optional[List[str]] = None,
    ) -> "ChartResult":
        return cls(
            path=path,
            success=not errors,
            errors=list(errors),
            values=values if values is not None else MappingValue(),
            undefined_values=list(undefined_values or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form; empty collections are omitted."""
        data: Dict[str, Any] = {"ChartPath": self.path, "Success": self.success}
        if self.errors:
            data["Errors"] = list(self.errors)
        if self.undefined_values:
            data["UndefinedValues"] = list(self.undefined_values)
        if len(self.values):
            data["Values"] = to_plain(self.values)
        return data


@dataclass
class ScanReport:
    results: List[ChartResult]
    invalid_charts: int
    duration: float

    @property
    def valid_charts(self) -> int:
        return len(self.results) - self.invalid_charts

    @property
    def success(self) -> bool:
        return self.invalid_charts == 0

    def sorted_results(self) -> List[ChartResult]:
        return sorted(self.results, key=lambda r: r.path)


@dataclass
class EnvironmentConfig:
    values_files: List[str] = field(default_factory=list)


@dataclass
class ScanConfig:
    """Effective settings for a run after all config sources are applied."""
    chart_path: str = ""
    values_files: List[str] = field(default_factory=list)
    output_format: str = "pretty"
    environments: Dict[str, EnvironmentConfig] = field(default_factory=dict)
    max_workers: int = 4
    helm_binary: str = "helm"
    config_file: Optional[str] = None
