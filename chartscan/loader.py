"""Loading of values documents and chart manifests."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .config import MANIFEST_FILE
from .errors import LoadError, ParseError
from .values import MappingValue, from_plain

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

BOOL_TAG = "tag:yaml.org,2002:bool"


class ValuesLoader(yaml.SafeLoader):
    """SafeLoader with YAML 1.2 booleans: ``on``, ``off``, ``yes`` and ``no`` stay strings."""


ValuesLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
ValuesLoader.add_implicit_resolver(
    BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def _read_yaml(path: PathLike) -> Any:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"cannot read {path}: {exc}") from exc
    try:
        return yaml.load(text, Loader=ValuesLoader)
    except yaml.YAMLError as exc:
        raise ParseError(f"invalid YAML in {path}: {exc}") from exc


def load_values(path: PathLike) -> MappingValue:
    """Parse a values file into a MappingValue.

    Args:
        path: Path to a YAML values document

    Returns:
        The parsed mapping. An empty document gives an empty mapping.

    Raises:
        LoadError: the file cannot be read
        ParseError: the content is not YAML, or its top level is not a mapping
    """
    data = _read_yaml(path)
    if data is None:
        logger.debug("Values file %s is empty", path)
        return MappingValue()
    if not isinstance(data, dict):
        raise ParseError(
            f"{path}: expected a mapping at the top level, got {type(data).__name__}"
        )
    try:
        return from_plain(data)
    except ParseError as exc:
        raise ParseError(f"{path}: {exc}") from exc


def load_manifest(chart_path: PathLike) -> Dict[str, Any]:
    """Read and parse the chart's Chart.yaml."""
    data = _read_yaml(Path(chart_path) / MANIFEST_FILE)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ParseError(f"{MANIFEST_FILE} must contain a mapping")
    return data


def has_dependencies(chart_path: PathLike) -> bool:
    """True when Chart.yaml declares a non-empty ``dependencies`` list."""
    deps = load_manifest(chart_path).get("dependencies")
    return isinstance(deps, list) and len(deps) > 0


def chart_name(chart_path: PathLike) -> str:
    """Chart name from the manifest, or the path when it cannot be read."""
    try:
        name = load_manifest(chart_path).get("name")
    except (LoadError, ParseError) as exc:
        logger.debug("Falling back to path for chart name: %s", exc)
        return str(chart_path)
    return name if isinstance(name, str) and name else str(chart_path)
