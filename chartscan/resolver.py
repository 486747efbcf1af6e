"""Resolution of value references against merged values."""

from __future__ import annotations

from typing import Iterable, List

from .models import ValueReference
from .values import MappingValue, Value


def _path_exists(segments: List[str], node: Value) -> bool:
    if not segments or not isinstance(node, MappingValue):
        return False
    head, rest = segments[0], segments[1:]
    if head not in node:
        return False
    if not rest:
        # the leaf only has to exist; a null value still counts as defined
        return True
    return _path_exists(rest, node.entries[head])


def resolve(reference: ValueReference, merged: MappingValue) -> bool:
    """True when every segment of ``reference.name`` can be walked in *merged*.

    Segments are split on ``.`` and matched literally. Index syntax such as
    ``hosts[0]`` is not interpreted: it must exist as that exact key, so a
    reference into a list element is reported as undefined.
    """
    if not reference.name:
        return False
    return _path_exists(reference.name.split("."), merged)


def format_undefined(reference: ValueReference) -> str:
    return (
        f"Undefined value: '{reference.name}' referenced in "
        f"{reference.file} at line {reference.line}"
    )


def check_references(references: Iterable[ValueReference], merged: MappingValue) -> List[str]:
    """Diagnostics for every unresolved reference, in input order."""
    return [format_undefined(ref) for ref in references if not resolve(ref, merged)]
