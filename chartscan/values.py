"""Tagged value tree for parsed values documents.

YAML documents are converted into three node kinds so that merging and
reference resolution only ever have to handle a closed set of shapes:

- ``ScalarValue``   strings, numbers, booleans, dates and ``null``
- ``SequenceValue`` YAML lists (never merged element-wise)
- ``MappingValue``  YAML mappings, keyed by string
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Union

from .errors import ParseError


@dataclass
class ScalarValue:
    value: Any = None


@dataclass
class SequenceValue:
    items: List["Value"] = field(default_factory=list)


@dataclass
class MappingValue:
    entries: Dict[str, "Value"] = field(default_factory=dict)

    def __contains__(self, key: str) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: str) -> "Value | None":
        return self.entries.get(key)


Value = Union[ScalarValue, SequenceValue, MappingValue]


def _key(key: Any) -> str:
    if isinstance(key, bool):
        return "true" if key else "false"
    return str(key)


def from_plain(obj: Any, _ancestors: Optional[Set[int]] = None) -> Value:
    """Convert the output of a YAML load into a Value tree.

    Mapping keys are stringified, so ``1: foo`` is reachable as ``"1"`` and
    ``true: foo`` as ``"true"``. A node that contains itself through an alias
    raises ParseError.
    """
    if not isinstance(obj, (dict, list, tuple)):
        return ScalarValue(obj)

    ancestors = set() if _ancestors is None else _ancestors
    if id(obj) in ancestors:
        raise ParseError("recursive alias: a node contains itself")
    ancestors.add(id(obj))
    try:
        if isinstance(obj, dict):
            return MappingValue({_key(k): from_plain(v, ancestors) for k, v in obj.items()})
        return SequenceValue([from_plain(item, ancestors) for item in obj])
    finally:
        ancestors.discard(id(obj))


def to_plain(value: Value) -> Any:
    """Convert a Value tree back into dicts, lists and scalars."""
    if isinstance(value, MappingValue):
        return {k: to_plain(v) for k, v in value.entries.items()}
    if isinstance(value, SequenceValue):
        return [to_plain(item) for item in value.items]
    return value.value
