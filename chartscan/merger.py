"""Deep merge of values mappings.

Later sources win at leaf granularity. Mappings present on both sides are
merged recursively; anything else (scalars, sequences, a mapping replacing a
scalar or the reverse) is replaced wholesale.
"""

from __future__ import annotations

import copy
from typing import Iterable

from .values import MappingValue


def merge(target: MappingValue, source: MappingValue) -> MappingValue:
    """Merge *source* into *target* in place and return *target*.

    *source* is never modified, and nothing reachable from it is shared with
    *target*: every node taken from *source* is deep-copied on insertion.
    """
    for key, value in source.entries.items():
        current = target.entries.get(key)
        if isinstance(current, MappingValue) and isinstance(value, MappingValue):
            merge(current, value)
            continue
        target.entries[key] = copy.deepcopy(value)
    return target


def merge_all(mappings: Iterable[MappingValue]) -> MappingValue:
    """Merge *mappings* in order (lowest precedence first) into a new mapping."""
    merged = MappingValue()
    for mapping in mappings:
        merge(merged, mapping)
    return merged
