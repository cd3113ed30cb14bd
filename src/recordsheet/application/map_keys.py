"""
Map-key consistency validation.

Dynamic (mapping-typed) fields get their columns from the first record of
a collection. A later record with a different key set would put values
under the wrong headers, so every record's key set must equal the first
one. Key order is irrelevant.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from recordsheet.application.materializer import resolve_path
from recordsheet.domain.errors import InconsistentMapKeysError, SchemaMismatchError
from recordsheet.domain.models import ColumnPlan


__all__ = ["MapKeyTracker", "are_all_map_keys_same"]

logger = logging.getLogger(__name__)


def _key_set(value: Any, field: str) -> frozenset[Any]:
    if value is None:
        return frozenset()
    if not isinstance(value, Mapping):
        raise SchemaMismatchError(
            f"map field '{field}' should hold a mapping, got {type(value).__name__}"
        )
    return frozenset(value)


def are_all_map_keys_same(mappings: Iterable[Mapping[Any, Any] | None]) -> bool:
    """True when every mapping has the same key set as the first one."""
    first: frozenset[Any] | None = None
    for mapping in mappings:
        keys = frozenset(mapping or ())
        if first is None:
            first = keys
        elif keys != first:
            return False
    return True


class MapKeyTracker:
    """
    Collects the key sets of every dynamic field, record by record.

    Usage:
        tracker = MapKeyTracker(plan)
        for record in records:
            tracker.observe(record)
        tracker.validate()
    """

    def __init__(self, plan: ColumnPlan) -> None:
        self._plan = plan
        self._observed: dict[str, list[frozenset[Any]]] = {
            name: [] for name in plan.dynamic_fields
        }

    @property
    def field_names(self) -> list[str]:
        return list(self._observed)

    def observe(self, record: Any) -> None:
        for name, dynamic in self._plan.dynamic_fields.items():
            value = resolve_path(record, dynamic.path)
            self._observed[name].append(_key_set(value, name))

    def validate(self) -> None:
        """
        Compare every record's key sets with the first record's.

        Raises:
            InconsistentMapKeysError: On the first diverging record
        """
        for name, key_sets in self._observed.items():
            if not key_sets:
                continue
            expected = key_sets[0]
            for row, keys in enumerate(key_sets):
                if keys != expected:
                    raise InconsistentMapKeysError(name, row, expected, keys)
            logger.debug(
                "Map field '%s' consistent across %d record(s) (%d key(s))",
                name,
                len(key_sets),
                len(expected),
            )
