"""
Row materializer.

Walks one record against a fixed column plan and produces one CellValue
per planned column. Dynamic fields are read by key name, so the key
order of later records does not matter.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any

from recordsheet.application.record_fields import find_opaque_type, is_record
from recordsheet.domain.errors import SchemaMismatchError
from recordsheet.domain.models import (
    CellValue,
    ColumnDescriptor,
    ColumnPlan,
    FieldPath,
    path_label,
)


__all__ = ["materialize", "resolve_path", "encode_value"]

logger = logging.getLogger(__name__)

_SCALAR_TYPES = (str, int, float, bool, Decimal)


def resolve_path(record: Any, path: FieldPath) -> Any:
    """
    Follow a field path through a record.

    Returns None as soon as an optional link along the path is absent.

    Raises:
        SchemaMismatchError: If an intermediate value has the wrong shape
    """
    current = record
    for step in path:
        if current is None:
            return None
        current = step.read(current)
    return current


def encode_value(value: Any, column: ColumnDescriptor) -> CellValue:
    """Encode a leaf value into a cell, applying the column's number format."""
    if isinstance(value, Enum):
        value = value.value

    if value is None:
        return CellValue(None, column.number_format)

    opaque = find_opaque_type(value)
    if opaque is not None:
        return CellValue(
            opaque.encoder(value),
            column.number_format or opaque.number_format,
        )

    if isinstance(value, _SCALAR_TYPES):
        return CellValue(value, column.number_format)

    if is_record(value) or isinstance(value, Mapping):
        raise SchemaMismatchError(
            f"column '{column.display_name}' ({path_label(column.path)}) expects a "
            f"single value, got {type(value).__name__}"
        )

    return CellValue(str(value), column.number_format)


def materialize(plan: ColumnPlan, record: Any) -> list[CellValue]:
    """
    Produce the cells of one data row.

    Args:
        plan: Column plan built from the first record of the collection
        record: Record to render

    Returns:
        Exactly ``plan.column_count`` cells, in column order

    Raises:
        SchemaMismatchError: If the record does not match the plan's shape
    """
    if not isinstance(record, plan.record_type):
        raise SchemaMismatchError(
            f"expected {plan.record_type.__name__} record, got {type(record).__name__}"
        )

    cells = []
    for column in plan.columns:
        try:
            value = resolve_path(record, column.path)
        except SchemaMismatchError as exc:
            raise SchemaMismatchError(
                f"{exc.message} (column '{column.display_name}')"
            ) from exc
        cells.append(encode_value(value, column))
    return cells
