"""
Schema flattener.

Derives the ordered column plan of a collection from its first record.

Traversal is depth-first in field declaration order:
    - nested records are spliced in place (inherited fields come first)
    - optional nested records are planned against their declared type
    - mapping fields contribute one column per key of the first record,
      sorted by the key's string form
    - skipped fields ("" or "-") reserve no column index

Every column carries the FieldPath used to read its value, so the
materializer walks records in exactly the planned order.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from recordsheet.application.column_options import parse_column_options
from recordsheet.application.record_fields import (
    FieldKind,
    RecordField,
    describe_fields,
    is_record,
)
from recordsheet.domain.errors import SchemaMismatchError
from recordsheet.domain.models import (
    AttributeStep,
    ColumnDescriptor,
    ColumnOptions,
    ColumnPlan,
    DynamicField,
    FieldPath,
    KeyStep,
    path_label,
)


__all__ = ["flatten", "sorted_keys"]

logger = logging.getLogger(__name__)


def sorted_keys(mapping: Mapping[Any, Any]) -> tuple[Any, ...]:
    """Keys of a dynamic field in column order."""
    return tuple(sorted(mapping, key=str))


class _PlanBuilder:
    """Accumulates columns while walking one record type."""

    def __init__(self, dropdown_values: Mapping[str, list[str]] | None) -> None:
        self.dropdown_values = dropdown_values
        self.columns: list[ColumnDescriptor] = []
        self.dynamic_fields: dict[str, DynamicField] = {}

    def add_column(self, options: ColumnOptions, path: FieldPath) -> None:
        self.columns.append(
            ColumnDescriptor(
                index=len(self.columns),
                display_name=options.display_name,
                path=path,
                number_format=options.number_format,
                width=options.width,
                dropdown=options.dropdown,
            )
        )

    def walk(
        self,
        record_type: type,
        instance: Any,
        path: FieldPath,
        stack: tuple[type, ...],
    ) -> None:
        if record_type in stack:
            chain = " -> ".join(t.__name__ for t in (*stack, record_type))
            raise SchemaMismatchError(f"recursive record type cannot be flattened: {chain}")
        stack = (*stack, record_type)

        for field in describe_fields(record_type):
            step = AttributeStep(field.name, record_type)
            value = getattr(instance, field.name, None) if instance is not None else None

            match field.kind:
                case FieldKind.AGGREGATE:
                    self._walk_aggregate(field, value, (*path, step), stack)
                case FieldKind.DYNAMIC:
                    self._walk_dynamic(field, value, (*path, step))
                case FieldKind.LEAF:
                    self._walk_leaf(field, (*path, step))

    def _walk_aggregate(
        self,
        field: RecordField,
        value: Any,
        path: FieldPath,
        stack: tuple[type, ...],
    ) -> None:
        if field.tag is not None and parse_column_options(field.tag).skip:
            logger.debug("Skipping nested record '%s'", path_label(path))
            return
        if value is not None and not isinstance(value, field.target_type):
            raise SchemaMismatchError(
                f"field '{path_label(path)}' should hold "
                f"{field.target_type.__name__}, got {type(value).__name__}"
            )
        # Plan against the declared type; an absent value still yields columns
        self.walk(field.target_type, value, path, stack)

    def _walk_dynamic(self, field: RecordField, value: Any, path: FieldPath) -> None:
        label = path_label(path)
        options = parse_column_options(field.tag, self.dropdown_values)
        if options.skip:
            logger.debug("Skipping map field '%s'", label)
            return

        if value is None:
            logger.debug("Map field '%s' is empty in the first record; no columns", label)
            keys: tuple[Any, ...] = ()
        elif isinstance(value, Mapping):
            keys = sorted_keys(value)
        else:
            raise SchemaMismatchError(
                f"map field '{label}' should hold a mapping, got {type(value).__name__}"
            )

        self.dynamic_fields[label] = DynamicField(path=path, keys=keys)
        for key in keys:
            self.add_column(
                options.for_key(str(key), self.dropdown_values),
                (*path, KeyStep(key)),
            )

    def _walk_leaf(self, field: RecordField, path: FieldPath) -> None:
        options = parse_column_options(field.tag, self.dropdown_values)
        if options.skip:
            logger.debug("Skipping field '%s'", path_label(path))
            return
        self.add_column(options, path)


def flatten(
    record: Any,
    dropdown_values: Mapping[str, list[str]] | None = None,
) -> ColumnPlan:
    """
    Build the column plan for a collection from its first record.

    Args:
        record: First record of the collection (dataclass or pydantic model)
        dropdown_values: Allowed dropdown values per column display name

    Returns:
        ColumnPlan with dense, ordered column indices

    Raises:
        SchemaMismatchError: If the record is not a record type, a nested
            value has the wrong shape, or the type is recursive
        ParseError: If any field annotation is malformed
    """
    if not is_record(record):
        raise SchemaMismatchError(
            f"expected a dataclass or pydantic model instance, got {type(record).__name__}"
        )

    record_type = type(record)
    builder = _PlanBuilder(dropdown_values)
    builder.walk(record_type, record, (), ())

    logger.debug(
        "Planned %d column(s) for %s (%d map field(s))",
        len(builder.columns),
        record_type.__name__,
        len(builder.dynamic_fields),
    )
    return ColumnPlan(
        record_type=record_type,
        columns=tuple(builder.columns),
        dynamic_fields=builder.dynamic_fields,
    )
