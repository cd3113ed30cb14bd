"""
Domain models for sheet generation.

Pure data holders shared by the flattener, materializer, validator and
decorator. Nothing here talks to a workbook backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from collections.abc import Mapping
from typing import Any, Union

from recordsheet.domain.errors import SchemaMismatchError


__all__ = [
    "AUTO_SHEET",
    "HEADER_ROW",
    "AttributeStep",
    "KeyStep",
    "FieldPath",
    "DropdownSpec",
    "ColumnOptions",
    "ColumnDescriptor",
    "DynamicField",
    "ColumnPlan",
    "FreezePane",
    "SheetPlan",
    "CellValue",
    "path_label",
]


# Sentinel for "dropdown-sheet:auto": the referenced sheet is named after the column
AUTO_SHEET = "auto"

# Headers always occupy the first row; data starts right below
HEADER_ROW = 1


# ============================================================================
# Field Paths
# ============================================================================


@dataclass(frozen=True, slots=True)
class AttributeStep:
    """Read a named field from a record of type ``owner``."""

    name: str
    owner: type

    def read(self, obj: Any) -> Any:
        if not isinstance(obj, self.owner):
            raise SchemaMismatchError(
                f"expected {self.owner.__name__} when reading field '{self.name}', "
                f"got {type(obj).__name__}"
            )
        return getattr(obj, self.name)


@dataclass(frozen=True, slots=True)
class KeyStep:
    """Read one key of a mapping-typed (dynamic) field."""

    key: Any

    def read(self, obj: Any) -> Any:
        if not isinstance(obj, Mapping):
            raise SchemaMismatchError(
                f"expected a mapping when reading key {self.key!r}, "
                f"got {type(obj).__name__}"
            )
        return obj.get(self.key)


FieldPath = tuple[Union[AttributeStep, KeyStep], ...]


def path_label(path: FieldPath) -> str:
    """Dotted, human-readable form of a path (``meta.extra[k]``)."""
    label = ""
    for step in path:
        if isinstance(step, AttributeStep):
            label = f"{label}.{step.name}" if label else step.name
        else:
            label = f"{label}[{step.key!r}]"
    return label


# ============================================================================
# Column Options and Descriptors
# ============================================================================


@dataclass(frozen=True, slots=True)
class DropdownSpec:
    """
    List-validation directive for one column.

    Attributes:
        row_count: Number of data rows below the header the rule covers
        inline_values: Literal allowed values (from configuration)
        sheet: Sheet holding the allowed values, or AUTO_SHEET
    """

    row_count: int
    inline_values: tuple[str, ...] = ()
    sheet: str | None = None


@dataclass(frozen=True, slots=True)
class ColumnOptions:
    """Parsed form of one field annotation."""

    display_name: str = ""
    number_format: str | None = None
    width: float | None = None
    skip: bool = False
    dropdown: DropdownSpec | None = None

    def for_key(
        self,
        key: str,
        dropdown_values: Mapping[str, list[str]] | None = None,
    ) -> ColumnOptions:
        """Options for one key of a dynamic field: same directives, key as header."""
        dropdown = self.dropdown
        if dropdown is not None:
            values = (dropdown_values or {}).get(key) if dropdown.row_count else None
            dropdown = DropdownSpec(
                row_count=dropdown.row_count,
                inline_values=tuple(values) if values else (),
                sheet=dropdown.sheet,
            )
        return ColumnOptions(
            display_name=key,
            number_format=self.number_format,
            width=self.width,
            skip=self.skip,
            dropdown=dropdown,
        )


@dataclass(frozen=True, slots=True)
class ColumnDescriptor:
    """One planned column. ``index`` is 0-based and dense."""

    index: int
    display_name: str
    path: FieldPath
    number_format: str | None = None
    width: float | None = None
    dropdown: DropdownSpec | None = None


@dataclass(frozen=True, slots=True)
class DynamicField:
    """A mapping-typed field and the keys planned from the first record."""

    path: FieldPath
    keys: tuple[Any, ...]


@dataclass(frozen=True)
class ColumnPlan:
    """Ordered column plan derived once per collection."""

    record_type: type
    columns: tuple[ColumnDescriptor, ...]
    dynamic_fields: dict[str, DynamicField] = field(default_factory=dict)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def headers(self) -> list[str]:
        return [column.display_name for column in self.columns]


# ============================================================================
# Sheet State
# ============================================================================


class FreezePane(Enum):
    """Freeze-pane modes. First row and first column are exclusive."""

    NONE = "none"
    FIRST_ROW = "first_row"
    FIRST_COLUMN = "first_column"


@dataclass
class SheetPlan:
    """
    Per-sheet state owned by the generator.

    Built incrementally while a collection is written and finalized once
    by the decorator.
    """

    name: str
    index: int
    handle: Any = None
    plan: ColumnPlan | None = None
    row_count: int = 0
    auto_filter: bool = False
    freeze: FreezePane = FreezePane.NONE
    hidden: bool = False

    @property
    def columns(self) -> tuple[ColumnDescriptor, ...]:
        return self.plan.columns if self.plan is not None else ()


@dataclass(frozen=True, slots=True)
class CellValue:
    """A materialized cell: scalar value plus optional number format."""

    value: Any = None
    number_format: str | None = None
