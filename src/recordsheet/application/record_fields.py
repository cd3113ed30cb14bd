"""
Record introspection.

Describes the fields of a record type as a tagged variant so that the
flattener dispatches once per field:

    LEAF       - rendered directly into one cell
    AGGREGATE  - a nested record, flattened in place
    DYNAMIC    - a mapping whose keys become columns

Supported record types are dataclasses and pydantic models. The column
annotation lives in the field metadata under the "xlsx" key:

    value: float = field(metadata={"xlsx": "value,width:25"})
    value: float = Field(json_schema_extra={"xlsx": "value,width:25"})

Opaque value types (timestamps and anything registered through
register_opaque_type) are leaves even when they are records themselves.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import functools
import types
import typing
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from openpyxl.utils.datetime import to_excel
from pydantic import BaseModel

from recordsheet.domain.errors import SchemaMismatchError


__all__ = [
    "TAG_KEY",
    "FieldKind",
    "RecordField",
    "OpaqueType",
    "describe_fields",
    "is_record_type",
    "is_record",
    "register_opaque_type",
    "find_opaque_type",
]

TAG_KEY = "xlsx"


class FieldKind(Enum):
    LEAF = "leaf"
    AGGREGATE = "aggregate"
    DYNAMIC = "dynamic"


@dataclass(frozen=True, slots=True)
class RecordField:
    """
    One declared field of a record type.

    Attributes:
        name: Attribute name
        kind: How the field is flattened
        tag: Raw column annotation, or None when absent
        target_type: Declared type with Optional/Annotated unwrapped
        optional: True when the declared type admits None
    """

    name: str
    kind: FieldKind
    tag: str | None
    target_type: Any
    optional: bool = False


# ============================================================================
# Opaque Types
# ============================================================================


@dataclass(frozen=True, slots=True)
class OpaqueType:
    """A type rendered as a single cell, with its encoder and default format."""

    type: type
    encoder: Callable[[Any], Any]
    number_format: str | None = None


def _excel_serial(value: Any) -> float:
    # Excel serials have no timezone; keep wall-clock time
    if isinstance(value, (dt.datetime, dt.time)) and value.tzinfo is not None:
        value = value.replace(tzinfo=None)
    return to_excel(value)


# Checked in order, so datetime must precede its base class date
_OPAQUE_TYPES: list[OpaqueType] = [
    OpaqueType(dt.datetime, _excel_serial, "yyyy-mm-dd hh:mm:ss"),
    OpaqueType(dt.date, _excel_serial, "yyyy-mm-dd"),
    OpaqueType(dt.time, _excel_serial, "hh:mm:ss"),
    OpaqueType(dt.timedelta, _excel_serial, "[h]:mm:ss"),
]


def register_opaque_type(
    cls: type,
    encoder: Callable[[Any], Any] = str,
    number_format: str | None = None,
) -> None:
    """
    Treat ``cls`` as a leaf value instead of a nested record.

    Args:
        cls: Type to register (subclasses match too)
        encoder: Converts an instance into a cell scalar
        number_format: Format used when the column declares none
    """
    _OPAQUE_TYPES.insert(0, OpaqueType(cls, encoder, number_format))
    describe_fields.cache_clear()


def find_opaque_type(value_or_type: Any) -> OpaqueType | None:
    """Return the opaque registration matching a value or a type."""
    cls = value_or_type if isinstance(value_or_type, type) else type(value_or_type)
    for opaque in _OPAQUE_TYPES:
        if issubclass(cls, opaque.type):
            return opaque
    return None


# ============================================================================
# Type Classification
# ============================================================================


def is_record_type(tp: Any) -> bool:
    """True for dataclass and pydantic model classes that are not opaque."""
    if not isinstance(tp, type) or typing.get_origin(tp) is not None:
        return False
    if find_opaque_type(tp) is not None:
        return False
    return dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)


def is_record(value: Any) -> bool:
    return not isinstance(value, type) and is_record_type(type(value))


def _unwrap(tp: Any) -> tuple[Any, bool]:
    """Strip Annotated and Optional wrappers; report whether None is allowed."""
    optional = False
    while True:
        origin = typing.get_origin(tp)
        if origin is typing.Annotated:
            tp = typing.get_args(tp)[0]
        elif origin is typing.Union or origin is types.UnionType:
            args = [a for a in typing.get_args(tp) if a is not type(None)]
            if len(args) == len(typing.get_args(tp)):
                return tp, optional
            optional = True
            if len(args) != 1:
                return typing.Union[tuple(args)], optional
            tp = args[0]
        else:
            return tp, optional


def _is_mapping_type(tp: Any) -> bool:
    origin = typing.get_origin(tp) or tp
    return isinstance(origin, type) and issubclass(origin, (Mapping, MutableMapping))


def _classify(tp: Any) -> FieldKind:
    if _is_mapping_type(tp):
        return FieldKind.DYNAMIC
    if is_record_type(tp):
        return FieldKind.AGGREGATE
    return FieldKind.LEAF


def _make_field(name: str, annotation: Any, tag: Any) -> RecordField:
    target, optional = _unwrap(annotation)
    return RecordField(
        name=name,
        kind=_classify(target),
        tag=None if tag is None else str(tag),
        target_type=target,
        optional=optional,
    )


def _dataclass_fields(cls: type) -> tuple[RecordField, ...]:
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except NameError as exc:
        raise SchemaMismatchError(
            f"cannot resolve field types of {cls.__name__}: {exc}"
        ) from exc
    return tuple(
        _make_field(f.name, hints.get(f.name, Any), f.metadata.get(TAG_KEY))
        for f in dataclasses.fields(cls)
    )


def _model_fields(cls: type[BaseModel]) -> tuple[RecordField, ...]:
    result = []
    for name, info in cls.model_fields.items():
        extra = info.json_schema_extra
        tag = extra.get(TAG_KEY) if isinstance(extra, dict) else None
        result.append(_make_field(name, info.annotation, tag))
    return tuple(result)


@functools.lru_cache(maxsize=None)
def describe_fields(cls: type) -> tuple[RecordField, ...]:
    """
    Describe the fields of a record type in declaration order.

    Inherited fields come first, the way dataclasses and pydantic order
    them, so a base class behaves like an embedded record.

    Raises:
        TypeError: If ``cls`` is not a dataclass or pydantic model
    """
    if dataclasses.is_dataclass(cls):
        return _dataclass_fields(cls)
    if isinstance(cls, type) and issubclass(cls, BaseModel):
        return _model_fields(cls)
    raise TypeError(f"{cls!r} is not a dataclass or pydantic model")
