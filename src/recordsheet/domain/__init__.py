"""
Domain package.

Data model, configuration model and exception taxonomy for sheet
generation.
"""

from .config import GeneratorOptions
from .errors import (
    BackendError,
    ConfigError,
    InconsistentMapKeysError,
    InputShapeError,
    ParseError,
    RecordSheetError,
    SchemaMismatchError,
    SheetNotFoundError,
)
from .models import (
    AUTO_SHEET,
    HEADER_ROW,
    AttributeStep,
    CellValue,
    ColumnDescriptor,
    ColumnOptions,
    ColumnPlan,
    DropdownSpec,
    DynamicField,
    FieldPath,
    FreezePane,
    KeyStep,
    SheetPlan,
)

__all__ = [
    "AUTO_SHEET",
    "HEADER_ROW",
    "AttributeStep",
    "BackendError",
    "CellValue",
    "ColumnDescriptor",
    "ColumnOptions",
    "ColumnPlan",
    "ConfigError",
    "DropdownSpec",
    "DynamicField",
    "FieldPath",
    "FreezePane",
    "GeneratorOptions",
    "InconsistentMapKeysError",
    "InputShapeError",
    "KeyStep",
    "ParseError",
    "RecordSheetError",
    "SchemaMismatchError",
    "SheetNotFoundError",
    "SheetPlan",
]
