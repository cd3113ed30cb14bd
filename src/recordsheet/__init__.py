"""
recordsheet - records to spreadsheet sheets.

Flattens collections of dataclass or pydantic records into .xlsx sheets:
one sheet per named collection, one row per record, one column per leaf
field (nested records, optional fields and mapping fields included).

Usage:
    from dataclasses import dataclass, field
    from recordsheet import marshal

    @dataclass
    class Measurement:
        id: int = field(metadata={"xlsx": "id"})
        value: float = field(metadata={"xlsx": "value,format:0.000,width:25"})

    marshal({"Measurements": [Measurement(1, 2.2)]}, "out.xlsx")
"""

__version__ = "0.1.0"

from recordsheet.api import marshal
from recordsheet.application import (
    SheetGenerator,
    flatten,
    materialize,
    parse_column_options,
    register_opaque_type,
)
from recordsheet.domain import (
    BackendError,
    ConfigError,
    GeneratorOptions,
    InconsistentMapKeysError,
    InputShapeError,
    ParseError,
    RecordSheetError,
    SchemaMismatchError,
    SheetNotFoundError,
)
from recordsheet.infrastructure import OpenpyxlWorkbook, load_options, setup_logging

__all__ = [
    "BackendError",
    "ConfigError",
    "GeneratorOptions",
    "InconsistentMapKeysError",
    "InputShapeError",
    "OpenpyxlWorkbook",
    "ParseError",
    "RecordSheetError",
    "SchemaMismatchError",
    "SheetGenerator",
    "SheetNotFoundError",
    "__version__",
    "flatten",
    "load_options",
    "marshal",
    "parse_column_options",
    "register_opaque_type",
    "setup_logging",
]
