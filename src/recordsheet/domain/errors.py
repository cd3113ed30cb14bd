"""
Exception hierarchy for recordsheet.

All errors propagate without recovery: a failure aborts the collection
being written. The generator stamps the sheet name onto the exception
before re-raising so the message identifies the failing collection.
"""

from __future__ import annotations

from typing import Any


class RecordSheetError(Exception):
    """Base exception for the recordsheet package.

    Attributes:
        message: Description of the failure.
        sheet: Name of the sheet being generated, if known.
    """

    def __init__(self, message: str, sheet: str | None = None) -> None:
        self.message = message
        self.sheet = sheet
        super().__init__(message)

    def __str__(self) -> str:
        if self.sheet is None:
            return self.message
        return f"[sheet '{self.sheet}'] {self.message}"


class InputShapeError(RecordSheetError):
    """Raised when a collection is not an ordered sequence or is empty."""


class SheetNotFoundError(RecordSheetError):
    """Raised when a sheet index is outside the created range.

    Attributes:
        index: The requested sheet index.
    """

    def __init__(self, index: int, sheet_count: int) -> None:
        self.index = index
        super().__init__(
            f"sheet index {index} not found ({sheet_count} sheet(s) created)"
        )


class ParseError(RecordSheetError):
    """Raised when a column annotation carries a malformed directive.

    Attributes:
        directive: The offending directive key (e.g. "width").
        annotation: The raw annotation string.
    """

    def __init__(self, directive: str, annotation: str, reason: str) -> None:
        self.directive = directive
        self.annotation = annotation
        super().__init__(
            f"invalid '{directive}' directive in annotation {annotation!r}: {reason}"
        )


class InconsistentMapKeysError(RecordSheetError):
    """Raised when a dynamic field exposes different keys across records.

    Attributes:
        field: Dotted path of the dynamic field.
        row: Zero-based position of the first diverging record.
        expected: Keys seen in the first record.
        actual: Keys seen in the diverging record.
    """

    def __init__(
        self,
        field: str,
        row: int,
        expected: frozenset[Any],
        actual: frozenset[Any],
    ) -> None:
        self.field = field
        self.row = row
        self.expected = expected
        self.actual = actual
        missing = sorted(str(k) for k in expected - actual)
        extra = sorted(str(k) for k in actual - expected)
        super().__init__(
            f"all records must have consistent keys for map field '{field}': "
            f"record {row} is missing {missing} and has unexpected {extra}"
        )


class SchemaMismatchError(RecordSheetError):
    """Raised when a record's runtime shape disagrees with the column plan."""


class BackendError(RecordSheetError):
    """Raised when the workbook backend rejects an operation."""


class ConfigError(RecordSheetError):
    """Raised when a generator configuration file cannot be loaded.

    Attributes:
        path: The configuration file path.
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{message}: {path}")
