"""
Workbook backend.

The generator talks to the spreadsheet file only through the
WorkbookBackend protocol. OpenpyxlWorkbook is the shipped implementation.

Row and column numbers handed to the backend are 1-based, as in openpyxl;
column indices taken from ColumnDescriptor are 0-based and converted here.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Any, Protocol, Sequence

from openpyxl import Workbook
from openpyxl.utils import get_column_letter, quote_sheetname
from openpyxl.utils.exceptions import IllegalCharacterError
from openpyxl.workbook.child import INVALID_TITLE_REGEX
from openpyxl.worksheet.datavalidation import DataValidation
from openpyxl.worksheet.worksheet import Worksheet

from recordsheet.domain.errors import BackendError
from recordsheet.domain.models import CellValue, FreezePane, HEADER_ROW


__all__ = [
    "MAX_SHEET_NAME_LENGTH",
    "MAX_INLINE_LIST_LENGTH",
    "WorkbookBackend",
    "OpenpyxlWorkbook",
    "freeze_panes",
    "add_autofilter",
    "add_dropdown_validation",
]

logger = logging.getLogger(__name__)

MAX_SHEET_NAME_LENGTH = 31

# Excel rejects inline list formulas longer than this
MAX_INLINE_LIST_LENGTH = 255

_FREEZE_CELLS = {
    FreezePane.FIRST_ROW: "A2",
    FreezePane.FIRST_COLUMN: "B1",
}


# ============================================================================
# Backend Protocol
# ============================================================================


class WorkbookBackend(Protocol):
    """Operations the generator needs from a spreadsheet file."""

    def create_sheet(self, name: str) -> Any: ...

    def append_row(self, sheet: Any, cells: Sequence[CellValue]) -> int: ...

    def set_column_width(self, sheet: Any, index: int, width: float) -> None: ...

    def set_auto_filter(self, sheet: Any, start: str, end: str) -> None: ...

    def set_freeze_pane(self, sheet: Any, freeze: FreezePane) -> None: ...

    def set_hidden(self, sheet: Any, hidden: bool) -> None: ...

    def add_list_validation(
        self,
        sheet: Any,
        column_index: int,
        first_row: int,
        last_row: int,
        values: Sequence[str] | None = None,
        source_sheet: str | None = None,
    ) -> None: ...

    def save(self, target: Path | str | IO[bytes]) -> None: ...


# ============================================================================
# openpyxl Helpers
# ============================================================================


def freeze_panes(ws: Worksheet, freeze: FreezePane) -> None:
    """Freeze the header row or the first column."""
    ws.freeze_panes = _FREEZE_CELLS.get(freeze)


def add_autofilter(ws: Worksheet, start: str, end: str) -> None:
    ws.auto_filter.ref = f"{start}:{end}"


def add_dropdown_validation(
    ws: Worksheet,
    column_letter: str,
    formula: str,
    start_row: int,
    end_row: int,
) -> DataValidation:
    """Add list data validation to a column range.

    Args:
        ws: The worksheet to add validation to
        column_letter: Column letter (e.g., "E", "F")
        formula: Quoted value list or sheet range reference
        start_row: First validated row
        end_row: Last validated row (inclusive)
    """
    dv = DataValidation(
        type="list",
        formula1=formula,
        showDropDown=False,  # False = show dropdown arrow (counterintuitive)
        allow_blank=True,
    )
    dv.errorTitle = "Invalid Value"
    dv.error = "Please select a value from the list"
    ws.add_data_validation(dv)
    dv.add(f"{column_letter}{start_row}:{column_letter}{end_row}")
    return dv


# ============================================================================
# openpyxl Backend
# ============================================================================


class OpenpyxlWorkbook:
    """
    WorkbookBackend on top of an in-memory openpyxl Workbook.

    Sheet handles are openpyxl Worksheet objects.
    """

    def __init__(self) -> None:
        self.wb = Workbook()
        self._has_own_sheets = False
        # Next row to write, per sheet title
        self._row_counters: dict[str, int] = {}

    def _validate_name(self, name: str) -> None:
        if not name or not name.strip():
            raise BackendError("sheet name must not be empty")
        if len(name) > MAX_SHEET_NAME_LENGTH:
            raise BackendError(
                f"sheet name '{name}' is longer than {MAX_SHEET_NAME_LENGTH} characters"
            )
        if INVALID_TITLE_REGEX.search(name):
            raise BackendError(f"sheet name '{name}' contains an invalid character")
        existing = {title.lower() for title in self._row_counters}
        if name.lower() in existing:
            raise BackendError(f"sheet name '{name}' is already in use")

    def create_sheet(self, name: str) -> Worksheet:
        self._validate_name(name)

        # Remove default "Sheet" once a real sheet exists
        if not self._has_own_sheets:
            for default in list(self.wb.worksheets):
                self.wb.remove(default)
            self._has_own_sheets = True

        ws = self.wb.create_sheet(name)
        self._row_counters[name] = HEADER_ROW
        logger.debug("Created sheet '%s'", name)
        return ws

    def append_row(self, sheet: Worksheet, cells: Sequence[CellValue]) -> int:
        row = self._row_counters[sheet.title]
        for col_idx, cell_value in enumerate(cells, start=1):
            cell = sheet.cell(row=row, column=col_idx)
            try:
                cell.value = cell_value.value
            except (IllegalCharacterError, ValueError, TypeError) as exc:
                raise BackendError(
                    f"cannot write {cell_value.value!r} to {sheet.title}!"
                    f"{cell.coordinate}: {exc}"
                ) from exc
            if cell.data_type == "f":
                # Data is never a formula
                cell.data_type = "s"
            if cell_value.number_format:
                cell.number_format = cell_value.number_format
        self._row_counters[sheet.title] = row + 1
        return row

    def set_column_width(self, sheet: Worksheet, index: int, width: float) -> None:
        sheet.column_dimensions[get_column_letter(index + 1)].width = width

    def set_auto_filter(self, sheet: Worksheet, start: str, end: str) -> None:
        add_autofilter(sheet, start, end)

    def set_freeze_pane(self, sheet: Worksheet, freeze: FreezePane) -> None:
        freeze_panes(sheet, freeze)

    def set_hidden(self, sheet: Worksheet, hidden: bool) -> None:
        sheet.sheet_state = "hidden" if hidden else "visible"

    def add_list_validation(
        self,
        sheet: Worksheet,
        column_index: int,
        first_row: int,
        last_row: int,
        values: Sequence[str] | None = None,
        source_sheet: str | None = None,
    ) -> None:
        column_letter = get_column_letter(column_index + 1)

        if values:
            formula = '"' + ",".join(values) + '"'
            if len(formula) - 2 > MAX_INLINE_LIST_LENGTH:
                logger.warning(
                    "Dropdown list for %s!%s is %d characters; Excel may reject it "
                    "(limit %d)",
                    sheet.title,
                    column_letter,
                    len(formula) - 2,
                    MAX_INLINE_LIST_LENGTH,
                )
        elif source_sheet:
            formula = self._sheet_reference(source_sheet)
        else:
            raise BackendError(
                f"list validation for {sheet.title}!{column_letter} needs values "
                "or a source sheet"
            )

        add_dropdown_validation(sheet, column_letter, formula, first_row, last_row)

    def _sheet_reference(self, source_sheet: str) -> str:
        """Reference the values in column A of another sheet, below its header."""
        last_row = None
        if source_sheet in self.wb.sheetnames:
            last_row = max(self.wb[source_sheet].max_row, HEADER_ROW + 1)
        start = f"$A${HEADER_ROW + 1}"
        end = f"$A${last_row}" if last_row is not None else "$A$1048576"
        return f"{quote_sheetname(source_sheet)}!{start}:{end}"

    def save(self, target: Path | str | IO[bytes]) -> None:
        """
        Write the workbook to a path or a binary stream.

        Parent directories of a path target are created automatically.
        """
        if isinstance(target, (str, Path)):
            target = Path(target)
            target.parent.mkdir(parents=True, exist_ok=True)

        visible = [ws for ws in self.wb.worksheets if ws.sheet_state == "visible"]
        if self.wb.worksheets and not visible:
            logger.warning("Every sheet is hidden; spreadsheet applications may refuse the file")
        elif visible and self.wb.active is not None and self.wb.active.sheet_state != "visible":
            self.wb.active = self.wb.worksheets.index(visible[0])

        try:
            self.wb.save(target)
        except (OSError, ValueError, IndexError) as exc:
            raise BackendError(f"cannot save workbook: {exc}") from exc
        logger.info("Workbook saved: %s (%d sheets)", target, len(self.wb.sheetnames))
