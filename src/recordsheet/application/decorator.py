"""
Sheet decorator.

Applies the sheet-level options once every row of a collection has been
written, in this order:

    1. autofilter over the header and all data rows
    2. freeze pane (first column wins over first row)
    3. hidden flag
    4. dropdown list validation per column
"""

from __future__ import annotations

import logging

from openpyxl.utils import get_column_letter

from recordsheet.domain.config import GeneratorOptions
from recordsheet.domain.models import (
    AUTO_SHEET,
    HEADER_ROW,
    ColumnDescriptor,
    FreezePane,
    SheetPlan,
)
from recordsheet.infrastructure.workbook import WorkbookBackend


__all__ = ["decorate", "resolve_dropdown_sheet"]

logger = logging.getLogger(__name__)


def resolve_dropdown_sheet(
    column: ColumnDescriptor,
    overrides: dict[str, str] | None = None,
) -> str | None:
    """
    Name of the sheet a dropdown column draws its values from.

    Precedence: explicit override for the column's display name, then the
    literal dropdown-sheet name, then "auto" resolved to the display name.
    """
    if column.dropdown is None:
        return None
    override = (overrides or {}).get(column.display_name)
    if override:
        return override
    sheet = column.dropdown.sheet
    if sheet == AUTO_SHEET:
        return column.display_name or None
    return sheet


def _apply_dropdown(
    backend: WorkbookBackend,
    sheet: SheetPlan,
    column: ColumnDescriptor,
    options: GeneratorOptions,
) -> None:
    dropdown = column.dropdown
    if dropdown is None or dropdown.row_count <= 0:
        return

    first_row = HEADER_ROW + 1
    last_row = HEADER_ROW + dropdown.row_count

    if dropdown.inline_values:
        backend.add_list_validation(
            sheet.handle, column.index, first_row, last_row, values=dropdown.inline_values
        )
        return

    source = resolve_dropdown_sheet(column, options.dropdown_sheet_overrides)
    if source is None:
        logger.debug(
            "Dropdown column '%s' on sheet '%s' has no values configured; skipped",
            column.display_name,
            sheet.name,
        )
        return
    backend.add_list_validation(
        sheet.handle, column.index, first_row, last_row, source_sheet=source
    )


def decorate(
    backend: WorkbookBackend,
    sheet: SheetPlan,
    options: GeneratorOptions,
) -> None:
    """
    Finalize a sheet after its rows are written.

    Args:
        backend: Workbook backend holding the sheet
        sheet: Sheet state with its final plan and row count
        options: Generator options
    """
    columns = sheet.columns

    if options.auto_filter and columns:
        end = f"{get_column_letter(len(columns))}{HEADER_ROW + sheet.row_count}"
        backend.set_auto_filter(sheet.handle, f"A{HEADER_ROW}", end)
        sheet.auto_filter = True

    sheet.freeze = options.freeze
    if sheet.freeze is not FreezePane.NONE:
        backend.set_freeze_pane(sheet.handle, sheet.freeze)

    if options.is_hidden(sheet.name):
        backend.set_hidden(sheet.handle, True)
        sheet.hidden = True

    for column in columns:
        _apply_dropdown(backend, sheet, column, options)

    logger.debug(
        "Decorated sheet '%s' (autofilter=%s, freeze=%s, hidden=%s)",
        sheet.name,
        sheet.auto_filter,
        sheet.freeze.value,
        sheet.hidden,
    )
