"""
Sheet Generator.

Turns named collections of records into sheets of one workbook.

Per collection:
    1. create the sheet (guarded by the generator lock)
    2. flatten the first record into a column plan and write the header
    3. materialize every record into a data row
    4. check dynamic-field key sets across all records
    5. decorate the sheet (autofilter, freeze, hidden, dropdowns)

Usage Example:
    from recordsheet import GeneratorOptions, SheetGenerator

    generator = SheetGenerator(GeneratorOptions(auto_filter=True))
    generator.generate({"Orders": orders, "Customers": customers})
    generator.save("export.xlsx")

Threading:
    Sheets may be added from several threads. Creating the sheet and
    appending it to the generator's sheet list happen under one lock;
    everything else for a sheet runs on the calling thread and touches
    only that sheet's state.

Errors abort the collection being written. Rows already handed to the
backend are not rolled back, so a workbook from a failed run must be
discarded.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import IO, Any

from recordsheet.application.decorator import decorate
from recordsheet.application.flattener import flatten
from recordsheet.application.map_keys import MapKeyTracker
from recordsheet.application.materializer import materialize
from recordsheet.domain.config import GeneratorOptions
from recordsheet.domain.errors import (
    InputShapeError,
    RecordSheetError,
    SheetNotFoundError,
)
from recordsheet.domain.models import CellValue, ColumnPlan, SheetPlan
from recordsheet.infrastructure.workbook import OpenpyxlWorkbook, WorkbookBackend


__all__ = ["SheetGenerator", "validate_collection"]

logger = logging.getLogger(__name__)


def validate_collection(records: Any) -> list[Any]:
    """
    Check that a collection is a non-empty ordered sequence of records.

    ``None`` entries are dropped.

    Returns:
        The records as a list

    Raises:
        InputShapeError: If the collection is not a sequence or holds no records
    """
    if isinstance(records, (str, bytes, bytearray, Mapping)) or not isinstance(
        records, Sequence
    ):
        raise InputShapeError(
            f"expected an ordered sequence of records, got {type(records).__name__}"
        )
    if len(records) == 0:
        raise InputShapeError("collection is empty")

    present = [record for record in records if record is not None]
    if not present:
        raise InputShapeError("collection holds only None entries")
    if len(present) != len(records):
        logger.debug("Dropped %d None record(s)", len(records) - len(present))
    return present


class SheetGenerator:
    """
    Writes collections of records into one workbook.

    Attributes:
        options: Sheet-level generator options
        backend: Workbook backend receiving sheets and rows
    """

    def __init__(
        self,
        options: GeneratorOptions | None = None,
        backend: WorkbookBackend | None = None,
    ) -> None:
        self.options = options or GeneratorOptions()
        self.backend = backend if backend is not None else OpenpyxlWorkbook()
        self._lock = threading.Lock()
        self._sheets: list[SheetPlan] = []

    @property
    def sheets(self) -> list[SheetPlan]:
        return list(self._sheets)

    def add_sheet(self, name: str) -> int:
        """
        Create a sheet and return its index.

        Raises:
            BackendError: If the backend rejects the name
        """
        with self._lock:
            try:
                handle = self.backend.create_sheet(name)
            except RecordSheetError as exc:
                exc.sheet = name
                logger.error("Cannot create sheet '%s': %s", name, exc.message)
                raise
            sheet = SheetPlan(name=name, index=len(self._sheets), handle=handle)
            self._sheets.append(sheet)
        return sheet.index

    def get_sheet(self, index: int) -> SheetPlan:
        """
        Return the sheet state for an index.

        Raises:
            SheetNotFoundError: If no sheet was created at that index
        """
        if not 0 <= index < len(self._sheets):
            raise SheetNotFoundError(index, len(self._sheets))
        return self._sheets[index]

    def add_data(self, index: int, records: Any) -> SheetPlan:
        """
        Write one collection of records into an existing sheet.

        Args:
            index: Sheet index returned by add_sheet
            records: Ordered sequence of same-typed records

        Returns:
            The finalized sheet state

        Raises:
            RecordSheetError: Any subclass; the collection is aborted and the
                error names the sheet
        """
        sheet = self.get_sheet(index)
        try:
            self._write_collection(sheet, records)
        except RecordSheetError as exc:
            if exc.sheet is None:
                exc.sheet = sheet.name
            logger.error("Sheet '%s' aborted: %s", sheet.name, exc.message)
            raise

        logger.info(
            "Sheet '%s' written: %d column(s), %d row(s)",
            sheet.name,
            len(sheet.columns),
            sheet.row_count,
        )
        return sheet

    def _write_collection(self, sheet: SheetPlan, records: Any) -> None:
        records = validate_collection(records)

        plan = flatten(records[0], self.options.dropdown_values)
        sheet.plan = plan
        self._write_header(sheet, plan)

        tracker = MapKeyTracker(plan)
        for record in records:
            cells = materialize(plan, record)
            tracker.observe(record)
            self.backend.append_row(sheet.handle, cells)
            sheet.row_count += 1

        tracker.validate()
        decorate(self.backend, sheet, self.options)

    def _write_header(self, sheet: SheetPlan, plan: ColumnPlan) -> None:
        self.backend.append_row(
            sheet.handle, [CellValue(column.display_name) for column in plan.columns]
        )
        for column in plan.columns:
            if column.width is not None:
                self.backend.set_column_width(sheet.handle, column.index, column.width)

    def generate(self, collections: Mapping[str, Any]) -> list[SheetPlan]:
        """
        Write every named collection into its own sheet.

        Sheets are created in the mapping's iteration order.

        Raises:
            InputShapeError: If ``collections`` is not a non-empty mapping
            RecordSheetError: From the first collection that fails
        """
        if not isinstance(collections, Mapping):
            raise InputShapeError(
                f"expected a mapping of sheet name to records, got {type(collections).__name__}"
            )
        if not collections:
            raise InputShapeError("no collections to generate")

        written = []
        for name, records in collections.items():
            index = self.add_sheet(name)
            written.append(self.add_data(index, records))
        return written

    def save(self, target: Path | str | IO[bytes]) -> None:
        """Write the workbook through the backend."""
        self.backend.save(target)
