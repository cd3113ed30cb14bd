"""
Tests for SheetGenerator: end-to-end sheets plus error propagation.
"""

from __future__ import annotations

import datetime as dt
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

import pytest

from recordsheet import GeneratorOptions, SheetGenerator
from recordsheet.domain import (
    BackendError,
    InconsistentMapKeysError,
    InputShapeError,
    ParseError,
    SchemaMismatchError,
    SheetNotFoundError,
)


def col(annotation, **kwargs):
    return field(metadata={"xlsx": annotation}, **kwargs)


@dataclass
class Measurement:
    id: int = col("id")
    value: float = col("value,format:0.000000000000,width:25")


@dataclass
class Address:
    city: str = col("city")


@dataclass
class Order:
    id: int = col("id")
    status: str = col("status,dropdown:10")
    category: str = col("category,dropdown:5,dropdown-sheet:auto")
    shipped: Optional[dt.datetime] = col("shipped")
    ship_to: Optional[Address] = col("ship to")
    extras: dict[str, int] = col("extra")


@dataclass
class BadWidth:
    id: int = col("id,width:wide")


def order(id, extras=None, ship_to=None, shipped=None):
    return Order(
        id=id,
        status="Open",
        category="Food",
        shipped=shipped,
        ship_to=ship_to,
        extras={"qty": 1} if extras is None else extras,
    )


class RecordingBackend:
    """Minimal WorkbookBackend that records calls."""

    def __init__(self):
        self.calls = []
        self.rows = {}

    def create_sheet(self, name):
        self.rows[name] = []
        return name

    def append_row(self, sheet, cells):
        self.rows[sheet].append([c.value for c in cells])
        return len(self.rows[sheet])

    def set_column_width(self, sheet, index, width):
        self.calls.append(("width", sheet, index, width))

    def set_auto_filter(self, sheet, start, end):
        self.calls.append(("auto_filter", sheet, start, end))

    def set_freeze_pane(self, sheet, freeze):
        self.calls.append(("freeze", sheet, freeze))

    def set_hidden(self, sheet, hidden):
        self.calls.append(("hidden", sheet, hidden))

    def add_list_validation(
        self, sheet, column_index, first_row, last_row, values=None, source_sheet=None
    ):
        self.calls.append(("list", sheet, column_index, first_row, last_row, source_sheet))

    def save(self, target):
        self.calls.append(("save", target))


class TestGeneratedWorkbook:
    """Generated sheets read back with openpyxl."""

    def test_single_record_sheet(self, reload_workbook):
        generator = SheetGenerator()
        generator.generate({"Measurements": [Measurement(1, 2.2)]})

        ws = reload_workbook(generator)["Measurements"]
        assert [c.value for c in ws[1]] == ["id", "value"]
        assert [c.value for c in ws[2]] == [1, 2.2]
        assert ws["B2"].number_format == "0.000000000000"
        assert ws.column_dimensions["B"].width == 25
        assert ws.max_row == 2

    def test_sheets_in_mapping_order(self, reload_workbook):
        generator = SheetGenerator()
        generator.generate({"Zeta": [Measurement(1, 1.0)], "Alpha": [Address("Oslo")]})
        assert reload_workbook(generator).sheetnames == ["Zeta", "Alpha"]

    def test_nested_optional_and_map_columns(self, reload_workbook):
        records = [
            order(1, ship_to=Address("Oslo"), shipped=dt.datetime(2020, 1, 1)),
            order(2),
        ]
        generator = SheetGenerator()
        generator.generate({"Orders": records})

        ws = reload_workbook(generator)["Orders"]
        assert [c.value for c in ws[1]] == [
            "id", "status", "category", "shipped", "city", "qty",
        ]
        assert ws["D2"].value == dt.datetime(2020, 1, 1)
        assert ws["D2"].number_format == "yyyy-mm-dd hh:mm:ss"
        assert ws["E2"].value == "Oslo"
        assert ws["D3"].value is None
        assert ws["E3"].value is None
        assert ws["F3"].value == 1

    def test_none_records_dropped(self):
        generator = SheetGenerator()
        (sheet,) = generator.generate({"Data": [None, Measurement(1, 1.0), None]})
        assert sheet.row_count == 1

    def test_sheet_options(self, reload_workbook):
        options = GeneratorOptions(
            auto_filter=True,
            freeze_first_row=True,
            hidden_sheets={"Archive"},
            dropdown_values={"status": ["Open", "Closed"]},
            dropdown_sheet_overrides={"category": "Categories"},
        )
        generator = SheetGenerator(options)
        generator.generate({"Orders": [order(1), order(2)], "Archive": [order(3)]})

        wb = reload_workbook(generator)
        ws = wb["Orders"]
        assert ws.auto_filter.ref == "A1:F3"
        assert ws.freeze_panes == "A2"
        assert wb["Archive"].sheet_state == "hidden"

        validations = {str(dv.sqref): dv.formula1 for dv in ws.data_validations.dataValidation}
        assert validations["B2:B11"] == '"Open,Closed"'
        assert "Categories" in validations["C2:C6"]

    def test_auto_dropdown_sheet_named_after_column(self):
        generator = SheetGenerator()
        generator.generate({"Orders": [order(1)]})

        ws = generator.backend.wb["Orders"]
        formulas = {str(dv.sqref): dv.formula1 for dv in ws.data_validations.dataValidation}
        assert "B2:B11" not in formulas
        assert "category" in formulas["C2:C6"]


class TestBackendSeam:
    """The generator drives any WorkbookBackend."""

    def test_rows_and_calls(self):
        backend = RecordingBackend()
        generator = SheetGenerator(GeneratorOptions(auto_filter=True), backend=backend)
        generator.generate({"M": [Measurement(1, 2.2), Measurement(2, 3.3)]})
        generator.save("ignored.xlsx")

        assert backend.rows["M"] == [["id", "value"], [1, 2.2], [2, 3.3]]
        assert ("width", "M", 1, 25.0) in backend.calls
        assert ("auto_filter", "M", "A1", "B3") in backend.calls
        assert backend.calls[-1] == ("save", "ignored.xlsx")

    def test_concurrent_add_sheet(self):
        generator = SheetGenerator(backend=RecordingBackend())
        with ThreadPoolExecutor(max_workers=4) as pool:
            indices = list(pool.map(generator.add_sheet, [f"S{i}" for i in range(20)]))

        assert sorted(indices) == list(range(20))
        for index in indices:
            assert generator.get_sheet(index).index == index


class TestInputErrors:
    """Malformed collections abort the sheet."""

    @pytest.mark.parametrize(
        "records",
        ["text", {"a": Measurement(1, 1.0)}, 42, [], [None], (x for x in [1])],
    )
    def test_bad_collection_shape(self, records):
        generator = SheetGenerator()
        index = generator.add_sheet("Data")
        with pytest.raises(InputShapeError) as exc_info:
            generator.add_data(index, records)
        assert exc_info.value.sheet == "Data"
        assert str(exc_info.value).startswith("[sheet 'Data'] ")

    def test_tuple_accepted(self):
        generator = SheetGenerator()
        index = generator.add_sheet("Data")
        assert generator.add_data(index, (Measurement(1, 1.0),)).row_count == 1

    @pytest.mark.parametrize("collections", [{}, [("Data", [])], None])
    def test_bad_collections_mapping(self, collections):
        with pytest.raises(InputShapeError):
            SheetGenerator().generate(collections)

    def test_unknown_sheet_index(self):
        generator = SheetGenerator()
        generator.add_sheet("Data")
        with pytest.raises(SheetNotFoundError) as exc_info:
            generator.add_data(3, [Measurement(1, 1.0)])
        assert exc_info.value.index == 3


class TestAbortedSheets:
    """Errors name the failing sheet and propagate."""

    def test_mixed_record_types(self):
        with pytest.raises(SchemaMismatchError) as exc_info:
            SheetGenerator().generate({"Mixed": [Measurement(1, 1.0), Address("Oslo")]})
        assert exc_info.value.sheet == "Mixed"

    def test_inconsistent_map_keys(self):
        with pytest.raises(InconsistentMapKeysError) as exc_info:
            SheetGenerator().generate({"Orders": [order(1), order(2, extras={"other": 1})]})
        assert exc_info.value.sheet == "Orders"
        assert exc_info.value.field == "extras"

    def test_malformed_annotation(self):
        with pytest.raises(ParseError) as exc_info:
            SheetGenerator().generate({"Bad": [BadWidth(1)]})
        assert exc_info.value.sheet == "Bad"

    def test_later_sheet_failure_stops_generation(self):
        generator = SheetGenerator()
        with pytest.raises(InputShapeError):
            generator.generate({"Good": [Measurement(1, 1.0)], "Empty": [], "Never": [Address("x")]})
        assert [s.name for s in generator.sheets] == ["Good", "Empty"]

    @pytest.mark.parametrize("name", ["x" * 32, "a:b", ""])
    def test_rejected_sheet_name(self, name):
        with pytest.raises(BackendError) as exc_info:
            SheetGenerator().add_sheet(name)
        assert exc_info.value.sheet == name

    def test_duplicate_sheet_name(self):
        generator = SheetGenerator()
        generator.add_sheet("Data")
        with pytest.raises(BackendError):
            generator.add_sheet("DATA")
        assert len(generator.sheets) == 1

    def test_abort_is_logged(self, caplog):
        with caplog.at_level(logging.ERROR, logger="recordsheet"):
            with pytest.raises(InputShapeError):
                SheetGenerator().generate({"Data": []})
        assert "Sheet 'Data' aborted" in caplog.text
