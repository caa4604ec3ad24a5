from __future__ import annotations

from pathlib import Path

import pytest

from conftest import make_excel
from sheetdb.errors import (
    InvalidSpreadsheetError,
    NotLoadedError,
    ParserNotConfiguredError,
    SheetNotFoundError,
    SpreadsheetNotFoundError,
)
from sheetdb.excel.reader import SpreadsheetReader
from sheetdb.models.parsing import ParserConfig


def _loaded(path: Path, **kwargs) -> SpreadsheetReader:
    reader = SpreadsheetReader(path, **kwargs)
    reader.load()
    return reader


def test_list_sheet_names_in_workbook_order(sales_workbook: Path):
    with _loaded(sales_workbook) as reader:
        assert reader.list_sheet_names() == ["Sales", "People"]
        info = reader.get_file_info()
    assert info == {"file_path": str(sales_workbook), "sheet_count": 2, "sheets": ["Sales", "People"]}


def test_cells_are_read_as_strings(sales_workbook: Path):
    with _loaded(sales_workbook) as reader:
        grid = reader.get_all_rows("Sales")
    assert grid[0] == ["Quarterly sales report", "", ""]
    assert grid[1] == ["Order ID", "Customer Name", "Amount ($)"]
    assert grid[2] == ["1", "Alice", "10.5"]
    assert grid[3] == ["2", "Bob", "20"]
    assert all(isinstance(c, str) for row in grid for c in row)


def test_read_sheet_as_grid_limits_rows(sales_workbook: Path):
    with _loaded(sales_workbook, default_max_rows=2) as reader:
        assert len(reader.read_sheet_as_grid("Sales")) == 2
        assert len(reader.read_sheet_as_grid("Sales", max_rows=4)) == 4
        assert len(reader.get_all_rows("Sales")) == 5


def test_get_parsed_data_reads_past_preview_limit(temp_workdir: Path):
    rows = [["title"], ["n"]] + [[i] for i in range(30)]
    path = make_excel(temp_workdir / "data" / "long.xlsx", {"S": rows})
    with _loaded(path, default_max_rows=5) as reader:
        reader.configure_parser(ParserConfig(metadata_rows=1, header_row=2))
        parsed = reader.get_parsed_data("S")
        preview = reader.get_parsed_data("S", max_rows=3)
    assert parsed.metadata == [["title"]]
    assert parsed.headers == ["n"]
    assert len(parsed.data) == 30
    assert preview.data == [["0"], ["1"], ["2"]]


def test_missing_file_raises_not_found(temp_workdir: Path):
    missing = temp_workdir / "data" / "nope.xlsx"
    with pytest.raises(SpreadsheetNotFoundError) as e:
        SpreadsheetReader(missing).load()
    assert str(missing) in str(e.value)


def test_non_excel_content_raises_invalid(temp_workdir: Path):
    bad = temp_workdir / "data" / "bad.xlsx"
    bad.write_text("This is not an Excel file", encoding="utf-8")
    with pytest.raises(InvalidSpreadsheetError) as e:
        SpreadsheetReader(bad).load()
    assert "bad.xlsx" in str(e.value)


def test_unsupported_extension_raises_invalid(temp_workdir: Path):
    txt = temp_workdir / "data" / "notes.txt"
    txt.write_text("a,b\n", encoding="utf-8")
    with pytest.raises(InvalidSpreadsheetError, match="unsupported file type"):
        SpreadsheetReader(txt).load()


def test_calls_before_load_raise_not_loaded(sales_workbook: Path):
    reader = SpreadsheetReader(sales_workbook)
    with pytest.raises(NotLoadedError):
        reader.list_sheet_names()
    with pytest.raises(NotLoadedError):
        reader.read_sheet_as_grid("Sales")


def test_unknown_sheet_raises_sheet_not_found(sales_workbook: Path):
    with _loaded(sales_workbook) as reader:
        with pytest.raises(SheetNotFoundError) as e:
            reader.read_sheet_as_grid("Nope")
    assert "Nope" in str(e.value)


def test_parsed_data_requires_configuration(sales_workbook: Path):
    with _loaded(sales_workbook) as reader:
        with pytest.raises(ParserNotConfiguredError):
            reader.get_parsed_data("Sales")


def test_csv_is_a_single_sheet_with_ragged_rows(temp_workdir: Path):
    csv_path = temp_workdir / "data" / "people.csv"
    csv_path.write_text('id,name,note\n1,Alice\n2,"Bob, Jr.",x,extra\n', encoding="utf-8")
    with _loaded(csv_path) as reader:
        assert reader.list_sheet_names() == ["people"]
        grid = reader.get_all_rows("people")
    assert grid == [["id", "name", "note"], ["1", "Alice"], ["2", "Bob, Jr.", "x", "extra"]]
