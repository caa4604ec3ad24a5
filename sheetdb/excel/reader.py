from __future__ import annotations

import csv
import logging
import os
from pathlib import Path
from typing import Any

import pandas as pd

from ..errors import (
    InvalidSpreadsheetError,
    NotLoadedError,
    ParserNotConfiguredError,
    SheetNotFoundError,
    SpreadsheetNotFoundError,
)
from ..models.parsing import ParsedTable, ParserConfig, RawGrid
from .parser import parse_grid

"""Spreadsheet reading adapter.

Loads an Excel workbook (pandas.ExcelFile, openpyxl engine for .xlsx) or a CSV
file and exposes each sheet as a raw grid of strings. Every cell is read as
text; empty cells become "". A CSV file is exposed as one sheet named after
the file stem.
"""

__all__ = [
    "EXCEL_EXTENSIONS",
    "CSV_EXTENSIONS",
    "DEFAULT_MAX_ROWS",
    "SpreadsheetReader",
    "file_type_for",
]

EXCEL_EXTENSIONS = (".xlsx", ".xlsm", ".xls")
CSV_EXTENSIONS = (".csv",)
DEFAULT_MAX_ROWS = 20

logger = logging.getLogger(__name__)


def file_type_for(path: Path) -> str | None:
    ext = path.suffix.lower()
    if ext in EXCEL_EXTENSIONS:
        return "excel"
    if ext in CSV_EXTENSIONS:
        return "csv"
    return None


def _frame_to_grid(df: pd.DataFrame) -> RawGrid:
    return [[str(v) for v in row] for row in df.fillna("").values.tolist()]


def _read_csv_grid(path: Path) -> RawGrid:
    # csv module keeps ragged rows; pandas.read_csv rejects rows wider than the first one
    with path.open(newline="", encoding="utf-8-sig") as f:
        return [list(row) for row in csv.reader(f)]


class SpreadsheetReader:
    """Reader for one spreadsheet file.

    Usage::

        with SpreadsheetReader(path) as reader:
            reader.load()
            grid = reader.read_sheet_as_grid("Sheet1", max_rows=10)
            reader.configure_parser(ParserConfig(metadata_rows=1, header_row=2))
            parsed = reader.get_parsed_data("Sheet1")
    """

    def __init__(self, path: str | os.PathLike[str], *, default_max_rows: int = DEFAULT_MAX_ROWS) -> None:
        self.path = Path(path)
        self.default_max_rows = default_max_rows
        self.parser_config: ParserConfig | None = None
        self._excel: pd.ExcelFile | None = None
        self._sheet_names: list[str] | None = None
        self._grids: dict[str, RawGrid] = {}

    @property
    def loaded(self) -> bool:
        return self._sheet_names is not None

    def load(self) -> None:
        """Open and validate the file.

        Raises:
            SpreadsheetNotFoundError: path does not exist
            InvalidSpreadsheetError: unsupported type, unreadable, or no sheets
        """
        if not self.path.exists():
            raise SpreadsheetNotFoundError(self.path)
        if not self.path.is_file() or not os.access(self.path, os.R_OK):
            raise InvalidSpreadsheetError(self.path, "file is not readable")

        kind = file_type_for(self.path)
        if kind is None:
            raise InvalidSpreadsheetError(self.path, f"unsupported file type: {self.path.suffix}")

        if kind == "csv":
            try:
                grid = _read_csv_grid(self.path)
            except (UnicodeDecodeError, csv.Error) as e:
                raise InvalidSpreadsheetError(self.path, f"failed to parse as CSV: {e}") from e
            sheet_names = [self.path.stem]
            self._grids = {self.path.stem: grid}
        else:
            try:
                self._excel = pd.ExcelFile(self.path)
            except Exception as e:
                raise InvalidSpreadsheetError(self.path, f"failed to parse as Excel file: {e}") from e
            sheet_names = [str(n) for n in self._excel.sheet_names]

        if not sheet_names:
            self.close()
            raise InvalidSpreadsheetError(self.path, "no sheets found in file")
        self._sheet_names = sheet_names
        logger.debug(f"loaded {self.path} sheets={sheet_names}")

    def close(self) -> None:
        if self._excel is not None:
            self._excel.close()
            self._excel = None

    def __enter__(self) -> SpreadsheetReader:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def list_sheet_names(self) -> list[str]:
        if self._sheet_names is None:
            raise NotLoadedError(self.path)
        return list(self._sheet_names)

    def _grid(self, sheet_name: str) -> RawGrid:
        sheets = self.list_sheet_names()
        if sheet_name not in sheets:
            raise SheetNotFoundError(sheet_name, self.path)
        if sheet_name not in self._grids:
            if self._excel is None:
                raise NotLoadedError(self.path)
            try:
                df = self._excel.parse(sheet_name, header=None, dtype=str, keep_default_na=False)
            except Exception as e:
                raise InvalidSpreadsheetError(self.path, f"failed to read sheet '{sheet_name}': {e}") from e
            self._grids[sheet_name] = _frame_to_grid(df)
        return self._grids[sheet_name]

    def read_sheet_as_grid(self, sheet_name: str, max_rows: int | None = None) -> RawGrid:
        """Return the first rows of a sheet (default_max_rows when max_rows is None)."""
        limit = self.default_max_rows if max_rows is None else max_rows
        return [list(r) for r in self._grid(sheet_name)[:limit]]

    def get_all_rows(self, sheet_name: str) -> RawGrid:
        return [list(r) for r in self._grid(sheet_name)]

    def configure_parser(self, config: ParserConfig) -> None:
        self.parser_config = config

    def get_parsed_data(self, sheet_name: str, max_rows: int | None = None) -> ParsedTable:
        """Parse the whole sheet with the configured ParserConfig.

        max_rows only truncates the data region; None keeps every data row.
        """
        if self.parser_config is None:
            raise ParserNotConfiguredError(self.path)
        return parse_grid(self._grid(sheet_name), self.parser_config, max_rows=max_rows)

    def get_file_info(self) -> dict[str, Any]:
        sheets = self.list_sheet_names()
        return {
            "file_path": str(self.path),
            "sheet_count": len(sheets),
            "sheets": sheets,
        }
