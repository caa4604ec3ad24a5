"""Spreadsheet -> SQLite loader for agent-driven imports.

Public surface: the grid parser, the column-name normalizer, the SQLite table
loader and the spreadsheet reading adapter.
"""

from .db.normalize import normalize_column_name
from .db.sqlite_loader import create_table, get_column_info, import_rows, table_exists
from .excel.parser import parse_grid
from .excel.reader import SpreadsheetReader
from .models import ColumnDefinition, ColumnMapping, ImportResult, ParsedTable, ParserConfig

__all__ = [
    "ColumnDefinition",
    "ColumnMapping",
    "ImportResult",
    "ParsedTable",
    "ParserConfig",
    "SpreadsheetReader",
    "create_table",
    "get_column_info",
    "import_rows",
    "normalize_column_name",
    "parse_grid",
    "table_exists",
]

__version__ = "0.1.0"
