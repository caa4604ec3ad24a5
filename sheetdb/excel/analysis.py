from __future__ import annotations

import math
import os
from collections import Counter
from pathlib import Path

import pandas as pd

from ..errors import InvalidSpreadsheetError, SpreadsheetNotFoundError
from ..models.analysis import AnalysisSummary, ColumnAnalysis, DataFile, FileAnalysis
from ..models.parsing import RawGrid
from .reader import SpreadsheetReader, file_type_for

"""Heuristic structure analysis of a spreadsheet file.

The results are hints for whoever decides the parser configuration and the
column types (usually an LLM agent); nothing here is authoritative.
"""

__all__ = [
    "analyze_file",
    "analyze_grid",
    "list_data_files",
    "detect_column_type",
]

HEADER_STRING_RATIO = 0.7
DOMINANT_TYPE_RATIO = 0.8
SAMPLE_SIZE = 5

# (keywords, label); matched against lowercased column names
COLUMN_CONTEXT_HINTS: list[tuple[tuple[str, ...], str]] = [
    (("follow", "follower"), "Social media analytics"),
    (("celebrity", "talent"), "Celebrity/Talent management"),
    (("platform", "social"), "Multi-platform data"),
    (("date", "time"), "Time-series data"),
    (("affinity", "audience"), "Audience analysis"),
    (("price", "revenue", "sales", "amount", "cost"), "Financial data"),
    (("customer", "client"), "Customer data"),
]
# matched against the lowercased file name
FILE_CONTEXT_HINTS: list[tuple[tuple[str, ...], str]] = [
    (("poll", "survey"), "Survey/Poll data"),
    (("listener", "listen"), "Audio/Media analytics"),
]


def is_numeric(value: str) -> bool:
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def is_boolean(value: str) -> bool:
    return value.strip().lower() in ("true", "false")


def is_date(value: str) -> bool:
    try:
        ts = pd.Timestamp(value.strip())
    except (TypeError, ValueError, OverflowError):
        return False
    return ts is not pd.NaT


def _value_type(value: str) -> str:
    # numeric before date: date parsers accept bare numbers
    if is_boolean(value):
        return "boolean"
    if is_numeric(value):
        return "number"
    if is_date(value):
        return "date"
    return "string"


def detect_column_type(values: list[str]) -> str:
    """Dominant type of non-empty values, "mixed" below 80% agreement."""
    if not values:
        return "string"
    counts = Counter(_value_type(v) for v in values)
    dominant, n = counts.most_common(1)[0]
    return dominant if n / len(values) >= DOMINANT_TYPE_RATIO else "mixed"


def _detect_headers(first_row: list[str]) -> bool:
    text_cells = [c for c in first_row if c.strip() and not is_numeric(c) and not is_date(c)]
    return len(text_cells) > len(first_row) * HEADER_STRING_RATIO


def _analyze_columns(first_row: list[str], data_rows: RawGrid, has_headers: bool) -> list[ColumnAnalysis]:
    columns: list[ColumnAnalysis] = []
    for index, raw_name in enumerate(first_row):
        values = [
            row[index] for row in data_rows
            if index < len(row) and row[index].strip() != ""
        ]
        name = raw_name.strip() if has_headers and raw_name.strip() else f"Column_{index + 1}"
        column = ColumnAnalysis(
            name=name,
            type=detect_column_type(values),
            sample_values=values[:SAMPLE_SIZE],
            null_count=len(data_rows) - len(values),
            unique_count=len(set(values)),
        )
        # drop columns without a single value
        if column.sample_values or column.null_count < len(data_rows):
            columns.append(column)
    return columns


def _data_quality(columns: list[ColumnAnalysis], row_count: int) -> str:
    total_cells = len(columns) * row_count
    if total_cells == 0:
        return "poor"
    null_ratio = sum(c.null_count for c in columns) / total_cells
    if null_ratio < 0.05:
        return "excellent"
    if null_ratio < 0.15:
        return "good"
    if null_ratio < 0.30:
        return "fair"
    return "poor"


def _potential_issues(columns: list[ColumnAnalysis], row_count: int) -> list[str]:
    issues = []
    for col in columns:
        if col.null_count > row_count * 0.5:
            issues.append(f'Column "{col.name}" has >50% missing values')
        if col.type == "mixed":
            issues.append(f'Column "{col.name}" has mixed data types')
        if col.unique_count == 1 and row_count > 1:
            issues.append(f'Column "{col.name}" has only one unique value')
    return issues


def _business_context(columns: list[ColumnAnalysis], file_name: str) -> list[str]:
    names = [c.name.lower() for c in columns]
    context = []
    for keywords, label in COLUMN_CONTEXT_HINTS:
        if any(k in n for n in names for k in keywords):
            context.append(label)
    lowered = file_name.lower()
    for keywords, label in FILE_CONTEXT_HINTS:
        if any(k in lowered for k in keywords):
            context.append(label)
    return context or ["General data analysis"]


def analyze_grid(
    grid: RawGrid,
    file_name: str,
    file_type: str,
    file_size: int,
    sheets: list[str] | None = None,
) -> FileAnalysis:
    if not grid:
        raise InvalidSpreadsheetError(file_name, "file appears to be empty")
    rows = [r for r in grid if any(c.strip() for c in r)]
    if not rows:
        raise InvalidSpreadsheetError(file_name, "file contains no valid data rows")

    first_row = rows[0]
    has_headers = _detect_headers(first_row)
    data_rows = rows[1:] if has_headers else rows
    columns = _analyze_columns(first_row, data_rows, has_headers)

    return FileAnalysis(
        file_name=file_name,
        file_type=file_type,
        file_size=file_size,
        row_count=len(data_rows),
        column_count=len(first_row),
        columns=columns,
        sheets=sheets,
        analysis=AnalysisSummary(
            has_headers=has_headers,
            data_quality=_data_quality(columns, len(data_rows)),
            potential_issues=_potential_issues(columns, len(data_rows)),
            business_context=_business_context(columns, file_name),
        ),
    )


def analyze_file(path: str | os.PathLike[str]) -> FileAnalysis:
    """Analyze the first sheet of an Excel file, or a CSV file."""
    p = Path(path)
    kind = file_type_for(p)
    if kind is None:
        raise InvalidSpreadsheetError(p, f"unsupported file type: {p.suffix}")
    with SpreadsheetReader(p) as reader:
        reader.load()
        sheets = reader.list_sheet_names()
        grid = reader.get_all_rows(sheets[0])
    return analyze_grid(
        grid,
        file_name=p.name,
        file_type=kind,
        file_size=p.stat().st_size,
        sheets=sheets if kind == "excel" else None,
    )


def list_data_files(directory: str | os.PathLike[str]) -> list[DataFile]:
    """Recursively list spreadsheet files under directory, sorted by path."""
    root = Path(directory)
    if not root.is_dir():
        raise SpreadsheetNotFoundError(root)
    files = []
    for p in sorted(root.rglob("*")):
        kind = file_type_for(p)
        if p.is_file() and kind is not None:
            files.append(
                DataFile(name=p.name, path=str(p.relative_to(root)), size=p.stat().st_size, type=kind)
            )
    return files
