from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import make_excel
from sheetdb.config.loader import LoadJobConfig, SheetJobConfig, load_job_config
from sheetdb.db.sqlite_loader import create_table, get_column_info, import_rows
from sheetdb.excel.parser import parse_grid
from sheetdb.logging.error_log import ErrorLogBuffer
from sheetdb.models.columns import ColumnDefinition
from sheetdb.models.load_result import SheetStatus
from sheetdb.models.parsing import ParserConfig
from sheetdb.services.pipeline import ProcessingError, run_job
from sheetdb.services.progress import ProgressTracker

"""End-to-end load jobs: workbook -> parse -> normalize -> SQLite."""


def _rows(db: Path, sql: str) -> list[tuple]:
    with closing(sqlite3.connect(db)) as conn:
        return conn.execute(sql).fetchall()


def test_parse_then_load_meta_id_name(store: Path):
    grid = [["meta"], ["id", "name"], ["1", "Alice"], ["2", "Bob"]]
    parsed = parse_grid(grid, ParserConfig(metadata_rows=1, header_row=2, data_start_row=3))
    assert parsed.metadata == [["meta"]]
    assert parsed.headers == ["id", "name"]

    create_table(store, "people", [
        ColumnDefinition("id", "INTEGER", nullable=False),
        ColumnDefinition("name", "TEXT", nullable=False),
    ])
    result = import_rows(store, "people", parsed.data, parsed.headers)

    assert result.rows_imported == 2
    assert result.errors == []
    assert _rows(store, "SELECT id, name FROM people ORDER BY id") == [(1, "Alice"), (2, "Bob")]


def test_run_job_from_yaml(write_config: Path, sales_workbook: Path, temp_workdir: Path):
    job = load_job_config(write_config)
    error_log = ErrorLogBuffer()
    result = run_job(job, error_log=error_log)

    assert [s.status for s in result.sheets] == [SheetStatus.SUCCESS, SheetStatus.SUCCESS]
    assert result.total_rows_imported == 5
    assert len(error_log) == 0

    db = temp_workdir / "workspace" / "data.db"
    assert [c["name"] for c in get_column_info(db, "sales")] == ["order_id", "customer_name", "amount"]
    assert _rows(db, "SELECT order_id, customer_name, amount FROM sales") == [
        ("1", "Alice", "10.5"),
        ("2", "Bob", "20"),
        ("3", "Carol", "7.25"),
    ]


def test_run_job_projects_onto_declared_columns(temp_workdir: Path):
    source = make_excel(
        temp_workdir / "data" / "wide.xlsx",
        {"S": [["Id", "Name", "Notes"], [1, "Alice", "x"], [2, "Bob", "y"]]},
    )
    db = temp_workdir / "workspace" / "wide.db"
    job = LoadJobConfig(
        source_file=source,
        database=db,
        sheets=[SheetJobConfig("S", "people", columns=[ColumnDefinition("id", "INTEGER"), ColumnDefinition("name")])],
    )
    result = run_job(job)

    assert result.sheets[0].status is SheetStatus.SUCCESS
    assert [c["name"] for c in get_column_info(db, "people")] == ["id", "name"]
    assert _rows(db, "SELECT id, name FROM people ORDER BY id") == [(1, "Alice"), (2, "Bob")]


def test_run_job_header_collisions(temp_workdir: Path):
    source = temp_workdir / "data" / "dup.csv"
    source.write_text("Total,total,Total!\n1,2,3\n", encoding="utf-8")
    db = temp_workdir / "workspace" / "dup.db"

    clash = run_job(LoadJobConfig(source, db, [SheetJobConfig("dup", "clash")]))
    assert clash.sheets[0].status is SheetStatus.FAILED
    assert "duplicate column name" in clash.sheets[0].error

    deduped = run_job(LoadJobConfig(source, db, [SheetJobConfig("dup", "deduped", dedupe_columns=True)]))
    assert deduped.sheets[0].status is SheetStatus.SUCCESS
    assert [c["name"] for c in get_column_info(db, "deduped")] == ["total", "total_2", "total_3"]


def test_run_job_column_mappings(temp_workdir: Path):
    source = temp_workdir / "data" / "orders.csv"
    source.write_text("Order #,Customer\n7,Ann\n", encoding="utf-8")
    db = temp_workdir / "workspace" / "orders.db"
    job = LoadJobConfig(source, db, [SheetJobConfig("orders", "orders", column_mappings={"Order #": "order_no"})])

    run_job(job)

    assert [c["name"] for c in get_column_info(db, "orders")] == ["order_no", "customer"]


def test_run_job_partial_failure_keeps_good_rows(temp_workdir: Path):
    source = temp_workdir / "data" / "people.csv"
    source.write_text("id,name\n1,Alice\n1,Again\n2,Bob\n", encoding="utf-8")
    db = temp_workdir / "workspace" / "people.db"
    with closing(sqlite3.connect(db)) as conn:
        conn.execute("CREATE TABLE people (id INTEGER PRIMARY KEY, name TEXT)")
        conn.commit()

    error_log = ErrorLogBuffer(temp_workdir / "logs")
    result = run_job(LoadJobConfig(source, db, [SheetJobConfig("people", "people")]), error_log=error_log)

    sheet = result.sheets[0]
    assert sheet.status is SheetStatus.PARTIAL
    assert sheet.rows_imported == 2
    assert len(sheet.errors) == 1
    assert sheet.errors[0].startswith("Row 2: UNIQUE constraint failed")
    assert len(error_log) == 1
    assert _rows(db, "SELECT id, name FROM people ORDER BY id") == [(1, "Alice"), (2, "Bob")]


def test_run_job_failed_sheet_does_not_stop_the_rest(sales_workbook: Path, temp_workdir: Path):
    db = temp_workdir / "workspace" / "data.db"
    error_log = ErrorLogBuffer(temp_workdir / "logs")
    job = LoadJobConfig(
        sales_workbook,
        db,
        [SheetJobConfig("Missing", "missing"), SheetJobConfig("People", "people")],
    )
    result = run_job(job, error_log=error_log)

    assert [s.status for s in result.sheets] == [SheetStatus.FAILED, SheetStatus.SUCCESS]
    assert result.failed_sheets == 1
    assert result.total_rows_imported == 2
    assert len(error_log) == 1


def test_run_job_requires_database(sales_workbook: Path):
    job = LoadJobConfig(sales_workbook, None, [SheetJobConfig("People", "people")])
    with pytest.raises(ProcessingError, match="no database path"):
        run_job(job)


def test_run_job_unreadable_source(temp_workdir: Path):
    job = LoadJobConfig(temp_workdir / "data" / "missing.xlsx", temp_workdir / "x.db", [])
    with pytest.raises(ProcessingError, match="File not found"):
        run_job(job)


def test_run_job_reports_sheet_counts_on_progress_bar(sales_workbook: Path, temp_workdir: Path):
    job = LoadJobConfig(sales_workbook, temp_workdir / "workspace" / "data.db", [SheetJobConfig("People", "people")])
    with patch.object(ProgressTracker, "set_postfix") as set_postfix:
        run_job(job)
    set_postfix.assert_called_once_with(rows=2, errors=0)
