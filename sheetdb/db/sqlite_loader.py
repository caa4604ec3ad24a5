from __future__ import annotations

import logging
import os
import sqlite3
from collections.abc import Callable, Iterator, Sequence
from contextlib import closing, contextmanager
from typing import Any

from ..errors import StoreError
from ..models.columns import ColumnDefinition, ImportResult

"""SQLite table loader.

Each public function opens its own connection to the store file and closes it
on every exit path; no connection outlives a call.

import_rows inserts one row per statement, strictly in input order. A failing
row is recorded as "Row <n>: <message>" and the loop moves on. Connections run
in autocommit mode, so rows inserted before a failure stay committed; callers
that need all-or-nothing must wrap the call in their own transaction.
"""

__all__ = [
    "StoreError",
    "quote_identifier",
    "build_create_table_sql",
    "build_insert_sql",
    "create_table",
    "import_rows",
    "table_exists",
    "get_column_info",
    "count_rows",
]

logger = logging.getLogger(__name__)

StorePath = str | os.PathLike[str]
ProgressCallback = Callable[[int, int], None]


def quote_identifier(name: str) -> str:
    return '"' + str(name).replace('"', '""') + '"'


@contextmanager
def _connect(store_path: StorePath) -> Iterator[sqlite3.Connection]:
    """Open an autocommit connection, closed when the block exits."""
    try:
        conn = sqlite3.connect(os.fspath(store_path), isolation_level=None)
    except sqlite3.Error as e:
        raise StoreError(f"cannot open store {store_path}: {e}") from e
    with closing(conn):
        yield conn


def build_create_table_sql(table_name: str, columns: Sequence[ColumnDefinition]) -> str:
    column_defs = []
    for col in columns:
        not_null = "" if col.nullable else " NOT NULL"
        column_defs.append(f"{quote_identifier(col.name)} {col.data_type}{not_null}")
    body = ",\n  ".join(column_defs)
    return f"CREATE TABLE IF NOT EXISTS {quote_identifier(table_name)} (\n  {body}\n)"


def build_insert_sql(table_name: str, headers: Sequence[str]) -> str:
    cols_sql = ", ".join(quote_identifier(h) for h in headers)
    placeholders = ", ".join("?" for _ in headers)
    return f"INSERT INTO {quote_identifier(table_name)} ({cols_sql}) VALUES ({placeholders})"


def create_table(store_path: StorePath, table_name: str, columns: Sequence[ColumnDefinition]) -> None:
    """Create table_name with the given columns unless it already exists.

    data_type is passed through verbatim; a value SQLite cannot parse surfaces
    as StoreError.
    """
    sql = build_create_table_sql(table_name, columns)
    logger.info(f"Creating table: {table_name} store={store_path}")
    logger.debug(f"SQL: {sql}")
    with _connect(store_path) as conn:
        try:
            conn.execute(sql)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to create table '{table_name}' in {store_path}: {e}") from e


def _clean_row(row: Sequence[Any] | None, width: int) -> list[str]:
    cells = list(row or [])[:width]
    cells.extend([""] * (width - len(cells)))
    return ["" if v is None else str(v).strip() for v in cells]


def import_rows(
    store_path: StorePath,
    table_name: str,
    rows: Sequence[Sequence[Any]],
    headers: Sequence[str],
    progress: ProgressCallback | None = None,
) -> ImportResult:
    """Insert rows into table_name one at a time.

    headers are the (already normalized) target column names. Each row is cut
    or padded with "" to len(headers), cells are stringified and stripped,
    None becomes "".

    Raises:
        StoreError: headers is empty (checked before the store is touched)
    """
    if not headers:
        raise StoreError(f"No valid headers found for table '{table_name}'")
    if not rows:
        return ImportResult(rows_imported=0, errors=[])

    sql = build_insert_sql(table_name, headers)
    total = len(rows)
    width = len(headers)
    logger.info(f"Importing {total} rows into table: {table_name}")
    logger.debug(f"SQL: {sql}")

    rows_imported = 0
    errors: list[str] = []
    with _connect(store_path) as conn:
        # same SQL text on every execute -> sqlite3 reuses the cached prepared statement
        cur = conn.cursor()
        try:
            for index, row in enumerate(rows):
                values = _clean_row(row, width)
                try:
                    cur.execute(sql, values)
                except sqlite3.Error as e:
                    errors.append(f"Row {index + 1}: {e}")
                    logger.warning(f"table={table_name} row={index + 1} insert failed: {e}")
                else:
                    rows_imported += 1
                if progress is not None:
                    progress(index + 1, total)
        finally:
            cur.close()

    logger.info(f"Imported {rows_imported}/{total} rows into table: {table_name} errors={len(errors)}")
    return ImportResult(rows_imported=rows_imported, errors=errors)


def table_exists(store_path: StorePath, table_name: str) -> bool:
    with _connect(store_path) as conn:
        try:
            row = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table_name,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to look up table '{table_name}' in {store_path}: {e}") from e
    return row is not None


def get_column_info(store_path: StorePath, table_name: str) -> list[dict[str, Any]]:
    """Schema of table_name as reported by PRAGMA table_info ([] if unknown)."""
    with _connect(store_path) as conn:
        conn.row_factory = sqlite3.Row
        try:
            rows = conn.execute(f"PRAGMA table_info({quote_identifier(table_name)})").fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read columns of '{table_name}' in {store_path}: {e}") from e
    return [dict(r) for r in rows]


def count_rows(store_path: StorePath, table_name: str) -> int:
    with _connect(store_path) as conn:
        try:
            (n,) = conn.execute(f"SELECT COUNT(*) FROM {quote_identifier(table_name)}").fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to count rows of '{table_name}' in {store_path}: {e}") from e
    return int(n)
