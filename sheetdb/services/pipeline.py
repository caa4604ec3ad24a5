from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import LoadJobConfig, SheetJobConfig
from ..db.normalize import apply_column_mappings, normalize_headers
from ..db.sqlite_loader import create_table, import_rows
from ..errors import SheetDbError
from ..excel.reader import SpreadsheetReader
from ..logging.error_log import ErrorLogBuffer
from ..models.columns import ColumnDefinition
from ..models.error_record import ROW_UNKNOWN, ErrorRecord
from ..models.load_result import LoadResult, SheetResult, SheetStatus
from ..models.parsing import RawGrid
from .progress import ProgressTracker

"""Load job orchestration.

For one source file: read each configured sheet, parse it with the sheet's
ParserConfig, turn its headers into column names, create the target table and
import the data rows. Sheets are processed in configuration order; a failing
sheet is reported and the next one still runs.
"""

__all__ = [
    "ProcessingError",
    "resolve_headers",
    "run_job",
    "load_sheet",
]

logger = logging.getLogger(__name__)


class ProcessingError(SheetDbError):
    """Fatal error that stops the whole job (source unreadable, no database)."""


def resolve_headers(raw_headers: Sequence[str], sheet: SheetJobConfig) -> list[str]:
    """Column names for the raw headers of a sheet: explicit mappings first, then normalization."""
    if sheet.column_mappings:
        return apply_column_mappings(raw_headers, sheet.column_mappings)
    return normalize_headers(raw_headers, dedupe=sheet.dedupe_columns)


def _project(rows: RawGrid, positions: list[int]) -> RawGrid:
    return [[row[i] if i < len(row) else "" for i in positions] for row in rows]


def load_sheet(
    reader: SpreadsheetReader,
    database: Path,
    sheet: SheetJobConfig,
    error_log: ErrorLogBuffer | None = None,
) -> SheetResult:
    started = time.perf_counter()
    file_name = reader.path.name

    def failed(message: str) -> SheetResult:
        logger.error(f"sheet={sheet.sheet_name} table={sheet.table}: {message}")
        if error_log is not None:
            error_log.append(
                ErrorRecord.create(file_name, sheet.sheet_name, sheet.table, ROW_UNKNOWN, "SHEET_FAILED", message)
            )
        return SheetResult(
            sheet_name=sheet.sheet_name,
            table_name=sheet.table,
            status=SheetStatus.FAILED,
            elapsed_seconds=time.perf_counter() - started,
            error=message,
        )

    try:
        reader.configure_parser(sheet.parser)
        parsed = reader.get_parsed_data(sheet.sheet_name)
    except SheetDbError as e:
        return failed(str(e))

    headers = resolve_headers(parsed.headers, sheet)
    rows = parsed.data
    if sheet.columns:
        # only columns declared for the table are inserted
        declared = {c.name for c in sheet.columns}
        positions = [i for i, h in enumerate(headers) if h in declared]
        headers = [headers[i] for i in positions]
        rows = _project(rows, positions)
        columns = list(sheet.columns)
    else:
        columns = [ColumnDefinition(name=h, data_type="TEXT", nullable=True) for h in headers]

    logger.info(
        f"sheet={sheet.sheet_name} table={sheet.table} metadata_rows={len(parsed.metadata)} "
        f"columns={headers} data_rows={len(rows)}"
    )

    try:
        create_table(database, sheet.table, columns)
        with ProgressTracker(len(rows), description=f"{sheet.sheet_name} -> {sheet.table}") as progress:
            result = import_rows(database, sheet.table, rows, headers, progress=progress.update)
            progress.set_postfix(rows=result.rows_imported, errors=len(result.errors))
    except SheetDbError as e:
        return failed(str(e))

    if error_log is not None and result.errors:
        error_log.extend_from_row_errors(file_name, sheet.sheet_name, sheet.table, result.errors)

    return SheetResult(
        sheet_name=sheet.sheet_name,
        table_name=sheet.table,
        status=SheetStatus.PARTIAL if result.errors else SheetStatus.SUCCESS,
        rows_imported=result.rows_imported,
        errors=list(result.errors),
        elapsed_seconds=time.perf_counter() - started,
    )


def run_job(
    job: LoadJobConfig,
    *,
    database: Path | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> LoadResult:
    """Run every sheet of a load job.

    Args:
        job: parsed job configuration
        database: overrides job.database when given
        error_log: receives one record per failed row / sheet

    Raises:
        ProcessingError: no database path, or the source file cannot be loaded
    """
    start_time = datetime.now(UTC)
    target = database or job.database
    if target is None:
        raise ProcessingError(f"no database path configured for {job.source_file}")
    target.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Loading {job.source_file} -> {target}")
    results: list[SheetResult] = []
    with SpreadsheetReader(job.source_file, default_max_rows=job.default_max_rows) as reader:
        try:
            reader.load()
        except SheetDbError as e:
            raise ProcessingError(str(e)) from e
        for sheet in job.sheets:
            results.append(load_sheet(reader, target, sheet, error_log=error_log))

    return LoadResult(
        source_file=str(job.source_file),
        database=str(target),
        start_time=start_time,
        end_time=datetime.now(UTC),
        sheets=results,
    )
