from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ROW_UNKNOWN, ErrorRecord

"""Error log buffering.

Failed rows of a load job are collected in memory and written as JSON Lines to
logs/errors-YYYYMMDD-HHMMSS.log (UTC). The file is created on the first
flush that has records to write.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer for error records. flush() appends them as JSON Lines."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self.logs_dir = logs_dir if logs_dir is not None else LOGS_DIR
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def extend_from_row_errors(self, file: str, sheet: str, table: str, errors: list[str]) -> None:
        """Convert loader "Row <n>: <message>" entries into records."""
        for entry in errors:
            head, _, message = entry.partition(": ")
            try:
                row = int(head.removeprefix("Row "))
            except ValueError:
                row, message = ROW_UNKNOWN, entry
            self.append(ErrorRecord.create(file, sheet, table, row, "ROW_INSERT_FAILED", message))

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the file path, None when nothing was written."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
