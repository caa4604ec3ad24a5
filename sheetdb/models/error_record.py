from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

One record per failed row (or per failed sheet, with row=-1) of a load job.
The key set is fixed; to_json_line never emits extra keys.
"""

__all__ = [
    "ROW_UNKNOWN",
    "ErrorRecord",
]

ROW_UNKNOWN = -1


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: source spreadsheet name
        sheet: sheet name within the file
        table: target table name
        row: 1-based data row number, -1 when the failure is not tied to a row
        error_type: UPPER_SNAKE classification (ROW_INSERT_FAILED, SHEET_FAILED)
        message: driver or reader message
    """
    timestamp: str
    file: str
    sheet: str
    table: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(
        file: str, sheet: str, table: str, row: int, error_type: str, message: str
    ) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            table=table,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
