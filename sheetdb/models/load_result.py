from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

"""Result models for a load job (one source file, several sheets)."""

__all__ = [
    "SheetStatus",
    "SheetResult",
    "LoadResult",
]


class SheetStatus(Enum):
    """Per-sheet outcome.

    - SUCCESS: every data row inserted
    - PARTIAL: some rows failed, the rest were inserted
    - FAILED: sheet could not be read or its table could not be created
    """
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True)
class SheetResult:
    sheet_name: str
    table_name: str
    status: SheetStatus
    rows_imported: int = 0
    errors: list[str] = field(default_factory=list)  # row-level "Row n: ..." entries
    elapsed_seconds: float = 0.0
    error: str | None = None  # sheet-level failure reason


@dataclass(frozen=True)
class LoadResult:
    source_file: str
    database: str
    start_time: datetime
    end_time: datetime
    sheets: list[SheetResult] = field(default_factory=list)

    @property
    def elapsed_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def total_rows_imported(self) -> int:
        return sum(s.rows_imported for s in self.sheets)

    @property
    def total_row_errors(self) -> int:
        return sum(len(s.errors) for s in self.sheets)

    @property
    def success_sheets(self) -> int:
        return sum(1 for s in self.sheets if s.status is SheetStatus.SUCCESS)

    @property
    def failed_sheets(self) -> int:
        return sum(1 for s in self.sheets if s.status is not SheetStatus.SUCCESS)
