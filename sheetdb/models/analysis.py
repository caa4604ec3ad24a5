from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

"""Models returned by the heuristic file analyzer."""

__all__ = [
    "ColumnAnalysis",
    "AnalysisSummary",
    "FileAnalysis",
    "DataFile",
]


@dataclass(frozen=True)
class ColumnAnalysis:
    name: str
    type: str  # string | number | date | boolean | mixed
    sample_values: list[str] = field(default_factory=list)
    null_count: int = 0
    unique_count: int = 0


@dataclass(frozen=True)
class AnalysisSummary:
    has_headers: bool
    data_quality: str  # excellent | good | fair | poor
    potential_issues: list[str] = field(default_factory=list)
    business_context: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FileAnalysis:
    file_name: str
    file_type: str  # excel | csv
    file_size: int
    row_count: int
    column_count: int
    columns: list[ColumnAnalysis]
    analysis: AnalysisSummary
    sheets: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DataFile:
    name: str
    path: str  # relative to the scanned directory
    size: int
    type: str  # excel | csv

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
