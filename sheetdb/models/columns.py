from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Column definition / mapping and import result models."""

__all__ = [
    "DATA_TYPES",
    "ColumnDefinition",
    "ColumnMapping",
    "ImportResult",
]

# Types accepted at the configuration boundary. The loader itself passes
# data_type through to SQLite untouched.
DATA_TYPES = ("TEXT", "INTEGER", "REAL", "DATE", "DATETIME")


@dataclass(frozen=True)
class ColumnDefinition:
    name: str  # normalized SQL identifier
    data_type: str = "TEXT"
    nullable: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ColumnDefinition:
        data_type = data.get("data_type", data.get("dataType", "TEXT"))
        return cls(
            name=data["name"],
            data_type=data_type,
            nullable=bool(data.get("nullable", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "data_type": self.data_type, "nullable": self.nullable}


@dataclass(frozen=True)
class ColumnMapping:
    original_header: str  # raw header text from the sheet
    sql_column_name: str  # column name in the target table


@dataclass(frozen=True)
class ImportResult:
    """Outcome of one import_rows call.

    errors holds one "Row <n>: <message>" entry per failed row, n being the
    1-based position of the row in the input sequence.
    """
    rows_imported: int
    errors: list[str] = field(default_factory=list)

    @property
    def failed_rows(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {"rows_imported": self.rows_imported, "errors": list(self.errors)}
