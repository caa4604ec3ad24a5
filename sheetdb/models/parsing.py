from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Parser configuration and parse result models.

ParserConfig describes, with 1-based row offsets, where the metadata block,
the header row and the data block sit inside a raw sheet grid. ParsedTable is
the result of slicing a grid with such a configuration.
"""

__all__ = [
    "RawGrid",
    "ParserConfig",
    "ParsedTable",
]

RawGrid = list[list[str]]

# camelCase spellings used by agent payloads
_ALIASES = {
    "metadataRows": "metadata_rows",
    "headerRow": "header_row",
    "dataStartRow": "data_start_row",
    "hasDataAboveHeader": "has_data_above_header",
}


@dataclass(frozen=True)
class ParserConfig:
    """Row-offset configuration for a sheet.

    data_start_row defaults to header_row + 1. Nothing forces
    data_start_row > header_row; overlapping regions are returned as is.
    """
    metadata_rows: int = 0  # number of rows at the top treated as metadata
    header_row: int = 1  # 1-based
    data_start_row: int | None = None  # 1-based, None -> header_row + 1
    has_data_above_header: bool = False

    @property
    def effective_data_start_row(self) -> int:
        return self.data_start_row or (self.header_row or 1) + 1

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ParserConfig:
        """Build from a JSON-shaped dict. Unknown keys are ignored."""
        if not data:
            return cls()
        values: dict[str, Any] = {}
        for key, val in data.items():
            name = _ALIASES.get(key, key)
            if name in ("metadata_rows", "header_row", "data_start_row", "has_data_above_header"):
                values[name] = val
        if values.get("metadata_rows") is None:
            values.pop("metadata_rows", None)
        if values.get("header_row") is None:
            values.pop("header_row", None)
        if "has_data_above_header" in values:
            values["has_data_above_header"] = bool(values["has_data_above_header"])
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata_rows": self.metadata_rows,
            "header_row": self.header_row,
            "data_start_row": self.effective_data_start_row,
            "has_data_above_header": self.has_data_above_header,
        }


@dataclass(frozen=True)
class ParsedTable:
    metadata: RawGrid = field(default_factory=list)
    headers: list[str] = field(default_factory=list)
    data: RawGrid = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": [list(r) for r in self.metadata],
            "headers": list(self.headers),
            "data": [list(r) for r in self.data],
        }
