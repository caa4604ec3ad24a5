from __future__ import annotations

from collections.abc import Sequence

from ..models.parsing import ParsedTable, ParserConfig, RawGrid

"""Windowed rectangular-data parser.

Slices a raw grid into metadata / header / data regions using the 1-based row
offsets of a ParserConfig. The parser never raises: offsets pointing outside
the grid produce empty regions, so an agent can inspect the output and adjust
the configuration on the next call.
"""

__all__ = [
    "parse_grid",
]


def _rows(grid: Sequence[Sequence[str]], start: int, stop: int | None = None) -> RawGrid:
    start = max(start, 0)
    if stop is not None and stop <= start:
        return []
    return [list(r) for r in grid[start:stop]]


def parse_grid(
    grid: Sequence[Sequence[str]],
    config: ParserConfig | None = None,
    max_rows: int | None = None,
) -> ParsedTable:
    """Split grid into metadata, headers and data.

    - metadata: first ``metadata_rows`` rows
    - headers: row ``header_row`` (1-based), [] when it does not exist
    - data: from ``data_start_row`` (default: the row after the header) to the end
    - has_data_above_header: rows above the header are prepended to data,
      even if they were also returned as metadata

    ``max_rows`` truncates the data region only, after classification.
    """
    cfg = config or ParserConfig()

    metadata = _rows(grid, 0, max(cfg.metadata_rows or 0, 0))

    header_index = (cfg.header_row or 1) - 1
    headers = list(grid[header_index]) if 0 <= header_index < len(grid) else []

    data_start_index = cfg.effective_data_start_row - 1
    data = _rows(grid, data_start_index)

    if cfg.has_data_above_header and cfg.header_row:
        data = _rows(grid, 0, header_index) + data

    if max_rows is not None:
        data = data[: max(max_rows, 0)]

    return ParsedTable(metadata=metadata, headers=headers, data=data)
