from __future__ import annotations

from ..models.load_result import LoadResult

"""SUMMARY line rendering for a load job."""

__all__ = [
    "format_seconds",
    "render_summary_line",
]


def format_seconds(value: float) -> str:
    """Compact number rendering without scientific notation.

    >>> format_seconds(2.0)
    '2'
    >>> format_seconds(0.0001234)
    '0.000123'
    """
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: LoadResult) -> str:
    """Render the SUMMARY line.

    Format:
    SUMMARY sheets={n} success={s} failed={f} rows={rows} row_errors={e} elapsed_sec={t}
    """
    return (
        f"SUMMARY sheets={len(result.sheets)} "
        f"success={result.success_sheets} "
        f"failed={result.failed_sheets} "
        f"rows={result.total_rows_imported} "
        f"row_errors={result.total_row_errors} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)}"
    )
