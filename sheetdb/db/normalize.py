from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence

from ..models.columns import ColumnMapping

"""Header -> SQL identifier normalization.

normalize_column_name is pure and total: any header string yields an
identifier matching ^[a-z_][a-z0-9_]*$ of at most 50 characters. Distinct
headers can still normalize to the same name; normalize_headers(dedupe=True)
suffixes repeats when the caller wants unique names.
"""

__all__ = [
    "MAX_IDENTIFIER_LENGTH",
    "SQL_RESERVED_WORDS",
    "normalize_column_name",
    "normalize_headers",
    "build_column_mappings",
    "apply_column_mappings",
]

MAX_IDENTIFIER_LENGTH = 50

SQL_RESERVED_WORDS = frozenset({
    "select", "from", "where", "insert", "update", "delete", "create", "drop",
    "alter", "table", "index", "view", "database", "schema", "user", "order",
    "group", "having", "limit", "offset", "join", "inner", "left", "right",
    "outer", "union", "distinct", "count", "sum", "avg", "min", "max",
    "as", "and", "or", "not", "in", "exists", "between", "like", "is", "null",
})

_INVALID_CHARS = re.compile(r"[^a-z0-9_]")
_UNDERSCORE_RUNS = re.compile(r"_+")
_VALID_START = re.compile(r"^[a-z_]")


def normalize_column_name(header: str, index: int) -> str:
    """Turn an arbitrary header into a SQL column name.

    >>> normalize_column_name("Total Sales ($)", 0)
    'total_sales'
    >>> normalize_column_name("2024 Q1", 1)
    'col_2024_q1'
    >>> normalize_column_name("   ", 3)
    'col_3'
    >>> normalize_column_name("Select", 0)
    'select_col'
    """
    cleaned = (header or "").strip()
    if not cleaned:
        return f"col_{index}"

    name = _INVALID_CHARS.sub("_", cleaned.lower())
    name = _UNDERSCORE_RUNS.sub("_", name).strip("_")
    if name[:1].isdigit():
        name = f"col_{name}"
    # a cut landing on "_" would otherwise re-normalize to a different name
    name = name[:MAX_IDENTIFIER_LENGTH].rstrip("_")

    if not name or not _VALID_START.match(name):
        name = f"col_{index}"

    if name in SQL_RESERVED_WORDS:
        name = f"{name}_col"
    return name


def normalize_headers(headers: Iterable[str], dedupe: bool = False) -> list[str]:
    """Normalize a header row positionally.

    With dedupe=True the second and later occurrences of a name get _2, _3, ...
    appended (shortened so the result stays within MAX_IDENTIFIER_LENGTH).
    """
    names = [normalize_column_name(h, i) for i, h in enumerate(headers)]
    if not dedupe:
        return names

    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        candidate = name
        n = 1
        while candidate in seen:
            n += 1
            suffix = f"_{n}"
            candidate = name[: MAX_IDENTIFIER_LENGTH - len(suffix)] + suffix
        seen.add(candidate)
        result.append(candidate)
    return result


def build_column_mappings(headers: Sequence[str], dedupe: bool = False) -> list[ColumnMapping]:
    names = normalize_headers(headers, dedupe=dedupe)
    return [ColumnMapping(original_header=h, sql_column_name=n) for h, n in zip(headers, names)]


def apply_column_mappings(
    headers: Sequence[str],
    mappings: Iterable[ColumnMapping] | Mapping[str, str],
) -> list[str]:
    """Translate raw headers into the column names of an existing table.

    Lookup is by exact header text, then by stripped text. Headers without a
    mapping fall back to normalize_column_name.
    """
    if isinstance(mappings, Mapping):
        lookup = dict(mappings)
    else:
        lookup = {m.original_header: m.sql_column_name for m in mappings}
    stripped = {k.strip(): v for k, v in lookup.items()}

    result = []
    for i, header in enumerate(headers):
        if header in lookup:
            result.append(lookup[header])
        elif header.strip() in stripped:
            result.append(stripped[header.strip()])
        else:
            result.append(normalize_column_name(header, i))
    return result
