from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..errors import ConfigError
from ..models.columns import ColumnDefinition
from ..models.parsing import ParserConfig

"""Job config loader and boundary validation.

Responsibilities:
- Load a YAML load job (source file, database, per-sheet parser/table setup)
- Validate it against the JSON schemas shipped in schemas.json
- Validate agent/tool payloads (parser configs, column lists) with the same schemas
- Resolve relative paths against the job file's directory
"""

__all__ = [
    "SCHEMA_PATH",
    "ConfigError",
    "SheetJobConfig",
    "LoadJobConfig",
    "load_schemas",
    "schema_for",
    "validate_against",
    "validate_payload",
    "parse_job_config",
    "load_job_config",
]

SCHEMA_PATH = Path(__file__).with_name("schemas.json")


@dataclass(frozen=True)
class SheetJobConfig:
    sheet_name: str
    table: str
    parser: ParserConfig = field(default_factory=ParserConfig)
    columns: list[ColumnDefinition] | None = None  # None -> TEXT column per header
    column_mappings: dict[str, str] | None = None  # raw header -> column name
    dedupe_columns: bool = False


@dataclass(frozen=True)
class LoadJobConfig:
    source_file: Path
    database: Path | None
    sheets: list[SheetJobConfig]
    default_max_rows: int = 20


@lru_cache(maxsize=1)
def load_schemas() -> dict[str, Any]:
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file {SCHEMA_PATH}: {e}") from e


def schema_for(name: str) -> dict[str, Any]:
    """Self-contained schema for one definition (keeps $defs so $ref resolves)."""
    doc = load_schemas()
    if name not in doc["$defs"]:
        raise ConfigError(f"unknown schema definition: {name}")
    return {"$schema": doc["$schema"], "$defs": doc["$defs"], "$ref": f"#/$defs/{name}"}


def validate_against(data: Any, schema: dict[str, Any], *, context: str = "payload") -> None:
    """Validate data against a full JSON schema.

    Raises:
        ConfigError: "<context> validation failed: <message> at <path>"
    """
    try:
        jsonschema.validate(data, schema)
    except ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"{context} validation failed: {e.message} at {where}") from e


def validate_payload(data: Any, name: str, *, context: str = "payload") -> None:
    """Validate data against definition `name` of schemas.json."""
    validate_against(data, schema_for(name), context=context)


def _resolve(base: Path, value: str) -> Path:
    p = Path(value).expanduser()
    return p if p.is_absolute() else base / p


def parse_job_config(data: dict[str, Any], base_dir: Path) -> LoadJobConfig:
    """Build a LoadJobConfig from already-loaded YAML/JSON data."""
    validate_payload(data, "loadJob", context="config")

    sheets: list[SheetJobConfig] = []
    for sheet_name, raw in data["sheets"].items():
        columns = raw.get("columns")
        sheets.append(
            SheetJobConfig(
                sheet_name=str(sheet_name),
                table=raw["table"],
                parser=ParserConfig.from_dict(raw.get("parser")),
                columns=[ColumnDefinition.from_dict(c) for c in columns] if columns else None,
                column_mappings=raw.get("column_mappings"),
                dedupe_columns=raw.get("dedupe_columns", False),
            )
        )

    database = data.get("database")
    return LoadJobConfig(
        source_file=_resolve(base_dir, data["source_file"]),
        database=_resolve(base_dir, database) if database else None,
        sheets=sheets,
        default_max_rows=data.get("default_max_rows", 20),
    )


def load_job_config(path: Path) -> LoadJobConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config {path}: top level must be a mapping")
    return parse_job_config(data, path.parent)
