from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..config.loader import load_schemas, validate_against, validate_payload
from ..db.normalize import apply_column_mappings, normalize_headers
from ..db.sqlite_loader import (
    build_create_table_sql,
    count_rows,
    create_table,
    get_column_info,
    import_rows,
    table_exists,
)
from ..errors import ConfigError, SheetDbError, StoreError
from ..excel.analysis import analyze_file, list_data_files
from ..excel.reader import DEFAULT_MAX_ROWS, SpreadsheetReader
from ..models.columns import ColumnDefinition
from ..models.parsing import ParserConfig

"""Agent tool layer.

Each tool wraps exactly one operation and returns plain JSON-shaped data, so an
agent framework can register the tools from tool_specs() and forward calls to
ToolSession.invoke(). Arguments are validated with the schemas from
config/schemas.json before anything runs.

The session holds the spreadsheet reader, the per-sheet parser configs and the
*path* of the store; every store access opens and closes its own connection.
"""

__all__ = [
    "Tool",
    "ToolSession",
]

logger = logging.getLogger(__name__)

PARSER_CONFIG_FILE = "parserConfig.json"
CREATE_TABLE_SQL_FILE = "createTableSql.sql"
DEFAULT_DB_NAME = "data.db"


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    parameters: dict[str, Any]  # JSON schema of the arguments object
    execute: Callable[..., Any]

    def spec(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


def _object_schema(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": required or [],
        "additionalProperties": False,
        "$defs": load_schemas()["$defs"],
    }


class ToolSession:
    """Tools bound to one spreadsheet file and one workspace directory."""

    def __init__(
        self,
        source_file: str | os.PathLike[str],
        workspace_dir: str | os.PathLike[str],
        *,
        database: str | os.PathLike[str] | None = None,
        default_max_rows: int = DEFAULT_MAX_ROWS,
    ) -> None:
        self.source_file = Path(source_file)
        self.workspace_dir = Path(workspace_dir)
        self.database = Path(database) if database else self.workspace_dir / DEFAULT_DB_NAME
        self.default_max_rows = default_max_rows
        self.parser_configs: dict[str, ParserConfig] = {}
        self._reader: SpreadsheetReader | None = None
        self.tools: dict[str, Tool] = {t.name: t for t in self._build_tools()}

    # -- lifecycle -----------------------------------------------------
    def reader(self) -> SpreadsheetReader:
        if self._reader is None:
            reader = SpreadsheetReader(self.source_file, default_max_rows=self.default_max_rows)
            reader.load()
            self._reader = reader
        return self._reader

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None

    def __enter__(self) -> ToolSession:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    # -- dispatch ------------------------------------------------------
    def tool_specs(self) -> list[dict[str, Any]]:
        return [t.spec() for t in self.tools.values()]

    def invoke(self, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run tool `name`; errors come back as {"success": False, "error": ...}."""
        tool = self.tools.get(name)
        if tool is None:
            return {"success": False, "error": f"Unknown tool: {name}"}
        args = dict(arguments or {})
        try:
            validate_against(args, tool.parameters, context=f"tool '{name}' arguments")
            result = tool.execute(**args)
        except SheetDbError as e:
            logger.warning(f"tool={name} failed: {e}")
            return {"success": False, "error": str(e)}
        return {"success": True, "result": result}

    # -- persisted workspace state -------------------------------------
    def _parser_config_path(self) -> Path:
        return self.workspace_dir / PARSER_CONFIG_FILE

    def _write_workspace_file(self, path: Path, text: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"cannot write workspace file {path}: {e}") from e

    def _save_parser_configs(self, configs: dict[str, ParserConfig]) -> Path:
        path = self._parser_config_path()
        data = {sheet: cfg.to_dict() for sheet, cfg in configs.items()}
        self._write_workspace_file(path, json.dumps(data, indent=2, ensure_ascii=False))
        return path

    def parser_config_for(self, sheet: str) -> ParserConfig:
        """In-memory config, else the one saved in the workspace, else defaults.

        Raises:
            ConfigError: the saved parserConfig.json is unreadable or malformed
        """
        if sheet in self.parser_configs:
            return self.parser_configs[sheet]
        path = self._parser_config_path()
        if path.exists():
            try:
                saved = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise ConfigError(f"invalid parser config file {path}: {e}") from e
            if not isinstance(saved, dict):
                raise ConfigError(f"invalid parser config file {path}: top level must be an object")
            if sheet in saved:
                validate_payload(saved[sheet], "parserConfig", context=f"parser config file {path}")
                cfg = ParserConfig.from_dict(saved[sheet])
                self.parser_configs[sheet] = cfg
                return cfg
        logger.info(f"no parser configuration for sheet={sheet}, using defaults")
        return ParserConfig()

    # -- tools ---------------------------------------------------------
    def get_sheets(self) -> list[str]:
        return self.reader().list_sheet_names()

    def get_raw_data(self, sheet: str, row_count: int | None = None) -> list[list[str]]:
        """First row_count rows of a sheet (the session's default_max_rows when omitted)."""
        return self.reader().read_sheet_as_grid(sheet, max_rows=row_count)

    def configure_parser(self, sheet: str, parser_config: dict[str, Any]) -> dict[str, Any]:
        reader = self.reader()
        cfg = ParserConfig.from_dict(parser_config)
        path = self._save_parser_configs({**self.parser_configs, sheet: cfg})
        self.parser_configs[sheet] = cfg
        logger.info(f"Parser config for sheet={sheet} written to: {path}")
        reader.configure_parser(cfg)
        parsed = reader.get_parsed_data(sheet, max_rows=self.default_max_rows)
        return {
            "parser_config": cfg.to_dict(),
            "config_path": str(path),
            **parsed.to_dict(),
            "suggested_columns": normalize_headers(parsed.headers, dedupe=True),
        }

    def create_table(self, table_name: str, columns: list[dict[str, Any]]) -> dict[str, Any]:
        definitions = [ColumnDefinition.from_dict(c) for c in columns]
        sql = build_create_table_sql(table_name, definitions)
        try:
            self.database.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"cannot create store directory for {self.database}: {e}") from e
        create_table(self.database, table_name, definitions)
        # only DDL the store accepted is kept in the workspace
        sql_path = self.workspace_dir / CREATE_TABLE_SQL_FILE
        self._write_workspace_file(sql_path, sql + "\n")
        return {
            "message": f"Table '{table_name}' created successfully",
            "sql": sql,
            "sql_path": str(sql_path),
            "database": str(self.database),
        }

    def import_sheet(
        self,
        sheet: str,
        table_name: str,
        column_mappings: dict[str, str] | None = None,
        dedupe_columns: bool = False,
    ) -> dict[str, Any]:
        reader = self.reader()
        if not table_exists(self.database, table_name):
            raise StoreError(f"Table not found: {table_name} (store: {self.database})")
        reader.configure_parser(self.parser_config_for(sheet))
        parsed = reader.get_parsed_data(sheet)

        if column_mappings:
            headers = apply_column_mappings(parsed.headers, column_mappings)
        else:
            headers = normalize_headers(parsed.headers, dedupe=dedupe_columns)

        # keep only sheet columns the table actually has
        existing = {c["name"] for c in get_column_info(self.database, table_name)}
        positions = [i for i, h in enumerate(headers) if h in existing]
        skipped = [h for h in headers if h not in existing]
        rows = [[row[i] if i < len(row) else "" for i in positions] for row in parsed.data]
        result = import_rows(self.database, table_name, rows, [headers[i] for i in positions])
        return {
            "message": f"Inserted {result.rows_imported} rows into table '{table_name}'",
            "total_rows": len(parsed.data),
            "columns": [headers[i] for i in positions],
            "skipped_columns": skipped,
            **result.to_dict(),
        }

    def get_table_info(self, table_name: str) -> dict[str, Any]:
        if not table_exists(self.database, table_name):
            raise StoreError(f"Table not found: {table_name} (store: {self.database})")
        return {
            "table_name": table_name,
            "columns": get_column_info(self.database, table_name),
            "row_count": count_rows(self.database, table_name),
        }

    def analyze_file(self, file_path: str | None = None) -> dict[str, Any]:
        return analyze_file(file_path or self.source_file).to_dict()

    def list_data_files(self, directory: str = "data") -> list[dict[str, Any]]:
        return [f.to_dict() for f in list_data_files(directory)]

    def _build_tools(self) -> list[Tool]:
        return [
            Tool(
                name="get_sheets",
                description="Gets the list of sheets of the spreadsheet file",
                parameters=_object_schema({}),
                execute=self.get_sheets,
            ),
            Tool(
                name="get_raw_data",
                description="Gets the first rows of a sheet as a grid of strings",
                parameters=_object_schema(
                    {
                        "sheet": {"type": "string", "description": "The sheet to read"},
                        "row_count": {"type": "integer", "minimum": 1, "description": "Number of rows to return"},
                    },
                    ["sheet"],
                ),
                execute=self.get_raw_data,
            ),
            Tool(
                name="configure_parser",
                description=(
                    "Stores the parser configuration (metadata rows, header row, data start row) "
                    "for a sheet and returns the parsed metadata, headers and first data rows"
                ),
                parameters=_object_schema(
                    {
                        "sheet": {"type": "string"},
                        "parser_config": {"$ref": "#/$defs/parserConfig"},
                    },
                    ["sheet", "parser_config"],
                ),
                execute=self.configure_parser,
            ),
            Tool(
                name="create_table",
                description="Creates a table in the SQLite database from column definitions",
                parameters=_object_schema(
                    {
                        "table_name": {"type": "string", "minLength": 1},
                        "columns": {
                            "type": "array",
                            "minItems": 1,
                            "items": {"$ref": "#/$defs/columnDefinition"},
                        },
                    },
                    ["table_name", "columns"],
                ),
                execute=self.create_table,
            ),
            Tool(
                name="import_sheet",
                description=(
                    "Imports the data rows of a sheet into an existing table using the sheet's "
                    "parser configuration; returns imported row count and per-row errors"
                ),
                parameters=_object_schema(
                    {
                        "sheet": {"type": "string"},
                        "table_name": {"type": "string", "minLength": 1},
                        "column_mappings": {"$ref": "#/$defs/columnMappings"},
                        "dedupe_columns": {"type": "boolean"},
                    },
                    ["sheet", "table_name"],
                ),
                execute=self.import_sheet,
            ),
            Tool(
                name="get_table_info",
                description="Returns the columns and row count of a table",
                parameters=_object_schema({"table_name": {"type": "string"}}, ["table_name"]),
                execute=self.get_table_info,
            ),
            Tool(
                name="analyze_file",
                description=(
                    "Analyzes a data file (Excel or CSV) to describe its structure, "
                    "column types and likely business context"
                ),
                parameters=_object_schema({"file_path": {"type": "string"}}),
                execute=self.analyze_file,
            ),
            Tool(
                name="list_data_files",
                description="Lists spreadsheet files (.xlsx, .xls, .xlsm, .csv) under a directory",
                parameters=_object_schema({"directory": {"type": "string"}}),
                execute=self.list_data_files,
            ),
        ]
