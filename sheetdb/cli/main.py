from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..config.loader import ConfigError, load_job_config, validate_payload
from ..errors import SheetDbError
from ..excel.analysis import analyze_file, list_data_files
from ..excel.reader import DEFAULT_MAX_ROWS, SpreadsheetReader
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, setup_logging
from ..models.parsing import ParserConfig
from ..services.pipeline import ProcessingError, run_job
from ..services.summary import render_summary_line
from ..tools.registry import ToolSession

"""CLI entrypoint: `python -m sheetdb.cli <command> ...` or the `sheetdb` script.

Inspection commands (sheets, raw, parse, analyze, list-files, tool) print JSON
to stdout. `load` runs a YAML load job and ends with a SUMMARY line.

Exit codes: 0 success, 1 fatal error, 2 partial failure (failed rows or sheets).
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

ENV_DATABASE = "SHEETDB_DATABASE"
ENV_MAX_ROWS = "SHEETDB_MAX_ROWS"


def _load_env_file(path: Path) -> None:
    """Load .env (python-dotenv); existing environment variables win."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _default_max_rows() -> int:
    raw = os.getenv(ENV_MAX_ROWS)
    if raw and raw.isdigit() and int(raw) > 0:
        return int(raw)
    return DEFAULT_MAX_ROWS


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="sheetdb", description="Spreadsheet -> SQLite loader")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("sheets", help="List sheet names")
    s.add_argument("file", type=Path)

    s = sub.add_parser("raw", help="Print the first rows of a sheet as a grid")
    s.add_argument("file", type=Path)
    s.add_argument("sheet")
    s.add_argument("--rows", type=int, default=None, help="Number of rows (default: SHEETDB_MAX_ROWS or 20)")

    s = sub.add_parser("parse", help="Parse a sheet with a row-offset configuration")
    s.add_argument("file", type=Path)
    s.add_argument("sheet")
    s.add_argument("--metadata-rows", type=int, default=0)
    s.add_argument("--header-row", type=int, default=1)
    s.add_argument("--data-start-row", type=int, default=None)
    s.add_argument("--data-above-header", action="store_true")
    s.add_argument("--rows", type=int, default=None, help="Limit the number of data rows shown")

    s = sub.add_parser("analyze", help="Heuristic structure analysis of a file")
    s.add_argument("file", type=Path)

    s = sub.add_parser("list-files", help="List spreadsheet files under a directory")
    s.add_argument("directory", type=Path, nargs="?", default=Path("data"))

    s = sub.add_parser("load", help="Run a YAML load job")
    s.add_argument("config", type=Path)
    s.add_argument("--database", type=Path, default=None, help="Override the job's database path")

    s = sub.add_parser("tool", help="Invoke one agent tool and print its JSON result")
    s.add_argument("name")
    s.add_argument("--file", type=Path, required=True, help="Spreadsheet the session is bound to")
    s.add_argument("--workspace", type=Path, required=True)
    s.add_argument("--database", type=Path, default=None)
    s.add_argument("--args", default="{}", help="Tool arguments as a JSON object")
    return p.parse_args(argv)


def _cmd_sheets(args: argparse.Namespace) -> int:
    with SpreadsheetReader(args.file) as reader:
        reader.load()
        _print_json(reader.get_file_info())
    return EXIT_SUCCESS_ALL


def _cmd_raw(args: argparse.Namespace) -> int:
    with SpreadsheetReader(args.file, default_max_rows=_default_max_rows()) as reader:
        reader.load()
        _print_json(reader.read_sheet_as_grid(args.sheet, max_rows=args.rows))
    return EXIT_SUCCESS_ALL


def _cmd_parse(args: argparse.Namespace) -> int:
    payload: dict[str, Any] = {
        "metadata_rows": args.metadata_rows,
        "header_row": args.header_row,
        "has_data_above_header": args.data_above_header,
    }
    if args.data_start_row is not None:
        payload["data_start_row"] = args.data_start_row
    validate_payload(payload, "parserConfig", context="parser config")
    with SpreadsheetReader(args.file) as reader:
        reader.load()
        reader.configure_parser(ParserConfig.from_dict(payload))
        _print_json(reader.get_parsed_data(args.sheet, max_rows=args.rows).to_dict())
    return EXIT_SUCCESS_ALL


def _cmd_analyze(args: argparse.Namespace) -> int:
    _print_json(analyze_file(args.file).to_dict())
    return EXIT_SUCCESS_ALL


def _cmd_list_files(args: argparse.Namespace) -> int:
    _print_json([f.to_dict() for f in list_data_files(args.directory)])
    return EXIT_SUCCESS_ALL


def _cmd_tool(args: argparse.Namespace) -> int:
    try:
        tool_args = json.loads(args.args)
    except json.JSONDecodeError as e:
        raise ConfigError(f"--args is not valid JSON: {e}") from e
    if not isinstance(tool_args, dict):
        raise ConfigError("--args must be a JSON object")
    with ToolSession(args.file, args.workspace, database=args.database, default_max_rows=_default_max_rows()) as session:
        result = session.invoke(args.name, tool_args)
    _print_json(result)
    return EXIT_SUCCESS_ALL if result["success"] else EXIT_FATAL


def _cmd_load(args: argparse.Namespace, logger) -> int:
    job = load_job_config(args.config)
    database = args.database
    if database is None and job.database is None and os.getenv(ENV_DATABASE):
        database = Path(os.environ[ENV_DATABASE])

    error_log = ErrorLogBuffer()
    try:
        result = run_job(job, database=database, error_log=error_log)
    finally:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"error log written: {log_path}")

    for sheet in result.sheets:
        logger.info(
            f"sheet={sheet.sheet_name} table={sheet.table_name} status={sheet.status.value} "
            f"rows={sheet.rows_imported} errors={len(sheet.errors)}"
        )
    # render_summary_line includes the label; log_summary adds it again
    log_summary(render_summary_line(result).removeprefix("SUMMARY "))
    if result.failed_sheets > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    # None only -> read sys.argv; an explicit [] must not pick up pytest's own arguments
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")
    _load_env_file(Path(".env"))

    handlers = {
        "sheets": _cmd_sheets,
        "raw": _cmd_raw,
        "parse": _cmd_parse,
        "analyze": _cmd_analyze,
        "list-files": _cmd_list_files,
        "tool": _cmd_tool,
    }
    try:
        if args.command == "load":
            return _cmd_load(args, logger)
        return handlers[args.command](args)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    except SheetDbError as e:
        logger.error(str(e))
        return EXIT_FATAL

