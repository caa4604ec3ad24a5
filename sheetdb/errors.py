from __future__ import annotations

"""Exception hierarchy shared by the reader, loader, config and tool layers.

Every error message carries the offending path, sheet, table or identifier so
that a failure is diagnosable from the message alone.
"""

__all__ = [
    "SheetDbError",
    "SpreadsheetNotFoundError",
    "InvalidSpreadsheetError",
    "SheetNotFoundError",
    "NotLoadedError",
    "ParserNotConfiguredError",
    "StoreError",
    "ConfigError",
]


class SheetDbError(Exception):
    """Base class for all sheetdb errors."""


class SpreadsheetNotFoundError(SheetDbError):
    def __init__(self, path: object) -> None:
        super().__init__(f"File not found: {path}")
        self.path = path


class InvalidSpreadsheetError(SheetDbError):
    def __init__(self, path: object, reason: str | None = None) -> None:
        msg = f"Invalid spreadsheet file: {path}"
        if reason:
            msg += f" - {reason}"
        super().__init__(msg)
        self.path = path
        self.reason = reason


class SheetNotFoundError(SheetDbError):
    def __init__(self, sheet_name: str, path: object | None = None) -> None:
        msg = f"Sheet not found: {sheet_name}"
        if path is not None:
            msg += f" (file: {path})"
        super().__init__(msg)
        self.sheet_name = sheet_name


class NotLoadedError(SheetDbError):
    def __init__(self, path: object) -> None:
        super().__init__(f"File not loaded: {path} - call load() first")
        self.path = path


class ParserNotConfiguredError(SheetDbError):
    def __init__(self, path: object) -> None:
        super().__init__(f"Parser not configured for {path} - call configure_parser() first")
        self.path = path


class StoreError(SheetDbError):
    """Raised when the SQLite engine rejects a statement."""


class ConfigError(SheetDbError):
    """Raised for unreadable or schema-invalid job / tool payloads."""
