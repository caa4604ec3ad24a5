"""Domain models for the spreadsheet -> SQLite loader."""

from .analysis import AnalysisSummary, ColumnAnalysis, DataFile, FileAnalysis
from .columns import DATA_TYPES, ColumnDefinition, ColumnMapping, ImportResult
from .error_record import ErrorRecord
from .load_result import LoadResult, SheetResult, SheetStatus
from .parsing import ParsedTable, ParserConfig, RawGrid

__all__ = [
    # Parsing models
    "RawGrid",
    "ParserConfig",
    "ParsedTable",
    # Loading models
    "DATA_TYPES",
    "ColumnDefinition",
    "ColumnMapping",
    "ImportResult",
    "ErrorRecord",
    "SheetStatus",
    "SheetResult",
    "LoadResult",
    # Analysis models
    "AnalysisSummary",
    "ColumnAnalysis",
    "DataFile",
    "FileAnalysis",
]
