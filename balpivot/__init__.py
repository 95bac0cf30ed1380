"""Balance pivot reports: core modules."""

from .config import Settings
from .export import XLSX_MEDIA_TYPE, report_filename, serialize_report
from .ingest import parse_accounts, parse_entities, parse_index, parse_ledger
from .join import resolve_joins
from .periods import build_month_range
from .pipeline import ReportFiles, generate_report
from .pivot import build_report, pivot_balances
from .records import (
    NOT_FOUND,
    AccountRecord,
    BalanceRecord,
    CombinedRecord,
    EntityRecord,
    FilterError,
    IndexRecord,
    NoMatchingRecords,
    ParseResult,
    Report,
    ReportFile,
    ReportFilters,
    ReportRow,
)

__all__ = [
    # Configuration
    "Settings",
    # Records
    "NOT_FOUND",
    "AccountRecord",
    "BalanceRecord",
    "CombinedRecord",
    "EntityRecord",
    "IndexRecord",
    "ParseResult",
    "Report",
    "ReportFile",
    "ReportFilters",
    "ReportRow",
    "NoMatchingRecords",
    "FilterError",
    # Parsers
    "parse_ledger",
    "parse_accounts",
    "parse_entities",
    "parse_index",
    # Join / pivot
    "resolve_joins",
    "build_month_range",
    "pivot_balances",
    "build_report",
    # Export
    "serialize_report",
    "report_filename",
    "XLSX_MEDIA_TYPE",
    # Pipeline
    "ReportFiles",
    "generate_report",
]
