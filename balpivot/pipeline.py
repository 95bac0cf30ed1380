"""Report pipeline: raw upload buffers in, workbook out.

    files = ReportFiles(balhist=..., cuentas=..., nomina=..., indices=...)
    filters = ReportFilters.from_form(form)
    outcome = generate_report(files, filters)
    if isinstance(outcome, NoMatchingRecords):
        ...  # nothing to report
    else:
        outcome.filename, outcome.content

All state lives for one call only. Exceptions are left to the caller, which
reports them as an internal failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import Settings
from .export import report_filename, serialize_report
from .ingest import parse_accounts, parse_entities, parse_index, parse_ledger
from .pivot import build_report
from .records import NoMatchingRecords, ReportFile, ReportFilters

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportFiles:
    """In-memory contents of the uploaded sources."""

    balhist: bytes
    cuentas: bytes
    nomina: bytes
    indices: bytes | None = None


def generate_report(
    files: ReportFiles,
    filters: ReportFilters,
    settings: Settings | None = None,
) -> ReportFile | NoMatchingRecords:
    settings = settings or Settings()

    log.info(
        "Entity %d, balances %s..%s",
        filters.entity_id,
        filters.balance_from,
        filters.balance_to,
    )
    balances = parse_ledger(files.balhist, filters, encoding=settings.encoding)
    accounts = parse_accounts(files.cuentas, encoding=settings.encoding)
    entities = parse_entities(files.nomina, encoding=settings.encoding)

    # The price index is parsed for visibility only; it is not joined.
    if files.indices is not None:
        index_from, index_to = filters.index_range
        index = parse_index(files.indices, index_from, index_to)
        if not index.ok:
            log.warning("  indices: %s", index.status)

    outcome = build_report(balances, accounts, entities, filters)
    if isinstance(outcome, NoMatchingRecords):
        log.warning("No balance rows matched (%s)", outcome.reason)
        return outcome

    content = serialize_report(
        outcome.rows, outcome.months, sheet_title=settings.sheet_title
    )
    return ReportFile(
        filename=report_filename(filters.entity_id),
        content=content,
        report=outcome,
    )
