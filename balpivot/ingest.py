"""Row parsers: decode raw export buffers into records.

Three of the sources are legacy text exports: single-byte encoded,
newline-delimited, tab-separated, with fields optionally wrapped in double
quotes. The fourth is an ``.xlsx`` workbook read with openpyxl.

Parsing is best effort. A malformed row is skipped and counted, never
raised. Only whole-source problems (inverted range, unreadable workbook)
change the :class:`~balpivot.records.ParseResult` status.

The ledger filter (entity and month range) is applied while parsing so
that rows for other entities are never materialized.
"""

from __future__ import annotations

import io
import logging
import re
from collections.abc import Iterator
from datetime import date
from typing import Any

from openpyxl import load_workbook

from .config import DEFAULT_ENCODING
from .periods import (
    comparable_period,
    format_period,
    in_range,
    period_of,
    split_raw_period,
)
from .records import (
    AccountRecord,
    BalanceRecord,
    EntityRecord,
    IndexRecord,
    ParseResult,
    ReportFilters,
)

log = logging.getLogger(__name__)

# Placeholder the account export writes for "never closed".
EMPTY_CLOSED_DATE = "/  /"

_LEADING_INT_RE = re.compile(r"[+-]?\d+")
# Ids (entity, account) are never negative.
_LEADING_ID_RE = re.compile(r"\+?\d+")


def _clean(field: str) -> str:
    """Strip quote characters and surrounding whitespace (including ``\\r``)."""
    return field.replace('"', "").strip()


def _parse_int(field: str, pattern: re.Pattern[str] = _LEADING_INT_RE) -> int | None:
    """Parse the leading integer of a field (``"12.7"`` -> 12), or None."""
    m = pattern.match(_clean(field))
    return int(m[0]) if m else None


def _parse_id(field: str) -> int | None:
    """Like :func:`_parse_int` but rejects a sign other than ``+``."""
    return _parse_int(field, _LEADING_ID_RE)


def _split_lines(data: bytes, encoding: str) -> Iterator[list[str]]:
    """Yield the tab-separated fields of every non-blank line."""
    text = data.decode(encoding)
    for line in text.split("\n"):
        if not line.strip():
            continue
        yield line.split("\t")


def _leading_fields(fields: list[str], count: int) -> list[str] | None:
    """Return the first ``count`` cleaned fields, or None if any is missing."""
    if len(fields) < count:
        return None
    cleaned = [_clean(f) for f in fields[:count]]
    if not all(cleaned):
        return None
    return cleaned


def parse_ledger(
    data: bytes,
    filters: ReportFilters,
    encoding: str = DEFAULT_ENCODING,
) -> ParseResult[BalanceRecord]:
    """Parse the balance-history ledger, keeping only the filtered rows.

    Each line carries ``entity, YYYYMM, account, balance``. A row is kept
    when its entity equals ``filters.entity_id`` and its month lies in
    ``filters.balance_from .. filters.balance_to``. The period is
    rewritten as ``MM-YYYY``.

    An inverted range yields an empty ``invalid_range`` result.
    """
    date_from, date_to = filters.balance_from, filters.balance_to
    if date_from > date_to:
        log.warning(
            "balhist: 'from' month %s is after 'to' month %s; no rows selected",
            date_from,
            date_to,
        )
        return ParseResult(status="invalid_range")

    records: list[BalanceRecord] = []
    skipped = 0
    for fields in _split_lines(data, encoding):
        cleaned = _leading_fields(fields, 4)
        if cleaned is None:
            skipped += 1
            continue
        raw_entity, raw_period, raw_account, raw_balance = cleaned
        entity_id = _parse_id(raw_entity)
        account_number = _parse_id(raw_account)
        balance = _parse_int(raw_balance)
        year_month = split_raw_period(raw_period)
        if None in (entity_id, account_number, balance, year_month):
            skipped += 1
            continue
        if entity_id != filters.entity_id:
            skipped += 1
            continue
        year, month = year_month
        if not in_range(comparable_period(year, month), date_from, date_to):
            skipped += 1
            continue
        records.append(
            BalanceRecord(
                entity_id=entity_id,
                account_number=account_number,
                period=format_period(year, month),
                balance=balance,
            )
        )

    log.info("  balhist: %d rows (%d skipped)", len(records), skipped)
    return ParseResult(records=tuple(records), skipped=skipped)


def parse_accounts(
    data: bytes, encoding: str = DEFAULT_ENCODING
) -> ParseResult[AccountRecord]:
    """Parse the account catalog (``number, description, closed date``).

    Number and description are required. An empty closed date, or the
    ``/  /`` placeholder, becomes None.
    """
    records: list[AccountRecord] = []
    skipped = 0
    for fields in _split_lines(data, encoding):
        cleaned = _leading_fields(fields, 2)
        account_number = _parse_id(cleaned[0]) if cleaned else None
        if cleaned is None or account_number is None:
            skipped += 1
            continue
        closed_date = _clean(fields[2]) if len(fields) > 2 else ""
        if not closed_date or closed_date == EMPTY_CLOSED_DATE:
            closed_date = None
        records.append(
            AccountRecord(
                account_number=account_number,
                description=cleaned[1],
                closed_date=closed_date,
            )
        )

    log.info("  cuentas: %d rows (%d skipped)", len(records), skipped)
    return ParseResult(records=tuple(records), skipped=skipped)


def parse_entities(
    data: bytes, encoding: str = DEFAULT_ENCODING
) -> ParseResult[EntityRecord]:
    """Parse the entity roster (``id, full name, short name``)."""
    records: list[EntityRecord] = []
    skipped = 0
    for fields in _split_lines(data, encoding):
        cleaned = _leading_fields(fields, 3)
        entity_id = _parse_id(cleaned[0]) if cleaned else None
        if cleaned is None or entity_id is None:
            skipped += 1
            continue
        records.append(
            EntityRecord(
                entity_id=entity_id, full_name=cleaned[1], short_name=cleaned[2]
            )
        )

    log.info("  nomina: %d rows (%d skipped)", len(records), skipped)
    return ParseResult(records=tuple(records), skipped=skipped)


def _parse_decimal(value: Any) -> float | None:
    """Parse a locale-formatted decimal (``"3,14"`` -> 3.14)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip().replace(",", ".", 1))
    except ValueError:
        return None


def _index_row(row: tuple[Any, ...]) -> tuple[date, float] | None:
    """Validate a worksheet row as ``(date cell, value cell)``."""
    if len(row) < 2:
        return None
    date_cell, value_cell = row[0], row[1]
    if not isinstance(date_cell, date):
        return None
    if value_cell is None or value_cell == "" or value_cell == 0:
        return None
    value = _parse_decimal(value_cell)
    if value is None:
        return None
    return date_cell, value


def _read_first_sheet(data: bytes) -> list[tuple[Any, ...]]:
    """Return every row of the workbook's first sheet as a tuple of values."""
    wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        if not wb.worksheets:
            return []
        return list(wb.worksheets[0].iter_rows(values_only=True))
    finally:
        wb.close()


def parse_index(data: bytes, date_from: str, date_to: str) -> ParseResult[IndexRecord]:
    """Parse the price-index workbook, keeping months in ``date_from .. date_to``.

    Reads the first sheet from row 0 (there is no header row). Column A must
    hold a date cell and column B the index value; other rows are skipped.

    An inverted range yields ``invalid_range`` and an unreadable workbook
    ``unreadable``, both with no records.
    """
    if date_from > date_to:
        log.warning(
            "indices: 'from' month %s is after 'to' month %s; no rows selected",
            date_from,
            date_to,
        )
        return ParseResult(status="invalid_range")

    # openpyxl surfaces a damaged container as zip, XML or key errors alike.
    try:
        rows = _read_first_sheet(data)
    except Exception as e:
        log.error("indices: could not read workbook: %s", e)
        return ParseResult(status="unreadable")

    records: list[IndexRecord] = []
    skipped = 0
    for row in rows:
        parsed = _index_row(row)
        if parsed is None:
            skipped += 1
            continue
        cell_date, value = parsed
        comparable, period = period_of(cell_date)
        if not in_range(comparable, date_from, date_to):
            skipped += 1
            continue
        records.append(IndexRecord(period=period, cpi_index=value))

    if not records and not skipped:
        log.warning("indices: workbook was read but contains no data")
    log.info("  indices: %d rows (%d skipped)", len(records), skipped)
    return ParseResult(records=tuple(records), skipped=skipped)
