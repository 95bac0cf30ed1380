"""Month-period helpers.

Two spellings of a month are used throughout:

- comparable form ``YYYY-MM``: zero padded, so string order is
  chronological order. Filters are expressed this way.
- report form ``MM-YYYY``: what records carry and what report columns are
  titled with.
"""

from __future__ import annotations

import re
from datetime import date

_RAW_PERIOD_RE = re.compile(r"(\d{4})(0[1-9]|1[0-2])")
_MONTH_RE = re.compile(r"(\d{4})-(0[1-9]|1[0-2])")


def format_period(year: int, month: int) -> str:
    """Return the ``MM-YYYY`` report form for a year and month."""
    return f"{month:02d}-{year:04d}"


def comparable_period(year: int, month: int) -> str:
    """Return the ``YYYY-MM`` comparable form for a year and month."""
    return f"{year:04d}-{month:02d}"


def split_raw_period(raw: str) -> tuple[int, int] | None:
    """Split a ledger ``YYYYMM`` period into ``(year, month)``.

    Returns None when the text is not six digits with a valid month.
    """
    m = _RAW_PERIOD_RE.fullmatch(raw.strip())
    if not m:
        return None
    return int(m[1]), int(m[2])


def split_month(value: str) -> tuple[int, int]:
    """Split a ``YYYY-MM`` month into ``(year, month)``; raises ValueError."""
    m = _MONTH_RE.fullmatch(value.strip())
    if not m:
        raise ValueError(f"Expected a YYYY-MM month, got {value!r}")
    return int(m[1]), int(m[2])


def is_month(value: str) -> bool:
    return bool(_MONTH_RE.fullmatch(value.strip()))


def in_range(comparable: str, date_from: str, date_to: str) -> bool:
    """Inclusive range check on ``YYYY-MM`` strings."""
    return date_from <= comparable <= date_to


def period_of(value: date) -> tuple[str, str]:
    """Return ``(comparable, report)`` period strings for a date cell."""
    return (
        comparable_period(value.year, value.month),
        format_period(value.year, value.month),
    )


def build_month_range(date_from: str, date_to: str) -> list[str]:
    """Every month from ``date_from`` to ``date_to`` inclusive, as ``MM-YYYY``.

    Both bounds are ``YYYY-MM``. An inverted range yields an empty list.

    >>> build_month_range("2023-11", "2024-02")
    ['11-2023', '12-2023', '01-2024', '02-2024']
    """
    year, month = split_month(date_from)
    end_year, end_month = split_month(date_to)
    months: list[str] = []
    while (year, month) <= (end_year, end_month):
        months.append(format_period(year, month))
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return months
