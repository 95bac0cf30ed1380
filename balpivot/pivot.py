"""Pivot engine: reshape joined balances into one row per account.

Long form (one row per account and month) becomes wide form: one row per
account, ascending by account number, with one column per month of the
requested range. A month with no balance reads 0. When the same account
and month appear more than once, the last row wins.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

import polars as pl

from .join import records_frame, resolve_joins
from .periods import build_month_range
from .records import (
    AccountRecord,
    BalanceRecord,
    CombinedRecord,
    EntityRecord,
    NoMatchingRecords,
    ParseResult,
    Report,
    ReportFilters,
    ReportRow,
)

log = logging.getLogger(__name__)

COMBINED_SCHEMA = {
    "entity_id": pl.Int64,
    "entity_name": pl.Utf8,
    "account_number": pl.Int64,
    "account_description": pl.Utf8,
    "period": pl.Utf8,
    "balance": pl.Int64,
}


def pivot_balances(
    combined: Sequence[CombinedRecord], months: Sequence[str]
) -> pl.DataFrame:
    """Pivot combined rows to ``account_number, account_description, *months``.

    Periods outside ``months`` are dropped; months without data are 0.
    """
    frame = records_frame(combined, COMBINED_SCHEMA)
    if frame.is_empty():
        return pl.DataFrame(
            schema={
                "account_number": pl.Int64,
                "account_description": pl.Utf8,
                **{m: pl.Int64 for m in months},
            }
        )

    descriptions = frame.group_by("account_number", maintain_order=True).agg(
        pl.col("account_description").last()
    )
    wide = frame.pivot(
        on="period",
        index="account_number",
        values="balance",
        aggregate_function="last",
    )
    missing = [m for m in months if m not in wide.columns]
    if missing:
        wide = wide.with_columns(
            [pl.lit(None, dtype=pl.Int64).alias(m) for m in missing]
        )

    return (
        descriptions.join(wide, on="account_number", how="left")
        .sort("account_number")
        .select(
            "account_number",
            "account_description",
            *[pl.col(m).fill_null(0).cast(pl.Int64) for m in months],
        )
    )


def build_report(
    balances: ParseResult[BalanceRecord],
    accounts: Iterable[AccountRecord],
    entities: Iterable[EntityRecord],
    filters: ReportFilters,
) -> Report | NoMatchingRecords:
    """Join and pivot filtered balances into report rows.

    Returns NoMatchingRecords, without pivoting, when the ledger range was
    inverted or no balance row survived the filters.
    """
    if balances.status == "invalid_range":
        return NoMatchingRecords(reason="invalid_range")
    if not balances.records:
        return NoMatchingRecords(reason="no_rows")

    combined = resolve_joins(balances, accounts, entities)
    months = build_month_range(filters.balance_from, filters.balance_to)
    wide = pivot_balances(combined, months)

    # Every row shares the filtered entity; only the first row shows it.
    first = combined[0]
    rows: list[ReportRow] = []
    for i, rec in enumerate(wide.iter_rows(named=True)):
        rows.append(
            ReportRow(
                entity_id=first.entity_id if i == 0 else None,
                entity_name=first.entity_name if i == 0 else None,
                account_number=rec["account_number"],
                account_description=rec["account_description"],
                balances={m: rec[m] for m in months},
            )
        )

    log.info("  report: %d account(s) x %d month(s)", len(rows), len(months))
    return Report(entity_id=filters.entity_id, months=months, rows=rows)
