"""Join resolver: attach account descriptions and entity names to balances.

The three record sets are loaded into a request-scoped in-memory DuckDB
database. Each table gets an insertion-order ``_row_id`` so the lookups can
keep the *last* row per key, matching how a later line in an export
overrides an earlier one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import asdict

import duckdb
import polars as pl

from .records import (
    NOT_FOUND,
    AccountRecord,
    BalanceRecord,
    CombinedRecord,
    EntityRecord,
)

log = logging.getLogger(__name__)

BALANCE_SCHEMA = {
    "entity_id": pl.Int64,
    "account_number": pl.Int64,
    "period": pl.Utf8,
    "balance": pl.Int64,
}

ACCOUNT_SCHEMA = {
    "account_number": pl.Int64,
    "description": pl.Utf8,
    "closed_date": pl.Utf8,
}

ENTITY_SCHEMA = {
    "entity_id": pl.Int64,
    "full_name": pl.Utf8,
    "short_name": pl.Utf8,
}

JOIN_SQL = """
WITH accounts_latest AS (
    SELECT account_number, description
    FROM accounts
    QUALIFY row_number() OVER (
        PARTITION BY account_number ORDER BY _row_id DESC
    ) = 1
),
entities_latest AS (
    SELECT entity_id, full_name
    FROM entities
    QUALIFY row_number() OVER (
        PARTITION BY entity_id ORDER BY _row_id DESC
    ) = 1
)
SELECT
    b.entity_id,
    COALESCE(e.full_name, ?) AS entity_name,
    b.account_number,
    COALESCE(a.description, ?) AS account_description,
    b.period,
    b.balance
FROM balances b
LEFT JOIN accounts_latest a ON a.account_number = b.account_number
LEFT JOIN entities_latest e ON e.entity_id = b.entity_id
ORDER BY b._row_id
"""


def quote_ident(name: str) -> str:
    """Quote an identifier for DuckDB SQL."""
    return '"' + name.replace('"', '""') + '"'


def records_frame(records: Iterable[object], schema: dict) -> pl.DataFrame:
    """Build a DataFrame from record dataclasses with a fixed schema.

    The schema keeps column names and types stable for empty inputs.
    """
    return pl.DataFrame([asdict(r) for r in records], schema=schema)


def write_table(
    conn: duckdb.DuckDBPyConnection, df: pl.DataFrame, table_name: str
) -> None:
    """Write a DataFrame to DuckDB with a 1-based ``_row_id`` in row order."""
    table = quote_ident(table_name)
    conn.execute(f"DROP TABLE IF EXISTS {table}")
    conn.register("_df", df)
    try:
        conn.execute(
            f"CREATE TABLE {table} AS "
            'SELECT CAST(row_number() OVER () AS INTEGER) AS "_row_id", * '
            "FROM _df"
        )
    finally:
        conn.unregister("_df")


def resolve_joins(
    balances: Iterable[BalanceRecord],
    accounts: Iterable[AccountRecord],
    entities: Iterable[EntityRecord],
    not_found: str = NOT_FOUND,
) -> list[CombinedRecord]:
    """Resolve account and entity keys for every balance row.

    Returns one CombinedRecord per balance, in input order. A key missing
    from its lookup yields ``not_found`` instead of dropping the row.
    """
    conn = duckdb.connect(":memory:")
    try:
        write_table(conn, records_frame(balances, BALANCE_SCHEMA), "balances")
        write_table(conn, records_frame(accounts, ACCOUNT_SCHEMA), "accounts")
        write_table(conn, records_frame(entities, ENTITY_SCHEMA), "entities")
        rows = conn.execute(JOIN_SQL, [not_found, not_found]).fetchall()
    finally:
        conn.close()

    combined = [CombinedRecord(*row) for row in rows]
    unresolved = sum(1 for c in combined if c.account_description == not_found)
    if unresolved:
        log.info("  join: %d balance row(s) with unknown account", unresolved)
    return combined
