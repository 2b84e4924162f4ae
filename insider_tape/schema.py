"""Database schema for Insider Tape.

SQLite is the default store; Postgres is supported through the same DDL with a
small set of type rewrites.

Timestamps are ISO-8601 TEXT (UTC, with 'Z') and dates are ISO 'YYYY-MM-DD'
TEXT, so lexical order is time order on both engines.
"""

from __future__ import annotations

import re


SCHEMA_SQLITE = r"""
CREATE TABLE IF NOT EXISTS trades (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    ticker TEXT NOT NULL,
    company TEXT,
    insider TEXT NOT NULL DEFAULT '',
    title TEXT,
    trade_date TEXT NOT NULL,
    filing_date TEXT,
    type TEXT NOT NULL,
    qty BIGINT NOT NULL,
    price REAL NOT NULL,
    value BIGINT NOT NULL,
    owned BIGINT NOT NULL,
    accession TEXT NOT NULL
);
-- One row per (filing, insider, date, code, size). Everything else may differ.
CREATE UNIQUE INDEX IF NOT EXISTS ux_trades_key ON trades (accession, insider, trade_date, type, qty);
CREATE INDEX IF NOT EXISTS idx_trades_ticker ON trades (ticker);
CREATE INDEX IF NOT EXISTS idx_trades_trade_date ON trades (trade_date);
CREATE INDEX IF NOT EXISTS idx_trades_filing_date ON trades (filing_date);
CREATE INDEX IF NOT EXISTS idx_trades_insider ON trades (insider);

-- Presence of a row means the quarter is fully ingested.
CREATE TABLE IF NOT EXISTS sync_log (
    quarter TEXT PRIMARY KEY,
    synced_at TEXT NOT NULL,
    row_count INTEGER NOT NULL DEFAULT 0,
    inserted_count INTEGER NOT NULL DEFAULT 0
);
"""


def _sqlite_to_postgres(ddl: str) -> str:
    out = re.sub(r"\bREAL\b", "DOUBLE PRECISION", ddl)
    out = re.sub(
        r"INTEGER\s+PRIMARY\s+KEY\s+AUTOINCREMENT",
        "BIGSERIAL PRIMARY KEY",
        out,
        flags=re.IGNORECASE,
    )
    return out


SCHEMA_POSTGRES = _sqlite_to_postgres(SCHEMA_SQLITE)


def get_schema_sql(dialect: str) -> str:
    d = (dialect or "").lower()
    if d.startswith("post"):
        return SCHEMA_POSTGRES
    return SCHEMA_SQLITE
