from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from insider_tape.errors import WriteError
from insider_tape.models import CanonicalTrade

DEFAULT_BATCH_SIZE = 500

TRADE_COLUMNS = (
    "ticker",
    "company",
    "insider",
    "title",
    "trade_date",
    "filing_date",
    "type",
    "qty",
    "price",
    "value",
    "owned",
    "accession",
)

# No conflict target: works on SQLite (>= 3.24) and Postgres, and covers the
# unique index on (accession, insider, trade_date, type, qty).
_INSERT_SQL = f"""
INSERT INTO trades ({", ".join(TRADE_COLUMNS)})
VALUES ({", ".join(["?"] * len(TRADE_COLUMNS))})
ON CONFLICT DO NOTHING
"""


def write_trades(conn: Any, batch: Sequence[CanonicalTrade]) -> int:
    """Insert a batch as one transaction; return how many rows were new.

    Rows already present (same unique key) are skipped silently. Any store
    failure rolls the whole batch back and raises WriteError.
    """
    if not batch:
        return 0
    inserted = 0
    try:
        for t in batch:
            cur = conn.execute(_INSERT_SQL, t.as_row())
            inserted += max(0, int(cur.rowcount or 0))
        conn.commit()
    except Exception as e:
        try:
            conn.rollback()
        except Exception:
            pass
        raise WriteError(f"trade batch of {len(batch)} rows failed: {e}") from e
    return inserted


class TradeWriter:
    """Buffers trades and commits them in bounded batches."""

    def __init__(self, conn: Any, batch_size: int = DEFAULT_BATCH_SIZE):
        self._conn = conn
        self._batch_size = max(1, int(batch_size))
        self._pending: List[CanonicalTrade] = []
        self.written = 0
        self.inserted = 0

    def add(self, trade: CanonicalTrade) -> None:
        self._pending.append(trade)
        if len(self._pending) >= self._batch_size:
            self.flush()

    def flush(self) -> None:
        if not self._pending:
            return
        batch, self._pending = self._pending, []
        self.inserted += write_trades(self._conn, batch)
        self.written += len(batch)


def _like_escape(s: str) -> str:
    return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def find_trades(
    conn: Any,
    *,
    ticker: Optional[str] = None,
    insider: Optional[str] = None,
    limit: int = 500,
    offset: int = 0,
) -> List[CanonicalTrade]:
    """Read trades, newest filings first.

    ticker: exact match (case-insensitive). insider: case-insensitive substring.
    With neither, returns the latest trades across all tickers.
    """
    where: List[str] = []
    params: List[Any] = []

    t = (ticker or "").strip().upper()
    if t:
        where.append("ticker = ?")
        params.append(t)

    name = (insider or "").strip()
    if name:
        where.append("LOWER(insider) LIKE ? ESCAPE '\\'")
        params.append(f"%{_like_escape(name.lower())}%")

    sql = f"SELECT {', '.join(TRADE_COLUMNS)} FROM trades"
    if where:
        sql += " WHERE " + " AND ".join(where)
    sql += " ORDER BY filing_date DESC, trade_date DESC, id DESC LIMIT ? OFFSET ?"
    params.extend([max(1, int(limit)), max(0, int(offset))])

    rows = conn.execute(sql, tuple(params)).fetchall()
    return [_row_to_trade(r) for r in rows]


def _row_to_trade(r: Any) -> CanonicalTrade:
    d: Dict[str, Any] = {c: r[c] for c in TRADE_COLUMNS}
    return CanonicalTrade(
        ticker=str(d["ticker"]),
        company=str(d["company"] or ""),
        insider=str(d["insider"] or ""),
        title=str(d["title"] or ""),
        trade_date=str(d["trade_date"]),
        filing_date=str(d["filing_date"] or d["trade_date"]),
        type=str(d["type"]),
        qty=int(d["qty"] or 0),
        price=float(d["price"] or 0.0),
        value=int(d["value"] or 0),
        owned=int(d["owned"] or 0),
        accession=str(d["accession"]),
    )


def count_trades(conn: Any) -> int:
    row = conn.execute("SELECT COUNT(*) AS n FROM trades").fetchone()
    return int(row["n"]) if row is not None else 0
