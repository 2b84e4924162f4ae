"""Quarter-by-quarter sync of the SEC insider transactions data sets.

Per quarter the state is NotDone -> Done, and Done is simply "a sync_log row
exists". There is no in-progress state: an interrupted or failed quarter has
no sync_log row and is retried in full on the next run. Trades already
written by the failed attempt are harmless because inserts ignore duplicates.

Memory is bounded by one table at a time: the archive stays in memory, but
each table is decompressed, consumed, and dropped before the next one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence

from insider_tape.config import Config
from insider_tape.errors import ContainerError
from insider_tape.models import Owner, QuarterKey, Submission
from insider_tape.sec import archive
from insider_tape.sec.joins import build_owner_map, build_submission_map
from insider_tape.sec.records import normalize_trade
from insider_tape.sec.tables import iter_rows
from insider_tape.sec.zipscan import extract_table
from insider_tape.store.sync_log import invalidate_quarter, is_quarter_done, mark_quarter_done
from insider_tape.store.trades import TradeWriter
from insider_tape.util.time import quarters_back


def _debug(msg: str) -> None:
    print(f"[sync] {msg}")


SUBMISSION_TABLE = "SUBMISSION"
OWNER_TABLE = "REPORTINGOWNER"
# (table prefix, is_derivative), processed in this order.
TRANSACTION_TABLES = (("NONDERIV_TRANS", False), ("DERIV_TRANS", True))


@dataclass(frozen=True)
class QuarterResult:
    quarter: QuarterKey
    submissions: int
    owners: int
    row_count: int
    inserted_count: int
    dropped: int
    table_rows: Dict[str, int]


def _load_table(buf: bytes, prefix: str, label: str) -> Optional[List[str]]:
    """extract_table, with a missing or unreadable table downgraded to "absent".

    Callers decide whether absent is tolerable.
    """
    try:
        lines = extract_table(buf, prefix)
    except ContainerError as e:
        _debug(f"{label}: {prefix} unreadable, treating as empty: {e}")
        return None
    if lines is None:
        _debug(f"{label}: {prefix} not found")
    return lines


def _ingest_transactions(
    buf: bytes,
    prefix: str,
    is_derivative: bool,
    submissions: Mapping[str, Submission],
    owners: Mapping[str, Owner],
    writer: TradeWriter,
    label: str,
) -> tuple[int, int]:
    """Stream one transaction table into the writer. Returns (written, dropped)."""
    lines = _load_table(buf, prefix, label)
    if lines is None:
        return 0, 0

    written_before = writer.written
    dropped = 0
    for row in iter_rows(lines):
        trade = normalize_trade(row, submissions, owners, is_derivative)
        if trade is None:
            dropped += 1
            continue
        writer.add(trade)
    writer.flush()
    lines.clear()

    return writer.written - written_before, dropped


def sync_quarter(conn: Any, cfg: Config, quarter: QuarterKey) -> Optional[QuarterResult]:
    """Ingest one quarter and mark it Done.

    Returns None without touching the network or the trades table when the
    quarter is already Done. FetchError and WriteError propagate, as does
    ContainerError for an archive without a readable SUBMISSION table; the
    quarter then stays NotDone.
    """
    label = quarter.label
    if is_quarter_done(conn, quarter):
        _debug(f"{label}: already synced")
        return None

    _debug(f"{label}: downloading...")
    buf = archive.fetch_quarter_archive(cfg, quarter)

    # Reference tables first; they stay resident while transactions stream past.
    sub_lines = _load_table(buf, SUBMISSION_TABLE, label)
    if sub_lines is None:
        # Without submissions every transaction would be dropped as an orphan.
        raise ContainerError(f"{label}: {SUBMISSION_TABLE} table missing or unreadable")
    submissions = build_submission_map(iter_rows(sub_lines))
    del sub_lines
    _debug(f"{label}: {len(submissions)} submissions")

    owner_lines = _load_table(buf, OWNER_TABLE, label)
    owners = build_owner_map(iter_rows(owner_lines))
    del owner_lines
    _debug(f"{label}: {len(owners)} owners")

    writer = TradeWriter(conn, batch_size=cfg.SYNC_BATCH_SIZE)
    table_rows: Dict[str, int] = {}
    dropped_total = 0
    for prefix, is_derivative in TRANSACTION_TABLES:
        written, dropped = _ingest_transactions(buf, prefix, is_derivative, submissions, owners, writer, label)
        table_rows[prefix] = written
        dropped_total += dropped
        _debug(f"{label}: {prefix} {written} rows written, {dropped} dropped")

    del buf
    mark_quarter_done(conn, quarter, row_count=writer.written, inserted_count=writer.inserted)
    _debug(f"{label}: complete ({writer.written} rows, {writer.inserted} new)")

    return QuarterResult(
        quarter=quarter,
        submissions=len(submissions),
        owners=len(owners),
        row_count=writer.written,
        inserted_count=writer.inserted,
        dropped=dropped_total,
        table_rows=table_rows,
    )


def resolve_quarters(n: int, today: Optional[date] = None) -> List[QuarterKey]:
    return quarters_back(n, today)


def sync_quarters(
    conn: Any,
    cfg: Config,
    quarters: Sequence[QuarterKey],
    *,
    force: bool = False,
) -> Dict[str, Any]:
    """Sync quarters one after another, isolating failures per quarter.

    force=True deletes each target quarter's sync_log row first, so it is
    re-ingested (duplicate trades are still ignored).
    """
    synced: List[str] = []
    skipped: List[str] = []
    failed: Dict[str, str] = {}

    for q in quarters:
        try:
            if force and invalidate_quarter(conn, q):
                _debug(f"{q.label}: sync_log entry cleared (force)")
            res = sync_quarter(conn, cfg, q)
        except Exception as e:
            _debug(f"{q.label}: FAILED: {e}")
            try:
                conn.rollback()  # drop any half-written batch before moving on
            except Exception:
                pass
            failed[q.label] = str(e)
            continue

        if res is None:
            skipped.append(q.label)
        else:
            synced.append(q.label)

    return {"synced": synced, "skipped": skipped, "failed": failed}
