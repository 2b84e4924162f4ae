from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from insider_tape.models import QuarterKey
from insider_tape.util.time import utcnow_iso


@dataclass(frozen=True)
class SyncLogEntry:
    quarter: QuarterKey
    synced_at: str
    row_count: int
    inserted_count: int

    def as_dict(self) -> dict:
        return {
            "quarter": self.quarter.label,
            "synced_at": self.synced_at,
            "row_count": self.row_count,
            "inserted_count": self.inserted_count,
        }


def is_quarter_done(conn: Any, quarter: QuarterKey) -> bool:
    row = conn.execute("SELECT 1 FROM sync_log WHERE quarter=?", (quarter.label,)).fetchone()
    return row is not None


def mark_quarter_done(conn: Any, quarter: QuarterKey, *, row_count: int, inserted_count: int) -> None:
    """Record `quarter` as fully ingested and commit."""
    conn.execute(
        """
        INSERT INTO sync_log (quarter, synced_at, row_count, inserted_count)
        VALUES (?,?,?,?)
        ON CONFLICT(quarter) DO UPDATE SET
            synced_at=excluded.synced_at,
            row_count=excluded.row_count,
            inserted_count=excluded.inserted_count
        """,
        (quarter.label, utcnow_iso(), int(row_count), int(inserted_count)),
    )
    conn.commit()


def invalidate_quarter(conn: Any, quarter: QuarterKey) -> bool:
    """Forget that `quarter` was synced so the next run ingests it again."""
    cur = conn.execute("DELETE FROM sync_log WHERE quarter=?", (quarter.label,))
    conn.commit()
    return int(cur.rowcount or 0) > 0


def _entry(r: Any) -> SyncLogEntry:
    return SyncLogEntry(
        quarter=QuarterKey.parse(str(r["quarter"])),
        synced_at=str(r["synced_at"]),
        row_count=int(r["row_count"] or 0),
        inserted_count=int(r["inserted_count"] or 0),
    )


def list_sync_log(conn: Any) -> List[SyncLogEntry]:
    """All finished quarters, newest quarter first."""
    rows = conn.execute(
        "SELECT quarter, synced_at, row_count, inserted_count FROM sync_log"
    ).fetchall()
    return sorted((_entry(r) for r in rows), key=lambda e: e.quarter, reverse=True)


def latest_done_quarter(conn: Any) -> Optional[QuarterKey]:
    entries = list_sync_log(conn)
    return entries[0].quarter if entries else None
