from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List

from insider_tape.models import QuarterKey


def utcnow_iso() -> str:
    """Current UTC time as ISO-8601 string with Z."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def quarter_of(d: date) -> QuarterKey:
    return QuarterKey(year=d.year, quarter=(d.month - 1) // 3 + 1)


def quarters_back(n: int, today: date | None = None) -> List[QuarterKey]:
    """The n quarters preceding the one containing `today`, newest first.

    The current quarter is never included: SEC publishes a quarter's data set
    only after the quarter closes.
    """
    cur = quarter_of(today or datetime.now(timezone.utc).date())
    out: List[QuarterKey] = []
    for _ in range(max(0, int(n))):
        cur = cur.previous()
        out.append(cur)
    return out
