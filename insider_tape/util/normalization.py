from __future__ import annotations

import math
import re
from typing import Mapping

# Sanity bounds for dates found in the data sets. Anything outside is a
# placeholder or a typo (e.g. 0009-01-01, 2206-03-15).
MIN_YEAR = 2000
MAX_YEAR = 2027

_ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DMY_RE = re.compile(r"^(\d{2})-([A-Za-z]{3})-(\d{4})$")

_MONTHS = {
    "JAN": "01",
    "FEB": "02",
    "MAR": "03",
    "APR": "04",
    "MAY": "05",
    "JUN": "06",
    "JUL": "07",
    "AUG": "08",
    "SEP": "09",
    "OCT": "10",
    "NOV": "11",
    "DEC": "12",
}


def _year_ok(year: str) -> bool:
    return MIN_YEAR <= int(year) <= MAX_YEAR


def normalize_date(raw: str | None) -> str | None:
    """Normalize a data-set date to ISO 'YYYY-MM-DD'.

    Accepts 'YYYY-MM-DD' and 'DD-MON-YYYY' (e.g. '15-MAR-2026').
    Returns None for any other shape, an unknown month, or a year outside
    [MIN_YEAR, MAX_YEAR].
    """
    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None

    m = _ISO_RE.match(s)
    if m:
        return s if _year_ok(m.group(1)) else None

    m = _DMY_RE.match(s)
    if m:
        day, mon, year = m.group(1), m.group(2).upper(), m.group(3)
        month = _MONTHS.get(mon)
        if month is None or not _year_ok(year):
            return None
        return f"{year}-{month}-{day}"

    return None


def parse_number(s: str | None) -> float | None:
    """Parse a numeric cell. Blank or unparseable -> None."""
    if s is None:
        return None
    t = str(s).strip().replace(",", "")
    if not t:
        return None
    try:
        v = float(t)
    except ValueError:
        return None
    if math.isnan(v) or math.isinf(v):
        return None
    return v


def round_half_up(x: float) -> int:
    """Round to nearest integer, halves away from zero (2.5 -> 3, not 2)."""
    if x < 0:
        return -int(math.floor(-x + 0.5))
    return int(math.floor(x + 0.5))


def first_value(row: Mapping[str, str], *columns: str) -> str:
    """First non-blank value among `columns`; "" if none.

    The published tables have renamed a few columns over the years, so lookups
    go through a list of aliases.
    """
    for col in columns:
        v = row.get(col)
        if v is not None and str(v).strip():
            return str(v).strip()
    return ""
