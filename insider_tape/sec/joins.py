"""Per-quarter lookup maps keyed by accession number.

SUBMISSION and REPORTINGOWNER are one to two orders of magnitude smaller than
the transaction tables, so both maps are held fully in memory while that
quarter's transactions stream past, then dropped.
"""

from __future__ import annotations

from typing import Dict, Iterable, Mapping

from insider_tape.models import Owner, Submission
from insider_tape.util.normalization import first_value, normalize_date


def _debug(msg: str) -> None:
    print(f"[joins] {msg}")


def build_submission_map(rows: Iterable[Mapping[str, str]]) -> Dict[str, Submission]:
    """accession -> Submission. First occurrence of an accession wins."""
    out: Dict[str, Submission] = {}
    duplicates = 0
    for r in rows:
        acc = first_value(r, "ACCESSION_NUMBER")
        if not acc:
            continue
        if acc in out:
            duplicates += 1
            continue

        filed_raw = first_value(r, "FILING_DATE", "FILEDATE")
        period_raw = first_value(r, "PERIOD_OF_REPORT")
        filed = normalize_date(filed_raw)
        period = normalize_date(period_raw)

        out[acc] = Submission(
            accession=acc,
            ticker=first_value(r, "ISSUERTRADINGSYMBOL").upper(),
            company=first_value(r, "ISSUERNAME"),
            # Each date stands in for the other when one is missing or unparseable.
            filed=filed or period,
            period=period or filed,
        )

    if duplicates:
        _debug(f"ignored {duplicates} repeated submission rows")
    return out


def build_owner_map(rows: Iterable[Mapping[str, str]]) -> Dict[str, Owner]:
    """accession -> Owner. First reporting owner wins; joint filers are ignored."""
    out: Dict[str, Owner] = {}
    for r in rows:
        acc = first_value(r, "ACCESSION_NUMBER")
        if not acc or acc in out:
            continue
        out[acc] = Owner(
            accession=acc,
            name=first_value(r, "RPTOWNERNAME"),
            title=first_value(
                r,
                "RPTOWNER_TITLE",
                "OFFICERTITLE",
                "RPTOWNER_RELATIONSHIP",
                "RPTOWNERRELATIONSHIP",
            ),
        )
    return out
