"""Unit tests for TSV row decoding and the per-quarter join maps."""

from __future__ import annotations

import types

from insider_tape.sec.joins import build_owner_map, build_submission_map
from insider_tape.sec.tables import iter_rows, parse_header


def test_parse_header_trims_and_upper_cases() -> None:
    """Column names are normalized so lookups are case-insensitive."""
    assert parse_header(" accession_number\tTrans_Date \r") == ["ACCESSION_NUMBER", "TRANS_DATE"]


def test_iter_rows_skips_blank_lines_and_pads_short_rows() -> None:
    """Blank and whitespace-only lines vanish; missing trailing cells become ""."""
    lines = ["A\tB\tC", "1\t 2 \t3", "", "   ", "4", ""]

    rows = list(iter_rows(lines))

    assert rows == [{"A": "1", "B": "2", "C": "3"}, {"A": "4", "B": "", "C": ""}]


def test_iter_rows_handles_crlf_lines() -> None:
    """Windows line endings leave no stray carriage returns."""
    rows = list(iter_rows(["A\tB\r", "x\ty\r"]))

    assert rows == [{"A": "x", "B": "y"}]


def test_iter_rows_is_lazy() -> None:
    """Rows are produced on demand, not materialized up front."""
    gen = iter_rows(["A", "1", "2"])

    assert isinstance(gen, types.GeneratorType)
    assert next(gen) == {"A": "1"}


def test_iter_rows_of_absent_table_yields_nothing() -> None:
    """None (table absent) and a header-only table both mean zero rows."""
    assert list(iter_rows(None)) == []
    assert list(iter_rows([])) == []
    assert list(iter_rows(["A\tB"])) == []


def test_submission_map_first_occurrence_wins() -> None:
    """A repeated accession keeps the first row's data."""
    rows = [
        {"ACCESSION_NUMBER": "A1", "ISSUERTRADINGSYMBOL": "aaa", "ISSUERNAME": "First", "FILING_DATE": "2026-01-05"},
        {"ACCESSION_NUMBER": "A1", "ISSUERTRADINGSYMBOL": "BBB", "ISSUERNAME": "Second", "FILING_DATE": "2026-01-06"},
    ]

    subs = build_submission_map(rows)

    assert list(subs) == ["A1"]
    assert subs["A1"].ticker == "AAA"
    assert subs["A1"].company == "First"


def test_submission_map_normalizes_and_cross_fills_dates() -> None:
    """Dates become ISO; a missing one borrows the other."""
    rows = [
        {"ACCESSION_NUMBER": "A1", "FILING_DATE": "10-APR-2026", "PERIOD_OF_REPORT": "31-MAR-2026"},
        {"ACCESSION_NUMBER": "A2", "FILEDATE": "12-FEB-2026", "PERIOD_OF_REPORT": ""},
        {"ACCESSION_NUMBER": "A3", "FILING_DATE": "garbage", "PERIOD_OF_REPORT": "2026-03-01"},
    ]

    subs = build_submission_map(rows)

    assert (subs["A1"].filed, subs["A1"].period) == ("2026-04-10", "2026-03-31")
    assert (subs["A2"].filed, subs["A2"].period) == ("2026-02-12", "2026-02-12")
    assert (subs["A3"].filed, subs["A3"].period) == ("2026-03-01", "2026-03-01")


def test_submission_map_skips_rows_without_accession() -> None:
    """Rows with a blank key cannot be joined and are left out."""
    subs = build_submission_map([{"ACCESSION_NUMBER": "  ", "ISSUERTRADINGSYMBOL": "X"}])

    assert subs == {}


def test_owner_map_first_owner_wins() -> None:
    """Joint filings keep only the first reporting owner."""
    rows = [
        {"ACCESSION_NUMBER": "A1", "RPTOWNERNAME": "Doe Jane", "RPTOWNER_TITLE": "CEO"},
        {"ACCESSION_NUMBER": "A1", "RPTOWNERNAME": "Fund LP", "RPTOWNER_TITLE": "10% Owner"},
    ]

    owners = build_owner_map(rows)

    assert owners["A1"].name == "Doe Jane"
    assert owners["A1"].title == "CEO"


def test_owner_map_title_falls_back_through_aliases() -> None:
    """Older layouts use OFFICERTITLE; relationship is the last resort."""
    rows = [
        {"ACCESSION_NUMBER": "A1", "RPTOWNERNAME": "A", "OFFICERTITLE": "CFO"},
        {"ACCESSION_NUMBER": "A2", "RPTOWNERNAME": "B", "RPTOWNER_TITLE": "", "RPTOWNER_RELATIONSHIP": "Director"},
        {"ACCESSION_NUMBER": "A3", "RPTOWNERNAME": "C"},
    ]

    owners = build_owner_map(rows)

    assert owners["A1"].title == "CFO"
    assert owners["A2"].title == "Director"
    assert owners["A3"].title == ""
