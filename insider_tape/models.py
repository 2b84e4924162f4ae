from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Tuple

_QUARTER_LABEL_RE = re.compile(r"^\s*(\d{4})\s*[Qq]\s*([1-4])\s*$")


@dataclass(frozen=True, order=True)
class QuarterKey:
    year: int
    quarter: int

    def __post_init__(self) -> None:
        if self.quarter not in (1, 2, 3, 4):
            raise ValueError(f"quarter must be 1-4, got {self.quarter}")

    @property
    def label(self) -> str:
        """sync_log primary key, e.g. '2026Q1'."""
        return f"{self.year}Q{self.quarter}"

    @property
    def archive_name(self) -> str:
        return f"{self.year}q{self.quarter}_form345.zip"

    @classmethod
    def parse(cls, label: str) -> "QuarterKey":
        m = _QUARTER_LABEL_RE.match(str(label or ""))
        if not m:
            raise ValueError(f"Not a quarter label: {label!r} (expected e.g. 2026Q1)")
        return cls(year=int(m.group(1)), quarter=int(m.group(2)))

    def previous(self) -> "QuarterKey":
        if self.quarter == 1:
            return QuarterKey(self.year - 1, 4)
        return QuarterKey(self.year, self.quarter - 1)

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class Submission:
    accession: str
    ticker: str
    company: str
    filed: str | None
    period: str | None


@dataclass(frozen=True)
class Owner:
    accession: str
    name: str
    title: str


@dataclass(frozen=True)
class CanonicalTrade:
    ticker: str
    company: str
    insider: str
    title: str
    trade_date: str
    filing_date: str
    type: str
    qty: int
    price: float
    value: int
    owned: int
    accession: str

    @property
    def unique_key(self) -> Tuple[str, str, str, str, int]:
        """Columns of the trades UNIQUE constraint; equal keys are one trade."""
        return (self.accession, self.insider, self.trade_date, self.type, self.qty)

    def as_row(self) -> Tuple[Any, ...]:
        """Column order of the trades INSERT statement."""
        return (
            self.ticker,
            self.company,
            self.insider,
            self.title,
            self.trade_date,
            self.filing_date,
            self.type,
            self.qty,
            self.price,
            self.value,
            self.owned,
            self.accession,
        )
