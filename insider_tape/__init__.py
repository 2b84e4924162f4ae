"""Insider Tape - SEC insider transactions ingestion engine.

Turns the SEC quarterly "Insider Transactions Data Sets" (Form 3/4/5 ZIP
archives of tab-separated tables) into one deduplicated table of normalized
insider trades.

Core concepts:
- Unit of sync is a calendar quarter (one archive, one sync_log row).
- Unit of storage is a canonical trade, unique on
  (accession, insider, trade_date, type, qty).
- Re-running a sync is always safe: finished quarters are skipped and
  re-inserted trades are ignored.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
