"""Failure classes for quarterly ingestion.

All of them are scoped to a single quarter: the sync engine catches them,
logs, and moves on to the next quarter.
"""

from __future__ import annotations


class FetchError(RuntimeError):
    """The quarterly archive could not be downloaded (network, timeout, non-200)."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ContainerError(RuntimeError):
    """A ZIP entry could not be read (truncated, unsupported method, bad deflate data)."""


class WriteError(RuntimeError):
    """A batch of trades could not be committed to the store."""
