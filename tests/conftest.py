"""Shared fixtures: a throwaway SQLite store and in-memory form345 archives."""

from __future__ import annotations

from pathlib import Path

import pytest

from insider_tape.config import Config
from insider_tape.db import connect, init_db
from tests.archive_fixtures import build_archive, standard_tables


@pytest.fixture
def cfg(tmp_path: Path) -> Config:
    return Config(
        DB_DSN=str(tmp_path / "trades.db"),
        SEC_MIN_INTERVAL_SECONDS=0.0,
        SYNC_BATCH_SIZE=2,
        SYNC_WORKER_MAX_MEMORY_MB=0,
        SYNC_LOG_PATH=str(tmp_path / "logs" / "sync.log"),
        SYNC_LOG_TAIL_LINES=5,
    )


@pytest.fixture
def conn(cfg: Config):
    init_db(cfg.DB_DSN)
    with connect(cfg.DB_DSN) as c:
        yield c


@pytest.fixture
def standard_archive() -> bytes:
    return build_archive(standard_tables())
