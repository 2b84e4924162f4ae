from __future__ import annotations

import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Sequence
from urllib.parse import urlparse

from insider_tape.schema import get_schema_sql


def _debug(msg: str) -> None:
    print(f"[db] {msg}")


def detect_dialect(dsn: str) -> str:
    """Return 'postgres' or 'sqlite'. Anything that isn't a postgres URL is a SQLite path."""
    s = (dsn or "").strip()
    scheme = urlparse(s).scheme.lower() if "://" in s else ""
    if scheme in ("postgres", "postgresql"):
        return "postgres"
    return "sqlite"


# Quoted literals are matched first so a '?' inside a string is left alone.
_PLACEHOLDER_RE = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|\?")


def qmark_to_pyformat(sql: str) -> str:
    """Rewrite SQLite '?' placeholders as psycopg2 '%s' placeholders."""
    return _PLACEHOLDER_RE.sub(lambda m: "%s" if m.group(0) == "?" else m.group(0), sql)


class PGConnection:
    """Makes a psycopg2 connection accept the sqlite3 calls used in this codebase."""

    dialect = "postgres"

    def __init__(self, conn: Any):
        self._conn = conn

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        cur = self._conn.cursor()
        cur.execute(qmark_to_pyformat(sql), tuple(params or ()))
        return cur

    def executescript(self, ddl: str) -> None:
        # Naive split is fine for our schema (no ';' inside literals).
        for stmt in (s.strip() for s in ddl.split(";")):
            if stmt:
                self.execute(stmt)

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()


def _connect_postgres(dsn: str) -> PGConnection:
    try:
        import psycopg2
        import psycopg2.extras
    except ImportError as e:
        raise RuntimeError(
            "Postgres selected but psycopg2 is not installed. "
            "Install insider-tape[postgres] and try again."
        ) from e

    # RealDictCursor makes rows subscriptable by column name, like sqlite3.Row.
    return PGConnection(psycopg2.connect(dsn, cursor_factory=psycopg2.extras.RealDictCursor))


def _connect_sqlite(dsn: str) -> sqlite3.Connection:
    if dsn.lower().startswith("sqlite:///"):
        dsn = dsn[len("sqlite:///") :]
    if dsn != ":memory:":
        Path(dsn).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(dsn, timeout=30, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    # The worker writes while readers query; WAL keeps them out of each other's way.
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")
    conn.execute("PRAGMA cache_size=-4000;")
    return conn


@contextmanager
def connect(db_dsn: str) -> Iterator[Any]:
    """Open a SQLite or Postgres connection.

    Commits on clean exit, rolls back on error. Long-running callers (the sync
    engine) also commit explicitly at batch boundaries.
    """
    dsn = (db_dsn or "").strip()
    conn: Any = _connect_postgres(dsn) if detect_dialect(dsn) == "postgres" else _connect_sqlite(dsn)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_dsn: str) -> None:
    """Create tables and indexes (idempotent)."""
    dialect = detect_dialect(db_dsn)
    _debug(f"Initializing DB ({dialect}) at {db_dsn}")
    with connect(db_dsn) as conn:
        conn.executescript(get_schema_sql(dialect))
