import os
from dataclasses import dataclass
from typing import Optional

# Optional: load a local .env file if present.
try:
    from dotenv import load_dotenv

    load_dotenv()
except Exception:
    # If python-dotenv isn't installed or .env isn't present, that's fine.
    pass


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    Everything is read from environment variables (or a .env file).
    """

    # -----------------
    # Store
    # -----------------
    # Preferred: INSIDER_DATABASE_URL (or DATABASE_URL) for Postgres.
    # Fallback: INSIDER_DB_PATH for SQLite.
    DB_DSN: str = (
        _env_str("INSIDER_DATABASE_URL")
        or _env_str("DATABASE_URL")
        or _env_str("INSIDER_DB_PATH", "./data/trades.db")
    )

    # -----------------
    # SEC
    # -----------------
    # EDGAR rejects requests without a descriptive User-Agent.
    SEC_USER_AGENT: str = _env_str("SEC_USER_AGENT", "InsiderTape/1.0 (contact: you@example.com)")
    SEC_DATASETS_BASE_URL: str = _env_str(
        "SEC_DATASETS_BASE_URL",
        "https://www.sec.gov/files/structureddata/data/insider-transactions-data-sets",
    )
    # Quarterly archives are 50-100MB; give the download plenty of time.
    SEC_ARCHIVE_TIMEOUT_SECONDS: float = _env_float("SEC_ARCHIVE_TIMEOUT_SECONDS", 180.0)
    # Polite rate limiting (SEC asks for <= 10 requests/second).
    SEC_MIN_INTERVAL_SECONDS: float = _env_float("SEC_MIN_INTERVAL_SECONDS", 0.12)

    # -----------------
    # Sync
    # -----------------
    SYNC_QUARTERS_BACK: int = _env_int("SYNC_QUARTERS_BACK", 4)
    SYNC_BATCH_SIZE: int = _env_int("SYNC_BATCH_SIZE", 500)

    # Address-space cap (MB) applied to the worker process. 0 disables the cap.
    SYNC_WORKER_MAX_MEMORY_MB: int = _env_int("SYNC_WORKER_MAX_MEMORY_MB", 400)

    # Append-only log written by the controller from the worker's stdout.
    SYNC_LOG_PATH: str = _env_str("SYNC_LOG_PATH", "./data/sync.log")
    SYNC_LOG_TAIL_LINES: int = _env_int("SYNC_LOG_TAIL_LINES", 50)

    # Scheduler: refresh the most recent quarter every N seconds (default 6h).
    SCHEDULER_INTERVAL_SECONDS: int = _env_int("SCHEDULER_INTERVAL_SECONDS", 21600)


def load_config() -> Config:
    return Config()
