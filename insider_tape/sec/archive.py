from __future__ import annotations

import threading
import time

import requests

from insider_tape.config import Config
from insider_tape.errors import FetchError
from insider_tape.models import QuarterKey


def _debug(msg: str) -> None:
    print(f"[sec] {msg}")


# Per-process polite throttling for SEC endpoints.
_SEC_LAST_REQUEST_MONO: float = 0.0
_SEC_LOCK = threading.Lock()


def _throttle(min_interval_seconds: float | None) -> None:
    if not min_interval_seconds or min_interval_seconds <= 0:
        return
    global _SEC_LAST_REQUEST_MONO
    with _SEC_LOCK:
        now = time.monotonic()
        dt = now - _SEC_LAST_REQUEST_MONO
        if dt < min_interval_seconds:
            time.sleep(min_interval_seconds - dt)
        _SEC_LAST_REQUEST_MONO = time.monotonic()


def archive_url(cfg: Config, quarter: QuarterKey) -> str:
    return f"{cfg.SEC_DATASETS_BASE_URL.rstrip('/')}/{quarter.archive_name}"


def fetch_quarter_archive(cfg: Config, quarter: QuarterKey) -> bytes:
    """Download one quarter's form345 ZIP into memory.

    Redirects are followed. Any network failure, timeout or non-200 status
    raises FetchError; nothing is written anywhere.
    """
    url = archive_url(cfg, quarter)
    _debug(f"GET {url}")
    _throttle(cfg.SEC_MIN_INTERVAL_SECONDS)
    try:
        r = requests.get(
            url,
            headers={"User-Agent": cfg.SEC_USER_AGENT},
            timeout=cfg.SEC_ARCHIVE_TIMEOUT_SECONDS,
            allow_redirects=True,
        )
    except requests.RequestException as e:
        raise FetchError(f"{quarter.label}: download failed: {e}") from e

    if r.status_code != 200:
        raise FetchError(f"{quarter.label}: HTTP {r.status_code} for {url}", status_code=r.status_code)

    body = r.content
    _debug(f"{quarter.label}: {len(body) / 1024 / 1024:.1f}MB")
    return body
