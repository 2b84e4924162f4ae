from __future__ import annotations

import time
from typing import Any, Dict, Optional

from insider_tape.config import Config
from insider_tape.db import connect, init_db
from insider_tape.models import QuarterKey
from insider_tape.store.sync_log import invalidate_quarter, is_quarter_done, latest_done_quarter
from insider_tape.sync.control import SyncController
from insider_tape.util.time import quarters_back


def _debug(msg: str) -> None:
    print(f"[scheduler] {msg}")


def refresh_active_quarter(
    cfg: Config,
    controller: Any,
    *,
    pending: Optional[QuarterKey] = None,
) -> Dict[str, Any]:
    """One scheduler tick.

    The newest Done quarter is the one SEC may still be amending, so its
    sync_log entry is dropped and a normal (non-forced) run is started. Older
    quarters stay Done and are skipped by the worker.

    `pending` is the quarter a previous tick invalidated. While it is still
    NotDone (the refresh failed or has not finished) nothing else is
    invalidated; the run is simply triggered again. The returned "pending"
    is what the caller passes to the next tick.
    """
    if controller.is_running():
        _debug("sync already running; tick skipped")
        return {"started": False, "invalidated": None, "pending": pending}

    invalidated: Optional[QuarterKey] = None
    with connect(cfg.DB_DSN) as conn:
        if pending is not None and pending not in quarters_back(cfg.SYNC_QUARTERS_BACK):
            _debug(f"{pending.label} is outside the sync window; no longer tracked")
            pending = None

        if pending is not None and not is_quarter_done(conn, pending):
            _debug(f"{pending.label} refresh still outstanding; retrying")
        else:
            invalidated = latest_done_quarter(conn)
            if invalidated is not None:
                invalidate_quarter(conn, invalidated)
                _debug(f"invalidated {invalidated.label} for refresh")
            pending = invalidated

    started = bool(controller.trigger(cfg.SYNC_QUARTERS_BACK, force=False))
    return {
        "started": started,
        "invalidated": invalidated.label if invalidated is not None else None,
        "pending": pending,
    }


def run_scheduler_forever(cfg: Config, controller: Optional[SyncController] = None) -> None:
    """Refresh the sync every SCHEDULER_INTERVAL_SECONDS, starting immediately."""
    controller = controller or SyncController(cfg)
    interval = max(60, int(cfg.SCHEDULER_INTERVAL_SECONDS))
    _debug(f"Scheduler starting; db={cfg.DB_DSN} interval={interval}s quarters_back={cfg.SYNC_QUARTERS_BACK}")

    init_db(cfg.DB_DSN)
    pending: Optional[QuarterKey] = None
    while True:
        try:
            res = refresh_active_quarter(cfg, controller, pending=pending)
            pending = res["pending"]
            _debug(f"tick started={res['started']} invalidated={res['invalidated']}")
        except Exception as e:
            _debug(f"tick error: {e}")
        time.sleep(interval)
