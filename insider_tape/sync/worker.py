"""Sync worker process.

Runs the quarterly sync in its own interpreter so a pathological archive can
only exhaust this process's (capped) memory, never the one serving queries.
It talks to the rest of the system only through the store and its stdout,
which the controller appends to the sync log.

Usage:
  python -m insider_tape.sync.worker --quarters 4
  python -m insider_tape.sync.worker --quarter 2025Q4 --force
"""

from __future__ import annotations

import argparse
import os
from typing import List, Optional

from insider_tape.config import load_config
from insider_tape.db import connect, init_db
from insider_tape.models import QuarterKey
from insider_tape.store.trades import count_trades
from insider_tape.sync.engine import resolve_quarters, sync_quarters
from insider_tape.util.time import utcnow_iso


def _debug(msg: str) -> None:
    print(f"[worker] {utcnow_iso()} {msg}", flush=True)


def apply_memory_cap(max_mb: int) -> bool:
    """Cap this process's address space at max_mb. No-op when 0 or off POSIX."""
    if max_mb <= 0 or os.name != "posix":
        return False
    import resource

    limit = int(max_mb) * 1024 * 1024
    resource.setrlimit(resource.RLIMIT_AS, (limit, limit))
    return True


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Sync SEC insider transactions data sets into the trade store.")
    p.add_argument("--quarters", type=int, default=None, help="How many closed quarters back to sync (default from config)")
    p.add_argument(
        "--quarter",
        action="append",
        default=[],
        metavar="YYYYQn",
        help="Sync a specific quarter (repeatable); overrides --quarters",
    )
    p.add_argument("--force", action="store_true", help="Clear the targeted quarters' sync_log entries first")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_config()
    if apply_memory_cap(cfg.SYNC_WORKER_MAX_MEMORY_MB):
        _debug(f"address space capped at {cfg.SYNC_WORKER_MAX_MEMORY_MB} MB")

    if args.quarter:
        quarters = [QuarterKey.parse(q) for q in args.quarter]
    else:
        n = int(args.quarters if args.quarters is not None else cfg.SYNC_QUARTERS_BACK)
        quarters = resolve_quarters(n)

    _debug(f"=== sync start ({', '.join(q.label for q in quarters) or 'nothing to do'}) force={args.force} ===")
    init_db(cfg.DB_DSN)
    with connect(cfg.DB_DSN) as conn:
        res = sync_quarters(conn, cfg, quarters, force=bool(args.force))
        total = count_trades(conn)

    _debug(
        f"=== sync done: synced={len(res['synced'])} skipped={len(res['skipped'])} "
        f"failed={len(res['failed'])} total_trades={total:,} ==="
    )
    return 1 if res["failed"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
