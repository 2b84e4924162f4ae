from __future__ import annotations

import os
import subprocess
import sys
import threading
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional

from insider_tape.config import Config
from insider_tape.db import connect, detect_dialect, init_db
from insider_tape.store.sync_log import list_sync_log


def _debug(msg: str) -> None:
    print(f"[control] {msg}")


class SyncController:
    """Starts the sync worker process and reports on it.

    At most one worker runs at a time. The worker's stdout is appended to the
    sync log file and a bounded tail is kept in memory for status().
    """

    def __init__(self, cfg: Config):
        self.cfg = cfg
        self._lock = threading.Lock()
        self._proc: Optional[subprocess.Popen] = None
        self._pump_thread: Optional[threading.Thread] = None
        self._tail: Deque[str] = deque(maxlen=max(1, int(cfg.SYNC_LOG_TAIL_LINES)))
        self._db_ready = False
        self._load_tail()

    # -----------------
    # Log
    # -----------------
    def _log_path(self) -> Path:
        return Path(self.cfg.SYNC_LOG_PATH)

    def _load_tail(self) -> None:
        path = self._log_path()
        if not path.exists():
            return
        with path.open("r", encoding="utf-8", errors="replace") as f:
            for line in f:
                self._tail.append(line.rstrip("\n"))

    def _append_log(self, line: str) -> None:
        path = self._log_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
        with self._lock:
            self._tail.append(line)

    def _pump(self, proc: subprocess.Popen) -> None:
        assert proc.stdout is not None
        for raw in proc.stdout:
            self._append_log(raw.rstrip("\r\n"))
        code = proc.wait()
        self._append_log(f"[control] worker exited with code {code}")

    # -----------------
    # Commands
    # -----------------
    def build_command(self, quarters_back: Optional[int] = None, force: bool = False) -> List[str]:
        n = int(quarters_back if quarters_back is not None else self.cfg.SYNC_QUARTERS_BACK)
        cmd = [sys.executable, "-u", "-m", "insider_tape.sync.worker", "--quarters", str(max(0, n))]
        if force:
            cmd.append("--force")
        return cmd

    def worker_env(self) -> Dict[str, str]:
        """Environment for the worker so it loads the same Config as this process."""
        env = dict(os.environ)
        env["PYTHONUNBUFFERED"] = "1"
        for key in ("INSIDER_DATABASE_URL", "DATABASE_URL", "INSIDER_DB_PATH"):
            env.pop(key, None)
        if detect_dialect(self.cfg.DB_DSN) == "postgres":
            env["INSIDER_DATABASE_URL"] = self.cfg.DB_DSN
        else:
            env["INSIDER_DB_PATH"] = self.cfg.DB_DSN
        env["SEC_USER_AGENT"] = self.cfg.SEC_USER_AGENT
        env["SEC_DATASETS_BASE_URL"] = self.cfg.SEC_DATASETS_BASE_URL
        env["SEC_ARCHIVE_TIMEOUT_SECONDS"] = str(self.cfg.SEC_ARCHIVE_TIMEOUT_SECONDS)
        env["SEC_MIN_INTERVAL_SECONDS"] = str(self.cfg.SEC_MIN_INTERVAL_SECONDS)
        env["SYNC_BATCH_SIZE"] = str(self.cfg.SYNC_BATCH_SIZE)
        # The worker caps its own address space from this on startup.
        env["SYNC_WORKER_MAX_MEMORY_MB"] = str(self.cfg.SYNC_WORKER_MAX_MEMORY_MB)
        return env

    def is_running(self) -> bool:
        with self._lock:
            return self._proc is not None and self._proc.poll() is None

    def trigger(self, quarters_back: Optional[int] = None, force: bool = False) -> bool:
        """Start a worker. Returns False (and does nothing) if one is already running."""
        with self._lock:
            if self._proc is not None and self._proc.poll() is None:
                _debug("sync already running; trigger ignored")
                return False

            cmd = self.build_command(quarters_back, force)
            env = self.worker_env()

            _debug(f"starting worker: {' '.join(cmd[2:])}")
            self._proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                env=env,
            )
            proc = self._proc

        self._pump_thread = threading.Thread(target=self._pump, args=(proc,), daemon=True)
        self._pump_thread.start()
        return True

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """Block until the current worker (if any) exits; returns its exit code."""
        with self._lock:
            proc = self._proc
            pump = self._pump_thread
        if proc is None:
            return None
        code = proc.wait(timeout=timeout)
        if pump is not None:
            pump.join(timeout=timeout)
        return code

    def status(self) -> Dict[str, Any]:
        if not self._db_ready:
            init_db(self.cfg.DB_DSN)
            self._db_ready = True
        with connect(self.cfg.DB_DSN) as conn:
            quarters = [e.as_dict() for e in list_sync_log(conn)]
        with self._lock:
            log = list(self._tail)
        return {"running": self.is_running(), "quarters": quarters, "log": log}
