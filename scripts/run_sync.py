"""Run one sync in the foreground (same flags as `python -m insider_tape.sync.worker`)."""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from insider_tape.sync.worker import main


if __name__ == "__main__":
    raise SystemExit(main())
