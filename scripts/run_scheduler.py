import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from insider_tape.config import load_config
from insider_tape.jobs.scheduler import run_scheduler_forever


def main() -> None:
    cfg = load_config()
    run_scheduler_forever(cfg)


if __name__ == "__main__":
    main()
