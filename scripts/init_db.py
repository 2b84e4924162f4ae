import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from insider_tape.config import load_config
from insider_tape.db import connect, init_db
from insider_tape.store.sync_log import list_sync_log
from insider_tape.store.trades import count_trades


def main() -> None:
    cfg = load_config()
    init_db(cfg.DB_DSN)
    with connect(cfg.DB_DSN) as conn:
        trades = count_trades(conn)
        quarters = len(list_sync_log(conn))

    print(f"DB initialized: {cfg.DB_DSN} (trades={trades:,} synced_quarters={quarters})")


if __name__ == "__main__":
    main()
