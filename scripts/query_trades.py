import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from insider_tape.config import load_config
from insider_tape.db import connect, init_db
from insider_tape.store.trades import find_trades


def main() -> None:
    p = argparse.ArgumentParser(description="Print trades from the local store, newest filings first.")
    p.add_argument("--ticker", type=str, default=None, help="Exact ticker symbol")
    p.add_argument("--insider", type=str, default=None, help="Case-insensitive substring of the insider's name")
    p.add_argument("--limit", type=int, default=50, help="Max rows to print (default 50)")
    p.add_argument("--json", action="store_true", help="Emit one JSON object per line")
    args = p.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)
    with connect(cfg.DB_DSN) as conn:
        trades = find_trades(conn, ticker=args.ticker, insider=args.insider, limit=args.limit)

    for t in trades:
        if args.json:
            print(json.dumps(asdict(t), sort_keys=True))
        else:
            print(
                f"{t.filing_date}  {t.trade_date}  {t.ticker:<6} {t.type}  "
                f"{t.qty:>12,} @ {t.price:>10.4f}  ${t.value:>14,}  {t.insider} ({t.title or '-'})"
            )

    print(f"{len(trades)} trade(s)", file=sys.stderr)


if __name__ == "__main__":
    main()
