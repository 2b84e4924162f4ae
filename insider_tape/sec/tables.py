from __future__ import annotations

from typing import Dict, Iterator, Sequence


def parse_header(line: str) -> list[str]:
    return [h.strip().upper() for h in line.split("\t")]


def iter_rows(lines: Sequence[str] | None) -> Iterator[Dict[str, str]]:
    """Lazily decode tab-separated lines into {HEADER: value} dicts.

    The first line holds the column names (trimmed, upper-cased). Blank lines
    are skipped, values are trimmed, and short rows are padded with "".
    Nothing is materialized: rows are produced one at a time.
    """
    if not lines:
        return

    headers = parse_header(lines[0])
    width = len(headers)

    for i in range(1, len(lines)):
        line = lines[i]
        if not line.strip():
            continue
        cols = line.split("\t")
        if len(cols) < width:
            cols.extend([""] * (width - len(cols)))
        yield {h: cols[j].strip() for j, h in enumerate(headers)}
