from __future__ import annotations

from typing import Mapping

from insider_tape.models import CanonicalTrade, Owner, Submission
from insider_tape.util.normalization import first_value, normalize_date, parse_number, round_half_up

UNKNOWN_CODE = "?"

# Column aliases, current SEC name first.
_SHARES = ("TRANS_SHARES",)
_UNDERLYING_SHARES = ("UNDLYNG_SEC_SHARES", "UNDERLYING_SHARES")
_PRICE = ("TRANS_PRICEPERSHARE",)
_EXERCISE_PRICE = ("CONV_EXERCISE_PRICE", "EXERCISE_PRICE")
_OWNED_FOLLOWING = ("SHRS_OWND_FOLWNG_TRANS", "SHRSOWNFOLLOWINGTRANS")


def _number(row: Mapping[str, str], columns: tuple[str, ...]) -> float | None:
    return parse_number(first_value(row, *columns))


def normalize_trade(
    row: Mapping[str, str],
    submissions: Mapping[str, Submission],
    owners: Mapping[str, Owner],
    is_derivative: bool,
) -> CanonicalTrade | None:
    """Join one NONDERIV_TRANS / DERIV_TRANS row and build the canonical trade.

    Returns None (row dropped) when the accession has no submission, the
    submission has no ticker, or no usable date can be found.
    """
    acc = first_value(row, "ACCESSION_NUMBER")
    sub = submissions.get(acc) if acc else None
    if sub is None or not sub.ticker:
        return None

    # Many older filings leave TRANS_DATE blank; fall back to the report period, then filing date.
    trade_date = normalize_date(first_value(row, "TRANS_DATE")) or sub.period or sub.filed
    if not trade_date:
        return None

    shares = _number(row, _SHARES)
    if is_derivative and not shares:
        shares = _number(row, _UNDERLYING_SHARES)
    qty = round_half_up(abs(shares or 0.0))

    price_v = _number(row, _PRICE)
    if is_derivative and price_v is None:
        price_v = _number(row, _EXERCISE_PRICE)
    unit_price = abs(price_v or 0.0)
    price = round(unit_price, 4)

    if is_derivative:
        owned = 0
    else:
        owned = round_half_up(abs(_number(row, _OWNED_FOLLOWING) or 0.0))

    owner = owners.get(acc)

    return CanonicalTrade(
        ticker=sub.ticker,
        company=sub.company,
        insider=owner.name if owner else "",
        title=owner.title if owner else "",
        trade_date=trade_date,
        filing_date=sub.filed or trade_date,
        type=first_value(row, "TRANS_CODE") or UNKNOWN_CODE,
        qty=qty,
        price=price,
        value=round_half_up(qty * unit_price),
        owned=owned,
        accession=acc,
    )
