from __future__ import annotations

import re
from typing import Any

from cosmos_history.models.transaction import Coin

_AMOUNT_RE = re.compile(r"^(\d+)(.+)$")


def parse_amount(amount_str: str | None) -> list[Coin]:
    """Parse ``"1000uatom,2000uosmo"`` into coins.

    Segments that don't look like digits followed by a denom are kept as
    ``Coin(amount=<segment>, denom="")``.
    """
    if not amount_str:
        return []

    coins: list[Coin] = []
    for segment in amount_str.split(","):
        segment = segment.strip()
        if not segment:
            continue
        match = _AMOUNT_RE.match(segment)
        if match:
            coins.append(Coin(amount=match.group(1), denom=match.group(2)))
        else:
            coins.append(Coin(amount=segment, denom=""))
    return coins


def coerce_coins(value: Any) -> list[Coin]:
    """Normalize the amount shapes found in messages into a list of coins."""
    if value is None:
        return []
    if isinstance(value, str):
        return parse_amount(value)
    if isinstance(value, dict):
        denom = value.get("denom")
        amount = value.get("amount")
        if denom is None and amount is None:
            return []
        return [Coin(denom="" if denom is None else str(denom), amount="" if amount is None else str(amount))]
    if isinstance(value, list):
        coins: list[Coin] = []
        for item in value:
            coins.extend(coerce_coins(item))
        return coins
    return [Coin(amount=str(value), denom="")]
