"""
Query planning for AND-only tx_search indexers.

The indexer cannot express "sender = X OR recipient = X", so an account's
history is covered by one independent query per angle of involvement. The
angles are kept in a registry grouped by module so new ones can be added
without touching the executors.
"""

from __future__ import annotations

import re
from typing import Iterable

from cosmos_history.models.query import QuerySpec

OPERATORS = ("=", "<", "<=", ">", ">=", "CONTAINS", "EXISTS")

_KEY_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")

# group -> [(label, event attribute key)]
QUERY_ANGLES: dict[str, list[tuple[str, str]]] = {
    "core": [
        ("message_sender", "message.sender"),
        ("transfer_recipient", "transfer.recipient"),
        ("coin_received", "coin_received.receiver"),
    ],
    "ibc": [
        ("ibc_packet_sender", "fungible_token_packet.sender"),
        ("ibc_packet_receiver", "fungible_token_packet.receiver"),
    ],
    "staking": [
        ("delegator", "message.delegator_address"),
        ("delegate_validator", "delegate.validator"),
        ("rewards_delegator", "withdraw_rewards.delegator"),
        ("rewards_validator", "withdraw_rewards.validator"),
    ],
    "governance": [
        ("proposal_voter", "proposal_vote.voter"),
        ("proposal_depositor", "proposal_deposit.depositor"),
    ],
}

DEFAULT_GROUPS = ("core",)


def condition(key: str, op: str, value: str | int | None = None) -> str:
    """Build a single tx_search condition, e.g. ``message.sender='cosmos1...'``."""
    if not _KEY_RE.match(key):
        raise ValueError(f"Invalid event key '{key}'")
    if op not in OPERATORS:
        raise ValueError(f"Unsupported operator '{op}'. Supported: {', '.join(OPERATORS)}")

    if op == "EXISTS":
        return f"{key} EXISTS"
    if value is None:
        raise ValueError(f"Operator '{op}' requires a value")
    if isinstance(value, bool):
        raise ValueError("Boolean values are not supported in queries")
    if isinstance(value, int):
        return f"{key}{op}{value}" if op != "CONTAINS" else f"{key} CONTAINS '{value}'"
    if "'" in value:
        raise ValueError(f"Query values cannot contain single quotes: {value!r}")
    if op == "CONTAINS":
        return f"{key} CONTAINS '{value}'"
    return f"{key}{op}'{value}'"


def height_range(min_height: int | None = None, max_height: int | None = None) -> list[str]:
    if min_height is not None and max_height is not None and min_height > max_height:
        raise ValueError(f"min_height {min_height} is above max_height {max_height}")
    conditions = []
    if min_height is not None:
        conditions.append(condition("tx.height", ">=", min_height))
    if max_height is not None:
        conditions.append(condition("tx.height", "<=", max_height))
    return conditions


def message_action(type_url: str) -> str:
    return condition("message.action", "=", type_url)


def register_angle(group: str, label: str, event_key: str) -> None:
    if not _KEY_RE.match(event_key):
        raise ValueError(f"Invalid event key '{event_key}'")
    angles = QUERY_ANGLES.setdefault(group, [])
    if any(existing == label for existing, _ in angles):
        return
    angles.append((label, event_key))


def plan_queries(
    address: str,
    groups: Iterable[str] = DEFAULT_GROUPS,
    extra_conditions: Iterable[str] = (),
) -> list[QuerySpec]:
    extra = tuple(extra_conditions)
    specs: list[QuerySpec] = []
    seen: set[str] = set()

    for group in groups:
        if group not in QUERY_ANGLES:
            raise ValueError(
                f"Unknown query group '{group}'. Known: {', '.join(sorted(QUERY_ANGLES))}"
            )
        for label, event_key in QUERY_ANGLES[group]:
            if label in seen:
                continue
            seen.add(label)
            specs.append(
                QuerySpec(label=label, conditions=(condition(event_key, "=", address),) + extra)
            )

    return specs
