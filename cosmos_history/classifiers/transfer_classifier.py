"""
Transfer extraction relative to a target account.

Messages are dispatched on their normalized type name, since the same
operation appears under different type URLs across module versions and
chains (``/cosmos.bank.v1beta1.MsgSend``, ``cosmos-sdk/MsgSend``). Events are
scanned afterwards to pick up movements not expressed as a top-level message.
"""

from __future__ import annotations

import re
from typing import Any, Callable

from cosmos_history.classifiers.amounts import coerce_coins, parse_amount
from cosmos_history.models.transaction import CanonicalTransaction
from cosmos_history.models.transfer import Direction, Transfer

IBC_PLACEHOLDER = "ibc-destination"
MULTIPLE = "multiple"
UNKNOWN_PARTY = "unknown"
UNKNOWN_KIND = "unknown"

# normalized type name -> message kind
MESSAGE_KINDS: dict[str, str] = {
    "MsgSend": "bank_send",
    "MsgMultiSend": "multisend",
    "MsgTransfer": "ibc_transfer",
}

# fallback hints matched against the full type tag, in order
_MODULE_HINTS: tuple[tuple[str, str], ...] = (
    ("MultiSend", "multisend"),
    ("MsgSend", "bank_send"),
    ("MsgTransfer", "ibc_transfer"),
    ("bank", "bank_send"),
    ("ibc", "ibc_transfer"),
)

_TYPE_SPLIT_RE = re.compile(r"[./]")


def message_type(msg: dict[str, Any]) -> str:
    return str(msg.get("@type") or msg.get("type") or "unknown")


def message_fields(msg: dict[str, Any]) -> dict[str, Any]:
    """Unwrap legacy amino messages shaped as ``{"type": ..., "value": {...}}``."""
    if "@type" not in msg and isinstance(msg.get("value"), dict) and "type" in msg:
        return msg["value"]
    return msg


def classify_message(msg: dict[str, Any]) -> str:
    type_tag = message_type(msg)
    name = _TYPE_SPLIT_RE.split(type_tag)[-1]
    if name in MESSAGE_KINDS:
        return MESSAGE_KINDS[name]
    for hint, kind in _MODULE_HINTS:
        if hint in type_tag:
            return kind
    return UNKNOWN_KIND


def _direction(sender: str | None, recipient: str | None, account: str) -> Direction:
    if sender == account:
        return "sent"
    if recipient == account:
        return "received"
    return "related"


def _bank_send(fields: dict[str, Any], account: str) -> list[Transfer]:
    sender = fields.get("from_address") or fields.get("sender") or fields.get("from")
    recipient = fields.get("to_address") or fields.get("receiver") or fields.get("to")
    if not sender or not recipient:
        return []

    amount = fields.get("amount")
    if amount is None and not isinstance(fields.get("value"), dict):
        amount = fields.get("value")

    return [
        Transfer(
            kind="bank_send",
            from_=str(sender),
            to=str(recipient),
            amount=coerce_coins(amount),
            direction=_direction(sender, recipient, account),
        )
    ]


def _ibc_transfer(fields: dict[str, Any], account: str) -> list[Transfer]:
    sender = fields.get("sender") or fields.get("from_address")
    receiver = fields.get("receiver") or fields.get("to_address")
    if not sender:
        return []

    token = fields.get("token") or {"denom": fields.get("denom"), "amount": fields.get("amount")}
    channel = fields.get("source_channel") or fields.get("sourceChannel")

    return [
        Transfer(
            kind="ibc_transfer",
            from_=str(sender),
            to=str(receiver) if receiver else IBC_PLACEHOLDER,
            amount=coerce_coins(token),
            direction=_direction(sender, receiver, account),
            source_channel=str(channel) if channel else None,
        )
    ]


def _multisend(fields: dict[str, Any], account: str) -> list[Transfer]:
    transfers: list[Transfer] = []

    for entry in fields.get("inputs") or []:
        if isinstance(entry, dict) and entry.get("address") == account:
            transfers.append(
                Transfer(
                    kind="multisend_input",
                    from_=account,
                    to=MULTIPLE,
                    amount=coerce_coins(entry.get("coins") or entry.get("amount")),
                    direction="sent",
                )
            )

    for entry in fields.get("outputs") or []:
        if isinstance(entry, dict) and entry.get("address") == account:
            transfers.append(
                Transfer(
                    kind="multisend_output",
                    from_=MULTIPLE,
                    to=account,
                    amount=coerce_coins(entry.get("coins") or entry.get("amount")),
                    direction="received",
                )
            )

    return transfers


MessageHandler = Callable[[dict[str, Any], str], list[Transfer]]

_HANDLERS: dict[str, MessageHandler] = {
    "bank_send": _bank_send,
    "ibc_transfer": _ibc_transfer,
    "multisend": _multisend,
}


def transfers_from_messages(tx: CanonicalTransaction, account: str) -> list[Transfer]:
    transfers: list[Transfer] = []
    for msg in tx.messages:
        handler = _HANDLERS.get(classify_message(msg))
        if handler is not None:
            transfers.extend(handler(message_fields(msg), account))
    return transfers


def transfers_from_events(
    tx: CanonicalTransaction, account: str, message_transfers: list[Transfer]
) -> list[Transfer]:
    seen = {(t.from_, t.to, tuple(t.amount)) for t in message_transfers}
    transfers: list[Transfer] = []

    for event in tx.events:
        if event.type == "transfer":
            sender = event.get("sender")
            recipient = event.get("recipient")
            amount = event.get("amount")
            if not (sender and recipient and amount):
                continue
            coins = parse_amount(amount)
            if (sender, recipient, tuple(coins)) in seen:
                continue
            transfers.append(
                Transfer(
                    kind="transfer_event",
                    from_=sender,
                    to=recipient,
                    amount=coins,
                    direction=_direction(sender, recipient, account),
                )
            )

        elif event.type == "coin_spent":
            spender = event.get("spender")
            amount = event.get("amount")
            if spender == account and amount:
                transfers.append(
                    Transfer(
                        kind="coin_spent",
                        from_=spender,
                        to=UNKNOWN_PARTY,
                        amount=parse_amount(amount),
                        direction="sent",
                    )
                )

        elif event.type == "coin_received":
            receiver = event.get("receiver")
            amount = event.get("amount")
            if receiver == account and amount:
                transfers.append(
                    Transfer(
                        kind="coin_received",
                        from_=UNKNOWN_PARTY,
                        to=receiver,
                        amount=parse_amount(amount),
                        direction="received",
                    )
                )

    return transfers


def extract_transfers(tx: CanonicalTransaction, account: str) -> list[Transfer]:
    message_transfers = transfers_from_messages(tx, account)
    return message_transfers + transfers_from_events(tx, account, message_transfers)
