from __future__ import annotations

from cosmos_history.classifiers.transfer_classifier import (
    classify_message,
    extract_transfers,
    message_fields,
    message_type,
)
from cosmos_history.models.transaction import CanonicalTransaction
from cosmos_history.models.transfer import Involvement, Role

# message type name fragment -> (field holding the account, role)
_ROLE_FIELDS: tuple[tuple[str, str, Role], ...] = (
    ("MsgDelegate", "delegator_address", "delegator"),
    ("MsgUndelegate", "delegator_address", "delegator"),
    ("MsgBeginRedelegate", "delegator_address", "delegator"),
    ("MsgWithdrawDelegatorReward", "delegator_address", "delegator"),
    ("MsgVote", "voter", "voter"),
    ("MsgDeposit", "depositor", "depositor"),
)


def analyze_involvement(tx: CanonicalTransaction, account: str) -> Involvement:
    roles: list[Role] = []

    def _add(role: Role) -> None:
        if role not in roles:
            roles.append(role)

    for msg in tx.messages:
        kind = classify_message(msg)
        fields = message_fields(msg)
        type_tag = message_type(msg)

        if kind == "bank_send":
            if (fields.get("from_address") or fields.get("sender")) == account:
                _add("sender")
            if (fields.get("to_address") or fields.get("receiver")) == account:
                _add("receiver")
        elif kind == "ibc_transfer":
            if fields.get("sender") == account:
                _add("ibc_sender")
            if fields.get("receiver") == account:
                _add("ibc_receiver")

        for fragment, field, role in _ROLE_FIELDS:
            if fragment in type_tag and fields.get(field) == account:
                _add(role)

    for event in tx.events:
        if event.type != "transfer":
            continue
        for attr in event.attributes:
            if attr.key == "sender" and attr.value == account:
                _add("event_sender")
            elif attr.key == "recipient" and attr.value == account:
                _add("event_recipient")

    transfers = extract_transfers(tx, account)
    return Involvement(involved=bool(roles or transfers), roles=roles, transfers=transfers)
