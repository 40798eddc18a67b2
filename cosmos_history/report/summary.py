from __future__ import annotations

from collections import Counter
from typing import Iterable

from cosmos_history.classifiers import analyze_involvement, count_directions
from cosmos_history.classifiers.transfer_classifier import message_type
from cosmos_history.models.summary import Summary, TxRef
from cosmos_history.models.transaction import CanonicalTransaction


def summarize(transactions: Iterable[CanonicalTransaction], account: str) -> Summary:
    ordered = sorted(transactions, key=lambda tx: (-tx.height, tx.hash))

    message_types: Counter[str] = Counter()
    event_types: Counter[str] = Counter()
    successful = failed = sent = received = ibc = delegations = 0
    involved = as_sender = as_receiver = 0
    first: CanonicalTransaction | None = None
    last: CanonicalTransaction | None = None

    for tx in ordered:
        if tx.success:
            successful += 1
        else:
            failed += 1

        message_types.update(message_type(msg) for msg in tx.messages)
        event_types.update(event.type for event in tx.events)

        involvement = analyze_involvement(tx, account)
        tx_sent, tx_received = count_directions(involvement.transfers)
        sent += tx_sent
        received += tx_received
        roles = set(involvement.roles)
        if involvement.involved:
            involved += 1
        if roles & {"sender", "ibc_sender"}:
            as_sender += 1
        if roles & {"receiver", "ibc_receiver"}:
            as_receiver += 1
        if roles & {"ibc_sender", "ibc_receiver"}:
            ibc += 1
        if "delegator" in roles:
            delegations += 1

        if first is None or tx.height < first.height:
            first = tx
        if last is None or tx.height > last.height:
            last = tx

    return Summary(
        address=account,
        total_transactions=len(ordered),
        successful_txs=successful,
        failed_txs=failed,
        sent_transfers=sent,
        received_transfers=received,
        total_involved=involved,
        as_sender=as_sender,
        as_receiver=as_receiver,
        ibc_transfers=ibc,
        delegations=delegations,
        message_types=dict(sorted(message_types.items())),
        event_types=dict(sorted(event_types.items())),
        first_tx=TxRef(hash=first.hash, height=first.height) if first else None,
        last_tx=TxRef(hash=last.hash, height=last.height) if last else None,
    )
