from __future__ import annotations

from pydantic import BaseModel


class TxRef(BaseModel):
    hash: str
    height: int


class Summary(BaseModel):
    address: str
    total_transactions: int = 0
    successful_txs: int = 0
    failed_txs: int = 0
    sent_transfers: int = 0
    received_transfers: int = 0
    total_involved: int = 0
    as_sender: int = 0
    as_receiver: int = 0
    ibc_transfers: int = 0
    delegations: int = 0
    message_types: dict[str, int] = {}
    event_types: dict[str, int] = {}
    first_tx: TxRef | None = None
    last_tx: TxRef | None = None
