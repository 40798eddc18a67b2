from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

from cosmos_history.models.transaction import Coin

TransferKind = Literal[
    "bank_send",
    "ibc_transfer",
    "multisend_input",
    "multisend_output",
    "transfer_event",
    "coin_spent",
    "coin_received",
]

Direction = Literal["sent", "received", "related"]

Role = Literal[
    "sender",
    "receiver",
    "ibc_sender",
    "ibc_receiver",
    "delegator",
    "voter",
    "depositor",
    "event_sender",
    "event_recipient",
]


class Transfer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: TransferKind
    from_: str
    to: str
    amount: list[Coin] = []
    direction: Direction
    source_channel: str | None = None


class Involvement(BaseModel):
    involved: bool = False
    roles: list[Role] = []
    transfers: list[Transfer] = []
