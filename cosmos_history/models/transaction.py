from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, computed_field


class Coin(BaseModel):
    model_config = ConfigDict(frozen=True)

    denom: str
    amount: str


class Attribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    value: str | None = None
    index: bool | None = None


class Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    attributes: list[Attribute] = []

    def get(self, key: str) -> str | None:
        for attr in self.attributes:
            if attr.key == key:
                return attr.value
        return None


class CanonicalTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    hash: str
    height: int = 0
    timestamp: str | None = None
    code: int = 0
    messages: list[dict[str, Any]] = []
    events: list[Event] = []
    fee: dict[str, Any] | None = None
    memo: str = ""
    gas_used: int | None = None
    gas_wanted: int | None = None
    payload: Any = None

    @computed_field
    @property
    def success(self) -> bool:
        return self.code == 0
