from __future__ import annotations

from typing import Iterator

from cosmos_history.models.transaction import CanonicalTransaction


class TransactionSet:
    """Hash-keyed transaction map. The first transaction seen for a hash wins."""

    def __init__(self) -> None:
        self._store: dict[str, CanonicalTransaction] = {}

    def add(self, tx: CanonicalTransaction) -> bool:
        if tx.hash in self._store:
            return False
        self._store[tx.hash] = tx
        return True

    def get(self, tx_hash: str) -> CanonicalTransaction | None:
        return self._store.get(tx_hash)

    def sorted_by_height(self) -> list[CanonicalTransaction]:
        return sorted(self._store.values(), key=lambda tx: (-tx.height, tx.hash))

    def hashes(self) -> set[str]:
        return set(self._store)

    def __contains__(self, tx_hash: object) -> bool:
        return tx_hash in self._store

    def __len__(self) -> int:
        return len(self._store)

    def __iter__(self) -> Iterator[CanonicalTransaction]:
        return iter(self._store.values())
