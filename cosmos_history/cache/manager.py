import time
from collections import OrderedDict

from cosmos_history.models.transaction import CanonicalTransaction

DEFAULT_TTL = 300  # 5 minutes
MAX_ENTRIES = 1000


class _CacheEntry:
    __slots__ = ("data", "expires_at")

    def __init__(self, data: CanonicalTransaction, ttl: float):
        self.data = data
        self.expires_at = time.monotonic() + ttl


class DecodedTransactionCache:
    """LRU + TTL cache of decoded transactions.

    Entries are keyed by hash and by the attribute decoding policy they were
    decoded under, so a transaction decoded with one ``base64_attributes``
    setting is never served to a fetch using another. Passed explicitly to
    ``aggregate`` so repeated fetches of the same account skip re-decoding.
    """

    def __init__(self, max_entries: int = MAX_ENTRIES, ttl: float = DEFAULT_TTL):
        self._store: OrderedDict[str, _CacheEntry] = OrderedDict()
        self._max_entries = max_entries
        self._ttl = ttl

    @staticmethod
    def _key(tx_hash: str, base64_attributes: bool | None = None) -> str:
        policy = "auto" if base64_attributes is None else str(base64_attributes).lower()
        return f"{policy}:{tx_hash}"

    def get(
        self, tx_hash: str, base64_attributes: bool | None = None
    ) -> CanonicalTransaction | None:
        key = self._key(tx_hash, base64_attributes)
        entry = self._store.get(key)
        if entry is None:
            return None

        if time.monotonic() > entry.expires_at:
            del self._store[key]
            return None

        self._store.move_to_end(key)
        return entry.data

    def set(
        self,
        tx: CanonicalTransaction,
        base64_attributes: bool | None = None,
        ttl: float | None = None,
    ) -> None:
        key = self._key(tx.hash, base64_attributes)
        if key in self._store:
            del self._store[key]

        self._store[key] = _CacheEntry(tx, self._ttl if ttl is None else ttl)

        while len(self._store) > self._max_entries:
            self._store.popitem(last=False)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
