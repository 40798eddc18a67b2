from __future__ import annotations

import logging
from typing import Any

import httpx

from cosmos_history.config import settings
from cosmos_history.errors import NetworkError
from cosmos_history.fetchers.envelope import ErrorEnvelope, classify_envelope, service_error
from cosmos_history.fetchers.executor import QueryExecutor
from cosmos_history.fetchers.http import get_json
from cosmos_history.models.query import Page, PageCursor, QuerySpec

logger = logging.getLogger(__name__)

TXS_PATH = "/cosmos/tx/v1beta1/txs"

_ORDER_BY = {"asc": "ORDER_BY_ASC", "desc": "ORDER_BY_DESC"}


class RestQueryExecutor(QueryExecutor):
    """Pages through the Cosmos SDK REST gateway using ``pagination.next_key``."""

    def __init__(self, rest_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(rest_url or settings.rest_url, **kwargs)

    def build_request(
        self, spec: QuerySpec, cursor: PageCursor, page_key: str | None
    ) -> tuple[str, dict[str, Any] | None]:
        params: dict[str, Any] = {
            "events": spec.expression,
            "pagination.limit": str(cursor.per_page),
            "order_by": _ORDER_BY[cursor.order],
        }
        if page_key:
            params["pagination.key"] = page_key
        return f"{self.base_url}{TXS_PATH}", params

    def has_more(self, page: Page, cursor: PageCursor, fetched: int) -> bool:
        return bool(page.next_key)

    async def fetch_transaction_by_hash(self, tx_hash: str) -> dict[str, Any] | None:
        url = f"{self.base_url}{TXS_PATH}/{tx_hash}"
        logger.info("REST: fetching tx %s...", tx_hash[:12])

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            data = await get_json(
                client, url, max_retries=self.max_retries, retry_delay=self.retry_delay
            )

        if not isinstance(data, dict):
            raise NetworkError(f"GET {url} returned a non-object body")

        envelope = classify_envelope(data)
        if isinstance(envelope, ErrorEnvelope):
            if "not found" in envelope.message.lower():
                return None
            raise service_error(envelope)

        if isinstance(data.get("tx_response"), dict):
            return data["tx_response"]
        if isinstance(data.get("tx"), dict):
            return data["tx"]

        logger.warning("REST: transaction %s... not found or unexpected format", tx_hash[:12])
        return None
