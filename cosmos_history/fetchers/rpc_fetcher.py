from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from cosmos_history.config import settings
from cosmos_history.errors import IndexingUnavailable, NetworkError, ServiceError
from cosmos_history.fetchers.executor import QueryExecutor
from cosmos_history.fetchers.http import get_json
from cosmos_history.models.query import IndexingStatus, Page, PageCursor, QuerySpec
from cosmos_history.queries.planner import condition

logger = logging.getLogger(__name__)

# CometBFT rejects or silently caps larger pages
MAX_PER_PAGE = 100


def build_tx_search_url(rpc_url: str, expression: str, cursor: PageCursor) -> str:
    # The whole expression is double-quoted at the URL level; values inside use single quotes.
    query = quote(expression, safe="")
    return (
        f'{rpc_url}/tx_search?query="{query}"&prove=false'
        f'&page={cursor.page}&per_page={cursor.per_page}&order_by="{cursor.order}"'
    )


class TxSearchExecutor(QueryExecutor):
    """Pages through the CometBFT ``tx_search`` RPC endpoint."""

    max_page_size = MAX_PER_PAGE

    def __init__(self, rpc_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(rpc_url or settings.rpc_url, **kwargs)

    def build_request(
        self, spec: QuerySpec, cursor: PageCursor, page_key: str | None
    ) -> tuple[str, dict[str, Any] | None]:
        return build_tx_search_url(self.base_url, spec.expression, cursor), None

    def has_more(self, page: Page, cursor: PageCursor, fetched: int) -> bool:
        # a reported total decides; per_page may be capped below the request
        if page.total_count is not None:
            return fetched < page.total_count
        return len(page.records) >= cursor.per_page

    async def check_indexing_status(self) -> IndexingStatus:
        """Read ``/status`` and run a ``tx.height`` probe against the latest block."""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                status = await get_json(
                    client,
                    f"{self.base_url}/status",
                    max_retries=self.max_retries,
                    retry_delay=self.retry_delay,
                )
            except NetworkError as exc:
                logger.error("Node status check failed: %s", exc)
                return IndexingStatus(enabled=None, detail=str(exc))

            result = status.get("result", status) if isinstance(status, dict) else {}
            network = (result.get("node_info") or {}).get("network")
            height_raw = (result.get("sync_info") or {}).get("latest_block_height")
            try:
                latest_height = int(height_raw) if height_raw is not None else None
            except (TypeError, ValueError):
                latest_height = None

            logger.info("Node is running: network=%s latest_height=%s", network, latest_height)
            if latest_height is None:
                return IndexingStatus(network=network, detail="latest block height not reported")

            spec = QuerySpec(label="height_probe", conditions=(condition("tx.height", "=", latest_height),))
            cursor = PageCursor(page=1, per_page=1, order=self.order)
            try:
                page = await self.fetch_page(client, spec, cursor)
            except IndexingUnavailable as exc:
                logger.warning("Transaction indexing is DISABLED on %s", self.base_url)
                return IndexingStatus(
                    enabled=False, network=network, latest_height=latest_height, detail=str(exc)
                )
            except (ServiceError, NetworkError) as exc:
                logger.warning("Indexing status uncertain: %s", exc)
                return IndexingStatus(
                    network=network, latest_height=latest_height, detail=str(exc)
                )

        if not page.recognized:
            return IndexingStatus(
                network=network, latest_height=latest_height, detail="unrecognized response envelope"
            )
        return IndexingStatus(enabled=True, network=network, latest_height=latest_height)
