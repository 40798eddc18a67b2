from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

import httpx

from cosmos_history.config import settings
from cosmos_history.errors import NetworkError, ServiceError
from cosmos_history.fetchers.envelope import normalize
from cosmos_history.fetchers.http import get_json
from cosmos_history.models.query import Order, Page, PageCursor, ProbeResult, QueryResult, QuerySpec

logger = logging.getLogger(__name__)

PageSink = Callable[[list[dict[str, Any]]], None]


class QueryExecutor(ABC):
    """Walks every page of one query, sequentially, with retry and rate limiting."""

    # upper bound the service enforces on a page, if any
    max_page_size: int | None = None

    def __init__(
        self,
        base_url: str,
        *,
        page_size: int | None = None,
        order: Order | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        rate_limit_delay: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size or settings.page_size
        self.order: Order = order or settings.order_by
        self.max_retries = settings.max_retries if max_retries is None else max_retries
        self.retry_delay = settings.retry_delay if retry_delay is None else retry_delay
        self.rate_limit_delay = (
            settings.rate_limit_delay if rate_limit_delay is None else rate_limit_delay
        )
        self.timeout = timeout or settings.request_timeout

    @abstractmethod
    def build_request(
        self, spec: QuerySpec, cursor: PageCursor, page_key: str | None
    ) -> tuple[str, dict[str, Any] | None]:
        """Return (url, params) for one page."""

    @abstractmethod
    def has_more(self, page: Page, cursor: PageCursor, fetched: int) -> bool:
        """Decide whether another page should be requested after ``page``."""

    async def fetch_page(
        self,
        client: httpx.AsyncClient,
        spec: QuerySpec,
        cursor: PageCursor,
        page_key: str | None = None,
    ) -> Page:
        url, params = self.build_request(spec, cursor, page_key)
        payload = await get_json(
            client, url, params, max_retries=self.max_retries, retry_delay=self.retry_delay
        )
        return normalize(payload)

    async def execute(
        self,
        spec: QuerySpec,
        page_size: int | None = None,
        order: Order | None = None,
        *,
        max_records: int | None = None,
        on_page: PageSink | None = None,
    ) -> QueryResult:
        per_page = page_size or self.page_size
        if self.max_page_size is not None and per_page > self.max_page_size:
            logger.debug("Clamping page size %d to %d", per_page, self.max_page_size)
            per_page = self.max_page_size
        cursor = PageCursor(page=1, per_page=per_page, order=order or self.order)
        records: list[dict[str, Any]] = []
        total_count: int | None = None
        pages = 0
        page_key: str | None = None

        logger.info("Querying [%s]: %s", spec.label, spec.expression)

        def _result(error: str | None = None) -> QueryResult:
            return QueryResult(
                spec=spec, records=records, pages=pages, total_count=total_count, error=error
            )

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while True:
                try:
                    page = await self.fetch_page(client, spec, cursor, page_key)
                except NetworkError as exc:
                    logger.error(
                        "Failed to fetch page %d of [%s], keeping %d records: %s",
                        cursor.page,
                        spec.label,
                        len(records),
                        exc,
                    )
                    return _result(str(exc))
                except ServiceError as exc:
                    logger.error("Query error on page %d of [%s]: %s", cursor.page, spec.label, exc)
                    if cursor.page == 1:
                        raise
                    return _result(str(exc))

                if not page.recognized:
                    return _result("unrecognized response envelope")
                if page.total_count is not None:
                    total_count = page.total_count
                if not page.records:
                    break

                batch = page.records
                if max_records is not None:
                    batch = batch[: max(0, max_records - len(records))]
                records.extend(batch)
                pages += 1
                if on_page is not None and batch:
                    on_page(batch)

                logger.info(
                    "  Page %d of [%s]: %d transactions (total: %s)",
                    cursor.page,
                    spec.label,
                    len(page.records),
                    total_count if total_count is not None else "?",
                )

                if max_records is not None and len(records) >= max_records:
                    break
                if not self.has_more(page, cursor, len(records)):
                    break

                page_key = page.next_key
                cursor = cursor.advance()
                await asyncio.sleep(self.rate_limit_delay)

        return _result()

    async def probe(self, spec: QuerySpec) -> ProbeResult:
        """Run ``spec`` for a single record to see whether the node accepts it."""
        try:
            result = await self.execute(spec, page_size=1, max_records=1)
        except ServiceError as exc:
            return ProbeResult(
                label=spec.label, expression=spec.expression, supported=False, error=str(exc)
            )
        return ProbeResult(
            label=spec.label,
            expression=spec.expression,
            supported=result.error is None,
            total_count=result.total_count,
            error=result.error,
        )
