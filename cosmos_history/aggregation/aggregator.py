"""
Fan-out of AND-only queries and hash-deduplicated merging of their results.

Each query's pages are merged as they arrive through a single merge point
(``_Merger.merge``). The merge runs on the event loop without awaiting, so
concurrent queries never interleave inside it. A failing, cancelled or timed
out query only affects its own outcome; whatever was merged stays merged.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Protocol

from cosmos_history.aggregation.transaction_set import TransactionSet
from cosmos_history.cache.manager import DecodedTransactionCache
from cosmos_history.decoders.transaction import decode_transaction, record_hash
from cosmos_history.errors import IndexingUnavailable, ServiceError
from cosmos_history.fetchers.executor import PageSink
from cosmos_history.models.query import (
    FetchResult,
    Order,
    ProbeResult,
    QueryOutcome,
    QueryResult,
    QuerySpec,
)

logger = logging.getLogger(__name__)


class Executor(Protocol):
    async def execute(
        self,
        spec: QuerySpec,
        page_size: int | None = None,
        order: Order | None = None,
        *,
        max_records: int | None = None,
        on_page: PageSink | None = None,
    ) -> QueryResult: ...


class _Merger:
    def __init__(
        self,
        transactions: TransactionSet,
        cache: DecodedTransactionCache | None,
        base64_attributes: bool | None,
    ) -> None:
        self.transactions = transactions
        self.cache = cache
        self.base64_attributes = base64_attributes

    def merge(self, records: list[dict[str, Any]], counts: dict[str, int]) -> None:
        for raw in records:
            counts["fetched"] += 1
            tx_hash = record_hash(raw)
            if not tx_hash:
                logger.debug("Dropping record without a hash: keys=%s", sorted(raw))
                continue
            if tx_hash in self.transactions:
                continue

            tx = (
                self.cache.get(tx_hash, self.base64_attributes) if self.cache is not None else None
            )
            if tx is None:
                tx = decode_transaction(raw, base64_attributes=self.base64_attributes)
                if self.cache is not None:
                    self.cache.set(tx, self.base64_attributes)
            if self.transactions.add(tx):
                counts["added"] += 1


def merge_records(
    transactions: TransactionSet,
    records: Iterable[dict[str, Any]],
    *,
    base64_attributes: bool | None = None,
) -> int:
    """Merge raw records into ``transactions``; returns how many were new."""
    counts = {"fetched": 0, "added": 0}
    _Merger(transactions, None, base64_attributes).merge(list(records), counts)
    return counts["added"]


async def _run_query(
    spec: QuerySpec,
    executor: Executor,
    merger: _Merger,
    counts: dict[str, int],
    page_size: int | None,
    order: Order | None,
) -> QueryOutcome:
    def _outcome(status: str, pages: int = 0, error: str | None = None) -> QueryOutcome:
        return QueryOutcome(
            label=spec.label,
            expression=spec.expression,
            status=status,
            records_fetched=counts["fetched"],
            new_transactions=counts["added"],
            pages=pages,
            error=error,
        )

    try:
        result = await executor.execute(
            spec, page_size, order, on_page=lambda records: merger.merge(records, counts)
        )
    except IndexingUnavailable as exc:
        logger.warning("Query [%s] skipped, indexing unavailable: %s", spec.label, exc)
        return _outcome("unavailable", error=str(exc))
    except ServiceError as exc:
        logger.warning("Query [%s] rejected by the node: %s", spec.label, exc)
        return _outcome("rejected", error=str(exc))

    if result.error is None:
        status = "complete"
    elif result.records:
        status = "partial"
    else:
        status = "failed"

    logger.info(
        "Query [%s] %s: %d records, %d new transactions",
        spec.label,
        status,
        counts["fetched"],
        counts["added"],
    )
    return _outcome(status, pages=result.pages, error=result.error)


async def aggregate(
    specs: list[QuerySpec],
    executor: Executor,
    *,
    page_size: int | None = None,
    order: Order | None = None,
    concurrency: int = 1,
    timeout: float | None = None,
    cache: DecodedTransactionCache | None = None,
    base64_attributes: bool | None = None,
    transactions: TransactionSet | None = None,
) -> FetchResult:
    """Run every spec through ``executor`` and merge the union of their results."""
    transactions = TransactionSet() if transactions is None else transactions
    merger = _Merger(transactions, cache, base64_attributes)
    semaphore = asyncio.Semaphore(max(1, concurrency))

    counts = [{"fetched": 0, "added": 0} for _ in specs]
    outcomes: dict[int, QueryOutcome] = {}
    started: set[int] = set()

    async def _worker(index: int, spec: QuerySpec) -> None:
        async with semaphore:
            started.add(index)
            outcomes[index] = await _run_query(
                spec, executor, merger, counts[index], page_size, order
            )

    tasks = [asyncio.create_task(_worker(i, spec)) for i, spec in enumerate(specs)]
    try:
        if tasks:
            _, pending = await asyncio.wait(tasks, timeout=timeout)
            if pending:
                logger.warning(
                    "Fetch deadline of %ss reached, cancelling %d queries", timeout, len(pending)
                )
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
    finally:
        # reached with live tasks only when the caller cancels aggregate itself
        leftover = [task for task in tasks if not task.done()]
        for task in leftover:
            task.cancel()
        if leftover:
            await asyncio.shield(asyncio.gather(*leftover, return_exceptions=True))

    for i, task in enumerate(tasks):
        if i in outcomes:
            continue
        exc = None if task.cancelled() else task.exception()
        if exc is not None:
            logger.error("Query [%s] crashed: %s", specs[i].label, exc)
            status, error = "failed", str(exc)
        elif i in started:
            status, error = "cancelled", "cancelled before completion"
        else:
            status, error = "skipped", "not started before the deadline"
        outcomes[i] = QueryOutcome(
            label=specs[i].label,
            expression=specs[i].expression,
            status=status,
            records_fetched=counts[i]["fetched"],
            new_transactions=counts[i]["added"],
            error=error,
        )

    result = FetchResult(
        transactions=transactions, outcomes=[outcomes[i] for i in range(len(specs))]
    )
    logger.info(
        "Fetched %d unique transactions from %d queries (%d failed, %d skipped)",
        len(transactions),
        len(specs),
        len(result.failed_queries),
        len(result.skipped_queries),
    )
    return result


async def probe_queries(specs: list[QuerySpec], executor: Any) -> list[ProbeResult]:
    """Check which query angles the node accepts, one single-record request each."""
    results = []
    for spec in specs:
        probe = await executor.probe(spec)
        logger.info(
            "Probe [%s]: %s (total=%s)",
            spec.label,
            "supported" if probe.supported else "unsupported",
            probe.total_count,
        )
        results.append(probe)
    return results
