import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request

from cosmos_history.aggregation.aggregator import aggregate, probe_queries
from cosmos_history.cache.manager import DecodedTransactionCache
from cosmos_history.classifiers import analyze_involvement
from cosmos_history.config import settings
from cosmos_history.decoders.transaction import decode_transaction
from cosmos_history.errors import NetworkError, ServiceError
from cosmos_history.fetchers import build_executor
from cosmos_history.fetchers.rest_fetcher import RestQueryExecutor
from cosmos_history.fetchers.rpc_fetcher import TxSearchExecutor
from cosmos_history.queries.planner import height_range, message_action, plan_queries
from cosmos_history.report.document import build_report
from cosmos_history.validation.input import (
    validate_address,
    validate_backend,
    validate_groups,
    validate_order,
    validate_tx_hash,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("cosmos_history.main")

app = FastAPI(title="Cosmos Account History API", version="0.1.0")

decoded_cache = DecodedTransactionCache(
    max_entries=settings.cache_max_entries, ttl=settings.cache_ttl
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("INCOMING REQUEST: %s %s?%s", request.method, request.url.path, request.url.query)
    response = await call_next(request)
    logger.info(
        "RESPONSE: %s %s -> %s",
        request.method,
        request.url.path,
        response.status_code,
    )
    return response


def _extra_conditions(
    min_height: Optional[int], max_height: Optional[int], action: Optional[str]
) -> list[str]:
    try:
        conditions = height_range(min_height, max_height)
        if action:
            conditions.append(message_action(action))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return conditions


def _plan(address: str, groups: list[str], extra: Optional[list[str]] = None) -> list:
    try:
        return plan_queries(address, groups, extra or ())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.get("/v1/history/{address}")
async def account_history(
    address: str,
    groups: str = Query(default=",".join(settings.query_groups)),
    order: str = Query(default=settings.order_by),
    backend: str = Query(default="rpc"),
    concurrency: int = Query(default=settings.query_concurrency, ge=1, le=8),
    timeout: Optional[float] = Query(default=settings.fetch_timeout, gt=0),
    min_height: Optional[int] = Query(default=None, ge=1),
    max_height: Optional[int] = Query(default=None, ge=1),
    action: Optional[str] = None,
):
    address = validate_address(address)
    group_names = validate_groups(groups)
    order = validate_order(order)
    backend = validate_backend(backend)

    specs = _plan(address, group_names, _extra_conditions(min_height, max_height, action))
    logger.info(
        "HISTORY: %s via %s, %d queries (%s)", address, backend, len(specs), ", ".join(group_names)
    )

    result = await aggregate(
        specs,
        build_executor(backend),
        order=order,
        concurrency=concurrency,
        timeout=timeout,
        cache=decoded_cache,
        base64_attributes=settings.base64_attributes,
    )

    if specs and len(result.failed_queries) == len(specs):
        logger.error("All %d queries failed for %s", len(specs), address)

    return build_report(result, address)


@app.get("/v1/tx/{tx_hash}")
async def transaction_detail(tx_hash: str, address: Optional[str] = None):
    tx_hash = validate_tx_hash(tx_hash)
    account = validate_address(address) if address else None

    try:
        raw = await RestQueryExecutor().fetch_transaction_by_hash(tx_hash)
    except NetworkError:
        raise HTTPException(status_code=504, detail="REST request failed")
    except ServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc))

    if raw is None:
        raise HTTPException(status_code=404, detail="Transaction not found")

    tx = decode_transaction(raw, base64_attributes=settings.base64_attributes)
    body = {"transaction": tx.model_dump(mode="json")}
    if account:
        body["involvement"] = analyze_involvement(tx, account).model_dump(mode="json")
    return body


@app.get("/v1/indexing")
async def indexing_status():
    status = await TxSearchExecutor().check_indexing_status()
    return status.model_dump(mode="json")


@app.post("/v1/probe/{address}")
async def probe_account_queries(
    address: str,
    groups: str = Query(default="core,ibc,staking,governance"),
    backend: str = Query(default="rpc"),
):
    address = validate_address(address)
    specs = _plan(address, validate_groups(groups))
    probes = await probe_queries(specs, build_executor(validate_backend(backend)))
    return {
        "address": address,
        "supported": sum(1 for p in probes if p.supported),
        "queries": [p.model_dump(mode="json") for p in probes],
    }
