"""
Response envelope classification for tx_search and the REST gateway.

Nodes disagree on the envelope: most wrap records under ``result``, some
return them as top-level siblings, the REST gateway uses ``tx_responses``,
and errors come back either as a JSON-RPC ``error`` object or as a gRPC
gateway ``{code, message}`` body. ``classify_envelope`` decides the shape
once; ``normalize_envelope`` consumes the variant.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Union

from cosmos_history.errors import IndexingUnavailable, QuerySyntaxError, ServiceError
from cosmos_history.models.query import Page

logger = logging.getLogger(__name__)

# an unavailability marker only counts when the message is about the indexer
_UNAVAILABLE_MARKERS = ("disabled", "not available", "unavailable", "not enabled")
_SYNTAX_MARKERS = ("failed to parse", "parse error", "syntax", "invalid query", "unexpected token")


@dataclass(frozen=True)
class WrappedEnvelope:
    txs: list
    total_count: int | None


@dataclass(frozen=True)
class UnwrappedEnvelope:
    txs: list
    total_count: int | None


@dataclass(frozen=True)
class RestEnvelope:
    txs: list
    total_count: int | None
    next_key: str | None


@dataclass(frozen=True)
class ErrorEnvelope:
    message: str
    data: Any = None
    code: Any = None


@dataclass(frozen=True)
class UnknownEnvelope:
    keys: tuple[str, ...] = ()


Envelope = Union[WrappedEnvelope, UnwrappedEnvelope, RestEnvelope, ErrorEnvelope, UnknownEnvelope]


def _parse_count(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _tx_list(value: Any) -> list:
    return [tx for tx in value if isinstance(tx, dict)] if isinstance(value, list) else []


def classify_envelope(payload: Any) -> Envelope:
    if not isinstance(payload, dict):
        return UnknownEnvelope(keys=())

    error = payload.get("error")
    if isinstance(error, dict):
        return ErrorEnvelope(
            message=str(error.get("message") or "unknown error"),
            data=error.get("data") or error.get("detail"),
            code=error.get("code"),
        )
    if isinstance(error, str) and error:
        return ErrorEnvelope(message=error)

    result = payload.get("result")
    if isinstance(result, dict) and ("txs" in result or "total_count" in result):
        return WrappedEnvelope(
            txs=_tx_list(result.get("txs")),
            total_count=_parse_count(result.get("total_count")),
        )

    if "txs" in payload and "tx_responses" not in payload:
        return UnwrappedEnvelope(
            txs=_tx_list(payload.get("txs")),
            total_count=_parse_count(payload.get("total_count")),
        )

    if "tx_responses" in payload:
        pagination = payload.get("pagination") or {}
        return RestEnvelope(
            txs=_tx_list(payload.get("tx_responses")),
            total_count=_parse_count(pagination.get("total") or payload.get("total")),
            next_key=pagination.get("next_key") or None,
        )

    # gRPC gateway error: {"code": 3, "message": "...", "details": []}
    code = payload.get("code")
    if isinstance(code, int) and code != 0 and "message" in payload:
        return ErrorEnvelope(
            message=str(payload.get("message") or "unknown error"),
            data=payload.get("details") or None,
            code=code,
        )

    return UnknownEnvelope(keys=tuple(sorted(payload.keys())))


def service_error(envelope: ErrorEnvelope) -> ServiceError:
    text = f"{envelope.message} {envelope.data or ''}".lower()
    if "index" in text and any(marker in text for marker in _UNAVAILABLE_MARKERS):
        return IndexingUnavailable(envelope.message, envelope.data, envelope.code)
    if any(marker in text for marker in _SYNTAX_MARKERS):
        return QuerySyntaxError(envelope.message, envelope.data, envelope.code)
    return ServiceError(envelope.message, envelope.data, envelope.code)


def normalize_envelope(envelope: Envelope) -> Page:
    if isinstance(envelope, (WrappedEnvelope, UnwrappedEnvelope)):
        return Page(records=list(envelope.txs), total_count=envelope.total_count)
    if isinstance(envelope, RestEnvelope):
        return Page(
            records=list(envelope.txs),
            total_count=envelope.total_count,
            next_key=envelope.next_key,
        )
    if isinstance(envelope, ErrorEnvelope):
        raise service_error(envelope)
    if isinstance(envelope, UnknownEnvelope):
        logger.warning("Unrecognized response envelope with keys %s", list(envelope.keys))
        return Page(recognized=False)
    raise TypeError(f"Not an envelope: {envelope!r}")


def normalize(payload: Any) -> Page:
    return normalize_envelope(classify_envelope(payload))
