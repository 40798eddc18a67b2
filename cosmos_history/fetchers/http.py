from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from cosmos_history.errors import NetworkError
from cosmos_history.fetchers.envelope import ErrorEnvelope, classify_envelope

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Accept": "application/json"}


def _error_body(resp: httpx.Response) -> Any | None:
    """Return the JSON body of a non-2xx response if it is a service error envelope."""
    try:
        body = resp.json()
    except ValueError:
        return None
    return body if isinstance(classify_envelope(body), ErrorEnvelope) else None


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    params: dict[str, Any] | None = None,
    *,
    max_retries: int = 3,
    retry_delay: float = 1.0,
) -> Any:
    """GET ``url`` and decode JSON, retrying transport failures.

    Timeouts, connection errors, non-JSON bodies and non-2xx responses are
    retried up to ``max_retries`` attempts with a ``retry_delay * attempt``
    pause. A non-2xx response carrying a service error envelope is returned
    as-is so the caller can surface it without retrying.
    """
    attempts = max(1, max_retries)
    last_error: Exception | None = None

    for attempt in range(1, attempts + 1):
        try:
            resp = await client.get(url, params=params, headers=DEFAULT_HEADERS)
            if resp.is_success:
                return resp.json()
            body = _error_body(resp)
            if body is not None:
                return body
            resp.raise_for_status()
        except (httpx.HTTPError, ValueError) as exc:
            last_error = exc
            logger.warning(
                "Attempt %d/%d failed for %s: %s",
                attempt,
                attempts,
                url,
                exc.__class__.__name__ if isinstance(exc, httpx.TimeoutException) else exc,
            )
            if attempt < attempts:
                await asyncio.sleep(retry_delay * attempt)

    raise NetworkError(f"GET {url} failed after {attempts} attempts: {last_error}") from last_error
