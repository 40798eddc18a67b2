from __future__ import annotations

from typing import Any


class QueryError(Exception):
    """Base class for failures while querying the indexing service."""


class NetworkError(QueryError):
    """Timeout, connection failure or non-2xx transport response. Retryable."""


class ServiceError(QueryError):
    """The service answered with a structured error object. Never retried."""

    def __init__(self, message: str, data: Any = None, code: Any = None):
        super().__init__(message)
        self.message = message
        self.data = data
        self.code = code

    def __str__(self) -> str:
        if self.data:
            return f"{self.message}: {self.data}"
        return self.message


class IndexingUnavailable(ServiceError):
    """The node has transaction indexing disabled."""


class QuerySyntaxError(ServiceError):
    """The node rejected the query expression."""
