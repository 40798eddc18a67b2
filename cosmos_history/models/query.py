from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cosmos_history.aggregation.transaction_set import TransactionSet

Order = Literal["asc", "desc"]

QueryStatus = Literal[
    "complete", "partial", "failed", "unavailable", "rejected", "cancelled", "skipped"
]

_OR_TOKEN_RE = re.compile(r"(^|\s)OR(\s|$)")
# quoted values are literals; an OR inside one is not a disjunction
_QUOTED_RE = re.compile(r"'[^']*'")


class QuerySpec(BaseModel):
    """Conjunctive tx_search query. Conditions are only ever joined with AND."""

    model_config = ConfigDict(frozen=True)

    label: str
    conditions: tuple[str, ...]

    @field_validator("conditions")
    @classmethod
    def _check_conditions(cls, conditions: tuple[str, ...]) -> tuple[str, ...]:
        if not conditions:
            raise ValueError("a query needs at least one condition")
        for cond in conditions:
            if not cond.strip():
                raise ValueError("empty query condition")
            if _OR_TOKEN_RE.search(_QUOTED_RE.sub("''", cond)):
                raise ValueError(f"OR is not supported by the indexer: {cond!r}")
        return conditions

    @property
    def expression(self) -> str:
        return " AND ".join(self.conditions)

    def and_(self, *conditions: str) -> QuerySpec:
        return QuerySpec(label=self.label, conditions=self.conditions + tuple(conditions))


class PageCursor(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=100, ge=1)
    order: Order = "desc"

    def advance(self) -> PageCursor:
        return self.model_copy(update={"page": self.page + 1})


class Page(BaseModel):
    records: list[dict[str, Any]] = []
    total_count: int | None = None
    next_key: str | None = None
    recognized: bool = True


class QueryResult(BaseModel):
    spec: QuerySpec
    records: list[dict[str, Any]] = []
    pages: int = 0
    total_count: int | None = None
    error: str | None = None


class QueryOutcome(BaseModel):
    label: str
    expression: str
    status: QueryStatus
    records_fetched: int = 0
    new_transactions: int = 0
    pages: int = 0
    error: str | None = None


class FetchResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    transactions: TransactionSet
    outcomes: list[QueryOutcome] = []

    def _with_status(self, *statuses: str) -> list[QueryOutcome]:
        return [o for o in self.outcomes if o.status in statuses]

    @property
    def succeeded_queries(self) -> list[QueryOutcome]:
        return self._with_status("complete")

    @property
    def partial_queries(self) -> list[QueryOutcome]:
        return self._with_status("partial")

    @property
    def failed_queries(self) -> list[QueryOutcome]:
        return self._with_status("failed", "unavailable", "rejected")

    @property
    def skipped_queries(self) -> list[QueryOutcome]:
        return self._with_status("cancelled", "skipped")


class ProbeResult(BaseModel):
    label: str
    expression: str
    supported: bool
    total_count: int | None = None
    error: str | None = None


class IndexingStatus(BaseModel):
    enabled: bool | None = None
    network: str | None = None
    latest_height: int | None = None
    detail: str | None = None
