"""
Report document: the summary plus every transaction with its transfers
attached, newest first.
"""

from __future__ import annotations

from datetime import datetime, timezone

from cosmos_history.classifiers import extract_transfers
from cosmos_history.models.query import FetchResult
from cosmos_history.report.summary import summarize


def build_report(result: FetchResult, account: str) -> dict:
    ordered = result.transactions.sorted_by_height()

    transactions = []
    for tx in ordered:
        entry = tx.model_dump(mode="json")
        entry["transfers"] = [t.model_dump(mode="json") for t in extract_transfers(tx, account)]
        transactions.append(entry)

    return {
        "address": account,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "summary": summarize(ordered, account).model_dump(mode="json"),
        "queries": [o.model_dump(mode="json") for o in result.outcomes],
        "transaction_count": len(ordered),
        "transactions": transactions,
    }
