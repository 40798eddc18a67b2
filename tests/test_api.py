"""Tests for the HTTP endpoints."""

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from cosmos_history.config import settings
from cosmos_history.main import app
from tests.conftest import (
    ACCOUNT,
    MOCK_INDEXING_DISABLED,
    MOCK_NODE_STATUS,
    MOCK_REST_TX_RESPONSE,
    OTHER,
    REST_URL,
    RPC_URL,
    b64,
    bank_send,
    make_record,
    rpc_error,
    rpc_page,
)

client = TestClient(app)

TX_SEARCH = f"{RPC_URL}/tx_search"
TXS = f"{REST_URL}/cosmos/tx/v1beta1/txs"


@pytest.fixture(autouse=True)
def node_settings(monkeypatch):
    monkeypatch.setattr(settings, "rpc_endpoint", RPC_URL)
    monkeypatch.setattr(settings, "rest_endpoint", REST_URL)
    monkeypatch.setattr(settings, "retry_delay", 0)
    monkeypatch.setattr(settings, "rate_limit_delay", 0)


def _by_query(pages: dict):
    """Answer tx_search requests depending on which angle the query uses."""

    def handler(request: httpx.Request) -> httpx.Response:
        query = request.url.params["query"]
        for key, body in pages.items():
            if key in query:
                return httpx.Response(200, json=body)
        return httpx.Response(200, json=rpc_page([], 0))

    return handler


class TestHistory:
    @respx.mock
    def test_merges_core_queries(self):
        sent = make_record("H1", 200, messages=[bank_send(ACCOUNT, OTHER, "1000")])
        received = make_record(
            "H2",
            150,
            events=[
                {
                    "type": "transfer",
                    "attributes": [
                        {"key": b64("sender"), "value": b64(OTHER)},
                        {"key": b64("recipient"), "value": b64(ACCOUNT)},
                        {"key": b64("amount"), "value": b64("5uatom")},
                    ],
                }
            ],
        )
        route = respx.get(url__startswith=TX_SEARCH).mock(
            side_effect=_by_query(
                {
                    "message.sender": rpc_page([sent]),
                    "transfer.recipient": rpc_page([received, sent]),
                    "coin_received.receiver": rpc_page([received]),
                }
            )
        )

        resp = client.get(f"/v1/history/{ACCOUNT}")

        assert resp.status_code == 200
        assert route.call_count == 3
        data = resp.json()
        assert data["address"] == ACCOUNT
        assert data["transaction_count"] == 2
        assert [tx["hash"] for tx in data["transactions"]] == ["H1", "H2"]
        assert data["transactions"][0]["success"] is True
        assert data["transactions"][0]["transfers"][0]["direction"] == "sent"
        assert data["summary"]["sent_transfers"] == 1
        assert data["summary"]["received_transfers"] == 1
        assert data["summary"]["first_tx"] == {"hash": "H2", "height": 150}
        assert [q["status"] for q in data["queries"]] == ["complete"] * 3

    @respx.mock
    def test_failed_query_reported_not_fatal(self):
        respx.get(url__startswith=TX_SEARCH).mock(
            side_effect=_by_query(
                {
                    "message.sender": rpc_page([make_record("H1", 10)]),
                    "transfer.recipient": rpc_error("Internal error", "failed to parse query"),
                }
            )
        )

        resp = client.get(f"/v1/history/{ACCOUNT}")

        assert resp.status_code == 200
        data = resp.json()
        assert data["transaction_count"] == 1
        statuses = {q["label"]: q["status"] for q in data["queries"]}
        assert statuses["transfer_recipient"] == "rejected"
        assert statuses["message_sender"] == "complete"

    @respx.mock
    def test_height_range_is_anded(self):
        route = respx.get(url__startswith=TX_SEARCH).mock(
            return_value=httpx.Response(200, json=rpc_page([], 0))
        )

        resp = client.get(f"/v1/history/{ACCOUNT}", params={"groups": "core", "min_height": 5, "max_height": 9})

        assert resp.status_code == 200
        for call in route.calls:
            assert "tx.height>=5 AND tx.height<=9" in call.request.url.params["query"]

    @respx.mock
    def test_action_with_or_in_value(self):
        route = respx.get(url__startswith=TX_SEARCH).mock(
            return_value=httpx.Response(200, json=rpc_page([], 0))
        )

        resp = client.get(f"/v1/history/{ACCOUNT}", params={"action": "buy OR sell"})

        assert resp.status_code == 200
        assert route.call_count == 3
        for call in route.calls:
            assert "AND message.action='buy OR sell'" in call.request.url.params["query"]

    def test_action_with_quote_rejected(self):
        resp = client.get(f"/v1/history/{ACCOUNT}", params={"action": "x' OR 'y"})
        assert resp.status_code == 400

    @respx.mock
    def test_rest_backend(self):
        route = respx.get(url__startswith=TXS).mock(
            return_value=httpx.Response(200, json={"tx_responses": [], "pagination": {"next_key": None}})
        )

        resp = client.get(f"/v1/history/{ACCOUNT}", params={"backend": "rest"})

        assert resp.status_code == 200
        assert route.call_count == 3
        assert resp.json()["transaction_count"] == 0

    def test_invalid_address(self):
        resp = client.get("/v1/history/not-an-address")
        assert resp.status_code == 400

    def test_unknown_group(self):
        resp = client.get(f"/v1/history/{ACCOUNT}", params={"groups": "core,wasm"})
        assert resp.status_code == 400

    def test_inverted_height_range(self):
        resp = client.get(f"/v1/history/{ACCOUNT}", params={"min_height": 9, "max_height": 5})
        assert resp.status_code == 400


class TestTransactionDetail:
    @respx.mock
    def test_found_with_involvement(self):
        tx_hash = "A" * 64
        respx.get(f"{TXS}/{tx_hash}").mock(return_value=httpx.Response(200, json=MOCK_REST_TX_RESPONSE))

        resp = client.get(f"/v1/tx/{tx_hash.lower()}", params={"address": ACCOUNT})

        assert resp.status_code == 200
        data = resp.json()
        assert data["transaction"]["hash"] == tx_hash
        assert data["transaction"]["memo"] == "rent"
        assert data["involvement"]["involved"] is True
        assert "sender" in data["involvement"]["roles"]

    @respx.mock
    def test_not_found(self):
        tx_hash = "B" * 64
        respx.get(f"{TXS}/{tx_hash}").mock(
            return_value=httpx.Response(404, json={"code": 5, "message": "tx not found", "details": []})
        )

        resp = client.get(f"/v1/tx/{tx_hash}")

        assert resp.status_code == 404

    @respx.mock
    def test_node_unreachable(self):
        tx_hash = "C" * 64
        respx.get(f"{TXS}/{tx_hash}").mock(side_effect=httpx.ConnectError("refused"))

        resp = client.get(f"/v1/tx/{tx_hash}")

        assert resp.status_code == 504

    def test_invalid_hash(self):
        resp = client.get("/v1/tx/1234")
        assert resp.status_code == 400


class TestIndexingAndProbe:
    @respx.mock
    def test_indexing_status(self):
        respx.get(f"{RPC_URL}/status").mock(return_value=httpx.Response(200, json=MOCK_NODE_STATUS))
        respx.get(url__startswith=TX_SEARCH).mock(return_value=httpx.Response(200, json=MOCK_INDEXING_DISABLED))

        resp = client.get("/v1/indexing")

        assert resp.status_code == 200
        assert resp.json()["enabled"] is False
        assert resp.json()["network"] == "cosmoshub-4"

    @respx.mock
    def test_probe(self):
        respx.get(url__startswith=TX_SEARCH).mock(
            side_effect=_by_query(
                {
                    "message.sender": rpc_page([make_record("H1")], 12),
                    "transfer.recipient": rpc_error("Internal error", "failed to parse query"),
                }
            )
        )

        resp = client.post(f"/v1/probe/{ACCOUNT}", params={"groups": "core"})

        assert resp.status_code == 200
        data = resp.json()
        assert len(data["queries"]) == 3
        assert data["supported"] == 2
        assert data["queries"][0]["total_count"] == 12
        assert data["queries"][1]["supported"] is False
