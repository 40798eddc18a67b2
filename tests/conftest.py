import base64
import json

import pytest

from cosmos_history.main import decoded_cache

RPC_URL = "http://node.test:26657"
REST_URL = "http://node.test:1317"

ACCOUNT = "cosmos1" + "q" * 38
OTHER = "cosmos1" + "p" * 38
THIRD = "cosmos1" + "z" * 38


@pytest.fixture(autouse=True)
def clear_cache():
    decoded_cache.clear()
    yield
    decoded_cache.clear()


def b64(text: str) -> str:
    return base64.b64encode(text.encode()).decode()


def bank_send(sender: str, recipient: str, amount: str = "1000", denom: str = "uatom") -> dict:
    return {
        "@type": "/cosmos.bank.v1beta1.MsgSend",
        "from_address": sender,
        "to_address": recipient,
        "amount": [{"denom": denom, "amount": amount}],
    }


def encoded_tx(messages: list | None = None, memo: str = "", fee: dict | None = None) -> str:
    body = {
        "body": {"messages": messages or [], "memo": memo},
        "auth_info": {"fee": fee or {"amount": [{"denom": "uatom", "amount": "500"}], "gas_limit": "200000"}},
    }
    return b64(json.dumps(body))


def make_record(
    tx_hash: str,
    height: int = 100,
    messages: list | None = None,
    events: list | None = None,
    code: int = 0,
) -> dict:
    """A tx_search record with a base64 JSON payload and plain-text events."""
    return {
        "hash": tx_hash,
        "height": str(height),
        "tx": encoded_tx(messages),
        "tx_result": {
            "code": code,
            "gas_used": "80000",
            "gas_wanted": "200000",
            "events": events or [],
        },
    }


def rpc_page(records: list, total: int | None = None) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": -1,
        "result": {
            "txs": records,
            "total_count": str(len(records) if total is None else total),
        },
    }


def rpc_error(message: str = "Internal error", data: str | None = None) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": -1,
        "error": {"code": -32603, "message": message, "data": data},
    }


MOCK_INDEXING_DISABLED = rpc_error("Internal error", "transaction indexing is disabled")

MOCK_NODE_STATUS = {
    "jsonrpc": "2.0",
    "id": -1,
    "result": {
        "node_info": {"network": "cosmoshub-4"},
        "sync_info": {"latest_block_height": "19000000"},
    },
}

MOCK_REST_TX_RESPONSE = {
    "tx": {"@type": "/cosmos.tx.v1beta1.Tx"},
    "tx_response": {
        "height": "19000001",
        "txhash": "A" * 64,
        "code": 0,
        "gas_used": "90000",
        "gas_wanted": "150000",
        "timestamp": "2024-03-01T10:00:00Z",
        "tx": {
            "@type": "/cosmos.tx.v1beta1.Tx",
            "body": {"messages": [bank_send(ACCOUNT, OTHER, "2500")], "memo": "rent"},
            "auth_info": {"fee": {"amount": [{"denom": "uatom", "amount": "700"}], "gas_limit": "150000"}},
        },
        "events": [
            {
                "type": "transfer",
                "attributes": [
                    {"key": "recipient", "value": OTHER, "index": True},
                    {"key": "sender", "value": ACCOUNT, "index": True},
                    {"key": "amount", "value": "2500uatom", "index": True},
                ],
            }
        ],
    },
}
