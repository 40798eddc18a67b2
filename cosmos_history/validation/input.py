import re

from fastapi import HTTPException

from cosmos_history.queries.planner import QUERY_ANGLES

# bech32: human-readable prefix, separator "1", data part without 1/b/i/o
BECH32_ADDRESS_RE = re.compile(r"^[a-z][a-z0-9]{0,82}1[02-9ac-hj-np-z]{6,}$")
TX_HASH_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
SUPPORTED_BACKENDS = {"rpc", "rest"}
SUPPORTED_ORDERS = {"asc", "desc"}


def validate_address(address: str) -> str:
    address = address.strip()
    if len(address) > 90 or not BECH32_ADDRESS_RE.match(address.lower()):
        raise HTTPException(
            status_code=400,
            detail="Invalid account address. Expected a bech32 address such as cosmos1...",
        )
    if address != address.lower() and address != address.upper():
        raise HTTPException(status_code=400, detail="Invalid account address. Mixed case bech32.")
    return address.lower()


def validate_tx_hash(tx_hash: str) -> str:
    tx_hash = tx_hash.strip()
    if not TX_HASH_RE.match(tx_hash):
        raise HTTPException(
            status_code=400,
            detail="Invalid tx hash. Expected a 64-char hex string.",
        )
    if tx_hash.lower().startswith("0x"):
        tx_hash = tx_hash[2:]
    return tx_hash.upper()


def validate_groups(groups: str) -> list[str]:
    names = [g.strip() for g in groups.split(",") if g.strip()]
    unknown = sorted(set(names) - set(QUERY_ANGLES))
    if not names or unknown:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported query groups {unknown or names}. Supported: {', '.join(sorted(QUERY_ANGLES))}",
        )
    return names


def validate_backend(backend: str) -> str:
    backend = backend.lower().strip()
    if backend not in SUPPORTED_BACKENDS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported backend '{backend}'. Supported: {', '.join(sorted(SUPPORTED_BACKENDS))}",
        )
    return backend


def validate_order(order: str) -> str:
    order = order.lower().strip()
    if order not in SUPPORTED_ORDERS:
        raise HTTPException(status_code=400, detail="Invalid order. Expected 'asc' or 'desc'.")
    return order
