"""
Decoding of raw indexer records into CanonicalTransaction values.

Decoding never raises: any field that cannot be decoded is left in its raw
form. Service versions disagree on field names, so every field is read from
a list of known aliases.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from typing import Any

from cosmos_history.models.transaction import Attribute, CanonicalTransaction, Event

logger = logging.getLogger(__name__)

HASH_FIELDS = ("hash", "txhash", "tx_hash")
HEIGHT_FIELDS = ("height", "block_height")
RESULT_FIELDS = ("tx_result", "result", "TxResult")

_PRINTABLE_RE = re.compile(r"^[\x20-\x7E]+$")


def _first(data: dict, fields: tuple[str, ...]) -> Any:
    for field in fields:
        value = data.get(field)
        if value is not None:
            return value
    return None


def _to_int(value: Any, default: int | None = 0) -> int | None:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def record_hash(raw: dict[str, Any]) -> str | None:
    value = _first(raw, HASH_FIELDS)
    return str(value) if value else None


def _b64_text(value: str) -> str:
    return base64.b64decode(value, validate=True).decode("utf-8", errors="replace")


def decode_tx_payload(payload: Any) -> Any:
    """Base64-decode then JSON-parse a string payload; return it unchanged on failure."""
    if not isinstance(payload, str):
        return payload
    try:
        decoded = json.loads(base64.b64decode(payload, validate=True))
    except (binascii.Error, ValueError):
        logger.debug("tx payload is not base64 JSON, keeping it raw")
        return payload
    return decoded if isinstance(decoded, dict) else payload


def decode_attribute(attr: Any, base64_attributes: bool | None = None) -> Attribute:
    """Decode a possibly base64-encoded event attribute.

    ``base64_attributes`` declares the node's encoding when it is known:
    ``False`` never decodes, ``True`` decodes whenever the text is valid
    base64, ``None`` accepts the decoded pair only if the decoded key is
    printable ASCII. The heuristic is best-effort: a plain key that happens
    to be valid base64 and decodes to printable text is misread.
    """
    if not isinstance(attr, dict):
        return Attribute(key=str(attr))

    key = attr.get("key")
    value = attr.get("value")
    original = Attribute(
        key="" if key is None else str(key),
        value=None if value is None else str(value),
        index=attr.get("index") if isinstance(attr.get("index"), bool) else None,
    )

    if base64_attributes is False or not isinstance(key, str) or not key:
        return original
    if any(ch.isspace() for ch in key):
        return original

    try:
        decoded_key = _b64_text(key)
        decoded_value = _b64_text(value) if isinstance(value, str) and value else ""
    except (binascii.Error, ValueError):
        return original

    if not decoded_key:
        return original
    if base64_attributes is None and not _PRINTABLE_RE.match(decoded_key):
        return original

    return Attribute(key=decoded_key, value=decoded_value, index=original.index)


def decode_events(raw_events: Any, base64_attributes: bool | None = None) -> list[Event]:
    if not isinstance(raw_events, list):
        return []

    events: list[Event] = []
    for raw_event in raw_events:
        if not isinstance(raw_event, dict):
            continue
        attributes = raw_event.get("attributes")
        events.append(
            Event(
                type=str(raw_event.get("type") or "unknown"),
                attributes=[
                    decode_attribute(attr, base64_attributes)
                    for attr in (attributes if isinstance(attributes, list) else [])
                ],
            )
        )
    return events


def _extract_timestamp(events: list[Event], raw: dict[str, Any]) -> str | None:
    for event in events:
        if event.type == "tx":
            value = event.get("timestamp")
            if value is not None:
                return value
    timestamp = raw.get("timestamp")
    return str(timestamp) if timestamp else None


def _result_section(raw: dict[str, Any]) -> dict[str, Any]:
    for field in RESULT_FIELDS:
        value = raw.get(field)
        if isinstance(value, dict):
            return value
    # REST gateway records carry code/events next to the hash
    if "events" in raw or "code" in raw:
        return raw
    return {}


def decode_transaction(
    raw: dict[str, Any], *, base64_attributes: bool | None = None
) -> CanonicalTransaction:
    tx_data = decode_tx_payload(raw.get("tx"))
    messages: list = []
    memo = ""
    fee = None
    payload = None

    if isinstance(tx_data, dict):
        body = tx_data.get("body") if isinstance(tx_data.get("body"), dict) else {}
        messages = body.get("messages") or tx_data.get("msg") or []
        memo = body.get("memo") or tx_data.get("memo") or ""
        auth_info = tx_data.get("auth_info") if isinstance(tx_data.get("auth_info"), dict) else {}
        fee = auth_info.get("fee") or tx_data.get("fee") or None
    elif tx_data is not None:
        payload = tx_data

    result = _result_section(raw)
    events = decode_events(result.get("events"), base64_attributes)

    return CanonicalTransaction(
        hash=record_hash(raw) or "",
        height=_to_int(_first(raw, HEIGHT_FIELDS)),
        timestamp=_extract_timestamp(events, raw),
        code=_to_int(result.get("code")),
        messages=[msg for msg in messages if isinstance(msg, dict)] if isinstance(messages, list) else [],
        events=events,
        fee=fee if isinstance(fee, dict) else None,
        memo=memo if isinstance(memo, str) else str(memo),
        gas_used=_to_int(result.get("gas_used"), default=None),
        gas_wanted=_to_int(result.get("gas_wanted"), default=None),
        payload=payload,
    )
