"""Decode and validate inbound client envelopes on the relay endpoint."""

from __future__ import annotations

from typing import Any
from dataclasses import dataclass

import orjson

from streamrelay.config.websocket import (
    WS_KEY_TYPE,
    WS_KEY_PAYLOAD,
    WS_KEY_REQUEST_ID,
    WS_KEY_SESSION_ID,
    WS_MAX_MESSAGE_BYTES,
)


@dataclass(frozen=True, slots=True)
class ClientMessage:
    type: str
    session_id: str
    request_id: str
    payload: dict[str, Any]


def _identifier(msg: dict[str, Any], key: str) -> str:
    value = msg.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"message missing non-empty '{key}'")
    return value.strip()


def _message_size(raw: str | bytes) -> int:
    return len(raw) if isinstance(raw, bytes) else len(raw.encode("utf-8"))


def parse_client_message(raw: str | bytes, *, max_bytes: int = WS_MAX_MESSAGE_BYTES) -> ClientMessage:
    """Return the validated envelope; ``ValueError`` describes the first problem found.

    Identifiers are stripped, a missing or null payload becomes ``{}``.
    """
    if max_bytes and _message_size(raw) > max_bytes:
        raise ValueError(f"message exceeds {max_bytes} bytes")

    try:
        msg = orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON: {exc}") from exc
    if not isinstance(msg, dict):
        raise ValueError("message must be a JSON object")

    payload = msg.get(WS_KEY_PAYLOAD)
    if payload is None:
        payload = {}
    elif not isinstance(payload, dict):
        raise ValueError("message 'payload' must be an object")

    return ClientMessage(
        type=_identifier(msg, WS_KEY_TYPE),
        session_id=_identifier(msg, WS_KEY_SESSION_ID),
        request_id=_identifier(msg, WS_KEY_REQUEST_ID),
        payload=payload,
    )


__all__ = ["ClientMessage", "parse_client_message"]
