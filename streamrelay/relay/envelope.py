"""JSON envelopes sent to the client connection."""

from __future__ import annotations

from typing import Any

from streamrelay.config.websocket import (
    WS_KEY_TYPE,
    WS_MSG_CHUNK,
    WS_KEY_PAYLOAD,
    WS_KEY_REQUEST_ID,
    WS_KEY_SESSION_ID,
)

from .fragment import MessageFragment


def build_envelope(
    msg_type: str,
    session_id: str,
    request_id: str,
    payload: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        WS_KEY_TYPE: msg_type,
        WS_KEY_SESSION_ID: session_id,
        WS_KEY_REQUEST_ID: request_id,
        WS_KEY_PAYLOAD: payload or {},
    }


def build_error_payload(
    code: str,
    message: str,
    *,
    details: dict[str, Any] | None = None,
    reason_code: str | None = None,
) -> dict[str, Any]:
    payload_details = dict(details or {})
    if reason_code:
        payload_details.setdefault("reason_code", reason_code)
    return {"code": code, "message": message, "details": payload_details}


def build_delivery_envelope(session_id: str, request_id: str, fragment: MessageFragment) -> dict[str, Any]:
    # Provider fields are forwarded verbatim.
    return build_envelope(WS_MSG_CHUNK, session_id, request_id, dict(fragment.choice))


def build_failure_envelope(
    session_id: str,
    request_id: str,
    finish_reason: str,
    message: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"finish_reason": finish_reason, "delta": {}}
    if message:
        payload["message"] = message
    return build_envelope(WS_MSG_CHUNK, session_id, request_id, payload)


__all__ = [
    "build_delivery_envelope",
    "build_envelope",
    "build_error_payload",
    "build_failure_envelope",
]
