"""Best-effort sends for protocol replies and errors on a client WebSocket."""

from __future__ import annotations

import logging
from typing import Any

import orjson
from fastapi import WebSocket, WebSocketDisconnect

from streamrelay.relay.envelope import build_envelope, build_error_payload
from streamrelay.config.websocket import WS_UNKNOWN_REQUEST_ID, WS_UNKNOWN_SESSION_ID

logger = logging.getLogger(__name__)


async def safe_send_envelope(
    ws: WebSocket,
    *,
    msg_type: str,
    session_id: str,
    request_id: str,
    payload: dict[str, Any] | None = None,
) -> bool:
    """Send an envelope, reporting failure instead of raising."""
    text = orjson.dumps(build_envelope(msg_type, session_id, request_id, payload)).decode("utf-8")
    try:
        await ws.send_text(text)
    except WebSocketDisconnect:
        return False
    except Exception:
        logger.debug("WebSocket send failed type=%s", msg_type, exc_info=True)
        return False
    return True


async def send_error(
    ws: WebSocket,
    *,
    session_id: str | None,
    request_id: str | None,
    error_code: str,
    message: str,
    reason_code: str | None = None,
    details: dict[str, Any] | None = None,
) -> bool:
    return await safe_send_envelope(
        ws,
        msg_type="error",
        session_id=session_id or WS_UNKNOWN_SESSION_ID,
        request_id=request_id or WS_UNKNOWN_REQUEST_ID,
        payload=build_error_payload(error_code, message, details=details, reason_code=reason_code or error_code),
    )


async def reject_connection(ws: WebSocket, *, error_code: str, message: str, close_code: int) -> None:
    # Accept first; a close before accept gives the client no reason.
    try:
        await ws.accept()
    except Exception:
        return
    await send_error(ws, session_id=None, request_id=None, error_code=error_code, message=message)
    try:
        await ws.close(code=close_code, reason=message)
    except Exception:
        logger.debug("WebSocket close after rejection failed", exc_info=True)


__all__ = ["reject_connection", "safe_send_envelope", "send_error"]
