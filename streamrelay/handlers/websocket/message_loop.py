"""WebSocket message loop and dispatch for the relay endpoint (/ws)."""

from __future__ import annotations

import asyncio
import logging
import functools
import contextlib
from typing import Any, Literal
from collections.abc import Callable, Awaitable

from fastapi import WebSocket, WebSocketDisconnect

from streamrelay.state import RuntimeDeps, ConnectionState
from streamrelay.relay import RelayOutcome, parse_relay_request
from streamrelay.config.websocket import (
    WS_MSG_CANCEL,
    WS_MSG_CANCELLED,
    WS_ERROR_INTERNAL,
    WS_ERROR_RELAY_BUSY,
    WS_MSG_CHAT_COMPLETION,
    WS_ERROR_INVALID_MESSAGE,
    WS_ERROR_INVALID_PAYLOAD,
    WS_CLOSE_CLIENT_REQUEST_CODE,
)

from .parser import ClientMessage, parse_client_message
from .lifecycle import ConnectionLifecycle
from .errors import send_error, safe_send_envelope

logger = logging.getLogger(__name__)

HandlerFn = Callable[
    [WebSocket, RuntimeDeps, ConnectionState, str, str, dict[str, Any]],
    Awaitable[None],
]


async def _recv_text_with_watchdog(
    ws: WebSocket,
    lifecycle: ConnectionLifecycle,
    *,
    timeout_s: float,
) -> tuple[str | None, bool]:
    try:
        message = await asyncio.wait_for(ws.receive_text(), timeout=timeout_s)
        return message, False
    except TimeoutError:
        return None, lifecycle.should_close()


async def _handle_control_message(
    ws: WebSocket,
    msg_type: str,
    *,
    session_id: str,
    request_id: str,
) -> Literal["none", "continue", "close"]:
    if msg_type == "ping":
        await safe_send_envelope(ws, msg_type="pong", session_id=session_id, request_id=request_id, payload={})
        return "continue"
    if msg_type == "pong":
        return "continue"
    if msg_type == "end":
        await safe_send_envelope(ws, msg_type="session_end", session_id=session_id, request_id=request_id, payload={})
        with contextlib.suppress(Exception):
            await ws.close(code=WS_CLOSE_CLIENT_REQUEST_CODE)
        return "close"
    return "none"


async def _parse_or_send_error(ws: WebSocket, raw: str, state: ConnectionState) -> ClientMessage | None:
    try:
        return parse_client_message(raw)
    except ValueError as exc:
        await send_error(
            ws,
            session_id=state.session_id,
            request_id=state.request_id,
            error_code=WS_ERROR_INVALID_MESSAGE,
            message=str(exc),
            reason_code="invalid_message",
        )
        return None


def _log_relay_result(session_id: str, request_id: str, task: asyncio.Task) -> None:
    if task.cancelled():
        logger.debug("relay task cancelled session_id=%s request_id=%s", session_id, request_id)
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "relay task failed session_id=%s request_id=%s",
            session_id,
            request_id,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        return
    outcome: RelayOutcome = task.result()
    logger.debug("relay task finished session_id=%s request_id=%s outcome=%s", session_id, request_id, outcome.kind)


async def _cancel_relay(state: ConnectionState) -> bool:
    task = state.relay_task
    state.relay_task = None
    state.relay_request_id = None
    if task is None or task.done():
        return False
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
    return True


async def _handle_chat_completion(
    ws: WebSocket,
    runtime_deps: RuntimeDeps,
    state: ConnectionState,
    session_id: str,
    request_id: str,
    payload: dict[str, Any],
) -> None:
    if state.relay_active():
        await send_error(
            ws,
            session_id=session_id,
            request_id=request_id,
            error_code=WS_ERROR_RELAY_BUSY,
            message="a completion is already streaming on this connection; cancel it or wait for it to finish",
            reason_code="relay_busy",
            details={"active_request_id": state.relay_request_id},
        )
        return

    try:
        request = parse_relay_request(
            payload,
            request_id=request_id,
            default_flavor=runtime_deps.settings.upstream.default_flavor,
        )
    except ValueError as exc:
        await send_error(
            ws,
            session_id=session_id,
            request_id=request_id,
            error_code=WS_ERROR_INVALID_PAYLOAD,
            message=str(exc),
            reason_code="invalid_request",
        )
        return

    sink = functools.partial(runtime_deps.connections.post_to_connection, state.connection_id)
    relay = runtime_deps.relay_bridge.new_relay(request, sink=sink, session_id=session_id)
    task = asyncio.create_task(relay.run())
    task.add_done_callback(functools.partial(_log_relay_result, session_id, request_id))
    state.relay_task = task
    state.relay_request_id = request_id


async def _handle_cancel(
    ws: WebSocket,
    _runtime_deps: RuntimeDeps,
    state: ConnectionState,
    session_id: str,
    request_id: str,
    payload: dict[str, Any],
) -> None:
    cancelled_request_id = state.relay_request_id
    await _cancel_relay(state)
    await safe_send_envelope(
        ws,
        msg_type=WS_MSG_CANCELLED,
        session_id=session_id,
        request_id=cancelled_request_id or request_id,
        payload={"reason": (payload.get("reason") or "client_request")},
    )


HANDLERS: dict[str, HandlerFn] = {
    WS_MSG_CHAT_COMPLETION: _handle_chat_completion,
    WS_MSG_CANCEL: _handle_cancel,
}


async def run_message_loop(
    ws: WebSocket,
    lifecycle: ConnectionLifecycle,
    runtime_deps: RuntimeDeps,
    *,
    connection_id: str,
) -> str | None:
    state = ConnectionState(connection_id=connection_id)
    lifecycle.set_busy_fn(state.relay_active)
    recv_timeout_s = runtime_deps.settings.websocket.watchdog_tick_s * 2

    try:
        while True:
            raw, should_exit = await _recv_text_with_watchdog(ws, lifecycle, timeout_s=recv_timeout_s)
            if should_exit:
                return state.session_id if state.session_id != "unknown" else None
            if raw is None:
                continue

            lifecycle.touch()

            msg = await _parse_or_send_error(ws, raw, state)
            if msg is None:
                continue

            msg_type = msg.type
            session_id = msg.session_id
            request_id = msg.request_id
            payload = msg.payload

            state.session_id = session_id
            state.request_id = request_id

            control = await _handle_control_message(ws, msg_type, session_id=session_id, request_id=request_id)
            if control == "close":
                return session_id
            if control == "continue":
                continue

            handler = HANDLERS.get(msg_type)
            if handler is not None:
                try:
                    await handler(ws, runtime_deps, state, session_id, request_id, payload)
                except WebSocketDisconnect:
                    raise
                except Exception:
                    logger.exception("handler for '%s' failed session_id=%s", msg_type, session_id)
                    await send_error(
                        ws,
                        session_id=session_id,
                        request_id=request_id,
                        error_code=WS_ERROR_INTERNAL,
                        message="internal error",
                    )
                continue

            await send_error(
                ws,
                session_id=session_id,
                request_id=request_id,
                error_code=WS_ERROR_INVALID_MESSAGE,
                message=f"message type '{msg_type}' is not supported",
                reason_code="unknown_message_type",
            )
    except WebSocketDisconnect:
        return state.session_id if state.session_id != "unknown" else None
    finally:
        with contextlib.suppress(Exception):
            await _cancel_relay(state)


__all__ = ["HANDLERS", "run_message_loop"]
