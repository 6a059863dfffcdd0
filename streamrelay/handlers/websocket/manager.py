"""Primary WebSocket connection handler orchestration."""

from __future__ import annotations

import logging
import contextlib

from fastapi import WebSocket

from streamrelay.state import RuntimeDeps
from streamrelay.config.websocket import WS_CLOSE_BUSY_CODE, WS_ERROR_SERVER_AT_CAPACITY

from .errors import reject_connection
from .lifecycle import ConnectionLifecycle
from .message_loop import run_message_loop

logger = logging.getLogger(__name__)


async def _admit_connection(ws: WebSocket, runtime_deps: RuntimeDeps) -> str | None:
    connection_id = await runtime_deps.connections.connect(ws)
    if connection_id is None:
        await reject_connection(
            ws,
            error_code=WS_ERROR_SERVER_AT_CAPACITY,
            message="Server cannot accept new connections. Please try again later.",
            close_code=WS_CLOSE_BUSY_CODE,
        )
        return None

    try:
        await ws.accept()
    except Exception:
        with contextlib.suppress(Exception):
            await runtime_deps.connections.disconnect(connection_id)
        raise
    return connection_id


async def handle_websocket_connection(ws: WebSocket, runtime_deps: RuntimeDeps) -> None:
    lifecycle: ConnectionLifecycle | None = None
    connection_id: str | None = None
    session_id: str | None = None
    try:
        connection_id = await _admit_connection(ws, runtime_deps)
        if connection_id is None:
            return

        ws_settings = runtime_deps.settings.websocket
        lifecycle = ConnectionLifecycle(
            ws,
            idle_timeout_s=ws_settings.idle_timeout_s,
            watchdog_tick_s=ws_settings.watchdog_tick_s,
            max_connection_duration_s=ws_settings.max_connection_duration_s,
        )
        lifecycle.start()

        logger.info(
            "WebSocket connection accepted connection_id=%s. Active: %s",
            connection_id,
            runtime_deps.connections.get_connection_count(),
        )
        session_id = await run_message_loop(ws, lifecycle, runtime_deps, connection_id=connection_id)
    finally:
        if lifecycle is not None:
            with contextlib.suppress(Exception):
                await lifecycle.stop()

        if connection_id is not None:
            with contextlib.suppress(Exception):
                await runtime_deps.connections.disconnect(connection_id)
            logger.info(
                "WebSocket connection closed connection_id=%s session_id=%s. Active: %s",
                connection_id,
                session_id,
                runtime_deps.connections.get_connection_count(),
            )


__all__ = ["handle_websocket_connection"]
