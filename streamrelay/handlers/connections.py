"""WebSocket connection directory: admission control and per-connection delivery."""

from __future__ import annotations

import uuid
import asyncio
import logging
from typing import Any

import orjson
from fastapi import WebSocketDisconnect

from streamrelay.errors import ConnectionGoneError
from streamrelay.config.websocket import WS_CLOSE_SEND_TIMEOUT_CODE, WS_CLOSE_SEND_TIMEOUT_REASON

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self, *, max_connections: int, send_timeout_s: float = 10.0) -> None:
        self._max = max(1, int(max_connections))
        self._send_timeout_s = float(send_timeout_s)
        self._lock = asyncio.Lock()
        self._active: dict[str, Any] = {}

    async def connect(self, ws: Any) -> str | None:
        """Admit a websocket connection (without accepting it) and return its id."""
        async with self._lock:
            if len(self._active) >= self._max:
                return None
            connection_id = uuid.uuid4().hex
            self._active[connection_id] = ws
            return connection_id

    async def disconnect(self, connection_id: str) -> None:
        async with self._lock:
            self._active.pop(connection_id, None)

    def lookup(self, connection_id: str) -> Any | None:
        return self._active.get(connection_id)

    def get_connection_count(self) -> int:
        return len(self._active)

    async def post_to_connection(self, connection_id: str, data: dict[str, Any]) -> None:
        """Send one JSON message to a connection; raise ConnectionGoneError if it is unreachable.

        A send that outlives the send timeout closes the connection, so a client
        that stopped reading sees a close instead of silence.
        """
        ws = self.lookup(connection_id)
        if ws is None:
            raise ConnectionGoneError(connection_id=connection_id)
        text = orjson.dumps(data).decode("utf-8")
        try:
            await asyncio.wait_for(ws.send_text(text), timeout=self._send_timeout_s)
        except TimeoutError as exc:
            logger.info("send to connection %s timed out after %.1fs; closing", connection_id, self._send_timeout_s)
            await self._drop_and_close(connection_id, ws)
            raise ConnectionGoneError(connection_id=connection_id) from exc
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            # RuntimeError: starlette send after close. OSError: server-side disconnects.
            logger.debug("post to connection %s failed", connection_id, exc_info=True)
            raise ConnectionGoneError(connection_id=connection_id) from exc

    async def _drop_and_close(self, connection_id: str, ws: Any) -> None:
        await self.disconnect(connection_id)
        try:
            await asyncio.wait_for(
                ws.close(code=WS_CLOSE_SEND_TIMEOUT_CODE, reason=WS_CLOSE_SEND_TIMEOUT_REASON),
                timeout=self._send_timeout_s,
            )
        except Exception:
            logger.debug("close of connection %s after send timeout failed", connection_id, exc_info=True)


__all__ = ["ConnectionManager"]
