"""Per-connection lifecycle enforcement (idle timeout, max duration)."""

from __future__ import annotations

import time
import asyncio
import logging
import contextlib
from typing import Any
from collections.abc import Callable

from streamrelay.config.websocket import (
    WS_CLOSE_IDLE_CODE,
    WS_CLOSE_IDLE_REASON,
    WS_CLOSE_MAX_DURATION_CODE,
    WS_CLOSE_MAX_DURATION_REASON,
)

logger = logging.getLogger(__name__)


class ConnectionLifecycle:
    """Close a client connection that sits idle or outlives its maximum duration.

    A connection with a relay in progress is never idle: token delivery is
    activity even when the client sends nothing.
    """

    def __init__(
        self,
        websocket: Any,
        *,
        idle_timeout_s: float,
        watchdog_tick_s: float,
        max_connection_duration_s: float,
        is_busy_fn: Callable[[], bool] | None = None,
        now_fn: Callable[[], float] | None = None,
    ) -> None:
        self._ws = websocket
        self._idle_timeout_s = float(idle_timeout_s)
        self._watchdog_tick_s = max(0.001, float(watchdog_tick_s))
        self._max_connection_duration_s = float(max_connection_duration_s)
        self._is_busy_fn = is_busy_fn or (lambda: False)
        self._now = now_fn or time.monotonic
        self._opened_at = self._now()
        self._last_activity = self._opened_at
        self._closing = asyncio.Event()
        self._task: asyncio.Task | None = None

    def set_busy_fn(self, is_busy_fn: Callable[[], bool]) -> None:
        self._is_busy_fn = is_busy_fn

    def touch(self) -> None:
        self._last_activity = self._now()

    def should_close(self) -> bool:
        return self._closing.is_set()

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.create_task(self._watch())
        return self._task

    async def stop(self) -> None:
        self._closing.set()
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    def _close_reason(self) -> tuple[int, str] | None:
        now = self._now()
        if self._max_connection_duration_s > 0 and (now - self._opened_at) >= self._max_connection_duration_s:
            return WS_CLOSE_MAX_DURATION_CODE, WS_CLOSE_MAX_DURATION_REASON
        if self._is_busy_fn():
            return None
        if self._idle_timeout_s > 0 and (now - self._last_activity) >= self._idle_timeout_s:
            return WS_CLOSE_IDLE_CODE, WS_CLOSE_IDLE_REASON
        return None

    async def _watch(self) -> None:
        try:
            while not self._closing.is_set():
                await asyncio.sleep(self._watchdog_tick_s)
                if self._closing.is_set():
                    return
                reason = self._close_reason()
                if reason is None:
                    continue
                code, text = reason
                logger.info("closing connection: %s", text)
                self._closing.set()
                with contextlib.suppress(Exception):
                    await self._ws.close(code=code, reason=text)
                return
        except asyncio.CancelledError:
            return
        except Exception:
            logger.debug("connection lifecycle watcher exiting due to unexpected error", exc_info=True)


__all__ = ["ConnectionLifecycle"]
