"""Ordered, single-flight delivery of relay items to a client sink."""

from __future__ import annotations

import asyncio
import logging
import contextlib
from typing import Any
from collections.abc import Callable, Awaitable

from streamrelay.state import QueueState

logger = logging.getLogger(__name__)

Sink = Callable[[Any], Awaitable[None]]
DeliveredHook = Callable[[Any], None]
ErrorHook = Callable[[BaseException], None]


class DeliveryQueue:
    """FIFO channel drained by one worker task.

    The sink is awaited for one item at a time, so deliveries never overlap
    and reach the client in enqueue order. ``on_delivered`` runs after the
    sink returned for an item. A sink failure closes the queue and is handed
    to ``on_error``; nothing is retried.
    """

    def __init__(
        self,
        sink: Sink,
        *,
        on_delivered: DeliveredHook | None = None,
        on_error: ErrorHook | None = None,
        maxsize: int = 0,
    ) -> None:
        self._sink = sink
        self._on_delivered = on_delivered
        self._on_error = on_error
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=max(0, int(maxsize)))
        self._state = QueueState.IDLE
        self._in_flight = False
        self._worker: asyncio.Task | None = None
        self.delivered: int = 0

    @property
    def state(self) -> QueueState:
        return self._state

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def closed(self) -> bool:
        return self._state is QueueState.CLOSED

    def start(self) -> None:
        if self._worker is None and not self.closed:
            self._worker = asyncio.create_task(self._run())

    def enqueue(self, item: Any) -> None:
        """Append an item without waiting. Raises asyncio.QueueFull when bounded and full."""
        if self.closed:
            logger.debug("delivery queue closed; dropping item")
            return
        self._queue.put_nowait(item)
        self.start()

    async def put(self, item: Any) -> None:
        """Append an item, waiting for room when the queue is bounded."""
        if self.closed:
            logger.debug("delivery queue closed; dropping item")
            return
        self.start()
        await self._queue.put(item)

    async def drained(self) -> None:
        """Wait until every item enqueued so far was delivered or dropped."""
        await self._queue.join()

    def close(self) -> None:
        """Stop accepting items and drop pending ones. An in-flight delivery finishes."""
        if self.closed:
            return
        self._state = QueueState.CLOSED
        self._drop_pending()
        if self._worker is not None and not self._in_flight:
            self._worker.cancel()

    async def wait_closed(self) -> None:
        if self._worker is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker

    def _drop_pending(self) -> None:
        dropped = 0
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._queue.task_done()
            dropped += 1
        if dropped:
            logger.debug("delivery queue dropped %s pending item(s)", dropped)

    def _fail(self, exc: BaseException) -> None:
        self._state = QueueState.CLOSED
        self._drop_pending()
        if self._on_error is not None:
            self._on_error(exc)

    async def _run(self) -> None:
        while not self.closed:
            item = await self._queue.get()
            self._in_flight = True
            self._state = QueueState.DRAINING
            try:
                try:
                    await self._sink(item)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.debug("delivery failed", exc_info=True)
                    self._fail(exc)
                    return
                self.delivered += 1
                if self._on_delivered is not None:
                    self._on_delivered(item)
            finally:
                self._in_flight = False
                self._queue.task_done()
                if not self.closed:
                    self._state = QueueState.IDLE if self._queue.empty() else QueueState.DRAINING


__all__ = ["DeliveryQueue", "Sink"]
