"""Stall detection for an upstream stream that may hang without closing."""

from __future__ import annotations

import time
import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

TimeFn = Callable[[], float]


class StallWatchdog:
    """Poll the time since the last observed fragment and fire once past the grace period.

    ``touch`` only moves a timestamp forward; the polling task compares
    against it on every tick, so no timer is rescheduled per fragment.
    """

    def __init__(self, *, poll_interval_s: float = 1.0, now_fn: TimeFn | None = None) -> None:
        self._poll_interval_s = max(0.001, float(poll_interval_s))
        self._now = now_fn or time.monotonic
        self._grace_period_s = 0.0
        self._on_stall: Callable[[], None] | None = None
        self._last_seen = self._now()
        self._task: asyncio.Task | None = None
        self._done = False
        self.fired = False

    @property
    def last_seen(self) -> float:
        return self._last_seen

    @property
    def active(self) -> bool:
        return self._task is not None and not self._done

    def start(self, grace_period_s: float, on_stall: Callable[[], None]) -> None:
        if self._task is not None or self._done:
            return
        self._grace_period_s = float(grace_period_s)
        self._on_stall = on_stall
        self.touch()
        self._task = asyncio.create_task(self._poll_loop())

    def touch(self) -> None:
        self._last_seen = self._now()

    def cancel(self) -> None:
        """Stop polling without firing. Safe to call repeatedly and from any path."""
        self._done = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _poll_loop(self) -> None:
        try:
            while not self._done:
                await asyncio.sleep(self._poll_interval_s)
                if self._done:
                    return
                if (self._now() - self._last_seen) > self._grace_period_s:
                    self._done = True
                    self.fired = True
                    logger.info("stall watchdog: no upstream data for %.1fs", self._grace_period_s)
                    if self._on_stall is not None:
                        self._on_stall()
                    return
        except asyncio.CancelledError:
            return
        except Exception:
            logger.exception("stall watchdog callback failed")


__all__ = ["StallWatchdog"]
