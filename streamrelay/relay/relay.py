"""Relay orchestration: upstream bytes -> deframer -> delivery queue -> client."""

from __future__ import annotations

import codecs
import asyncio
import logging
import contextlib
from typing import Any

from streamrelay.errors import ConnectionGoneError, UpstreamRequestError
from streamrelay.state import RelayPhase, OutcomeKind, RelayOutcome, SessionState

from .deframer import Deframer
from .request import RelayRequest
from .watchdog import StallWatchdog
from .fragment import MessageFragment
from .delivery import Sink, DeliveryQueue
from .envelope import build_failure_envelope, build_delivery_envelope

logger = logging.getLogger(__name__)


class Relay:
    """One relay session, resolved exactly once.

    A delivered "stop" fragment, the stall watchdog, an upstream failure, a
    sink failure and cancellation all race to end the session. They resolve a
    single result future; the first one wins and later signals are ignored.
    Failure outcomes (error, timeout) produce exactly one failure envelope,
    sent after any in-flight delivery completed.
    """

    def __init__(
        self,
        *,
        request: RelayRequest,
        upstream: Any,
        sink: Sink,
        session_id: str,
        stall_grace_s: float = 8.0,
        stall_poll_s: float = 1.0,
        delivery_queue_max: int = 0,
        max_residue_chars: int = 0,
    ) -> None:
        self._request = request
        self._upstream = upstream
        self._sink = sink
        self._stall_grace_s = float(stall_grace_s)
        self.session = SessionState(session_id=session_id, request_id=request.request_id)

        self._deframer = Deframer(max_residue_chars=max_residue_chars)
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._watchdog = StallWatchdog(poll_interval_s=stall_poll_s)
        self._queue = DeliveryQueue(
            self._deliver,
            on_delivered=self._on_delivered,
            on_error=self._on_delivery_error,
            maxsize=delivery_queue_max,
        )
        self._result: asyncio.Future[RelayOutcome] | None = None

    @property
    def phase(self) -> RelayPhase:
        return self.session.phase

    @property
    def outcome(self) -> RelayOutcome | None:
        return self.session.outcome

    @property
    def watchdog(self) -> StallWatchdog:
        return self._watchdog

    async def run(self) -> RelayOutcome:
        if self._result is not None:
            raise RuntimeError("relay session already started")
        self._result = asyncio.get_running_loop().create_future()

        logger.info(
            "relay start session_id=%s request_id=%s model=%s flavor=%s",
            self.session.session_id,
            self.session.request_id,
            self._request.model,
            self._request.flavor,
        )
        self._watchdog.start(self._stall_grace_s, self._on_stall)
        self._queue.start()
        pump = asyncio.create_task(self._pump())

        try:
            outcome = await asyncio.shield(self._result)
        except asyncio.CancelledError:
            self._finish(RelayOutcome(OutcomeKind.CANCELLED, "relay cancelled"))
            await self._teardown(pump)
            self.session.phase = RelayPhase.DONE
            raise

        await self._teardown(pump)
        await self._send_terminal(outcome)
        self.session.phase = RelayPhase.DONE
        logger.info(
            "relay done session_id=%s request_id=%s outcome=%s delivered=%s fragments=%s discarded=%s",
            self.session.session_id,
            self.session.request_id,
            outcome.kind.value,
            self.session.items_delivered,
            self.session.fragments_received,
            self._deframer.discarded,
        )
        return outcome

    def _finish(self, outcome: RelayOutcome) -> bool:
        if self._result is None or self._result.done():
            return False
        self.session.terminated = True
        self.session.phase = RelayPhase.TERMINATING
        self.session.outcome = outcome
        self._watchdog.cancel()
        self._queue.close()
        self._result.set_result(outcome)
        return True

    async def _teardown(self, pump: asyncio.Task) -> None:
        self._watchdog.cancel()
        self._queue.close()
        if not pump.done():
            pump.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await pump
        await self._queue.wait_closed()

    async def _send_terminal(self, outcome: RelayOutcome) -> None:
        if not outcome.sends_failure_envelope:
            return
        envelope = build_failure_envelope(
            self.session.session_id,
            self.session.request_id,
            outcome.kind.value,
            outcome.detail,
        )
        try:
            await self._sink(envelope)
        except Exception:
            logger.info(
                "relay could not deliver %s envelope session_id=%s request_id=%s",
                outcome.kind.value,
                self.session.session_id,
                self.session.request_id,
                exc_info=True,
            )

    async def _pump(self) -> None:
        try:
            async with self._upstream.open_stream(self._request) as chunks:
                self.session.stream_open = True
                if not self.session.terminated:
                    self.session.phase = RelayPhase.STREAMING
                async for chunk in chunks:
                    if self.session.terminated:
                        return
                    await self._on_chunk(chunk)
            self.session.stream_open = False
            await self._on_text(self._decoder.decode(b"", final=True))
            await self._queue.drained()
            self._on_stream_end()
        except asyncio.CancelledError:
            raise
        except UpstreamRequestError as exc:
            logger.warning(
                "relay upstream failed session_id=%s request_id=%s: %s",
                self.session.session_id,
                self.session.request_id,
                exc,
            )
            await self._fail_after_drain(RelayOutcome(OutcomeKind.ERROR, str(exc)))
        except Exception:
            logger.exception("relay pump failed session_id=%s", self.session.session_id)
            await self._fail_after_drain(RelayOutcome(OutcomeKind.ERROR, "internal relay error"))
        finally:
            self.session.stream_open = False

    async def _fail_after_drain(self, outcome: RelayOutcome) -> None:
        """End with ``outcome`` once fragments already extracted reached the client.

        A "stop" among them resolves the session first and the failure is dropped.
        """
        self._watchdog.cancel()
        if not self.session.terminated:
            await self._queue.drained()
        self._finish(outcome)

    async def _on_chunk(self, chunk: bytes | str) -> None:
        self._watchdog.touch()
        self.session.last_fragment_at = self._watchdog.last_seen
        self.session.fragments_received += 1
        text = chunk if isinstance(chunk, str) else self._decoder.decode(chunk)
        await self._on_text(text)

    async def _on_text(self, text: str) -> None:
        if not text:
            return
        for obj in self._deframer.feed(text):
            fragment = MessageFragment.from_chunk(obj)
            if fragment is None:
                continue
            if fragment.is_stop and not self.session.stop_seen:
                # Only delivery remains; upstream silence is no longer a stall.
                self.session.stop_seen = True
                self._watchdog.cancel()
            await self._queue.put(fragment)

    def _on_stream_end(self) -> None:
        if self.session.terminated:
            return
        reason = self.session.provider_finish_reason
        if reason is not None:
            self._finish(RelayOutcome(OutcomeKind.COMPLETED, reason))
            return
        self._finish(RelayOutcome(OutcomeKind.ERROR, "upstream stream ended before completion"))

    async def _deliver(self, fragment: MessageFragment) -> None:
        await self._sink(build_delivery_envelope(self.session.session_id, self.session.request_id, fragment))

    def _on_delivered(self, fragment: MessageFragment) -> None:
        self.session.items_delivered += 1
        if fragment.is_stop:
            self._finish(RelayOutcome(OutcomeKind.STOP))
            return
        reason = fragment.terminal_reason
        if reason is not None:
            self.session.provider_finish_reason = reason

    def _on_delivery_error(self, exc: BaseException) -> None:
        if isinstance(exc, ConnectionGoneError):
            logger.info("relay client gone session_id=%s: %s", self.session.session_id, exc)
        else:
            logger.warning("relay delivery failed session_id=%s: %s", self.session.session_id, exc)
        self._finish(RelayOutcome(OutcomeKind.DISCONNECTED, str(exc)))

    def _on_stall(self) -> None:
        self._finish(RelayOutcome(OutcomeKind.TIMEOUT, f"no upstream data for {self._stall_grace_s:g}s"))


__all__ = ["Relay"]
