"""Factory for relay sessions bound to the shared upstream client."""

from __future__ import annotations

from streamrelay.state.settings import RelaySettings

from .relay import Relay
from .delivery import Sink
from .request import RelayRequest
from .upstream import UpstreamClient


class RelayBridge:
    def __init__(self, *, upstream: UpstreamClient, settings: RelaySettings) -> None:
        self._upstream = upstream
        self._settings = settings

    def new_relay(self, request: RelayRequest, *, sink: Sink, session_id: str) -> Relay:
        return Relay(
            request=request,
            upstream=self._upstream,
            sink=sink,
            session_id=session_id,
            stall_grace_s=self._settings.stall_grace_s,
            stall_poll_s=self._settings.stall_poll_s,
            delivery_queue_max=self._settings.delivery_queue_max,
            max_residue_chars=self._settings.max_residue_chars,
        )


__all__ = ["RelayBridge"]
