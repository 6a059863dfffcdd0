"""Typed runtime state objects for dependency wiring."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from streamrelay.state.settings import AppSettings
    from streamrelay.relay.bridge import RelayBridge
    from streamrelay.relay.upstream import UpstreamClient
    from streamrelay.handlers.connections import ConnectionManager


@dataclass(slots=True)
class RuntimeDeps:
    connections: ConnectionManager
    relay_bridge: RelayBridge
    settings: AppSettings
    _upstream: UpstreamClient

    async def shutdown(self) -> None:
        try:
            await self._upstream.aclose()
        except Exception:
            logger.exception("runtime shutdown failed")


__all__ = ["RuntimeDeps"]
