"""Runtime dependency construction (upstream client + connection directory)."""

from __future__ import annotations

import logging

from streamrelay.state import RuntimeDeps
from streamrelay.state.settings import AppSettings
from streamrelay.relay.bridge import RelayBridge
from streamrelay.relay.upstream import UpstreamClient
from streamrelay.handlers.connections import ConnectionManager

from .settings import load_settings

logger = logging.getLogger(__name__)


async def build_runtime_deps(settings: AppSettings | None = None) -> RuntimeDeps:
    settings = settings or load_settings()

    upstream = UpstreamClient(
        connect_timeout_s=settings.upstream.connect_timeout_s,
        read_timeout_s=settings.upstream.read_timeout_s,
        max_tokens=settings.relay.max_tokens,
    )
    relay_bridge = RelayBridge(upstream=upstream, settings=settings.relay)
    connections = ConnectionManager(
        max_connections=settings.limits.max_concurrent_connections,
        send_timeout_s=settings.websocket.send_timeout_s,
    )

    logger.info(
        "runtime: stall_grace_s=%s stall_poll_s=%s max_tokens=%s max_connections=%s",
        settings.relay.stall_grace_s,
        settings.relay.stall_poll_s,
        settings.relay.max_tokens,
        settings.limits.max_concurrent_connections,
    )

    return RuntimeDeps(
        connections=connections,
        relay_bridge=relay_bridge,
        settings=settings,
        _upstream=upstream,
    )


__all__ = ["RuntimeDeps", "build_runtime_deps"]
