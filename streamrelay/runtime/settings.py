"""Load runtime settings.

Configuration values are resolved from the environment in `streamrelay/config/*`
and exposed here as structured dataclasses for the rest of the server.
"""

from __future__ import annotations

from streamrelay.config.limits import MAX_CONCURRENT_CONNECTIONS
from streamrelay.state.settings import (
    AppSettings,
    RelaySettings,
    LimitsSettings,
    UpstreamSettings,
    WebSocketSettings,
)
from streamrelay.config.upstream import (
    UPSTREAM_DEFAULT_FLAVOR,
    UPSTREAM_READ_TIMEOUT_S,
    UPSTREAM_CONNECT_TIMEOUT_S,
)
from streamrelay.config.websocket import (
    WS_IDLE_TIMEOUT_S,
    WS_SEND_TIMEOUT_S,
    WS_WATCHDOG_TICK_S,
    WS_MAX_CONNECTION_DURATION_S,
)
from streamrelay.config.relay import (
    RELAY_MAX_TOKENS,
    RELAY_STALL_POLL_S,
    RELAY_STALL_GRACE_S,
    RELAY_MAX_RESIDUE_CHARS,
    RELAY_DELIVERY_QUEUE_MAX,
)


def load_settings() -> AppSettings:
    return AppSettings(
        limits=LimitsSettings(
            max_concurrent_connections=MAX_CONCURRENT_CONNECTIONS,
        ),
        websocket=WebSocketSettings(
            idle_timeout_s=WS_IDLE_TIMEOUT_S,
            watchdog_tick_s=WS_WATCHDOG_TICK_S,
            max_connection_duration_s=WS_MAX_CONNECTION_DURATION_S,
            send_timeout_s=WS_SEND_TIMEOUT_S,
        ),
        relay=RelaySettings(
            stall_grace_s=RELAY_STALL_GRACE_S,
            stall_poll_s=RELAY_STALL_POLL_S,
            max_tokens=RELAY_MAX_TOKENS,
            delivery_queue_max=RELAY_DELIVERY_QUEUE_MAX,
            max_residue_chars=RELAY_MAX_RESIDUE_CHARS,
        ),
        upstream=UpstreamSettings(
            default_flavor=UPSTREAM_DEFAULT_FLAVOR,
            connect_timeout_s=UPSTREAM_CONNECT_TIMEOUT_S,
            read_timeout_s=UPSTREAM_READ_TIMEOUT_S,
        ),
    )


__all__ = ["load_settings"]
