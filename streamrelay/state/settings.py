"""Runtime settings (dataclasses only)."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LimitsSettings:
    max_concurrent_connections: int


@dataclass(frozen=True, slots=True)
class WebSocketSettings:
    idle_timeout_s: float
    watchdog_tick_s: float
    max_connection_duration_s: float
    send_timeout_s: float


@dataclass(frozen=True, slots=True)
class RelaySettings:
    stall_grace_s: float
    stall_poll_s: float
    max_tokens: int
    delivery_queue_max: int
    max_residue_chars: int


@dataclass(frozen=True, slots=True)
class UpstreamSettings:
    default_flavor: str
    connect_timeout_s: float
    read_timeout_s: float


@dataclass(frozen=True, slots=True)
class AppSettings:
    limits: LimitsSettings
    websocket: WebSocketSettings
    relay: RelaySettings
    upstream: UpstreamSettings


__all__ = [
    "AppSettings",
    "LimitsSettings",
    "RelaySettings",
    "UpstreamSettings",
    "WebSocketSettings",
]
