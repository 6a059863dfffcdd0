"""Relay engine settings (env-resolved constants only)."""

from __future__ import annotations

import os

_DISABLED_VALUES = {"0", "none", "null", "disabled", "disable", "off", "false"}


def _get_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return float(default)
    try:
        return float(raw)
    except Exception:
        return float(default)


def _get_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return int(default)
    if raw.lower() in _DISABLED_VALUES:
        return 0
    try:
        return int(raw)
    except Exception:
        return int(default)


# A session with no upstream bytes for this long is ended with a timeout.
RELAY_STALL_GRACE_S: float = _get_float("RELAY_STALL_GRACE_S", 8.0)
if RELAY_STALL_GRACE_S <= 0:
    RELAY_STALL_GRACE_S = 8.0

# Stall check cadence. Must stay well below the grace period.
RELAY_STALL_POLL_S: float = _get_float("RELAY_STALL_POLL_S", 1.0)
if RELAY_STALL_POLL_S <= 0 or RELAY_STALL_POLL_S >= RELAY_STALL_GRACE_S:
    RELAY_STALL_POLL_S = min(1.0, RELAY_STALL_GRACE_S / 10.0)

# Output length cap sent upstream as max_tokens. 0 disables the cap.
RELAY_MAX_TOKENS: int = max(0, _get_int("RELAY_MAX_TOKENS", 800))

# Pending deliveries per session before the upstream reader waits. 0 = unbounded.
RELAY_DELIVERY_QUEUE_MAX: int = max(0, _get_int("RELAY_DELIVERY_QUEUE_MAX", 0))

# Residue above this size is dropped (a stray quote in noise never closing).
RELAY_MAX_RESIDUE_CHARS: int = max(0, _get_int("RELAY_MAX_RESIDUE_CHARS", 1024 * 1024))

__all__ = [
    "RELAY_DELIVERY_QUEUE_MAX",
    "RELAY_MAX_RESIDUE_CHARS",
    "RELAY_MAX_TOKENS",
    "RELAY_STALL_GRACE_S",
    "RELAY_STALL_POLL_S",
]
