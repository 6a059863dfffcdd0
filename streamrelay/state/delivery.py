"""Delivery queue states (enums only)."""

from __future__ import annotations

from enum import Enum


class QueueState(str, Enum):
    IDLE = "idle"
    DRAINING = "draining"
    CLOSED = "closed"


__all__ = ["QueueState"]
