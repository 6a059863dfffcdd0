"""Per-relay session state (dataclasses and enums only)."""

from __future__ import annotations

import time
from enum import Enum
from dataclasses import field, dataclass


class RelayPhase(str, Enum):
    REQUESTING = "requesting"
    STREAMING = "streaming"
    TERMINATING = "terminating"
    DONE = "done"


class OutcomeKind(str, Enum):
    STOP = "stop"
    COMPLETED = "completed"
    ERROR = "error"
    TIMEOUT = "timeout"
    DISCONNECTED = "disconnected"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class RelayOutcome:
    kind: OutcomeKind
    detail: str | None = None

    @property
    def sends_failure_envelope(self) -> bool:
        return self.kind in {OutcomeKind.ERROR, OutcomeKind.TIMEOUT}


@dataclass(slots=True)
class SessionState:
    session_id: str
    request_id: str
    phase: RelayPhase = RelayPhase.REQUESTING
    last_fragment_at: float = field(default_factory=time.monotonic)
    terminated: bool = False
    stream_open: bool = False
    stop_seen: bool = False
    # Last non-"stop" terminal marker delivered to the client (e.g. "length").
    provider_finish_reason: str | None = None
    fragments_received: int = 0
    items_delivered: int = 0
    outcome: RelayOutcome | None = None


__all__ = ["OutcomeKind", "RelayOutcome", "RelayPhase", "SessionState"]
