from .runtime import RuntimeDeps
from .settings import AppSettings
from .delivery import QueueState
from .connection import ConnectionState
from .session import RelayPhase, OutcomeKind, RelayOutcome, SessionState

__all__ = [
    "AppSettings",
    "ConnectionState",
    "OutcomeKind",
    "QueueState",
    "RelayOutcome",
    "RelayPhase",
    "RuntimeDeps",
    "SessionState",
]
