"""Per-connection protocol state (dataclasses only)."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass


@dataclass(slots=True)
class ConnectionState:
    connection_id: str
    session_id: str = "unknown"
    request_id: str = "unknown"
    relay_task: asyncio.Task | None = None
    relay_request_id: str | None = None

    def relay_active(self) -> bool:
        return self.relay_task is not None and not self.relay_task.done()


__all__ = ["ConnectionState"]
