"""Shared error types for the stream relay server.

Not frozen: errors cross generator-based context managers (``open_stream``),
and contextlib assigns ``__traceback__`` on the way out.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, eq=False)
class UpstreamRequestError(Exception):
    """Raised when the upstream completion request fails, on open or mid-stream."""

    message: str
    status_code: int | None = None

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (status {self.status_code})"


@dataclass(slots=True, eq=False)
class ConnectionGoneError(Exception):
    """Raised when posting to a client connection that no longer exists."""

    connection_id: str

    def __str__(self) -> str:
        return f"connection {self.connection_id} is gone"


__all__ = ["ConnectionGoneError", "UpstreamRequestError"]
