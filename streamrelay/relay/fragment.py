"""Decoded completion increments (one provider ``choices[0]`` entry each)."""

from __future__ import annotations

from typing import Any
from dataclasses import dataclass

FINISH_REASON_STOP = "stop"

# Markers that mean "still generating" rather than a terminal reason.
_NON_TERMINAL_REASONS = {"", "in-progress", "in_progress", "null", "none"}


@dataclass(frozen=True, slots=True)
class MessageFragment:
    choice: dict[str, Any]

    @classmethod
    def from_chunk(cls, obj: Any) -> MessageFragment | None:
        """Build a fragment from a provider chunk; None when it carries no choices."""
        if not isinstance(obj, dict):
            return None
        choices = obj.get("choices")
        if not isinstance(choices, list) or not choices:
            return None
        first = choices[0]
        if not isinstance(first, dict):
            return None
        return cls(choice=first)

    @property
    def content(self) -> str | None:
        delta = self.choice.get("delta")
        if not isinstance(delta, dict):
            return None
        text = delta.get("content")
        return text if isinstance(text, str) else None

    @property
    def finish_reason(self) -> str | None:
        reason = self.choice.get("finish_reason")
        return reason if isinstance(reason, str) else None

    @property
    def is_stop(self) -> bool:
        return self.finish_reason == FINISH_REASON_STOP

    @property
    def terminal_reason(self) -> str | None:
        """The finish reason when it ends generation, else None."""
        reason = self.finish_reason
        if reason is None or reason.strip().lower() in _NON_TERMINAL_REASONS:
            return None
        return reason


__all__ = ["FINISH_REASON_STOP", "MessageFragment"]
