"""Incremental extraction of JSON objects from a noisy, fragmented text stream.

Upstream providers deliver the completion as arbitrary byte chunks: one object
may span chunks, one chunk may hold several objects plus the start of another,
and non-JSON noise (SSE ``data:`` prefixes, ``[DONE]`` markers, keep-alives)
sits between objects. ``deframe`` scans ``residue + fragment`` tracking brace
depth and whether it is inside a quoted string, decodes every balanced
``{...}`` candidate, and hands back the unconsumed tail as the next residue.

No scanner state survives between calls except the residue text itself. The
residue always starts at a clean point (depth zero, outside a string), so
rescanning it reproduces the exact state the previous call ended in and the
objects produced do not depend on where the fragment boundaries fell.
"""

from __future__ import annotations

import logging
from typing import Any

import orjson

logger = logging.getLogger(__name__)

_QUOTE = '"'
_BACKSLASH = "\\"
_OPEN = "{"
_CLOSE = "}"


def _is_escaped(text: str, index: int) -> bool:
    """True when the character at ``index`` follows an odd run of backslashes."""
    run = 0
    j = index - 1
    while j >= 0 and text[j] == _BACKSLASH:
        run += 1
        j -= 1
    return run % 2 == 1


def _scan(residue: str, fragment: str) -> tuple[list[Any], str, int]:
    text = residue + fragment
    objects: list[Any] = []
    discarded = 0

    depth = 0
    in_string = False
    start = -1
    restart = 0

    for i, ch in enumerate(text):
        if in_string:
            if ch == _QUOTE and not _is_escaped(text, i):
                in_string = False
                if depth == 0:
                    restart = i + 1
            continue

        if ch == _QUOTE:
            in_string = True
            continue

        if ch == _OPEN:
            if depth == 0:
                start = i
            depth += 1
        elif ch == _CLOSE and depth > 0:
            depth -= 1
            if depth == 0:
                candidate = text[start : i + 1]
                try:
                    objects.append(orjson.loads(candidate))
                except orjson.JSONDecodeError:
                    discarded += 1
                start = -1

        if depth == 0:
            restart = i + 1

    return objects, text[restart:], discarded


def deframe(residue: str, fragment: str) -> tuple[list[Any], str]:
    """Extract complete objects from ``residue + fragment``.

    Returns the decoded objects in stream order and the residue to prepend to
    the next fragment. Candidates that fail to decode are dropped silently.
    """
    objects, new_residue, _discarded = _scan(residue, fragment)
    return objects, new_residue


class Deframer:
    """Carry the residue between ``deframe`` calls for one upstream stream."""

    def __init__(self, *, max_residue_chars: int = 0) -> None:
        self.residue: str = ""
        self.discarded: int = 0
        self._max_residue_chars = max(0, int(max_residue_chars))

    def feed(self, fragment: str) -> list[Any]:
        objects, residue, discarded = _scan(self.residue, fragment)
        if discarded:
            self.discarded += discarded
            logger.debug("deframer: dropped %s undecodable candidate(s)", discarded)

        if self._max_residue_chars and len(residue) > self._max_residue_chars:
            logger.warning(
                "deframer: residue exceeded %s chars without closing; dropping it",
                self._max_residue_chars,
            )
            self.discarded += 1
            residue = ""

        self.residue = residue
        return objects


__all__ = ["Deframer", "deframe"]
