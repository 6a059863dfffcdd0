"""Upstream chat-completion API configuration (env-resolved constants only)."""

from __future__ import annotations

import os

FLAVOR_OPENAI = "openai"
FLAVOR_API_KEY = "api_key"
UPSTREAM_FLAVORS = frozenset({FLAVOR_OPENAI, FLAVOR_API_KEY})

# Appended to the base URL for the OpenAI-compatible flavor.
OPENAI_COMPLETIONS_PATH = "/v1/chat/completions"

_DEFAULT_FLAVOR_RAW = (os.getenv("UPSTREAM_DEFAULT_FLAVOR") or "").strip().lower()
UPSTREAM_DEFAULT_FLAVOR: str = _DEFAULT_FLAVOR_RAW if _DEFAULT_FLAVOR_RAW in UPSTREAM_FLAVORS else FLAVOR_OPENAI

_CONNECT_TIMEOUT_RAW = (os.getenv("UPSTREAM_CONNECT_TIMEOUT_S") or "").strip()
try:
    UPSTREAM_CONNECT_TIMEOUT_S: float = float(_CONNECT_TIMEOUT_RAW) if _CONNECT_TIMEOUT_RAW else 10.0
except Exception:
    UPSTREAM_CONNECT_TIMEOUT_S = 10.0
if UPSTREAM_CONNECT_TIMEOUT_S <= 0:
    UPSTREAM_CONNECT_TIMEOUT_S = 10.0

# Read timeout is a backstop only; stalls are detected by the relay watchdog first.
_READ_TIMEOUT_RAW = (os.getenv("UPSTREAM_READ_TIMEOUT_S") or "").strip()
try:
    UPSTREAM_READ_TIMEOUT_S: float = float(_READ_TIMEOUT_RAW) if _READ_TIMEOUT_RAW else 120.0
except Exception:
    UPSTREAM_READ_TIMEOUT_S = 120.0
if UPSTREAM_READ_TIMEOUT_S <= 0:
    UPSTREAM_READ_TIMEOUT_S = 120.0

__all__ = [
    "FLAVOR_API_KEY",
    "FLAVOR_OPENAI",
    "OPENAI_COMPLETIONS_PATH",
    "UPSTREAM_CONNECT_TIMEOUT_S",
    "UPSTREAM_DEFAULT_FLAVOR",
    "UPSTREAM_FLAVORS",
    "UPSTREAM_READ_TIMEOUT_S",
]
