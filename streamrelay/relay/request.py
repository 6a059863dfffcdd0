"""Inbound chat-completion request parsing for a relay session."""

from __future__ import annotations

from typing import Any
from dataclasses import dataclass

from streamrelay.config.upstream import UPSTREAM_FLAVORS, UPSTREAM_DEFAULT_FLAVOR


@dataclass(frozen=True, slots=True)
class RelayRequest:
    api_key: str
    base_url: str
    flavor: str
    model: str
    messages: list[dict[str, Any]]
    request_id: str
    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None


def _required_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"payload.{key} must be a non-empty string")
    return value.strip()


def _optional_number(payload: dict[str, Any], key: str) -> float | None:
    value = payload.get(key)
    if value is None:
        return None
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValueError(f"payload.{key} must be a number")
    return float(value)


def parse_relay_request(
    payload: dict[str, Any],
    *,
    request_id: str,
    default_flavor: str = UPSTREAM_DEFAULT_FLAVOR,
) -> RelayRequest:
    api_key = _required_str(payload, "api_key")
    base_url = _required_str(payload, "base_url").rstrip("/")
    model = _required_str(payload, "model")

    flavor_raw = payload.get("flavor")
    if flavor_raw is None:
        flavor = default_flavor
    elif isinstance(flavor_raw, str) and flavor_raw.strip().lower() in UPSTREAM_FLAVORS:
        flavor = flavor_raw.strip().lower()
    else:
        raise ValueError(f"payload.flavor must be one of {sorted(UPSTREAM_FLAVORS)}")

    messages = payload.get("messages")
    if not isinstance(messages, list) or not messages:
        raise ValueError("payload.messages must be a non-empty list")
    if not all(isinstance(m, dict) for m in messages):
        raise ValueError("payload.messages entries must be objects")

    max_tokens_raw = payload.get("max_tokens")
    max_tokens: int | None = None
    if max_tokens_raw is not None:
        if isinstance(max_tokens_raw, bool) or not isinstance(max_tokens_raw, int) or max_tokens_raw < 0:
            raise ValueError("payload.max_tokens must be a non-negative integer")
        max_tokens = max_tokens_raw

    return RelayRequest(
        api_key=api_key,
        base_url=base_url,
        flavor=flavor,
        model=model,
        messages=messages,
        request_id=request_id,
        temperature=_optional_number(payload, "temperature"),
        top_p=_optional_number(payload, "top_p"),
        max_tokens=max_tokens,
    )


__all__ = ["RelayRequest", "parse_relay_request"]
