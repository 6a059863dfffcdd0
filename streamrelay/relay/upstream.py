"""Streaming client for the upstream chat-completion API."""

from __future__ import annotations

import logging
import contextlib
from typing import Any
from collections.abc import AsyncIterator

import httpx

from streamrelay.errors import UpstreamRequestError
from streamrelay.config.upstream import FLAVOR_API_KEY, OPENAI_COMPLETIONS_PATH

from .request import RelayRequest

logger = logging.getLogger(__name__)

_ERROR_DETAIL_MAX_BYTES = 512


def build_upstream_target(request: RelayRequest) -> tuple[str, dict[str, str]]:
    """Resolve the URL and auth header for the request's upstream flavor."""
    if request.flavor == FLAVOR_API_KEY:
        return request.base_url, {"API-Key": request.api_key}
    return f"{request.base_url}{OPENAI_COMPLETIONS_PATH}", {"Authorization": f"Bearer {request.api_key}"}


def build_upstream_body(request: RelayRequest, *, max_tokens: int = 0) -> dict[str, Any]:
    body: dict[str, Any] = {
        "model": request.model,
        "messages": request.messages,
        "stream": True,
    }
    if request.temperature is not None:
        body["temperature"] = request.temperature
    if request.top_p is not None:
        body["top_p"] = request.top_p
    cap = request.max_tokens if request.max_tokens is not None else max_tokens
    if cap and cap > 0:
        body["max_tokens"] = int(cap)
    return body


async def _read_error_detail(response: httpx.Response) -> str:
    try:
        raw = await response.aread()
    except httpx.HTTPError:
        return ""
    return raw[:_ERROR_DETAIL_MAX_BYTES].decode("utf-8", errors="replace").strip()


class UpstreamClient:
    """Issue streaming completion requests over a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        connect_timeout_s: float = 10.0,
        read_timeout_s: float = 120.0,
        max_tokens: int = 0,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(float(read_timeout_s), connect=float(connect_timeout_s))
        )
        self._max_tokens = max(0, int(max_tokens))

    @contextlib.asynccontextmanager
    async def open_stream(self, request: RelayRequest) -> AsyncIterator[AsyncIterator[bytes]]:
        """Open the upstream stream and yield its raw byte chunks.

        Transport failures and non-success statuses surface as
        ``UpstreamRequestError``, both while opening and mid-stream.
        """
        url, headers = build_upstream_target(request)
        body = build_upstream_body(request, max_tokens=self._max_tokens)
        try:
            async with self._client.stream("POST", url, headers=headers, json=body) as response:
                if response.is_error:
                    detail = await _read_error_detail(response)
                    logger.debug("upstream status %s for %s", response.status_code, url)
                    raise UpstreamRequestError(
                        message=f"upstream returned an error: {detail}" if detail else "upstream returned an error",
                        status_code=response.status_code,
                    )
                yield response.aiter_bytes()
        except httpx.HTTPError as exc:
            raise UpstreamRequestError(message=f"upstream request failed: {type(exc).__name__}: {exc}") from exc

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["UpstreamClient", "build_upstream_body", "build_upstream_target"]
