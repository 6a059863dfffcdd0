from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator

import pytest

from streamrelay.errors import ConnectionGoneError, UpstreamRequestError


@contextlib.asynccontextmanager
async def _passthrough() -> AsyncIterator[None]:
    yield


def test_error_messages() -> None:
    assert str(UpstreamRequestError("upstream returned an error")) == "upstream returned an error"
    assert str(UpstreamRequestError("upstream returned an error", status_code=502)) == (
        "upstream returned an error (status 502)"
    )
    assert str(ConnectionGoneError("c1")) == "connection c1 is gone"


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [UpstreamRequestError("peer closed connection"), ConnectionGoneError("c1")])
async def test_errors_propagate_through_async_context_managers(error: Exception) -> None:
    with pytest.raises(type(error)) as excinfo:
        async with _passthrough():
            raise error

    assert excinfo.value is error
    assert error.__traceback__ is not None


def test_errors_stay_hashable() -> None:
    error = UpstreamRequestError("x")
    assert error in {error}
