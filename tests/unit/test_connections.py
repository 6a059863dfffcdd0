from __future__ import annotations

import asyncio

import orjson
import pytest

from streamrelay.errors import ConnectionGoneError
from streamrelay.handlers.connections import ConnectionManager
from streamrelay.config.websocket import WS_CLOSE_SEND_TIMEOUT_CODE, WS_CLOSE_SEND_TIMEOUT_REASON


class _FakeWebSocket:
    def __init__(self, *, fail: BaseException | None = None, delay_s: float = 0.0) -> None:
        self.sent: list[str] = []
        self.fail = fail
        self.delay_s = delay_s
        self.close_code: int | None = None
        self.close_reason: str | None = None

    async def send_text(self, text: str) -> None:
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.fail is not None:
            raise self.fail
        self.sent.append(text)

    async def close(self, *, code: int = 1000, reason: str | None = None) -> None:
        self.close_code = code
        self.close_reason = reason or ""


@pytest.mark.asyncio
async def test_connect_admits_until_capacity() -> None:
    manager = ConnectionManager(max_connections=2)
    first = await manager.connect(_FakeWebSocket())
    second = await manager.connect(_FakeWebSocket())
    third = await manager.connect(_FakeWebSocket())

    assert first and second and first != second
    assert third is None
    assert manager.get_connection_count() == 2

    await manager.disconnect(first)
    assert manager.get_connection_count() == 1
    assert await manager.connect(_FakeWebSocket()) is not None


@pytest.mark.asyncio
async def test_post_to_connection_sends_json_text() -> None:
    manager = ConnectionManager(max_connections=1)
    ws = _FakeWebSocket()
    connection_id = await manager.connect(ws)
    assert connection_id is not None

    await manager.post_to_connection(connection_id, {"type": "chunk", "payload": {"delta": {"content": "é"}}})

    assert [orjson.loads(text) for text in ws.sent] == [{"type": "chunk", "payload": {"delta": {"content": "é"}}}]


@pytest.mark.asyncio
async def test_post_to_unknown_connection_is_gone() -> None:
    manager = ConnectionManager(max_connections=1)
    with pytest.raises(ConnectionGoneError) as excinfo:
        await manager.post_to_connection("missing", {})
    assert excinfo.value.connection_id == "missing"


@pytest.mark.asyncio
async def test_post_after_disconnect_is_gone() -> None:
    manager = ConnectionManager(max_connections=1)
    connection_id = await manager.connect(_FakeWebSocket())
    assert connection_id is not None
    await manager.disconnect(connection_id)

    with pytest.raises(ConnectionGoneError):
        await manager.post_to_connection(connection_id, {})


@pytest.mark.asyncio
async def test_slow_send_times_out_and_closes_connection() -> None:
    manager = ConnectionManager(max_connections=1, send_timeout_s=0.02)
    ws = _FakeWebSocket(delay_s=1.0)
    connection_id = await manager.connect(ws)
    assert connection_id is not None

    with pytest.raises(ConnectionGoneError):
        await manager.post_to_connection(connection_id, {"type": "chunk"})

    assert ws.close_code == WS_CLOSE_SEND_TIMEOUT_CODE
    assert ws.close_reason == WS_CLOSE_SEND_TIMEOUT_REASON
    assert manager.lookup(connection_id) is None
    assert manager.get_connection_count() == 0

    with pytest.raises(ConnectionGoneError):
        await manager.post_to_connection(connection_id, {"type": "chunk"})


@pytest.mark.asyncio
async def test_send_failure_leaves_socket_to_its_handler() -> None:
    manager = ConnectionManager(max_connections=1)
    ws = _FakeWebSocket(fail=RuntimeError("send after close"))
    connection_id = await manager.connect(ws)
    assert connection_id is not None

    with pytest.raises(ConnectionGoneError):
        await manager.post_to_connection(connection_id, {"type": "chunk"})

    assert ws.close_code is None
