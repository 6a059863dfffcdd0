from __future__ import annotations

import asyncio

import pytest

from tests.fakes import RecordingSink
from streamrelay.state import QueueState
from streamrelay.errors import ConnectionGoneError
from streamrelay.relay.delivery import DeliveryQueue


@pytest.mark.asyncio
async def test_items_delivered_in_enqueue_order_without_overlap() -> None:
    sink = RecordingSink(delay_s=0.005)
    queue = DeliveryQueue(sink)

    for i in range(10):
        queue.enqueue(i)
    await asyncio.wait_for(queue.drained(), timeout=2.0)

    assert sink.items == list(range(10))
    assert sink.max_active == 1
    assert queue.delivered == 10
    queue.close()
    await queue.wait_closed()


@pytest.mark.asyncio
async def test_items_enqueued_while_in_flight_wait_their_turn() -> None:
    sink = RecordingSink(delay_s=0.05)
    queue = DeliveryQueue(sink)

    queue.enqueue("a")
    await asyncio.sleep(0.01)
    assert queue.in_flight
    assert queue.state is QueueState.DRAINING

    queue.enqueue("b")
    queue.enqueue("c")
    assert sink.items == []

    await asyncio.wait_for(queue.drained(), timeout=2.0)
    assert sink.items == ["a", "b", "c"]
    assert sink.max_active == 1
    assert queue.state is QueueState.IDLE
    queue.close()
    await queue.wait_closed()


@pytest.mark.asyncio
async def test_on_delivered_runs_after_each_sink_call() -> None:
    events: list[tuple[str, int]] = []

    async def sink(item: int) -> None:
        await asyncio.sleep(0)
        events.append(("sink", item))

    queue = DeliveryQueue(sink, on_delivered=lambda item: events.append(("delivered", item)))
    for i in range(3):
        await queue.put(i)
    await asyncio.wait_for(queue.drained(), timeout=1.0)

    assert events == [
        ("sink", 0),
        ("delivered", 0),
        ("sink", 1),
        ("delivered", 1),
        ("sink", 2),
        ("delivered", 2),
    ]
    queue.close()
    await queue.wait_closed()


@pytest.mark.asyncio
async def test_sink_failure_closes_queue_without_retry() -> None:
    errors: list[BaseException] = []
    sink = RecordingSink(fail_at=2, error=ConnectionGoneError("c1"))
    queue = DeliveryQueue(sink, on_error=errors.append)

    for i in range(4):
        queue.enqueue(i)
    await asyncio.wait_for(queue.drained(), timeout=1.0)
    await asyncio.wait_for(queue.wait_closed(), timeout=1.0)

    assert sink.items == [0]
    assert sink.calls == 2
    assert queue.closed
    assert len(errors) == 1
    assert isinstance(errors[0], ConnectionGoneError)

    queue.enqueue(99)
    await asyncio.sleep(0.01)
    assert sink.calls == 2


@pytest.mark.asyncio
async def test_close_lets_in_flight_item_finish_and_drops_the_rest() -> None:
    sink = RecordingSink(delay_s=0.05)
    queue = DeliveryQueue(sink)

    for i in range(3):
        queue.enqueue(i)
    await asyncio.sleep(0.01)
    assert queue.in_flight

    queue.close()
    await asyncio.wait_for(queue.wait_closed(), timeout=1.0)

    assert sink.items == [0]
    assert queue.state is QueueState.CLOSED
    assert not queue.in_flight

    queue.enqueue(3)
    await asyncio.sleep(0.01)
    assert sink.items == [0]


@pytest.mark.asyncio
async def test_close_on_idle_queue_stops_worker() -> None:
    queue = DeliveryQueue(RecordingSink())
    queue.start()
    await asyncio.sleep(0)
    assert queue.state is QueueState.IDLE

    queue.close()
    queue.close()
    await asyncio.wait_for(queue.wait_closed(), timeout=1.0)
    assert queue.closed
