"""Tests for the per-agent queue and the orchestrator's tiered queue."""
from __future__ import annotations

from typing import List

import pytest

from agentrouter.core.errors import AgentError, AgentErrorType
from agentrouter.core.message_queue import MessageQueue
from agentrouter.core.models import Message
from agentrouter.core.priority_queue import HIGH, LOW, NORMAL, PriorityMessageQueue, tier_for
from conftest import FakeClock, make_message


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class Recorder:
    def __init__(self, fail_on: str = "") -> None:
        self.seen: List[str] = []
        self.fail_on = fail_on

    async def __call__(self, message: Message) -> None:
        if message.id == self.fail_on:
            raise RuntimeError("callback failed")
        self.seen.append(message.id)


@pytest.mark.anyio
async def test_message_queue_orders_by_priority_and_keeps_ties_stable() -> None:
    queue = MessageQueue(Recorder())
    queue.set_processing(True)
    for message_id, priority in (("a", 1), ("b", 3), ("c", 2), ("d", None), ("e", 3)):
        await queue.enqueue(make_message(message_id, priority=priority))

    assert [message.id for message in queue.peek_all()] == ["b", "e", "c", "a", "d"]


@pytest.mark.anyio
async def test_message_queue_drains_on_enqueue() -> None:
    recorder = Recorder()
    queue = MessageQueue(recorder)
    queue.set_processing(True)
    await queue.enqueue(make_message("low", priority=1))
    await queue.enqueue(make_message("high", priority=9))
    queue.set_processing(False)

    await queue.enqueue(make_message("mid", priority=5))

    assert recorder.seen == ["high", "mid", "low"]
    assert queue.size == 0
    assert not queue.is_processing


@pytest.mark.anyio
async def test_message_queue_rejects_when_full() -> None:
    queue = MessageQueue(Recorder(), max_size=2)
    queue.set_processing(True)
    await queue.enqueue(make_message("1"))
    await queue.enqueue(make_message("2"))

    with pytest.raises(AgentError) as excinfo:
        await queue.enqueue(make_message("3"))

    assert excinfo.value.kind is AgentErrorType.QUEUE_FULL
    assert len(queue) == 2


@pytest.mark.anyio
async def test_message_queue_failure_keeps_remaining_items() -> None:
    queue = MessageQueue(Recorder(fail_on="bad"))
    queue.set_processing(True)
    await queue.enqueue(make_message("bad", priority=5))
    await queue.enqueue(make_message("ok", priority=1))
    queue.set_processing(False)

    with pytest.raises(RuntimeError):
        await queue.enqueue(make_message("last", priority=0))

    assert not queue.is_processing
    assert [message.id for message in queue.peek_all()] == ["ok", "last"]


@pytest.mark.anyio
async def test_message_queue_clear_resets_processing() -> None:
    queue = MessageQueue(Recorder())
    queue.set_processing(True)
    await queue.enqueue(make_message("1"))

    queue.clear()

    assert queue.size == 0
    assert not queue.is_processing
    assert queue.dequeue() is None


@pytest.mark.parametrize(
    "priority, tier",
    [(None, LOW), (0, LOW), (2, LOW), (2.5, NORMAL), (5, NORMAL), (5.5, HIGH), (10, HIGH)],
)
def test_tier_boundaries(priority, tier) -> None:
    assert tier_for(make_message("m", priority=priority)) == tier


def test_priority_queue_dequeues_tiers_in_order_fifo_within_tier(clock: FakeClock) -> None:
    queue = PriorityMessageQueue(clock=clock)
    for message_id, priority in (("p1", 1), ("p3", 3), ("p2", 2), ("p6", 6), ("none", None), ("p10", 10)):
        queue.enqueue(make_message(message_id, priority=priority))
        clock.advance_ms(1)

    order = [queue.dequeue().id for _ in range(queue.size)]

    assert queue.dequeue() is None
    assert order == ["p6", "p10", "p3", "p1", "p2", "none"]


def test_priority_queue_stats_and_clear(clock: FakeClock) -> None:
    queue = PriorityMessageQueue(clock=clock)
    queue.enqueue(make_message("a", priority=8))
    queue.enqueue(make_message("b", priority=4))
    queue.enqueue(make_message("c", priority=4))
    queue.enqueue(make_message("d"))

    stats = queue.get_stats()
    assert (stats.total, stats.high, stats.normal, stats.low) == (4, 1, 2, 1)
    assert stats.is_processing is False
    assert queue.size == len(queue) == 4

    queue.clear()
    assert queue.size == 0
    assert queue.dequeue() is None


def test_priority_queue_requeue_goes_to_back_of_tier(clock: FakeClock) -> None:
    queue = PriorityMessageQueue(clock=clock)
    queue.enqueue(make_message("first", priority=3))
    queue.enqueue(make_message("second", priority=3))

    item = queue.dequeue_item()
    assert item is not None and item.message.id == "first"
    queue.enqueue(item.message)

    assert [queue.dequeue().id, queue.dequeue().id] == ["second", "first"]
