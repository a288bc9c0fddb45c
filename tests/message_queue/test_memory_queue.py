"""
Tests for InMemoryQueue implementation.
"""

import asyncio

import pytest

from webhook_relay.message_queue import (
    InMemoryQueue,
    QueueClosedError,
    QueueOverflowError,
    SubscriberOverflowError,
)


class TestInMemoryQueue:
    """Test suite for InMemoryQueue."""

    @pytest.fixture
    def queue(self):
        """Create a fresh queue for each test."""
        return InMemoryQueue("orders", capacity=2, max_subscribers=3)

    async def test_enqueue_and_dequeue_fifo(self, queue):
        """Messages come out in arrival order."""
        await queue.enqueue(b"a")
        await queue.enqueue(b"b")

        assert await queue.dequeue() == b"a"
        assert await queue.dequeue() == b"b"

    async def test_enqueue_rejects_when_full(self, queue):
        """The message past capacity is rejected, nothing is overwritten."""
        await queue.enqueue(b"a")
        await queue.enqueue(b"b")

        with pytest.raises(QueueOverflowError) as exc_info:
            await queue.enqueue(b"c")

        assert exc_info.value.capacity == 2
        assert len(queue) == 2
        assert await queue.dequeue() == b"a"

    async def test_enqueue_succeeds_again_after_drain(self, queue):
        """Freeing one slot lets the next push in."""
        await queue.enqueue(b"a")
        await queue.enqueue(b"b")
        await queue.dequeue()

        await queue.enqueue(b"c")

        assert len(queue) == 2

    async def test_dequeue_waits_for_message(self, queue):
        """Dequeue blocks until a producer enqueues."""
        consumer = asyncio.create_task(queue.dequeue())
        await asyncio.sleep(0.05)
        assert not consumer.done()

        await queue.enqueue(b"late")

        assert await asyncio.wait_for(consumer, timeout=1.0) == b"late"

    async def test_close_wakes_waiting_consumer(self, queue):
        """A blocked dequeue raises once the queue is closed."""
        consumer = asyncio.create_task(queue.dequeue())
        await asyncio.sleep(0.01)

        await queue.close()

        with pytest.raises(QueueClosedError):
            await asyncio.wait_for(consumer, timeout=1.0)

    async def test_closed_queue_drains_remaining_messages(self, queue):
        """Buffered messages survive close; pushes are rejected."""
        await queue.enqueue(b"a")
        await queue.close()

        with pytest.raises(QueueClosedError):
            await queue.enqueue(b"b")

        assert await queue.dequeue() == b"a"
        with pytest.raises(QueueClosedError):
            await queue.dequeue()

    async def test_requeue_returns_message_to_head(self, queue):
        """A returned message is dequeued before newer ones, even when full."""
        await queue.enqueue(b"a")
        await queue.enqueue(b"b")
        taken = await queue.dequeue()
        await queue.enqueue(b"c")

        await queue.requeue(taken)

        assert len(queue) == 3
        assert [await queue.dequeue() for _ in range(3)] == [b"a", b"b", b"c"]

    async def test_subscribe_up_to_limit(self, queue):
        """Subscribers are kept in registration order up to the limit."""
        for i in range(3):
            await queue.subscribe(f"http://consumer/{i}")

        with pytest.raises(SubscriberOverflowError) as exc_info:
            await queue.subscribe("http://consumer/extra")

        assert exc_info.value.limit == 3
        assert await queue.get_subscribers() == (
            "http://consumer/0",
            "http://consumer/1",
            "http://consumer/2",
        )

    async def test_subscriber_limit_independent_of_capacity(self):
        """max_subscribers, not the buffer capacity, bounds the subscriber list."""
        queue = InMemoryQueue("orders", capacity=1, max_subscribers=4)

        for i in range(4):
            await queue.subscribe(f"http://consumer/{i}")

        assert len(await queue.get_subscribers()) == 4

    async def test_concurrent_subscribes_respect_limit(self, queue):
        """Racing subscribers never push the list past its limit."""
        results = await asyncio.gather(
            *(queue.subscribe(f"http://consumer/{i}") for i in range(10)),
            return_exceptions=True,
        )

        rejected = [r for r in results if isinstance(r, SubscriberOverflowError)]
        assert len(rejected) == 7
        assert len(await queue.get_subscribers()) == 3

    async def test_subscriber_snapshot_is_immutable(self, queue):
        """Later subscriptions do not show up in an earlier snapshot."""
        await queue.subscribe("http://consumer/0")
        snapshot = await queue.get_subscribers()

        await queue.subscribe("http://consumer/1")

        assert snapshot == ("http://consumer/0",)

    async def test_get_stats(self, queue):
        """Stats reflect depth, capacity and subscribers."""
        await queue.enqueue(b"a")
        await queue.subscribe("http://consumer/0")

        stats = queue.get_stats()

        assert stats.name == "orders"
        assert stats.depth == 1
        assert stats.capacity == 2
        assert stats.subscribers == 1
        assert stats.max_subscribers == 3
        assert stats.closed is False

    def test_rejects_non_positive_limits(self):
        with pytest.raises(ValueError):
            InMemoryQueue("orders", capacity=0, max_subscribers=1)
        with pytest.raises(ValueError):
            InMemoryQueue("orders", capacity=1, max_subscribers=0)
