"""
In-Memory Message Queue

Bounded FIFO buffer plus subscriber list, built on asyncio primitives.
Data is lost on restart.
"""

import asyncio
from collections import deque

from webhook_relay.message_queue.base import MessageQueue, QueueStats
from webhook_relay.message_queue.errors import (
    QueueClosedError,
    QueueOverflowError,
    SubscriberOverflowError,
)


class InMemoryQueue(MessageQueue):
    """
    In-memory bounded queue.

    Producers never wait: a full buffer rejects the message. The single
    consumer (the dispatcher's drain task) waits on a condition until a
    message arrives or the queue is closed, so an idle queue costs no CPU.

    The subscriber list has its own lock: subscribe holds it for the
    capacity check and append, readers copy the list under it.
    """

    def __init__(self, name: str, capacity: int, max_subscribers: int):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if max_subscribers <= 0:
            raise ValueError("max_subscribers must be positive")

        self.name = name
        self.capacity = capacity
        self.max_subscribers = max_subscribers
        self._buffer: deque[bytes] = deque()
        self._ready = asyncio.Condition()
        self._closed = False
        self._subscribers: list[str] = []
        self._subscribers_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"InMemoryQueue(name={self.name!r}, depth={len(self._buffer)}/{self.capacity})"

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._buffer)

    async def enqueue(self, message: bytes) -> None:
        async with self._ready:
            if self._closed:
                raise QueueClosedError(self.name)
            if len(self._buffer) >= self.capacity:
                raise QueueOverflowError(self.name, self.capacity)
            self._buffer.append(message)
            self._ready.notify()

    async def dequeue(self) -> bytes:
        async with self._ready:
            await self._ready.wait_for(lambda: self._buffer or self._closed)
            if self._buffer:
                return self._buffer.popleft()
            raise QueueClosedError(self.name)

    async def requeue(self, message: bytes) -> None:
        async with self._ready:
            self._buffer.appendleft(message)
            self._ready.notify()

    async def close(self) -> None:
        async with self._ready:
            self._closed = True
            self._ready.notify_all()

    async def subscribe(self, callback: str) -> None:
        async with self._subscribers_lock:
            if len(self._subscribers) >= self.max_subscribers:
                raise SubscriberOverflowError(self.name, self.max_subscribers)
            self._subscribers.append(callback)

    async def get_subscribers(self) -> tuple[str, ...]:
        async with self._subscribers_lock:
            return tuple(self._subscribers)

    def get_stats(self) -> QueueStats:
        return QueueStats(
            name=self.name,
            depth=len(self._buffer),
            capacity=self.capacity,
            subscribers=len(self._subscribers),
            max_subscribers=self.max_subscribers,
            closed=self._closed,
        )
