"""
Base Queue Interface

Abstract interface for a named, bounded message queue with its own
subscriber list.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel


class QueueStats(BaseModel):
    """
    Point-in-time queue statistics.

    Attributes:
        name: Queue name
        depth: Messages waiting in the buffer
        capacity: Buffer capacity
        subscribers: Registered callbacks
        max_subscribers: Subscriber capacity
        closed: Whether the queue has been closed
    """
    name: str
    depth: int = 0
    capacity: int
    subscribers: int = 0
    max_subscribers: int
    closed: bool = False


class MessageQueue(ABC):
    """
    Abstract message queue interface.

    Implementations must provide:
    - Enqueue: Add a message without waiting for space
    - Dequeue: Wait for the next message
    - Requeue: Return a message that could not be handed off
    - Close: Stop accepting messages and wake waiting consumers
    - Subscribe: Register a callback address
    - Subscribers: Snapshot of registered callbacks
    - Stats: Current queue statistics
    """

    name: str

    @abstractmethod
    async def enqueue(self, message: bytes) -> None:
        """
        Add message to the buffer.

        Raises:
            QueueOverflowError: If the buffer is full
            QueueClosedError: If the queue is closed
        """

    @abstractmethod
    async def dequeue(self) -> bytes:
        """
        Wait for and remove the oldest message.

        Raises:
            QueueClosedError: Once the queue is closed and drained
        """

    @abstractmethod
    async def requeue(self, message: bytes) -> None:
        """
        Put a dequeued message back at the head of the buffer. Ignores
        capacity and the closed flag: the message was already accepted.
        """

    @abstractmethod
    async def close(self) -> None:
        """Close the queue. Buffered messages can still be dequeued."""

    @abstractmethod
    async def subscribe(self, callback: str) -> None:
        """
        Register a callback address.

        Raises:
            SubscriberOverflowError: If the subscriber list is full
        """

    @abstractmethod
    async def get_subscribers(self) -> tuple[str, ...]:
        """Snapshot of the current subscribers, in registration order."""

    @abstractmethod
    def get_stats(self) -> QueueStats:
        """Current queue statistics."""
