"""
Queue Registry

The fixed set of queues known at startup, keyed by name.
"""

from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from webhook_relay.message_queue.base import MessageQueue
from webhook_relay.message_queue.errors import UnknownQueueError
from webhook_relay.message_queue.memory import InMemoryQueue


class QueueRegistry:
    """
    Immutable name -> queue mapping, built once and shared read-only.

    Iteration follows configuration order.
    """

    def __init__(self, queues: Iterable[MessageQueue]):
        by_name: dict[str, MessageQueue] = {}
        for queue in queues:
            if queue.name in by_name:
                raise ValueError(f"duplicate queue name: {queue.name!r}")
            by_name[queue.name] = queue
        self._queues: Mapping[str, MessageQueue] = MappingProxyType(by_name)

    @classmethod
    def from_names(
        cls,
        names: Iterable[str],
        capacity: int,
        max_subscribers: int,
    ) -> "QueueRegistry":
        """Create one InMemoryQueue per configured name."""
        return cls(InMemoryQueue(name, capacity, max_subscribers) for name in names)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._queues)

    def get(self, name: str) -> MessageQueue:
        """
        Look up a queue by name.

        Raises:
            UnknownQueueError: If the name is not configured
        """
        try:
            return self._queues[name]
        except KeyError:
            raise UnknownQueueError(name, self._queues) from None

    def __contains__(self, name: object) -> bool:
        return name in self._queues

    def __iter__(self) -> Iterator[MessageQueue]:
        return iter(self._queues.values())

    def __len__(self) -> int:
        return len(self._queues)
