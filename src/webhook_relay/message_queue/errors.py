"""
Broker Errors

Caller-facing failures of push and subscribe. Each carries a stable
`code` that the HTTP layer returns to clients.
"""
from typing import Iterable


class BrokerError(Exception):
    """Base class for errors returned to producers and subscribers."""

    code = "broker_error"


class UnknownQueueError(BrokerError):
    """Queue name is not one of the configured queues."""

    code = "unknown_queue"

    def __init__(self, name: str, valid_names: Iterable[str]):
        self.name = name
        self.valid_names = list(valid_names)
        super().__init__(f"queue name must be one of {self.valid_names}, got {name!r}")


class QueueOverflowError(BrokerError):
    """Queue buffer is at capacity."""

    code = "queue_overflow"

    def __init__(self, name: str, capacity: int):
        self.name = name
        self.capacity = capacity
        super().__init__(f"queue {name!r} overflow (capacity {capacity})")


class SubscriberOverflowError(BrokerError):
    """Queue already has the maximum number of subscribers."""

    code = "subscriber_overflow"

    def __init__(self, name: str, limit: int):
        self.name = name
        self.limit = limit
        super().__init__(f"queue {name!r} subscribers overflow (max {limit})")


class QueueClosedError(BrokerError):
    """Queue has been closed and accepts no more messages."""

    code = "queue_closed"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"queue {name!r} is closed")
