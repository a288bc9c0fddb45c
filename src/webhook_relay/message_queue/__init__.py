"""
Message Queue System

In-process queues and the machinery that drains them:
- Bounded in-memory queues with their subscriber lists
- Immutable queue registry
- Event-driven dispatcher, one drain task per queue
- Supervisor restarting the dispatcher with backoff
- Fixed-size delivery worker pool
"""

from webhook_relay.message_queue.base import MessageQueue, QueueStats
from webhook_relay.message_queue.dispatcher import Dispatcher
from webhook_relay.message_queue.errors import (
    BrokerError,
    QueueClosedError,
    QueueOverflowError,
    SubscriberOverflowError,
    UnknownQueueError,
)
from webhook_relay.message_queue.memory import InMemoryQueue
from webhook_relay.message_queue.registry import QueueRegistry
from webhook_relay.message_queue.supervisor import DispatcherSupervisor
from webhook_relay.message_queue.worker import DeliveryWorkerPool

__all__ = [
    "MessageQueue",
    "QueueStats",
    "InMemoryQueue",
    "QueueRegistry",
    "Dispatcher",
    "DispatcherSupervisor",
    "DeliveryWorkerPool",
    "BrokerError",
    "UnknownQueueError",
    "QueueOverflowError",
    "SubscriberOverflowError",
    "QueueClosedError",
]
