"""
Broker Facade

Public push/subscribe surface of the relay. Owns the queue registry, the
delivery pool and the supervised dispatcher.
"""
import asyncio
from typing import Optional

import httpx
from loguru import logger

from webhook_relay.config import Settings, get_settings
from webhook_relay.message_queue import (
    BrokerError,
    Dispatcher,
    DispatcherSupervisor,
    DeliveryWorkerPool,
    QueueRegistry,
    QueueStats,
)
from webhook_relay.services.fanout import FanoutDelivery
from webhook_relay.utils.metrics import metrics


class Broker:
    """
    In-process message relay.

    Producers push byte payloads into named queues; consumers subscribe
    callback URLs. Once started, a supervised dispatcher drains the queues
    and the delivery pool POSTs every message to every subscriber of its
    queue. Delivery is best effort: push returns as soon as the message is
    buffered and delivery failures never reach the producer.

    Usage:
        broker = Broker(settings)
        await broker.start()
        await broker.subscribe("orders", "http://consumer/hook")
        await broker.push("orders", b"payload")
        ...
        await broker.stop()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Build the queues and the delivery machinery.

        Args:
            settings: Broker configuration (default: get_settings())
            http_client: HTTP client for callbacks (tests inject a mock transport)
        """
        self.settings = settings or get_settings()
        self.registry = QueueRegistry.from_names(
            self.settings.queue_names,
            capacity=self.settings.queue_length,
            max_subscribers=self.settings.max_subscribers,
        )
        self.fanout = FanoutDelivery(self.settings.callback_timeout, client=http_client)
        self.pool = DeliveryWorkerPool(self.fanout.deliver, size=self.settings.delivery_workers)
        self.supervisor = DispatcherSupervisor(
            factory=lambda: Dispatcher(self.registry, self.pool),
            backoff_initial=self.settings.restart_backoff_initial,
            backoff_max=self.settings.restart_backoff_max,
            max_restarts=self.settings.max_restarts,
        )
        self._supervisor_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        """Whether the supervised dispatcher is alive."""
        return self._supervisor_task is not None and not self._supervisor_task.done()

    async def start(self) -> None:
        """Start the delivery pool and the supervised dispatcher."""
        if self._supervisor_task is not None:
            logger.warning("Broker already started")
            return

        await self.pool.start()
        self._supervisor_task = asyncio.create_task(self.supervisor.run(), name="dispatcher-supervisor")
        logger.info(f"Broker started with queues {list(self.registry.names)}")

    async def stop(self) -> None:
        """
        Stop the dispatcher, close the queues, let in-flight deliveries
        finish (up to shutdown_timeout) and close the HTTP client.
        """
        logger.info("Stopping broker...")

        if self._supervisor_task is not None:
            if not self._supervisor_task.done():
                self._supervisor_task.cancel()
            try:
                await self._supervisor_task
            except asyncio.CancelledError:
                logger.info("Stopped dispatcher")
            except Exception as e:
                logger.error(f"Dispatcher had already failed: {e}")

        for queue in self.registry:
            await queue.close()

        await self.pool.stop(timeout=self.settings.shutdown_timeout)
        await self.fanout.aclose()
        logger.info("Broker stopped")

    async def push(self, queue_name: str, message: bytes) -> None:
        """
        Buffer a message for delivery. Never waits for space.

        Raises:
            UnknownQueueError: If queue_name is not configured
            QueueOverflowError: If the queue buffer is full
            QueueClosedError: If the queue has been closed
        """
        try:
            queue = self.registry.get(queue_name)
            await queue.enqueue(message)
        except BrokerError as e:
            metrics.push_rejected.inc(queue=queue_name, reason=e.code)
            logger.bind(queue=queue_name, reason=e.code).warning(f"Push rejected: {e}")
            raise

        metrics.messages_pushed.inc(queue=queue_name)
        logger.debug(f"Queued {len(message)} bytes on '{queue_name}'")

    async def subscribe(self, queue_name: str, callback: str) -> None:
        """
        Register a callback URL on a queue. The address is not validated;
        unreachable callbacks only show up as failed deliveries.

        Raises:
            UnknownQueueError: If queue_name is not configured
            SubscriberOverflowError: If the queue has max_subscribers callbacks
        """
        try:
            queue = self.registry.get(queue_name)
            await queue.subscribe(callback)
        except BrokerError as e:
            metrics.subscribe_rejected.inc(queue=queue_name, reason=e.code)
            logger.bind(queue=queue_name, reason=e.code).warning(f"Subscribe rejected: {e}")
            raise

        metrics.subscriptions.inc(queue=queue_name)
        logger.info(f"Subscribed {callback} to '{queue_name}'")

    def get_stats(self) -> list[QueueStats]:
        """Per-queue statistics in configuration order."""
        return [queue.get_stats() for queue in self.registry]
