"""
Queue Dispatcher

Drains every queue in the registry and hands messages to the delivery pool.
"""

import asyncio

from loguru import logger

from webhook_relay.message_queue.base import MessageQueue
from webhook_relay.message_queue.errors import QueueClosedError
from webhook_relay.message_queue.registry import QueueRegistry
from webhook_relay.message_queue.worker import DeliveryWorkerPool


class Dispatcher:
    """
    Background drainer for all queues.

    Runs one drain task per queue. Each task sleeps until its queue has a
    message, submits it to the delivery pool and goes back to waiting,
    so queues are served independently and nothing polls.

    A drain task that finds its queue closed logs it and ends; the other
    queues keep draining. Any other exception is an internal fault: the
    remaining drain tasks are cancelled and run() raises so the
    supervisor can start a fresh dispatcher. A message caught mid hand-off
    by that cancellation goes back to the head of its queue.
    """

    def __init__(self, registry: QueueRegistry, pool: DeliveryWorkerPool):
        self.registry = registry
        self.pool = pool
        self.drained = 0

    async def run(self) -> None:
        """
        Drain until every queue is closed.

        Raises:
            Exception: The first internal fault of any drain task
        """
        tasks = [
            asyncio.create_task(self._drain(queue), name=f"drain-{queue.name}")
            for queue in self.registry
        ]
        if not tasks:
            return

        logger.info(f"Dispatcher draining {len(tasks)} queues: {list(self.registry.names)}")

        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    raise task.exception()
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        logger.info("All queues closed, dispatcher finished")

    async def _drain(self, queue: MessageQueue) -> None:
        while True:
            try:
                message = await queue.dequeue()
            except QueueClosedError:
                logger.warning(f"Queue '{queue.name}' is closed, no longer draining it")
                return

            try:
                await self.pool.submit(queue, message)
            except asyncio.CancelledError:
                await queue.requeue(message)
                logger.info(f"Returned undispatched message to '{queue.name}'")
                raise
            self.drained += 1
            logger.debug(f"Dispatched message from '{queue.name}' ({len(message)} bytes)")
