"""
Delivery Worker Pool

Fixed-size pool of background workers that run fan-out deliveries.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from webhook_relay.message_queue.base import MessageQueue

DeliverFn = Callable[[MessageQueue, bytes], Awaitable[Any]]


class DeliveryWorkerPool:
    """
    Bounded pool of delivery workers.

    Jobs go through a hand-off queue sized like the pool, so at most
    `size` messages are being delivered and at most `size` more are
    waiting for a worker. A dispatcher submitting into a full pool waits,
    leaving further messages in their queue buffers where overflow
    applies.

    Attributes:
        size: Number of worker tasks
        deliver: Async function that delivers one message of one queue
    """

    def __init__(self, deliver: DeliverFn, size: int):
        """
        Initialize the pool.

        Args:
            deliver: Async function called as deliver(queue, message)
            size: Number of concurrent workers
        """
        if size <= 0:
            raise ValueError("pool size must be positive")

        self.deliver = deliver
        self.size = size
        self._jobs: Optional[asyncio.Queue] = None
        self._workers: list[asyncio.Task] = []
        self._running = False
        self.completed = 0
        self.errors = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def pending(self) -> int:
        """Jobs waiting for a worker."""
        return self._jobs.qsize() if self._jobs else 0

    async def start(self) -> None:
        """Spawn the worker tasks."""
        if self._running:
            logger.warning("Delivery pool already running")
            return

        self._jobs = asyncio.Queue(maxsize=self.size)
        self._workers = [
            asyncio.create_task(self._work(i), name=f"delivery-worker-{i}")
            for i in range(self.size)
        ]
        self._running = True
        logger.info(f"Delivery pool started (workers={self.size})")

    async def submit(self, queue: MessageQueue, message: bytes) -> None:
        """
        Hand a message to the pool, waiting for a free slot.

        Raises:
            RuntimeError: If the pool is not running
        """
        if not self._running:
            raise RuntimeError("delivery pool is not running")
        await self._jobs.put((queue, message))

    async def stop(self, timeout: float = 30.0) -> None:
        """
        Stop the pool.

        Waits up to `timeout` seconds for queued and in-flight deliveries,
        then cancels whatever is left.
        """
        if not self._running:
            return

        self._running = False
        logger.info(f"Stopping delivery pool ({self._jobs.qsize()} jobs waiting)...")

        try:
            await asyncio.wait_for(self._jobs.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Timeout waiting for deliveries, cancelling remaining")

        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("Delivery pool stopped")

    async def _work(self, index: int) -> None:
        while True:
            queue, message = await self._jobs.get()
            try:
                await self.deliver(queue, message)
                self.completed += 1
            except Exception as e:
                self.errors += 1
                logger.opt(exception=e).error(
                    f"Delivery worker {index} failed on queue '{queue.name}': {e}"
                )
            finally:
                self._jobs.task_done()
