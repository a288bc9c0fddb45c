"""
Dispatcher Supervisor

Keeps the dispatcher alive across internal faults.
"""

import asyncio
from typing import Callable

from loguru import logger

from webhook_relay.message_queue.dispatcher import Dispatcher
from webhook_relay.utils.metrics import metrics


class DispatcherSupervisor:
    """
    Owner of the dispatcher task.

    Starts a fresh dispatcher from `factory`, waits for it to end and, if it
    died on an internal fault, restarts it after an exponential backoff
    (restart_backoff_initial doubling up to restart_backoff_max). A
    dispatcher that stayed up for at least restart_backoff_max seconds
    resets the backoff.

    With max_restarts > 0 the supervisor gives up after that many restarts
    and re-raises the last fault; 0 means restart forever.
    """

    def __init__(
        self,
        factory: Callable[[], Dispatcher],
        backoff_initial: float = 0.1,
        backoff_max: float = 5.0,
        max_restarts: int = 0,
    ):
        self.factory = factory
        self.backoff_initial = backoff_initial
        self.backoff_max = max(backoff_max, backoff_initial)
        self.max_restarts = max_restarts
        self.restarts = 0
        self.dispatcher: Dispatcher | None = None

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        backoff = self.backoff_initial

        while True:
            self.dispatcher = self.factory()
            started = loop.time()
            try:
                await self.dispatcher.run()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                uptime = loop.time() - started
                if uptime >= self.backoff_max:
                    backoff = self.backoff_initial

                if self.max_restarts and self.restarts >= self.max_restarts:
                    logger.critical(
                        f"Dispatcher failed after {self.restarts} restarts, giving up: {e}"
                    )
                    raise

                self.restarts += 1
                metrics.dispatcher_restarts.inc()
                logger.opt(exception=e).error(
                    f"Dispatcher crashed after {uptime:.2f}s: {e}. "
                    f"Restarting in {backoff:.2f}s (restart #{self.restarts})"
                )
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, self.backoff_max)
            else:
                logger.info("Dispatcher exited normally, supervision finished")
                return
