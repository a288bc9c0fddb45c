"""
Fan-out Delivery Service

Sends one drained message to every subscriber of its queue via HTTP POST.
"""
import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx

from webhook_relay.message_queue.base import MessageQueue
from webhook_relay.utils.metrics import Timer, metrics
from webhook_relay.utils.observability import log_delivery, logger

SUCCESS = "success"
TIMEOUT = "timeout"
HTTP_ERROR = "http_error"
TRANSPORT_ERROR = "transport_error"
INVALID_URL = "invalid_url"


@dataclass
class DeliveryOutcome:
    """Result of one delivery attempt to one subscriber."""
    queue: str
    subscriber: str
    outcome: str
    duration_ms: float
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == SUCCESS


class FanoutDelivery:
    """
    Best-effort, at-most-once delivery of a message to all callbacks.

    Every subscriber gets its own attempt, run concurrently with the
    others and bounded by an absolute timeout. A failed attempt (bad
    address, timeout, connection error, non-2xx status) is logged and
    counted; it never affects the other subscribers and is never retried.

    Usage:
        fanout = FanoutDelivery(timeout=5.0)
        outcomes = await fanout.deliver(queue, b"payload")
        await fanout.aclose()
    """

    def __init__(self, timeout: float, client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            timeout: Seconds allowed for each callback attempt
            client: Shared HTTP client; one is created (and owned) if omitted
        """
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=None)

    async def deliver(self, queue: MessageQueue, message: bytes) -> list[DeliveryOutcome]:
        """
        Deliver `message` to the current subscribers of `queue`.

        Subscribers registered while the fan-out is running are not
        included.
        """
        subscribers = await queue.get_subscribers()
        if not subscribers:
            logger.debug(f"No subscribers on '{queue.name}', message dropped")
            return []

        outcomes = await asyncio.gather(
            *(self._send(queue.name, subscriber, message) for subscriber in subscribers)
        )
        return list(outcomes)

    async def _send(self, queue_name: str, subscriber: str, message: bytes) -> DeliveryOutcome:
        with Timer(metrics.delivery_duration, queue=queue_name) as timer:
            outcome, status_code, error = await self._attempt(subscriber, message)

        metrics.deliveries.inc(queue=queue_name, outcome=outcome)
        result = DeliveryOutcome(
            queue=queue_name,
            subscriber=subscriber,
            outcome=outcome,
            duration_ms=timer.elapsed * 1000,
            status_code=status_code,
            error=error,
        )
        log_delivery(
            queue=result.queue,
            subscriber=result.subscriber,
            outcome=result.outcome,
            duration_ms=result.duration_ms,
            status_code=result.status_code,
            error=result.error,
        )
        return result

    async def _attempt(
        self, subscriber: str, message: bytes
    ) -> tuple[str, Optional[int], Optional[str]]:
        """One POST to one subscriber, as (outcome, status code, error)."""
        try:
            request = self._client.build_request(
                "POST",
                subscriber,
                content=message,
                headers={"Content-Type": "application/octet-stream"},
            )
        except httpx.InvalidURL as e:
            return INVALID_URL, None, f"failed to create request: {e}"

        status_code = None
        try:
            response = await asyncio.wait_for(self._client.send(request), timeout=self.timeout)
            status_code = response.status_code
            response.raise_for_status()
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return TIMEOUT, None, f"no response within {self.timeout}s"
        except httpx.HTTPStatusError:
            return HTTP_ERROR, status_code, f"callback returned {status_code}"
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            return INVALID_URL, None, f"failed to create request: {e}"
        except httpx.HTTPError as e:
            return TRANSPORT_ERROR, None, f"failed to send message: {e!r}"

        return SUCCESS, status_code, None

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
