import asyncio

import httpx
import pytest

from webhook_relay.config import Settings
from webhook_relay.utils.metrics import metrics


class CallbackRecorder:
    """
    Fake callback endpoints served through httpx.MockTransport.

    Routes map a URL to either a status code or an async handler; every
    request that reaches a route is recorded.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes: dict[str, object] = {}
        self._arrived = asyncio.Condition()

    def route(self, url: str, response=200) -> str:
        self.routes[url] = response
        return url

    async def handler(self, request: httpx.Request) -> httpx.Response:
        response = self.routes.get(str(request.url), 404)
        if callable(response):
            response = await response(request)
        if isinstance(response, int):
            response = httpx.Response(response)
        async with self._arrived:
            self.requests.append(request)
            self._arrived.notify_all()
        return response

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def bodies(self, url: str) -> list[bytes]:
        return [r.content for r in self.requests if str(r.url) == url]

    async def wait_for(self, count: int, timeout: float = 2.0) -> None:
        """Wait until at least `count` requests have been answered."""
        async def _wait():
            async with self._arrived:
                await self._arrived.wait_for(lambda: len(self.requests) >= count)
        await asyncio.wait_for(_wait(), timeout=timeout)


@pytest.fixture(autouse=True)
def reset_metrics():
    """Every test starts with empty metrics."""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def make_settings():
    """Settings factory that ignores .env files and uses fast timings."""
    def _make(**overrides) -> Settings:
        values = {
            "queue_names": ["orders"],
            "queue_length": 2,
            "max_subscribers": 1,
            "callback_timeout": 0.5,
            "delivery_workers": 2,
            "restart_backoff_initial": 0.0,
            "restart_backoff_max": 0.05,
            "shutdown_timeout": 1.0,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return _make


@pytest.fixture
def recorder():
    return CallbackRecorder()


@pytest.fixture
def eventually():
    """Poll a predicate until it holds or the timeout expires."""
    async def _eventually(predicate, timeout: float = 2.0, interval: float = 0.01) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(interval)
    return _eventually
