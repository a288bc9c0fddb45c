"""
FastAPI Application

HTTP entry point of the relay.
Handles application lifecycle and router mounting.
"""
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from loguru import logger

from webhook_relay import __version__
from webhook_relay.api.middleware import RequestLoggingMiddleware
from webhook_relay.api.routes import health_router, metrics_router, queues_router
from webhook_relay.config import Settings, get_settings
from webhook_relay.core.broker import Broker


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Build the relay application.

    Args:
        settings: Broker configuration (default: get_settings() at startup)
        http_client: HTTP client for callback delivery
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup: build the broker and start the supervised dispatcher.
        Shutdown: stop the dispatcher and drain in-flight deliveries.
        """
        logger.info("Starting relay API server...")

        broker = Broker(settings or get_settings(), http_client=http_client)
        await broker.start()
        app.state.broker = broker

        logger.info("API server ready to accept messages")

        yield

        logger.info("Shutting down API server...")
        await broker.stop()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Webhook Relay API",
        description="In-process message relay with webhook fan-out",
        version=__version__,
        lifespan=lifespan
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health_router)
    app.include_router(queues_router)
    app.include_router(metrics_router)
    return app


app = create_app()
