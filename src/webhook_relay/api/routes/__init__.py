"""
API Routes

Modular route definitions for the relay API.
"""
from webhook_relay.api.routes.health import router as health_router
from webhook_relay.api.routes.queues import router as queues_router
from webhook_relay.api.routes.metrics import router as metrics_router

__all__ = [
    "health_router",
    "queues_router",
    "metrics_router",
]
