"""
FastAPI Dependencies

Reusable dependencies for route handlers.
"""

from fastapi import HTTPException, Request, status
from loguru import logger

from webhook_relay.core.broker import Broker


def get_broker(request: Request) -> Broker:
    """
    Dependency returning the broker created by the application lifespan.

    Raises:
        HTTPException: 503 if the broker has not been initialized
    """
    broker = getattr(request.app.state, "broker", None)
    if broker is None:
        logger.error("Broker requested before application startup")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Broker not initialized"
        )
    return broker
