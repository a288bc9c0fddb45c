"""
Health and Readiness Endpoints

Probes for load balancers and orchestration.
"""
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from webhook_relay import __version__

router = APIRouter(tags=["Health"])


@router.get("/ping", response_class=PlainTextResponse)
async def ping():
    """Heartbeat for load balancers."""
    return "."


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint.

    Returns 200 if the process is serving requests.
    """
    return {
        "status": "healthy",
        "service": "webhook-relay",
        "version": __version__
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """
    Readiness probe.

    Returns 200 while the supervised dispatcher is running, 503 otherwise
    (not started yet, or the supervisor gave up after max_restarts).
    """
    broker = getattr(request.app.state, "broker", None)
    if broker is None or not broker.running:
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "reason": "Dispatcher not running"
            }
        )

    return {
        "status": "ready",
        "queues": list(broker.registry.names),
        "dispatcher_restarts": broker.supervisor.restarts
    }


@router.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "service": "webhook-relay",
        "version": __version__,
        "endpoints": {
            "ping": "/ping",
            "health": "/health",
            "ready": "/ready",
            "metrics": "/metrics",
            "queue_metrics": "/metrics/queues",
            "push": "/v1/queues/{queue_name}/messages (POST)",
            "subscribe": "/v1/queues/{queue_name}/subscriptions (POST)"
        }
    }
