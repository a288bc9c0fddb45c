"""
Metrics Endpoints

Prometheus-compatible metrics and queue statistics for observability.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import Response

from webhook_relay.api.dependencies import get_broker
from webhook_relay.core.broker import Broker
from webhook_relay.utils.metrics import metrics

router = APIRouter(tags=["Metrics"])


@router.get("/metrics")
async def prometheus_metrics(broker: Broker = Depends(get_broker)):
    """
    Prometheus metrics endpoint.

    Queue gauges are refreshed from the broker at scrape time.

    Content-Type: text/plain; version=0.0.4; charset=utf-8
    """
    for stats in broker.get_stats():
        metrics.queue_depth.set(stats.depth, queue=stats.name)
        metrics.queue_subscribers.set(stats.subscribers, queue=stats.name)

    return Response(
        content=metrics.export(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@router.get("/metrics/queues")
async def queue_metrics(broker: Broker = Depends(get_broker)):
    """
    Per-queue statistics: depth, capacity, subscriber counts, plus
    dispatcher and delivery pool state. `drained` counts messages the
    current dispatcher has handed to the pool since its last (re)start.
    """
    return {
        "status": "ok",
        "queues": [stats.model_dump() for stats in broker.get_stats()],
        "dispatcher": {
            "running": broker.running,
            "restarts": broker.supervisor.restarts,
            "drained": broker.supervisor.dispatcher.drained if broker.supervisor.dispatcher else 0
        },
        "delivery_pool": {
            "workers": broker.pool.size,
            "pending": broker.pool.pending,
            "completed": broker.pool.completed,
            "errors": broker.pool.errors
        }
    }
