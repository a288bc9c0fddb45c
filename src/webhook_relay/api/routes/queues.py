"""
Queue Endpoints

Producers push raw bodies into a queue; consumers register callback URLs.
"""
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import JSONResponse

from webhook_relay.api.dependencies import get_broker
from webhook_relay.core.broker import Broker
from webhook_relay.message_queue import BrokerError

router = APIRouter(prefix="/v1/queues/{queue_name}", tags=["Queues"])


def _error_response(error: BrokerError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "status": "error",
            "error": error.code,
            "message": str(error)
        }
    )


@router.post("/messages")
async def push_message(
    queue_name: str,
    request: Request,
    broker: Broker = Depends(get_broker),
):
    """
    Push a message into a queue.

    The raw request body is the message and is forwarded verbatim to every
    subscriber. Returns as soon as the message is buffered.

    Errors (400): unknown_queue, queue_overflow, queue_closed
    """
    message = await request.body()

    try:
        await broker.push(queue_name, message)
    except BrokerError as e:
        return _error_response(e)

    return {"status": "queued", "queue": queue_name}


@router.post("/subscriptions")
async def subscribe(
    queue_name: str,
    callback: str = Form(...),
    broker: Broker = Depends(get_broker),
):
    """
    Register a callback URL on a queue.

    Request format: application/x-www-form-urlencoded with a `callback` field.
    Every message drained from the queue is POSTed to the callback.

    Errors (400): unknown_queue, subscriber_overflow
    """
    try:
        await broker.subscribe(queue_name, callback)
    except BrokerError as e:
        return _error_response(e)

    return {"status": "subscribed", "queue": queue_name, "callback": callback}
