"""
Request logging middleware.

Every request gets an id, either from the incoming X-Request-ID header or
generated. The id is attached to all log records emitted while the request
is handled and returned in the response header.
"""

import uuid

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from webhook_relay.utils.metrics import Timer, metrics


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of each request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        timer = Timer(metrics.request_duration)

        with logger.contextualize(request_id=request_id):
            with timer:
                response: Response = await call_next(request)
                # route is only resolved once the request has been handled
                route = request.scope.get("route")
                timer.labels["endpoint"] = getattr(route, "path", request.url.path)

            metrics.requests_total.inc(status=str(response.status_code))
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"({timer.elapsed * 1000:.1f}ms)"
            )

        response.headers["X-Request-ID"] = request_id
        return response
