"""
Structured Logging & Observability
Logging that's both human-readable and machine-parseable.
"""
import sys
from typing import Optional

from loguru import logger

from webhook_relay.config import Settings, get_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure loguru for the broker.

    In development: Human-readable colorized output
    In production: Structured JSON logs for ingestion (ELK, Datadog, etc.)
    """
    settings = settings or get_settings()

    # Remove default handler
    logger.remove()
    logger.configure(extra={"env": settings.environment})

    if not settings.structured_logging:
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{message}"
            ),
            level=settings.log_level,
            colorize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level=settings.log_level,
            serialize=True,  # Output as JSON
        )

    logger.info(
        f"Logging configured: level={settings.log_level}, "
        f"structured={settings.structured_logging}"
    )


def log_config(settings: Settings) -> None:
    """Log the effective broker configuration at startup."""
    logger.bind(
        event_type="config",
        environment=settings.environment,
        broker_host=settings.broker_host,
        broker_port=settings.broker_port,
        queue_names=settings.queue_names,
        queue_length=settings.queue_length,
        max_subscribers=settings.max_subscribers,
        callback_timeout=settings.callback_timeout,
        delivery_workers=settings.delivery_workers,
    ).info(
        f"Broker config | queues={settings.queue_names} "
        f"queue_length={settings.queue_length} "
        f"max_subscribers={settings.max_subscribers} "
        f"callback_timeout={settings.callback_timeout}s "
        f"workers={settings.delivery_workers}"
    )


def log_delivery(
    queue: str,
    subscriber: str,
    outcome: str,
    duration_ms: float,
    status_code: Optional[int] = None,
    error: Optional[str] = None,
) -> None:
    """
    Structured logging for a single callback delivery attempt.

    Successful attempts log at DEBUG, failures at ERROR.

    Args:
        queue: Queue the message was drained from
        subscriber: Callback URL
        outcome: success, timeout, http_error, transport_error or invalid_url
        duration_ms: Time spent on the attempt
        status_code: HTTP status returned by the callback, if any
        error: Error description if the attempt failed
    """
    log_data = {
        "event_type": "delivery",
        "queue": queue,
        "subscriber": subscriber,
        "outcome": outcome,
        "duration_ms": round(duration_ms, 2),
    }
    if status_code is not None:
        log_data["status_code"] = status_code
    if error:
        log_data["error"] = error

    bound = logger.bind(**log_data)
    if outcome == "success":
        bound.debug(f"Delivered to {subscriber} | queue={queue} | {duration_ms:.1f}ms")
    else:
        bound.error(f"Delivery to {subscriber} failed ({outcome}) | queue={queue} | {error}")
