"""
Run the relay HTTP server.

Usage:
    webhook-relay --config-path relay.env
    CONFIG_PATH=relay.env webhook-relay
"""
import argparse
import os
from typing import List, Optional

import uvicorn

from webhook_relay.api.main import create_app
from webhook_relay.config import get_settings
from webhook_relay.utils.observability import configure_logging, log_config


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="webhook-relay message broker")
    parser.add_argument(
        "--config-path",
        default=os.getenv("CONFIG_PATH"),
        help="env file with broker settings (default: $CONFIG_PATH or .env)",
    )
    return parser.parse_args(args)


def main(args: Optional[List[str]] = None) -> None:
    ns = parse_args(args)
    if ns.config_path:
        os.environ["CONFIG_PATH"] = ns.config_path
    get_settings.cache_clear()
    settings = get_settings()

    configure_logging(settings)
    log_config(settings)

    app = create_app(settings)
    uvicorn.run(app, host=settings.broker_host, port=settings.broker_port, log_level="warning")


if __name__ == "__main__":
    main()
