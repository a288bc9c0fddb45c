"""
Centralized Configuration System
Environment-aware settings for the broker, the dispatcher and the HTTP layer.
"""
import os
import re
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: str) -> float:
    """
    Convert a duration string such as "500ms", "2s" or "1m30s" to seconds.

    Plain numbers are read as seconds.

    Raises:
        ValueError: If the string is not a valid duration
    """
    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow"
    )
    """
    Broker configuration.
    Loads from environment variables with sensible defaults.
    """

    # ============================================
    # SERVER
    # ============================================
    broker_host: str = "0.0.0.0"
    broker_port: int = 8080

    # ============================================
    # QUEUES
    # ============================================
    queue_names: list[str] = Field(default_factory=lambda: ["default"])
    queue_length: int = Field(default=100, gt=0)    # Buffer capacity per queue
    max_subscribers: int = Field(default=10, gt=0)  # Callbacks per queue

    # ============================================
    # DELIVERY
    # ============================================
    callback_timeout: float = Field(default=5.0, gt=0)  # Seconds per callback attempt
    delivery_workers: int = Field(default_factory=lambda: os.cpu_count() or 1, gt=0)

    # ============================================
    # DISPATCHER SUPERVISION
    # ============================================
    restart_backoff_initial: float = Field(default=0.1, ge=0)
    restart_backoff_max: float = Field(default=5.0, ge=0)
    max_restarts: int = Field(default=0, ge=0)  # 0 means restart forever
    shutdown_timeout: float = Field(default=30.0, ge=0)

    # ============================================
    # LOGGING
    # ============================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    enable_structured_logging: bool = False  # Forced on in production

    # ============================================
    # ENVIRONMENT
    # ============================================
    environment: Literal["development", "staging", "production"] = "development"

    @field_validator("callback_timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value):
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("queue_names")
    @classmethod
    def _validate_queue_names(cls, names: list[str]) -> list[str]:
        names = [name.strip() for name in names]
        if not names:
            raise ValueError("at least one queue name is required")
        if any(not name for name in names):
            raise ValueError("queue names must not be blank")
        if len(set(names)) != len(names):
            raise ValueError(f"queue names must be unique: {names}")
        return names

    @property
    def structured_logging(self) -> bool:
        return self.enable_structured_logging or self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Singleton pattern for settings.

    CONFIG_PATH, when set, names the env file to load instead of ".env".
    """
    config_path = os.getenv("CONFIG_PATH")
    if config_path:
        return Settings(_env_file=config_path)
    return Settings()
