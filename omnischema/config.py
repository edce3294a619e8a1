"""
Configuration for OmniSchema.

Settings are read from environment variables with the ``OMNISCHEMA_``
prefix, e.g. ``OMNISCHEMA_SEED_DERIVED_TYPES=false``.

Invariants:
    - All settings have defaults suitable for library use
    - The library never configures logging on import; applications call
      configure_logging() explicitly
"""

from __future__ import annotations

import logging

import json_log_formatter
from pydantic import Field
from pydantic_settings import BaseSettings

_TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """OmniSchema configuration."""

    # Seed the derived catalog (Email, Integer, DateTime, YesNo, ...) into
    # the global registry, not just String/Number/Boolean/Object
    seed_derived_types: bool = Field(default=True)

    # Logging
    log_level: str = Field(default="WARNING")
    log_format: str = Field(default="text", description="text or json")

    model_config = {"env_prefix": "OMNISCHEMA_"}


def configure_logging(settings: Settings | None = None) -> None:
    """Attach a stream handler to the ``omnischema`` logger.

    Args:
        settings: Settings to use (loaded from the environment if omitted)
    """
    settings = settings or Settings()
    level = getattr(logging, settings.log_level.upper(), logging.WARNING)

    if settings.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter(_TEXT_FORMAT)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    package_logger = logging.getLogger("omnischema")
    package_logger.setLevel(level)
    package_logger.handlers = [handler]
