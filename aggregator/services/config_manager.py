"""Configuration loading for the radio and traffic aggregator."""

import logging
import os
from typing import Mapping, Optional

from pydantic import ValidationError

from ..models.config import AppConfig

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Exception raised for configuration-related errors."""
    pass


# Environment variable -> AppConfig field
ENVIRONMENT_FIELDS = {
    "UPSTREAM_BASE_URL": "upstream_base_url",
    "UPSTREAM_TIMEOUT_SECONDS": "upstream_timeout_seconds",
    "AGGREGATOR_BATCH_SIZE": "batch_size",
    "AGGREGATOR_MAX_CONCURRENCY": "max_concurrency",
    "AGGREGATOR_ISOLATE_CHANNEL_FAILURES": "isolate_channel_failures",
    "APP_PORT": "port",
}


def load_app_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Build the application configuration from environment variables.

    Unset variables fall back to the ``AppConfig`` defaults.

    Args:
        environ: Mapping to read from, defaults to ``os.environ``

    Returns:
        Validated, immutable AppConfig

    Raises:
        ConfigurationError: If any value is invalid
    """
    if environ is None:
        environ = os.environ

    values = {
        field_name: environ[variable]
        for variable, field_name in ENVIRONMENT_FIELDS.items()
        if environ.get(variable, "").strip()
    }

    try:
        config = AppConfig(**values)
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise ConfigurationError(f"Configuration loading failed: {e}") from e

    logger.info("Configuration loaded successfully", extra={
        'upstream_base_url': config.upstream_base_url,
        'upstream_timeout_seconds': config.upstream_timeout_seconds,
        'batch_size': config.batch_size,
        'max_concurrency': config.max_concurrency,
        'isolate_channel_failures': config.isolate_channel_failures
    })
    return config
