"""Common utilities - logging, config, exceptions."""

from authshield.common.logging.logger import get_logger
from authshield.common.config import Config, get_config, reset_config
from authshield.common.exceptions import (
    AuthShieldException,
    ConfigurationError,
    ValidationError,
    StorageError,
)

__all__ = [
    # Logging
    "get_logger",
    # Config
    "Config",
    "get_config",
    "reset_config",
    # Exceptions
    "AuthShieldException",
    "ConfigurationError",
    "ValidationError",
    "StorageError",
]
