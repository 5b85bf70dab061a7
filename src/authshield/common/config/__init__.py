"""Configuration module - environment settings and defense policy."""

from authshield.common.config.settings import (
    Config,
    Environment,
    LogLevel,
    StorageType,
    get_config,
    reset_config,
)
from authshield.common.config.policy import DefensePolicy, load_policy

__all__ = [
    "Config",
    "Environment",
    "LogLevel",
    "StorageType",
    "get_config",
    "reset_config",
    "DefensePolicy",
    "load_policy",
]
