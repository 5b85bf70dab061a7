"""Logging helpers."""

from authshield.common.logging.logger import LOG_FORMAT, get_logger

__all__ = ["LOG_FORMAT", "get_logger"]
