#!/usr/bin/env python3
"""Main entry point for AuthShield."""

import uvicorn

from authshield.common.logging import get_logger
from authshield.common.config import Config

logger = get_logger(__name__)


def main():
    """Start the HTTP service with the configured host and port."""
    config = Config()
    logger.info(f"AuthShield starting in {config.environment.value} mode")
    logger.info(f"State storage: {config.storage_type.value}, policy: {config.policy_file}")
    
    uvicorn.run(
        "authshield.api.gateway:app",
        host=config.api_host,
        port=config.api_port,
        log_level=config.log_level.value.lower(),
    )


if __name__ == "__main__":
    main()
