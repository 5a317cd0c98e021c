#!/usr/bin/env python
"""
Movement API Server Runner.

Usage:
    python -m api

Environment:
    API_HOST, API_PORT (or PORT), ENVIRONMENT=development for reload,
    plus the pipeline variables read by ``PipelineConfig.from_env``.
"""

import logging
import os
import sys

import uvicorn

from movements.config import get_config


def configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-5s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


logger = logging.getLogger(__name__)


def main() -> None:
    """Run the API server."""
    config = get_config()
    configure_logging(config.log_level_value)

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", os.getenv("PORT", "8000")))
    reload = os.getenv("ENVIRONMENT", "production") == "development"

    logger.info(f"Starting Movement API on {host}:{port}")
    logger.info(f"Config: {config.to_dict()}")

    try:
        uvicorn.run(
            "api.app:create_app",
            factory=True,
            host=host,
            port=port,
            reload=reload,
            log_level=config.log_level.lower(),
            access_log=True,
        )
    except Exception as e:
        logger.error(f"Failed to start API: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
