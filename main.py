"""
PremiumHub - Main Entry Point

Multi-provider video metadata API. Runs the FastAPI application from
``premiumhub.api.main`` under uvicorn.
"""

import structlog
import uvicorn

from premiumhub.config import get_settings
from premiumhub.core.logging import configure_logging

logger = structlog.get_logger(__name__)


def main():
    """Main entry point for running the application."""
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=settings.log_json)

    logger.info(
        "starting_server",
        host=settings.api_host,
        port=settings.api_port,
        env=settings.app_env,
    )

    uvicorn.run(
        "premiumhub.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
