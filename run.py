#!/usr/bin/env python
"""
Storefront Demo Backend Startup Script
Run with: python run.py
"""

from __future__ import annotations

import sys
import logging
from importlib.metadata import version, PackageNotFoundError

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("Storefront.Server")

# -----------------------------------------------------------------------------
# Dependency checks (by distribution name, not import module)
# -----------------------------------------------------------------------------
REQUIRED_DISTS: list[str] = [
    "fastapi",
    "uvicorn",
    "pydantic",
    "httpx",
    "python-dotenv",
]


def missing_distributions(required: list[str]) -> list[str]:
    """Return the list of distribution names that are NOT installed."""
    missing: list[str] = []
    for dist in required:
        try:
            version(dist)
        except PackageNotFoundError:
            missing.append(dist)
    return missing


# -----------------------------------------------------------------------------
# Diagnostics
# -----------------------------------------------------------------------------
def check_environment() -> None:
    """Display the effective configuration."""
    import config

    logger.info("=" * 60)
    logger.info("Storefront Demo Backend")
    logger.info("=" * 60)
    logger.info("Client API base URL: %s", config.API_BASE_URL)
    logger.info("Client demo mode: %s", "on" if config.DEMO_MODE else "off")
    logger.info(
        "Recommended sort weights: sales %.2f, rating %.2f",
        config.RECOMMENDED_SALES_WEIGHT,
        config.RECOMMENDED_RATING_WEIGHT,
    )
    logger.info("CORS Origins: %s", ", ".join(config.ALLOWED_ORIGINS))
    if config.SESSION_CACHE_PATH:
        logger.info("Session cache: %s", config.SESSION_CACHE_PATH)
    logger.info("=" * 60)


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------
def main() -> None:
    missing = missing_distributions(REQUIRED_DISTS)
    if missing:
        logger.error("Missing required packages: %s", ", ".join(missing))
        logger.info("Please run: pip install -e .")
        sys.exit(1)

    # config loads .env on import
    import config

    check_environment()

    import uvicorn

    logger.info("Starting server on http://%s:%s", config.HOST, config.PORT)
    logger.info("API Documentation: http://%s:%s/api/docs", config.HOST, config.PORT)
    logger.info("Demo accounts: customer@test.com / 1234, admin@test.com / admin")
    logger.info("Press CTRL+C to stop")
    logger.info("=" * 60)

    try:
        uvicorn.run(
            "app:app",
            host=config.HOST,
            port=config.PORT,
            reload=config.RELOAD,
            log_level=config.LOG_LEVEL,
            access_log=True,
        )
    except KeyboardInterrupt:
        logger.info("Shutting down server...")
        sys.exit(0)
    except Exception as e:
        logger.error("Server error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
