# config.py - Storefront configuration
# Environment-driven settings, optionally loaded from a .env file

import os
import logging

from dotenv import load_dotenv

logger = logging.getLogger("Storefront.Config")


def load_env() -> None:
    """
    Load variables from a .env file if one is present.

    Distribution name: 'python-dotenv'  → Import package: 'dotenv'
    """
    if load_dotenv():
        logger.info("Loaded environment from .env")


def env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


load_env()

# ============================================================================
# REMOTE API
# ============================================================================

API_BASE_URL = os.getenv("STOREFRONT_API_URL", "http://localhost:3000/api")
REQUEST_TIMEOUT = float(os.getenv("STOREFRONT_TIMEOUT", "10.0"))

# Demo mode routes every request to the in-process FastAPI backend (app.py)
DEMO_MODE = env_flag("STOREFRONT_DEMO_MODE")
DEMO_BASE_URL = "http://testserver/api"

# Where the signed-in user is mirrored between runs (empty disables the cache)
SESSION_CACHE_PATH = os.getenv("STOREFRONT_SESSION_CACHE", "")

# ============================================================================
# CATALOG
# ============================================================================

RECOMMENDED_SALES_WEIGHT = float(os.getenv("RECOMMENDED_SALES_WEIGHT", "0.7"))
RECOMMENDED_RATING_WEIGHT = float(os.getenv("RECOMMENDED_RATING_WEIGHT", "30"))

DEFAULT_GENDER = os.getenv("DEFAULT_GENDER", "men")

# ============================================================================
# DEMO SERVER
# ============================================================================

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
RELOAD = env_flag("RELOAD", "true")
LOG_LEVEL = os.getenv("LOG_LEVEL", "info")
SESSION_COOKIE = "session_id"
