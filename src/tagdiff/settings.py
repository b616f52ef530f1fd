"""Application-wide settings and environment loading."""

import logging
import os
from functools import lru_cache
from typing import Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()
logger.debug("Environment variables loaded from .env if present")

DEFAULT_REPO_URL = "https://github.com/ilyabirman/Aegea-Comparisons"

_TRUTHY = {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def get_git_credentials() -> tuple[Optional[str], Optional[str]]:
    """Return Git credentials from environment variables."""
    username = os.getenv("GIT_USERNAME")
    token = os.getenv("GIT_AUTH_TOKEN")
    if username and token:
        logger.debug("Git credentials retrieved", extra={"username": username})
        return username, token

    logger.debug("Git credentials not configured")
    return None, None


def get_default_settings() -> Dict[str, object]:
    """Return site defaults taken from the environment."""
    settings = {
        "repo_url": os.getenv("REPO_URL") or DEFAULT_REPO_URL,
        "templates_dir": os.getenv("TEMPLATES_DIR") or None,
        "static_dir": os.getenv("STATIC_DIR") or None,
        "output_dir": os.getenv("OUTPUT_DIR") or "output",
        "strict_versions": os.getenv("TAGDIFF_STRICT_VERSIONS", "").lower() in _TRUTHY,
    }
    logger.debug("Default settings resolved", extra={"repo_url": settings["repo_url"]})
    return settings
