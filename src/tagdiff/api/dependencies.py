"""FastAPI dependencies for the tagdiff API."""

import logging
import threading

from fastapi import Request

from ..config import SiteConfig
from ..settings import get_default_settings
from .services import CompareService

logger = logging.getLogger(__name__)

_init_lock = threading.Lock()


def get_site_config() -> SiteConfig:
    """Site configuration taken from the environment."""
    settings = get_default_settings()
    return SiteConfig(
        repo_url=settings["repo_url"],
        templates_dir=settings["templates_dir"],
        static_dir=settings["static_dir"],
        strict_versions=settings["strict_versions"],
    )


def get_compare_service(request: Request) -> CompareService:
    """Return the app's compare service, building it on first use."""
    state = request.app.state
    service = getattr(state, "compare_service", None)
    if service is not None:
        return service

    with _init_lock:
        service = getattr(state, "compare_service", None)
        if service is None:
            logger.info("Building compare service on first request")
            service = CompareService.from_config(get_site_config())
            state.compare_service = service
    return service
