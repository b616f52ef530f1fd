"""Meta endpoints for the tagdiff server."""

import logging
from typing import Optional

from fastapi import APIRouter, Request

from ...vcs import installed_git_version
from .. import __version__
from ..models import HealthResponse, VersionResponse

router = APIRouter(tags=["meta"])

logger = logging.getLogger(__name__)


def _loaded_tag_count(request: Request) -> Optional[int]:
    # the service is built on the first site request, not at startup
    service = getattr(request.app.state, "compare_service", None)
    if service is None:
        return None
    return len(service.context.catalog)


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """Report git availability and whether the repository is loaded."""
    git_version = installed_git_version(timeout=5)
    tags_loaded = _loaded_tag_count(request)
    logger.info(
        "Health check invoked",
        extra={"git_available": git_version is not None, "tags_loaded": tags_loaded},
    )
    return HealthResponse(
        status="healthy",
        version=__version__,
        git_available=git_version is not None,
        git_version=git_version,
        tags_loaded=tags_loaded,
    )


@router.get("/version", response_model=VersionResponse)
def version_info() -> VersionResponse:
    return VersionResponse(
        version=__version__,
        api_version="v1",
        git_version=installed_git_version(timeout=5),
    )
