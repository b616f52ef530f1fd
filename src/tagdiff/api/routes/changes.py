"""JSON endpoints exposing tags and composed changes."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..dependencies import get_compare_service
from ..services import CompareService

router = APIRouter(prefix="/api", tags=["changes"])

logger = logging.getLogger(__name__)


@router.get("/tags")
def list_tags(service: CompareService = Depends(get_compare_service)) -> Dict[str, Any]:
    """All tags, newest first."""
    return service.list_tags()


@router.get("/changes/{tag1}/{tag2}")
def get_changes(
    tag1: str,
    tag2: str,
    service: CompareService = Depends(get_compare_service),
) -> Dict[str, Any]:
    """Net file changes going from ``tag1`` to ``tag2``."""
    logger.info("Received changes request", extra={"from_tag": tag1, "to_tag": tag2})
    return service.changes(tag1, tag2)
