"""API route registration for tagdiff."""

from fastapi import APIRouter

from . import changes, meta, site

router = APIRouter()
router.include_router(meta.router)
router.include_router(changes.router)
# site last: it ends with a catch-all asset route
router.include_router(site.router)

__all__ = ["router"]
