"""HTML pages, file contents and static assets of the comparison site."""

import logging
from importlib import resources
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, Response

from ..dependencies import get_compare_service
from ..models import VersionsResponse
from ..services import CompareService

router = APIRouter(tags=["site"])

logger = logging.getLogger(__name__)

_MEDIA_TYPES = {
    ".css": "text/css",
    ".js": "application/javascript",
    ".html": "text/html",
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".ico": "image/x-icon",
}


def _unquote(value: str) -> str:
    return value.strip('"')


@router.get("/", response_class=HTMLResponse)
def index(service: CompareService = Depends(get_compare_service)) -> str:
    """Index page listing all tags."""
    return service.index_html()


@router.get("/files/{tag1}/{tag2}", response_class=HTMLResponse)
def files(
    tag1: str,
    tag2: str,
    service: CompareService = Depends(get_compare_service),
) -> str:
    """Changed files between two tags; a trailing ``.html`` is ignored."""
    if tag2.endswith(".html"):
        tag2 = tag2[: -len(".html")]
    return service.files_html(tag1, tag2)


@router.get("/diff", response_class=HTMLResponse)
def diff(
    tag1: str = Query(...),
    tag2: str = Query(...),
    file: str = Query(...),
    service: CompareService = Depends(get_compare_service),
) -> str:
    """Diff viewer for a single file."""
    return service.diff_html(tag1, tag2, file)


@router.get("/versions", response_model=VersionsResponse)
def versions(
    tag1: str = Query(...),
    tag2: str = Query(...),
    file: str = Query(...),
    service: CompareService = Depends(get_compare_service),
) -> VersionsResponse:
    """Content of a file at both tags."""
    contents = service.versions(_unquote(tag1), _unquote(tag2), _unquote(file))
    return VersionsResponse(**contents)


@router.get("/content/{tag}/{file_path:path}")
def content(
    tag: str,
    file_path: str,
    service: CompareService = Depends(get_compare_service),
) -> Response:
    """Raw content of a file at a tag."""
    return Response(content=service.file_content(tag, file_path), media_type="text/plain")


@router.get("/{asset_name}", include_in_schema=False)
def static_asset(
    asset_name: str,
    service: CompareService = Depends(get_compare_service),
) -> Response:
    """Static asset from the configured directory or the package."""
    static_dir = service.context.config.static_dir
    if static_dir:
        candidate = Path(static_dir) / asset_name
        if not candidate.is_file() or candidate.resolve().parent != Path(static_dir).resolve():
            raise HTTPException(status_code=404, detail=f"{asset_name} not found")
        data = candidate.read_bytes()
    else:
        candidate = resources.files("tagdiff") / "static" / asset_name
        if "/" in asset_name or not candidate.is_file():
            raise HTTPException(status_code=404, detail=f"{asset_name} not found")
        data = candidate.read_bytes()

    media_type = _MEDIA_TYPES.get(Path(asset_name).suffix, "application/octet-stream")
    logger.debug("Serving static asset", extra={"asset": asset_name})
    return Response(content=data, media_type=media_type)
