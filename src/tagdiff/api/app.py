"""FastAPI application instance for the tagdiff server."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..errors import TagDiffError
from ..logging_utils import configure_logging
from . import __version__
from .routes import router as api_router

configure_logging()

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"TAG_NOT_FOUND", "FILE_NOT_FOUND"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release the repository clone on shutdown."""
    yield
    service = getattr(app.state, "compare_service", None)
    if service is not None:
        logger.info("Closing compare service")
        service.close()
        app.state.compare_service = None


app = FastAPI(
    title="tagdiff",
    description="Compare the files of any two tags of a git repository",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.exception_handler(TagDiffError)
async def tagdiff_exception_handler(request: Request, exc: TagDiffError):
    """Return the error envelope; missing tags and files are 404s."""
    status_code = 404 if exc.code in _NOT_FOUND_CODES else 500
    logger.warning(
        "Request failed",
        extra={"path": str(request.url.path), "code": exc.code},
    )
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": exc.to_dict()},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return a consistent error envelope for uncaught exceptions."""
    logger.exception("Unhandled error", extra={"path": str(request.url.path)})
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "error": {
                "code": "INTERNAL_ERROR",
                "message": f"Internal server error: {str(exc)}",
                "details": {
                    "exception_type": type(exc).__name__,
                    "path": str(request.url.path),
                },
            },
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
