"""FastAPI application for browsing and editing archives."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from repo_archive.api.models import ErrorResponse
from repo_archive.api.routers import archives, health
from repo_archive.lib.config_manager import config
from repo_archive.lib.connection import ConnectionMonitor
from repo_archive.lib.errors import (
    ArchiveStoreError,
    AuthenticationError,
    CorruptArchiveDocumentError,
    InvalidArchivePathError,
    NotFoundError,
    NothingToArchiveError,
    RateLimitedError,
    RemoteApiError,
    RequestTimeoutError,
    ServerError,
    TransportError,
)
from repo_archive.lib.logging_config import setup_logging
from repo_archive.lib.retry import is_retryable_error

logger = logging.getLogger(__name__)

# Most specific first
ERROR_STATUS_CODES: list[tuple[type[ArchiveStoreError], int]] = [
    (AuthenticationError, 401),
    (NotFoundError, 404),
    (RateLimitedError, 429),
    (RequestTimeoutError, 504),
    (TransportError, 504),
    (ServerError, 502),
    (CorruptArchiveDocumentError, 422),
    (InvalidArchivePathError, 422),
    (NothingToArchiveError, 422),
]


def status_for_error(error: ArchiveStoreError) -> int:
    """HTTP status reported to API callers for an archive store error."""
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_class):
            return status_code
    if isinstance(error, RemoteApiError) and error.status == 409:
        return 409
    return 502


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle: logging and the shared connection monitor."""
    setup_logging(
        "api",
        level=config.get("LOG_LEVEL"),
        json_output=config.get("LOG_FORMAT") == "json",
    )
    app.state.monitor = ConnectionMonitor(config.get("GITHUB_API_URL"))
    online = await app.state.monitor.init()
    logger.info(
        f"Archive API starting for {config.get('ARCHIVE_REPO_OWNER')}/"
        f"{config.get('ARCHIVE_REPO_NAME')} (GitHub {'online' if online else 'offline'})"
    )
    yield
    logger.info("Archive API shutting down")


app = FastAPI(
    title="Repo Archive API",
    description="Archives of uploaded files stored in a GitHub repository",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration for the browser frontend
CORS_ORIGINS = [
    "http://localhost:5173",    # Vite dev server
    "http://127.0.0.1:5173",
    "http://localhost:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(archives.router)


@app.exception_handler(ArchiveStoreError)
async def archive_store_exception_handler(request: Request, exc: ArchiveStoreError):
    """Translate archive store failures into HTTP errors."""
    status_code = status_for_error(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=str(exc),
            retryable=is_retryable_error(exc),
        ).model_dump(),
    )


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Repo Archive API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
        "repository": f"{config.get('ARCHIVE_REPO_OWNER')}/{config.get('ARCHIVE_REPO_NAME')}",
        "endpoints": {
            "archives_list": "GET /archives",
            "archives_create": "POST /archives",
            "archives_get": "GET /archives/{path}",
            "archives_raw": "GET /archives/{path}/raw",
            "archives_update": "PUT /archives/{path}",
            "archives_delete": "DELETE /archives/{path}",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
