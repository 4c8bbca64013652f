"""Archive API endpoints.

Endpoints:
- GET /archives - List archive documents, newest first
- POST /archives - Upload files and create an archive (multipart)
- GET /archives/{path}/raw - Raw markdown of an archive
- GET /archives/{path} - Parsed archive with its revision
- PUT /archives/{path} - Update title and description
- DELETE /archives/{path} - Delete an archive document

Every endpoint takes the GitHub token as a bearer credential; without one
the configured GITHUB_TOKEN is used.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import PlainTextResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from repo_archive.lib.config_manager import config
from repo_archive.lib.connection import ConnectionMonitor
from repo_archive.services.archive import (
    Archive,
    ArchiveRef,
    ArchiveStore,
    ArchiveSummary,
    UploadTask,
    create_archive_store,
)

router = APIRouter(prefix="/archives", tags=["archives"])
security = HTTPBearer(auto_error=False)


# =============================================================================
# Models
# =============================================================================


class UpdateArchiveRequest(BaseModel):
    """Request body for editing an archive."""

    title: str
    description: str = ""
    revision_id: str | None = None


class ArchiveListResponse(BaseModel):
    """Response for listing archives."""

    archives: list[ArchiveSummary]
    count: int


class UploadResult(BaseModel):
    """Outcome of one uploaded file."""

    file_name: str
    stored_path: str | None = None
    error_message: str | None = None


class CreateArchiveResponse(BaseModel):
    """Response for archive creation."""

    archive: ArchiveRef
    uploads: list[UploadResult]


class DeleteResponse(BaseModel):
    """Response for delete operations."""

    success: bool
    message: str


# =============================================================================
# Dependencies
# =============================================================================


def get_monitor(request: Request) -> Optional[ConnectionMonitor]:
    return getattr(request.app.state, "monitor", None)


async def get_archive_store(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    monitor: Optional[ConnectionMonitor] = Depends(get_monitor),
) -> ArchiveStore:
    """Dependency building a store for the caller's token.

    Raises:
        HTTPException: If neither a bearer token nor GITHUB_TOKEN is set
    """
    token = credentials.credentials if credentials else config.get("GITHUB_TOKEN")
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="GitHub token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return create_archive_store(token=token, monitor=monitor)


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=ArchiveListResponse)
async def list_archives(store: ArchiveStore = Depends(get_archive_store)):
    """List all archives, newest first."""
    archives = await store.list_archives()
    return ArchiveListResponse(archives=archives, count=len(archives))


@router.post("", response_model=CreateArchiveResponse, status_code=status.HTTP_201_CREATED)
async def create_archive(
    title: str = Form(...),
    description: str = Form(""),
    files: list[UploadFile] = File(...),
    store: ArchiveStore = Depends(get_archive_store),
):
    """Upload files and write an archive linking the ones that succeeded."""
    if not title.strip():
        raise HTTPException(status_code=422, detail="Title required")

    tasks = []
    for file in files:
        if not file.filename:
            raise HTTPException(status_code=400, detail="Filename required")
        tasks.append(
            UploadTask(
                file_name=file.filename,
                data=await file.read(),
                mime_type=file.content_type,
            )
        )

    ref = await store.create_archive_from_tasks(title, description, tasks)
    return CreateArchiveResponse(
        archive=ref,
        uploads=[
            UploadResult(
                file_name=task.file_name,
                stored_path=task.stored_path,
                error_message=task.error_message,
            )
            for task in tasks
        ],
    )


@router.get("/{path:path}/raw", response_class=PlainTextResponse)
async def get_archive_raw(path: str, store: ArchiveStore = Depends(get_archive_store)):
    """Raw markdown of an archive."""
    text = await store.get_archive_content(path)
    return PlainTextResponse(text, media_type="text/markdown; charset=utf-8")


@router.get("/{path:path}", response_model=Archive)
async def get_archive(path: str, store: ArchiveStore = Depends(get_archive_store)):
    """Parsed archive, including the revision needed to edit it."""
    return await store.get_archive(path)


@router.put("/{path:path}", response_model=ArchiveRef)
async def update_archive(
    path: str,
    request: UpdateArchiveRequest,
    store: ArchiveStore = Depends(get_archive_store),
):
    """Replace title and description, keeping files and timestamp."""
    if not request.title.strip():
        raise HTTPException(status_code=422, detail="Title required")
    return await store.update_archive(
        path, request.title, request.description, request.revision_id
    )


@router.delete("/{path:path}", response_model=DeleteResponse)
async def delete_archive(path: str, store: ArchiveStore = Depends(get_archive_store)):
    """Delete an archive document. Uploaded files are kept."""
    await store.delete_archive(path)
    return DeleteResponse(success=True, message=f"Deleted {path}")
