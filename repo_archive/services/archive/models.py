"""Pydantic models for archive documents and uploads.

Models for:
- FileLink: An uploaded file referenced from an archive
- Archive: A parsed archive document plus its revision
- ArchiveHeader: The editable part of an archive document
- UploadTask: Client-side state of one pending upload
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MediaKind(str, Enum):
    """Content kind of an uploaded file."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    PDF = "pdf"
    OTHER = "other"


class FileLink(BaseModel):
    """An uploaded file referenced from an archive document."""

    display_name: str
    stored_path: str
    kind: MediaKind = MediaKind.OTHER


class ArchiveHeader(BaseModel):
    """Title/description block of an archive document."""

    title: str
    description: str = ""
    created_at: Optional[datetime] = None


class Archive(ArchiveHeader):
    """Archive document as read back from the repository."""

    path: str
    revision_id: str
    file_links: list[FileLink] = Field(default_factory=list)


class ArchiveSummary(BaseModel):
    """Archive listing entry."""

    name: str
    path: str


class ArchiveRef(BaseModel):
    """Where a created or updated archive lives."""

    path: str
    url: str


class UploadTask(BaseModel):
    """A file selected for upload and its progress.

    Lives only as long as the upload workflow; never persisted.
    """

    file_name: str
    data: bytes = Field(repr=False)
    mime_type: Optional[str] = None
    progress: int = Field(default=0, ge=0, le=100)
    stored_path: Optional[str] = None
    kind: Optional[MediaKind] = None
    error_message: Optional[str] = None

    model_config = ConfigDict(validate_assignment=True)

    @property
    def uploaded(self) -> bool:
        return self.stored_path is not None and self.error_message is None

    def to_file_link(self) -> FileLink:
        """FileLink for a finished upload."""
        if self.stored_path is None:
            raise ValueError(f"{self.file_name} has not been uploaded")
        return FileLink(
            display_name=self.file_name,
            stored_path=self.stored_path,
            kind=self.kind or MediaKind.OTHER,
        )
