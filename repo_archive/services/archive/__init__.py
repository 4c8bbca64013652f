"""Archive service: markdown archive documents stored in a GitHub repository.

Example usage:
    >>> from repo_archive.services.archive import create_archive_store
    >>>
    >>> store = create_archive_store(token)
    >>> link = await store.upload_file(data, "beach.jpg")
    >>> ref = await store.create_archive("Trip", "Fun day", [link])
    >>> archives = await store.list_archives()
"""

from .models import (
    Archive,
    ArchiveHeader,
    ArchiveRef,
    ArchiveSummary,
    FileLink,
    MediaKind,
    UploadTask,
)
from .codec import decode, decode_file_links, encode, reencode
from .store import ArchiveStore
from .factory import create_archive_store

__all__ = [
    # Models
    "Archive",
    "ArchiveHeader",
    "ArchiveRef",
    "ArchiveSummary",
    "FileLink",
    "MediaKind",
    "UploadTask",
    # Codec
    "encode",
    "decode",
    "decode_file_links",
    "reencode",
    # Implementations
    "ArchiveStore",
    # Factories
    "create_archive_store",
]
