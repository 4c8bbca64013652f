"""Archive operations against the remote repository store.

Every remote call is wrapped in ``with_retry``; archive documents pass
through the codec on the way in and out.
"""

import asyncio
import base64
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from repo_archive.lib.connection import ConnectionMonitor
from repo_archive.lib.errors import InvalidArchivePathError, NotFoundError, NothingToArchiveError
from repo_archive.lib.logging_config import log_with_context
from repo_archive.lib.retry import RetryPolicy, is_network_error, with_retry
from repo_archive.services.github.models import (
    DirectoryListing,
    FileContent,
    RepoLocation,
)
from repo_archive.services.github.protocols import ContentStore

from . import codec
from .layout import ROOT_DIR, archive_path, guess_mime_type, is_archive_document, kind_for_mime, upload_path
from .models import Archive, ArchiveRef, ArchiveSummary, FileLink, UploadTask

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


def _encode_text(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class ArchiveStore:
    """Uploads files and manages archive documents in one repository."""

    def __init__(
        self,
        client: ContentStore,
        location: RepoLocation,
        policy: Optional[RetryPolicy] = None,
        monitor: Optional[ConnectionMonitor] = None,
    ):
        """Initialize the store.

        Args:
            client: Remote repository store
            location: Owner/repo/branch the client writes to
            policy: Retry policy template (defaults to RETRY_* config)
            monitor: Optional connection monitor fed by retry outcomes
        """
        self.client = client
        self.location = location
        self.policy = policy or RetryPolicy.from_config()
        self.monitor = monitor

    def _policy_for(self, action: str, path: str) -> RetryPolicy:
        """Copy of the store policy with a retry callback naming the action."""

        def on_retry(attempt: int, error: Exception) -> None:
            log_with_context(
                logger,
                "warning",
                f"{action} retry {attempt}/{self.policy.max_attempts}: {error}",
                action=action,
                path=path,
                attempt=attempt,
            )
            if self.monitor is not None and is_network_error(error):
                self.monitor.set_online(False)
            if self.policy.on_retry is not None:
                self.policy.on_retry(attempt, error)

        return RetryPolicy(
            max_attempts=self.policy.max_attempts,
            base_delay=self.policy.base_delay,
            backoff=self.policy.backoff,
            on_retry=on_retry,
        )

    async def _retry(self, action: str, path: str, operation):
        result = await with_retry(operation, self._policy_for(action, path))
        if self.monitor is not None:
            self.monitor.set_online(True)
        return result

    def _url_for(self, path: str, html_url: Optional[str]) -> str:
        return html_url or self.location.blob_url(path)

    async def _read_file(self, path: str) -> FileContent:
        result = await self.client.get_content(path)
        if isinstance(result, DirectoryListing):
            raise InvalidArchivePathError(f"{path} is a directory, not an archive")
        return result

    # =========================================================================
    # Uploads
    # =========================================================================

    async def upload_file(
        self,
        data: bytes,
        file_name: str,
        mime_type: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> FileLink:
        """Upload one file under its kind subdirectory.

        Args:
            data: File bytes
            file_name: Original file name (shown in the archive)
            mime_type: MIME type (guessed from the name if omitted)
            on_progress: Called with 10, 50, 70, 90 and 100

        Returns:
            FileLink pointing at the stored file
        """
        kind = kind_for_mime(mime_type or guess_mime_type(file_name))

        def report(progress: int) -> None:
            if on_progress is not None:
                on_progress(progress)

        async def upload() -> str:
            path = upload_path(file_name, kind)
            report(10)

            encoded = base64.b64encode(data).decode("ascii")
            report(50)

            # Unique names should never collide, but an existing file must be
            # replaced with its revision rather than rejected
            revision_id = await self.client.find_revision(path)
            report(70)

            await self.client.create_or_update(
                path, encoded, f"Add file: {path.rsplit('/', 1)[-1]}", revision_id
            )
            report(90)
            report(100)
            return path

        stored_path = await self._retry("upload", file_name, upload)
        log_with_context(
            logger, "info", f"Uploaded {file_name}", path=stored_path, kind=kind.value
        )
        return FileLink(display_name=file_name, stored_path=stored_path, kind=kind)

    async def _run_upload_task(self, task: UploadTask) -> None:
        def on_progress(progress: int) -> None:
            task.progress = progress

        task.error_message = None
        try:
            link = await self.upload_file(
                task.data, task.file_name, task.mime_type, on_progress
            )
        except Exception as e:
            logger.warning(f"Upload of {task.file_name} failed: {e}")
            task.error_message = str(e)
            return

        task.stored_path = link.stored_path
        task.kind = link.kind
        task.progress = 100

    async def upload_tasks(self, tasks: list[UploadTask]) -> list[UploadTask]:
        """Upload all pending tasks concurrently.

        Each task records its own progress and error; one failure does not
        affect the others. Tasks already uploaded are left alone.

        Returns:
            The same task list
        """
        pending = [task for task in tasks if task.stored_path is None]
        await asyncio.gather(*(self._run_upload_task(task) for task in pending))
        return tasks

    # =========================================================================
    # Archive documents
    # =========================================================================

    async def create_archive(
        self,
        title: str,
        description: str,
        file_links: list[FileLink],
        created_at: Optional[datetime] = None,
    ) -> ArchiveRef:
        """Write a new archive document for already uploaded files.

        Returns:
            ArchiveRef with the document path and its github.com URL
        """
        if not title.strip():
            raise ValueError("Archive title must not be empty")

        created_at = created_at or datetime.now(timezone.utc)
        path = archive_path(title, created_at)
        text = codec.encode(
            title, description, created_at, file_links, location=self.location
        )

        async def write():
            return await self.client.create_or_update(
                path, _encode_text(text), f"Create archive: {title}"
            )

        result = await self._retry("create archive", path, write)
        log_with_context(
            logger, "info", f"Created archive {path}", path=path, files=len(file_links)
        )
        return ArchiveRef(path=path, url=self._url_for(path, result.html_url))

    async def create_archive_from_tasks(
        self,
        title: str,
        description: str,
        tasks: list[UploadTask],
        created_at: Optional[datetime] = None,
    ) -> ArchiveRef:
        """Upload pending tasks and archive every file that made it.

        Raises:
            ValueError: If the title is empty or there is nothing to upload
            NothingToArchiveError: If every upload failed
        """
        if not title.strip():
            raise ValueError("Archive title must not be empty")
        if not tasks:
            raise ValueError("Select at least one file to archive")

        await self.upload_tasks(tasks)

        links = [task.to_file_link() for task in tasks if task.uploaded]
        if not links:
            raise NothingToArchiveError("No files were uploaded successfully")

        return await self.create_archive(title, description, links, created_at)

    async def list_archives(self) -> list[ArchiveSummary]:
        """All archive documents, newest first (descending path)."""
        archives: list[ArchiveSummary] = []

        async def walk(directory: str) -> None:
            async def fetch():
                return await self.client.get_content(directory)

            try:
                listing = await self._retry("list archives", directory, fetch)
            except NotFoundError:
                # A missing directory simply has no archives
                return

            if not isinstance(listing, DirectoryListing):
                return
            for entry in listing.entries:
                if entry.type == "dir":
                    await walk(entry.path)
                elif entry.type == "file" and is_archive_document(entry.name):
                    archives.append(ArchiveSummary(name=entry.name, path=entry.path))

        await walk(ROOT_DIR)
        archives.sort(key=lambda archive: archive.path, reverse=True)
        return archives

    async def get_archive_content(self, path: str) -> str:
        """Raw markdown of an archive document."""

        async def read():
            return await self._read_file(path)

        file = await self._retry("read archive", path, read)
        return file.text()

    async def get_archive(self, path: str) -> Archive:
        """Parsed archive with the revision needed for update/delete."""

        async def read():
            return await self._read_file(path)

        file = await self._retry("read archive", path, read)
        text = file.text()
        header = codec.decode(text)
        return Archive(
            path=path,
            title=header.title,
            description=header.description,
            created_at=header.created_at,
            revision_id=file.sha,
            file_links=codec.decode_file_links(text),
        )

    async def update_archive(
        self,
        path: str,
        title: str,
        description: str,
        revision_id: Optional[str] = None,
    ) -> ArchiveRef:
        """Replace title and description, keeping timestamp and file links.

        The document is re-read first. When ``revision_id`` is given it is
        the revision the caller edited; if the file moved on since, GitHub
        rejects the write.

        Raises:
            CorruptArchiveDocumentError: If the stored document has no separator
        """
        if not title.strip():
            raise ValueError("Archive title must not be empty")

        async def rewrite():
            current = await self._read_file(path)
            text = codec.reencode(current.text(), title, description, strict=True)
            return await self.client.create_or_update(
                path,
                _encode_text(text),
                f"Update archive: {title}",
                revision_id or current.sha,
            )

        result = await self._retry("update archive", path, rewrite)
        log_with_context(logger, "info", f"Updated archive {path}", path=path)
        return ArchiveRef(path=path, url=self._url_for(path, result.html_url))

    async def delete_archive(self, path: str, name: Optional[str] = None) -> None:
        """Delete an archive document (the uploaded files stay)."""
        name = name or path.rsplit("/", 1)[-1]

        async def delete():
            current = await self._read_file(path)
            await self.client.delete_file(path, f"Delete archive: {name}", current.sha)

        await self._retry("delete archive", path, delete)
        log_with_context(logger, "info", f"Deleted archive {path}", path=path)
