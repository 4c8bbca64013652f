"""Protocol for the remote repository store.

Protocols define interfaces without implementation, enabling:
- Easy faking in tests (see services/tests/fakes.py)
- Swappable implementations
"""

from typing import Optional, Protocol

from .models import ContentResult, WriteResult


class ContentStore(Protocol):
    """Remote store of repository files addressed by path.

    All methods may raise the status-coded errors of
    ``repo_archive.lib.errors``.
    """

    async def get_content(self, path: str) -> ContentResult:
        """Fetch a file (with its revision) or a directory listing."""
        ...

    async def find_revision(self, path: str) -> Optional[str]:
        """Revision of the file at ``path``, or None if nothing is there."""
        ...

    async def create_or_update(
        self,
        path: str,
        encoded_content: str,
        message: str,
        revision_id: Optional[str] = None,
    ) -> WriteResult:
        """Write base64-encoded content; ``revision_id`` is required when replacing a file."""
        ...

    async def delete_file(self, path: str, message: str, revision_id: str) -> None:
        """Delete the file at ``path`` if it is still at ``revision_id``."""
        ...
