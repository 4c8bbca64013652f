"""Async client for the GitHub repository contents API."""

import base64
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from repo_archive.lib.errors import (
    InvalidArchivePathError,
    NotFoundError,
    TransportError,
    error_for_status,
)

from .config import GitHubConfig
from .models import ContentResult, DirectoryEntry, DirectoryListing, FileContent, WriteResult

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/vnd.github+json"
RAW_MEDIA_TYPE = "application/vnd.github.raw+json"
API_VERSION = "2022-11-28"


def _error_message(response: httpx.Response) -> str:
    """Pull GitHub's error message out of a failed response."""
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase


class GitHubContentsClient:
    """Reads and writes repository files through the contents API.

    A fresh ``httpx.AsyncClient`` is opened per request, so one instance
    can be shared by concurrently running upload tasks.
    """

    def __init__(self, config: GitHubConfig, token: str):
        """Initialize the client.

        Args:
            config: Repository coordinates and API settings
            token: Personal access token with contents read/write scope
        """
        if not token:
            raise ValueError("A GitHub token is required")
        self.config = config
        self._token = token

    def _headers(self, accept: str = JSON_MEDIA_TYPE) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": accept,
            "X-GitHub-Api-Version": API_VERSION,
        }

    def _url(self, path: str) -> str:
        return f"{self.config.contents_url}/{quote(path.strip('/'))}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
        accept: str = JSON_MEDIA_TYPE,
    ) -> httpx.Response:
        """Send one request, mapping failures onto the archive error kinds."""
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout, headers=self._headers(accept)
            ) as client:
                response = await client.request(
                    method, self._url(path), params=params, json=json
                )
        except httpx.TransportError as e:
            raise TransportError(f"Network error talking to GitHub: {e}") from e

        if response.status_code >= 400:
            raise error_for_status(response.status_code, _error_message(response))
        return response

    async def get_content(self, path: str) -> ContentResult:
        """Fetch a file or a directory listing.

        Args:
            path: Repository-relative path

        Returns:
            FileContent with decoded bytes, or DirectoryListing
        """
        response = await self._request(
            "GET", path, params={"ref": self.config.branch}
        )
        data = response.json()

        if isinstance(data, list):
            return DirectoryListing(
                path=path,
                entries=[
                    DirectoryEntry(
                        name=item["name"],
                        path=item["path"],
                        type=item["type"],
                        sha=item.get("sha"),
                    )
                    for item in data
                ],
            )

        if data.get("type") != "file":
            raise InvalidArchivePathError(f"{path} is a {data.get('type')}, not a file")

        if data.get("encoding") == "base64":
            content = base64.b64decode(data.get("content") or "")
        else:
            # Files over 1 MB come back without inline content
            raw = await self._request(
                "GET", path, params={"ref": self.config.branch}, accept=RAW_MEDIA_TYPE
            )
            content = raw.content

        return FileContent(
            name=data["name"],
            path=data["path"],
            sha=data["sha"],
            content=content,
            html_url=data.get("html_url"),
        )

    async def find_revision(self, path: str) -> Optional[str]:
        """Look up the revision of an existing file.

        Returns:
            The file's SHA, or None when nothing exists at ``path``

        Raises:
            InvalidArchivePathError: If ``path`` is a directory
            Any other lookup failure, unchanged
        """
        try:
            result = await self.get_content(path)
        except NotFoundError:
            return None

        if isinstance(result, DirectoryListing):
            raise InvalidArchivePathError(f"{path} is a directory")
        return result.sha

    async def create_or_update(
        self,
        path: str,
        encoded_content: str,
        message: str,
        revision_id: Optional[str] = None,
    ) -> WriteResult:
        """Create a file, or replace it when ``revision_id`` is given.

        Args:
            path: Repository-relative path
            encoded_content: Base64-encoded file bytes
            message: Commit message
            revision_id: SHA of the file being replaced

        Returns:
            WriteResult with the new SHA and html URL
        """
        payload: dict[str, Any] = {
            "message": message,
            "content": encoded_content,
            "branch": self.config.branch,
        }
        if revision_id:
            payload["sha"] = revision_id

        response = await self._request("PUT", path, json=payload)
        written = (response.json() or {}).get("content") or {}

        logger.debug(f"Wrote {path}")
        return WriteResult(
            path=written.get("path", path),
            sha=written.get("sha"),
            html_url=written.get("html_url"),
        )

    async def delete_file(self, path: str, message: str, revision_id: str) -> None:
        """Delete a file.

        Args:
            path: Repository-relative path
            message: Commit message
            revision_id: SHA of the file being deleted
        """
        await self._request(
            "DELETE",
            path,
            json={
                "message": message,
                "sha": revision_id,
                "branch": self.config.branch,
            },
        )
        logger.debug(f"Deleted {path}")
