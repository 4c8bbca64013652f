"""Error kinds raised by the archive store and its GitHub client.

Every error carries a ``retryable`` flag consumed by the retry layer:
True/False decides outright, None defers to the status and network
heuristics in ``repo_archive.lib.retry``.
"""

from typing import Optional


class ArchiveStoreError(Exception):
    """Base exception for archive store failures."""

    retryable: Optional[bool] = False


class RemoteApiError(ArchiveStoreError):
    """The remote API answered with a non-success status code."""

    retryable: Optional[bool] = None

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"GitHub API error {status}: {message}")


class AuthenticationError(RemoteApiError):
    """401 - the token is missing, expired or revoked."""

    retryable = False


class NotFoundError(RemoteApiError):
    """404 - the path (or the repository itself) does not exist."""

    retryable = False


class RateLimitedError(RemoteApiError):
    """403/429 - rate limiting or secondary backpressure."""

    retryable = True


class RequestTimeoutError(RemoteApiError):
    """408 - the server timed out waiting for the request."""

    retryable = True


class ServerError(RemoteApiError):
    """5xx - GitHub is having a bad day."""

    retryable = True


class TransportError(ArchiveStoreError):
    """Connection-level failure before any status code was received."""

    retryable = True


class CorruptArchiveDocumentError(ArchiveStoreError):
    """An archive document is missing its structural markers."""


class InvalidArchivePathError(ArchiveStoreError):
    """A path expected to hold a file points at a directory."""


class NothingToArchiveError(ArchiveStoreError):
    """No file was uploaded successfully, so no archive was written."""


def error_for_status(status: int, message: str) -> RemoteApiError:
    """Build the error kind matching an HTTP status code."""
    if status == 401:
        return AuthenticationError(status, message)
    if status == 404:
        return NotFoundError(status, message)
    if status in (403, 429):
        return RateLimitedError(status, message)
    if status == 408:
        return RequestTimeoutError(status, message)
    if status >= 500:
        return ServerError(status, message)
    return RemoteApiError(status, message)
