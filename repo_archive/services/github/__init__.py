"""GitHub service module: the remote repository store."""

from .config import GitHubConfig
from .client import GitHubContentsClient
from .factory import create_github_client
from .models import (
    ContentResult,
    DirectoryEntry,
    DirectoryListing,
    FileContent,
    RepoLocation,
    WriteResult,
)
from .protocols import ContentStore

__all__ = [
    "GitHubConfig",
    "GitHubContentsClient",
    "create_github_client",
    "ContentResult",
    "ContentStore",
    "DirectoryEntry",
    "DirectoryListing",
    "FileContent",
    "RepoLocation",
    "WriteResult",
]
