"""Factory functions for creating archive stores."""

from typing import Optional

from repo_archive.lib.connection import ConnectionMonitor
from repo_archive.lib.retry import RetryPolicy
from repo_archive.services.github import GitHubConfig, create_github_client

from .store import ArchiveStore


def create_archive_store(
    token: Optional[str] = None,
    github_config: Optional[GitHubConfig] = None,
    policy: Optional[RetryPolicy] = None,
    monitor: Optional[ConnectionMonitor] = None,
) -> ArchiveStore:
    """Create an archive store backed by the GitHub contents API.

    Args:
        token: Access token (falls back to GITHUB_TOKEN)
        github_config: Repository settings (loaded from config if omitted)
        policy: Retry policy (RETRY_* config if omitted)
        monitor: Shared connection monitor, if the caller keeps one

    Returns:
        ArchiveStore instance
    """
    github_config = github_config or GitHubConfig()
    client = create_github_client(token, github_config)
    return ArchiveStore(client, github_config.location, policy=policy, monitor=monitor)
