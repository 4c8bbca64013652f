"""Factory functions for creating GitHub service instances."""

from typing import Optional

from repo_archive.lib.config_manager import config

from .client import GitHubContentsClient
from .config import GitHubConfig


def create_github_client(
    token: Optional[str] = None, github_config: Optional[GitHubConfig] = None
) -> GitHubContentsClient:
    """Create a contents client.

    Args:
        token: Access token (falls back to GITHUB_TOKEN)
        github_config: Repository settings (loaded from config if omitted)

    Returns:
        GitHubContentsClient instance
    """
    return GitHubContentsClient(
        github_config or GitHubConfig(), token or config.get("GITHUB_TOKEN")
    )
