"""GitHub configuration from the config manager."""

from dataclasses import dataclass, field

from repo_archive.lib.config_manager import config
from .models import RepoLocation


@dataclass
class GitHubConfig:
    """Repository coordinates and API settings."""

    owner: str = field(default_factory=lambda: config.get("ARCHIVE_REPO_OWNER"))
    repo: str = field(default_factory=lambda: config.get("ARCHIVE_REPO_NAME"))
    branch: str = field(default_factory=lambda: config.get("ARCHIVE_BRANCH"))
    api_url: str = field(default_factory=lambda: config.get("GITHUB_API_URL"))
    timeout: float = field(default_factory=lambda: config.get("GITHUB_TIMEOUT"))

    @property
    def location(self) -> RepoLocation:
        return RepoLocation(owner=self.owner, repo=self.repo, branch=self.branch)

    @property
    def contents_url(self) -> str:
        """Base URL of the repository contents endpoint."""
        return f"{self.api_url.rstrip('/')}/repos/{self.owner}/{self.repo}/contents"
