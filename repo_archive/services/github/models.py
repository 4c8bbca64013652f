"""Pydantic models for GitHub contents API results.

A contents lookup answers either with one file or with a directory
listing; ``ContentResult`` is the tagged union of the two, discriminated
by ``kind``.
"""

from dataclasses import dataclass
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class RepoLocation:
    """Repository and branch that hold the archive."""

    owner: str
    repo: str
    branch: str = "main"

    def raw_url(self, path: str) -> str:
        """URL serving the file bytes directly (used for image embeds)."""
        return f"https://raw.githubusercontent.com/{self.owner}/{self.repo}/{self.branch}/{path}"

    def blob_url(self, path: str) -> str:
        """URL of the file's page on github.com."""
        return f"https://github.com/{self.owner}/{self.repo}/blob/{self.branch}/{path}"


class DirectoryEntry(BaseModel):
    """One item of a directory listing."""

    name: str
    path: str
    type: str  # "file", "dir", "symlink", "submodule"
    sha: Optional[str] = None


class FileContent(BaseModel):
    """A single file with its decoded bytes."""

    kind: Literal["file"] = "file"
    name: str
    path: str
    sha: str
    content: bytes = Field(repr=False)
    html_url: Optional[str] = None

    def text(self) -> str:
        return self.content.decode("utf-8")


class DirectoryListing(BaseModel):
    """Entries of a directory."""

    kind: Literal["dir"] = "dir"
    path: str
    entries: list[DirectoryEntry] = Field(default_factory=list)


ContentResult = Annotated[Union[FileContent, DirectoryListing], Field(discriminator="kind")]


class WriteResult(BaseModel):
    """Outcome of a create-or-update call."""

    path: str
    sha: Optional[str] = None
    html_url: Optional[str] = None
