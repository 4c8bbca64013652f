"""Tests for the GitHub contents client with a mocked HTTP layer."""

import base64
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from pydantic import TypeAdapter, ValidationError

from repo_archive.lib.errors import (
    AuthenticationError,
    InvalidArchivePathError,
    NotFoundError,
    RateLimitedError,
    RemoteApiError,
    ServerError,
    TransportError,
)
from repo_archive.services.github import (
    ContentResult,
    DirectoryListing,
    FileContent,
    GitHubConfig,
    GitHubContentsClient,
    create_github_client,
)


def make_response(status_code: int = 200, json_data=None, content: bytes = b"") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.content = content
    response.text = ""
    response.reason_phrase = "Error"
    return response


def install_client(mock_client_class, *responses) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.request.side_effect = list(responses)
    mock_client.__aenter__.return_value = mock_client
    mock_client.__aexit__.return_value = None
    mock_client_class.return_value = mock_client
    return mock_client


@pytest.fixture
def github_config() -> GitHubConfig:
    return GitHubConfig(
        owner="octo",
        repo="archive-store",
        branch="main",
        api_url="https://api.github.com",
        timeout=10.0,
    )


@pytest.fixture
def client(github_config) -> GitHubContentsClient:
    return GitHubContentsClient(github_config, "ghp_test")


class TestConstruction:
    """Client setup."""

    @pytest.mark.unit
    def test_token_required(self, github_config):
        with pytest.raises(ValueError):
            GitHubContentsClient(github_config, "")

    @pytest.mark.unit
    def test_factory_uses_given_token(self, github_config):
        client = create_github_client(token="ghp_other", github_config=github_config)

        assert client.config is github_config
        assert client._headers()["Authorization"] == "Bearer ghp_other"

    @pytest.mark.unit
    def test_contents_url(self, github_config):
        assert github_config.contents_url == "https://api.github.com/repos/octo/archive-store/contents"


class TestGetContent:
    """File and directory reads."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_file_is_base64_decoded(self, mock_client_class, client):
        mock_client = install_client(
            mock_client_class,
            make_response(
                json_data={
                    "type": "file",
                    "name": "05-trip.md",
                    "path": "diaries/2024/01/05-trip.md",
                    "sha": "abc123",
                    "encoding": "base64",
                    "content": base64.b64encode(b"# Trip\n").decode() + "\n",
                    "html_url": "https://github.com/octo/archive-store/blob/main/diaries/2024/01/05-trip.md",
                }
            ),
        )

        result = await client.get_content("diaries/2024/01/05-trip.md")

        assert isinstance(result, FileContent)
        assert result.kind == "file"
        assert result.text() == "# Trip\n"
        assert result.sha == "abc123"
        method, url = mock_client.request.call_args.args
        assert method == "GET"
        assert url == "https://api.github.com/repos/octo/archive-store/contents/diaries/2024/01/05-trip.md"
        assert mock_client.request.call_args.kwargs["params"] == {"ref": "main"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_request_headers(self, mock_client_class, client):
        install_client(
            mock_client_class,
            make_response(json_data=[]),
        )

        await client.get_content("diaries")

        headers = mock_client_class.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer ghp_test"
        assert headers["Accept"] == "application/vnd.github+json"
        assert headers["X-GitHub-Api-Version"] == "2022-11-28"
        assert mock_client_class.call_args.kwargs["timeout"] == 10.0

    @pytest.mark.unit
    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_directory_listing(self, mock_client_class, client):
        install_client(
            mock_client_class,
            make_response(
                json_data=[
                    {"name": "2024", "path": "diaries/2024", "type": "dir", "sha": "d1"},
                    {"name": "a.md", "path": "diaries/a.md", "type": "file", "sha": "f1"},
                ]
            ),
        )

        result = await client.get_content("diaries")

        assert isinstance(result, DirectoryListing)
        assert result.kind == "dir"
        assert [(e.name, e.type) for e in result.entries] == [("2024", "dir"), ("a.md", "file")]

    @pytest.mark.unit
    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_large_file_fetched_raw(self, mock_client_class, client):
        """Files without inline content are fetched again with the raw media type."""
        install_client(
            mock_client_class,
            make_response(
                json_data={
                    "type": "file",
                    "name": "big.mp4",
                    "path": "diaries/videos/big.mp4",
                    "sha": "big1",
                    "encoding": "none",
                    "content": "",
                }
            ),
            make_response(content=b"\x00\x01raw"),
        )

        result = await client.get_content("diaries/videos/big.mp4")

        assert result.content == b"\x00\x01raw"
        raw_headers = mock_client_class.call_args_list[-1].kwargs["headers"]
        assert raw_headers["Accept"] == "application/vnd.github.raw+json"

    @pytest.mark.unit
    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_symlink_rejected(self, mock_client_class, client):
        install_client(
            mock_client_class,
            make_response(json_data={"type": "symlink", "name": "x", "path": "x", "sha": "s"}),
        )

        with pytest.raises(InvalidArchivePathError):
            await client.get_content("x")


class TestErrorMapping:
    """HTTP failures become archive error kinds."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,error_class",
        [
            (401, AuthenticationError),
            (403, RateLimitedError),
            (404, NotFoundError),
            (429, RateLimitedError),
            (500, ServerError),
            (503, ServerError),
            (409, RemoteApiError),
        ],
    )
    @patch("httpx.AsyncClient")
    async def test_status_mapping(self, mock_client_class, client, status, error_class):
        install_client(mock_client_class, make_response(status, {"message": "nope"}))

        with pytest.raises(error_class) as exc_info:
            await client.get_content("diaries/a.md")

        assert exc_info.value.status == status
        assert str(exc_info.value) == f"GitHub API error {status}: nope"

    @pytest.mark.unit
    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_transport_error_wrapped(self, mock_client_class, client):
        mock_client = install_client(mock_client_class)
        mock_client.request.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(TransportError) as exc_info:
            await client.get_content("diaries/a.md")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


class TestFindRevision:
    """Existence checks before writes."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_existing_file(self, mock_client_class, client):
        install_client(
            mock_client_class,
            make_response(
                json_data={
                    "type": "file",
                    "name": "a.md",
                    "path": "a.md",
                    "sha": "abc",
                    "encoding": "base64",
                    "content": "",
                }
            ),
        )

        assert await client.find_revision("a.md") == "abc"

    @pytest.mark.unit
    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_missing_file(self, mock_client_class, client):
        install_client(mock_client_class, make_response(404, {"message": "Not Found"}))

        assert await client.find_revision("a.md") is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_other_failures_propagate(self, mock_client_class, client):
        install_client(mock_client_class, make_response(500, {"message": "boom"}))

        with pytest.raises(ServerError):
            await client.find_revision("a.md")

    @pytest.mark.unit
    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_directory_rejected(self, mock_client_class, client):
        install_client(mock_client_class, make_response(json_data=[]))

        with pytest.raises(InvalidArchivePathError):
            await client.find_revision("diaries")


class TestWrites:
    """PUT and DELETE payloads."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_create_payload(self, mock_client_class, client):
        mock_client = install_client(
            mock_client_class,
            make_response(
                201,
                {"content": {"path": "a.md", "sha": "new", "html_url": "https://github.com/x/a.md"}},
            ),
        )

        result = await client.create_or_update("a.md", "IyBU", "Create archive: T")

        assert result.sha == "new"
        assert result.html_url == "https://github.com/x/a.md"
        assert mock_client.request.call_args.args[0] == "PUT"
        assert mock_client.request.call_args.kwargs["json"] == {
            "message": "Create archive: T",
            "content": "IyBU",
            "branch": "main",
        }

    @pytest.mark.unit
    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_update_sends_revision(self, mock_client_class, client):
        mock_client = install_client(mock_client_class, make_response(200, {"content": {"sha": "v2"}}))

        await client.create_or_update("a.md", "IyBU", "Update archive: T", "v1")

        assert mock_client.request.call_args.kwargs["json"]["sha"] == "v1"

    @pytest.mark.unit
    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_delete_payload(self, mock_client_class, client):
        mock_client = install_client(mock_client_class, make_response(200, {"commit": {}}))

        await client.delete_file("a.md", "Delete archive: a.md", "v1")

        assert mock_client.request.call_args.args[0] == "DELETE"
        assert mock_client.request.call_args.kwargs["json"] == {
            "message": "Delete archive: a.md",
            "sha": "v1",
            "branch": "main",
        }


class TestContentResult:
    """The file/dir union is selected by ``kind``."""

    @pytest.mark.unit
    def test_dir_payload(self):
        result = TypeAdapter(ContentResult).validate_python(
            {"kind": "dir", "path": "diaries", "entries": [{"name": "2024", "path": "diaries/2024", "type": "dir"}]}
        )

        assert isinstance(result, DirectoryListing)
        assert result.entries[0].name == "2024"

    @pytest.mark.unit
    def test_file_payload(self):
        result = TypeAdapter(ContentResult).validate_python(
            {"kind": "file", "name": "a.md", "path": "a.md", "sha": "v1", "content": b"# a"}
        )

        assert isinstance(result, FileContent)
        assert result.text() == "# a"

    @pytest.mark.unit
    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            TypeAdapter(ContentResult).validate_python({"kind": "symlink", "path": "x"})
