"""Fixtures for router tests: the app wired to an in-memory repository."""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from repo_archive.api.main import app as fastapi_app
from repo_archive.api.routers.archives import get_archive_store
from repo_archive.lib.retry import RetryPolicy
from repo_archive.services.archive import ArchiveStore
from repo_archive.services.github.models import RepoLocation
from repo_archive.services.tests.fakes import FakeContentStore


@pytest.fixture
def fake_content_store() -> FakeContentStore:
    return FakeContentStore()


@pytest.fixture
def archive_store(fake_content_store) -> ArchiveStore:
    return ArchiveStore(
        fake_content_store,
        RepoLocation(owner="octo", repo="archive-store", branch="main"),
        policy=RetryPolicy(max_attempts=3, base_delay=0),
    )


@pytest.fixture
def app():
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app, archive_store) -> Generator[TestClient, None, None]:
    """Test client whose archive store talks to the fake repository.

    The lifespan is not run, so no connectivity probe goes out.
    """
    app.dependency_overrides[get_archive_store] = lambda: archive_store
    yield TestClient(app)
