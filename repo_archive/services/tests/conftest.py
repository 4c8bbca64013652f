"""Shared pytest fixtures for services tests."""

import os
import time
from datetime import datetime, timezone

import pytest

from repo_archive.lib.retry import BackoffMode, RetryPolicy
from repo_archive.services.archive import ArchiveStore
from repo_archive.services.github.models import RepoLocation
from repo_archive.services.tests.fakes import FakeContentStore


@pytest.fixture
def location() -> RepoLocation:
    """Repository the fake store pretends to be."""
    return RepoLocation(owner="octo", repo="archive-store", branch="main")


@pytest.fixture
def created_at() -> datetime:
    """Fixed creation time (Friday, 5 January 2024)."""
    return datetime(2024, 1, 5, 10, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def fake_content_store() -> FakeContentStore:
    """Empty in-memory repository."""
    return FakeContentStore()


@pytest.fixture
def retry_policy() -> RetryPolicy:
    """Three attempts without waiting."""
    return RetryPolicy(max_attempts=3, base_delay=0, backoff=BackoffMode.LINEAR)


@pytest.fixture
def archive_store(fake_content_store, location, retry_policy) -> ArchiveStore:
    """ArchiveStore wired to the in-memory repository."""
    return ArchiveStore(fake_content_store, location, policy=retry_policy)


@pytest.fixture
def local_timezone():
    """Switch the process local time zone, e.g. ``local_timezone("Asia/Tokyo")``."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    original = os.environ.get("TZ")

    def switch(name: str) -> None:
        os.environ["TZ"] = name
        time.tzset()

    yield switch

    if original is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = original
    time.tzset()
