"""Shared fixtures for the asset purger tests."""

import pytest

from tests.fakes import FakeCloudFront, FakeEdge, FakeS3, make_config


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def edge() -> FakeEdge:
    return FakeEdge()


@pytest.fixture
def s3() -> FakeS3:
    return FakeS3()


@pytest.fixture
def cloudfront(edge) -> FakeCloudFront:
    return FakeCloudFront(edge=edge)


@pytest.fixture(autouse=True)
def _no_retry_sleep(monkeypatch):
    """Retries in tests never wait."""
    import shared.retry

    monkeypatch.setattr(shared.retry, "BASE_DELAY", 0)
    monkeypatch.setattr(shared.retry, "MAX_DELAY", 0)
