"""Shared fixtures for swaggerbot unit tests."""

from __future__ import annotations

import typing as typ

import pytest

from swaggerbot.config import SyncConfig
from tests.helpers.fake_logger import FakeLogger, bound_fake_logger
from tests.helpers.fake_repo import FakeRepoClient
from tests.helpers.specs import ORDERS_URL

if typ.TYPE_CHECKING:
    from swaggerbot.logging import BoundLogger


@pytest.fixture
def sync_config() -> SyncConfig:
    """Return a valid configuration for the ``acme/api-swagger-repos`` repo."""
    return SyncConfig.from_values(
        github_token="ghp_test",
        owner="acme",
        repo="api-swagger-repos",
        reviewers="alice|bob",
        swagger_url=ORDERS_URL,
    )


@pytest.fixture
def repo() -> FakeRepoClient:
    """Return an empty in-memory repository with a ``main`` branch."""
    return FakeRepoClient()


@pytest.fixture
def bound_log() -> tuple[BoundLogger, FakeLogger]:
    """Return a bound logger and the sink it writes to."""
    return bound_fake_logger()
