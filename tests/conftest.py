"""Pytest configuration and shared fixtures."""

from collections.abc import Callable

import httpx
import pytest

from forges.models.domain import Repository
from forges.utils.connection_pool import HTTPTransport

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def mock_transport() -> Callable[[Handler], HTTPTransport]:
    """Factory for an HTTPTransport answering every request with ``handler``."""

    def build(handler: Handler) -> HTTPTransport:
        return HTTPTransport(transport=httpx.MockTransport(handler))

    return build


@pytest.fixture
def sample_repos() -> list[Repository]:
    """One repository per archived/fork combination, in a fixed order."""
    return [
        Repository(owner="acme", name="active"),
        Repository(owner="acme", name="archived", archived=True),
        Repository(owner="acme", name="fork", fork=True, source_name="upstream/fork"),
        Repository(owner="acme", name="archived-fork", archived=True, fork=True),
    ]
