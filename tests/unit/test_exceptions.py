"""Tests for forges/exceptions.py - error hierarchy and messages."""

import pytest

from forges.exceptions import (
    ConfigurationError,
    ForgeDetectionError,
    ForgeHTTPError,
    ForgesError,
    InvalidRepoURLError,
    MissingRepositoryURLError,
    NoForgeRegisteredError,
    OwnerNotFoundError,
    RepositoryNotFoundError,
    RoutingError,
    UnsupportedForgeError,
)


class TestHierarchy:
    """Every error is catchable as ForgesError; routing errors as RoutingError."""

    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("bad config"),
            InvalidRepoURLError("x", "empty URL"),
            RepositoryNotFoundError("o", "r"),
            OwnerNotFoundError("o"),
            ForgeHTTPError(500, "https://api.example.com/x", "boom"),
            MissingRepositoryURLError("pkg:npm/x"),
            NoForgeRegisteredError("example.com"),
        ],
    )
    def test_all_are_forges_errors(self, error):
        assert isinstance(error, ForgesError)
        assert error.message == str(error)

    @pytest.mark.parametrize(
        "error",
        [
            NoForgeRegisteredError("example.com"),
            ForgeDetectionError("example.com"),
            UnsupportedForgeError("example.com", "unknown"),
        ],
    )
    def test_routing_errors(self, error):
        assert isinstance(error, RoutingError)
        assert error.domain == "example.com"

    def test_not_found_errors_are_distinct(self):
        assert not isinstance(OwnerNotFoundError("o"), RepositoryNotFoundError)
        assert not isinstance(RepositoryNotFoundError("o", "r"), OwnerNotFoundError)


class TestMessages:
    def test_http_error_carries_diagnostics(self):
        error = ForgeHTTPError(503, "https://api.github.com/repos/o/r", "unavailable")

        assert error.status_code == 503
        assert error.url == "https://api.github.com/repos/o/r"
        assert error.body == "unavailable"
        assert error.message == "forge: HTTP 503 from https://api.github.com/repos/o/r"

    def test_no_forge_registered_message(self):
        assert "no forge registered for domain" in NoForgeRegisteredError("git.example.com").message

    def test_repository_not_found_message(self):
        assert RepositoryNotFoundError("octocat", "missing").message == "repository not found: octocat/missing"
        assert RepositoryNotFoundError().message == "repository not found"

    def test_unsupported_forge_keeps_type(self):
        error = UnsupportedForgeError("git.example.com", "unknown")

        assert error.forge_type == "unknown"
        assert "unknown" in error.message
