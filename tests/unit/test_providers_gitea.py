"""Tests for forges/providers/gitea_rest.py - Gitea/Forgejo REST adapter.

Covers field mapping, the secondary topics request and its failure handling,
short-page pagination and the org/user listing fallback.
"""

import httpx
import pytest

from forges.enums import ArchivedFilter
from forges.exceptions import OwnerNotFoundError, RepositoryNotFoundError
from forges.models.domain import ListOptions
from forges.providers.gitea_rest import GiteaRestForge

BASE_URL = "https://codeberg.org"

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def repo_payload() -> dict:
    """Repository payload as returned by GET /api/v1/repos/{owner}/{repo}."""
    return {
        "name": "forgejo",
        "full_name": "forgejo/forgejo",
        "owner": {"login": "forgejo"},
        "description": "Beyond coding. We forge.",
        "website": "https://forgejo.org",
        "html_url": "https://codeberg.org/forgejo/forgejo",
        "language": "Go",
        "licenses": ["GPL-3.0-or-later"],
        "default_branch": "forgejo",
        "fork": False,
        "archived": False,
        "private": False,
        "mirror": True,
        "original_url": "https://github.com/go-gitea/gitea",
        "size": 512000,
        "stars_count": 2000,
        "forks_count": 400,
        "open_issues_count": 900,
        "watchers_count": 75,
        "has_issues": True,
        "has_pull_requests": True,
        "avatar_url": "https://codeberg.org/repo-avatars/forgejo.png",
        "created_at": "2022-11-20T10:00:00+01:00",
        "updated_at": "2024-06-01T08:00:00+02:00",
    }


class TestFetchRepository:
    """Tests for GiteaRestForge.fetch_repository."""

    @pytest.mark.asyncio
    async def test_maps_fields_and_fetches_topics(self, mock_transport, repo_payload):
        """Topics missing from the payload are read from /topics."""
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            if request.url.path.endswith("/topics"):
                return httpx.Response(200, json={"topics": ["git", "forge"]})
            return httpx.Response(200, json=repo_payload)

        forge = GiteaRestForge(BASE_URL, transport=mock_transport(handler))
        repo = await forge.fetch_repository("forgejo", "forgejo")

        assert paths == ["/api/v1/repos/forgejo/forgejo", "/api/v1/repos/forgejo/forgejo/topics"]
        assert repo.full_name == "forgejo/forgejo"
        assert repo.homepage == "https://forgejo.org"
        assert repo.license == "GPL-3.0-or-later"
        assert repo.mirror_url == "https://github.com/go-gitea/gitea"
        assert repo.stargazers_count == 2000
        assert repo.subscribers_count == 75
        assert repo.pull_requests_enabled is True
        assert repo.topics == ("git", "forge")
        assert repo.logo_url == "https://codeberg.org/repo-avatars/forgejo.png"
        assert repo.created_at is not None and repo.created_at.utcoffset() is not None

    @pytest.mark.asyncio
    async def test_topics_in_payload_skip_secondary_call(self, mock_transport, repo_payload):
        repo_payload["topics"] = ["inline"]
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json=repo_payload)

        forge = GiteaRestForge(BASE_URL, transport=mock_transport(handler))
        repo = await forge.fetch_repository("forgejo", "forgejo")

        assert repo.topics == ("inline",)
        assert len(paths) == 1

    @pytest.mark.asyncio
    async def test_topics_failure_is_not_fatal(self, mock_transport, repo_payload):
        """A failing topics request still returns the repository."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/topics"):
                return httpx.Response(500, text="internal error")
            return httpx.Response(200, json=repo_payload)

        forge = GiteaRestForge(BASE_URL, transport=mock_transport(handler))
        repo = await forge.fetch_repository("forgejo", "forgejo")

        assert repo.name == "forgejo"
        assert repo.topics == ()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [None, ["go"], {"topics": "go"}])
    async def test_topics_unexpected_body_is_not_fatal(self, mock_transport, repo_payload, body):
        """A topics response that is not an object with a list leaves topics empty."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/topics"):
                return httpx.Response(200, json=body)
            return httpx.Response(200, json=repo_payload)

        forge = GiteaRestForge(BASE_URL, transport=mock_transport(handler))
        repo = await forge.fetch_repository("forgejo", "forgejo")

        assert repo.name == "forgejo"
        assert repo.topics == ()

    @pytest.mark.asyncio
    async def test_topics_network_error_is_not_fatal(self, mock_transport, repo_payload):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/topics"):
                raise httpx.ConnectError("connection reset", request=request)
            return httpx.Response(200, json=repo_payload)

        forge = GiteaRestForge(BASE_URL, transport=mock_transport(handler))
        repo = await forge.fetch_repository("forgejo", "forgejo")

        assert repo.topics == ()

    @pytest.mark.asyncio
    async def test_mirror_url_only_for_mirrors(self, mock_transport, repo_payload):
        repo_payload.update(mirror=False, topics=[])
        forge = GiteaRestForge(BASE_URL, transport=mock_transport(lambda r: httpx.Response(200, json=repo_payload)))

        repo = await forge.fetch_repository("forgejo", "forgejo")

        assert repo.mirror_url == ""

    @pytest.mark.asyncio
    async def test_fork_from_parent(self, mock_transport, repo_payload):
        repo_payload.update(fork=False, parent={"full_name": "gitea/gitea"}, topics=[])
        forge = GiteaRestForge(BASE_URL, transport=mock_transport(lambda r: httpx.Response(200, json=repo_payload)))

        repo = await forge.fetch_repository("forgejo", "forgejo")

        assert repo.fork is True
        assert repo.source_name == "gitea/gitea"

    @pytest.mark.asyncio
    async def test_token_header(self, mock_transport, repo_payload):
        repo_payload["topics"] = []
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=repo_payload)

        forge = GiteaRestForge(BASE_URL, token="abc123", transport=mock_transport(handler))
        await forge.fetch_repository("forgejo", "forgejo")

        assert seen[0].headers["Authorization"] == "token abc123"

    @pytest.mark.asyncio
    async def test_not_found(self, mock_transport):
        forge = GiteaRestForge(BASE_URL, transport=mock_transport(lambda r: httpx.Response(404)))

        with pytest.raises(RepositoryNotFoundError):
            await forge.fetch_repository("nobody", "nothing")


class TestFetchTags:
    """Tests for GiteaRestForge.fetch_tags."""

    @pytest.mark.asyncio
    async def test_walks_until_short_page(self, mock_transport):
        """A full page of 50 is followed by another request; a short page ends it."""
        full_page = [{"name": f"v1.{i}", "commit": {"sha": f"sha{i}"}} for i in range(50)]
        last_page = [{"name": "v0.1", "commit": {"sha": "first"}}]
        requested: list[tuple[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            params = request.url.params
            requested.append((params["page"], params["limit"]))
            return httpx.Response(200, json=full_page if params["page"] == "1" else last_page)

        forge = GiteaRestForge(BASE_URL, transport=mock_transport(handler))
        tags = await forge.fetch_tags("forgejo", "forgejo")

        assert len(tags) == 51
        assert tags[0].name == "v1.0"
        assert tags[-1].commit == "first"
        assert requested == [("1", "50"), ("2", "50")]

    @pytest.mark.asyncio
    async def test_empty_repository(self, mock_transport):
        forge = GiteaRestForge(BASE_URL, transport=mock_transport(lambda r: httpx.Response(200, json=[])))

        assert await forge.fetch_tags("o", "r") == []


class TestListRepositories:
    """Tests for GiteaRestForge.list_repositories."""

    @pytest.mark.asyncio
    async def test_user_fallback_and_filter(self, mock_transport):
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            if request.url.path.startswith("/api/v1/orgs/"):
                return httpx.Response(404)
            return httpx.Response(
                200,
                json=[
                    {"name": "live", "owner": {"login": "alice"}},
                    {"name": "attic", "owner": {"login": "alice"}, "archived": True},
                ],
            )

        forge = GiteaRestForge(BASE_URL, transport=mock_transport(handler))
        repos = await forge.list_repositories("alice", ListOptions(archived=ArchivedFilter.ONLY))

        assert paths == ["/api/v1/orgs/alice/repos", "/api/v1/users/alice/repos"]
        assert [r.full_name for r in repos] == ["alice/attic"]

    @pytest.mark.asyncio
    async def test_listing_does_not_fetch_topics(self, mock_transport):
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json=[{"name": "a", "owner": {"login": "org"}}])

        forge = GiteaRestForge(BASE_URL, transport=mock_transport(handler))
        await forge.list_repositories("org")

        assert paths == ["/api/v1/orgs/org/repos"]

    @pytest.mark.asyncio
    async def test_owner_not_found(self, mock_transport):
        forge = GiteaRestForge(BASE_URL, transport=mock_transport(lambda r: httpx.Response(404)))

        with pytest.raises(OwnerNotFoundError):
            await forge.list_repositories("ghost")
