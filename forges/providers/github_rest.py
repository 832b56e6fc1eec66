"""GitHub forge adapter using direct REST API calls."""

from collections.abc import AsyncIterator
from typing import Any

import structlog

from forges.exceptions import ForgesError, RepositoryNotFoundError
from forges.models.domain import Repository, Tag
from forges.providers.base import RestForge, normalize_license, parse_timestamp
from forges.utils.connection_pool import HTTPTransport

log = structlog.get_logger(__name__)

GITHUB_API_URL = "https://api.github.com"


class GitHubRestForge(RestForge):
    """GitHub implementation using direct REST API v3 calls.

    Works against github.com and GitHub Enterprise Server (API under
    ``{base_url}/api/v3``).

    GitHub API notes:
    - Pagination is driven by the ``Link: <...>; rel="next"`` header
    - Pull requests cannot be switched off, so they are always reported enabled
    - ``license.spdx_id`` is ``NOASSERTION`` for unrecognised licenses
    """

    forge_name = "github"

    def __init__(self, token: str = "", transport: HTTPTransport | None = None, api_url: str = GITHUB_API_URL):
        """Initialize GitHub adapter.

        Args:
            token: Personal access token or App token
            transport: Shared HTTP transport
            api_url: GitHub API base URL (for GitHub Enterprise)
        """
        super().__init__(api_url, token, transport)

    @classmethod
    def for_enterprise(cls, base_url: str, token: str = "", transport: HTTPTransport | None = None) -> "GitHubRestForge":
        """Create an adapter for a GitHub Enterprise Server at ``base_url``."""
        return cls(token=token, transport=transport, api_url=f"{base_url.rstrip('/')}/api/v3")

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            **self._auth_headers(),
        }

    async def fetch_repository(self, owner: str, repo: str) -> Repository:
        """Fetch repository metadata via GET /repos/{owner}/{repo}."""
        log.info("fetch_repository", forge=self.forge_name, owner=owner, repo=repo)

        response = await self._get(f"/repos/{owner}/{repo}", not_found=RepositoryNotFoundError(owner, repo))
        return self._parse_repository(response.json())

    async def fetch_tags(self, owner: str, repo: str) -> list[Tag]:
        """Fetch all tags via GET /repos/{owner}/{repo}/tags."""
        log.info("fetch_tags", forge=self.forge_name, owner=owner, repo=repo)

        items = await self._collect(
            f"/repos/{owner}/{repo}/tags",
            page_size=self.default_page_size,
            not_found=RepositoryNotFoundError(owner, repo),
        )
        return [Tag(name=item["name"], commit=(item.get("commit") or {}).get("sha", "")) for item in items]

    def _org_repos_path(self, owner: str) -> str:
        return f"/orgs/{owner}/repos"

    def _user_repos_path(self, owner: str) -> str:
        return f"/users/{owner}/repos"

    async def _iter_pages(
        self,
        path: str,
        *,
        page_size: int,
        not_found: ForgesError,
        params: dict[str, Any] | None = None,
    ) -> AsyncIterator[list[dict[str, Any]]]:
        """Follow ``rel="next"`` links until the last page."""
        url: str | None = path
        query: dict[str, Any] | None = {**(params or {}), "per_page": page_size}

        while url:
            response = await self._get(url, params=query, not_found=not_found)
            yield response.json()

            # The next link already carries every query parameter
            url = response.links.get("next", {}).get("url")
            query = None

    def _parse_repository(self, data: dict[str, Any]) -> Repository:
        """Parse a GitHub repository payload into Repository.

        Field mappings:
            - owner.login -> owner, owner.avatar_url -> logo_url
            - license.spdx_id -> license (NOASSERTION dropped)
            - parent.full_name -> source_name (present only on single-repo fetches)
            - watchers on the full payload are ``subscribers_count``;
              ``watchers_count`` is a legacy alias of stars and is ignored

        Args:
            data: Raw JSON dict from the GitHub API.

        Returns:
            Normalized Repository.
        """
        owner = data.get("owner") or {}
        license_data = data.get("license") or {}
        parent = data.get("parent")

        return Repository(
            owner=owner.get("login", ""),
            name=data.get("name", ""),
            description=data.get("description") or "",
            homepage=data.get("homepage") or "",
            html_url=data.get("html_url") or "",
            language=data.get("language") or "",
            license=normalize_license(license_data.get("spdx_id")),
            default_branch=data.get("default_branch") or "",
            fork=bool(data.get("fork")) or parent is not None,
            archived=bool(data.get("archived")),
            private=bool(data.get("private")),
            mirror_url=data.get("mirror_url") or "",
            source_name=(parent or {}).get("full_name", ""),
            size=data.get("size") or 0,
            stargazers_count=data.get("stargazers_count") or 0,
            forks_count=data.get("forks_count") or 0,
            open_issues_count=data.get("open_issues_count") or 0,
            subscribers_count=data.get("subscribers_count") or 0,
            has_issues=bool(data.get("has_issues")),
            pull_requests_enabled=True,
            topics=tuple(data.get("topics") or ()),
            logo_url=owner.get("avatar_url") or "",
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
            pushed_at=parse_timestamp(data.get("pushed_at")),
        )
