"""Gitea/Forgejo forge adapter using direct REST API calls."""

from collections.abc import AsyncIterator
from typing import Any

import httpx
import structlog

from forges.exceptions import ForgesError, RepositoryNotFoundError
from forges.models.domain import Repository, Tag
from forges.providers.base import RestForge, normalize_license, parse_timestamp
from forges.utils.connection_pool import HTTPTransport

log = structlog.get_logger(__name__)


class GiteaRestForge(RestForge):
    """Gitea implementation using direct REST API v1 calls.

    Forgejo and Codeberg speak the same API, so one adapter serves all three.
    """

    forge_name = "gitea"
    # Gitea caps pages at MAX_RESPONSE_ITEMS (50 by default). A larger request
    # would be truncated and mistaken for the last page.
    default_page_size = 50
    max_page_size = 50

    def __init__(self, base_url: str, token: str = "", transport: HTTPTransport | None = None):
        """Initialize Gitea adapter.

        Args:
            base_url: Gitea base URL (e.g., https://codeberg.org)
            token: API token
            transport: Shared HTTP transport
        """
        self.base_url = base_url.rstrip("/")
        super().__init__(f"{self.base_url}/api/v1", token, transport)

    def _auth_headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"token {self.token}"}

    async def fetch_repository(self, owner: str, repo: str) -> Repository:
        """Fetch repository metadata, then its topics if the payload lacks them."""
        log.info("fetch_repository", forge=self.forge_name, owner=owner, repo=repo)

        response = await self._get(f"/repos/{owner}/{repo}", not_found=RepositoryNotFoundError(owner, repo))
        data = response.json()

        if data.get("topics") is None:
            data["topics"] = await self._fetch_topics(owner, repo)

        return self._parse_repository(data)

    async def _fetch_topics(self, owner: str, repo: str) -> list[str]:
        """Get repository topics; failures leave the repository without topics."""
        try:
            response = await self._get(
                f"/repos/{owner}/{repo}/topics",
                not_found=RepositoryNotFoundError(owner, repo),
            )
            data = response.json()
        except (ForgesError, httpx.HTTPError, ValueError) as e:
            log.warning("gitea_topics_unavailable", owner=owner, repo=repo, error=str(e))
            return []

        if not isinstance(data, dict):
            log.warning("gitea_topics_unavailable", owner=owner, repo=repo, error="unexpected payload")
            return []
        topics = data.get("topics") or []
        return [topic for topic in topics if isinstance(topic, str)] if isinstance(topics, list) else []

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
        """Request numbered pages until one comes back short."""
        page = 1
        while True:
            query = {**(params or {}), "page": page, "limit": page_size}
            response = await self._get(path, params=query, not_found=not_found)
            items = response.json()
            yield items

            if len(items) < page_size:
                break
            page += 1

    def _parse_repository(self, data: dict[str, Any]) -> Repository:
        """Parse a Gitea repository payload into Repository.

        Field mappings:
            - owner.login -> owner
            - website -> homepage
            - stars_count -> stargazers_count, watchers_count -> subscribers_count
            - original_url -> mirror_url (only when mirror is true)
            - parent.full_name -> source_name
            - licenses[0] -> license (newer servers only)
            - avatar_url (the repository avatar) -> logo_url

        Note:
            Gitea reports ``size`` in KiB, same as GitHub.
        """
        owner = data.get("owner") or {}
        parent = data.get("parent")
        licenses = data.get("licenses") or []

        return Repository(
            owner=owner.get("login") or owner.get("username", ""),
            name=data.get("name", ""),
            description=data.get("description") or "",
            homepage=data.get("website") or "",
            html_url=data.get("html_url") or "",
            language=data.get("language") or "",
            license=normalize_license(licenses[0] if licenses else None),
            default_branch=data.get("default_branch") or "",
            fork=bool(data.get("fork")) or parent is not None,
            archived=bool(data.get("archived")),
            private=bool(data.get("private")),
            mirror_url=(data.get("original_url") or "") if data.get("mirror") else "",
            source_name=(parent or {}).get("full_name", ""),
            size=data.get("size") or 0,
            stargazers_count=data.get("stars_count") or 0,
            forks_count=data.get("forks_count") or 0,
            open_issues_count=data.get("open_issues_count") or 0,
            subscribers_count=data.get("watchers_count") or 0,
            has_issues=bool(data.get("has_issues")),
            pull_requests_enabled=bool(data.get("has_pull_requests")),
            topics=tuple(data.get("topics") or ()),
            logo_url=data.get("avatar_url") or "",
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
        )
