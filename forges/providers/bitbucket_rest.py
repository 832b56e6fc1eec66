"""Bitbucket Cloud forge adapter using direct REST API calls."""

from collections.abc import AsyncIterator
from typing import Any

import structlog

from forges.exceptions import ForgesError, RepositoryNotFoundError
from forges.models.domain import Repository, Tag
from forges.providers.base import RestForge, parse_timestamp
from forges.utils.connection_pool import HTTPTransport

log = structlog.get_logger(__name__)

BITBUCKET_API_URL = "https://api.bitbucket.org/2.0"


class BitbucketRestForge(RestForge):
    """Bitbucket Cloud implementation using the 2.0 REST API.

    Bitbucket API differences from the other forges:
    - Owners are workspaces; there is no separate organization/user listing,
      so ``list_repositories`` has no fallback
    - Listings are cursor-paginated: each page carries the URL of the next one
      in its ``next`` field
    - No archived flag, no topics, no license and no star counts
    - Pull requests cannot be switched off
    """

    forge_name = "bitbucket"

    def __init__(self, token: str = "", transport: HTTPTransport | None = None, api_url: str = BITBUCKET_API_URL):
        """Initialize Bitbucket adapter.

        Args:
            token: Access token (repository, project or workspace token)
            transport: Shared HTTP transport
            api_url: API root, overridable for tests and proxies
        """
        super().__init__(api_url, token, transport)

    async def fetch_repository(self, owner: str, repo: str) -> Repository:
        """Fetch repository metadata via GET /repositories/{owner}/{repo}."""
        log.info("fetch_repository", forge=self.forge_name, owner=owner, repo=repo)

        response = await self._get(f"/repositories/{owner}/{repo}", not_found=RepositoryNotFoundError(owner, repo))
        return self._parse_repository(response.json())

    async def fetch_tags(self, owner: str, repo: str) -> list[Tag]:
        """Fetch all tags via GET /repositories/{owner}/{repo}/refs/tags."""
        log.info("fetch_tags", forge=self.forge_name, owner=owner, repo=repo)

        items = await self._collect(
            f"/repositories/{owner}/{repo}/refs/tags",
            page_size=self.default_page_size,
            not_found=RepositoryNotFoundError(owner, repo),
        )
        return [Tag(name=item["name"], commit=(item.get("target") or {}).get("hash", "")) for item in items]

    def _org_repos_path(self, owner: str) -> str:
        return f"/repositories/{owner}"

    async def _iter_pages(
        self,
        path: str,
        *,
        page_size: int,
        not_found: ForgesError,
        params: dict[str, Any] | None = None,
    ) -> AsyncIterator[list[dict[str, Any]]]:
        """Follow the ``next`` cursor until a page has none."""
        url: str | None = path
        query: dict[str, Any] | None = {**(params or {}), "pagelen": page_size}

        while url:
            response = await self._get(url, params=query, not_found=not_found)
            body = response.json()
            yield body.get("values") or []

            # The cursor URL already carries pagelen
            url = body.get("next")
            query = None

    def _parse_repository(self, data: dict[str, Any]) -> Repository:
        """Parse a Bitbucket repository payload into Repository.

        Field mappings:
            - workspace.slug (or owner.username) -> owner, slug -> name
            - website -> homepage
            - mainbranch.name -> default_branch
            - is_private -> private
            - parent.full_name -> source_name; a parent is the only fork signal,
              ``fork_policy`` describes whether forking is allowed
            - links.html.href -> html_url, links.avatar.href -> logo_url
            - created_on / updated_on -> created_at / updated_at
        """
        workspace = data.get("workspace") or {}
        owner = data.get("owner") or {}
        full_name = data.get("full_name") or ""
        links = data.get("links") or {}
        parent = data.get("parent")
        main_branch = data.get("mainbranch") or {}

        return Repository(
            owner=workspace.get("slug") or owner.get("username") or full_name.partition("/")[0],
            name=data.get("slug") or full_name.partition("/")[2] or data.get("name", ""),
            description=data.get("description") or "",
            homepage=data.get("website") or "",
            html_url=(links.get("html") or {}).get("href", ""),
            language=data.get("language") or "",
            default_branch=main_branch.get("name", ""),
            fork=parent is not None,
            private=bool(data.get("is_private")),
            source_name=(parent or {}).get("full_name", ""),
            size=data.get("size") or 0,
            has_issues=bool(data.get("has_issues")),
            pull_requests_enabled=True,
            logo_url=(links.get("avatar") or {}).get("href", ""),
            created_at=parse_timestamp(data.get("created_on")),
            updated_at=parse_timestamp(data.get("updated_on")),
        )
