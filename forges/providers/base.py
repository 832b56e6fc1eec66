"""
Abstract base classes for forge adapters.

This module defines the ``Forge`` contract that every forge backend
(GitHub, GitLab, Gitea/Forgejo, Bitbucket) fulfils, plus ``RestForge``, the
shared plumbing for adapters that talk to a REST API over ``HTTPTransport``.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

import httpx
import structlog

from forges.exceptions import ForgeHTTPError, ForgesError, OwnerNotFoundError, RepositoryNotFoundError
from forges.filters import filter_repositories
from forges.models.domain import ListOptions, Repository, Tag
from forges.utils.connection_pool import HTTPTransport

log = structlog.get_logger(__name__)

# SPDX placeholder for "license present but not identified"
NOASSERTION = "NOASSERTION"


class Forge(ABC):
    """Abstract base class for forge adapters.

    Implementations translate one forge's native API into the normalized
    ``Repository`` and ``Tag`` models. They handle provider quirks such as:
    - Different field names (``stars_count`` vs ``stargazers_count``)
    - Different pagination styles (Link headers, X-Next-Page, short pages,
      ``next`` cursors)
    - Different notions of ownership (organizations, groups, workspaces)

    All methods are async so that requests can be cancelled by the caller.
    """

    @abstractmethod
    async def fetch_repository(self, owner: str, repo: str) -> Repository:
        """Fetch normalized metadata for one repository.

        Args:
            owner: Repository owner (user, organization, group or workspace)
            repo: Repository name

        Returns:
            Repository snapshot.

        Raises:
            RepositoryNotFoundError: If the forge reports no such repository.
            ForgeHTTPError: For any other non-success status.
        """
        pass

    @abstractmethod
    async def fetch_tags(self, owner: str, repo: str) -> list[Tag]:
        """Fetch every tag of a repository, walking all pages.

        Tags come back in the order the forge returns them (usually newest
        first). Nothing is returned if any page fails.

        Raises:
            RepositoryNotFoundError: If the forge reports no such repository.
            ForgeHTTPError: For any other non-success status.
        """
        pass

    @abstractmethod
    async def list_repositories(self, owner: str, options: ListOptions | None = None) -> list[Repository]:
        """List an owner's repositories, filtered by ``options``.

        The organization/group listing is tried first; when the forge does
        not know such an organization the user listing is used instead.

        Raises:
            OwnerNotFoundError: If neither listing knows the owner.
            ForgeHTTPError: For any other non-success status.
        """
        pass


class RestForge(Forge):
    """Shared request, pagination and listing logic for REST adapters.

    Subclasses provide the authentication header, the pagination walk and the
    payload parsers; this class maps status codes onto the error taxonomy and
    implements the organization-then-user listing fallback.
    """

    #: Human-readable forge name used in log events
    forge_name = "forge"
    #: Page size used when ListOptions.per_page is not set
    default_page_size = 100
    #: Largest page size the forge honours
    max_page_size = 100

    def __init__(self, api_url: str, token: str = "", transport: HTTPTransport | None = None) -> None:
        """Initialize adapter.

        Args:
            api_url: API root, e.g. https://api.github.com or https://gitlab.com/api/v4
            token: API token; empty for unauthenticated requests
            transport: Shared HTTP transport; a private one is created if omitted
        """
        self.api_url = api_url.rstrip("/")
        self.token = token.strip() if token else ""
        self.transport = transport or HTTPTransport()

    def _auth_headers(self) -> dict[str, str]:
        """Headers carrying the API token, empty when there is none."""
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _headers(self) -> dict[str, str]:
        return self._auth_headers()

    def _url(self, path_or_url: str) -> str:
        if path_or_url.startswith(("http://", "https://")):
            return path_or_url
        return f"{self.api_url}{path_or_url}"

    async def _get(
        self,
        path_or_url: str,
        *,
        params: dict[str, Any] | None = None,
        not_found: ForgesError | None = None,
    ) -> httpx.Response:
        """GET an API resource and map failure statuses onto forge errors.

        Redirects are followed, so renamed or transferred repositories resolve
        to their new location.

        Args:
            path_or_url: Path below ``api_url`` or an absolute URL (cursor links)
            params: Query parameters
            not_found: Error raised on 404; RepositoryNotFoundError if omitted

        Raises:
            RepositoryNotFoundError: On 404 when ``not_found`` is omitted.
            ForgeHTTPError: On any other non-success status.
        """
        url = self._url(path_or_url)
        response = await self.transport.get(url, params=params, headers=self._headers(), follow_redirects=True)

        if response.status_code == 404:
            raise not_found if not_found is not None else RepositoryNotFoundError()
        if not response.is_success:
            raise ForgeHTTPError(response.status_code, str(response.request.url), response.text)
        return response

    def _page_size(self, options: ListOptions | None = None) -> int:
        if options is None or options.per_page <= 0:
            return self.default_page_size
        return min(options.per_page, self.max_page_size)

    @abstractmethod
    def _iter_pages(
        self,
        path: str,
        *,
        page_size: int,
        not_found: ForgesError,
        params: dict[str, Any] | None = None,
    ) -> AsyncIterator[list[dict[str, Any]]]:
        """Yield the items of each page of a listing, one page at a time.

        Pages are requested strictly in sequence until the forge signals there
        are no more.
        """

    async def _collect(
        self,
        path: str,
        *,
        page_size: int,
        not_found: ForgesError,
        params: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Walk every page of a listing and return all items in order."""
        items: list[dict[str, Any]] = []
        pages = 0
        async for page in self._iter_pages(path, page_size=page_size, not_found=not_found, params=params):
            items.extend(page)
            pages += 1
        log.debug("pages_collected", forge=self.forge_name, path=path, pages=pages, items=len(items))
        return items

    @abstractmethod
    def _parse_repository(self, data: dict[str, Any]) -> Repository:
        """Map one native repository payload onto Repository."""

    @abstractmethod
    def _org_repos_path(self, owner: str) -> str:
        """Path of the organization/group repository listing."""

    def _user_repos_path(self, owner: str) -> str | None:
        """Path of the user repository listing, None when owners share one namespace."""
        return None

    async def list_repositories(self, owner: str, options: ListOptions | None = None) -> list[Repository]:
        """List repositories from the org listing, falling back to the user listing."""
        options = options or ListOptions()
        log.info(
            "list_repositories",
            forge=self.forge_name,
            owner=owner,
            archived=str(options.archived),
            forks=str(options.forks),
        )
        page_size = self._page_size(options)

        try:
            items = await self._collect(
                self._org_repos_path(owner),
                page_size=page_size,
                not_found=OwnerNotFoundError(owner),
            )
        except OwnerNotFoundError:
            user_path = self._user_repos_path(owner)
            if user_path is None:
                raise
            log.debug("org_listing_not_found", forge=self.forge_name, owner=owner)
            items = await self._collect(
                user_path,
                page_size=page_size,
                not_found=OwnerNotFoundError(owner),
            )

        repos = [self._parse_repository(item) for item in items]
        return filter_repositories(repos, options)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp from a forge payload.

    Returns None for absent values and for values that do not parse, leaving
    the normalized field unset instead of failing the whole fetch.

    Note:
        A trailing 'Z' is replaced with '+00:00' for Python's fromisoformat().
    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        log.debug("timestamp_unparseable", value=value)
        return None


def normalize_license(identifier: str | None) -> str:
    """Return an SPDX identifier, or "" for missing and NOASSERTION values."""
    if not identifier or identifier.upper() == NOASSERTION:
        return ""
    return identifier
