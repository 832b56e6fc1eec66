"""GitLab forge adapter using direct REST API calls."""

import urllib.parse
from collections.abc import AsyncIterator
from typing import Any

import structlog

from forges.exceptions import ForgesError, RepositoryNotFoundError
from forges.models.domain import Repository, Tag
from forges.providers.base import RestForge, parse_timestamp
from forges.utils.connection_pool import HTTPTransport

log = structlog.get_logger(__name__)

# GitLab reports licenses by their licensee key; these are the SPDX identifiers
# for the keys GitLab detects. "other" and "no-license" have no SPDX identifier.
SPDX_BY_LICENSE_KEY = {
    "0bsd": "0BSD",
    "afl-3.0": "AFL-3.0",
    "agpl-3.0": "AGPL-3.0",
    "apache-2.0": "Apache-2.0",
    "artistic-2.0": "Artistic-2.0",
    "bsd-2-clause": "BSD-2-Clause",
    "bsd-3-clause": "BSD-3-Clause",
    "bsd-3-clause-clear": "BSD-3-Clause-Clear",
    "bsl-1.0": "BSL-1.0",
    "cc-by-4.0": "CC-BY-4.0",
    "cc-by-sa-4.0": "CC-BY-SA-4.0",
    "cc0-1.0": "CC0-1.0",
    "ecl-2.0": "ECL-2.0",
    "epl-1.0": "EPL-1.0",
    "epl-2.0": "EPL-2.0",
    "eupl-1.1": "EUPL-1.1",
    "eupl-1.2": "EUPL-1.2",
    "gpl-2.0": "GPL-2.0",
    "gpl-3.0": "GPL-3.0",
    "isc": "ISC",
    "lgpl-2.1": "LGPL-2.1",
    "lgpl-3.0": "LGPL-3.0",
    "lppl-1.3c": "LPPL-1.3c",
    "mit": "MIT",
    "mit-0": "MIT-0",
    "mpl-2.0": "MPL-2.0",
    "ms-pl": "MS-PL",
    "ms-rl": "MS-RL",
    "mulanpsl-2.0": "MulanPSL-2.0",
    "ncsa": "NCSA",
    "odbl-1.0": "ODbL-1.0",
    "ofl-1.1": "OFL-1.1",
    "osl-3.0": "OSL-3.0",
    "postgresql": "PostgreSQL",
    "unlicense": "Unlicense",
    "upl-1.0": "UPL-1.0",
    "vim": "Vim",
    "wtfpl": "WTFPL",
    "zlib": "Zlib",
}


def spdx_from_license_key(key: str | None) -> str:
    """Map a GitLab license key (e.g. 'apache-2.0') to its SPDX identifier, or ""."""
    if not key:
        return ""
    return SPDX_BY_LICENSE_KEY.get(key.lower(), "")


class GitLabRestForge(RestForge):
    """GitLab implementation using direct REST API v4 calls.

    Supports gitlab.com and self-hosted GitLab instances.

    GitLab API differences from GitHub/Gitea:
    - Repositories are "projects" and owners are "namespaces" (users or groups,
      possibly nested like 'group/subgroup')
    - Project and group paths must be URL-encoded in API calls
    - Pagination is driven by the ``X-Next-Page`` header (empty on the last page)
    - The token goes in a ``PRIVATE-TOKEN`` header
    - The license is only included when ``license=true`` is requested, and is
      reported by its lower-case key (e.g. 'apache-2.0'), mapped to SPDX
    """

    forge_name = "gitlab"

    def __init__(self, base_url: str, token: str = "", transport: HTTPTransport | None = None):
        """Initialize GitLab adapter.

        Args:
            base_url: GitLab base URL (e.g., https://gitlab.com)
            token: Personal access token with read_api scope
            transport: Shared HTTP transport
        """
        self.base_url = base_url.rstrip("/")
        super().__init__(f"{self.base_url}/api/v4", token, transport)

    def _auth_headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"PRIVATE-TOKEN": self.token}

    @staticmethod
    def _project_path(owner: str, repo: str) -> str:
        # GitLab uses the encoded path as the project id: mygroup%2Fmyrepo
        return urllib.parse.quote(f"{owner}/{repo}", safe="")

    async def fetch_repository(self, owner: str, repo: str) -> Repository:
        """Fetch project metadata via GET /projects/{owner%2Frepo}."""
        log.info("fetch_repository", forge=self.forge_name, owner=owner, repo=repo)

        response = await self._get(
            f"/projects/{self._project_path(owner, repo)}",
            params={"license": "true"},
            not_found=RepositoryNotFoundError(owner, repo),
        )
        return self._parse_repository(response.json())

    async def fetch_tags(self, owner: str, repo: str) -> list[Tag]:
        """Fetch all tags via GET /projects/{owner%2Frepo}/repository/tags."""
        log.info("fetch_tags", forge=self.forge_name, owner=owner, repo=repo)

        items = await self._collect(
            f"/projects/{self._project_path(owner, repo)}/repository/tags",
            page_size=self.default_page_size,
            not_found=RepositoryNotFoundError(owner, repo),
        )
        return [Tag(name=item["name"], commit=(item.get("commit") or {}).get("id", "")) for item in items]

    def _org_repos_path(self, owner: str) -> str:
        return f"/groups/{urllib.parse.quote(owner, safe='')}/projects"

    def _user_repos_path(self, owner: str) -> str:
        return f"/users/{urllib.parse.quote(owner, safe='')}/projects"

    async def _iter_pages(
        self,
        path: str,
        *,
        page_size: int,
        not_found: ForgesError,
        params: dict[str, Any] | None = None,
    ) -> AsyncIterator[list[dict[str, Any]]]:
        """Walk pages while ``X-Next-Page`` names a following page."""
        page = 1
        while True:
            query = {**(params or {}), "per_page": page_size, "page": page}
            response = await self._get(path, params=query, not_found=not_found)
            yield response.json()

            next_page = response.headers.get("X-Next-Page", "").strip()
            if not next_page:
                break
            page = int(next_page)

    def _parse_repository(self, data: dict[str, Any]) -> Repository:
        """Parse a GitLab project payload into Repository.

        Field mappings:
            - namespace.full_path -> owner, project path -> name, so that
              full_name matches path_with_namespace even for nested groups
            - visibility == "private" -> private
            - forked_from_project.path_with_namespace -> source_name, fork
            - last_activity_at -> updated_at (GitLab has no pushed timestamp)
            - topics, or the legacy tag_list on older servers -> topics
            - merge_requests_enabled -> pull_requests_enabled

        Args:
            data: Raw JSON dict from the GitLab API for a project.

        Returns:
            Normalized Repository.
        """
        namespace = data.get("namespace") or {}
        path_with_namespace = data.get("path_with_namespace") or ""
        ns_path, _, project_path = path_with_namespace.rpartition("/")
        license_data = data.get("license") or {}
        forked_from = data.get("forked_from_project")
        topics = data.get("topics")
        if topics is None:
            topics = data.get("tag_list") or ()

        return Repository(
            owner=namespace.get("full_path") or namespace.get("path") or ns_path,
            name=data.get("path") or project_path or data.get("name", ""),
            description=data.get("description") or "",
            html_url=data.get("web_url") or "",
            license=spdx_from_license_key(license_data.get("key")),
            default_branch=data.get("default_branch") or "",
            fork=forked_from is not None,
            archived=bool(data.get("archived")),
            private=data.get("visibility") == "private",
            source_name=(forked_from or {}).get("path_with_namespace", ""),
            stargazers_count=data.get("star_count") or 0,
            forks_count=data.get("forks_count") or 0,
            open_issues_count=data.get("open_issues_count") or 0,
            has_issues=data.get("issues_enabled", True) is not False,
            pull_requests_enabled=bool(data.get("merge_requests_enabled")),
            topics=tuple(topics),
            logo_url=data.get("avatar_url") or namespace.get("avatar_url") or "",
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("last_activity_at")),
        )
