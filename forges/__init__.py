"""Repository metadata from any git forge through one client.

Key Components:
    - Client: Routes repository URLs to the adapter registered for their domain
    - Repository, Tag, ListOptions: Normalized models
    - ForgeType, ArchivedFilter, ForkFilter: Enumerations
    - parse_repo_url: Split a repository URL into domain, owner and repo
    - ForgeDetector: Identify the forge software behind a domain

Example:
    >>> from forges import Client
    >>> async with Client() as client:
    ...     repo = await client.fetch_repository("https://codeberg.org/forgejo/forgejo")
    ...     print(repo.full_name, repo.license)
"""

from forges.client import Client
from forges.detection import ForgeDetector, detect_forge_type
from forges.enums import ArchivedFilter, ForgeType, ForkFilter
from forges.exceptions import (
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
from forges.filters import filter_repositories
from forges.git.parser import RepoURL, parse_repo_url
from forges.models.domain import ListOptions, Repository, Tag
from forges.providers.base import Forge
from forges.purl import repository_url_from_purl

__version__ = "0.1.0"

__all__ = [
    "ArchivedFilter",
    "Client",
    "Forge",
    "ForgeDetectionError",
    "ForgeDetector",
    "ForgeHTTPError",
    "ForgeType",
    "ForgesError",
    "ForkFilter",
    "InvalidRepoURLError",
    "ListOptions",
    "MissingRepositoryURLError",
    "NoForgeRegisteredError",
    "OwnerNotFoundError",
    "RepoURL",
    "Repository",
    "RepositoryNotFoundError",
    "RoutingError",
    "Tag",
    "UnsupportedForgeError",
    "detect_forge_type",
    "filter_repositories",
    "parse_repo_url",
    "repository_url_from_purl",
]
