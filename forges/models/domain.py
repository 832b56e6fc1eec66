"""
Domain models for the forges client.

These models are the normalized representation every adapter produces,
whatever the schema of the forge it talks to (GitHub, GitLab, Gitea/Forgejo,
Bitbucket).

Example:
    Building a repository snapshot by hand::

        repo = Repository(
            owner="octocat",
            name="hello-world",
            html_url="https://github.com/octocat/hello-world",
            default_branch="main",
            topics=("go", "cli"),
        )
        assert repo.full_name == "octocat/hello-world"
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from forges.enums import ArchivedFilter, ForkFilter


@dataclass(frozen=True)
class Repository:
    """Normalized snapshot of one hosted repository.

    A fresh instance is built by an adapter on every fetch; nothing ties two
    snapshots of the same repository together.

    Timestamps a forge does not report are left as None. ``license`` is an
    SPDX identifier or an empty string when unknown.
    """

    owner: str
    name: str
    description: str = ""
    homepage: str = ""
    html_url: str = ""
    language: str = ""
    license: str = ""
    default_branch: str = ""
    fork: bool = False
    archived: bool = False
    private: bool = False
    mirror_url: str = ""
    source_name: str = ""
    size: int = 0
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    subscribers_count: int = 0
    has_issues: bool = False
    pull_requests_enabled: bool = False
    topics: tuple[str, ...] = ()
    logo_url: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    pushed_at: datetime | None = None

    @property
    def full_name(self) -> str:
        """Return owner/name format."""
        return f"{self.owner}/{self.name}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dict (timestamps as ISO 8601 strings)."""
        data = asdict(self)
        data["full_name"] = self.full_name
        data["topics"] = list(self.topics)
        for key in ("created_at", "updated_at", "pushed_at"):
            value = data[key]
            data[key] = value.isoformat() if value is not None else None
        return data


@dataclass(frozen=True)
class Tag:
    """A git tag and the commit hash it points to."""

    name: str
    commit: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "commit": self.commit}


@dataclass(frozen=True)
class ListOptions:
    """Options for listing an owner's repositories.

    Both filters apply at once: a repository is kept only when it passes the
    archived policy and the fork policy.

    Attributes:
        archived: Archived repository policy
        forks: Forked repository policy
        per_page: Page size hint; 0 lets each adapter use its own default
    """

    archived: ArchivedFilter = ArchivedFilter.INCLUDE
    forks: ForkFilter = ForkFilter.INCLUDE
    per_page: int = 0
