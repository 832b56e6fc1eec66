"""Repository URL parsing utilities.

This module turns the repository references people paste around into the
(domain, owner, repo) triple used to route requests to a forge.

Supported formats:
    SSH:
        - git@github.com:owner/repo.git
        - deploy@gitlab.com:group/project

    HTTPS (or any other scheme):
        - https://github.com/owner/repo.git
        - https://gitlab.com/group/project/tree/main
        - http://gitea.local:3000/owner/repo

    Schemeless (https assumed):
        - github.com/owner/repo

Only the first two path segments are used, so links into a repository
(``/tree/main``, ``/-/issues``) resolve to the repository itself. Domains are
lower-cased so that registry lookups are case-insensitive.

Example:
    >>> from forges.git.parser import parse_repo_url
    >>> domain, owner, repo = parse_repo_url("git@github.com:octocat/hello-world.git")
    >>> domain, owner, repo
    ('github.com', 'octocat', 'hello-world')
"""

import re
from typing import NamedTuple
from urllib.parse import urlsplit

from forges.exceptions import InvalidRepoURLError

# user@host:path, where user is anything a login can be (git, deploy, ...).
# The scheme check keeps https://user@host/... out of this branch.
SSH_PREFIX = re.compile(r"^[\w.+-]+@")


class RepoURL(NamedTuple):
    """A parsed repository reference.

    Unpacks as ``domain, owner, repo``.
    """

    domain: str
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def base_url(self) -> str:
        """Base URL of the hosting forge (always HTTPS)."""
        return f"https://{self.domain}"

    @property
    def https_url(self) -> str:
        return f"https://{self.domain}/{self.owner}/{self.repo}"

    @property
    def ssh_url(self) -> str:
        return f"git@{self.domain}:{self.owner}/{self.repo}.git"


def parse_repo_url(url: str) -> RepoURL:
    """Parse a repository reference into domain, owner and repo.

    Args:
        url: Repository reference. Leading/trailing whitespace is ignored.

    Returns:
        RepoURL with a lower-cased domain.

    Raises:
        InvalidRepoURLError: If the reference is empty, an SSH reference has no
            colon, the host is missing, or the path lacks owner/repo.
    """
    raw = url.strip() if url else ""
    if not raw:
        raise InvalidRepoURLError(url, reason="empty URL")

    if "://" not in raw and SSH_PREFIX.match(raw):
        rest = raw[raw.index("@") + 1 :]
        host, sep, path = rest.partition(":")
        if not sep:
            raise InvalidRepoURLError(url, reason="invalid SSH URL: missing colon")
        return _split_owner_repo(url, host, path)

    if "://" not in raw:
        raw = f"https://{raw}"

    try:
        parts = urlsplit(raw)
        host = parts.hostname
    except ValueError as e:
        raise InvalidRepoURLError(url, reason=str(e)) from e

    return _split_owner_repo(url, host or "", parts.path)


def _split_owner_repo(url: str, host: str, path: str) -> RepoURL:
    """Build a RepoURL from a host and a raw path, keeping the first two segments."""
    if not host:
        raise InvalidRepoURLError(url, reason="missing host")

    path = path.removesuffix(".git").strip("/")
    segments = path.split("/")
    if len(segments) < 2 or not segments[0] or not segments[1]:
        raise InvalidRepoURLError(url, reason=f"URL path must contain owner/repo, got {path!r}")

    # A link like owner/repo.git/info/refs still names repo
    repo = segments[1].removesuffix(".git")
    return RepoURL(domain=host.lower(), owner=segments[0], repo=repo)
