"""Archived/fork filtering for repository listings."""

from collections.abc import Iterable

from forges.enums import ArchivedFilter, ForkFilter
from forges.models.domain import ListOptions, Repository


def _passes(flag: bool, policy: ArchivedFilter | ForkFilter) -> bool:
    if policy == "exclude":
        return not flag
    if policy == "only":
        return flag
    return True


def filter_repositories(repos: Iterable[Repository], options: ListOptions) -> list[Repository]:
    """Keep the repositories that pass both the archived and the fork policy.

    Order of the surviving repositories is preserved. The function is pure, so
    applying it twice gives the same result as applying it once.

    Args:
        repos: Repositories to narrow
        options: Listing options carrying the two policies

    Returns:
        New list with the matching repositories
    """
    return [
        repo
        for repo in repos
        if _passes(repo.archived, options.archived) and _passes(repo.fork, options.forks)
    ]
