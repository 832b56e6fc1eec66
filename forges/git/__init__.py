"""Repository reference parsing.

Example:
    >>> from forges.git import parse_repo_url
    >>> parse_repo_url("github.com/user/repo")
    RepoURL(domain='github.com', owner='user', repo='repo')
"""

from forges.git.parser import RepoURL, parse_repo_url

__all__ = [
    "RepoURL",
    "parse_repo_url",
]
