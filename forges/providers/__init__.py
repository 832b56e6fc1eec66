"""Forge adapters.

This package provides one adapter per forge family, all implementing the
``Forge`` contract:

Key Components:
    - Forge: Abstract base for forge adapters
    - RestForge: Shared REST request/pagination/listing plumbing
    - GitHubRestForge: GitHub and GitHub Enterprise (REST v3)
    - GitLabRestForge: GitLab.com and self-hosted GitLab (REST v4)
    - GiteaRestForge: Gitea, Forgejo and Codeberg (REST v1)
    - BitbucketRestForge: Bitbucket Cloud (REST 2.0)
    - create_forge: Build the adapter matching a ForgeType

Example:
    >>> from forges.providers import GiteaRestForge
    >>> forge = GiteaRestForge("https://codeberg.org")
    >>> repo = await forge.fetch_repository("forgejo", "forgejo")
"""

from forges.providers.base import Forge, RestForge
from forges.providers.bitbucket_rest import BitbucketRestForge
from forges.providers.factory import create_forge
from forges.providers.gitea_rest import GiteaRestForge
from forges.providers.github_rest import GitHubRestForge
from forges.providers.gitlab_rest import GitLabRestForge

__all__ = [
    "BitbucketRestForge",
    "Forge",
    "GitHubRestForge",
    "GitLabRestForge",
    "GiteaRestForge",
    "RestForge",
    "create_forge",
]
