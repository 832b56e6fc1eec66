"""Enumerations for forge kinds and listing filters."""

from enum import Enum


class ForgeType(str, Enum):
    """Forge software a domain runs.

    Produced by the detector and by explicit registrations; consumed to pick
    the adapter constructor for a domain.
    """

    GITHUB = "github"
    GITLAB = "gitlab"
    GITEA = "gitea"
    FORGEJO = "forgejo"
    BITBUCKET = "bitbucket"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


class ArchivedFilter(str, Enum):
    """How archived repositories are treated by listing calls."""

    INCLUDE = "include"
    EXCLUDE = "exclude"
    ONLY = "only"

    def __str__(self) -> str:
        return self.value


class ForkFilter(str, Enum):
    """How forked repositories are treated by listing calls."""

    INCLUDE = "include"
    EXCLUDE = "exclude"
    ONLY = "only"

    def __str__(self) -> str:
        return self.value
