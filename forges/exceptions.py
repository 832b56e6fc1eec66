"""Custom exception hierarchy for the forges client.

This module defines the errors raised by URL parsing, routing, detection and
the per-forge adapters. Callers can catch ``ForgesError`` to handle every
failure raised by this package with a single except clause, or catch the
specific sentinels to react to a missing repository or owner.

Exception Hierarchy:
    ForgesError (base)
    ├── ConfigurationError
    ├── InvalidRepoURLError
    ├── RepositoryNotFoundError
    ├── OwnerNotFoundError
    ├── ForgeHTTPError
    ├── MissingRepositoryURLError
    └── RoutingError
        ├── NoForgeRegisteredError
        ├── ForgeDetectionError
        └── UnsupportedForgeError

Example Usage:
    >>> from forges.exceptions import RepositoryNotFoundError
    >>> try:
    ...     repo = await client.fetch_repository("https://github.com/octocat/missing")
    ... except RepositoryNotFoundError:
    ...     repo = None
"""


class ForgesError(Exception):
    """Base exception for all forges errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(ForgesError):
    """Configuration-related errors.

    Examples:
        - Configuration file not found
        - Invalid YAML syntax
        - Unknown forge type for a self-hosted instance
    """

    pass


class InvalidRepoURLError(ForgesError):
    """A repository reference could not be parsed into domain, owner and repo.

    Attributes:
        url: The reference that failed to parse
        reason: Why it was rejected
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid repository URL {url!r}: {reason}")


class RepositoryNotFoundError(ForgesError):
    """The addressed repository does not exist or is not visible with the given token.

    Adapters raise this unwrapped so callers can match on the class alone.
    """

    def __init__(self, owner: str = "", repo: str = "") -> None:
        self.owner = owner
        self.repo = repo
        if owner and repo:
            super().__init__(f"repository not found: {owner}/{repo}")
        else:
            super().__init__("repository not found")


class OwnerNotFoundError(ForgesError):
    """Neither the organization/group nor the user listing knows the owner."""

    def __init__(self, owner: str = "") -> None:
        self.owner = owner
        super().__init__(f"owner not found: {owner}" if owner else "owner not found")


class ForgeHTTPError(ForgesError):
    """A forge API answered with a non-success status.

    Attributes:
        status_code: HTTP status returned by the forge
        url: Request URL
        body: Response body, kept for diagnostics
    """

    def __init__(self, status_code: int, url: str, body: str = "") -> None:
        self.status_code = status_code
        self.url = url
        self.body = body
        super().__init__(f"forge: HTTP {status_code} from {url}")


class MissingRepositoryURLError(ForgesError):
    """A package URL carries no repository URL."""

    def __init__(self, purl: str) -> None:
        self.purl = purl
        super().__init__(f"PURL has no repository_url qualifier: {purl}")


class RoutingError(ForgesError):
    """A domain cannot be routed to a forge adapter.

    Attributes:
        domain: The domain that could not be routed
    """

    def __init__(self, domain: str, message: str | None = None) -> None:
        self.domain = domain
        super().__init__(message or f"cannot route domain {domain!r}")


class NoForgeRegisteredError(RoutingError):
    """No adapter is registered for the domain."""

    def __init__(self, domain: str) -> None:
        super().__init__(domain, f"no forge registered for domain {domain!r}")


class ForgeDetectionError(RoutingError):
    """Probing could not classify the software running on a domain."""

    def __init__(self, domain: str) -> None:
        super().__init__(domain, f"could not detect forge type for {domain}")


class UnsupportedForgeError(RoutingError):
    """The forge type has no adapter that can be bound to the domain."""

    def __init__(self, domain: str, forge_type: str) -> None:
        self.forge_type = forge_type
        super().__init__(domain, f"unsupported forge type {forge_type!r} for {domain}")
