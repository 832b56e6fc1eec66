"""
Client: one entry point for repository metadata across forges.

The client resolves a repository URL to its domain, routes the call to the
adapter registered for that domain and returns normalized results.

Routing order:
    1. Explicit registrations (``register_instance``, ``register_forge``)
    2. Default public forges (github.com, gitlab.com, codeberg.org, bitbucket.org)
    3. Domains registered through detection (``register_domain``)

An unregistered domain is never probed implicitly; ``register_domain`` must be
called first. Detection runs at most once per domain for the lifetime of the
client.

Example:
    >>> async with Client(tokens={"github.com": token}) as client:
    ...     repo = await client.fetch_repository("https://github.com/octocat/hello-world")
    ...     await client.register_domain("git.example.com")
    ...     tags = await client.fetch_tags("git.example.com/team/service")
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog
from packageurl import PackageURL

from forges.detection import ForgeDetector
from forges.enums import ForgeType
from forges.git.parser import parse_repo_url
from forges.models.domain import ListOptions, Repository, Tag
from forges.providers.base import Forge
from forges.providers.bitbucket_rest import BITBUCKET_API_URL
from forges.providers.factory import create_forge
from forges.purl import repository_url_from_purl
from forges.registry import ForgeRegistry, normalize_domain
from forges.utils.connection_pool import HTTPTransport

if TYPE_CHECKING:
    from forges.config.settings import ForgesSettings

log = structlog.get_logger(__name__)

#: Public forges every client knows without configuration
DEFAULT_FORGES: tuple[tuple[str, ForgeType], ...] = (
    ("github.com", ForgeType.GITHUB),
    ("gitlab.com", ForgeType.GITLAB),
    ("codeberg.org", ForgeType.FORGEJO),
    ("bitbucket.org", ForgeType.BITBUCKET),
)


class Client:
    """Routes repository requests to the forge adapter for each domain.

    All adapters and the detector share one ``HTTPTransport``. The registry
    belongs to this instance alone.
    """

    def __init__(
        self,
        tokens: dict[str, str] | None = None,
        *,
        transport: HTTPTransport | None = None,
        detector: ForgeDetector | None = None,
        bitbucket_api_url: str = BITBUCKET_API_URL,
    ) -> None:
        """Initialize client and register the default forges.

        Args:
            tokens: API tokens keyed by domain, applied to default forges and
                to domains registered later without their own token
            transport: Shared HTTP transport; a private one is created if omitted
            detector: Forge detector used by ``register_domain``
            bitbucket_api_url: API root used for Bitbucket Cloud
        """
        self.transport = transport or HTTPTransport()
        self.detector = detector or ForgeDetector(self.transport)
        self.bitbucket_api_url = bitbucket_api_url
        self.registry = ForgeRegistry()
        self._detect_locks: dict[str, asyncio.Lock] = {}

        for domain, token in (tokens or {}).items():
            self.registry.set_token(domain, token)

        for domain, forge_type in DEFAULT_FORGES:
            self.registry.setdefault(domain, self._build(domain, forge_type, f"https://{domain}"))

    @classmethod
    def from_settings(cls, settings: ForgesSettings, transport: HTTPTransport | None = None) -> Client:
        """Build a client from loaded settings, registering configured instances."""
        if transport is None:
            transport = HTTPTransport(timeout=settings.timeout, user_agent=settings.user_agent)

        client = cls(
            tokens=settings.token_map(),
            transport=transport,
            bitbucket_api_url=settings.bitbucket_api_url,
        )
        for instance in settings.instances:
            client.register_instance(
                instance.domain,
                instance.forge_type,
                token=instance.token.get_secret_value() if instance.token is not None else None,
                base_url=instance.effective_base_url,
            )
        return client

    def _build(self, domain: str, forge_type: ForgeType | str, base_url: str, token: str | None = None) -> Forge:
        return create_forge(
            forge_type,
            base_url,
            token=self.registry.token_for(domain) if token is None else token,
            transport=self.transport,
            bitbucket_api_url=self.bitbucket_api_url,
        )

    def register_instance(
        self,
        domain: str,
        forge_type: ForgeType | str,
        token: str | None = None,
        base_url: str | None = None,
    ) -> Forge:
        """Register a self-hosted forge of a known type, replacing any previous adapter.

        Args:
            domain: Domain repository URLs use, e.g. git.example.com
            forge_type: Forge software the instance runs
            token: API token; the client-wide token for the domain if omitted
            base_url: Web root; defaults to https://{domain}

        Raises:
            UnsupportedForgeError: If the type has no adapter
        """
        domain = normalize_domain(domain)
        forge = self._build(domain, forge_type, base_url or f"https://{domain}", token)

        # The token is kept only once an adapter exists for the domain
        if token is not None:
            self.registry.set_token(domain, token)
        self.registry.register(domain, forge)
        log.info("forge_instance_registered", domain=domain, forge_type=str(forge_type))
        return forge

    def register_forge(self, domain: str, forge: Forge) -> None:
        """Register a ready-made adapter for ``domain``."""
        self.registry.register(domain, forge)

    async def register_domain(self, domain: str, token: str | None = None) -> ForgeType:
        """Detect the forge behind ``domain`` and register a matching adapter.

        Detection is skipped when the domain was detected before; the adapter
        is still rebuilt so a new token takes effect.

        Args:
            domain: Domain to probe
            token: API token for the domain; the client-wide token if omitted

        Returns:
            The detected forge type

        Raises:
            ForgeDetectionError: If the forge cannot be identified
            UnsupportedForgeError: If the detected type has no adapter
        """
        domain = normalize_domain(domain)
        lock = self._detect_locks.setdefault(domain, asyncio.Lock())

        async with lock:
            forge_type = self.registry.detected_type(domain)
            if forge_type is None:
                forge_type = await self.detector.detect(domain)
                self.registry.remember_type(domain, forge_type)
            else:
                log.debug("forge_type_cached", domain=domain, forge_type=str(forge_type))

            forge = self._build(domain, forge_type, f"https://{domain}", token)
            if token is not None:
                self.registry.set_token(domain, token)
            self.registry.register(domain, forge)

        log.info("domain_registered", domain=domain, forge_type=str(forge_type))
        return forge_type

    def forge_for(self, domain: str) -> Forge:
        """Return the adapter registered for ``domain``.

        Raises:
            NoForgeRegisteredError: If the domain is not registered
        """
        return self.registry.get(domain)

    async def fetch_repository(self, repo_url: str) -> Repository:
        """Fetch normalized metadata for the repository at ``repo_url``.

        Raises:
            InvalidRepoURLError: If the URL cannot be parsed
            NoForgeRegisteredError: If no adapter serves the URL's domain
            RepositoryNotFoundError: If the repository does not exist
        """
        parsed = parse_repo_url(repo_url)
        forge = self.forge_for(parsed.domain)
        return await forge.fetch_repository(parsed.owner, parsed.repo)

    async def fetch_tags(self, repo_url: str) -> list[Tag]:
        """Fetch every tag of the repository at ``repo_url``."""
        parsed = parse_repo_url(repo_url)
        forge = self.forge_for(parsed.domain)
        return await forge.fetch_tags(parsed.owner, parsed.repo)

    async def list_repositories(
        self, domain: str, owner: str, options: ListOptions | None = None
    ) -> list[Repository]:
        """List repositories of ``owner`` on ``domain``, filtered by ``options``.

        Raises:
            NoForgeRegisteredError: If the domain is not registered
            OwnerNotFoundError: If the forge knows no such owner
        """
        forge = self.forge_for(domain)
        return await forge.list_repositories(owner, options or ListOptions())

    async def fetch_repository_from_purl(self, purl: PackageURL | str) -> Repository:
        """Fetch the repository named by a package URL's repository_url qualifier.

        Raises:
            MissingRepositoryURLError: If the package URL has no repository URL
        """
        return await self.fetch_repository(repository_url_from_purl(purl))

    async def fetch_tags_from_purl(self, purl: PackageURL | str) -> list[Tag]:
        """Fetch the tags of the repository named by a package URL."""
        return await self.fetch_tags(repository_url_from_purl(purl))

    async def aclose(self) -> None:
        """Release the shared HTTP transport."""
        await self.transport.close()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
