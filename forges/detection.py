"""Forge software detection for unknown domains.

Detection runs in two stages and stops at the first classification:

1. Header probe: one GET to the site root. Forges stamp their responses with
   identifying headers, checked in this order:
   ``X-Forgejo-Version``, ``X-Gitea-Version``, ``X-Gitlab-Meta``,
   ``X-GitHub-Request-Id``. A network failure here is tolerated.
2. API probe, for servers whose proxy strips those headers:
   ``/api/v1/version`` (Gitea, or Forgejo when the version mentions it),
   ``/api/v4/version`` (GitLab), ``/api/v3/meta`` (GitHub Enterprise).
   A probe matches only on HTTP 200.

Forgejo is checked before Gitea because Forgejo also sends the Gitea header.

Example:
    >>> detector = ForgeDetector()
    >>> await detector.detect("codeberg.org")
    <ForgeType.FORGEJO: 'forgejo'>
"""

import httpx
import structlog

from forges.enums import ForgeType
from forges.exceptions import ForgeDetectionError
from forges.utils.connection_pool import HTTPTransport

log = structlog.get_logger(__name__)

HEADER_SIGNATURES: tuple[tuple[str, ForgeType], ...] = (
    ("X-Forgejo-Version", ForgeType.FORGEJO),
    ("X-Gitea-Version", ForgeType.GITEA),
    ("X-Gitlab-Meta", ForgeType.GITLAB),
    ("X-GitHub-Request-Id", ForgeType.GITHUB),
)


class ForgeDetector:
    """Classifies the forge software behind a domain by probing it over HTTP.

    No authentication is sent and nothing is retried.
    """

    def __init__(self, transport: HTTPTransport | None = None) -> None:
        """Initialize detector.

        Args:
            transport: Shared HTTP transport; a private one is created if omitted
        """
        self.transport = transport or HTTPTransport()

    async def detect(self, domain: str) -> ForgeType:
        """Detect the forge type of ``domain``.

        Args:
            domain: Host name, e.g. git.example.com

        Returns:
            Detected forge type (never UNKNOWN)

        Raises:
            ForgeDetectionError: If the domain is not a valid host, or neither
                headers nor API endpoints identify it
        """
        base_url = f"https://{domain}"
        log.info("detect_forge_type", domain=domain)

        try:
            httpx.URL(base_url)
        except httpx.InvalidURL as e:
            log.warning("invalid_detection_domain", domain=domain, error=str(e))
            raise ForgeDetectionError(domain) from e

        try:
            forge_type = await self.detect_from_headers(base_url)
        except httpx.HTTPError as e:
            log.debug("header_probe_failed", domain=domain, error=str(e))
            forge_type = ForgeType.UNKNOWN

        if forge_type == ForgeType.UNKNOWN:
            try:
                forge_type = await self.detect_from_api(base_url)
            except ForgeDetectionError:
                raise ForgeDetectionError(domain) from None

        log.info("forge_type_detected", domain=domain, forge_type=str(forge_type))
        return forge_type

    async def detect_from_headers(self, base_url: str) -> ForgeType:
        """Classify by response headers of ``GET {base_url}/``.

        Returns:
            Forge type, or UNKNOWN when no identifying header is present

        Raises:
            httpx.HTTPError: If the request itself fails
        """
        response = await self.transport.get(f"{base_url}/", follow_redirects=True)

        for header, forge_type in HEADER_SIGNATURES:
            if response.headers.get(header):
                log.debug("forge_header_found", base_url=base_url, header=header)
                return forge_type
        return ForgeType.UNKNOWN

    async def detect_from_api(self, base_url: str) -> ForgeType:
        """Classify by probing version/meta API endpoints in a fixed order.

        Raises:
            ForgeDetectionError: If no probe answers with HTTP 200
        """
        forge_type = await self._probe_gitea(base_url)
        if forge_type is not None:
            return forge_type

        if await self._probe(f"{base_url}/api/v4/version"):
            return ForgeType.GITLAB

        if await self._probe(f"{base_url}/api/v3/meta"):
            return ForgeType.GITHUB

        raise ForgeDetectionError(base_url.split("://", 1)[-1])

    async def _probe_gitea(self, base_url: str) -> ForgeType | None:
        """Probe /api/v1/version; Forgejo reports versions like '7.0.0+gitea-1.21'."""
        url = f"{base_url}/api/v1/version"
        try:
            response = await self.transport.get(url)
        except httpx.HTTPError as e:
            log.debug("api_probe_failed", url=url, error=str(e))
            return None

        if response.status_code != 200:
            return None

        try:
            version = response.json().get("version")
        except (ValueError, AttributeError):
            return None
        if not isinstance(version, str):
            return None

        if "forgejo" in version.lower():
            return ForgeType.FORGEJO
        return ForgeType.GITEA

    async def _probe(self, url: str) -> bool:
        """Return True if ``url`` answers with HTTP 200."""
        try:
            response = await self.transport.get(url)
        except httpx.HTTPError as e:
            log.debug("api_probe_failed", url=url, error=str(e))
            return False
        return response.status_code == 200


async def detect_forge_type(domain: str, transport: HTTPTransport | None = None) -> ForgeType:
    """Detect the forge type of ``domain`` with a one-off detector."""
    return await ForgeDetector(transport).detect(domain)
