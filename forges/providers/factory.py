"""Factory for creating forge adapters from a forge type."""

import structlog

from forges.enums import ForgeType
from forges.exceptions import UnsupportedForgeError
from forges.providers.base import Forge
from forges.providers.bitbucket_rest import BITBUCKET_API_URL, BitbucketRestForge
from forges.providers.gitea_rest import GiteaRestForge
from forges.providers.github_rest import GITHUB_API_URL, GitHubRestForge
from forges.providers.gitlab_rest import GitLabRestForge
from forges.utils.connection_pool import HTTPTransport

log = structlog.get_logger(__name__)


def create_forge(
    forge_type: ForgeType | str,
    base_url: str,
    token: str = "",
    transport: HTTPTransport | None = None,
    bitbucket_api_url: str = BITBUCKET_API_URL,
) -> Forge:
    """Create the adapter matching a forge type.

    Args:
        forge_type: Kind of forge software
        base_url: Web root of the instance, e.g. https://git.example.com
        token: API token; empty for unauthenticated access
        transport: Shared HTTP transport
        bitbucket_api_url: API root used for Bitbucket Cloud

    Returns:
        Forge adapter bound to ``base_url``

    Raises:
        UnsupportedForgeError: If the type has no adapter (e.g. unknown)

    Example:
        >>> forge = create_forge(ForgeType.FORGEJO, "https://codeberg.org")
        >>> isinstance(forge, GiteaRestForge)
        True
    """
    base_url = base_url.rstrip("/")
    try:
        forge_type = ForgeType(forge_type)
    except ValueError:
        forge_type = ForgeType.UNKNOWN

    log.debug("creating_forge", forge_type=str(forge_type), base_url=base_url)

    if forge_type == ForgeType.GITHUB:
        if base_url in ("https://github.com", "https://www.github.com"):
            return GitHubRestForge(token=token, transport=transport, api_url=GITHUB_API_URL)
        return GitHubRestForge.for_enterprise(base_url, token=token, transport=transport)

    elif forge_type == ForgeType.GITLAB:
        return GitLabRestForge(base_url, token=token, transport=transport)

    elif forge_type in (ForgeType.GITEA, ForgeType.FORGEJO):
        return GiteaRestForge(base_url, token=token, transport=transport)

    elif forge_type == ForgeType.BITBUCKET:
        return BitbucketRestForge(token=token, transport=transport, api_url=bitbucket_api_url)

    else:
        domain = base_url.split("://", 1)[-1]
        raise UnsupportedForgeError(domain, str(forge_type))
