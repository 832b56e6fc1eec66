"""Domain to forge adapter registry.

Each ``Client`` owns exactly one registry. Writes happen at construction and
when a domain is registered at runtime, so every access goes through a lock
and the registry can be shared by concurrent callers of the same Client.
"""

import threading

import structlog

from forges.enums import ForgeType
from forges.exceptions import NoForgeRegisteredError
from forges.providers.base import Forge

log = structlog.get_logger(__name__)


def normalize_domain(domain: str) -> str:
    """Lower-case a domain and drop surrounding whitespace and dots."""
    return domain.strip().strip(".").lower()


class ForgeRegistry:
    """Maps domains to adapters, API tokens and detected forge types.

    Detected types are remembered separately from adapters so re-registering
    a domain with a new token does not probe the server again.
    """

    def __init__(self) -> None:
        self._forges: dict[str, Forge] = {}
        self._tokens: dict[str, str] = {}
        self._types: dict[str, ForgeType] = {}
        self._lock = threading.Lock()

    def register(self, domain: str, forge: Forge) -> None:
        """Bind ``domain`` to ``forge``, replacing any previous adapter."""
        domain = normalize_domain(domain)
        with self._lock:
            replaced = domain in self._forges
            self._forges[domain] = forge
        log.debug("forge_registered", domain=domain, forge=type(forge).__name__, replaced=replaced)

    def setdefault(self, domain: str, forge: Forge) -> Forge:
        """Bind ``domain`` to ``forge`` unless it is already bound; return the bound adapter."""
        domain = normalize_domain(domain)
        with self._lock:
            return self._forges.setdefault(domain, forge)

    def get(self, domain: str) -> Forge:
        """Return the adapter bound to ``domain``.

        Raises:
            NoForgeRegisteredError: If the domain is not registered
        """
        domain = normalize_domain(domain)
        with self._lock:
            forge = self._forges.get(domain)
        if forge is None:
            raise NoForgeRegisteredError(domain)
        return forge

    def set_token(self, domain: str, token: str) -> None:
        with self._lock:
            self._tokens[normalize_domain(domain)] = token

    def token_for(self, domain: str) -> str:
        """Return the token stored for ``domain``, "" when there is none."""
        with self._lock:
            return self._tokens.get(normalize_domain(domain), "")

    def remember_type(self, domain: str, forge_type: ForgeType) -> None:
        with self._lock:
            self._types[normalize_domain(domain)] = forge_type

    def detected_type(self, domain: str) -> ForgeType | None:
        """Return the forge type previously detected for ``domain``, if any."""
        with self._lock:
            return self._types.get(normalize_domain(domain))

    def domains(self) -> list[str]:
        """Registered domains, sorted."""
        with self._lock:
            return sorted(self._forges)

    def __contains__(self, domain: object) -> bool:
        if not isinstance(domain, str):
            return False
        with self._lock:
            return normalize_domain(domain) in self._forges

    def __len__(self) -> int:
        with self._lock:
            return len(self._forges)
