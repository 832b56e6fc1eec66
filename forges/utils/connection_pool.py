"""
HTTP transport shared by forge adapters and the detector.

One pooled ``httpx.AsyncClient`` serves every registered domain; requests carry
absolute URLs, and HTTP/2 lets calls to the same forge share one connection.
"""

import asyncio
from typing import Any

import httpx
import structlog

log = structlog.get_logger(__name__)

DEFAULT_USER_AGENT = "forges-python"
KEEPALIVE_EXPIRY = 30.0


class HTTPTransport:
    """Lazily opened, pooled async HTTP transport.

    The transport holds no per-request state, so concurrent calls from
    several adapters may share it. Tests inject an ``httpx.MockTransport``
    through ``transport``; HTTP/2 is only negotiated for real network I/O.
    """

    def __init__(
        self,
        max_connections: int = 10,
        max_keepalive_connections: int = 5,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize transport settings; no connection is made yet.

        Args:
            max_connections: Upper bound on open connections
            max_keepalive_connections: Idle connections kept for reuse
            timeout: Per-request timeout in seconds
            headers: Extra headers sent with every request
            user_agent: User-Agent header value
            transport: Low-level httpx transport override
        """
        self.max_connections = max_connections
        self.max_keepalive_connections = max_keepalive_connections
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent, **(headers or {})}
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            limits=httpx.Limits(
                max_connections=self.max_connections,
                max_keepalive_connections=self.max_keepalive_connections,
                keepalive_expiry=KEEPALIVE_EXPIRY,
            ),
            timeout=httpx.Timeout(self.timeout),
            headers=self.headers,
            http2=self._transport is None,
            transport=self._transport,
        )

    async def initialize(self) -> None:
        """Open the underlying client if it is not open yet."""
        async with self._lock:
            if self._client is not None:
                return
            self._client = self._create_client()
            log.info("http_transport_opened", max_connections=self.max_connections, timeout=self.timeout)

    async def close(self) -> None:
        """Close the underlying client and release pooled connections."""
        async with self._lock:
            client, self._client = self._client, None
            if client is not None:
                await client.aclose()
                log.info("http_transport_closed")

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Send a GET request.

        Args:
            url: Absolute request URL
            **kwargs: Passed to ``httpx.AsyncClient.get`` (params, headers,
                follow_redirects, ...)
        """
        client = self._client
        if client is None:
            await self.initialize()
            client = self._client
        assert client is not None

        log.debug("http_get", url=url, params=kwargs.get("params"))
        return await client.get(url, **kwargs)

    async def __aenter__(self) -> "HTTPTransport":
        await self.initialize()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
