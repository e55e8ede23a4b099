"""Async HTTP client for a bundler node.

A thin layer over ``httpx.AsyncClient``: it owns the connection pool, turns
transport failures into bundlectl exceptions and hands every HTTP response
back untouched. Status interpretation and retries belong to the uploaders.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from bundlectl.core.exceptions import NetworkError, ServerUnreachableError, TimeoutError
from bundlectl.core.limits import DEFAULT_HTTP_TIMEOUT_SECONDS
from bundlectl.core.validation import validate_server_url

logger = logging.getLogger(__name__)

OCTET_STREAM = {"Content-Type": "application/octet-stream"}


@dataclass
class BundlerClient:
    """Connection to one bundler node.

    The underlying ``httpx.AsyncClient`` is opened lazily on the first
    request and released by ``aclose`` or by leaving ``async with``.

    Attributes:
        base_url: Node URL, normalized without a trailing slash.
        timeout: Default per-request timeout in seconds.
        verify_ssl: Whether TLS certificates are checked.
        transport: Optional httpx transport, used by tests to fake the node.
    """

    base_url: str
    timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    verify_ssl: bool = True
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)
    _client: httpx.AsyncClient | None = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        self.base_url = validate_server_url(self.base_url)

    @property
    def http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                verify=self.verify_ssl,
                follow_redirects=True,
                transport=self.transport,
            )
        return self._client

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    async def __aenter__(self) -> BundlerClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # =========================================================================
    # Requests
    # =========================================================================

    async def request(
        self,
        method: str,
        path: str,
        *,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Send one request and return the response whatever its status.

        Args:
            method: HTTP method.
            path: Path relative to ``base_url``.
            content: Request body.
            headers: Extra request headers.
            timeout: Override of the client's default timeout.

        Raises:
            ServerUnreachableError: If no connection could be opened.
            TimeoutError: If the node did not answer within the timeout.
            NetworkError: On any other transport failure.
        """
        limit = timeout or self.timeout
        logger.debug("%s %s (%d bytes)", method, path, len(content or b""))
        try:
            response = await self.http.request(
                method, path, content=content, headers=headers, timeout=limit
            )
        except httpx.ConnectError as e:
            raise ServerUnreachableError(self.base_url) from e
        except httpx.TimeoutException as e:
            raise TimeoutError(f"{self.base_url}{path}", limit) from e
        except httpx.TransportError as e:
            raise NetworkError(self.base_url, str(e)) from e
        logger.debug("%s %s -> %d", method, path, response.status_code)
        return response

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def ping(self) -> dict[str, Any]:
        """Probe the node's ``/info`` endpoint.

        Returns:
            ``url``, ``status`` ("ok" or "HTTP <code>") and ``latency_ms``.
        """
        started = time.monotonic()
        resp = await self.get("/info")
        return {
            "url": self.base_url,
            "status": "ok" if resp.is_success else f"HTTP {resp.status_code}",
            "latency_ms": int((time.monotonic() - started) * 1000),
        }
