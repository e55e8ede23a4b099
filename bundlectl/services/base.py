"""Base service with common helpers for bundler services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from bundlectl.core.client import BundlerClient


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, client: "BundlerClient") -> None:
        """Initialize service with a bundler client.

        Args:
            client: BundlerClient bound to the target node
        """
        self.client = client

    @staticmethod
    def _response_body(resp: httpx.Response) -> Any:
        """Return parsed JSON for JSON responses, text otherwise."""
        if resp.headers.get("content-type", "").startswith("application/json"):
            return resp.json()
        return resp.text

    def _build_path(self, *parts: Any) -> str:
        """Build API path from parts.

        Args:
            *parts: Path segments

        Returns:
            Joined path string
        """
        return "/" + "/".join(str(p).strip("/") for p in parts if p is not None and p != "")
