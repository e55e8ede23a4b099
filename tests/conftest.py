"""Pytest configuration and fixtures for bundlectl tests."""

from __future__ import annotations

import asyncio
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Any, Generator

import httpx
import pytest

from bundlectl.core.client import BundlerClient
from bundlectl.models.item import Item
from bundlectl.uploaders.common import RetryPolicy

BASE_URL = "https://bundler.test"
MB = 1_000_000


class FakeBundler:
    """In-memory bundler node served through ``httpx.MockTransport``.

    Stores chunks per item and offset, reconstructs items on finalize, and
    records every request. Statuses or transport errors can be queued for a
    given ``(method, path)`` to simulate failures.
    """

    def __init__(self, currency: str = "arweave", delay: float = 0.001) -> None:
        self.currency = currency
        self.delay = delay
        self.chunks: dict[str, dict[int, bytes]] = {}
        self.completed: set[str] = set()
        self.items: dict[str, bytes] = {}
        self.requests: list[httpx.Request] = []
        self.queued: dict[tuple[str, str], list[Any]] = {}
        self.tx_status = 201
        self.in_flight = 0
        self.max_in_flight = 0

    def fail(self, method: str, path: str, *outcomes: Any) -> None:
        """Queue statuses (int) or exceptions for the next matching requests."""
        self.queued.setdefault((method, path), []).extend(outcomes)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            return self._respond(request)
        finally:
            self.in_flight -= 1

    def _respond(self, request: httpx.Request) -> httpx.Response:
        queue = self.queued.get((request.method, request.url.path))
        if queue:
            outcome = queue.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return httpx.Response(outcome, text="injected failure")

        parts = request.url.path.strip("/").split("/")
        if parts == ["info"]:
            return httpx.Response(200, json={"version": "0.2.0", "gateway": "arweave.net"})

        if parts[0] == "tx" and request.method == "POST":
            self.items[f"tx-{len(self.items)}"] = request.content
            return httpx.Response(self.tx_status, json={"id": "direct"})

        if parts[0] == "chunks" and len(parts) == 4:
            _, _, item_id, value = parts
            if request.method == "GET":
                if item_id in self.completed:
                    return httpx.Response(201)
                return httpx.Response(200, json=sorted(self.chunks.get(item_id, {})))
            offset = int(value)
            if offset == -1:
                stored = self.chunks.get(item_id, {})
                self.items[item_id] = b"".join(stored[o] for o in sorted(stored))
                self.completed.add(item_id)
                return httpx.Response(201, json={"id": item_id})
            self.chunks.setdefault(item_id, {})[offset] = request.content
            return httpx.Response(200)

        return httpx.Response(404, text="not found")

    def chunk_posts(self, item_id: str) -> list[int]:
        """Offsets of chunk POSTs for ``item_id`` in arrival order."""
        prefix = f"/chunks/{self.currency}/{item_id}/"
        return [
            int(r.url.path[len(prefix) :])
            for r in self.requests
            if r.method == "POST" and r.url.path.startswith(prefix)
            and not r.url.path.endswith("/-1")
        ]

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)


class FakeCurrency:
    """Currency capability that "signs" by prefixing an ID."""

    name = "arweave"

    def __init__(self) -> None:
        self.created: list[dict[str, Any]] = []

    def get_signer(self) -> Any:
        return None

    async def get_fee(self, amount: Decimal, to: str | None = None) -> Decimal:
        return Decimal(0)

    async def sign(self, data: bytes) -> bytes:
        return data

    async def create_tx(self, amount: Decimal, to: str, fee: Decimal | None = None) -> dict[str, Any]:
        return {"tx_id": "tx", "tx": None}

    async def get_current_height(self) -> int:
        return 1

    def owner_to_address(self, owner: bytes) -> str:
        return owner.hex()

    async def create_item(
        self,
        data: bytes,
        *,
        tags: list[dict[str, str]] | None = None,
        anchor: str | None = None,
    ) -> Item:
        self.created.append({"data": data, "tags": tags, "anchor": anchor})
        return Item(id=f"item-{len(self.created)}", data=data)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """Retry policy without backoff delays."""
    return RetryPolicy(max_attempts=3, min_delay=0, max_delay=0)


@pytest.fixture
def bundler() -> FakeBundler:
    return FakeBundler()


@pytest.fixture
def client(bundler: FakeBundler) -> BundlerClient:
    """Client wired to the fake bundler."""
    return BundlerClient(base_url=BASE_URL, transport=httpx.MockTransport(bundler))


@pytest.fixture
def currency() -> FakeCurrency:
    return FakeCurrency()


@pytest.fixture
def sample_config_yaml() -> str:
    """Sample config YAML content."""
    return """
default_profile: test
output_format: table

profiles:
  test:
    url: https://devnet.bundlr.test
    currency: matic
    verify_ssl: false
    timeout: 30
    chunk_size: 5000000
    batch_size: 3

  production:
    url: https://node1.bundlr.test
    verify_ssl: true
    timeout: 60
"""
