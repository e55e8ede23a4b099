"""Upload service for single items.

Small items are sent in one request; large items, or every item when chunking
is forced, go through the resumable chunked uploader.
"""

from __future__ import annotations

import base64
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from bundlectl.core.client import OCTET_STREAM
from bundlectl.core.exceptions import (
    ConfigurationError,
    FatalUploadError,
    InsufficientFundsError,
)
from bundlectl.core.validation import (
    validate_batch_size,
    validate_chunk_size,
    validate_currency,
    validate_item_id,
)
from bundlectl.models.item import Item
from bundlectl.models.progress import UploadProgress
from bundlectl.models.results import UploadReceipt
from bundlectl.services.base import BaseService
from bundlectl.uploaders.chunked import ChunkUploadCoordinator
from bundlectl.uploaders.common import RetryPolicy, describe_response
from bundlectl.uploaders.constants import (
    CHUNKING_THRESHOLD,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHUNK_SIZE,
)

if TYPE_CHECKING:
    from bundlectl.core.client import BundlerClient
    from bundlectl.core.currency import Currency

logger = logging.getLogger(__name__)


def random_anchor() -> str:
    """32-character anchor that makes otherwise identical items unique."""
    return base64.b64encode(os.urandom(32)).decode("ascii")[:32]


class UploadService(BaseService):
    """Service for uploading items to a bundler node."""

    def __init__(
        self,
        client: "BundlerClient",
        currency: str,
        *,
        capability: "Currency | None" = None,
        force_chunking: bool = False,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        batch_size: int = DEFAULT_BATCH_SIZE,
        retry_policy: RetryPolicy | None = None,
        progress_callback: Callable[[UploadProgress], None] | None = None,
    ) -> None:
        """Initialize the upload service.

        Args:
            client: Bundler client.
            currency: Currency name used in endpoint paths (e.g. ``arweave``).
            capability: Currency implementation used to sign raw data.
            force_chunking: Send every item through the chunk endpoints.
            chunk_size: Chunk size for chunked uploads.
            batch_size: Chunk uploads in flight per item.
            retry_policy: Retry settings for chunk, presence and finalize calls.
            progress_callback: Receives chunked upload progress.
        """
        super().__init__(client)
        self.currency = validate_currency(currency)
        self.capability = capability
        self.force_chunking = force_chunking
        self.chunk_size = validate_chunk_size(chunk_size)
        self.batch_size = validate_batch_size(batch_size)
        self.coordinator = ChunkUploadCoordinator(
            client,
            self.currency,
            retry_policy=retry_policy,
            progress_callback=progress_callback,
        )

    @property
    def use_chunking(self) -> bool:
        """Whether every item is forced through the chunked uploader."""
        return self.force_chunking

    @use_chunking.setter
    def use_chunking(self, state: bool) -> None:
        if isinstance(state, bool):
            self.force_chunking = state

    def _should_chunk(self, size: int) -> bool:
        return self.force_chunking or size > CHUNKING_THRESHOLD

    # =========================================================================
    # Upload Operations
    # =========================================================================

    async def upload_item(self, item: Item) -> UploadReceipt:
        """Upload a signed item.

        Args:
            item: Signed item.

        Returns:
            Receipt carrying the item ID.

        Raises:
            InsufficientFundsError: If the bundler answers 402.
            FatalUploadError: If the bundler answers with another error status.
            ConnectionError: On transport failures of the direct request.
        """
        if self._should_chunk(item.size):
            return await self.coordinator.upload_large(
                item.id,
                item.data,
                item.size,
                chunk_size=self.chunk_size,
                batch_size=self.batch_size,
            )

        logger.debug("Uploading item %s (%d bytes) in one request", item.id, item.size)
        resp = await self.client.post(
            self._build_path("tx", self.currency),
            content=item.data,
            headers=OCTET_STREAM,
        )

        if resp.status_code == 201:
            return UploadReceipt(id=item.id, status_code=201, data={"id": item.id})
        if resp.status_code == 402:
            raise InsufficientFundsError(item_id=item.id)
        if resp.status_code >= 400:
            raise FatalUploadError(
                f"whilst uploading item: {describe_response(resp)}",
                item_id=item.id,
                status_code=resp.status_code,
            )
        return UploadReceipt(
            id=item.id, status_code=resp.status_code, data=self._response_body(resp)
        )

    async def upload(
        self,
        data: bytes,
        tags: list[dict[str, str]] | None = None,
    ) -> UploadReceipt:
        """Sign raw data as a new item and upload it.

        Raises:
            ConfigurationError: If no currency capability is configured.
        """
        if self.capability is None:
            raise ConfigurationError(
                "A currency capability is required to sign raw data",
                field="capability",
            )
        item = await self.capability.create_item(data, tags=tags, anchor=random_anchor())
        return await self.upload_item(item)

    async def upload_file(self, path: Path, item_id: str) -> UploadReceipt:
        """Upload a pre-signed item stored in a file.

        Large files are streamed chunk by chunk and never read whole.
        """
        item_id = validate_item_id(item_id)
        size = path.stat().st_size

        if self._should_chunk(size):
            with path.open("rb") as stream:
                return await self.coordinator.upload_large(
                    item_id,
                    stream,
                    size,
                    chunk_size=self.chunk_size,
                    batch_size=self.batch_size,
                )
        return await self.upload_item(Item(id=item_id, data=path.read_bytes()))

    async def chunk_status(self, item_id: str, size: int) -> tuple[bool, set[int]]:
        """Return ``(completed, stored_offsets)`` for a chunked item."""
        return await self.coordinator.get_presence(validate_item_id(item_id), size)
