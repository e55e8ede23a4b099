"""Currency capability consumed by the upload services.

Signing, address derivation and fee handling are chain specific and live
outside bundlectl. Implementations are injected into ``UploadService``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from bundlectl.models.item import Item


@runtime_checkable
class Currency(Protocol):
    """Chain-specific operations needed to create and pay for items."""

    name: str

    def get_signer(self) -> Any:
        """Return the signer used to sign items."""
        ...

    async def get_fee(self, amount: Decimal, to: str | None = None) -> Decimal:
        """Estimate the network fee for a transfer."""
        ...

    async def sign(self, data: bytes) -> bytes:
        """Sign raw bytes with the wallet key."""
        ...

    async def create_tx(
        self, amount: Decimal, to: str, fee: Decimal | None = None
    ) -> dict[str, Any]:
        """Build a signed funding transaction (``{"tx_id": ..., "tx": ...}``)."""
        ...

    async def get_current_height(self) -> int:
        """Return the current chain height."""
        ...

    def owner_to_address(self, owner: bytes) -> str:
        """Derive a wallet address from a public key."""
        ...

    async def create_item(
        self,
        data: bytes,
        *,
        tags: list[dict[str, str]] | None = None,
        anchor: str | None = None,
    ) -> Item:
        """Wrap ``data`` in a signed item with the given tags and anchor."""
        ...
