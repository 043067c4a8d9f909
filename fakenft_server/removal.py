"""Delete-confirmation flow."""

import logging
from typing import Optional

from .cart import CartStateMachine
from .events import CartEvent, ConfirmDelete

logger = logging.getLogger(__name__)


class NoPendingRemoval(Exception):
    """confirm() was called without an outstanding confirmation request."""


class DeleteConfirmationFlow:
    """Holds the NFT awaiting removal confirmation and performs the removal."""

    def __init__(self, cart: CartStateMachine) -> None:
        self.cart = cart
        self.pending: Optional[ConfirmDelete] = None
        self._unsubscribe = cart.subscribe(self._on_event)

    def _on_event(self, event: CartEvent) -> None:
        if isinstance(event, ConfirmDelete):
            self.pending = event

    def request(self, nft_id: str) -> Optional[ConfirmDelete]:
        """Ask the cart for a confirmation of nft_id; None when it is not loaded."""
        return self.cart.request_remove(nft_id)

    async def confirm(self) -> bool:
        if self.pending is None:
            raise NoPendingRemoval("No removal is waiting for confirmation")

        nft_id = self.pending.id
        self.pending = None
        return await self.cart.confirm_remove(nft_id)

    def cancel(self) -> None:
        if self.pending is not None:
            logger.info(f"Removal of NFT {self.pending.id} cancelled")
        self.pending = None

    def close(self) -> None:
        self._unsubscribe()
