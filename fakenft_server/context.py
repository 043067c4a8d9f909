"""Wiring of the client, service and flows shared by the servers."""

import logging
from typing import Optional

import httpx

from .cache import ItemDetailCache
from .cart import CartStateMachine
from .catalog import Catalog
from .checkout import CheckoutFlow
from .config import Settings
from .http_client import NetworkClient
from .nft_service import NftService
from .preferences import JsonPreferenceStore, PreferenceStore
from .removal import DeleteConfirmationFlow

logger = logging.getLogger(__name__)


class AppContext:
    """Everything a server needs, built once at startup."""

    def __init__(
        self,
        settings: Settings,
        preferences: Optional[PreferenceStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self.preferences = preferences if preferences is not None else JsonPreferenceStore(
            settings.preferences_file
        )
        self.client = NetworkClient(settings, transport=transport)
        self.service = NftService(self.client, ItemDetailCache())
        self.cart = CartStateMachine(self.service, self.preferences)
        self.removal = DeleteConfirmationFlow(self.cart)
        self.catalog = Catalog(self.service, self.preferences)
        self.checkout = CheckoutFlow(self.service, self.cart)

        if not settings.token:
            logger.warning("FAKENFT_TOKEN is not set, API calls will be rejected")

    def new_checkout(self) -> CheckoutFlow:
        """Start a new checkout session (currencies are fetched again)."""
        self.checkout = CheckoutFlow(self.service, self.cart)
        return self.checkout

    async def ensure_cart_loaded(self) -> None:
        if self.cart.generation == 0:
            await self.cart.load_cart()

    async def close(self) -> None:
        self.removal.close()
        await self.client.close()
