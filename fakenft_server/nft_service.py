"""FakeNFT API service: typed operations over the REST endpoints."""

import logging
from typing import Optional

from . import endpoints
from .cache import ItemDetailCache
from .http_client import NetworkClient
from .models import Currency, ItemDetail, NFTCollection, Order, Profile

logger = logging.getLogger(__name__)


class NftService:
    """Typed access to orders, NFTs, profile, currencies and collections."""

    def __init__(self, client: NetworkClient, cache: Optional[ItemDetailCache] = None) -> None:
        """
        Initialize the service.

        Args:
            client: Network client used for every call
            cache: NFT detail cache for the browsing path (a fresh one if omitted)
        """
        self.client = client
        self.cache = cache if cache is not None else ItemDetailCache()

    # Cart

    async def load_order(self) -> Order:
        order = await self.client.send_typed(endpoints.order_request(), Order)
        logger.info(f"Loaded order {order.id} with {len(order.nfts)} NFTs")
        return order

    async def load_cart_item(self, nft_id: str) -> ItemDetail:
        """Fetch an NFT for the cart. Never cached, cart prices must be fresh."""
        return await self.client.send_typed(endpoints.nft_request(nft_id), ItemDetail)

    async def change_order(self, nft_ids: list[str]) -> Order:
        """Replace the cart contents and return the server's order."""
        logger.info(f"Changing order to {nft_ids}")
        return await self.client.send_typed(endpoints.change_order_request(nft_ids), Order)

    async def pay_order(self) -> Order:
        logger.info("Paying order")
        return await self.client.send_typed(endpoints.pay_order_request(), Order)

    async def load_currencies(self) -> list[Currency]:
        return await self.client.send_typed(endpoints.currencies_request(), list[Currency])

    # Browsing

    async def load_nft(self, nft_id: str) -> ItemDetail:
        """Fetch an NFT, answering from the cache when possible."""
        cached = self.cache.get(nft_id)
        if cached is not None:
            return cached

        detail = await self.client.send_typed(endpoints.nft_request(nft_id), ItemDetail)
        self.cache.put(detail)
        return detail

    async def load_collections(self) -> list[NFTCollection]:
        return await self.client.send_typed(endpoints.collections_request(), list[NFTCollection])

    async def load_collection(self, collection_id: str) -> NFTCollection:
        return await self.client.send_typed(
            endpoints.collection_request(collection_id), NFTCollection
        )

    # Profile

    async def load_profile(self) -> Profile:
        return await self.client.send_typed(endpoints.profile_request(), Profile)

    async def update_likes(self, nft_ids: list[str]) -> Profile:
        return await self.client.send_typed(endpoints.update_likes_request(nft_ids), Profile)

    async def set_liked(self, nft_id: str, liked: bool) -> Profile:
        """
        Like or unlike an NFT.

        The server only accepts the full list, so the current profile is read
        first and written back with nft_id added or removed.
        """
        profile = await self.load_profile()
        if liked == (nft_id in profile.likes):
            logger.debug(f"Like state of {nft_id} unchanged")
            return profile

        likes = [like for like in profile.likes if like != nft_id]
        if liked:
            likes.append(nft_id)

        logger.info(f"{'Liking' if liked else 'Unliking'} NFT {nft_id}")
        return await self.update_likes(likes)
