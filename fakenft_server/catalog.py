"""NFT collection catalog."""

import asyncio
import logging
from enum import Enum

from .models import CatalogCategory, CollectionNft, NFTCollection
from .nft_service import NftService
from .preferences import PreferenceStore

logger = logging.getLogger(__name__)

CATALOG_SORT_KEY = "CatalogSortType"


class CatalogSort(str, Enum):
    BY_NAME = "byName"
    BY_COUNT = "byCount"
    NONE = "none"


class Catalog:
    """Collection listing with a persisted sort order."""

    def __init__(self, service: NftService, preferences: PreferenceStore) -> None:
        self.service = service
        self.preferences = preferences
        self.categories: list[CatalogCategory] = []

    @property
    def sort_type(self) -> CatalogSort:
        try:
            return CatalogSort(self.preferences.get(CATALOG_SORT_KEY) or CatalogSort.NONE)
        except ValueError:
            return CatalogSort.NONE

    async def load(self) -> list[CatalogCategory]:
        """Fetch collections and apply the saved sort."""
        collections = await self.service.load_collections()
        self.categories = [CatalogCategory.from_collection(c) for c in collections]
        self._apply(self.sort_type)
        logger.info(f"Loaded {len(self.categories)} collections")
        return self.categories

    def sort_by_name(self) -> list[CatalogCategory]:
        self.preferences.set(CATALOG_SORT_KEY, CatalogSort.BY_NAME.value)
        self._apply(CatalogSort.BY_NAME)
        return self.categories

    def sort_by_count(self) -> list[CatalogCategory]:
        self.preferences.set(CATALOG_SORT_KEY, CatalogSort.BY_COUNT.value)
        self._apply(CatalogSort.BY_COUNT)
        return self.categories

    def _apply(self, sort_type: CatalogSort) -> None:
        if sort_type is CatalogSort.BY_NAME:
            self.categories.sort(key=lambda c: c.title.lower())
        elif sort_type is CatalogSort.BY_COUNT:
            self.categories.sort(key=lambda c: c.count, reverse=True)

    async def load_collection(self, collection_id: str) -> tuple[NFTCollection, list[CollectionNft]]:
        """
        Fetch a collection and its NFTs, using the NFT cache.

        Each NFT is flagged with whether the user liked it and whether it is
        in the cart, read from the profile and the order.
        """
        collection = await self.service.load_collection(collection_id)
        profile, order, *details = await asyncio.gather(
            self.service.load_profile(),
            self.service.load_order(),
            *(self.service.load_nft(nft_id) for nft_id in collection.nfts),
        )
        likes = set(profile.likes)
        in_cart = set(order.nfts)
        return collection, [
            CollectionNft(detail=detail, liked=detail.id in likes, in_cart=detail.id in in_cart)
            for detail in details
        ]
