"""In-memory cache of fetched NFT details."""

import logging
from typing import Optional

from .models import ItemDetail

logger = logging.getLogger(__name__)


class ItemDetailCache:
    """Identity cache keyed by NFT ID. Entries live as long as the process."""

    def __init__(self) -> None:
        self._items: dict[str, ItemDetail] = {}

    def get(self, nft_id: str) -> Optional[ItemDetail]:
        return self._items.get(nft_id)

    def put(self, detail: ItemDetail) -> None:
        self._items[detail.id] = detail
        logger.debug(f"Cached NFT {detail.id}")

    def clear(self) -> None:
        self._items.clear()

    def __contains__(self, nft_id: object) -> bool:
        return nft_id in self._items

    def __len__(self) -> int:
        return len(self._items)
