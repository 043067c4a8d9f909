"""Cart state machine.

Owns the per-NFT slots of the cart and is the only code that writes them.
Consumers subscribe to the events it emits and never derive totals
themselves.

All slot writes happen on the event loop thread. A cart load fans out one
detail request per NFT; each completion is tagged with the generation of
the load that issued it and is dropped if a newer load has started since.
"""

import asyncio
import logging
from typing import Callable, Optional, Union

from .events import (
    CartError,
    CartEvent,
    ConfirmDelete,
    ErrorKind,
    FooterUpdated,
    FullReload,
    SlotUpdated,
    Sorted,
)
from .http_client import NetworkClientError
from .models import CartAggregate, FailedSlot, PendingSlot, ReadySlot
from .nft_service import NftService
from .preferences import PreferenceStore
from .sorting import SORT_PREFERENCE_KEY, SortCriterion, sort_slots

logger = logging.getLogger(__name__)

Listener = Callable[[CartEvent], None]


class CartStateMachine:
    """Loads the cart, tracks slot lifecycles and serializes cart mutations."""

    def __init__(self, service: NftService, preferences: PreferenceStore) -> None:
        """
        Initialize the state machine.

        Args:
            service: Service used for order, NFT and change-order calls
            preferences: Store for the chosen sort criterion
        """
        self.service = service
        self.preferences = preferences
        self.mutation_lock = asyncio.Lock()
        self._slots: list = []
        self._all_settled = False
        self._generation = 0
        self._listeners: list[Listener] = []

    # Subscription

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: CartEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Cart listener failed on {event.type}: {e}", exc_info=True)

    def _error(self, kind: ErrorKind, message: str) -> None:
        logger.warning(message)
        self._emit(CartError(kind=kind, message=message))

    # Read-only views

    @property
    def aggregate(self) -> CartAggregate:
        return CartAggregate.derive(self._slots, self._all_settled)

    @property
    def generation(self) -> int:
        return self._generation

    def item_ids(self) -> list[str]:
        return [slot.id for slot in self._slots]

    def saved_sort(self) -> Optional[SortCriterion]:
        return SortCriterion.parse(self.preferences.get(SORT_PREFERENCE_KEY))

    # Loading

    async def load_cart(self) -> CartAggregate:
        """Fetch the order, show skeleton slots, then fetch every NFT concurrently."""
        try:
            order = await self.service.load_order()
        except NetworkClientError as e:
            self._error(ErrorKind.ORDER_LOAD_FAILED, f"Could not load cart: {e}")
            return self.aggregate

        self._generation += 1
        generation = self._generation
        self._slots = [PendingSlot(id=nft_id) for nft_id in order.nfts]
        self._all_settled = False
        logger.info(f"Created {len(self._slots)} skeleton slots (generation {generation})")
        self._emit(FullReload(aggregate=self.aggregate))
        self._check_settled()

        await asyncio.gather(
            *(
                self._load_slot(generation, index, nft_id)
                for index, nft_id in enumerate(order.nfts)
            )
        )
        return self.aggregate

    async def _load_slot(self, generation: int, index: int, nft_id: str) -> None:
        slot: Union[ReadySlot, FailedSlot]
        try:
            detail = await self.service.load_cart_item(nft_id)
            if detail.id != nft_id:
                logger.warning(f"NFT {nft_id} answered with id {detail.id}")
                detail = detail.model_copy(update={"id": nft_id})
            slot = ReadySlot(detail=detail)
        except NetworkClientError as e:
            logger.warning(f"Failed to load NFT {nft_id}: {e}")
            slot = FailedSlot(id=nft_id, error=str(e))

        if generation != self._generation:
            logger.warning(f"Dropping NFT {nft_id} from stale generation {generation}")
            return

        position = self._locate(index, nft_id)
        if position is None:
            logger.debug(f"NFT {nft_id} is no longer in the cart")
            return

        self._slots[position] = slot
        self._emit(SlotUpdated(aggregate=self.aggregate, index=position))
        self._check_settled()

    def _locate(self, index: int, nft_id: str) -> Optional[int]:
        """Position of the slot for nft_id, trying the dispatch index first."""
        if index < len(self._slots) and self._slots[index].id == nft_id:
            return index
        for position, slot in enumerate(self._slots):
            if slot.id == nft_id:
                return position
        return None

    def _check_settled(self) -> None:
        if self._all_settled:
            return
        if any(isinstance(slot, PendingSlot) for slot in self._slots):
            return

        self._all_settled = True
        logger.info(f"All {len(self._slots)} NFTs settled")
        self._emit(FooterUpdated(aggregate=self.aggregate))

    # Sorting

    def sort_by(self, criterion: Union[SortCriterion, str]) -> CartAggregate:
        criterion = SortCriterion(criterion)
        self._slots = sort_slots(self._slots, criterion)
        self.preferences.set(SORT_PREFERENCE_KEY, criterion.value)
        aggregate = self.aggregate
        self._emit(Sorted(aggregate=aggregate, criterion=criterion.value))
        return aggregate

    # Removal

    def request_remove(self, nft_id: str) -> Optional[ConfirmDelete]:
        """Ask for confirmation before removing a loaded NFT."""
        slot = next((slot for slot in self._slots if slot.id == nft_id), None)
        if not isinstance(slot, ReadySlot):
            self._error(
                ErrorKind.NOT_READY,
                f"NFT {nft_id} is not loaded yet, retry later",
            )
            return None

        event = ConfirmDelete(id=nft_id, image_url=slot.detail.image_url)
        self._emit(event)
        return event

    async def confirm_remove(self, nft_id: str) -> bool:
        """
        Remove an NFT from the cart on the server, then locally.

        Local slots are only touched after the server accepted the new order.
        Returns True on success.
        """
        async with self.mutation_lock:
            current_ids = self.item_ids()
            if nft_id not in current_ids:
                self._error(ErrorKind.MUTATION_FAILED, f"NFT {nft_id} is not in the cart")
                return False

            new_ids = [item_id for item_id in current_ids if item_id != nft_id]
            logger.info(f"Removing NFT {nft_id}: {current_ids} -> {new_ids}")

            try:
                await self.service.change_order(new_ids)
            except NetworkClientError as e:
                self._error(ErrorKind.MUTATION_FAILED, f"Could not remove NFT {nft_id}: {e}")
                return False

            self._slots = [slot for slot in self._slots if slot.id != nft_id]
            logger.info(f"NFT {nft_id} removed from cart")
            self._emit(FullReload(aggregate=self.aggregate))
            self._check_settled()
            return True

    # Adding

    async def add_item(self, nft_id: str) -> bool:
        """
        Add an NFT to the cart on the server, then reload the cart.

        The server's current order is read first and written back with nft_id
        appended, so an unloaded cart is never overwritten. Returns True once
        the server accepted the new order.
        """
        async with self.mutation_lock:
            try:
                order = await self.service.load_order()
            except NetworkClientError as e:
                self._error(ErrorKind.MUTATION_FAILED, f"Could not add NFT {nft_id}: {e}")
                return False

            if nft_id in order.nfts:
                self._error(ErrorKind.MUTATION_FAILED, f"NFT {nft_id} is already in the cart")
                return False

            new_ids = [*order.nfts, nft_id]
            logger.info(f"Adding NFT {nft_id}: {order.nfts} -> {new_ids}")

            try:
                await self.service.change_order(new_ids)
            except NetworkClientError as e:
                self._error(ErrorKind.MUTATION_FAILED, f"Could not add NFT {nft_id}: {e}")
                return False

        logger.info(f"NFT {nft_id} added to cart")
        await self.load_cart()
        return True
