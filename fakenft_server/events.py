"""Events emitted by the cart state machine."""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .models import CartAggregate


class ErrorKind(str, Enum):
    ORDER_LOAD_FAILED = "order_load_failed"
    ITEM_LOAD_FAILED = "item_load_failed"
    MUTATION_FAILED = "mutation_failed"
    NOT_READY = "not_ready"


class FullReload(BaseModel):
    """The whole list changed, consumers redraw everything."""

    model_config = ConfigDict(frozen=True)

    type: Literal["full_reload"] = "full_reload"
    aggregate: CartAggregate


class SlotUpdated(BaseModel):
    """One slot changed, consumers redraw that row and the footer only."""

    model_config = ConfigDict(frozen=True)

    type: Literal["slot_updated"] = "slot_updated"
    aggregate: CartAggregate
    index: int


class FooterUpdated(BaseModel):
    """Every slot has settled, the footer is now available."""

    model_config = ConfigDict(frozen=True)

    type: Literal["footer_updated"] = "footer_updated"
    aggregate: CartAggregate


class Sorted(BaseModel):
    """Slots were reordered, row indices are no longer valid."""

    model_config = ConfigDict(frozen=True)

    type: Literal["sorted"] = "sorted"
    aggregate: CartAggregate
    criterion: str


class ConfirmDelete(BaseModel):
    """Ask the user to confirm removing an NFT."""

    model_config = ConfigDict(frozen=True)

    type: Literal["confirm_delete"] = "confirm_delete"
    id: str
    image_url: Optional[str] = None


class CartError(BaseModel):
    """User-facing failure of a cart operation."""

    model_config = ConfigDict(frozen=True)

    type: Literal["error"] = "error"
    kind: ErrorKind
    message: str


CartEvent = Annotated[
    Union[FullReload, SlotUpdated, FooterUpdated, Sorted, ConfirmDelete, CartError],
    Field(discriminator="type"),
]
