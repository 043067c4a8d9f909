"""Data models for FakeNFT entities and cart view-state."""

from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ItemDetail(BaseModel):
    """Represents a single NFT as returned by /api/v1/nft/{id}."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="NFT ID")
    name: str = Field(description="NFT name")
    price: Decimal = Field(description="Price in ETH")
    rating: int = Field(default=0, ge=0, le=5, description="Rating from 0 to 5")
    images: tuple[str, ...] = Field(default=(), description="Image URLs, first one is the cover")

    @property
    def image_url(self) -> Optional[str]:
        """First image URL, if any."""
        return self.images[0] if self.images else None


class Order(BaseModel):
    """Server-side cart: the ordered list of NFT IDs."""

    id: str = Field(default="1", description="Order ID")
    nfts: list[str] = Field(default_factory=list, description="NFT IDs in the cart")


class Profile(BaseModel):
    """User profile, only the likes are used by the client."""

    id: Optional[str] = None
    name: Optional[str] = None
    avatar: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    likes: list[str] = Field(default_factory=list, description="Liked NFT IDs")


class Currency(BaseModel):
    """Payment currency offered at checkout."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = Field(description="Short name, e.g. BTC")
    name: str = Field(description="Display name, e.g. Bitcoin")
    image: str = Field(description="Icon URL")

    @property
    def short_name(self) -> str:
        return self.title

    @property
    def display_name(self) -> str:
        return self.name

    @property
    def icon_url(self) -> str:
        return self.image


class NFTCollection(BaseModel):
    """NFT collection shown in the catalog."""

    id: str
    name: str
    cover: str = ""
    nfts: list[str] = Field(default_factory=list)
    description: str = ""
    author: str = ""


class CatalogCategory(BaseModel):
    """Catalog row derived from a collection."""

    id: str
    title: str
    image_url: str
    count: int

    @classmethod
    def from_collection(cls, collection: NFTCollection) -> "CatalogCategory":
        return cls(
            id=collection.id,
            title=collection.name,
            image_url=collection.cover,
            count=len(collection.nfts),
        )


class CollectionNft(BaseModel):
    """NFT of a collection with the user's like and cart state."""

    detail: ItemDetail
    liked: bool = False
    in_cart: bool = False


# Cart slots


class PendingSlot(BaseModel):
    """Slot whose detail has not arrived yet."""

    model_config = ConfigDict(frozen=True)

    state: Literal["pending"] = "pending"
    id: str


class ReadySlot(BaseModel):
    """Slot with a fetched detail."""

    model_config = ConfigDict(frozen=True)

    state: Literal["ready"] = "ready"
    detail: ItemDetail

    @property
    def id(self) -> str:
        return self.detail.id


class FailedSlot(BaseModel):
    """Slot whose detail fetch failed."""

    model_config = ConfigDict(frozen=True)

    state: Literal["failed"] = "failed"
    id: str
    error: str = Field(description="User-facing description of the failure")


CartSlot = Annotated[Union[PendingSlot, ReadySlot, FailedSlot], Field(discriminator="state")]


class Footer(BaseModel):
    """Cart totals, present only once every slot has settled."""

    model_config = ConfigDict(frozen=True)

    item_count: int
    total_price: Decimal
    can_pay: bool


class CartAggregate(BaseModel):
    """Snapshot of the cart as seen by consumers."""

    model_config = ConfigDict(frozen=True)

    slots: tuple[CartSlot, ...] = ()
    all_settled: bool = False
    footer: Optional[Footer] = None

    @classmethod
    def derive(cls, slots: list, all_settled: bool) -> "CartAggregate":
        """Build an aggregate, computing the footer from the slots."""
        footer = None
        if all_settled:
            item_count = len(slots)
            total_price = sum(
                (slot.detail.price for slot in slots if isinstance(slot, ReadySlot)),
                Decimal("0"),
            )
            footer = Footer(
                item_count=item_count,
                total_price=total_price,
                can_pay=item_count > 0,
            )
        return cls(slots=tuple(slots), all_settled=all_settled, footer=footer)

    def item_ids(self) -> list[str]:
        return [slot.id for slot in self.slots]
