"""Plain-text rendering of cart state for MCP tool responses."""

from .models import (
    CartAggregate,
    CollectionNft,
    FailedSlot,
    ItemDetail,
    NFTCollection,
    PendingSlot,
    ReadySlot,
)


def format_slot(index: int, slot: object) -> str:
    if isinstance(slot, ReadySlot):
        detail = slot.detail
        return f"{index}. {detail.name} - {detail.price} ETH, rating {detail.rating}/5 (ID: {detail.id})"
    if isinstance(slot, FailedSlot):
        return f"{index}. NFT {slot.id}: failed to load ({slot.error})"
    if isinstance(slot, PendingSlot):
        return f"{index}. NFT {slot.id}: loading..."
    return f"{index}. {slot!r}"


def format_cart(aggregate: CartAggregate) -> str:
    if not aggregate.slots:
        return "Your cart is empty"

    lines = [f"Shopping Cart ({len(aggregate.slots)} NFTs):", ""]
    for index, slot in enumerate(aggregate.slots, 1):
        lines.append(format_slot(index, slot))

    footer = aggregate.footer
    if footer is not None:
        lines.append("")
        lines.append(f"Total: {footer.total_price} ETH for {footer.item_count} NFT(s)")
        lines.append("Ready to pay" if footer.can_pay else "Nothing to pay")
    return "\n".join(lines)


def format_nft(detail: ItemDetail) -> str:
    lines = [
        f"{detail.name} (ID: {detail.id})",
        f"Price: {detail.price} ETH",
        f"Rating: {detail.rating}/5",
    ]
    if detail.image_url:
        lines.append(f"Image: {detail.image_url}")
    return "\n".join(lines)


def format_collection(collection: NFTCollection, nfts: list[CollectionNft]) -> str:
    lines = [f"{collection.name} by {collection.author or 'unknown'} ({len(nfts)} NFTs)"]
    if collection.description:
        lines.append(collection.description)
    lines.append("")
    for index, nft in enumerate(nfts, 1):
        detail = nft.detail
        marks = [mark for mark, on in (("liked", nft.liked), ("in cart", nft.in_cart)) if on]
        suffix = f" [{', '.join(marks)}]" if marks else ""
        lines.append(f"{index}. {detail.name} - {detail.price} ETH (ID: {detail.id}){suffix}")
    return "\n".join(lines)
