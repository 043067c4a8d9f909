"""Request descriptors for the FakeNFT REST endpoints."""

from .http_client import RequestDescriptor

CART_ORDER_ID = "1"
PROFILE_ID = "1"


def collections_request() -> RequestDescriptor:
    return RequestDescriptor(path="/api/v1/collections")


def collection_request(collection_id: str) -> RequestDescriptor:
    return RequestDescriptor(path=f"/api/v1/collections/{collection_id}")


def order_request() -> RequestDescriptor:
    return RequestDescriptor(path=f"/api/v1/orders/{CART_ORDER_ID}")


def change_order_request(nft_ids: list[str]) -> RequestDescriptor:
    """Replace the cart contents; every ID becomes its own nfts=<id> pair."""
    return RequestDescriptor(
        path=f"/api/v1/orders/{CART_ORDER_ID}",
        method="PUT",
        form=tuple(("nfts", nft_id) for nft_id in nft_ids),
    )


def pay_order_request() -> RequestDescriptor:
    """Paying empties the order on the server."""
    return change_order_request([])


def nft_request(nft_id: str) -> RequestDescriptor:
    return RequestDescriptor(path=f"/api/v1/nft/{nft_id}")


def profile_request() -> RequestDescriptor:
    return RequestDescriptor(path=f"/api/v1/profile/{PROFILE_ID}")


def update_likes_request(nft_ids: list[str]) -> RequestDescriptor:
    return RequestDescriptor(
        path=f"/api/v1/profile/{PROFILE_ID}",
        method="PUT",
        form=(("likes", ",".join(nft_ids)),),
    )


def currencies_request() -> RequestDescriptor:
    return RequestDescriptor(path="/api/v1/currencies")
