"""HTTP server for the FakeNFT client with an SSE stream of cart events."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from .checkout import CheckoutError
from .config import Settings
from .context import AppContext
from .events import CartError, CartEvent
from .http_client import HTTPStatusError, NetworkClientError
from .sorting import SortCriterion, configure_collation

logger = logging.getLogger("fakenft-http-server")

# Global state
context: AppContext


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    global context

    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    configure_collation()
    logger.info("Starting FakeNFT HTTP Server...")
    context = AppContext(settings)

    yield

    logger.info("Shutting down FakeNFT HTTP Server...")
    await context.close()


app = FastAPI(
    title="FakeNFT Server",
    description="HTTP API for the FakeNFT marketplace cart and checkout",
    version="0.1.0",
    lifespan=lifespan,
)


# Request Models
class SortRequest(BaseModel):
    criterion: SortCriterion


class AddRequest(BaseModel):
    nft_id: str


class RemoveRequest(BaseModel):
    nft_id: str
    confirm: bool = False


class PayRequest(BaseModel):
    currency_id: str


def upstream_error(e: NetworkClientError) -> HTTPException:
    """Map a FakeNFT API failure to a response."""
    if isinstance(e, HTTPStatusError):
        return HTTPException(status_code=502, detail=f"Upstream returned {e.status_code}")
    return HTTPException(status_code=502, detail=str(e))


def raise_first(errors: list[CartError], status_code: int = 502) -> None:
    if errors:
        raise HTTPException(status_code=status_code, detail=errors[0].message)


class ErrorCollector:
    """Collect cart error events emitted while the block runs."""

    def __enter__(self) -> list[CartError]:
        self.errors: list[CartError] = []
        self._unsubscribe = context.cart.subscribe(self._on_event)
        return self.errors

    def _on_event(self, event: CartEvent) -> None:
        if isinstance(event, CartError):
            self.errors.append(event)

    def __exit__(self, *exc_info) -> None:
        self._unsubscribe()


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "FakeNFT Server",
        "version": "0.1.0",
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "events": "GET /events - SSE stream of cart events",
            "cart": {
                "get": "GET /cart",
                "reload": "POST /cart/reload",
                "sort": "POST /cart/sort",
                "add": "POST /cart/add",
                "remove": "POST /cart/remove",
            },
            "checkout": {
                "currencies": "GET /checkout/currencies",
                "pay": "POST /checkout/pay",
            },
            "catalog": {
                "collections": "GET /collections",
                "collection": "GET /collections/{collection_id}",
                "nft": "GET /nft/{nft_id}",
            },
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "base_url": context.settings.base_url}


# Cart endpoints
@app.get("/cart")
async def get_cart():
    """Current cart, loading it on first use."""
    with ErrorCollector() as errors:
        await context.ensure_cart_loaded()
    raise_first(errors)
    return context.cart.aggregate.model_dump(mode="json")


@app.post("/cart/reload")
async def reload_cart():
    """Reload the cart from the server."""
    with ErrorCollector() as errors:
        aggregate = await context.cart.load_cart()
        saved = context.cart.saved_sort()
        if saved is not None and not errors:
            aggregate = context.cart.sort_by(saved)
    raise_first(errors)
    return aggregate.model_dump(mode="json")


@app.post("/cart/sort")
async def sort_cart(request: SortRequest):
    """Sort the cart and remember the criterion."""
    with ErrorCollector() as errors:
        await context.ensure_cart_loaded()
    raise_first(errors)
    return context.cart.sort_by(request.criterion).model_dump(mode="json")


@app.post("/cart/remove")
async def remove_from_cart(request: RemoveRequest):
    """Request or confirm removal of an NFT."""
    with ErrorCollector() as errors:
        await context.ensure_cart_loaded()
        confirmation = context.removal.request(request.nft_id)
        if confirmation is None:
            raise_first(errors, status_code=409)
            raise HTTPException(status_code=409, detail=f"Cannot remove {request.nft_id}")

        if not request.confirm:
            return {"confirmed": False, "confirmation": confirmation.model_dump(mode="json")}

        removed = await context.removal.confirm()

    if not removed:
        raise_first(errors)
    return {"confirmed": True, "cart": context.cart.aggregate.model_dump(mode="json")}


@app.post("/cart/add")
async def add_to_cart(request: AddRequest):
    """Add an NFT to the cart and return the reloaded cart."""
    with ErrorCollector() as errors:
        added = await context.cart.add_item(request.nft_id)
    if not added:
        raise_first(errors, status_code=409)
    return context.cart.aggregate.model_dump(mode="json")


# Checkout endpoints
@app.get("/checkout/currencies")
async def list_currencies():
    """Start a checkout session and list its currencies."""
    checkout = context.new_checkout()
    try:
        currencies = await checkout.load_currencies()
    except CheckoutError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"count": len(currencies), "currencies": [c.model_dump() for c in currencies]}


@app.post("/checkout/pay")
async def pay(request: PayRequest):
    """Pay for the cart."""
    checkout = context.checkout
    try:
        await context.ensure_cart_loaded()
        await checkout.load_currencies()
        checkout.select_currency(request.currency_id)
        result = await checkout.pay()
    except CheckoutError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return result.model_dump(mode="json")


# Catalog endpoints
@app.get("/collections")
async def list_collections(sort: Optional[str] = None):
    """List collections, optionally changing the remembered sort."""
    try:
        categories = await context.catalog.load()
        if sort == "name":
            categories = context.catalog.sort_by_name()
        elif sort == "count":
            categories = context.catalog.sort_by_count()
        elif sort is not None:
            raise HTTPException(status_code=400, detail="sort must be name or count")
    except NetworkClientError as e:
        logger.error(f"List collections error: {e}", exc_info=True)
        raise upstream_error(e)
    return {"count": len(categories), "collections": [c.model_dump() for c in categories]}


@app.get("/collections/{collection_id}")
async def get_collection(collection_id: str):
    """Collection with its NFTs, each flagged as liked and/or in the cart."""
    try:
        collection, nfts = await context.catalog.load_collection(collection_id)
    except HTTPStatusError as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail=f"Collection {collection_id} not found")
        raise upstream_error(e)
    except NetworkClientError as e:
        logger.error(f"Get collection error: {e}", exc_info=True)
        raise upstream_error(e)
    return {
        "collection": collection.model_dump(mode="json"),
        "nfts": [nft.model_dump(mode="json") for nft in nfts],
    }


@app.get("/nft/{nft_id}")
async def get_nft(nft_id: str):
    """Get NFT details (cached)."""
    try:
        detail = await context.service.load_nft(nft_id)
    except HTTPStatusError as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail=f"NFT {nft_id} not found")
        raise upstream_error(e)
    except NetworkClientError as e:
        logger.error(f"Get NFT error: {e}", exc_info=True)
        raise upstream_error(e)
    return detail.model_dump(mode="json")


@app.get("/events")
async def events(request: Request):
    """Server-Sent Events stream of every cart event."""

    async def event_stream():
        queue: asyncio.Queue = asyncio.Queue()
        unsubscribe = context.cart.subscribe(queue.put_nowait)
        try:
            logger.info("SSE client connected")
            while True:
                if await request.is_disconnected():
                    logger.info("SSE client disconnected")
                    break
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=30)
                except asyncio.TimeoutError:
                    # Keepalive
                    yield ": ping\n\n"
                    continue
                yield f"event: {event.type}\ndata: {event.model_dump_json()}\n\n"
        except asyncio.CancelledError:
            logger.info("SSE stream cancelled")
        finally:
            unsubscribe()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


def run_http_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False):
    """
    Run the HTTP server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to bind to (default: 8000)
        reload: Enable hot reloading (default: False)
    """
    import uvicorn

    logger.info(f"Starting server on {host}:{port} (reload={'enabled' if reload else 'disabled'})")

    if reload:
        uvicorn.run(
            "fakenft_server.http_server:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["fakenft_server"],
            log_level="info",
        )
    else:
        uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    run_http_server(reload=True)
