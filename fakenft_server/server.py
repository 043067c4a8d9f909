"""MCP Server for the FakeNFT marketplace."""

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Iterator

from mcp.server import Server
from mcp.types import Resource, Tool, TextContent
from pydantic import AnyUrl

from .checkout import CheckoutError
from .config import Settings
from .context import AppContext
from .events import CartError, CartEvent
from .formatting import format_cart, format_collection, format_nft
from .sorting import SortCriterion, configure_collation

logger = logging.getLogger("fakenft-mcp-server")

# Initialize server
app = Server("fakenft-mcp-server")

# Global state
context: AppContext


@contextmanager
def collect_errors() -> Iterator[list[CartError]]:
    """Collect cart error events emitted while the block runs."""
    errors: list[CartError] = []

    def listener(event: CartEvent) -> None:
        if isinstance(event, CartError):
            errors.append(event)

    unsubscribe = context.cart.subscribe(listener)
    try:
        yield errors
    finally:
        unsubscribe()


def text(message: str) -> list[TextContent]:
    return [TextContent(type="text", text=message)]


async def load_cart_text() -> str:
    """Reload the cart, apply the saved sort and render it."""
    with collect_errors() as errors:
        await context.cart.load_cart()
        saved = context.cart.saved_sort()
        if saved is not None and not errors:
            context.cart.sort_by(saved)

    if errors:
        return f"Error: {errors[0].message}"
    return format_cart(context.cart.aggregate)


@app.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return [
        Resource(
            uri=AnyUrl("fakenft://cart"),
            name="Shopping Cart",
            mimeType="application/json",
            description="Current cart slots and totals",
        )
    ]


@app.read_resource()
async def read_resource(uri: AnyUrl) -> str:
    """Read a resource by URI."""
    if str(uri) == "fakenft://cart":
        await context.ensure_cart_loaded()
        return context.cart.aggregate.model_dump_json(indent=2)

    raise ValueError(f"Unknown resource: {uri}")


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="fakenft_get_cart",
            description="Load the cart and show every NFT with the total price",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="fakenft_sort_cart",
            description="Sort the cart by price, rating or name (the choice is remembered)",
            inputSchema={
                "type": "object",
                "properties": {
                    "criterion": {
                        "type": "string",
                        "enum": [c.value for c in SortCriterion],
                        "description": "price and rating sort descending, name ascending",
                    },
                },
                "required": ["criterion"],
            },
        ),
        Tool(
            name="fakenft_remove_from_cart",
            description="Remove an NFT from the cart. Call without confirm to get the confirmation prompt",
            inputSchema={
                "type": "object",
                "properties": {
                    "nft_id": {
                        "type": "string",
                        "description": "NFT ID from the cart",
                    },
                    "confirm": {
                        "type": "boolean",
                        "description": "Set to true to actually remove the NFT",
                        "default": False,
                    },
                },
                "required": ["nft_id"],
            },
        ),
        Tool(
            name="fakenft_add_to_cart",
            description="Add an NFT to the cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "nft_id": {"type": "string", "description": "NFT ID"},
                },
                "required": ["nft_id"],
            },
        ),
        Tool(
            name="fakenft_list_currencies",
            description="List the currencies accepted at checkout",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="fakenft_pay",
            description="Pay for the whole cart with the given currency",
            inputSchema={
                "type": "object",
                "properties": {
                    "currency_id": {
                        "type": "string",
                        "description": "Currency ID from fakenft_list_currencies",
                    },
                },
                "required": ["currency_id"],
            },
        ),
        Tool(
            name="fakenft_list_collections",
            description="List NFT collections",
            inputSchema={
                "type": "object",
                "properties": {
                    "sort": {
                        "type": "string",
                        "enum": ["name", "count"],
                        "description": "Sort by name or by number of NFTs (the choice is remembered)",
                    },
                },
            },
        ),
        Tool(
            name="fakenft_get_collection",
            description="Show a collection with its NFTs, marking liked ones and ones already in the cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "collection_id": {
                        "type": "string",
                        "description": "Collection ID from fakenft_list_collections",
                    },
                },
                "required": ["collection_id"],
            },
        ),
        Tool(
            name="fakenft_get_nft",
            description="Get details of an NFT",
            inputSchema={
                "type": "object",
                "properties": {
                    "nft_id": {"type": "string", "description": "NFT ID"},
                },
                "required": ["nft_id"],
            },
        ),
        Tool(
            name="fakenft_set_like",
            description="Like or unlike an NFT",
            inputSchema={
                "type": "object",
                "properties": {
                    "nft_id": {"type": "string", "description": "NFT ID"},
                    "liked": {"type": "boolean", "description": "True to like, false to unlike"},
                },
                "required": ["nft_id", "liked"],
            },
        ),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls."""
    arguments = arguments or {}
    try:
        if name == "fakenft_get_cart":
            return text(await load_cart_text())

        elif name == "fakenft_sort_cart":
            criterion = SortCriterion.parse(arguments.get("criterion"))
            if criterion is None:
                return text("Error: criterion must be one of price, rating, name")

            await context.ensure_cart_loaded()
            aggregate = context.cart.sort_by(criterion)
            return text(f"Sorted by {criterion.value}\n\n{format_cart(aggregate)}")

        elif name == "fakenft_remove_from_cart":
            nft_id = arguments["nft_id"]
            await context.ensure_cart_loaded()

            with collect_errors() as errors:
                request = context.removal.request(nft_id)
                if request is None:
                    return text(f"❌ {errors[0].message}" if errors else f"❌ Cannot remove {nft_id}")

                if not arguments.get("confirm", False):
                    lines = [f"Are you sure you want to remove NFT {nft_id} from the cart?"]
                    if request.image_url:
                        lines.append(f"Image: {request.image_url}")
                    lines.append("Call again with confirm=true to remove it.")
                    return text("\n".join(lines))

                removed = await context.removal.confirm()

            if removed:
                return text(f"✅ Removed NFT {nft_id}\n\n{format_cart(context.cart.aggregate)}")
            message = errors[0].message if errors else f"Could not remove NFT {nft_id}"
            return text(f"❌ {message}")

        elif name == "fakenft_add_to_cart":
            nft_id = arguments["nft_id"]
            with collect_errors() as errors:
                added = await context.cart.add_item(nft_id)

            if added:
                return text(f"✅ Added NFT {nft_id}\n\n{format_cart(context.cart.aggregate)}")
            message = errors[0].message if errors else f"Could not add NFT {nft_id}"
            return text(f"❌ {message}")

        elif name == "fakenft_list_currencies":
            checkout = context.new_checkout()
            currencies = await checkout.load_currencies()
            if not currencies:
                return text("No currencies available")

            lines = [f"{len(currencies)} currencies accepted:\n"]
            for currency in currencies:
                lines.append(f"  - {currency.name} ({currency.title}), ID: {currency.id}")
            return text("\n".join(lines))

        elif name == "fakenft_pay":
            currency_id = arguments["currency_id"]
            await context.ensure_cart_loaded()

            checkout = context.checkout
            await checkout.load_currencies()
            checkout.select_currency(currency_id)
            result = await checkout.pay()

            if result.success:
                return text(f"✅ {result.message}")
            return text(f"❌ {result.message}\nYou can retry the payment.")

        elif name == "fakenft_list_collections":
            sort = arguments.get("sort")
            categories = await context.catalog.load()
            if sort == "name":
                categories = context.catalog.sort_by_name()
            elif sort == "count":
                categories = context.catalog.sort_by_count()

            if not categories:
                return text("No collections found")

            lines = [f"Found {len(categories)} collection(s):\n"]
            for i, category in enumerate(categories, 1):
                lines.append(f"{i}. {category.title} ({category.count} NFTs), ID: {category.id}")
            return text("\n".join(lines))

        elif name == "fakenft_get_collection":
            collection, nfts = await context.catalog.load_collection(arguments["collection_id"])
            return text(format_collection(collection, nfts))

        elif name == "fakenft_get_nft":
            detail = await context.service.load_nft(arguments["nft_id"])
            return text(format_nft(detail))

        elif name == "fakenft_set_like":
            nft_id = arguments["nft_id"]
            liked = bool(arguments["liked"])
            profile = await context.service.set_liked(nft_id, liked)
            state = "liked" if nft_id in profile.likes else "not liked"
            return text(f"✅ NFT {nft_id} is now {state} ({len(profile.likes)} likes)")

        else:
            return text(f"Unknown tool: {name}")

    except CheckoutError as e:
        return text(f"❌ {e}")
    except Exception as e:
        logger.error(f"Error executing tool {name}: {e}", exc_info=True)
        return text(f"Error: {str(e)}")


async def main() -> None:
    """Main entry point."""
    global context

    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    configure_collation()
    context = AppContext(settings)
    logger.info(f"Using API at {settings.base_url}")
    logger.info("Starting FakeNFT MCP Server...")

    from mcp.server.stdio import stdio_server

    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                app.create_initialization_options(),
            )
    finally:
        await context.close()


if __name__ == "__main__":
    asyncio.run(main())
