"""Shared fakes and fixtures for FakeNFT tests."""

import asyncio
import json
from decimal import Decimal
from typing import Any, Optional
from urllib.parse import parse_qsl

import httpx
import pytest

from fakenft_server.cart import CartStateMachine
from fakenft_server.config import Settings
from fakenft_server.events import CartEvent
from fakenft_server.http_client import HTTPStatusError, NetworkClient
from fakenft_server.models import Currency, ItemDetail, Order
from fakenft_server.preferences import MemoryPreferenceStore


def make_detail(nft_id: str, price: str = "1", rating: int = 3, name: Optional[str] = None) -> ItemDetail:
    return ItemDetail(
        id=nft_id,
        name=name or f"NFT {nft_id}",
        price=Decimal(price),
        rating=rating,
        images=(f"https://img.example/{nft_id}.png",),
    )


class FakeService:
    """Stands in for NftService in state machine tests.

    details maps an NFT ID to an ItemDetail or to the exception its fetch
    raises. A gate blocks a fetch until the test opens it.
    """

    def __init__(self, order_ids: list[str], details: dict[str, Any]) -> None:
        self.order = Order(id="1", nfts=list(order_ids))
        self.details = details
        self.order_error: Optional[Exception] = None
        self.change_error: Optional[Exception] = None
        self.pay_error: Optional[Exception] = None
        self.change_calls: list[list[str]] = []
        self.pay_calls = 0
        self.detail_calls: list[str] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.currencies = [
            Currency(id="1", title="BTC", name="Bitcoin", image="https://img.example/btc.png"),
            Currency(id="2", title="ETH", name="Ethereum", image="https://img.example/eth.png"),
        ]
        self.currency_calls = 0

    def gate(self, nft_id: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[nft_id] = event
        return event

    async def load_order(self) -> Order:
        await asyncio.sleep(0)
        if self.order_error is not None:
            raise self.order_error
        return self.order.model_copy()

    async def load_cart_item(self, nft_id: str) -> ItemDetail:
        self.detail_calls.append(nft_id)
        gate = self.gates.get(nft_id)
        if gate is not None:
            await gate.wait()
        await asyncio.sleep(0)
        value = self.details[nft_id]
        if isinstance(value, Exception):
            raise value
        return value

    async def change_order(self, nft_ids: list[str]) -> Order:
        self.change_calls.append(list(nft_ids))
        await asyncio.sleep(0)
        if self.change_error is not None:
            raise self.change_error
        self.order = Order(id="1", nfts=list(nft_ids))
        return self.order

    async def pay_order(self) -> Order:
        self.pay_calls += 1
        await asyncio.sleep(0)
        if self.pay_error is not None:
            raise self.pay_error
        self.order = Order(id="1", nfts=[])
        return self.order

    async def load_currencies(self) -> list[Currency]:
        self.currency_calls += 1
        return list(self.currencies)


class Recorder:
    """Cart listener that keeps every event."""

    def __init__(self) -> None:
        self.events: list[CartEvent] = []

    def __call__(self, event: CartEvent) -> None:
        self.events.append(event)

    def of_type(self, type_: str) -> list:
        return [event for event in self.events if event.type == type_]

    @property
    def types(self) -> list[str]:
        return [event.type for event in self.events]


def make_cart(service: FakeService, preferences: Optional[MemoryPreferenceStore] = None):
    cart = CartStateMachine(service, preferences or MemoryPreferenceStore())  # type: ignore[arg-type]
    recorder = Recorder()
    cart.subscribe(recorder)
    return cart, recorder


class FakeApi:
    """In-memory FakeNFT REST API served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.order: list[str] = ["1", "2"]
        self.nfts: dict[str, dict] = {
            "1": {"id": "1", "name": "Archie", "price": 2.5, "rating": 3, "images": ["https://img.example/1.png"]},
            "2": {"id": "2", "name": "Perchy", "price": 4.25, "rating": 4, "images": ["https://img.example/2.png"]},
            "3": {"id": "3", "name": "ivoro", "price": 1.5, "rating": 5, "images": []},
        }
        self.likes: list[str] = ["3"]
        self.currencies = [
            {"id": "1", "title": "BTC", "name": "Bitcoin", "image": "https://img.example/btc.png"},
        ]
        self.collections = [
            {"id": "c1", "name": "peach", "cover": "https://img.example/c1.png", "nfts": ["1"], "description": "", "author": "a"},
            {"id": "c2", "name": "Blue", "cover": "https://img.example/c2.png", "nfts": ["2", "3"], "description": "", "author": "b"},
        ]
        self.requests: list[httpx.Request] = []
        self.failures: dict[tuple[str, str], int] = {}

    def fail(self, method: str, path: str, status_code: int = 500) -> None:
        self.failures[(method, path)] = status_code

    def form(self, request: httpx.Request) -> list[tuple[str, str]]:
        return parse_qsl(request.content.decode("utf-8"), keep_blank_values=True)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, request.url.path

        status_code = self.failures.get((method, path))
        if status_code is not None:
            return httpx.Response(status_code, json={"error": "fail"})

        if path == "/api/v1/orders/1":
            if method == "PUT":
                self.order = [value for key, value in self.form(request) if key == "nfts"]
            return httpx.Response(200, json={"id": "1", "nfts": self.order})

        if path.startswith("/api/v1/nft/"):
            nft = self.nfts.get(path.rsplit("/", 1)[1])
            if nft is None:
                return httpx.Response(404, json={"error": "not found"})
            return httpx.Response(200, json=nft)

        if path == "/api/v1/profile/1":
            if method == "PUT":
                value = dict(self.form(request)).get("likes", "")
                self.likes = [like for like in value.split(",") if like]
            return httpx.Response(200, json={"id": "1", "name": "Joaquin", "likes": self.likes})

        if path == "/api/v1/currencies":
            return httpx.Response(200, json=self.currencies)

        if path == "/api/v1/collections":
            return httpx.Response(200, json=self.collections)

        if path.startswith("/api/v1/collections/"):
            collection_id = path.rsplit("/", 1)[1]
            for collection in self.collections:
                if collection["id"] == collection_id:
                    return httpx.Response(200, json=collection)
            return httpx.Response(404, json={"error": "not found"})

        return httpx.Response(404, content=json.dumps({"error": "no route"}).encode())

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def settings() -> Settings:
    return Settings(base_url="https://api.example", token="secret-token", preferences_file="/nonexistent")


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
async def client(settings: Settings, api: FakeApi):
    network_client = NetworkClient(settings, transport=api.transport())
    yield network_client
    await network_client.close()


def status_error(code: int = 500) -> HTTPStatusError:
    return HTTPStatusError(code, "/api/v1/nft/x")
