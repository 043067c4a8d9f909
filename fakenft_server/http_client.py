"""Async HTTP transport for the FakeNFT API."""

import logging
from typing import Any, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .config import Settings

logger = logging.getLogger(__name__)

TOKEN_HEADER = "X-Practicum-Mobile-Token"


class NetworkClientError(Exception):
    """Base class for every failure surfaced by NetworkClient."""


class TransportError(NetworkClientError):
    """No response was received (connection, DNS, timeout...)."""


class HTTPStatusError(NetworkClientError):
    """The server answered with a status outside [200, 300)."""

    def __init__(self, status_code: int, url: str = "") -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(f"HTTP {status_code} for {url}" if url else f"HTTP {status_code}")


class DecodeError(NetworkClientError):
    """The response body could not be decoded into the expected type."""


class RequestDescriptor(BaseModel):
    """Everything needed to issue one request."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Path relative to the API base URL")
    method: str = Field(default="GET")
    headers: dict[str, str] = Field(default_factory=dict)
    form: Optional[tuple[tuple[str, str], ...]] = Field(
        default=None, description="Form-encoded body; keys may repeat"
    )

    def body(self) -> Optional[bytes]:
        """Encode the form body, if any."""
        if self.form is None:
            return None
        return urlencode(self.form).encode("utf-8")


class NetworkClient:
    """Sends RequestDescriptors with the auth header and decodes JSON bodies."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the network client.

        Args:
            settings: API base URL, token and timeout
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.settings = settings
        self.client = httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.timeout,
            transport=transport,
            headers={
                TOKEN_HEADER: settings.token,
                "Accept": "application/json",
            },
        )
        self._adapters: dict[Any, TypeAdapter] = {}

    async def send(self, descriptor: RequestDescriptor) -> bytes:
        """
        Send a request and return the raw body.

        Raises:
            TransportError: If no response was received
            HTTPStatusError: If the status is not 2xx
        """
        headers = dict(descriptor.headers)
        body = descriptor.body()
        if body is not None:
            headers.setdefault("Content-Type", "application/x-www-form-urlencoded")

        logger.debug(f"{descriptor.method} {descriptor.path}")
        if body:
            logger.debug(f"Body: {body.decode('utf-8')}")

        try:
            response = await self.client.request(
                descriptor.method,
                descriptor.path,
                content=body,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.warning(f"{descriptor.method} {descriptor.path} failed: {e}")
            raise TransportError(str(e) or type(e).__name__) from e

        logger.debug(f"{descriptor.method} {descriptor.path} -> {response.status_code}")
        if not 200 <= response.status_code < 300:
            raise HTTPStatusError(response.status_code, descriptor.path)

        return response.content

    async def send_typed(self, descriptor: RequestDescriptor, type_: Any) -> Any:
        """
        Send a request and decode the JSON body into type_.

        Args:
            descriptor: Request to send
            type_: A pydantic model class or a typing form such as list[Model]

        Raises:
            DecodeError: If the body does not match type_
        """
        data = await self.send(descriptor)
        adapter = self._adapters.get(type_)
        if adapter is None:
            adapter = TypeAdapter(type_)
            self._adapters[type_] = adapter

        try:
            return adapter.validate_json(data)
        except ValidationError as e:
            logger.warning(f"Could not decode {descriptor.path}: {e.error_count()} error(s)")
            raise DecodeError(f"Unexpected response from {descriptor.path}") from e

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "NetworkClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
