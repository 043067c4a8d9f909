"""Checkout flow: currency selection and payment."""

import logging
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .cart import CartStateMachine
from .http_client import NetworkClientError
from .models import Currency
from .nft_service import NftService

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """A checkout step was attempted without its preconditions."""


class CheckoutState(str, Enum):
    INITIAL = "initial"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class PaymentResult(BaseModel):
    """Outcome of a payment attempt."""

    success: bool
    message: str
    currency_id: Optional[str] = None
    total_price: Decimal = Field(default=Decimal("0"))
    retryable: bool = Field(default=False, description="True when the user may try again")


class CheckoutFlow:
    """One checkout session over the current cart."""

    def __init__(self, service: NftService, cart: CartStateMachine) -> None:
        self.service = service
        self.cart = cart
        self.state = CheckoutState.INITIAL
        self.currencies: list[Currency] = []
        self.selected: Optional[Currency] = None

    async def load_currencies(self) -> list[Currency]:
        """Fetch the currencies once per session."""
        if self.state is CheckoutState.LOADED:
            return self.currencies

        self.state = CheckoutState.LOADING
        try:
            self.currencies = await self.service.load_currencies()
        except NetworkClientError as e:
            self.state = CheckoutState.FAILED
            logger.error(f"Could not load currencies: {e}")
            raise CheckoutError(f"Could not load currencies: {e}") from e

        self.state = CheckoutState.LOADED
        logger.info(f"Loaded {len(self.currencies)} currencies")
        return self.currencies

    def select_currency(self, currency_id: str) -> Currency:
        for currency in self.currencies:
            if currency.id == currency_id:
                self.selected = currency
                return currency
        raise CheckoutError(f"Unknown currency: {currency_id}")

    async def pay(self) -> PaymentResult:
        """
        Pay for the cart with the selected currency.

        On success the cart is reloaded from the server. A remote failure
        returns a retryable result; nothing is retried automatically.

        Raises:
            CheckoutError: If the cart has not settled, is empty, or no
                currency was selected
        """
        async with self.cart.mutation_lock:
            footer = self.cart.aggregate.footer
            if footer is None:
                raise CheckoutError("Cart is still loading")
            if not footer.can_pay:
                raise CheckoutError("Cart is empty")
            if self.selected is None:
                raise CheckoutError("Select a currency first")

            currency = self.selected
            try:
                await self.service.pay_order()
            except NetworkClientError as e:
                logger.error(f"Payment with {currency.title} failed: {e}")
                return PaymentResult(
                    success=False,
                    message=f"Payment failed: {e}",
                    currency_id=currency.id,
                    total_price=footer.total_price,
                    retryable=True,
                )

        logger.info(f"Paid {footer.total_price} ETH with {currency.title}")
        await self.cart.load_cart()
        return PaymentResult(
            success=True,
            message=f"Paid {footer.total_price} ETH with {currency.name}",
            currency_id=currency.id,
            total_price=footer.total_price,
        )
