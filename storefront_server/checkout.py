"""Checkout orchestration: validation, totals, payment hand-off."""

import logging
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from .cart import CartStore
from .errors import StorefrontError, ValidationError, fallback_message
from .models import (
    CheckoutItem,
    CheckoutRequest,
    Failure,
    Result,
    ShippingAddress,
)
from .navigation import Navigator
from .session import SessionManager
from .storefront_client import StorefrontClient

logger = logging.getLogger(__name__)

# Flat rate, independent of address and weight
SHIPPING_FEE = Decimal("15.90")


class CheckoutSummary(BaseModel):
    """Totals shown before the order is placed."""

    item_count: int
    subtotal: Decimal
    shipping_fee: Decimal
    total: Decimal


class CheckoutOutcome(BaseModel):
    """A submitted checkout, ready for the external payment page."""

    redirect_url: str
    total: Decimal
    request: CheckoutRequest


class CheckoutOrchestrator:
    """
    Turns the current cart and a shipping address into a payment hand-off.

    Reads the session and the cart but only changes them through their own
    operations. On success the cart is cleared right after the backend
    answers and before the browser reaches the payment page, so an
    interrupted redirect loses the cart.
    """

    def __init__(
        self,
        session: SessionManager,
        cart: CartStore,
        client: StorefrontClient,
        navigator: Navigator,
        shipping_fee: Decimal = SHIPPING_FEE,
        language: str = "en",
    ) -> None:
        self._session = session
        self._cart = cart
        self._client = client
        self._navigator = navigator
        self.shipping_fee = shipping_fee
        self._language = language
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        """True while a submission awaits the backend."""
        return self._in_flight

    def default_address(self) -> ShippingAddress:
        """Shipping address prefilled from the current user's profile."""
        user = self._session.user
        return ShippingAddress.from_address(user.address if user else None)

    def final_total(self) -> Decimal:
        return self._cart.get_total_price() + self.shipping_fee

    def summary(self) -> CheckoutSummary:
        return CheckoutSummary(
            item_count=self._cart.get_total_items(),
            subtotal=self._cart.get_total_price(),
            shipping_fee=self.shipping_fee,
            total=self.final_total(),
        )

    def validate(self, address: ShippingAddress) -> None:
        """
        Check the local preconditions for a submission.

        Raises:
            ValidationError: With code ``empty_cart`` or ``incomplete_address``
        """
        if self._cart.is_empty:
            raise ValidationError(self._fallback("empty_cart"), code="empty_cart")
        missing = address.missing_fields()
        if missing:
            logger.info(f"Checkout blocked, missing address fields: {', '.join(missing)}")
            raise ValidationError(self._fallback("incomplete_address"), code="incomplete_address")

    def build_request(self, address: ShippingAddress) -> CheckoutRequest:
        return CheckoutRequest(
            items=tuple(CheckoutItem.from_cart_item(item) for item in self._cart.items),
            shipping_address=address,
        )

    async def submit(self, address: Optional[ShippingAddress] = None) -> Result[CheckoutOutcome]:
        """
        Validate, create the payment preference and hand off to the payment page.

        Args:
            address: Shipping address. Defaults to the user's stored address.

        Returns:
            Result carrying the redirect URL, or a failure. No network call is
            made when validation fails or another submission is in flight.
        """
        if self._in_flight:
            logger.warning("Checkout already in flight, ignoring duplicate submission")
            return Result(error=Failure.from_error(
                ValidationError(self._fallback("submission_in_progress"), code="submission_in_progress"),
                self._fallback("submission_in_progress"),
            ))

        if address is None:
            address = self.default_address()

        try:
            self.validate(address)
        except ValidationError as e:
            return Result(error=Failure.from_error(e, self._fallback(e.code or "checkout")))

        request = self.build_request(address)
        total = request.subtotal + self.shipping_fee
        logger.info(f"Submitting checkout: {len(request.items)} line(s), total {total}")

        self._in_flight = True
        try:
            preference = await self._client.create_preference(request)
        except StorefrontError as e:
            logger.error(f"Checkout failed: {e}")
            return Result(error=Failure.from_error(e, self._fallback("checkout")))
        finally:
            self._in_flight = False

        self._cart.clear_cart()
        logger.info("Redirecting to payment page")
        self._navigator.navigate(preference.init_point)
        return Result(
            value=CheckoutOutcome(
                redirect_url=preference.init_point,
                total=total,
                request=request,
            )
        )

    def _fallback(self, key: str) -> str:
        return fallback_message(key, self._language)
