# candleshop/storefront/checkout.py
import enum
import logging
from typing import Any, Dict, Optional

from candleshop.storefront.api import ShopApiClient
from candleshop.storefront.cart import CartStateManager
from candleshop.storefront.errors import (
    ConflictError, NotFoundError, ReconciliationError, StorefrontError, ValidationError,
)
from candleshop.storefront.forms import CHECKOUT_FORM
from candleshop.storefront.notifications import Toaster

logger = logging.getLogger(__name__)

CART_URL = "/cart"


class CheckoutState(str, enum.Enum):
    CART = "cart"
    FORM_ENTRY = "form_entry"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


class CheckoutFlow:
    """Checkout state machine.

    CART -> FORM_ENTRY -> SUBMITTING -> SUCCESS, or back to FORM_ENTRY
    through FAILED. An empty cart always sends the user back to the cart
    view (``redirect``) without creating an order.
    """

    def __init__(self, api: ShopApiClient, cart: CartStateManager, toaster: Optional[Toaster] = None):
        self.api = api
        self.cart = cart
        self.toaster = toaster or cart.toaster or Toaster()
        self.state = CheckoutState.CART
        self.redirect: Optional[str] = None
        self.field_errors: Dict[str, str] = {}
        self.error_message: Optional[str] = None
        self.order_id: Optional[int] = None
        self.order: Optional[Dict[str, Any]] = None
        # Set when the order was placed but could not be loaded afterwards
        self.order_not_found = False

    @property
    def can_submit(self) -> bool:
        return self.state in (CheckoutState.FORM_ENTRY, CheckoutState.FAILED)

    def _redirect_to_cart(self) -> CheckoutState:
        self.redirect = CART_URL
        self.state = CheckoutState.CART
        return self.state

    async def begin(self) -> CheckoutState:
        self.redirect = None
        try:
            await self.cart.flush()
        except StorefrontError as e:
            self.toaster.error(e)
        if self.cart.item_count == 0:
            return self._redirect_to_cart()
        self.state = CheckoutState.FORM_ENTRY
        return self.state

    def validate(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            values = CHECKOUT_FORM.validate(data)
        except ValidationError as e:
            self.field_errors = dict(e.field_errors)
            return None
        self.field_errors = {}
        return values

    async def submit(self, data: Dict[str, Any]) -> CheckoutState:
        if self.state == CheckoutState.SUBMITTING:
            raise ConflictError("Your order is already being submitted")
        if self.state == CheckoutState.SUCCESS:
            raise ConflictError("This order has already been placed")
        if self.cart.item_count == 0:
            return self._redirect_to_cart()

        values = self.validate(data)
        if values is None:
            self.state = CheckoutState.FORM_ENTRY
            return self.state

        self.state = CheckoutState.SUBMITTING
        self.error_message = None
        try:
            order = await self._place_order(values)
        except StorefrontError as e:
            return self._failed(e)

        self.order_id = order["id"]
        self.state = CheckoutState.SUCCESS
        logger.info("Order %s placed", self.order_id)
        self.toaster.success("Order placed", f"Thank you! Your order number is #{self.order_id}.")

        try:
            await self.cart.refresh()
        except StorefrontError as e:
            logger.warning("Cart refresh after order %s failed: %s", self.order_id, e.message)
        await self.load_confirmation()
        return self.state

    async def _place_order(self, values: Dict[str, Any]) -> Dict[str, Any]:
        await self.cart.flush()
        if self.cart.item_count == 0:
            raise ValidationError("Your cart is empty")

        # The server must be charging what the user has been looking at
        shown = self.cart.cart_total
        actual = await self.cart.server_subtotal()
        if shown != actual:
            await self.cart.refresh()
            raise ReconciliationError(
                f"Your cart has changed, the current subtotal is {actual}. Please review your cart."
            )

        payload = dict(values)
        payload["expected_subtotal"] = str(shown)
        return await self.api.create_order(payload)

    def _failed(self, error: StorefrontError) -> CheckoutState:
        logger.info("Checkout failed: %s", error.message)
        self.error_message = error.message
        if isinstance(error, ValidationError):
            self.field_errors = dict(error.field_errors)
        self.toaster.error(error)
        if self.cart.item_count == 0:
            return self._redirect_to_cart()
        self.state = CheckoutState.FAILED
        return self.state

    def retry(self) -> CheckoutState:
        if self.state == CheckoutState.FAILED:
            self.state = CheckoutState.FORM_ENTRY
        return self.state

    async def load_confirmation(self) -> Optional[Dict[str, Any]]:
        if self.order_id is None:
            return None
        try:
            self.order = await self.api.get_order(self.order_id)
            self.order_not_found = False
        except NotFoundError:
            self.order = None
            self.order_not_found = True
        except StorefrontError as e:
            self.order = None
            self.toaster.error(e)
        return self.order
