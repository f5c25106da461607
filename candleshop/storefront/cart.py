# candleshop/storefront/cart.py
import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Set

from candleshop.config import settings
from candleshop.storefront.api import ShopApiClient
from candleshop.storefront.errors import (
    ConflictError, NotFoundError, StorefrontError, ValidationError,
)
from candleshop.storefront.notifications import Toaster
from candleshop.utils.pricing import cart_subtotal, line_total, to_money
from candleshop.utils.shipping import ShippingQuote, calculate_shipping, rates_from_settings

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    id: int
    product_id: int
    name: str
    price: Decimal
    quantity: int
    stock: int
    image_url: Optional[str] = None
    scent_id: Optional[int] = None
    scent_name: Optional[str] = None
    color_id: Optional[int] = None
    color_name: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return line_total(self.price, self.quantity)

    @classmethod
    def from_api(cls, data: Dict) -> "CartLine":
        return cls(
            id=data["id"],
            product_id=data["product_id"],
            name=data["name"],
            price=to_money(data["price"]),
            quantity=int(data["quantity"]),
            stock=int(data["stock"]),
            image_url=data.get("image_url"),
            scent_id=data.get("scent_id"),
            scent_name=data.get("scent_name"),
            color_id=data.get("color_id"),
            color_name=data.get("color_name"),
        )


class CartStateManager:
    """Local cart cache kept in step with ``/api/cart``.

    Quantity changes are applied to the visible line immediately and sent to
    the server after a per-item debounce delay. ``_acked`` holds the last
    quantity the server confirmed for each line; a failed write rolls the
    line back to it. ``_pending`` holds the newest value still waiting to be
    sent, so only the last write inside the debounce window reaches the API.
    """

    def __init__(self, api: ShopApiClient, toaster: Optional[Toaster] = None,
                 debounce: Optional[float] = None):
        self.api = api
        self.toaster = toaster
        self.debounce = settings.CART_SYNC_DEBOUNCE_SECONDS if debounce is None else debounce

        self._lines: Dict[int, CartLine] = {}
        self._acked: Dict[int, int] = {}
        self._pending: Dict[int, int] = {}
        self._timers: Dict[int, asyncio.Task] = {}
        self._locks: Dict[int, asyncio.Lock] = {}
        self._inflight: Dict[int, int] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._rates = (to_money(settings.DEFAULT_SHIPPING_COST),
                       to_money(settings.DEFAULT_FREE_SHIPPING_THRESHOLD))
        self._closed = False
        self.sync_errors: List[StorefrontError] = []

    # ---- Lifecycle ----
    async def start(self):
        self._closed = False
        await self.refresh()
        try:
            self._rates = rates_from_settings(await self.api.get_shipping_settings())
        except StorefrontError as e:
            logger.warning("Using default shipping rates: %s", e.message)

    async def close(self):
        self._closed = True
        self._timers.clear()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    # ---- Derived state ----
    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def get_line(self, item_id: int) -> Optional[CartLine]:
        return self._lines.get(item_id)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    @property
    def cart_total(self) -> Decimal:
        return cart_subtotal((line.price, line.quantity) for line in self._lines.values())

    @property
    def shipping_quote(self) -> ShippingQuote:
        if not self._lines:
            # Nothing to ship
            return calculate_shipping(Decimal("0"), Decimal("0"), self._rates[1])
        return calculate_shipping(self.cart_total, *self._rates)

    @property
    def is_updating(self) -> bool:
        return bool(self._pending or self._inflight)

    def line_is_updating(self, item_id: int) -> bool:
        return item_id in self._pending or item_id in self._inflight

    # ---- Server sync ----
    def _replace_lines(self, items: List[Dict]):
        self._lines = {}
        self._acked = {}
        for data in items:
            line = CartLine.from_api(data)
            self._lines[line.id] = line
            self._acked[line.id] = line.quantity

    async def refresh(self):
        """Reload the cart from the server, dropping unsent local changes."""
        for task in self._timers.values():
            task.cancel()
        self._timers.clear()
        self._pending.clear()
        cart = await self.api.get_cart()
        if self._closed:
            return
        self._replace_lines(cart["items"])
        self._prune_locks()

    async def server_subtotal(self) -> Decimal:
        cart = await self.api.get_cart()
        return to_money(cart["subtotal"])

    def _notify(self, error: StorefrontError):
        if self.toaster is not None:
            self.toaster.error(error)

    # ---- Operations ----
    async def add_to_cart(self, product_id: int, quantity: int = 1,
                          scent_id: Optional[int] = None, color_id: Optional[int] = None) -> CartLine:
        try:
            product = await self.api.get_product(product_id)
            self._check_addable(product, quantity, scent_id, color_id)
            data = await self.api.add_cart_item(product_id, quantity, scent_id, color_id)
        except StorefrontError as e:
            self._notify(e)
            raise

        line = CartLine.from_api(data)
        if not self._closed:
            self._lines[line.id] = line
            self._acked[line.id] = line.quantity
            self._pending.pop(line.id, None)
        logger.debug("Added product %s x%s to cart (line %s)", product_id, quantity, line.id)
        return line

    def _check_addable(self, product: Dict, quantity: int,
                       scent_id: Optional[int], color_id: Optional[int]):
        stock = int(product.get("stock", 0))
        if quantity < 1:
            raise ValidationError("Invalid quantity", {"quantity": "Quantity must be at least 1"})
        if quantity > stock:
            raise ValidationError(
                f"Only {stock} in stock", {"quantity": f"Quantity cannot exceed {stock}"}
            )
        if product.get("requires_scent") and scent_id is None:
            raise ConflictError("Please choose a scent for this product")
        if product.get("requires_color") and color_id is None:
            raise ConflictError("Please choose a color for this product")

        # Same product and variant merges into the existing line
        for line in self._lines.values():
            if (line.product_id == product["id"] and line.scent_id == scent_id
                    and line.color_id == color_id and line.quantity + quantity > stock):
                raise ConflictError(
                    f"Cannot add {quantity} more, only {stock} in stock and {line.quantity} already in cart"
                )

    def update_quantity(self, item_id: int, new_quantity: int) -> CartLine:
        """Apply a quantity change locally and schedule the server write."""
        line = self._lines.get(item_id)
        if line is None:
            raise NotFoundError("Cart item not found")
        clamped = max(1, min(int(new_quantity), line.stock))
        if clamped == line.quantity:
            return line

        line.quantity = clamped
        self._pending[item_id] = clamped
        timer = self._timers.pop(item_id, None)
        if timer is not None:
            timer.cancel()
        task = asyncio.get_running_loop().create_task(self._sync_later(item_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._timers[item_id] = task
        return line

    async def _sync_later(self, item_id: int):
        await asyncio.sleep(self.debounce)
        self._timers.pop(item_id, None)
        await self._send(item_id)

    async def _send(self, item_id: int):
        lock = self._locks.setdefault(item_id, asyncio.Lock())
        async with lock:
            desired = self._pending.get(item_id)
            if desired is None or self._closed:
                return
            if desired == self._acked.get(item_id):
                # Changed and changed back before the timer fired
                self._pending.pop(item_id, None)
                return

            self._inflight[item_id] = desired
            try:
                data = await self.api.update_cart_item(item_id, desired)
            except StorefrontError as e:
                if not self._closed:
                    self._rollback(item_id, desired, e)
                return
            finally:
                self._inflight.pop(item_id, None)

            if self._closed:
                return
            line = self._lines.get(item_id)
            if line is None:
                # Removed while the write was in flight; keep the ack in case the removal fails
                if item_id in self._acked:
                    self._acked[item_id] = int(data["quantity"])
                return
            self._acked[item_id] = int(data["quantity"])
            if self._pending.get(item_id) == desired:
                self._pending.pop(item_id, None)
                line.quantity = int(data["quantity"])
            line.price = to_money(data["price"])
            line.stock = int(data["stock"])

    def _rollback(self, item_id: int, desired: int, error: StorefrontError):
        if item_id not in self._lines:
            # Removed while the write was in flight, nothing to roll back
            logger.debug("Dropping failed update of removed cart line %s", item_id)
            return
        logger.warning("Cart line %s update to %s failed: %s", item_id, desired, error.message)
        self.sync_errors.append(error)
        self._notify(error)
        if isinstance(error, NotFoundError):
            # Removed on the server in the meantime
            self._lines.pop(item_id, None)
            self._acked.pop(item_id, None)
            self._pending.pop(item_id, None)
            return
        if self._pending.get(item_id) != desired:
            # A newer value is already queued
            return
        self._pending.pop(item_id, None)
        line = self._lines.get(item_id)
        if line is not None and item_id in self._acked:
            line.quantity = self._acked[item_id]

    async def flush(self):
        """Send every pending quantity change now and wait for the answers."""
        timers = list(self._timers.items())
        self._timers.clear()
        for _, task in timers:
            task.cancel()
        await asyncio.gather(*(task for _, task in timers), return_exceptions=True)
        await asyncio.gather(*(self._send(item_id) for item_id in list(self._pending)))

    async def remove_from_cart(self, item_id: int):
        line = self._lines.pop(item_id, None)
        if line is None:
            return
        timer = self._timers.pop(item_id, None)
        if timer is not None:
            timer.cancel()
        pending = self._pending.pop(item_id, None)
        # Waits for a quantity write already in flight for this line
        async with self._locks.setdefault(item_id, asyncio.Lock()):
            try:
                await self.api.remove_cart_item(item_id)
            except StorefrontError as e:
                if not self._closed:
                    line.quantity = self._acked.get(item_id, line.quantity)
                    self._lines[item_id] = line
                logger.warning("Removing cart line %s failed (pending %s): %s", item_id, pending, e.message)
                self._notify(e)
                raise
        self._acked.pop(item_id, None)
        self._locks.pop(item_id, None)

    async def clear(self):
        try:
            await self.api.clear_cart()
        except StorefrontError as e:
            self._notify(e)
            raise
        for task in self._timers.values():
            task.cancel()
        self._timers.clear()
        self._pending.clear()
        self._lines.clear()
        self._acked.clear()
        self._prune_locks()

    def _prune_locks(self):
        # Locks of lines that are gone and not in use
        self._locks = {
            item_id: lock for item_id, lock in self._locks.items()
            if item_id in self._lines or lock.locked()
        }
