# candleshop/utils/shipping.py
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

from candleshop.config import settings
from candleshop.utils.pricing import Amount, CENT, MAX_AMOUNT, to_decimal, to_money

logger = logging.getLogger(__name__)

# Setting keys read by the calculator
SHIPPING_COST_KEY = "shippingCost"
FREE_SHIPPING_THRESHOLD_KEY = "freeShippingThreshold"
# Older installations stored the flat rate under this name
LEGACY_SHIPPING_COST_KEY = "standardShippingRate"


@dataclass(frozen=True)
class ShippingQuote:
    subtotal: Decimal
    flat_rate: Decimal
    free_threshold: Decimal
    shipping: Decimal
    is_free: bool
    # Only meaningful while the threshold is active and not yet reached
    remaining: Decimal
    progress: float

    @property
    def total(self) -> Decimal:
        return (self.subtotal + self.shipping).quantize(CENT)

    @property
    def free_shipping_enabled(self) -> bool:
        return self.free_threshold > 0


def parse_amount(raw: Optional[str], default: Amount) -> Decimal:
    """Parses a stored setting value, falling back to `default` for anything unusable."""
    if raw is None or str(raw).strip() == "":
        return to_money(default)
    try:
        amount = to_money(raw)
    except ValueError:
        amount = None
    if amount is None or amount < 0 or amount > MAX_AMOUNT:
        logger.warning("Ignoring unusable shipping setting %r, using %s", raw, default)
        return to_money(default)
    return amount


def calculate_shipping(subtotal: Amount, flat_rate: Amount, free_threshold: Amount) -> ShippingQuote:
    # Compared unrounded, so 49.995 stays below a threshold of 50
    exact = to_decimal(subtotal)
    subtotal = to_money(exact)
    flat_rate = to_money(flat_rate)
    free_threshold = to_money(free_threshold)

    # Threshold of zero (or below) switches free shipping off
    if free_threshold <= 0:
        return ShippingQuote(
            subtotal=subtotal, flat_rate=flat_rate, free_threshold=free_threshold,
            shipping=flat_rate, is_free=flat_rate == 0,
            remaining=Decimal("0.00"), progress=0.0,
        )

    if exact >= free_threshold:
        return ShippingQuote(
            subtotal=subtotal, flat_rate=flat_rate, free_threshold=free_threshold,
            shipping=Decimal("0.00"), is_free=True,
            remaining=Decimal("0.00"), progress=100.0,
        )

    remaining = to_money(free_threshold - exact)
    progress = min(100.0, float(exact / free_threshold * 100))
    return ShippingQuote(
        subtotal=subtotal, flat_rate=flat_rate, free_threshold=free_threshold,
        shipping=flat_rate, is_free=flat_rate == 0,
        remaining=remaining, progress=round(progress, 2),
    )


def rates_from_settings(values: Mapping[str, str]):
    """Returns (flat_rate, free_threshold) from a key -> raw value mapping."""
    raw_rate = values.get(SHIPPING_COST_KEY)
    if raw_rate is None:
        raw_rate = values.get(LEGACY_SHIPPING_COST_KEY)
    flat_rate = parse_amount(raw_rate, settings.DEFAULT_SHIPPING_COST)
    free_threshold = parse_amount(values.get(FREE_SHIPPING_THRESHOLD_KEY), settings.DEFAULT_FREE_SHIPPING_THRESHOLD)
    return flat_rate, free_threshold


def quote_from_settings(subtotal: Amount, values: Mapping[str, str]) -> ShippingQuote:
    flat_rate, free_threshold = rates_from_settings(values)
    return calculate_shipping(subtotal, flat_rate, free_threshold)
