# candleshop/utils/pricing.py
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Tuple, Union

CENT = Decimal("0.01")
# Largest value a Numeric(10, 2) column holds
MAX_AMOUNT = Decimal("99999999.99")

Amount = Union[Decimal, int, float, str]


def to_decimal(value: Amount) -> Decimal:
    """Parses an amount without rounding it. Raises ValueError for anything non-numeric."""
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, float):
        # go through str so 0.1 stays 0.1 instead of its binary expansion
        d = Decimal(repr(value))
    else:
        try:
            d = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Not a valid amount: {value!r}")
    if not d.is_finite():
        raise ValueError(f"Not a valid amount: {value!r}")
    return d


def to_money(value: Amount) -> Decimal:
    """Converts a price coming from the DB, JSON or a form into a 2-place Decimal."""
    d = to_decimal(value)
    try:
        return d.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # more digits than the decimal context can hold
        raise ValueError(f"Amount out of range: {value!r}")


def line_total(price: Amount, quantity: int) -> Decimal:
    return to_money(to_money(price) * quantity)


def cart_subtotal(lines: Iterable[Tuple[Amount, int]]) -> Decimal:
    """Sum of price x quantity over (price, quantity) pairs.

    Every line is rounded before summing, so the result does not depend on
    the order in which lines were added or changed.
    """
    total = Decimal("0.00")
    for price, quantity in lines:
        total += line_total(price, quantity)
    return total.quantize(CENT)
