from decimal import Decimal

import pytest

from candleshop.utils.shipping import (
    calculate_shipping, parse_amount, quote_from_settings, rates_from_settings,
)


def test_below_threshold_pays_flat_rate_and_reports_progress():
    quote = calculate_shipping(Decimal("45"), Decimal("5"), Decimal("50"))
    assert quote.shipping == Decimal("5.00")
    assert quote.remaining == Decimal("5.00")
    assert quote.progress == 90.0
    assert quote.is_free is False
    assert quote.total == Decimal("50.00")


def test_reaching_threshold_exactly_ships_free():
    quote = calculate_shipping(Decimal("50"), Decimal("5"), Decimal("50"))
    assert quote.shipping == Decimal("0.00")
    assert quote.is_free
    assert quote.progress == 100.0
    assert quote.remaining == Decimal("0.00")


def test_zero_threshold_disables_free_shipping():
    quote = calculate_shipping(Decimal("500"), Decimal("5"), Decimal("0"))
    assert quote.shipping == Decimal("5.00")
    assert quote.free_shipping_enabled is False
    assert quote.progress == 0.0


@pytest.mark.parametrize("subtotal, expected", [
    ("0", "5.00"), ("49.99", "5.00"), ("50.00", "0.00"), ("120", "0.00"),
])
def test_shipping_is_zero_only_at_or_above_threshold(subtotal, expected):
    assert calculate_shipping(subtotal, "5", "50").shipping == Decimal(expected)


def test_free_flat_rate_counts_as_free_shipping():
    quote = calculate_shipping("10", "0", "50")
    assert quote.shipping == Decimal("0.00")
    assert quote.is_free


def test_parse_amount_falls_back_on_garbage():
    assert parse_amount("abc", 5) == Decimal("5.00")
    assert parse_amount("", 7.5) == Decimal("7.50")
    assert parse_amount(None, 5) == Decimal("5.00")
    assert parse_amount(" 12.5 ", 5) == Decimal("12.50")


def test_rates_prefer_current_key_over_legacy_alias():
    assert rates_from_settings({"shippingCost": "6", "standardShippingRate": "9"})[0] == Decimal("6.00")
    assert rates_from_settings({"standardShippingRate": "9"})[0] == Decimal("9.00")


def test_missing_settings_use_configured_defaults():
    flat_rate, threshold = rates_from_settings({})
    assert flat_rate == Decimal("5.00")
    assert threshold == Decimal("50.00")


def test_quote_from_settings_with_broken_threshold():
    quote = quote_from_settings("60", {"shippingCost": "4", "freeShippingThreshold": "lots"})
    # falls back to the default threshold of 50
    assert quote.shipping == Decimal("0.00")


@pytest.mark.parametrize("raw", ["1e30", "-3", "100000000"])
def test_parse_amount_falls_back_on_out_of_range_values(raw):
    assert parse_amount(raw, 5) == Decimal("5.00")


def test_huge_stored_rate_falls_back_to_defaults():
    quote = quote_from_settings("20", {"shippingCost": "1e30", "freeShippingThreshold": "1e30"})
    assert quote.flat_rate == Decimal("5.00")
    assert quote.free_threshold == Decimal("50.00")
    assert quote.shipping == Decimal("5.00")


def test_threshold_is_compared_before_rounding():
    quote = calculate_shipping("49.995", "5", "50")
    assert quote.shipping == Decimal("5.00")
    assert quote.is_free is False
    assert quote.subtotal == Decimal("50.00")
    assert quote.remaining == Decimal("0.01")
