"""
Property-based tests for currency normalization.
"""

import pytest
from hypothesis import given, settings, strategies as st

from property_scout.config.settings import FxRates
from property_scout.error_handling.exceptions import UnsupportedCurrency
from property_scout.models import PriceIntent, PriceIntentType
from property_scout.pricing.currency import (
    SUPPORTED_CURRENCIES,
    convert_intent_to_eur,
    format_currency,
    guess_currency,
    to_eur,
)


amounts = st.floats(min_value=0, max_value=1e9, allow_nan=False, allow_infinity=False)
unsupported_codes = st.text(alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZ", min_size=3, max_size=3).filter(
    lambda code: code not in SUPPORTED_CURRENCIES
)


@given(amount=amounts)
@settings(max_examples=100)
def test_eur_identity(amount):
    """
    **Feature: property-scout, Property 1: EUR conversion is the identity**

    For any amount, converting from EUR returns the amount unchanged.
    """
    assert to_eur(amount, "EUR") == amount


@given(amount=amounts, code=unsupported_codes)
@settings(max_examples=100)
def test_unsupported_currency_raises(amount, code):
    """
    **Feature: property-scout, Property 2: Unsupported currencies are rejected**

    For any currency code outside EUR, USD and GBP, conversion raises
    UnsupportedCurrency.
    """
    with pytest.raises(UnsupportedCurrency):
        to_eur(amount, code)


def test_usd_conversion_uses_static_rate():
    assert to_eur(100, "USD") == pytest.approx(92)
    assert to_eur(100, "gbp") == pytest.approx(117)
    assert to_eur(100, "USD", FxRates(usd_eur=0.5)) == pytest.approx(50)


@pytest.mark.parametrize("text,expected", [
    ("house under $200k", "USD"),
    ("flat for 300000 USD", "USD"),
    ("cottage under £150,000", "GBP"),
    ("land under 30000€", "EUR"),
    ("plot for 20000 euros", "EUR"),
    ("land under 30000", None),
    ("", None),
])
def test_guess_currency(text, expected):
    assert guess_currency(text) == expected


def test_format_currency():
    assert format_currency(18500) == "€18,500"
    assert format_currency(1350.4, "USD") == "$1,350"


def test_convert_intent_uses_intent_currency_first():
    intent = PriceIntent.under(100000, currency="USD")

    converted = convert_intent_to_eur(intent, default_currency="GBP")

    assert converted.kind == PriceIntentType.UNDER
    assert converted.max_price == pytest.approx(92000)
    assert converted.currency == "EUR"


def test_convert_intent_falls_back_to_default_currency():
    converted = convert_intent_to_eur(PriceIntent.between(100, 200), default_currency="GBP")

    assert converted.min_price == pytest.approx(117)
    assert converted.max_price == pytest.approx(234)


def test_convert_intent_rejects_stated_unsupported_currency():
    with pytest.raises(UnsupportedCurrency):
        convert_intent_to_eur(PriceIntent.around(50000), default_currency="JPY")


def test_convert_intent_without_price_is_unchanged():
    intent = PriceIntent.none()

    assert convert_intent_to_eur(intent, default_currency="JPY") is intent
