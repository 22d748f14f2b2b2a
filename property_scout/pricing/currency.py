"""
Currency normalization.

All prices inside the search pipeline are held in EUR. Amounts quoted in
another supported currency are converted with static exchange rates.
"""

import re
from typing import Optional

from property_scout.config.settings import FxRates
from property_scout.error_handling.exceptions import UnsupportedCurrency
from property_scout.models import PriceIntent, PriceIntentType


SUPPORTED_CURRENCIES = ("EUR", "USD", "GBP")

_CURRENCY_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£"}

# Checked in order; "us$" must win over the bare "$".
_CURRENCY_PATTERNS = [
    ("USD", re.compile(r"\busd\b|us\$|\$|\bdollars?\b", re.IGNORECASE)),
    ("GBP", re.compile(r"\bgbp\b|£|\bpounds?\b", re.IGNORECASE)),
    ("EUR", re.compile(r"\beur\b|€|\beuros?\b", re.IGNORECASE)),
]


def to_eur(amount: float, currency: str, rates: Optional[FxRates] = None) -> float:
    """
    Convert an amount to EUR.

    Args:
        amount: Amount in the source currency
        currency: ISO code of the source currency (case-insensitive)
        rates: Exchange rates (default: FxRates())

    Returns:
        The amount in EUR

    Raises:
        UnsupportedCurrency: If the currency is not EUR, USD or GBP
    """
    rates = rates or FxRates()
    code = (currency or "").strip().upper()

    if code == "EUR":
        return amount
    if code == "USD":
        return amount * rates.usd_eur
    if code == "GBP":
        return amount * rates.gbp_eur
    raise UnsupportedCurrency(currency)


def guess_currency(text: str) -> Optional[str]:
    """Best-effort currency code from symbols or words in text, or None."""
    if not text:
        return None
    for code, pattern in _CURRENCY_PATTERNS:
        if pattern.search(text):
            return code
    return None


def format_currency(amount: float, currency: str = "EUR") -> str:
    """Format an amount for display, e.g. ``€18,500``."""
    symbol = _CURRENCY_SYMBOLS.get(currency.upper(), currency.upper() + " ")
    return f"{symbol}{amount:,.0f}"


def convert_intent_to_eur(
    intent: PriceIntent,
    default_currency: str = "EUR",
    rates: Optional[FxRates] = None
) -> PriceIntent:
    """
    Convert every amount of a price intent to EUR.

    The intent's own currency wins over ``default_currency``. An intent
    without a price is returned unchanged.

    Raises:
        UnsupportedCurrency: If the query states a price in an unsupported currency
    """
    if intent.kind == PriceIntentType.NONE:
        return intent

    currency = intent.currency or default_currency

    def convert(value: Optional[float]) -> Optional[float]:
        return None if value is None else to_eur(value, currency, rates)

    return PriceIntent(
        kind=intent.kind,
        min_price=convert(intent.min_price),
        max_price=convert(intent.max_price),
        target=convert(intent.target),
        currency="EUR",
    )
