"""Currency normalization and price-window construction."""

from .currency import to_eur, guess_currency, format_currency, convert_intent_to_eur, SUPPORTED_CURRENCIES
from .price_range import build_strict_price_range, build_near_miss_price_range

__all__ = [
    'to_eur',
    'guess_currency',
    'format_currency',
    'convert_intent_to_eur',
    'SUPPORTED_CURRENCIES',
    'build_strict_price_range',
    'build_near_miss_price_range',
]
