"""Query interpretation: deterministic regex parser and AI-backed upgrade."""

from .interpreter import parse_query, parse_price_intent, parse_location, number_from
from .ai_parser import AIQueryParser

__all__ = [
    'parse_query',
    'parse_price_intent',
    'parse_location',
    'number_from',
    'AIQueryParser',
]
