"""
Deterministic query interpreter.

Turns a free-text property query into a ParsedQuery using ordered regex
families: a ``between`` price, else ``under``, else ``over``, else a plain
price-like number. Numbers followed by area, distance or room units are never
taken as prices.
"""

import logging
import re
from typing import Optional, Tuple

from property_scout.classification.rules import (
    LISTING_INTENT_RULES,
    QUERY_PROPERTY_TYPE_RULES,
    first_label,
)
from property_scout.models import ListingType, ParsedQuery, PriceIntent
from property_scout.pricing.currency import guess_currency


logger = logging.getLogger(__name__)

_CURRENCY = r"(?:us\$|€|£|\$|eur|euros?|usd|gbp)"
_AMOUNT = r"(\d[\d.,]*)(?:\s*(k|thousand|mil(?:lion|h[õo]es)?s?)\b)?"

BETWEEN_PATTERN = re.compile(
    rf"\bbetween\s+{_CURRENCY}?\s*{_AMOUNT}\s*{_CURRENCY}?\s+(?:and|to|-)\s+{_CURRENCY}?\s*{_AMOUNT}"
)
UNDER_PATTERN = re.compile(
    rf"\b(?:under|below|max(?:imum)?|up to|less than|no more than)\s+{_CURRENCY}?\s*{_AMOUNT}"
)
OVER_PATTERN = re.compile(
    rf"\b(?:over|above|min(?:imum)?|at least|more than)\s+{_CURRENCY}?\s*{_AMOUNT}"
)
AMOUNT_PATTERN = re.compile(rf"(?<![\w.,]){_AMOUNT}")

# Units that make a number something other than a price.
_NON_PRICE_UNIT = re.compile(
    r"\s*(?:m2|m²|sqm|sq\.?\s?m|square|metros|hectares?|ha\b|km|kms|kilomet|miles?\b"
    r"|bed|bath|quartos?|rooms?|wc|years?|anos|min\b|minutes)"
)
_CURRENCY_BEFORE = re.compile(rf"{_CURRENCY}\s*$")
_CURRENCY_AFTER = re.compile(rf"\s*{_CURRENCY}(?![a-z])")

LOCATION_PATTERN = re.compile(
    r"\b(?i:in|near|around|at|close to)\s+(?i:the\s+)?"
    r"([^\W\d_][\w'-]*(?:\s+(?:da|de|do|dos|das)\s+[^\W\d_][\w'-]*|\s+[A-Z][\w'-]*)?)"
)
_LOCATION_STOPWORDS = {
    "portugal", "least", "most", "the", "a", "an", "my", "our", "total", "max", "min", "all",
}

BEDS_PATTERN = re.compile(r"\bt([0-9])\b|\b(\d+)\s*-?\s*(?:bed(?:room)?s?|quartos?)\b")
AREA_PATTERN = re.compile(
    r"(\d[\d.,]*)\s*(?:m2|m²|sqm|sq\.?\s?m\b|square met(?:er|re)s?|metros(?: quadrados)?)"
)


def number_from(value: str) -> float:
    """Parse "30.000", "30,000" or "1 500" style numbers."""
    normalized = re.sub(r"[,\s]", "", value)
    normalized = re.sub(r"\.(?=\d{3})", "", normalized)
    normalized = normalized.rstrip(".")
    return float(normalized)


def _scaled(number: str, suffix: Optional[str]) -> float:
    value = number_from(number)
    if suffix:
        if suffix.startswith("mil"):
            value *= 1_000_000
        else:
            value *= 1_000
    return value


def _followed_by_unit(text: str, end: int) -> bool:
    return bool(_NON_PRICE_UNIT.match(text, end))


def _currency_adjacent(text: str, start: int, end: int) -> bool:
    return bool(_CURRENCY_BEFORE.search(text[:start]) or _CURRENCY_AFTER.match(text, end))


def _search_price(pattern: re.Pattern, text: str) -> Optional[re.Match]:
    for match in pattern.finditer(text):
        if not _followed_by_unit(text, match.end()):
            return match
    return None


def _plain_price(text: str) -> Optional[float]:
    for match in AMOUNT_PATTERN.finditer(text):
        if _followed_by_unit(text, match.end()):
            continue
        try:
            value = _scaled(match.group(1), match.group(2))
        except ValueError:
            continue
        if value >= 1000 or _currency_adjacent(text, match.start(), match.end()):
            return value
    return None


def parse_price_intent(text: str) -> PriceIntent:
    """
    Extract the price intent from a lower-cased query.

    Args:
        text: Query text

    Returns:
        PriceIntent, ``PriceIntent.none()`` if no price is mentioned
    """
    lower = text.lower()
    currency = guess_currency(text)

    try:
        match = _search_price(BETWEEN_PATTERN, lower)
        if match:
            low = _scaled(match.group(1), match.group(2))
            high = _scaled(match.group(3), match.group(4))
            return PriceIntent.between(low, high, currency)

        match = _search_price(UNDER_PATTERN, lower)
        if match:
            return PriceIntent.under(_scaled(match.group(1), match.group(2)), currency)

        match = _search_price(OVER_PATTERN, lower)
        if match:
            return PriceIntent.over(_scaled(match.group(1), match.group(2)), currency)
    except ValueError as e:
        logger.debug(f"Ignoring unparseable price in query: {e}")

    target = _plain_price(lower)
    if target is not None:
        return PriceIntent.around(target, currency)
    return PriceIntent.none()


def parse_location(text: str) -> Optional[str]:
    """Place name following "in", "near", "around", "at" or "close to"."""
    for match in LOCATION_PATTERN.finditer(text):
        location = match.group(1).strip()
        if location.lower() not in _LOCATION_STOPWORDS:
            return location
    return None


def _parse_beds(lower: str) -> Optional[int]:
    match = BEDS_PATTERN.search(lower)
    if not match:
        return None
    return int(match.group(1) or match.group(2))


def _parse_area(lower: str) -> Optional[float]:
    match = AREA_PATTERN.search(lower)
    if not match:
        return None
    try:
        return number_from(match.group(1))
    except ValueError:
        return None


def parse_query(text: str) -> ParsedQuery:
    """
    Parse a free-text property query without any AI call.

    Args:
        text: Raw user query

    Returns:
        ParsedQuery with price intent, property type, listing intent,
        location, bedroom count and area where present
    """
    raw = text.strip()
    lower = raw.lower()

    intent_label = first_label(LISTING_INTENT_RULES, lower)
    parsed = ParsedQuery(
        raw=raw,
        price_intent=parse_price_intent(raw),
        property_type=first_label(QUERY_PROPERTY_TYPE_RULES, lower),
        listing_intent=ListingType(intent_label) if intent_label else None,
        location_text=parse_location(raw),
        beds=_parse_beds(lower),
        area_sqm=_parse_area(lower),
    )
    logger.debug(f"Parsed query {raw!r}: {parsed}")
    return parsed
