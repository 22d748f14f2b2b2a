"""
AI-backed query parser.

Asks the AI gateway for a structured intent and maps it onto ParsedQuery.
Any failure (no backend, timeout, malformed JSON) falls back to the
deterministic regex parser; this parser never raises for those reasons.
"""

import asyncio
import logging
import math
from dataclasses import replace
from typing import Any, Optional

from property_scout.ai.gateway import AIGateway
from property_scout.ai.json_extract import extract_json_object
from property_scout.classification.rules import QUERY_PROPERTY_TYPE_RULES
from property_scout.config.settings import AIConfig
from property_scout.error_handling.exceptions import AIBackendUnavailable, MalformedAIResponse
from property_scout.models import ListingType, ParsedQuery, PriceIntent, PriceIntentType
from property_scout.pricing.currency import SUPPORTED_CURRENCIES
from property_scout.query.interpreter import parse_query


logger = logging.getLogger(__name__)

PARSE_SYSTEM_PROMPT = """You extract property search criteria from user queries about real estate in Portugal.
Return ONLY valid JSON:
{
  "parsedIntent": {
    "propertyType": "apartment" | "house" | "land" | "room" | "commercial" | null,
    "priceIntent": {"type": "none" | "under" | "over" | "between" | "around", "min": number | null, "max": number | null, "target": number | null, "currency": "EUR" | "USD" | "GBP" | null},
    "listingIntent": "sale" | "rent" | null,
    "location": string | null,
    "bedrooms": number | null,
    "areaSqm": number | null
  }
}
Amounts are plain numbers: "30k" is 30000. Use null for anything not stated."""

_KNOWN_PROPERTY_TYPES = {rule.label for rule in QUERY_PROPERTY_TYPE_RULES}


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _price_intent(data: Any) -> PriceIntent:
    if not isinstance(data, dict):
        return PriceIntent.none()

    kind = str(data.get("type") or "none").lower()
    currency = data.get("currency") or None
    if currency is not None:
        if not isinstance(currency, str) or currency.strip().upper() not in SUPPORTED_CURRENCIES:
            raise MalformedAIResponse(f"Unexpected currency: {currency!r}")
        currency = currency.strip().upper()
    low, high, target = _number(data.get("min")), _number(data.get("max")), _number(data.get("target"))

    if kind == PriceIntentType.UNDER.value and high is not None:
        return PriceIntent.under(high, currency)
    if kind == PriceIntentType.OVER.value and low is not None:
        return PriceIntent.over(low, currency)
    if kind == PriceIntentType.BETWEEN.value and low is not None and high is not None:
        return PriceIntent.between(low, high, currency)
    if kind in (PriceIntentType.AROUND.value, "exact") and target is not None:
        return PriceIntent.around(target, currency)
    if kind != PriceIntentType.NONE.value:
        raise MalformedAIResponse(f"Incomplete price intent: {data}")
    return PriceIntent.none()


def map_parsed_intent(raw: str, payload: Any) -> ParsedQuery:
    """
    Map the model's ``parsedIntent`` object onto a ParsedQuery.

    Values of the wrong type are dropped; a price intent in a currency
    without a rate is rejected, since the user never stated it.

    Raises:
        MalformedAIResponse: If the payload does not have the expected shape
    """
    if not isinstance(payload, dict):
        raise MalformedAIResponse("Expected a JSON object")
    intent = payload.get("parsedIntent", payload)
    if not isinstance(intent, dict):
        raise MalformedAIResponse("parsedIntent is not an object")

    try:
        return _to_parsed_query(raw, intent)
    except MalformedAIResponse:
        raise
    except Exception as e:
        raise MalformedAIResponse(f"Unusable parsedIntent: {type(e).__name__}: {e}") from e


def _to_parsed_query(raw: str, intent: dict) -> ParsedQuery:
    property_type = intent.get("propertyType")
    if not isinstance(property_type, str) or property_type not in _KNOWN_PROPERTY_TYPES:
        property_type = None

    listing_intent = intent.get("listingIntent")
    listing_type = None
    if isinstance(listing_intent, str) and listing_intent in ("sale", "rent"):
        listing_type = ListingType(listing_intent)

    beds = _number(intent.get("bedrooms"))
    location = intent.get("location")
    return ParsedQuery(
        raw=raw,
        price_intent=_price_intent(intent.get("priceIntent")),
        property_type=property_type,
        listing_intent=listing_type,
        location_text=location.strip() if isinstance(location, str) and location.strip() else None,
        beds=int(beds) if beds is not None else None,
        area_sqm=_number(intent.get("areaSqm")),
    )


class AIQueryParser:
    """Query parser that upgrades the regex parser with an AI call."""

    def __init__(self, gateway: AIGateway, config: Optional[AIConfig] = None):
        self.gateway = gateway
        self.config = config or AIConfig()

    async def parse(self, query: str) -> ParsedQuery:
        """
        Parse a query with the AI gateway, falling back to regex parsing.

        Fields the model leaves empty are filled from the regex result.
        """
        fallback = parse_query(query)
        try:
            text = await asyncio.wait_for(
                self.gateway.complete(query, PARSE_SYSTEM_PROMPT),
                timeout=self.config.parse_timeout_seconds,
            )
            parsed = map_parsed_intent(fallback.raw, extract_json_object(text))
        except (AIBackendUnavailable, MalformedAIResponse, asyncio.TimeoutError) as e:
            logger.warning(f"AI query parsing failed, using regex parser: {type(e).__name__}: {e}")
            return fallback

        return replace(
            parsed,
            price_intent=(
                parsed.price_intent
                if parsed.price_intent.kind != PriceIntentType.NONE
                else fallback.price_intent
            ),
            property_type=parsed.property_type or fallback.property_type,
            listing_intent=parsed.listing_intent or fallback.listing_intent,
            location_text=parsed.location_text or fallback.location_text,
            beds=parsed.beds if parsed.beds is not None else fallback.beds,
            area_sqm=parsed.area_sqm if parsed.area_sqm is not None else fallback.area_sqm,
        )
