"""Tests for AI-backed query parsing with regex fallback."""

import asyncio
import json

import pytest

from property_scout.ai.gateway import AIGateway
from property_scout.config.settings import RetryConfig, ScoutSettings
from property_scout.error_handling.exceptions import MalformedAIResponse
from property_scout.models import ListingType, MatchType, PriceIntent, SearchRequest, UserLocation
from property_scout.query.ai_parser import AIQueryParser, map_parsed_intent
from property_scout.query.interpreter import parse_query
from property_scout.ranking import RelevanceRanker
from property_scout.search import SearchOrchestrator
from tests.fakes import FakeBackend, StaticSource, make_listing


NO_WAIT = RetryConfig(max_retries=1, initial_timeout_ms=1000, backoff_base_seconds=0)


def parser_with(*responses):
    backend = FakeBackend("groq", list(responses))
    return AIQueryParser(AIGateway(backends=[backend], retry_config=NO_WAIT)), backend


def test_ai_intent_is_used():
    response = json.dumps({"parsedIntent": {
        "propertyType": "land",
        "priceIntent": {"type": "under", "min": None, "max": 30000, "target": None, "currency": "usd"},
        "listingIntent": None,
        "location": "Sintra",
        "bedrooms": None,
        "areaSqm": 1000,
    }})
    parser, backend = parser_with(f"Here is the result:\n```json\n{response}\n```")

    parsed = asyncio.run(parser.parse("terreno barato perto de Sintra"))

    assert parsed.property_type == "land"
    assert parsed.price_intent == PriceIntent.under(30000, "USD")
    assert parsed.location_text == "Sintra"
    assert parsed.area_sqm == 1000
    assert backend.last_messages[-1]["content"] == "terreno barato perto de Sintra"


def test_missing_fields_are_filled_from_regex_parse():
    query = "T2 for rent in Lisbon under 1500"
    parser, _ = parser_with(json.dumps({"parsedIntent": {"propertyType": "apartment"}}))

    parsed = asyncio.run(parser.parse(query))

    assert parsed.property_type == "apartment"
    assert parsed.price_intent == PriceIntent.under(1500)
    assert parsed.listing_intent == ListingType.RENT
    assert parsed.beds == 2


@pytest.mark.parametrize("response", [
    "I can't help with that.",
    "[1, 2, 3]",
    json.dumps({"parsedIntent": "land"}),
    json.dumps({"parsedIntent": {"priceIntent": {"type": "under", "max": None}}}),
])
def test_malformed_responses_fall_back_to_regex(response):
    query = "land under 30000 near Lisbon"
    parser, _ = parser_with(response)

    assert asyncio.run(parser.parse(query)) == parse_query(query)


def test_backend_failure_falls_back_to_regex():
    query = "apartment in Porto"
    parser, _ = parser_with(ValueError("boom"))

    assert asyncio.run(parser.parse(query)) == parse_query(query)


def test_map_parsed_intent_ignores_unknown_values():
    parsed = map_parsed_intent("q", {
        "propertyType": "castle",
        "listingIntent": "lease",
        "location": "  ",
        "bedrooms": "3",
        "priceIntent": {"type": "between", "min": 200000, "max": 100000},
    })

    assert parsed.property_type is None
    assert parsed.listing_intent is None
    assert parsed.location_text is None
    assert parsed.beds == 3
    assert parsed.price_intent == PriceIntent.between(100000, 200000)


def test_map_parsed_intent_rejects_non_objects():
    with pytest.raises(MalformedAIResponse):
        map_parsed_intent("q", None)


@pytest.mark.parametrize("intent", [
    {"propertyType": ["land"]},
    {"listingIntent": {"kind": "sale"}},
    {"bedrooms": 1e999},
    {"priceIntent": {"type": "under", "max": 30000, "currency": 978}},
    {"priceIntent": {"type": "under", "max": 30000, "currency": "JPY"}},
    {"priceIntent": {"type": ["under"], "max": 30000}},
])
def test_oddly_typed_fields_never_escape_the_parser(intent):
    query = "land under 30000 near Lisbon"
    parser, _ = parser_with(json.dumps({"parsedIntent": intent}))

    parsed = asyncio.run(parser.parse(query))

    assert parsed.property_type == "land"
    assert parsed.price_intent == PriceIntent.under(30000)


def test_non_finite_numbers_are_dropped():
    parsed = map_parsed_intent("q", {"bedrooms": float("inf"), "areaSqm": float("nan")})

    assert parsed.beds is None
    assert parsed.area_sqm is None


@pytest.mark.parametrize("currency", [978, "JPY", ["EUR"]])
def test_currency_without_a_rate_is_rejected(currency):
    with pytest.raises(MalformedAIResponse):
        map_parsed_intent("q", {"priceIntent": {"type": "under", "max": 100, "currency": currency}})


def test_search_survives_oddly_typed_ai_intent():
    backend = FakeBackend("groq", [json.dumps({"parsedIntent": {
        "propertyType": ["land"],
        "bedrooms": 1e999,
        "priceIntent": {"type": "under", "max": 30000, "currency": 5},
    }})])
    gateway = AIGateway(backends=[backend], retry_config=NO_WAIT)
    source = StaticSource([make_listing(
        "a", "Terreno para construção em Loures", 28000, lat=38.75, lng=-9.15, city="Loures",
    )])
    orchestrator = SearchOrchestrator(
        [source],
        ranker=RelevanceRanker(None),
        query_parser=AIQueryParser(gateway),
        settings=ScoutSettings(),
    )

    response = asyncio.run(orchestrator.run_search(
        SearchRequest("land under 30000 near Lisbon", UserLocation("Lisbon", 38.7223, -9.1393))
    ))

    assert response.match_type == MatchType.EXACT
    assert [l.id for l in response.listings] == ["a"]
