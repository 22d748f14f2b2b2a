"""Tests for JSON extraction and defensive relevance parsing."""

import pytest

from property_scout.ai.json_extract import extract_json_array, extract_json_object
from property_scout.models import RelevanceResult
from property_scout.ranking.parser import (
    MalformedResponse,
    ParsedRelevance,
    merge_with_candidates,
    normalize_entry,
    parse_relevance_response,
)
from tests.fakes import make_listing


def test_extract_array_from_fenced_block():
    text = 'Here you go:\n```json\n[{"id": "a"}]\n```\nAnything else?'

    assert extract_json_array(text) == [{"id": "a"}]


def test_extract_array_by_bracket_balance():
    text = 'Sure! [{"id": "a", "reasoning": "has [brackets] inside"}] Hope that helps.'

    assert extract_json_array(text) == [{"id": "a", "reasoning": "has [brackets] inside"}]


def test_extract_skips_invalid_spans():
    text = "[not json] then [1, 2]"

    assert extract_json_array(text) == [1, 2]


def test_extract_object():
    text = 'Result: {"parsedIntent": {"propertyType": "land"}} done'

    assert extract_json_object(text) == {"parsedIntent": {"propertyType": "land"}}
    assert extract_json_object("no json here") is None
    assert extract_json_array("") is None


def test_normalize_alternate_field_names():
    result = normalize_entry({"id": "a", "relevant": "true", "score": "82.4", "reason": "good fit"})

    assert result == RelevanceResult("a", True, 82, "good fit")


def test_normalize_defaults_and_clamping():
    assert normalize_entry({"id": "a", "isRelevant": True, "relevanceScore": 250}).score == 100
    assert normalize_entry({"id": "a", "isRelevant": True, "relevanceScore": -5}).score == 0

    result = normalize_entry({"id": "a", "isRelevant": True})
    assert result.score == 50
    assert result.reasoning == "Analyzed by AI"


def test_normalize_missing_relevance_flag_is_not_relevant():
    assert normalize_entry({"id": "a", "relevanceScore": 90}).is_relevant is False


@pytest.mark.parametrize("entry", [{"isRelevant": True}, {"id": ""}, "a", None, 3])
def test_normalize_rejects_entries_without_id(entry):
    assert normalize_entry(entry) is None


def test_parse_response_is_tagged():
    parsed = parse_relevance_response('[{"id": "a", "isRelevant": false, "relevanceScore": 20, "reasoning": "land"}]')

    assert isinstance(parsed, ParsedRelevance)
    assert parsed.results == [RelevanceResult("a", False, 20, "land")]


@pytest.mark.parametrize("text", ["", "I could not analyze these listings.", "[]", '[{"foo": 1}]'])
def test_parse_response_malformed(text):
    assert isinstance(parse_relevance_response(text), MalformedResponse)


def test_merge_gives_missing_listings_safe_default():
    listings = [make_listing("a", "Flat", 100000), make_listing("b", "House", 200000)]
    parsed = ParsedRelevance([RelevanceResult("a", False, 15, "not a match")])

    merged = merge_with_candidates(parsed, listings)

    assert merged == [
        RelevanceResult("a", False, 15, "not a match"),
        RelevanceResult("b", True, 60, "Included based on search criteria"),
    ]


def test_merge_matches_truncated_ids():
    listings = [make_listing("idealista-12345", "Flat", 100000)]
    parsed = ParsedRelevance([RelevanceResult("12345", True, 77, "close match")])

    merged = merge_with_candidates(parsed, listings)

    assert merged == [RelevanceResult("idealista-12345", True, 77, "close match")]
