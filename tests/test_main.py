"""Tests for the command-line interface."""

import asyncio
from datetime import datetime

import pytest

from property_scout.ai.gateway import AIGateway
from property_scout.assistant import AssistantReply
from property_scout.config.settings import RetryConfig
from property_scout.main import (
    DEFAULT_LAT,
    DEFAULT_LNG,
    ask_question,
    create_argument_parser,
    format_listing,
    format_pick,
    format_reply,
    format_results,
    run_search,
)
from property_scout.models import ListingType, MatchType, RelevanceResult
from property_scout.rag import RAGService, VectorStore
from property_scout.rag.context_builder import KNOWLEDGE_HEADER, LISTINGS_COLLECTION
from property_scout.search import AppliedPriceRange, BlockedSite, PickResult, RankedListing, SearchResponse
from tests.fakes import FakeBackend, make_listing


NO_WAIT = RetryConfig(max_retries=1, initial_timeout_ms=1000, backoff_base_seconds=0)


def ranked_listing(**kwargs):
    listing = make_listing(
        "a", "Apartamento T2", 1200, city="Lisboa", beds=2, area_sqm=80.0,
        last_seen_at=datetime(2024, 1, 1),
    )
    return RankedListing.build(
        listing,
        RelevanceResult("a", True, 88, "Two bedrooms close to the metro."),
        listing_type=ListingType.RENT,
        property_type="apartment",
        **kwargs
    )


def test_search_arguments():
    args = create_argument_parser().parse_args(["search", "land under 30000", "--mock"])

    assert args.command == "search"
    assert args.query == "land under 30000"
    assert (args.lat, args.lng) == (DEFAULT_LAT, DEFAULT_LNG)
    assert args.currency == "EUR"
    assert args.mock


def test_command_is_required():
    with pytest.raises(SystemExit):
        create_argument_parser().parse_args([])


def test_format_listing():
    text = format_listing(ranked_listing(distance_km=2.4))

    assert "🏠 Apartamento T2" in text
    assert "Price: €1,200/mo" in text
    assert "Details: apartment, 2 bed, 80 m²" in text
    assert "Location: Lisboa (2.4 km away)" in text
    assert "Match: 88/100" in text


def test_format_results():
    response = SearchResponse(
        search_id="s1",
        match_type=MatchType.NEAR_MISS,
        note="No exact matches. Showing 1 closest matches.",
        applied_price_range=AppliedPriceRange(min=None, max=33000),
        applied_radius_km=50,
        listings=[ranked_listing()],
        blocked_sites=[BlockedSite(
            site_id="olx", site_name="OLX Portugal", access_method="NONE",
            requires_user_session=False, reason="No compliant access method found",
        )],
    )

    text = format_results(response)

    assert "Match: near-miss | Price: 0 - 33,000 EUR | Radius: 50 km" in text
    assert "AI unavailable" in text
    assert "OLX Portugal: No compliant access method found" in text


class FixedEmbeddings:
    backend = "fixed"
    dimension = 2

    async def generate_embedding(self, text):
        return [1.0, 0.0]

    async def generate_embeddings(self, texts):
        return [[1.0, 0.0] for _ in texts]

    async def close(self):
        pass


def offline_gateway():
    return AIGateway(backends=[FakeBackend("groq", configured=False)], retry_config=NO_WAIT)


def test_pick_and_ask_arguments():
    parser = create_argument_parser()

    search = parser.parse_args(["search", "apartment in Lisbon", "--pick", "pick 2 closest"])
    assert search.pick == "pick 2 closest"

    ask = parser.parse_args(["ask", "Do I need a NIF?", "--conversation", "c1"])
    assert (ask.command, ask.question, ask.conversation) == ("ask", "Do I need a NIF?", "c1")


def test_format_pick_and_reply():
    text = format_pick(PickResult([ranked_listing()], "Closest to the metro.", used_ai=True))
    assert "🎯 Closest to the metro." in text
    assert "🏠 Apartamento T2" in text

    assert "(answered from: knowledge base)" in format_reply(AssistantReply("No AI.", ""))


def test_search_with_pick_follow_up(tmp_path, capsys):
    rag = RAGService(VectorStore(str(tmp_path), "test"), FixedEmbeddings())

    code = asyncio.run(run_search(
        "land under 30000", DEFAULT_LAT, DEFAULT_LNG, "EUR", "Lisbon",
        mock=True, pick="pick 1", gateway=offline_gateway(), rag=rag,
    ))

    output = capsys.readouterr().out
    assert code == 0
    assert "Here are the top 1 listings from your search." in output
    assert rag.store.get_stats()[LISTINGS_COLLECTION] == 2


def test_ask_answers_from_knowledge_without_ai(tmp_path, capsys):
    rag = RAGService(VectorStore(str(tmp_path), "test"), FixedEmbeddings())

    code = asyncio.run(ask_question("Do I need a NIF?", gateway=offline_gateway(), rag=rag))

    output = capsys.readouterr().out
    assert code == 0
    assert "AI is currently unavailable" in output
    assert KNOWLEDGE_HEADER in output


def test_ask_with_ai(tmp_path, capsys):
    rag = RAGService(VectorStore(str(tmp_path), "test"), FixedEmbeddings())
    gateway = AIGateway(backends=[FakeBackend("groq", ["IMT depends on the price."])], retry_config=NO_WAIT)

    code = asyncio.run(ask_question("What is IMT?", gateway=gateway, rag=rag))

    output = capsys.readouterr().out
    assert code == 0
    assert "IMT depends on the price." in output
    assert "(answered from: AI)" in output


def test_empty_question_is_rejected():
    assert asyncio.run(ask_question("  ")) == 1
