"""
Search orchestrator - runs the parse, strict search, near-miss escalation and
ranking pipeline for one request.
"""

import logging
import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence, Set

from property_scout.classification.rules import detect_listing_type, detect_property_type
from property_scout.config.settings import ScoutSettings, get_settings
from property_scout.error_handling.exceptions import EmbeddingFailure, ListingSourceFailure
from property_scout.filtering import ListingFilter, distance_for
from property_scout.models import (
    Listing,
    ListingType,
    MatchType,
    ParsedQuery,
    PriceRange,
    SearchContext,
    SearchRequest,
    UserLocation,
)
from property_scout.pricing.currency import convert_intent_to_eur, guess_currency
from property_scout.pricing.price_range import build_near_miss_price_range, build_strict_price_range
from property_scout.query.ai_parser import AIQueryParser
from property_scout.query.interpreter import parse_query
from property_scout.rag.context_builder import RAGService
from property_scout.ranking.ranker import RankedPair, RelevanceRanker
from property_scout.search.results import AppliedPriceRange, BlockedSite, RankedListing, SearchResponse
from property_scout.search.store import SearchStore
from property_scout.sources.base import ListingSource
from property_scout.sources.diagnostics import SiteDiagnostics


logger = logging.getLogger(__name__)


class SearchStage(str, Enum):
    PARSE = "parse"
    STRICT_SEARCH = "strict_search"
    STRICT_FILTER = "strict_filter"
    NEAR_MISS_SEARCH = "near_miss_search"
    NEAR_MISS_FILTER = "near_miss_filter"
    RANK = "rank"
    DONE = "done"


def build_note(
    match_type: MatchType,
    shown: int,
    candidates: int,
    listing_intent: Optional[ListingType] = None
) -> str:
    """
    Human-readable summary of a result set.

    Args:
        match_type: Which price window produced the results
        shown: Number of listings returned
        candidates: Number of listings that passed price/radius filtering
        listing_intent: Requested sale/rent intent, if any

    Returns:
        One-sentence note for the response
    """
    label = {ListingType.RENT: "for rent", ListingType.SALE: "for sale"}.get(listing_intent, "")
    dropped = candidates - shown

    if match_type == MatchType.EXACT:
        if dropped > 0:
            note = f"Found {shown} {label} listings (filtered from {candidates})."
        else:
            note = f"Showing {shown} {label} listings."
    elif dropped > 0:
        note = f"Analyzed {candidates} near-miss results, showing {shown} most relevant {label}."
    else:
        note = f"No exact matches. Showing {shown} closest {label} matches."

    return " ".join(note.split()).replace(" .", ".")


class SearchOrchestrator:
    """
    Orchestrate the complete search workflow.

    Strict and near-miss searches run strictly one after the other, and the
    near-miss search only runs when strict filtering leaves nothing. Listings
    are indexed for retrieval once ranking has finished, and the search store
    is written last, so a search cancelled before it returns is never stored.

    Attributes:
        sources: Listing sources, queried sequentially
        ranker: Relevance ranker
        query_parser: AI query parser, or None for the regex parser only
        rag: RAG service used to index returned listings, optional
        diagnostics: Site diagnostics used to report blocked sites, optional
        store: Store of completed searches for follow-up questions
        settings: Application settings
    """

    def __init__(
        self,
        sources: Sequence[ListingSource],
        ranker: Optional[RelevanceRanker] = None,
        query_parser: Optional[AIQueryParser] = None,
        rag: Optional[RAGService] = None,
        diagnostics: Optional[SiteDiagnostics] = None,
        store: Optional[SearchStore] = None,
        settings: Optional[ScoutSettings] = None
    ):
        self.sources = list(sources)
        self.settings = settings or get_settings()
        self.ranker = ranker or RelevanceRanker(config=self.settings.ranking_config)
        self.query_parser = query_parser
        self.rag = rag
        self.diagnostics = diagnostics
        self.store = store or SearchStore()
        self.listing_filter = ListingFilter()

    def _enter(self, search_id: str, stage: SearchStage) -> None:
        logger.info(f"[search {search_id[:8]}] {stage.value}")

    async def parse(self, query: str) -> ParsedQuery:
        if self.query_parser is not None:
            return await self.query_parser.parse(query)
        return parse_query(query)

    async def run_search(self, request: SearchRequest) -> SearchResponse:
        """
        Run one search end to end.

        Args:
            request: Query and user location

        Returns:
            Ranked, relevant listings with match metadata

        Raises:
            UnsupportedCurrency: If the query states a price in an unsupported currency
        """
        started = datetime.now()
        search_id = str(uuid.uuid4())
        rules = self.settings.match_rules
        location = request.user_location

        self._enter(search_id, SearchStage.PARSE)
        parsed = await self.parse(request.query)
        fallback_currency = guess_currency(request.query) or location.currency
        intent = convert_intent_to_eur(parsed.price_intent, fallback_currency, self.settings.fx_rates)
        strict_range = build_strict_price_range(intent, rules)
        near_miss_range = build_near_miss_price_range(intent, rules)
        logger.info(
            f"Parsed query: type={parsed.property_type} intent={parsed.listing_intent} "
            f"price={intent.kind.value} strict={strict_range} near_miss={near_miss_range}"
        )

        blocked_sites = await self._blocked_sites()

        self._enter(search_id, SearchStage.STRICT_SEARCH)
        listings = await self.search_sources(request, strict_range, parsed.property_type)

        self._enter(search_id, SearchStage.STRICT_FILTER)
        filtered = self.apply_filters(listings, strict_range, rules.strict_radius_km, location, parsed.listing_intent)
        match_type = MatchType.EXACT
        applied_range = strict_range
        applied_radius = rules.strict_radius_km

        if not filtered:
            self._enter(search_id, SearchStage.NEAR_MISS_SEARCH)
            listings = await self.search_sources(request, near_miss_range, parsed.property_type)

            self._enter(search_id, SearchStage.NEAR_MISS_FILTER)
            filtered = self.apply_filters(
                listings, near_miss_range, rules.near_miss_radius_km, location, parsed.listing_intent
            )
            match_type = MatchType.NEAR_MISS
            applied_range = near_miss_range
            applied_radius = rules.near_miss_radius_km

        self._enter(search_id, SearchStage.RANK)
        ranked = await self.ranker.rank(request.query, filtered, parsed)
        ranked_listings = self.to_ranked_listings(ranked, location)
        note = build_note(match_type, len(ranked_listings), len(filtered), parsed.listing_intent)

        await self._index_results(request, [listing for listing, _ in ranked], note)
        ai_available = await self._ai_available()

        self._enter(search_id, SearchStage.DONE)
        elapsed_ms = (datetime.now() - started).total_seconds() * 1000
        logger.info(f"[search {search_id[:8]}] {match_type.value}: {note} ({elapsed_ms:.0f} ms)")

        response = SearchResponse(
            search_id=search_id,
            match_type=match_type,
            note=note,
            applied_price_range=AppliedPriceRange.from_range(applied_range),
            applied_radius_km=applied_radius,
            listings=ranked_listings,
            blocked_sites=blocked_sites,
            ai_available=ai_available,
            search_time_ms=elapsed_ms,
        )
        # Nothing is awaited past this point.
        self.store.save(search_id, ranked_listings)
        return response

    async def search_sources(
        self,
        request: SearchRequest,
        price_range: PriceRange,
        property_type: Optional[str] = None
    ) -> List[Listing]:
        """
        Query every source in turn and merge their listings.

        A failing source counts as returning nothing.
        """
        context = SearchContext(
            query=request.query,
            price_range=price_range,
            user_location=request.user_location,
            property_type=property_type,
        )
        results: List[Listing] = []
        for source in self.sources:
            try:
                found = await source.search_listings(context)
            except Exception as e:
                failure = ListingSourceFailure(source.source_id, e)
                logger.warning(f"{failure}; continuing without it")
                continue
            logger.info(f"Source {source.source_id} returned {len(found)} listings")
            results.extend(found)

        return self.deduplicate_listings(results)

    def deduplicate_listings(self, listings: List[Listing]) -> List[Listing]:
        """
        Remove duplicate listings by ID.

        Args:
            listings: List of listings (may contain duplicates)

        Returns:
            Deduplicated list, first occurrence kept
        """
        seen_ids: Set[str] = set()
        unique_listings = []

        for listing in listings:
            if listing.id not in seen_ids:
                seen_ids.add(listing.id)
                unique_listings.append(listing)

        return unique_listings

    def apply_filters(
        self,
        listings: List[Listing],
        price_range: PriceRange,
        radius_km: float,
        location: UserLocation,
        listing_intent: Optional[ListingType]
    ) -> List[Listing]:
        filtered = self.listing_filter.filter_by_price_and_radius(
            listings, price_range, radius_km, location.lat, location.lng
        )
        if listing_intent is not None:
            before = len(filtered)
            filtered = self.listing_filter.filter_by_listing_intent(filtered, listing_intent)
            logger.info(f"Filtered by {listing_intent.value}: {before} -> {len(filtered)} listings")
        return filtered

    def to_ranked_listings(self, ranked: List[RankedPair], location: UserLocation) -> List[RankedListing]:
        return [
            RankedListing.build(
                listing,
                result,
                distance_km=distance_for(listing, location.lat, location.lng),
                listing_type=detect_listing_type(listing),
                property_type=detect_property_type(listing),
            )
            for listing, result in ranked
        ]

    async def _blocked_sites(self) -> List[BlockedSite]:
        if self.diagnostics is None or self.settings.mock_data:
            return []

        diagnoses = await self.diagnostics.blocked_sites()
        return [
            BlockedSite(
                site_id=d.site_id,
                site_name=d.site_name,
                access_method=d.access_method.value,
                requires_user_session=d.requires_user_session,
                reason=d.reason,
            )
            for d in diagnoses
        ]

    async def _index_results(self, request: SearchRequest, listings: List[Listing], note: str) -> None:
        if self.rag is None:
            return
        try:
            await self.rag.index_listings(listings)
            if request.conversation_id:
                await self.rag.store_conversation(request.conversation_id, request.query, note)
        except (EmbeddingFailure, OSError) as e:
            logger.warning(f"Could not index search results for retrieval: {e}")

    async def _ai_available(self) -> bool:
        gateway = self.ranker.gateway
        if gateway is None:
            return False
        health = await gateway.check_health()
        return health.available
