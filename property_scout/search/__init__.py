"""Search pipeline: orchestration, response models, stored searches and picks."""

from .orchestrator import SearchOrchestrator, SearchStage, build_note
from .picker import ListingPicker, PickResult, parse_pick_count, sort_by_request
from .results import AppliedPriceRange, BlockedSite, RankedListing, SearchResponse
from .store import SearchStore, StoredSearch

__all__ = [
    "SearchOrchestrator",
    "SearchStage",
    "build_note",
    "ListingPicker",
    "PickResult",
    "parse_pick_count",
    "sort_by_request",
    "AppliedPriceRange",
    "BlockedSite",
    "RankedListing",
    "SearchResponse",
    "SearchStore",
    "StoredSearch",
]
