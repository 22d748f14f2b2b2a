"""Relevance ranking: AI-backed analysis with a deterministic local fallback."""

from .ranker import RelevanceRanker
from .local_scorer import score_locally, score_listing, QueryWants, ListingTraits
from .parser import (
    ParsedRelevance,
    MalformedResponse,
    normalize_entry,
    parse_relevance_response,
    merge_with_candidates,
)
from .prompts import build_analysis_prompt, LISTING_ANALYSIS_SYSTEM_PROMPT

__all__ = [
    'RelevanceRanker',
    'score_locally',
    'score_listing',
    'QueryWants',
    'ListingTraits',
    'ParsedRelevance',
    'MalformedResponse',
    'normalize_entry',
    'parse_relevance_response',
    'merge_with_candidates',
    'build_analysis_prompt',
    'LISTING_ANALYSIS_SYSTEM_PROMPT',
]
