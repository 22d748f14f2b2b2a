"""
Tagged-result parsing of AI relevance responses.

``parse_relevance_response`` never raises: it returns either
``ParsedRelevance`` or ``MalformedResponse``. Field names the models use
interchangeably are mapped onto RelevanceResult by ``normalize_entry``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from property_scout.ai.json_extract import extract_json_array
from property_scout.models import Listing, RelevanceResult


logger = logging.getLogger(__name__)

DEFAULT_SCORE = 50
MISSING_LISTING_SCORE = 60
MISSING_LISTING_REASONING = "Included based on search criteria"


@dataclass
class ParsedRelevance:
    results: List[RelevanceResult] = field(default_factory=list)


@dataclass
class MalformedResponse:
    reason: str


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _as_score(entry: Dict[str, Any]) -> int:
    for key in ("relevanceScore", "score"):
        value = entry.get(key)
        if isinstance(value, bool) or value is None:
            continue
        try:
            score = float(value)
        except (TypeError, ValueError):
            continue
        return int(max(0, min(100, round(score))))
    return DEFAULT_SCORE


def normalize_entry(entry: Any) -> Optional[RelevanceResult]:
    """
    Map one raw JSON entry onto RelevanceResult.

    Accepts ``isRelevant`` or ``relevant``, ``relevanceScore`` or ``score``
    (numbers or numeric strings, default 50), and ``reasoning``, ``reason``
    or ``explanation``. Entries without an id return None.
    """
    if not isinstance(entry, dict):
        return None
    listing_id = str(entry.get("id") or "").strip()
    if not listing_id:
        return None

    if "isRelevant" in entry:
        is_relevant = _as_bool(entry["isRelevant"])
    else:
        is_relevant = _as_bool(entry.get("relevant"))

    reasoning = entry.get("reasoning") or entry.get("reason") or entry.get("explanation") or "Analyzed by AI"
    return RelevanceResult(
        listing_id=listing_id,
        is_relevant=is_relevant,
        score=_as_score(entry),
        reasoning=str(reasoning),
    )


def parse_relevance_response(text: str) -> Union[ParsedRelevance, MalformedResponse]:
    """Parse a model response into relevance results."""
    entries = extract_json_array(text)
    if entries is None:
        return MalformedResponse("no JSON array found in response")

    results = [r for r in (normalize_entry(e) for e in entries) if r is not None]
    if not results:
        return MalformedResponse(f"no valid entries among {len(entries)} parsed")

    logger.debug(f"Parsed {len(results)} valid relevance results from {len(entries)} entries")
    return ParsedRelevance(results)


def merge_with_candidates(parsed: ParsedRelevance, listings: Sequence[Listing]) -> List[RelevanceResult]:
    """
    One result per candidate listing, in candidate order.

    A listing missing from the response reuses a result whose id contains,
    or is contained in, the listing id; otherwise it gets a safe default.
    """
    by_id = {r.listing_id: r for r in parsed.results}
    merged = []
    for listing in listings:
        result = by_id.get(listing.id)
        if result is None:
            result = next(
                (r for r in parsed.results if r.listing_id in listing.id or listing.id in r.listing_id),
                None,
            )
        if result is None:
            merged.append(RelevanceResult(listing.id, True, MISSING_LISTING_SCORE, MISSING_LISTING_REASONING))
        else:
            merged.append(RelevanceResult(listing.id, result.is_relevant, result.score, result.reasoning))
    return merged
