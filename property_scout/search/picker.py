"""
Pick the best N listings out of a completed search.

Used for follow-ups such as "pick 2" or "which three are closest to the
center". The AI gateway chooses and explains when it is available; otherwise
listings are sorted by the criterion the request names.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set

from property_scout.ai.gateway import AIGateway
from property_scout.ai.json_extract import extract_json_object
from property_scout.error_handling.exceptions import AIBackendUnavailable
from property_scout.search.results import RankedListing


logger = logging.getLogger(__name__)

DEFAULT_PICK_COUNT = 2
MAX_LISTINGS_IN_PROMPT = 30
MIN_ANALYSIS_LENGTH = 50

PICK_SYSTEM_PROMPT = "You are a helpful real estate assistant that selects the best properties based on user criteria."

_COUNT_WORDS = {"one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "a few": 3, "some": 3}
_COUNT_PATTERN = re.compile(
    r"\b(\d+)\b(?!\s*(?:m2|m²|sqm|km|k\b|€|eur))|\b(one|two|three|four|five|a few|some)\b",
    re.IGNORECASE,
)
_AREA_PATTERN = re.compile(r"(\d+)\s*(?:m2|m²|sqm)", re.IGNORECASE)


@dataclass
class PickResult:
    listings: List[RankedListing]
    explanation: str
    used_ai: bool = False


def parse_pick_count(request: str, default: int = DEFAULT_PICK_COUNT) -> int:
    """Read how many listings the user asked for ("pick 3", "two", "a few")."""
    match = _COUNT_PATTERN.search(request)
    if not match:
        return default
    if match.group(1):
        return int(match.group(1)) or default
    return _COUNT_WORDS[match.group(2).lower()]


def sort_by_request(request: str, listings: Sequence[RankedListing]) -> List[RankedListing]:
    """
    Order listings by the criterion the request mentions.

    Area requests sort by closeness to the stated area (or ascending area),
    "closest/nearest/center" sorts by distance, anything else by price.
    """
    lowered = request.lower()

    if any(unit in lowered for unit in ("m2", "m²", "sqm", "square")):
        area = _AREA_PATTERN.search(request)
        if area:
            target = int(area.group(1))
            return sorted(listings, key=lambda l: abs((l.area_sqm or 0) - target))
        return sorted(listings, key=lambda l: l.area_sqm or 0)

    if any(word in lowered for word in ("closest", "nearest", "center", "centre")):
        return sorted(listings, key=lambda l: l.distance_km if l.distance_km is not None else 999)

    return sorted(listings, key=lambda l: l.price_eur or 0)


def build_pick_prompt(request: str, listings: Sequence[RankedListing], count: int) -> str:
    listing_data = [
        {
            "index": index,
            "id": listing.id,
            "title": listing.title,
            "price": listing.price_eur,
            "location": listing.location_label,
            "distanceKm": listing.distance_km,
            "beds": listing.beds,
            "baths": listing.baths,
            "area": listing.area_sqm,
            "propertyType": listing.property_type,
            "description": (listing.description or "")[:300],
        }
        for index, listing in enumerate(listings[:MAX_LISTINGS_IN_PROMPT])
    ]

    return f"""You are helping a user select properties from their search results.

User request: "{request}"

Available listings:
{json.dumps(listing_data, indent=2, ensure_ascii=False)}

TASK: Select the {count} best listings that match the user's criteria.
- If they want "closest to center" or "nearest", prioritize by distance (lower distanceKm = closer)
- If they want "cheapest", prioritize by price (lower = better)
- If they mention "m2", "sqm" or "square meters", sort by AREA
- If they want "best", use overall value (price/quality/location balance)

For each selected listing, provide an individual analysis (4-6 sentences) covering why it matches,
value for money, location, size and any concerns.

Respond with ONLY a valid JSON object:
{{
  "selectedIndices": [0, 3],
  "listingAnalyses": {{"0": "Analysis for index 0...", "3": "Analysis for index 3..."}},
  "explanation": "Overall summary of why these listings were chosen (2-3 sentences)."
}}"""


class ListingPicker:
    """Select the best N listings from a stored search."""

    def __init__(self, gateway: Optional[AIGateway] = None):
        self.gateway = gateway

    async def pick(
        self,
        request: str,
        listings: Sequence[RankedListing],
        count: Optional[int] = None
    ) -> PickResult:
        """
        Pick listings for a follow-up request.

        Args:
            request: The user's follow-up message
            listings: Listings of the stored search, best first
            count: Number to pick; read from the request when omitted

        Returns:
            Selected listings with an explanation
        """
        if not listings:
            return PickResult([], "No listings available to pick from.")

        count = min(count or parse_pick_count(request), len(listings))

        if self.gateway is None or not (await self.gateway.check_health()).available:
            return PickResult(list(listings[:count]), f"Here are the top {count} listings from your search.")

        try:
            picked = await self._pick_with_ai(request, listings, count)
        except AIBackendUnavailable as e:
            logger.warning(f"AI pick failed, sorting by request criteria: {e}")
            picked = None

        if picked is not None:
            return picked

        return PickResult(
            sort_by_request(request, listings)[:count],
            f"Here are the {count} listings that best match your criteria.",
        )

    async def _pick_with_ai(
        self,
        request: str,
        listings: Sequence[RankedListing],
        count: int
    ) -> Optional[PickResult]:
        response = await self.gateway.complete(build_pick_prompt(request, listings, count), PICK_SYSTEM_PROMPT)
        payload = extract_json_object(response)
        if payload is None:
            logger.warning("AI pick response contained no JSON object")
            return None

        indices = payload.get("selectedIndices") or []
        analyses = payload.get("listingAnalyses") or {}
        if not isinstance(indices, list) or not isinstance(analyses, dict):
            logger.warning("AI pick response had an unexpected shape")
            return None

        selected: List[RankedListing] = []
        chosen: Set[int] = set()
        for index in indices:
            if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(listings):
                continue
            if index in chosen:
                continue
            chosen.add(index)
            listing = listings[index]
            analysis = analyses.get(str(index))
            if isinstance(analysis, str) and len(analysis) > MIN_ANALYSIS_LENGTH:
                listing = listing.model_copy(update={"ai_reasoning": analysis})
            selected.append(listing)
            if len(selected) == count:
                break

        if not selected:
            return None

        explanation = payload.get("explanation")
        if not isinstance(explanation, str) or not explanation.strip():
            explanation = f"Here are the {count} best options based on your criteria."
        return PickResult(selected, explanation, used_ai=True)
