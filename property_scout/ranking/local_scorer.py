"""
Deterministic local relevance scoring.

Used whenever AI analysis is unavailable, skipped, times out or returns
garbage. Scores start at 50, move by fixed adjustments and are clamped to
[10, 95]. This module has no failure mode and does no I/O.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from property_scout.classification.rules import (
    LAND_CLASS_RULES,
    LAND_INTENT_RULES,
    LISTING_INTENT_RULES,
    LISTING_PROPERTY_TYPE_RULES,
    QUERY_PROPERTY_TYPE_RULES,
    VISUAL_FEATURE_RULES,
    first_label,
    listing_text,
    match_labels,
)
from property_scout.models import Listing, ListingType, ParsedQuery, RelevanceResult
from property_scout.query.interpreter import parse_query


BASE_SCORE = 50
MIN_SCORE = 10
MAX_SCORE = 95

TYPE_MATCH_BONUS = 35
AREA_MATCH_BONUS = 20
LOCATION_MATCH_BONUS = 15
VISUAL_FEATURE_MAX_BONUS = 25
VISUAL_FEATURE_MISSING_PENALTY = 10
AREA_MATCH_RATIO = (0.9, 1.2)

_FIVE_DIGITS = re.compile(r"\d{5,}")


@dataclass(frozen=True)
class QueryWants:
    """What a query asks for, as far as the local scorer cares."""
    property_type: Optional[str]
    land_intent: Optional[str]
    sale: bool
    rent: bool
    location: Optional[str]
    area_sqm: Optional[float]
    features: List[str]

    @classmethod
    def from_query(cls, query: str, parsed: Optional[ParsedQuery] = None) -> 'QueryWants':
        parsed = parsed or parse_query(query)
        lower = query.lower()
        intents = match_labels(LISTING_INTENT_RULES, lower)
        property_type = first_label(QUERY_PROPERTY_TYPE_RULES, lower) or parsed.property_type
        return cls(
            property_type=property_type,
            land_intent=first_label(LAND_INTENT_RULES, lower) if property_type == "land" else None,
            sale=ListingType.SALE.value in intents or bool(_FIVE_DIGITS.search(lower)),
            rent=ListingType.RENT.value in intents,
            location=parsed.location_text.lower() if parsed.location_text else None,
            area_sqm=parsed.area_sqm,
            features=match_labels(VISUAL_FEATURE_RULES, lower),
        )


@dataclass(frozen=True)
class ListingTraits:
    """Keyword-derived facts about a listing."""
    kinds: List[str]
    land_class: Optional[str]
    rent_signal: bool
    sale_signal: bool
    features: List[str]

    @classmethod
    def from_listing(cls, listing: Listing) -> 'ListingTraits':
        text = listing_text(listing)
        kinds = match_labels(LISTING_PROPERTY_TYPE_RULES, text, listing.title.lower())
        land_class = None
        if "land" in kinds:
            classes = match_labels(LAND_CLASS_RULES, text)
            if "rural" in classes:
                land_class = "rural"
            elif "urban" in classes:
                land_class = "urban"
        intents = match_labels(LISTING_INTENT_RULES, text)
        price = listing.price_eur
        return cls(
            kinds=kinds,
            land_class=land_class,
            rent_signal=ListingType.RENT.value in intents or 100 < price < 3000,
            sale_signal=ListingType.SALE.value in intents or price > 30000,
            features=match_labels(VISUAL_FEATURE_RULES, text),
        )

    def is_a(self, kind: str) -> bool:
        return kind in self.kinds

    @property
    def label(self) -> str:
        if self.is_a("room"):
            return "Room"
        if self.is_a("apartment"):
            return "Apartment"
        if self.is_a("house"):
            return "House/Villa"
        if self.land_class == "urban":
            return "Urban Land (buildable)"
        if self.land_class == "rural":
            return "Rural Land (not buildable)"
        if self.is_a("land"):
            return "Land"
        if self.is_a("commercial"):
            return "Commercial"
        if self.is_a("mobile-home"):
            return "Mobile Home"
        return "Property"


def _price_per_sqm(listing: Listing) -> float:
    if listing.area_sqm and listing.area_sqm > 0:
        return listing.price_eur / listing.area_sqm
    return 0.0


def _price_assessment(per_sqm: float, is_land: bool) -> str:
    if is_land:
        if per_sqm < 20:
            return "very affordable (likely rural)"
        if per_sqm < 50:
            return "affordable"
        if per_sqm < 150:
            return "moderate"
        return "premium (likely urban/coastal)"
    if per_sqm < 1500:
        return "quite affordable"
    if per_sqm < 3000:
        return "reasonably priced"
    if per_sqm < 5000:
        return "mid-range"
    return "premium pricing"


def _size_category(area: float, is_land: bool) -> str:
    if is_land:
        if area < 500:
            return "small plot"
        if area < 2000:
            return "medium plot"
        if area < 10000:
            return "large plot"
        return "very large plot"
    if area < 50:
        return "compact"
    if area < 100:
        return "medium-sized"
    if area < 200:
        return "spacious"
    return "large"


def _score_property_type(wants: QueryWants, traits: ListingTraits, listing: Listing):
    """Return (score delta, still relevant) for the property-type match."""
    wanted = wants.property_type

    if wanted == "apartment":
        if traits.is_a("apartment"):
            return TYPE_MATCH_BONUS, True
        if traits.is_a("room"):
            return -25, False
        if traits.is_a("house"):
            return 10, True
        if traits.is_a("commercial"):
            return -30, False
        if traits.is_a("mobile-home"):
            return -10, True
        return 0, True

    if wanted == "house":
        if traits.is_a("house"):
            return TYPE_MATCH_BONUS, True
        if traits.is_a("apartment"):
            return 5, True
        return 0, True

    if wanted == "land":
        if not traits.is_a("land"):
            return 0, True
        if wants.land_intent == "construction":
            if traits.land_class == "urban":
                return 40, True
            if traits.land_class == "rural":
                return -40, False
            per_sqm = _price_per_sqm(listing)
            if per_sqm > 20:
                return 20, True
            if 0 < per_sqm < 10:
                return -20, False
            return 0, True
        if wants.land_intent == "farming":
            if traits.land_class == "rural":
                return 40, True
            if traits.land_class == "urban":
                return -10, True
            return 20, True
        return 30, True

    if wanted == "room":
        return (25, True) if traits.is_a("room") else (0, True)

    if wanted in ("commercial", "mobile-home"):
        return (TYPE_MATCH_BONUS, True) if traits.is_a(wanted) else (0, True)

    if traits.is_a("apartment") or traits.is_a("house"):
        return 20, True
    return 0, True


def _reasoning(listing: Listing, traits: ListingTraits, wants: QueryWants, score: int) -> str:
    is_land = traits.is_a("land")
    parts = [f"This is a {traits.label.lower()} located in {listing.city or 'Portugal'}."]

    if is_land:
        if traits.land_class == "urban":
            parts.append("This is classified as urban land (terreno urbano), construction is permitted.")
        elif traits.land_class == "rural":
            parts.append("This is rural/rústico land, construction is not permitted and it suits agriculture only.")
        else:
            parts.append("Land classification unclear from listing, verify if urbano (buildable) or rústico (not buildable).")

    if listing.price_eur > 0:
        per_sqm = round(_price_per_sqm(listing))
        if per_sqm > 0:
            parts.append(
                f"Priced at €{listing.price_eur:,.0f} (€{per_sqm}/m²), "
                f"{_price_assessment(per_sqm, is_land)} for the area."
            )
        else:
            parts.append(f"Listed at €{listing.price_eur:,.0f}.")

    if listing.area_sqm and listing.area_sqm > 0:
        parts.append(f"Size: {listing.area_sqm:,.0f}m² ({_size_category(listing.area_sqm, is_land)}).")

    if traits.features:
        parts.append(f"Features mentioned: {', '.join(traits.features)}.")
    elif wants.features:
        parts.append(
            f"Note: requested features ({', '.join(wants.features)}) not confirmed in listing text, "
            "photo analysis may help."
        )

    if score >= 75:
        verdict = "Strong match for your search criteria."
    elif score >= 50:
        verdict = "Partial match, review details to confirm suitability."
    else:
        verdict = "May not fully match your requirements."
    return " ".join(parts[:5] + [verdict])


def score_listing(listing: Listing, wants: QueryWants) -> RelevanceResult:
    """Score one listing against pre-computed query wants."""
    traits = ListingTraits.from_listing(listing)

    score, is_relevant = _score_property_type(wants, traits, listing)
    score += BASE_SCORE

    if wants.location and listing.city and wants.location in listing.city.lower():
        score += LOCATION_MATCH_BONUS

    if wants.sale and traits.rent_signal and not traits.sale_signal:
        score -= 20
        is_relevant = is_relevant and listing.price_eur > 10000
    elif wants.rent and traits.sale_signal and not traits.rent_signal:
        score -= 15

    if wants.area_sqm and listing.area_sqm:
        ratio = listing.area_sqm / wants.area_sqm
        if AREA_MATCH_RATIO[0] <= ratio <= AREA_MATCH_RATIO[1]:
            score += AREA_MATCH_BONUS

    if wants.features:
        matched = [f for f in wants.features if f in traits.features]
        if matched:
            score += len(matched) / len(wants.features) * VISUAL_FEATURE_MAX_BONUS
        else:
            score -= VISUAL_FEATURE_MISSING_PENALTY

    final = int(round(max(MIN_SCORE, min(MAX_SCORE, score))))
    return RelevanceResult(
        listing_id=listing.id,
        is_relevant=is_relevant,
        score=final,
        reasoning=_reasoning(listing, traits, wants, final),
    )


def score_locally(
    query: str,
    listings: Sequence[Listing],
    parsed: Optional[ParsedQuery] = None
) -> List[RelevanceResult]:
    """
    Score every listing against the query with keyword heuristics.

    Args:
        query: The user's original query
        listings: Candidate listings
        parsed: Already-parsed query, if the caller has one

    Returns:
        One RelevanceResult per listing, in input order
    """
    wants = QueryWants.from_query(query, parsed)
    return [score_listing(listing, wants) for listing in listings]
