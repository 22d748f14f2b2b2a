"""
Prompts for AI relevance analysis.
"""

import re
from typing import List, Sequence

from property_scout.classification.rules import VISUAL_FEATURE_RULES, match_labels
from property_scout.models import Listing


LISTING_ANALYSIS_SYSTEM_PROMPT = """You are an expert Portuguese real estate analyst. Read each listing's title and description carefully to understand exactly what is being sold or rented, then score how well it matches the user's search.

Portuguese listing vocabulary:
- "Terreno rústico" = rural land (cannot build, agriculture only)
- "Terreno urbano" / "Lote" = urban plot (can build)
- "Quinta" = farm estate, usually house plus land
- "Moradia" = house/villa
- "Apartamento T2" = 2-bedroom apartment
- "Vista mar" = sea view, "Piscina" = swimming pool
- "Para recuperar" = needs renovation

Scoring:
- 85-100: clear match, the listing text shows what the user wants
- 70-84: good match with minor differences
- 50-69: partial match
- 30-49: weak match
- 0-29: not what the user wants

If the user asks for a visual feature that the text does not mention, lower the score and say "feature not confirmed in text".

Return ONLY valid JSON, no explanations outside the JSON array."""

_HTML_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")

DETAILED_DESCRIPTION_CHARS = 800
BRIEF_DESCRIPTION_CHARS = 500


def clean_description(description: str, limit: int) -> str:
    """Strip HTML and collapse whitespace, truncating to ``limit`` characters."""
    if not description:
        return "No description provided"
    text = _WHITESPACE.sub(" ", _HTML_TAG.sub(" ", description)).strip()
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def requested_visual_features(query: str) -> List[str]:
    return match_labels(VISUAL_FEATURE_RULES, query.lower())


def _summarize(index: int, listing: Listing, detailed: bool) -> str:
    limit = DETAILED_DESCRIPTION_CHARS if detailed else BRIEF_DESCRIPTION_CHARS
    area = f"{listing.area_sqm:,.0f} m²" if listing.area_sqm else "Not specified"
    photos = (
        f"Has {len(listing.photos)} photo(s)" if listing.photos else "No photos available"
    )
    return (
        f"--- LISTING {index} (ID: {listing.id}) ---\n"
        f"Location: {listing.location_label}\n"
        f"Title: \"{listing.title}\"\n"
        f"Price: €{listing.price_eur:,.0f}\n"
        f"Area: {area}\n"
        f"Type: {listing.property_type or 'Not specified'}\n"
        f"Description: \"{clean_description(listing.description or '', limit)}\"\n"
        f"Photos: {photos}"
    )


def build_analysis_prompt(query: str, listings: Sequence[Listing], detailed: bool) -> str:
    """
    Build the user prompt asking the model to score a batch of listings.

    Args:
        query: The user's original search query
        listings: Candidate listings in this batch
        detailed: Ask for longer reasoning and include longer descriptions

    Returns:
        Prompt text
    """
    summaries = "\n\n".join(_summarize(i + 1, l, detailed) for i, l in enumerate(listings))

    features = requested_visual_features(query)
    feature_note = ""
    if features:
        feature_note = (
            f"\nUSER IS SEARCHING FOR VISUAL FEATURES: {', '.join(features)}\n"
            "Check each description for these features. If a feature is not mentioned, "
            "say \"feature not confirmed in text - may need photo analysis\" in the reasoning.\n"
        )

    if detailed:
        instructions = (
            "For each listing decide whether the title and description show what the user wants, "
            "whether the location and price fit, and cite specific words from the text.\n"
        )
        reasoning = "4-6 sentences citing specific details from the listing"
    else:
        instructions = (
            f"Analyze these {len(listings)} listings. Read the descriptions, not just the titles. "
            "For land, state whether it is urbano (buildable) or rústico (not buildable).\n"
        )
        reasoning = "3-4 sentences: property type, match to the search, notable features or concerns"

    return (
        f"USER SEARCH QUERY: \"{query}\"\n"
        f"{feature_note}\n"
        f"{instructions}\n"
        f"LISTINGS TO ANALYZE:\n{summaries}\n\n"
        "Return a JSON array with one entry per listing:\n"
        "[\n"
        "  {\n"
        "    \"id\": \"listing-id\",\n"
        "    \"isRelevant\": true,\n"
        "    \"relevanceScore\": 0-100,\n"
        f"    \"reasoning\": \"{reasoning}\"\n"
        "  }\n"
        "]"
    )
