"""Keyword rule tables and the generic matcher that evaluates them."""

from .rules import (
    KeywordRule,
    match_labels,
    first_label,
    QUERY_PROPERTY_TYPE_RULES,
    LISTING_INTENT_RULES,
    LISTING_PROPERTY_TYPE_RULES,
    LAND_INTENT_RULES,
    LAND_CLASS_RULES,
    VISUAL_FEATURE_RULES,
    RENT_KEYWORDS,
    SALE_KEYWORDS,
    detect_listing_type,
    detect_property_type,
    listing_text,
)

__all__ = [
    'KeywordRule',
    'match_labels',
    'first_label',
    'QUERY_PROPERTY_TYPE_RULES',
    'LISTING_INTENT_RULES',
    'LISTING_PROPERTY_TYPE_RULES',
    'LAND_INTENT_RULES',
    'LAND_CLASS_RULES',
    'VISUAL_FEATURE_RULES',
    'RENT_KEYWORDS',
    'SALE_KEYWORDS',
    'detect_listing_type',
    'detect_property_type',
    'listing_text',
]
