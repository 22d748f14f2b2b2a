"""
Strict and near-miss price windows.

The strict window applies a small tolerance (the smaller of a percentage and
an absolute cap) only around ``around`` targets. The near-miss window widens
every bound outward by the larger of a percentage and an absolute floor, so it
always contains the strict window.
"""

from typing import Optional

from property_scout.config.settings import MatchRules
from property_scout.models import PriceIntent, PriceIntentType, PriceRange


def build_strict_price_range(intent: PriceIntent, rules: Optional[MatchRules] = None) -> PriceRange:
    """
    Build the strict price window for an intent already expressed in EUR.

    Args:
        intent: Canonical-currency price intent
        rules: Tolerance rules (default: MatchRules())

    Returns:
        PriceRange with open ends left as None
    """
    rules = rules or MatchRules()
    kind = intent.kind

    if kind == PriceIntentType.UNDER:
        return PriceRange(max_price=intent.max_price)
    if kind == PriceIntentType.OVER:
        return PriceRange(min_price=intent.min_price)
    if kind == PriceIntentType.BETWEEN:
        return PriceRange(min_price=intent.min_price, max_price=intent.max_price)
    if kind == PriceIntentType.AROUND:
        delta = min(intent.target * rules.exact_tolerance_percent, rules.exact_tolerance_absolute_eur)
        return PriceRange(min_price=max(0.0, intent.target - delta), max_price=intent.target + delta)
    return PriceRange()


def _near_miss_delta(value: float, rules: MatchRules) -> float:
    return max(value * rules.near_miss_tolerance_percent, rules.near_miss_tolerance_absolute_eur)


def build_near_miss_price_range(intent: PriceIntent, rules: Optional[MatchRules] = None) -> PriceRange:
    """
    Build the widened price window used when the strict window finds nothing.

    Each bound of the strict window moves outward by
    ``max(bound * pct, floor)``; the lower bound is clamped at zero.
    """
    rules = rules or MatchRules()
    strict = build_strict_price_range(intent, rules)

    if intent.kind == PriceIntentType.AROUND:
        delta = _near_miss_delta(intent.target, rules)
        return PriceRange(
            min_price=min(strict.min_price, max(0.0, intent.target - delta)),
            max_price=max(strict.max_price, intent.target + delta),
        )

    min_price = strict.min_price
    max_price = strict.max_price
    if min_price is not None:
        min_price = max(0.0, min_price - _near_miss_delta(min_price, rules))
    if max_price is not None:
        max_price = max_price + _near_miss_delta(max_price, rules)
    return PriceRange(min_price=min_price, max_price=max_price)
