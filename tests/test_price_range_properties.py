"""
Property-based tests for strict and near-miss price windows.
"""

import pytest
from hypothesis import given, settings, strategies as st

from property_scout.config.settings import MatchRules
from property_scout.models import PriceIntent, PriceRange
from property_scout.pricing.price_range import build_near_miss_price_range, build_strict_price_range


prices = st.floats(min_value=0, max_value=1e8, allow_nan=False, allow_infinity=False)

price_intents = st.one_of(
    st.just(PriceIntent.none()),
    st.builds(PriceIntent.under, prices),
    st.builds(PriceIntent.over, prices),
    st.builds(PriceIntent.between, prices, prices),
    st.builds(PriceIntent.around, prices),
)

match_rules = st.builds(
    MatchRules,
    exact_tolerance_percent=st.floats(min_value=0, max_value=0.5),
    exact_tolerance_absolute_eur=st.floats(min_value=0, max_value=1000),
    near_miss_tolerance_percent=st.floats(min_value=0, max_value=0.5),
    near_miss_tolerance_absolute_eur=st.floats(min_value=0, max_value=5000),
)


def covers(outer: PriceRange, inner: PriceRange) -> bool:
    """True if every price inside inner is also inside outer."""
    if outer.min_price is not None and (inner.min_price is None or inner.min_price < outer.min_price):
        return False
    if outer.max_price is not None and (inner.max_price is None or inner.max_price > outer.max_price):
        return False
    return True


@given(intent=price_intents, rules=match_rules)
@settings(max_examples=100)
def test_near_miss_contains_strict(intent, rules):
    """
    **Feature: property-scout, Property 3: Near-miss window contains strict window**

    For any price intent and tolerance rules, every price inside the strict
    window is also inside the near-miss window.
    """
    strict = build_strict_price_range(intent, rules)
    near_miss = build_near_miss_price_range(intent, rules)

    assert covers(near_miss, strict)


@given(intent=price_intents)
@settings(max_examples=100)
def test_lower_bounds_never_negative(intent):
    """
    **Feature: property-scout, Property 4: Lower bounds are clamped at zero**
    """
    for price_range in (build_strict_price_range(intent), build_near_miss_price_range(intent)):
        assert price_range.min_price is None or price_range.min_price >= 0


def test_under_scenario():
    intent = PriceIntent.under(30000)

    assert build_strict_price_range(intent) == PriceRange(max_price=30000)
    assert build_near_miss_price_range(intent) == PriceRange(max_price=33000)


def test_near_miss_absolute_floor_applies_to_small_prices():
    near_miss = build_near_miss_price_range(PriceIntent.between(500, 1000))

    assert near_miss.min_price == 300
    assert near_miss.max_price == 1200


def test_near_miss_lower_bound_clamped():
    near_miss = build_near_miss_price_range(PriceIntent.over(100))

    assert near_miss.min_price == 0
    assert near_miss.max_price is None


def test_around_uses_smaller_exact_tolerance():
    strict = build_strict_price_range(PriceIntent.around(100000))

    assert strict.min_price == pytest.approx(99950)
    assert strict.max_price == pytest.approx(100050)

    strict = build_strict_price_range(PriceIntent.around(1000))
    assert strict.min_price == pytest.approx(980)
    assert strict.max_price == pytest.approx(1020)


def test_around_near_miss_uses_larger_tolerance():
    near_miss = build_near_miss_price_range(PriceIntent.around(100000))

    assert near_miss.min_price == pytest.approx(90000)
    assert near_miss.max_price == pytest.approx(110000)


def test_no_price_intent_is_unbounded():
    assert build_strict_price_range(PriceIntent.none()) == PriceRange()
    assert build_near_miss_price_range(PriceIntent.none()) == PriceRange()
