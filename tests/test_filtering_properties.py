"""
Property-based tests for listing filtering.

These tests verify universal properties that should hold across all valid
executions of the filtering operations.
"""

from hypothesis import given, settings, strategies as st

from property_scout.classification.rules import detect_listing_type
from property_scout.filtering import ListingFilter, distance_for
from property_scout.geo import distance_km
from property_scout.models import ListingType, PriceRange
from tests.fakes import make_listing


LISBON = (38.7223, -9.1393)

# Strategy for generating listings scattered around mainland Portugal
listings = st.lists(
    st.builds(
        lambda index, title, price, coords: make_listing(
            f"l{index}", title, price,
            lat=coords[0] if coords else None,
            lng=coords[1] if coords else None,
        ),
        st.integers(min_value=0, max_value=100_000),
        st.sampled_from([
            "Apartamento T2 para arrendar",
            "Moradia à venda",
            "Terreno rústico",
            "Quarto em Lisboa",
            "Loja no centro",
        ]),
        st.floats(min_value=0, max_value=1_000_000, allow_nan=False),
        st.one_of(
            st.none(),
            st.tuples(
                st.floats(min_value=37.0, max_value=42.0, allow_nan=False),
                st.floats(min_value=-9.5, max_value=-6.2, allow_nan=False),
            ),
        ),
    ),
    max_size=20,
    unique_by=lambda l: l.id,
)

bounds = st.one_of(st.none(), st.floats(min_value=0, max_value=1_000_000, allow_nan=False))


@given(listings=listings, low=bounds, high=bounds)
@settings(max_examples=100, deadline=None)
def test_price_filter_keeps_exactly_listings_in_range(listings, low, high):
    """
    **Feature: property-scout, Property 16: Price filtering is exact and order-preserving**

    For any listings and price window, the filter returns exactly the
    listings inside the window, in their original order.
    """
    price_range = PriceRange(min_price=low, max_price=high)

    filtered = ListingFilter().filter_by_price(listings, price_range)

    assert filtered == [l for l in listings if price_range.contains(l.price_eur)]


@given(listings=listings, radius=st.floats(min_value=1, max_value=300, allow_nan=False))
@settings(max_examples=100, deadline=None)
def test_radius_filter_keeps_near_and_unlocated_listings(listings, radius):
    """
    **Feature: property-scout, Property 17: Radius filtering never drops unlocated listings**

    Every kept listing either has no coordinates or lies within the radius,
    and every listing without coordinates is kept.
    """
    filtered = ListingFilter().filter_by_radius(listings, radius, *LISBON)

    for listing in filtered:
        if listing.has_coordinates:
            assert distance_km(*LISBON, listing.lat, listing.lng) <= radius
    unlocated = [l.id for l in listings if not l.has_coordinates]
    assert set(unlocated) <= {l.id for l in filtered}


@given(listings=listings, intent=st.one_of(st.none(), st.sampled_from(list(ListingType))))
@settings(max_examples=100, deadline=None)
def test_intent_filter_only_drops_contradicting_listings(listings, intent):
    """
    **Feature: property-scout, Property 18: Intent filtering only drops contradictions**

    A listing is dropped only when its detected sale/rent status is known and
    differs from the requested intent. No intent keeps everything.
    """
    filtered = ListingFilter().filter_by_listing_intent(listings, intent)

    if intent is None:
        assert filtered == listings
        return

    kept = {l.id for l in filtered}
    for listing in listings:
        detected = detect_listing_type(listing)
        assert (listing.id in kept) == (detected is None or detected == intent)


def test_combined_filter():
    near_cheap = make_listing("near-cheap", "Terreno", 20000, lat=38.75, lng=-9.15)
    near_dear = make_listing("near-dear", "Terreno", 90000, lat=38.75, lng=-9.15)
    far_cheap = make_listing("far-cheap", "Terreno", 20000, lat=41.15, lng=-8.63)

    filtered = ListingFilter().filter_by_price_and_radius(
        [near_cheap, near_dear, far_cheap], PriceRange(max_price=30000), 50, *LISBON
    )

    assert [l.id for l in filtered] == ["near-cheap"]


def test_source_flag_wins_over_keywords():
    flagged = make_listing("a", "Moradia à venda", 900, listing_type=ListingType.SALE)

    assert ListingFilter().filter_by_listing_intent([flagged], ListingType.RENT) == []


def test_distance_for():
    assert distance_for(make_listing("a", "x", 1), *LISBON) is None
    assert distance_for(make_listing("a", "x", 1, lat=LISBON[0], lng=LISBON[1]), *LISBON) == 0.0

    porto = distance_for(make_listing("a", "x", 1, lat=41.1579, lng=-8.6291), *LISBON)
    assert 270 < porto < 285
    assert porto == round(porto, 1)
