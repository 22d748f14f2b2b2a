"""
Property-based tests for great-circle distance.
"""

import pytest
from hypothesis import given, settings, strategies as st

from property_scout.geo import distance_km, within_radius


latitudes = st.floats(min_value=-90, max_value=90, allow_nan=False)
longitudes = st.floats(min_value=-180, max_value=180, allow_nan=False)
points = st.tuples(latitudes, longitudes)


@given(a=points, b=points)
@settings(max_examples=100)
def test_distance_symmetric(a, b):
    """
    **Feature: property-scout, Property 5: Distance is symmetric**
    """
    assert distance_km(*a, *b) == pytest.approx(distance_km(*b, *a), abs=1e-6)


@given(a=points)
@settings(max_examples=100)
def test_distance_to_self_is_zero(a):
    """
    **Feature: property-scout, Property 6: Distance from a point to itself is zero**
    """
    assert distance_km(*a, *a) == pytest.approx(0, abs=1e-6)


@given(a=points, b=points)
@settings(max_examples=100)
def test_distance_bounded_by_half_circumference(a, b):
    distance = distance_km(*a, *b)

    assert 0 <= distance <= 20015.1


def test_lisbon_to_porto():
    assert distance_km(38.7223, -9.1393, 41.1579, -8.6291) == pytest.approx(274, abs=3)


def test_within_radius():
    lisbon = (38.7223, -9.1393)

    assert within_radius(*lisbon, 38.8029, -9.3817, 50)
    assert not within_radius(*lisbon, 41.1579, -8.6291, 50)


def test_missing_coordinates_always_within_radius():
    assert within_radius(38.7223, -9.1393, None, None, 0)
    assert within_radius(38.7223, -9.1393, 41.0, None, 1)
