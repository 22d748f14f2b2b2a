"""
Listing filter implementation for search results.

This module provides filtering of normalized listings by price window,
distance from the user and sale/rent intent.
"""

from typing import List, Optional

from property_scout.classification.rules import detect_listing_type
from property_scout.geo import distance_km, within_radius
from property_scout.models import Listing, ListingType, PriceRange


class ListingFilter:
    """Filters listings against a price window, a radius and a listing intent.

    Listings that cannot be judged on a criterion (no coordinates, no
    detectable sale/rent status) are kept for that criterion.
    """

    def filter_by_price(self, listings: List[Listing], price_range: PriceRange) -> List[Listing]:
        """Filter listings to those priced inside ``price_range`` (inclusive)."""
        return [listing for listing in listings if price_range.contains(listing.price_eur)]

    def filter_by_radius(
        self,
        listings: List[Listing],
        radius_km: float,
        lat: float,
        lng: float
    ) -> List[Listing]:
        """Filter listings to those within ``radius_km`` of (lat, lng).

        Args:
            listings: List of listings to filter
            radius_km: Maximum distance in kilometers
            lat: Latitude of the search center
            lng: Longitude of the search center

        Returns:
            Listings inside the radius, plus those without coordinates
        """
        return [
            listing for listing in listings
            if within_radius(lat, lng, listing.lat, listing.lng, radius_km)
        ]

    def filter_by_price_and_radius(
        self,
        listings: List[Listing],
        price_range: PriceRange,
        radius_km: float,
        lat: float,
        lng: float
    ) -> List[Listing]:
        return self.filter_by_radius(self.filter_by_price(listings, price_range), radius_km, lat, lng)

    def filter_by_listing_intent(
        self,
        listings: List[Listing],
        intent: Optional[ListingType]
    ) -> List[Listing]:
        """Drop listings whose detected sale/rent status contradicts ``intent``.

        Args:
            listings: List of listings to filter
            intent: Requested listing type, or None for no preference

        Returns:
            Listings that match the intent or whose status is undetermined
        """
        if intent is None:
            return list(listings)

        filtered = []
        for listing in listings:
            detected = detect_listing_type(listing)
            if detected is None or detected == intent:
                filtered.append(listing)
        return filtered


def distance_for(listing: Listing, lat: float, lng: float) -> Optional[float]:
    """Distance from (lat, lng) to the listing, rounded to 0.1 km."""
    if not listing.has_coordinates:
        return None
    return round(distance_km(lat, lng, listing.lat, listing.lng), 1)
