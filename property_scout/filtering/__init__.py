"""
Filtering module for property listings.

This module provides functionality to filter listings by price window,
radius and sale/rent intent.
"""

from .listing_filter import ListingFilter, distance_for

__all__ = ['ListingFilter', 'distance_for']
