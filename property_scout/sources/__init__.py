"""Listing sources and per-site access diagnostics."""

from .base import ListingSource
from .diagnostics import (
    AccessMethod,
    SiteDiagnosis,
    SiteDiagnostics,
    SitePolicy,
    SITE_POLICIES,
)
from .mock import MockListingSource, SAMPLE_LISTINGS

__all__ = [
    "ListingSource",
    "AccessMethod",
    "SiteDiagnosis",
    "SiteDiagnostics",
    "SitePolicy",
    "SITE_POLICIES",
    "MockListingSource",
    "SAMPLE_LISTINGS",
]
