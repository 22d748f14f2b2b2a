"""Search response models"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from property_scout.models import Listing, ListingType, MatchType, PriceRange, RelevanceResult
from property_scout.pricing.currency import format_currency


class AppliedPriceRange(BaseModel):
    """Price window a result set was matched against"""
    min: Optional[float] = None
    max: Optional[float] = None
    currency: str = "EUR"

    @classmethod
    def from_range(cls, price_range: PriceRange) -> "AppliedPriceRange":
        return cls(min=price_range.min_price, max=price_range.max_price, currency=price_range.currency)


class RankedListing(BaseModel):
    """A listing enriched with distance and relevance data"""
    id: str
    source_site: str
    source_url: str
    title: str
    price_eur: float
    currency: str = "EUR"
    display_price: str
    beds: Optional[int] = None
    baths: Optional[int] = None
    area_sqm: Optional[float] = None
    address: Optional[str] = None
    city: Optional[str] = None
    location_label: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    property_type: Optional[str] = None
    listing_type: Optional[ListingType] = None
    description: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    last_seen_at: datetime
    distance_km: Optional[float] = None
    match_score: int
    ai_reasoning: str

    @classmethod
    def build(
        cls,
        listing: Listing,
        result: RelevanceResult,
        distance_km: Optional[float] = None,
        listing_type: Optional[ListingType] = None,
        property_type: Optional[str] = None
    ) -> "RankedListing":
        """Combine a listing with its relevance verdict.

        Detected listing/property types override the source-provided ones
        when given.
        """
        listing_type = listing_type or listing.listing_type
        display_price = format_currency(listing.price_eur)
        if listing_type == ListingType.RENT:
            display_price += "/mo"

        return cls(
            id=listing.id,
            source_site=listing.source_site,
            source_url=listing.source_url,
            title=listing.title,
            price_eur=listing.price_eur,
            currency=listing.currency,
            display_price=display_price,
            beds=listing.beds,
            baths=listing.baths,
            area_sqm=listing.area_sqm,
            address=listing.address,
            city=listing.city,
            location_label=listing.location_label,
            lat=listing.lat,
            lng=listing.lng,
            property_type=property_type or listing.property_type,
            listing_type=listing_type,
            description=listing.description,
            photos=list(listing.photos),
            last_seen_at=listing.last_seen_at,
            distance_km=distance_km,
            match_score=result.score,
            ai_reasoning=result.reasoning,
        )


class BlockedSite(BaseModel):
    """A site that could not be searched without the user's own session"""
    site_id: str
    site_name: str
    access_method: str
    requires_user_session: bool
    reason: str


class SearchResponse(BaseModel):
    """Results of one orchestrated search"""
    search_id: str
    match_type: MatchType
    note: str
    applied_price_range: AppliedPriceRange
    applied_radius_km: float
    listings: List[RankedListing] = Field(default_factory=list)
    blocked_sites: List[BlockedSite] = Field(default_factory=list)
    ai_available: bool = False
    search_time_ms: Optional[float] = None
