"""
Data models for Property Scout.

This module defines the core data structures used throughout the search
pipeline. Response models exposed to callers live in
``property_scout.search.results``.
"""

from dataclasses import dataclass, asdict, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ListingType(str, Enum):
    """Whether a listing is offered for sale or for rent."""
    SALE = "sale"
    RENT = "rent"


class MatchType(str, Enum):
    """Which price window produced the final result set."""
    EXACT = "exact"
    NEAR_MISS = "near-miss"


class PriceIntentType(str, Enum):
    """Shape of the price constraint expressed in a query."""
    NONE = "none"
    UNDER = "under"
    OVER = "over"
    BETWEEN = "between"
    AROUND = "around"


@dataclass(frozen=True)
class Listing:
    """A normalized property record produced by a listing source.

    Attributes:
        id: Unique listing identifier
        source_site: Identifier of the site the listing came from
        source_url: Canonical URL of the listing
        title: Listing title
        price_eur: Asking price in EUR
        currency: Currency the listing was originally quoted in
        beds: Number of bedrooms, if known
        baths: Number of bathrooms, if known
        area_sqm: Floor or plot area in square meters, if known
        address: Free-text address
        city: City or municipality
        lat: Latitude, if known
        lng: Longitude, if known
        property_type: Source-provided property type (apartment, land, ...)
        listing_type: Source-provided sale/rent flag
        description: Free-text description
        photos: Photo URLs
        last_seen_at: When the listing was last seen at its source
    """
    id: str
    source_site: str
    source_url: str
    title: str
    price_eur: float
    currency: str = "EUR"
    beds: Optional[int] = None
    baths: Optional[int] = None
    area_sqm: Optional[float] = None
    address: Optional[str] = None
    city: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    property_type: Optional[str] = None
    listing_type: Optional[ListingType] = None
    description: Optional[str] = None
    photos: List[str] = field(default_factory=list)
    last_seen_at: datetime = field(default_factory=datetime.now)

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None

    @property
    def location_label(self) -> str:
        return self.city or self.address or "Portugal"

    def to_dict(self) -> dict:
        """Convert listing to dictionary for JSON serialization.

        Returns:
            Dictionary representation with datetime converted to ISO format
        """
        data = asdict(self)
        data['last_seen_at'] = self.last_seen_at.isoformat()
        if self.listing_type is not None:
            data['listing_type'] = self.listing_type.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Listing':
        """Create Listing instance from dictionary.

        Args:
            data: Dictionary containing listing data

        Returns:
            Listing instance
        """
        data = data.copy()
        if isinstance(data.get('last_seen_at'), str):
            data['last_seen_at'] = datetime.fromisoformat(data['last_seen_at'])
        if data.get('listing_type') is not None:
            data['listing_type'] = ListingType(data['listing_type'])
        return cls(**data)


@dataclass(frozen=True)
class PriceIntent:
    """Price constraint extracted from a query.

    Only the fields relevant to ``kind`` are set: ``max_price`` for UNDER,
    ``min_price`` for OVER, both for BETWEEN and ``target`` for AROUND.
    """
    kind: PriceIntentType = PriceIntentType.NONE
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    target: Optional[float] = None
    currency: Optional[str] = None

    @classmethod
    def none(cls) -> 'PriceIntent':
        return cls()

    @classmethod
    def under(cls, max_price: float, currency: Optional[str] = None) -> 'PriceIntent':
        return cls(kind=PriceIntentType.UNDER, max_price=max_price, currency=currency)

    @classmethod
    def over(cls, min_price: float, currency: Optional[str] = None) -> 'PriceIntent':
        return cls(kind=PriceIntentType.OVER, min_price=min_price, currency=currency)

    @classmethod
    def between(cls, min_price: float, max_price: float, currency: Optional[str] = None) -> 'PriceIntent':
        low, high = sorted((min_price, max_price))
        return cls(kind=PriceIntentType.BETWEEN, min_price=low, max_price=high, currency=currency)

    @classmethod
    def around(cls, target: float, currency: Optional[str] = None) -> 'PriceIntent':
        return cls(kind=PriceIntentType.AROUND, target=target, currency=currency)


@dataclass(frozen=True)
class PriceRange:
    """A price window in canonical currency. Open ends are None."""
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    currency: str = "EUR"

    def contains(self, price: float) -> bool:
        if self.min_price is not None and price < self.min_price:
            return False
        if self.max_price is not None and price > self.max_price:
            return False
        return True


@dataclass(frozen=True)
class ParsedQuery:
    """Structured intent extracted from a free-text query."""
    raw: str
    price_intent: PriceIntent = field(default_factory=PriceIntent)
    property_type: Optional[str] = None
    listing_intent: Optional[ListingType] = None
    location_text: Optional[str] = None
    beds: Optional[int] = None
    area_sqm: Optional[float] = None


@dataclass(frozen=True)
class RelevanceResult:
    """Relevance verdict for one listing against one query."""
    listing_id: str
    is_relevant: bool
    score: int
    reasoning: str


@dataclass
class VectorDocument:
    """A document stored in a vector-store collection."""
    id: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    embedding: Optional[List[float]] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'VectorDocument':
        return cls(
            id=str(data['id']),
            content=data.get('content', ''),
            metadata=dict(data.get('metadata') or {}),
            embedding=data.get('embedding'),
        )


@dataclass(frozen=True)
class UserLocation:
    """Where the user is searching from."""
    label: str
    lat: float
    lng: float
    currency: str = "EUR"


@dataclass(frozen=True)
class SearchRequest:
    """A single free-text search request."""
    query: str
    user_location: UserLocation
    conversation_id: Optional[str] = None


@dataclass(frozen=True)
class SearchContext:
    """Parameters handed to every listing source."""
    query: str
    price_range: PriceRange
    user_location: UserLocation
    property_type: Optional[str] = None
