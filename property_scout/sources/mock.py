"""
Deterministic offline listing source with Portuguese sample listings.
"""

import logging
from typing import List, Optional, Sequence

from property_scout.models import Listing, ListingType, SearchContext
from property_scout.sources.base import ListingSource


logger = logging.getLogger(__name__)


def _listing(**kwargs) -> Listing:
    return Listing(currency="EUR", **kwargs)


SAMPLE_LISTINGS = [
    _listing(
        id="mock-idealista-001", source_site="idealista",
        source_url="https://www.idealista.pt/imovel/mock-001",
        title="Rustic land plot with views near Sintra", price_eur=18500, area_sqm=1200,
        address="Sintra, Lisbon District", city="Sintra", lat=38.8029, lng=-9.3817, property_type="land",
        description="Quiet terreno rústico with access road and utilities nearby. Good for small farming or a weekend retreat.",
    ),
    _listing(
        id="mock-kyero-002", source_site="kyero",
        source_url="https://www.kyero.com/en/property/mock-002",
        title="Agricultural land in Loures", price_eur=22000, area_sqm=2500,
        address="Loures, Lisbon District", city="Loures", lat=38.8309, lng=-9.1685, property_type="land",
        description="Flat agricultural land with water access. 30 min from Lisbon center.",
    ),
    _listing(
        id="mock-supercasa-003", source_site="supercasa",
        source_url="https://supercasa.pt/mock-003",
        title="Building plot in Torres Vedras", price_eur=35000, area_sqm=800,
        address="Torres Vedras, Lisbon District", city="Torres Vedras", lat=39.0914, lng=-9.2586,
        property_type="land",
        description="Lote de terreno urbano with building permit approved. All utilities connected.",
    ),
    _listing(
        id="mock-idealista-004", source_site="idealista",
        source_url="https://www.idealista.pt/imovel/mock-004",
        title="Vineyard land in Alentejo", price_eur=45000, area_sqm=15000,
        address="Évora, Alentejo", city="Évora", lat=38.5667, lng=-7.9, property_type="land",
        description="Large plot with existing vineyard. Ideal for wine production or agritourism.",
    ),
    _listing(
        id="mock-kyero-005", source_site="kyero",
        source_url="https://www.kyero.com/en/property/mock-005",
        title="Coastal plot near Setúbal", price_eur=48000, area_sqm=3200,
        address="Setúbal, Setúbal District", city="Setúbal", lat=38.5244, lng=-8.8926, property_type="land",
        description="Sea views, 10 min from the beach. Electricity at the boundary.",
    ),
    _listing(
        id="mock-supercasa-006", source_site="supercasa",
        source_url="https://supercasa.pt/mock-006",
        title="Traditional stone house to renovate in Mafra", price_eur=55000, beds=2, baths=1, area_sqm=120,
        address="Mafra, Lisbon District", city="Mafra", lat=38.9369, lng=-9.3309, property_type="house",
        description="Charming stone cottage needing renovation. Large garden with fruit trees.",
    ),
    _listing(
        id="mock-idealista-007", source_site="idealista",
        source_url="https://www.idealista.pt/imovel/mock-007",
        title="Rural house with land in Alenquer", price_eur=72000, beds=3, baths=1, area_sqm=150,
        address="Alenquer, Lisbon District", city="Alenquer", lat=39.0547, lng=-9.0158, property_type="house",
        description="Renovated farmhouse with 5000sqm of land. 45 min from Lisbon.",
    ),
    _listing(
        id="mock-imovirtual-008", source_site="imovirtual",
        source_url="https://www.imovirtual.com/mock-008",
        title="Studio apartment in Porto center", price_eur=89000, beds=0, baths=1, area_sqm=35,
        address="Porto, Porto District", city="Porto", lat=41.1579, lng=-8.6291, property_type="apartment",
        description="Compact studio in the historic center. Recently renovated.",
    ),
    _listing(
        id="mock-olx-009", source_site="olx",
        source_url="https://www.olx.pt/mock-009",
        title="Apartamento T1 em Coimbra", price_eur=65000, beds=1, baths=1, area_sqm=55,
        address="Coimbra", city="Coimbra", lat=40.2033, lng=-8.4103, property_type="apartment",
        description="Bright apartment near the university. Good rental potential.",
    ),
    _listing(
        id="mock-idealista-010", source_site="idealista",
        source_url="https://www.idealista.pt/imovel/mock-010",
        title="Small plot in interior Portugal", price_eur=8500, area_sqm=500,
        address="Guarda", city="Guarda", lat=40.5372, lng=-7.2676, property_type="land",
        description="Affordable plot in the mountain region. Road access, no utilities yet.",
    ),
    _listing(
        id="mock-kyero-011", source_site="kyero",
        source_url="https://www.kyero.com/en/property/mock-011",
        title="Rustic land in Trás-os-Montes", price_eur=12000, area_sqm=4000,
        address="Bragança", city="Bragança", lat=41.8061, lng=-6.7589, property_type="land",
        description="Large rural plot with spring water. Remote but beautiful location.",
    ),
    _listing(
        id="mock-supercasa-012", source_site="supercasa",
        source_url="https://supercasa.pt/mock-012",
        title="Olive grove land in Algarve", price_eur=29000, area_sqm=8000,
        address="Tavira, Algarve", city="Tavira", lat=37.1271, lng=-7.6506, property_type="land",
        description="Established olive grove with 50+ trees. Potential for rural tourism.",
    ),
    _listing(
        id="mock-olx-013", source_site="olx",
        source_url="https://www.olx.pt/mock-013",
        title="Apartamento T2 para arrendar em Lisboa", price_eur=1350, beds=2, baths=1, area_sqm=80,
        address="Arroios, Lisboa", city="Lisboa", lat=38.7369, lng=-9.1366, property_type="apartment",
        listing_type=ListingType.RENT,
        description="T2 renovado com varanda, 1350€ por mês. Perto do metro.",
    ),
]

_TYPE_ALIASES = {
    "land": {"land", "plot", "terrain"},
    "house": {"house", "villa", "cottage"},
    "apartment": {"apartment", "flat"},
}


def _wanted_type(context: SearchContext) -> Optional[str]:
    if context.property_type:
        wanted = context.property_type.lower()
        for canonical, aliases in _TYPE_ALIASES.items():
            if wanted in aliases:
                return canonical
        return None

    query = context.query.lower()
    for canonical, aliases in _TYPE_ALIASES.items():
        if any(alias in query for alias in aliases):
            return canonical
    return None


class MockListingSource(ListingSource):
    """Serves a fixed sample set, filtered by property type and price window."""

    source_id = "mock"
    source_name = "Mock Listings"

    def __init__(self, listings: Optional[Sequence[Listing]] = None):
        self.listings = list(listings) if listings is not None else list(SAMPLE_LISTINGS)

    async def search_listings(self, context: SearchContext) -> List[Listing]:
        wanted = _wanted_type(context)
        price_range = context.price_range
        logger.info(
            f"[mock] Searching price range {price_range.min_price or 0} - "
            f"{price_range.max_price or 'unlimited'} (type: {wanted or 'any'})"
        )

        results = [
            listing for listing in self.listings
            if (wanted is None or listing.property_type == wanted)
            and price_range.contains(listing.price_eur)
        ]
        logger.info(f"[mock] Found {len(results)} matching listings")
        return results
