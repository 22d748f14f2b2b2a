"""
Listing source capability.
"""

from abc import ABC, abstractmethod
from typing import List

from property_scout.models import Listing, SearchContext


class ListingSource(ABC):
    """A site or feed that returns normalized listings for a search.

    Implementations may raise; the orchestrator treats a failing source as
    having returned nothing.
    """

    source_id: str = ""
    source_name: str = ""

    @abstractmethod
    async def search_listings(self, context: SearchContext) -> List[Listing]:
        """Return listings for the given search context."""
