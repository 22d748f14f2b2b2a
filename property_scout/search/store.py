"""
In-memory store of completed searches, used for "pick N" follow-ups.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from property_scout.search.results import RankedListing


logger = logging.getLogger(__name__)


@dataclass
class StoredSearch:
    id: str
    listings: List[RankedListing]
    created_at: datetime = field(default_factory=datetime.now)


class SearchStore:
    """Completed searches keyed by search id, oldest evicted first."""

    def __init__(self, max_entries: int = 100):
        self.max_entries = max_entries
        self._searches: Dict[str, StoredSearch] = {}

    def save(self, search_id: str, listings: List[RankedListing]) -> StoredSearch:
        stored = StoredSearch(id=search_id, listings=list(listings))
        self._searches[search_id] = stored

        while len(self._searches) > self.max_entries:
            oldest = next(iter(self._searches))
            del self._searches[oldest]
            logger.debug(f"Evicted stored search {oldest}")
        return stored

    def get(self, search_id: str) -> Optional[StoredSearch]:
        return self._searches.get(search_id)

    def __len__(self) -> int:
        return len(self._searches)
