"""In-process stand-ins for AI backends and listing sources."""

from typing import List, Optional

from property_scout.ai.backends import AIBackend
from property_scout.models import Listing, SearchContext
from property_scout.sources.base import ListingSource


class FakeBackend(AIBackend):
    """Backend that replays scripted responses; exceptions are raised."""

    def __init__(self, name, responses=("ok",), configured=True, reachable=True, models=None):
        super().__init__(model="fake-model")
        self.name = name
        self.label = name.title()
        self.responses = list(responses)
        self.configured = configured
        self.reachable = reachable
        self.models = list(models) if models is not None else ["fake-model"]
        self.calls = 0
        self.probes = 0
        self.last_messages = None
        self.last_system_prompt = None

    def is_configured(self) -> bool:
        return self.configured

    async def complete(self, messages, system_prompt):
        self.calls += 1
        self.last_messages = messages
        self.last_system_prompt = system_prompt
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, BaseException):
            raise response
        return response

    async def probe(self) -> bool:
        self.probes += 1
        return self.configured and self.reachable

    async def list_models(self) -> List[str]:
        return list(self.models) if self.reachable else []


class StaticSource(ListingSource):
    """Returns its listings filtered by the context's price range."""

    def __init__(self, listings: List[Listing], source_id: str = "static"):
        self.listings = list(listings)
        self.source_id = source_id
        self.source_name = source_id.title()
        self.contexts: List[SearchContext] = []

    async def search_listings(self, context: SearchContext) -> List[Listing]:
        self.contexts.append(context)
        return [l for l in self.listings if context.price_range.contains(l.price_eur)]


class FailingSource(ListingSource):
    source_id = "broken"
    source_name = "Broken"

    def __init__(self, error: Optional[Exception] = None):
        self.error = error or RuntimeError("site is down")
        self.calls = 0

    async def search_listings(self, context: SearchContext) -> List[Listing]:
        self.calls += 1
        raise self.error


def make_listing(listing_id, title, price, description=None, lat=None, lng=None, **kwargs) -> Listing:
    return Listing(
        id=listing_id,
        source_site="test",
        source_url=f"https://example.com/{listing_id}",
        title=title,
        price_eur=price,
        description=description,
        lat=lat,
        lng=lng,
        **kwargs
    )


class ScriptedResponse:
    def __init__(self, body, status=200):
        self.status = status
        self.body = body

    async def text(self):
        return str(self.body)

    async def json(self, content_type=None):
        return self.body


class ScriptedSession:
    """Stands in for aiohttp.ClientSession: every post answers with a body or raises."""

    closed = False

    def __init__(self, outcome):
        self.outcome = outcome

    def post(self, url, json=None, headers=None):
        return self

    async def __aenter__(self):
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return ScriptedResponse(self.outcome)

    async def __aexit__(self, *exc_info):
        return False
