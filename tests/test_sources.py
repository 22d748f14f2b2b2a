"""Tests for the bundled listing source and site diagnostics."""

import asyncio
import json

from property_scout.models import PriceRange, SearchContext, UserLocation
from property_scout.sources import (
    AccessMethod,
    MockListingSource,
    SAMPLE_LISTINGS,
    SiteDiagnostics,
    SitePolicy,
)


LISBON = UserLocation("Lisbon", 38.7223, -9.1393)


def context(query, price_range=PriceRange(), property_type=None):
    return SearchContext(query=query, price_range=price_range, user_location=LISBON, property_type=property_type)


class ScriptedDiagnostics(SiteDiagnostics):
    """Answers probes from a URL -> (status, body) table; anything else is unreachable."""

    def __init__(self, responses, policies):
        super().__init__(policies)
        self.responses = responses
        self.fetched = []

    async def fetch(self, url, accept="*/*"):
        self.fetched.append(url)
        return self.responses.get(url)


def test_sample_listings_have_unique_ids():
    ids = [l.id for l in SAMPLE_LISTINGS]

    assert len(ids) == len(set(ids))


def test_mock_source_filters_by_type_and_price():
    source = MockListingSource()

    results = asyncio.run(source.search_listings(context("cheap land", PriceRange(max_price=30000), "land")))

    assert sorted(l.id for l in results) == [
        "mock-idealista-001",
        "mock-idealista-010",
        "mock-kyero-002",
        "mock-kyero-011",
        "mock-supercasa-012",
    ]


def test_mock_source_infers_type_from_query():
    results = asyncio.run(MockListingSource().search_listings(context("a flat somewhere")))

    assert results
    assert all(l.property_type == "apartment" for l in results)


def test_mock_source_without_type_returns_everything_in_range():
    results = asyncio.run(MockListingSource().search_listings(context("anything", PriceRange(min_price=60000))))

    assert results
    assert all(l.price_eur >= 60000 for l in results)
    assert {l.property_type for l in results} >= {"house", "apartment"}


def test_site_with_working_api():
    policy = SitePolicy("olx", "OLX Portugal", "https://www.olx.pt", (AccessMethod.API,), (AccessMethod.API,))
    diagnostics = ScriptedDiagnostics(
        {"https://www.olx.pt/api/v1/offers?limit=1": (200, json.dumps({"data": []}))},
        [policy],
    )

    diagnosis = asyncio.run(diagnostics.diagnose(policy))

    assert diagnosis.access_method == AccessMethod.API
    assert not diagnosis.requires_user_session
    assert asyncio.run(diagnostics.blocked_sites()) == []


def test_api_returning_html_is_not_an_api():
    policy = SitePolicy("olx", "OLX Portugal", "https://www.olx.pt", (AccessMethod.API,), (AccessMethod.API,))
    diagnostics = ScriptedDiagnostics(
        {"https://www.olx.pt/api/v1/offers?limit=1": (200, "<html>captcha</html>")},
        [policy],
    )

    diagnosis = asyncio.run(diagnostics.diagnose(policy))

    assert diagnosis.access_method == AccessMethod.NONE
    assert diagnosis.reason == "No compliant access method found"


def test_sitemap_and_public_html_probes():
    sitemap_site = SitePolicy("a", "Site A", "https://a.example")
    html_site = SitePolicy("b", "Site B", "https://b.example/")
    closed_site = SitePolicy("c", "Site C", "https://c.example")
    diagnostics = ScriptedDiagnostics(
        {
            "https://a.example/sitemap.xml": (200, "<urlset/>"),
            "https://b.example/robots.txt": (200, "User-agent: *\nAllow: /"),
            "https://b.example": (200, "<html></html>"),
            "https://c.example/robots.txt": (200, "User-agent: *\nDisallow: /"),
            "https://c.example": (200, "<html></html>"),
        },
        [sitemap_site, html_site, closed_site],
    )

    diagnoses = asyncio.run(diagnostics.diagnose_all())

    assert [d.access_method for d in diagnoses] == [AccessMethod.SITEMAP, AccessMethod.PUBLIC_HTML, AccessMethod.NONE]
    assert [d.site_id for d in asyncio.run(diagnostics.blocked_sites())] == ["c"]


def test_byoc_site_requires_user_session():
    policy = SitePolicy("fb", "Facebook Marketplace", "https://www.facebook.com", (AccessMethod.BYOC,))
    diagnostics = ScriptedDiagnostics({}, [policy])

    diagnosis = asyncio.run(diagnostics.diagnose(policy))

    assert diagnosis.access_method == AccessMethod.BYOC
    assert diagnosis.requires_user_session
    assert diagnostics.fetched == []


def test_disallowed_methods_are_not_probed():
    policy = SitePolicy("olx", "OLX Portugal", "https://www.olx.pt", allowed=(AccessMethod.API,))
    diagnostics = ScriptedDiagnostics({"https://www.olx.pt/sitemap.xml": (200, "<urlset/>")}, [policy])

    diagnosis = asyncio.run(diagnostics.diagnose(policy))

    assert diagnosis.access_method == AccessMethod.NONE
    assert diagnostics.fetched == ["https://www.olx.pt/api/v1/offers?limit=1"]
