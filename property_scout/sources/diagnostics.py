"""
Per-site access diagnostics.

Each configured site is probed for the least intrusive compliant way to read
its listings: an official API, a sitemap, public HTML allowed by robots.txt,
or, failing those, "bring your own cookies" where the user supplies their own
session. Sites that cannot be read are reported back to the caller as
blocked.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import aiohttp


logger = logging.getLogger(__name__)

PROBE_TIMEOUT_SECONDS = 3.5
USER_AGENT = "PropertyScout/0.1 (+compliance check)"


class AccessMethod(str, Enum):
    API = "API"
    SITEMAP = "SITEMAP"
    PUBLIC_HTML = "PUBLIC_HTML"
    BYOC = "BYOC"
    NONE = "NONE"


@dataclass(frozen=True)
class SitePolicy:
    """Which access methods a site may be read with, in preference order."""
    id: str
    name: str
    base_url: str
    order: Tuple[AccessMethod, ...] = (AccessMethod.API, AccessMethod.SITEMAP, AccessMethod.PUBLIC_HTML)
    allowed: Tuple[AccessMethod, ...] = field(default=())

    def allows(self, method: AccessMethod) -> bool:
        return not self.allowed or method in self.allowed


@dataclass(frozen=True)
class SiteDiagnosis:
    site_id: str
    site_name: str
    access_method: AccessMethod
    requires_user_session: bool
    reason: str


SITE_POLICIES = [
    SitePolicy(
        id="olx",
        name="OLX Portugal",
        base_url="https://www.olx.pt",
        order=(AccessMethod.API,),
        allowed=(AccessMethod.API,),
    ),
]

_API_PROBES = {
    "olx": "https://www.olx.pt/api/v1/offers?limit=1",
}


class SiteDiagnostics:
    """
    Probes listing sites for a compliant access method.

    Probing never raises: network failures simply rule out the method being
    probed.
    """

    def __init__(self, policies: Optional[Sequence[SitePolicy]] = None,
                 timeout_seconds: float = PROBE_TIMEOUT_SECONDS):
        self.policies = list(policies) if policies is not None else list(SITE_POLICIES)
        self.timeout_seconds = timeout_seconds
        self.session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                headers={"User-Agent": USER_AGENT},
            )
        return self.session

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()
            self.session = None

    async def fetch(self, url: str, accept: str = "*/*") -> Optional[Tuple[int, str]]:
        """GET a URL and return (status, body), or None when unreachable."""
        session = await self._ensure_session()
        try:
            async with session.get(url, headers={"Accept": accept}) as response:
                return response.status, await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug(f"Probe of {url} failed: {type(e).__name__}: {e}")
            return None

    async def _probe_api(self, policy: SitePolicy) -> bool:
        url = _API_PROBES.get(policy.id)
        if not url:
            return False
        result = await self.fetch(url, accept="application/json")
        if not result or result[0] != 200:
            return False
        try:
            payload = json.loads(result[1])
        except ValueError:
            return False
        return isinstance(payload, dict) and isinstance(payload.get("data"), list)

    async def _probe_sitemap(self, policy: SitePolicy) -> bool:
        result = await self.fetch(f"{policy.base_url.rstrip('/')}/sitemap.xml", accept="application/xml")
        return bool(result) and 200 <= result[0] < 300

    async def _probe_public_html(self, policy: SitePolicy) -> bool:
        base = policy.base_url.rstrip('/')
        robots = await self.fetch(f"{base}/robots.txt", accept="text/plain")
        if not robots or not 200 <= robots[0] < 300:
            return False
        if "disallow: /" in robots[1].lower():
            return False
        page = await self.fetch(base, accept="text/html")
        return bool(page) and 200 <= page[0] < 300

    async def diagnose(self, policy: SitePolicy) -> SiteDiagnosis:
        """Find the first working access method for a site."""
        probes = {
            AccessMethod.API: (self._probe_api, "Official API available"),
            AccessMethod.SITEMAP: (self._probe_sitemap, "Sitemap accessible"),
            AccessMethod.PUBLIC_HTML: (self._probe_public_html, "Public pages allowed by robots.txt"),
        }

        for method in policy.order:
            if not policy.allows(method):
                continue
            if method == AccessMethod.BYOC:
                return SiteDiagnosis(policy.id, policy.name, AccessMethod.BYOC, True,
                                     "Requires the user's own browser session")
            probe = probes.get(method)
            if probe and await probe[0](policy):
                logger.info(f"[diagnostics] {policy.name}: {method.value}")
                return SiteDiagnosis(policy.id, policy.name, method, False, probe[1])

        logger.info(f"[diagnostics] {policy.name}: no compliant access method")
        return SiteDiagnosis(policy.id, policy.name, AccessMethod.NONE, False,
                             "No compliant access method found")

    async def diagnose_all(self) -> List[SiteDiagnosis]:
        return [await self.diagnose(policy) for policy in self.policies]

    async def blocked_sites(self) -> List[SiteDiagnosis]:
        """Diagnoses for sites that cannot be read without user involvement."""
        diagnoses = await self.diagnose_all()
        return [d for d in diagnoses if d.access_method in (AccessMethod.BYOC, AccessMethod.NONE)]
