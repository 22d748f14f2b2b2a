"""
Relevance ranking of candidate listings.

The ranker uses the AI gateway when it is available and the candidate set is
small enough, batch by batch. A batch whose AI call fails or whose response
cannot be parsed is scored locally as a whole; the AI path as a whole runs
under a timeout, after which every listing is scored locally.
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from property_scout.ai.gateway import AIGateway
from property_scout.config.settings import RankingConfig
from property_scout.error_handling.exceptions import AIBackendUnavailable, MalformedAIResponse
from property_scout.models import Listing, ParsedQuery, RelevanceResult
from property_scout.ranking.local_scorer import score_locally
from property_scout.ranking.parser import MalformedResponse, merge_with_candidates, parse_relevance_response
from property_scout.ranking.prompts import LISTING_ANALYSIS_SYSTEM_PROMPT, build_analysis_prompt


logger = logging.getLogger(__name__)

RankedPair = Tuple[Listing, RelevanceResult]


class RelevanceRanker:
    """
    Score and rank listings against the user's original query.

    Attributes:
        gateway: AI gateway, or None to always score locally
        config: Ranking policy
        last_used_ai: Whether the most recent ``score`` call used AI for any batch
    """

    def __init__(self, gateway: Optional[AIGateway] = None, config: Optional[RankingConfig] = None):
        self.gateway = gateway
        self.config = config or RankingConfig()
        self.last_used_ai = False

    async def _ai_available(self) -> bool:
        if self.gateway is None:
            return False
        health = await self.gateway.check_health()
        return health.available

    async def score(
        self,
        query: str,
        listings: Sequence[Listing],
        parsed: Optional[ParsedQuery] = None,
        skip_ai: bool = False,
        force_detailed: bool = False
    ) -> List[RelevanceResult]:
        """
        Produce exactly one RelevanceResult per listing, in input order.

        Args:
            query: The user's original query
            listings: Candidate listings
            parsed: Already-parsed query, used by the local scorer
            skip_ai: Score locally without asking the gateway
            force_detailed: Ask for detailed AI reasoning regardless of count

        Returns:
            Relevance results aligned with ``listings``
        """
        self.last_used_ai = False
        if not listings:
            return []

        use_ai = (
            self.config.enable_ai_analysis
            and not skip_ai
            and len(listings) <= self.config.max_listings_for_ai
            and await self._ai_available()
        )
        if not use_ai:
            logger.info(f"Scoring {len(listings)} listings locally")
            return score_locally(query, listings, parsed)

        detailed = force_detailed or len(listings) <= self.config.detailed_analysis_threshold
        logger.info(
            f"AI analysis: {'detailed' if detailed else 'brief'} mode, "
            f"{len(listings)} listings in batches of {self.config.batch_size}"
        )
        try:
            return await asyncio.wait_for(
                self._score_with_ai(query, listings, parsed, detailed),
                timeout=self.config.analysis_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"AI analysis timed out after {self.config.analysis_timeout_seconds}s, "
                f"scoring {len(listings)} listings locally"
            )
            self.last_used_ai = False
            return score_locally(query, listings, parsed)

    async def _score_with_ai(
        self,
        query: str,
        listings: Sequence[Listing],
        parsed: Optional[ParsedQuery],
        detailed: bool
    ) -> List[RelevanceResult]:
        results: List[RelevanceResult] = []
        size = max(1, self.config.batch_size)
        batches = [listings[i:i + size] for i in range(0, len(listings), size)]

        for index, batch in enumerate(batches, start=1):
            logger.debug(f"AI analysis batch {index}/{len(batches)} ({len(batch)} listings)")
            try:
                results.extend(await self._score_batch(query, batch, detailed))
                self.last_used_ai = True
            except (AIBackendUnavailable, MalformedAIResponse) as e:
                logger.warning(f"AI analysis of batch {index} failed, scoring it locally: {e}")
                results.extend(score_locally(query, batch, parsed))
        return results

    async def _score_batch(self, query: str, batch: Sequence[Listing], detailed: bool) -> List[RelevanceResult]:
        prompt = build_analysis_prompt(query, batch, detailed)
        response = await self.gateway.complete(prompt, LISTING_ANALYSIS_SYSTEM_PROMPT)

        parsed = parse_relevance_response(response)
        if isinstance(parsed, MalformedResponse):
            raise MalformedAIResponse(parsed.reason)
        return merge_with_candidates(parsed, batch)

    async def rank(
        self,
        query: str,
        listings: Sequence[Listing],
        parsed: Optional[ParsedQuery] = None,
        skip_ai: bool = False
    ) -> List[RankedPair]:
        """
        Relevant listings paired with their results, best first.

        When AI narrowed a large set down to a few listings, the survivors
        are re-scored in detailed mode for better reasoning.
        """
        results = await self.score(query, listings, parsed, skip_ai=skip_ai)
        ranked = _relevant_sorted(zip(listings, results))

        threshold = self.config.detailed_analysis_threshold
        if self.last_used_ai and ranked and len(ranked) <= threshold < len(listings):
            logger.info(f"Re-analyzing {len(ranked)} final results in detailed mode")
            survivors = [listing for listing, _ in ranked]
            detailed = await self.score(query, survivors, parsed, force_detailed=True)
            ranked = _relevant_sorted(zip(survivors, detailed))

        return ranked


def _relevant_sorted(pairs) -> List[RankedPair]:
    relevant = [(listing, result) for listing, result in pairs if result.is_relevant]
    relevant.sort(key=lambda pair: pair[1].score, reverse=True)
    return relevant
