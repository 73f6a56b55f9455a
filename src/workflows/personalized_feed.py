"""
Personalized civic feed: the composed fetch → score → enrich → rank pipeline.
"""
import logging
from typing import List, Optional

from core.entities import FeedFilters, FeedPage
from core.location import ParsedLocation
from core.profile import UserProfile
from core.scoring import RelevanceScorer
from ingestion.base import FeedQuery
from ingestion.representatives import Representative, RepresentativeLookup, sample_representatives
from processing.aggregator import ContentAggregator
from processing.enricher import ImpactEnricher
from processing.filters import apply_filters
from processing.ranker import Paginator, rank
from workflows.base import FeedPipeline

logger = logging.getLogger(__name__)


class PersonalizedFeedPipeline(FeedPipeline):
    """
    Holds the last ranked feed so load_more() can grow the window
    without going back to the sources.
    """

    name = "personalized_feed"

    def __init__(
        self,
        aggregator: ContentAggregator,
        scorer: Optional[RelevanceScorer] = None,
        enricher: Optional[ImpactEnricher] = None,
        representatives: Optional[RepresentativeLookup] = None,
        page_size: int = 20,
        load_more_step: int = 10,
    ):
        self.aggregator = aggregator
        self.scorer = scorer or RelevanceScorer()
        self.enricher = enricher
        self.representatives = representatives
        self.page_size = page_size
        self.load_more_step = load_more_step

        self._bypass_cache = False
        self._paginator: Optional[Paginator] = None

    @staticmethod
    def _query_for(profile: Optional[UserProfile], bypass_cache: bool) -> FeedQuery:
        location = profile.location if profile else None
        parsed = profile.parsed_location if profile else ParsedLocation()
        return FeedQuery(location=parsed, raw_location=location, bypass_cache=bypass_cache)

    async def get_personalized_feed(
        self,
        profile: Optional[UserProfile],
        filters: Optional[FeedFilters] = None,
        limit: Optional[int] = None,
    ) -> FeedPage:
        try:
            query = self._query_for(profile, self._bypass_cache)
            self._bypass_cache = False

            if profile is not None and not query.location.is_valid:
                logger.info(f"[{self.name}] Could not parse location {profile.location!r}, no location boost")

            records = await self.aggregator.aggregate(query)
            # Cached records are shared between profiles; annotate copies
            records = [r.model_copy(deep=True) for r in records]
            logger.info(f"[{self.name}] Aggregated {len(records)} candidate records")

            records = apply_filters(records, filters)
            if filters is not None and not filters.is_empty:
                logger.info(f"[{self.name}] After filters: {len(records)} records")

            self.scorer.score_all(records, profile)

            if self.enricher is not None:
                records = await self.enricher.enrich_all(records, profile)

            ranked = rank(records)
            self._paginator = Paginator(ranked, limit or self.page_size)

        except Exception as e:
            logger.exception(f"[{self.name}] Pipeline error: {e}")
            self._paginator = None
            return FeedPage(limit=limit or self.page_size)

        page = self._paginator.page()
        logger.info(f"[{self.name}] Returning {len(page.items)} of {page.total} records")
        return page

    def refresh(self) -> None:
        """Drop all caches; the next feed call goes to the sources."""
        self._bypass_cache = True
        self.aggregator.clear_caches()
        if self.representatives is not None:
            self.representatives.clear_cache()
        logger.info(f"[{self.name}] Caches cleared, next fetch bypasses cache")

    def load_more(self, step: Optional[int] = None) -> FeedPage:
        if self._paginator is None:
            return FeedPage(limit=self.page_size)
        self._paginator.load_more(step or self.load_more_step)
        return self._paginator.page()

    async def get_representatives(self, profile: Optional[UserProfile]) -> List[Representative]:
        query = self._query_for(profile, bypass_cache=False)
        if self.representatives is None:
            return sample_representatives(query.location.state)

        reps = await self.representatives.fetch(query)
        if not reps:
            return sample_representatives(query.location.state)
        return reps
