"""
Contains base class for feed pipelines
"""
from abc import ABC, abstractmethod
from typing import Optional

from core.entities import FeedFilters, FeedPage
from core.profile import UserProfile


class FeedPipeline(ABC):
    """
    Orchestrates fetch → score → enrich → rank
    for a single user profile.
    """

    name: str

    @abstractmethod
    async def get_personalized_feed(
        self,
        profile: Optional[UserProfile],
        filters: Optional[FeedFilters] = None,
        limit: Optional[int] = None,
    ) -> FeedPage:
        """
        Build the ranked feed for a profile.
        Must never raise uncaught exceptions.
        """
        raise NotImplementedError
