"""
Module to contain base class for Delivery channels
"""
from abc import ABC, abstractmethod
from typing import Sequence

from core.entities import FeedPage
from ingestion.representatives import Representative


class DeliveryChannel(ABC):
    """
    Base interface for all delivery channels.
    """

    name: str

    @abstractmethod
    async def deliver(
        self,
        *,
        profile_name: str,
        feed_date: str,
        page: FeedPage,
        representatives: Sequence[Representative] = (),
    ) -> None:
        """
        Deliver the feed and the profile's representatives.
        Must raise exceptions on failure (handled upstream).
        """
        raise NotImplementedError
