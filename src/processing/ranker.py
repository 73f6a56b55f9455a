"""
Final ordering and the growable display window.
"""
from functools import cmp_to_key
from typing import List, Sequence

from core.entities import FeedPage
from ingestion.base import UnifiedContentRecord


def compare_records(a: UnifiedContentRecord, b: UnifiedContentRecord) -> int:
    """
    Relevance descending. On equal relevance, when both records are
    benefits, the larger financial effect comes first; otherwise keep
    input order.
    """
    score_a = a.relevance_score or 0.0
    score_b = b.relevance_score or 0.0
    if score_a != score_b:
        return -1 if score_a > score_b else 1

    if a.is_benefit is True and b.is_benefit is True:
        effect_a = abs(a.financial_effect or 0)
        effect_b = abs(b.financial_effect or 0)
        if effect_a != effect_b:
            return -1 if effect_a > effect_b else 1

    return 0


def rank(records: Sequence[UnifiedContentRecord]) -> List[UnifiedContentRecord]:
    # sorted() is stable, so ties fall back to aggregation order
    return sorted(records, key=cmp_to_key(compare_records))


class Paginator:
    """
    Holds one ranked list and a display limit that only ever grows.
    Paging never refetches.
    """

    def __init__(self, ranked: Sequence[UnifiedContentRecord], limit: int = 20):
        self.ranked = list(ranked)
        self.limit = max(0, limit)

    @property
    def visible(self) -> List[UnifiedContentRecord]:
        return self.ranked[: self.limit]

    @property
    def remaining(self) -> int:
        return max(0, len(self.ranked) - self.limit)

    @property
    def has_more(self) -> bool:
        return self.remaining > 0

    def load_more(self, step: int = 10) -> List[UnifiedContentRecord]:
        if step > 0:
            self.limit += step
        return self.visible

    def page(self) -> FeedPage:
        return FeedPage(
            items=self.visible,
            has_more=self.has_more,
            total=len(self.ranked),
            limit=self.limit,
            remaining=self.remaining,
        )
