from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

from core.taxonomy import ContentCategory, ContentScope
from ingestion.base import UnifiedContentRecord


@dataclass(frozen=True)
class FeedFilters:
    """
    User-selected narrowing of the feed. None means "all".
    """
    category: Optional[ContentCategory] = None
    scope: Optional[ContentScope] = None
    search_query: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.category is None and self.scope is None and not self.search_query


@dataclass
class FeedPage:
    """
    The visible window of a ranked feed.
    """
    items: List[UnifiedContentRecord] = field(default_factory=list)
    has_more: bool = False
    total: int = 0
    limit: int = 0
    remaining: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.model_dump(by_alias=True, mode="json") for item in self.items],
            "hasMore": self.has_more,
            "total": self.total,
            "limit": self.limit,
            "remaining": self.remaining,
        }
