"""
Category / scope / free-text filters applied to the scored feed.
"""
from typing import Iterable, List, Optional

from core.entities import FeedFilters
from core.taxonomy import ContentScope, LOCAL_SCOPES
from ingestion.base import UnifiedContentRecord


def matches_scope(record: UnifiedContentRecord, scope: Optional[ContentScope]) -> bool:
    """Local is an umbrella for city, county and special-district items."""
    if scope is None:
        return True
    if scope == ContentScope.LOCAL:
        return record.scope in LOCAL_SCOPES
    return record.scope == scope


def matches_search(record: UnifiedContentRecord, search_query: Optional[str]) -> bool:
    """Every whitespace-separated term must appear in title or summary."""
    if not search_query or not search_query.strip():
        return True
    haystack = f"{record.title} {record.summary}".lower()
    return all(term in haystack for term in search_query.lower().split())


def apply_filters(
    records: Iterable[UnifiedContentRecord],
    filters: Optional[FeedFilters],
) -> List[UnifiedContentRecord]:
    records = list(records)
    if filters is None or filters.is_empty:
        return records

    return [
        r for r in records
        if (filters.category is None or r.category == filters.category)
        and matches_scope(r, filters.scope)
        and matches_search(r, filters.search_query)
    ]
