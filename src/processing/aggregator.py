"""
Fan out one query to every adapter and merge the results.
"""
import asyncio
import logging
from typing import Dict, List, Sequence

from ingestion.base import FeedQuery, SourceAdapter, UnifiedContentRecord

logger = logging.getLogger(__name__)


class ContentAggregator:
    """
    Runs adapters concurrently. Output keeps adapter order (federal, state,
    local) regardless of which finished first. An id seen twice keeps its
    first position but takes the later record.
    """

    def __init__(self, adapters: Sequence[SourceAdapter]):
        self.adapters = list(adapters)

    async def aggregate(self, query: FeedQuery) -> List[UnifiedContentRecord]:
        results = await asyncio.gather(
            *(adapter.fetch(query) for adapter in self.adapters),
            return_exceptions=True,
        )

        merged: Dict[str, UnifiedContentRecord] = {}
        for adapter, result in zip(self.adapters, results):
            if isinstance(result, BaseException):
                logger.error(f"Source {adapter.name} raised during fetch: {result!r}")
                continue

            logger.info(f"[{adapter.name}] Contributed {len(result)} records")
            for record in result:
                if record.id in merged:
                    logger.debug(f"Duplicate id {record.id}, keeping later record")
                merged[record.id] = record

        return list(merged.values())

    def clear_caches(self) -> None:
        for adapter in self.adapters:
            adapter.clear_cache()
