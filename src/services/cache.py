"""
Small in-memory TTL cache shared by the source adapters.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    data: Any
    timestamp: float


class TTLCache:
    """
    key -> CacheEntry, valid while now - timestamp < expiry.

    When max_entries is set, inserting past the limit evicts the oldest
    entry. The clock is injectable so tests can move time forward.
    """

    def __init__(
        self,
        expiry_seconds: float,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.expiry_seconds = expiry_seconds
        self.max_entries = max_entries
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def is_valid(self, entry: Optional[CacheEntry]) -> bool:
        return entry is not None and self.clock() - entry.timestamp < self.expiry_seconds

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if not self.is_valid(entry):
            return None
        return entry.data

    def set(self, key: str, data: Any) -> None:
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(data=data, timestamp=self.clock())

        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                oldest = min(self._entries, key=lambda k: self._entries[k].timestamp)
                del self._entries[oldest]
                logger.debug(f"Evicted cache entry {oldest}")

    def clear(self) -> None:
        self._entries.clear()
