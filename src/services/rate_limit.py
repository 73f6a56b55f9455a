"""
Rolling-window request quota tracking for api.data.gov style upstreams.

api.data.gov publishes 1,000 requests/hour for a registered key and
30/hour, 50/day for the shared DEMO_KEY.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

HOUR = 60 * 60
DAY = 24 * HOUR

DEMO_IDENTITY = "DEMO_KEY"


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    reason: Optional[str] = None


class RateLimitGuard:
    """
    Per-identity timestamp log. Denial is advisory: callers treat it the
    same as an upstream failure.
    """

    def __init__(
        self,
        hourly_limit: int = 1000,
        demo_hourly_limit: int = 30,
        demo_daily_limit: int = 50,
        demo_identity: str = DEMO_IDENTITY,
        clock: Callable[[], float] = time.time,
    ):
        self.hourly_limit = hourly_limit
        self.demo_hourly_limit = demo_hourly_limit
        self.demo_daily_limit = demo_daily_limit
        self.demo_identity = demo_identity
        self.clock = clock
        self._requests: Dict[str, List[float]] = {}

    def _is_demo(self, identity: str) -> bool:
        return identity == self.demo_identity

    def _prune(self, identity: str) -> List[float]:
        day_ago = self.clock() - DAY
        recent = [ts for ts in self._requests.get(identity, []) if ts > day_ago]
        self._requests[identity] = recent
        return recent

    def can_make_request(self, identity: str) -> RateDecision:
        recent = self._prune(identity)
        hour_ago = self.clock() - HOUR
        hourly = sum(1 for ts in recent if ts > hour_ago)

        if self._is_demo(identity):
            if hourly >= self.demo_hourly_limit:
                return RateDecision(
                    False, f"{identity} hourly limit exceeded ({self.demo_hourly_limit}/hour)"
                )
            if len(recent) >= self.demo_daily_limit:
                return RateDecision(
                    False, f"{identity} daily limit exceeded ({self.demo_daily_limit}/day)"
                )
        elif hourly >= self.hourly_limit:
            return RateDecision(False, f"Hourly limit exceeded ({self.hourly_limit}/hour)")

        return RateDecision(True)

    def record_request(self, identity: str) -> None:
        self._requests.setdefault(identity, []).append(self.clock())

    def remaining(self, identity: str) -> Dict[str, Optional[int]]:
        recent = self._prune(identity)
        hour_ago = self.clock() - HOUR
        hourly = sum(1 for ts in recent if ts > hour_ago)

        if self._is_demo(identity):
            return {
                "hourly_remaining": max(0, self.demo_hourly_limit - hourly),
                "daily_remaining": max(0, self.demo_daily_limit - len(recent)),
            }
        return {
            "hourly_remaining": max(0, self.hourly_limit - hourly),
            "daily_remaining": None,
        }

    def reset(self) -> None:
        self._requests.clear()
