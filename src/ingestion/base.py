"""
Base classes for Ingestion
"""
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.errors import QuotaExceeded, UpstreamUnavailable
from core.location import ParsedLocation
from core.schemas import ImpactEstimate
from core.taxonomy import ContentCategory, ContentKind, ContentScope, ContentStatus
from services.cache import TTLCache
from services.rate_limit import RateLimitGuard

logger = logging.getLogger(__name__)


class RecordLocation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    city: Optional[str] = None
    county: Optional[str] = None
    state: Optional[str] = None
    state_code: Optional[str] = Field(default=None, alias="stateCode")

    @classmethod
    def from_parsed(cls, parsed: ParsedLocation, *, city_level: bool = True) -> "RecordLocation":
        return cls(
            city=parsed.city if city_level else None,
            county=parsed.county if city_level else None,
            state=parsed.state,
            state_code=parsed.state_code,
        )


class UnifiedContentRecord(BaseModel):
    """
    Canonical shape every source adapter normalizes into.
    Serialize with model_dump(by_alias=True) for the camelCase UI shape.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    kind: ContentKind
    title: str
    status: str = ContentStatus.IN_PROGRESS
    scope: ContentScope
    category: ContentCategory = ContentCategory.OTHER
    location: Optional[RecordLocation] = None
    description: str = ""
    summary: str = ""
    sponsor: Optional[str] = None
    cosponsors: List[str] = Field(default_factory=list)

    # Impact annotation
    personal_impact: Optional[str] = Field(default=None, alias="personalImpact")
    financial_effect: Optional[float] = Field(default=None, alias="financialEffect")
    timeline: Optional[str] = None
    confidence: Optional[int] = None
    is_benefit: Optional[bool] = Field(default=None, alias="isBenefit")

    # Scoring tags
    relevant_demographics: List[str] = Field(default_factory=list, alias="relevantDemographics")
    relevant_interests: List[str] = Field(default_factory=list, alias="relevantInterests")
    income_relevance: List[str] = Field(default_factory=list, alias="incomeRelevance")
    household_relevance: List[str] = Field(default_factory=list, alias="householdRelevance")
    priority_match: List[str] = Field(default_factory=list, alias="priorityMatch")
    location_tags: List[str] = Field(default_factory=list, alias="locationTags")

    is_sample_content: bool = Field(default=False, alias="isSampleContent")
    relevance_score: Optional[float] = Field(default=None, alias="relevanceScore")
    relevance_explanation: Optional[str] = Field(default=None, alias="relevanceExplanation")

    # Provenance
    source: Optional[str] = None
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")
    bill_number: Optional[str] = Field(default=None, alias="billNumber")
    introduced_date: Optional[str] = Field(default=None, alias="introducedDate")
    last_action: Optional[str] = Field(default=None, alias="lastAction")
    last_action_date: Optional[str] = Field(default=None, alias="lastActionDate")
    election_date: Optional[str] = Field(default=None, alias="electionDate")
    voting_options: List[str] = Field(default_factory=list, alias="votingOptions")

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be empty")
        return value

    @field_validator(
        "cosponsors",
        "relevant_demographics",
        "relevant_interests",
        "income_relevance",
        "household_relevance",
        "priority_match",
        "location_tags",
        "voting_options",
        mode="before",
    )
    @classmethod
    def _none_is_empty(cls, value):
        return [] if value is None else value

    @model_validator(mode="after")
    def _check_invariants(self) -> "UnifiedContentRecord":
        if self.scope == ContentScope.FEDERAL:
            self.location = None
        if self.confidence is not None:
            self.confidence = max(0, min(100, int(self.confidence)))
        return self

    @property
    def has_impact(self) -> bool:
        return self.personal_impact is not None

    @property
    def text(self) -> str:
        """Lowercased searchable text."""
        return f"{self.title} {self.summary} {self.description}".lower()

    def apply_impact(self, estimate: ImpactEstimate) -> None:
        self.personal_impact = estimate.personal_impact
        self.financial_effect = estimate.financial_effect
        self.timeline = estimate.timeline
        self.confidence = max(0, min(100, estimate.confidence))
        self.is_benefit = estimate.is_benefit


@dataclass
class FeedQuery:
    """
    What to fetch: the parsed jurisdiction plus paging hints.
    """
    location: ParsedLocation = field(default_factory=ParsedLocation)
    raw_location: Optional[str] = None
    limit: Optional[int] = None  # None: each adapter's configured limit
    page: int = 0
    category: Optional[str] = None
    search_query: Optional[str] = None
    bypass_cache: bool = False


class SourceAdapter(ABC):
    """
    Base interface for all ingestion sources.
    """

    name: str = "source"

    @abstractmethod
    async def fetch(self, query: FeedQuery) -> List[UnifiedContentRecord]:
        """
        Fetch normalized records for the query's jurisdiction.
        Must NEVER raise uncaught exceptions.
        """
        raise NotImplementedError

    def clear_cache(self) -> None:
        """Drop any cached responses. No-op for uncached adapters."""


class CachedSourceAdapter(SourceAdapter):
    """
    Cache -> credential -> quota -> bounded network call -> normalize.

    Any failure along the way (missing key, quota denial, timeout, non-2xx,
    malformed body) is logged and answered with the adapter's deterministic
    sample records instead. Only real upstream results are cached.
    """

    requires_credential: bool = True

    def __init__(
        self,
        *,
        cache: TTLCache,
        api_key: Optional[str] = None,
        timeout: float = 8.0,
        limit: int = 20,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rate_guard: Optional[RateLimitGuard] = None,
    ):
        self.cache = cache
        self.api_key = api_key
        self.timeout = timeout
        self.limit = limit
        self.transport = transport
        self.rate_guard = rate_guard

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def cache_params(self, query: FeedQuery) -> Optional[Dict[str, Any]]:
        """
        Parameters that identify the request, or None when the query has
        no jurisdiction this source serves.
        """
        raise NotImplementedError

    @abstractmethod
    async def request(self, client: httpx.AsyncClient, params: Dict[str, Any]) -> Any:
        """Perform the upstream call(s) and return the raw payload."""
        raise NotImplementedError

    @abstractmethod
    def normalize(self, payload: Any, query: FeedQuery) -> List[UnifiedContentRecord]:
        raise NotImplementedError

    @abstractmethod
    def fallback(self, query: FeedQuery) -> List[UnifiedContentRecord]:
        raise NotImplementedError

    def rate_identity(self) -> Optional[str]:
        """Identity to charge against the rate guard; None when unmetered."""
        return None

    def has_credentials(self) -> bool:
        return bool(self.api_key) or not self.requires_credential

    # ------------------------------------------------------------------

    def cache_key(self, params: Dict[str, Any]) -> str:
        return f"{self.name}:{json.dumps(params, sort_keys=True, default=str)}"

    def clear_cache(self) -> None:
        self.cache.clear()

    async def get_json(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        resp = await client.get(url, params=params, headers=headers)
        resp.raise_for_status()
        return resp.json()

    async def _call_upstream(
        self,
        params: Dict[str, Any],
        request: Optional[Callable[[httpx.AsyncClient, Dict[str, Any]], Awaitable[Any]]] = None,
    ) -> Any:
        """
        Quota check, then one bounded call through request (default: the
        adapter's listing request). Raises UpstreamUnavailable.
        """
        request = request or self.request
        identity = self.rate_identity()
        if self.rate_guard is not None and identity:
            decision = self.rate_guard.can_make_request(identity)
            if not decision.allowed:
                raise QuotaExceeded(self.name, decision.reason or "rate limit reached")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                return await asyncio.wait_for(
                    request(client, params),
                    timeout=self.timeout,
                )
        except asyncio.TimeoutError:
            raise UpstreamUnavailable(self.name, f"timed out after {self.timeout}s")
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailable(self.name, f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(self.name, f"{e.__class__.__name__}: {e}")
        except ValueError as e:
            raise UpstreamUnavailable(self.name, f"malformed body: {e}")
        finally:
            # The upstream counts the attempt whether or not it succeeded
            if self.rate_guard is not None and identity:
                self.rate_guard.record_request(identity)

    async def fetch(self, query: FeedQuery) -> List[UnifiedContentRecord]:
        params = self.cache_params(query)
        if params is None:
            logger.debug(f"[{self.name}] No jurisdiction for this source, skipping")
            return []

        key = self.cache_key(params)
        if not query.bypass_cache:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"[{self.name}] Cache hit for {key}")
                return list(cached)

        if not self.has_credentials():
            logger.info(f"[{self.name}] No API key configured, using sample content")
            return self.fallback(query)

        try:
            payload = await self._call_upstream(params)
            records = self.normalize(payload, query)
        except UpstreamUnavailable as e:
            logger.warning(f"[{self.name}] Upstream unavailable ({e.reason}), using sample content")
            return self.fallback(query)
        except Exception as e:
            logger.warning(f"[{self.name}] Could not normalize response ({e}), using sample content")
            return self.fallback(query)

        self.cache.set(key, records)
        logger.info(f"[{self.name}] Fetched {len(records)} records")
        return list(records)
