"""
Federal bills from the Congress.gov v3 API.
"""
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from core.errors import UpstreamUnavailable
from core.taxonomy import ContentKind, ContentScope
from ingestion.base import CachedSourceAdapter, FeedQuery, UnifiedContentRecord
from ingestion.bill_text import BillTextExcerpt, excerpt_from_text, html_to_text, latest_formatted_text
from ingestion.fallback import federal_samples
from ingestion.normalization import infer_tags, normalize_category, normalize_status
from services.cache import TTLCache
from services.rate_limit import DEMO_IDENTITY

logger = logging.getLogger(__name__)

CONGRESS_GOV_BASE_URL = "https://api.congress.gov/v3"
BILL_TEXT_EXPIRY = 30 * 60

_RECORD_ID_RE = re.compile(r"^congress-(\d+)-([a-z]+)-(\w+)$")


def current_congress(year: Optional[int] = None) -> int:
    """Congress number in session for a calendar year (118th = 2023-2024)."""
    year = year or datetime.now().year
    return ((year - 1789) // 2) + 1


class CongressAdapter(CachedSourceAdapter):
    name = "congress"

    def __init__(
        self,
        *,
        base_url: str = CONGRESS_GOV_BASE_URL,
        congress: Optional[int] = None,
        allow_demo_key: bool = False,
        text_cache: Optional[TTLCache] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")
        self.congress = congress
        self.allow_demo_key = allow_demo_key
        self.text_cache = text_cache or TTLCache(expiry_seconds=BILL_TEXT_EXPIRY, max_entries=200)

    def clear_cache(self) -> None:
        super().clear_cache()
        self.text_cache.clear()

    def effective_key(self) -> Optional[str]:
        if self.api_key:
            return self.api_key
        if self.allow_demo_key:
            return DEMO_IDENTITY
        return None

    def has_credentials(self) -> bool:
        return self.effective_key() is not None

    def rate_identity(self) -> Optional[str]:
        return self.effective_key()

    def cache_params(self, query: FeedQuery) -> Optional[Dict[str, Any]]:
        # Federal content is the same for every jurisdiction
        return {
            "congress": self.congress,
            "limit": query.limit or self.limit,
            "offset": query.page * (query.limit or self.limit),
        }

    async def request(self, client: httpx.AsyncClient, params: Dict[str, Any]) -> Any:
        path = f"/bill/{params['congress']}" if params.get("congress") else "/bill"
        return await self.get_json(
            client,
            f"{self.base_url}{path}",
            params={
                "api_key": self.effective_key(),
                "format": "json",
                "limit": params["limit"],
                "offset": params["offset"],
                "sort": "updateDate desc",
            },
        )

    def normalize(self, payload: Any, query: FeedQuery) -> List[UnifiedContentRecord]:
        if not isinstance(payload, dict):
            raise ValueError("expected a JSON object")

        records = []
        for bill in payload.get("bills") or []:
            record = self._to_record(bill)
            if record is not None:
                records.append(record)
        return records

    def _to_record(self, bill: Dict[str, Any]) -> Optional[UnifiedContentRecord]:
        title = (bill.get("title") or "").strip()
        if not title:
            return None

        bill_type = (bill.get("type") or "").lower()
        number = bill.get("number")
        congress = bill.get("congress")

        latest = bill.get("latestAction") or {}
        action_text = latest.get("text") or ""
        policy_area = (bill.get("policyArea") or {}).get("name")

        sponsors = bill.get("sponsors") or []
        sponsor = None
        if sponsors:
            first = sponsors[0]
            sponsor = first.get("fullName")
            if sponsor and first.get("party") and first.get("state"):
                sponsor = f"{sponsor} ({first['party']}-{first['state']})"

        summary = action_text or f"{bill_type.upper()} {number}"

        return UnifiedContentRecord(
            id=f"congress-{congress}-{bill_type}-{number}",
            kind=ContentKind.FEDERAL_BILL,
            title=title,
            status=normalize_status(action_text),
            scope=ContentScope.FEDERAL,
            category=normalize_category(policy_area or title),
            summary=summary,
            description=f"Latest action: {action_text}" if action_text else "",
            sponsor=sponsor,
            location_tags=["federal"],
            bill_number=f"{bill_type.upper()} {number}" if number else None,
            introduced_date=bill.get("introducedDate"),
            last_action=action_text or None,
            last_action_date=latest.get("actionDate"),
            source=self.name,
            source_url=bill.get("url"),
            **infer_tags(title, action_text, policy_area),
        )

    def fallback(self, query: FeedQuery) -> List[UnifiedContentRecord]:
        return federal_samples(self.name)

    # ------------------------------------------------------------------
    # Bill text
    # ------------------------------------------------------------------

    async def _request_text(self, client: httpx.AsyncClient, params: Dict[str, Any]) -> Any:
        listing = await self.get_json(
            client,
            f"{self.base_url}/bill/{params['congress']}/{params['type']}/{params['number']}/text",
            params={"api_key": self.api_key, "format": "json"},
        )
        if not isinstance(listing, dict):
            raise ValueError("expected a JSON object")

        latest = latest_formatted_text(listing.get("textVersions") or [])
        if latest is None:
            return None

        # The document itself is served from www.congress.gov, outside the API quota
        resp = await client.get(latest["url"])
        resp.raise_for_status()
        return {**latest, "text": html_to_text(resp.text)}

    async def fetch_bill_text(self, record: UnifiedContentRecord) -> Optional[BillTextExcerpt]:
        """
        Key passages from the latest text version of a bill this adapter
        produced, or None. Only runs with a registered key; DEMO_KEY's
        daily quota is left for listings. Never raises.
        """
        if record.source != self.name or record.is_sample_content or not self.api_key:
            return None

        match = _RECORD_ID_RE.match(record.id)
        if match is None:
            return None
        congress, bill_type, number = match.groups()

        key = f"bill_text:{congress}-{bill_type}-{number}"
        cached = self.text_cache.get(key)
        if cached is not None:
            return cached if cached.available else None

        try:
            payload = await self._call_upstream(
                {"congress": congress, "type": bill_type, "number": number},
                request=self._request_text,
            )
        except UpstreamUnavailable as e:
            logger.warning(f"[{self.name}] Bill text unavailable for {record.id} ({e.reason})")
            return None

        if payload is None:
            excerpt = BillTextExcerpt()
        else:
            excerpt = excerpt_from_text(payload["text"], payload.get("version"), payload.get("date"))
        self.text_cache.set(key, excerpt)

        logger.debug(f"[{self.name}] Bill text for {record.id}: {len(excerpt.key_provisions)} provisions")
        return excerpt if excerpt.available else None
