"""
State bills from the OpenStates v3 API.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from core.taxonomy import ContentKind, ContentScope
from ingestion.base import CachedSourceAdapter, FeedQuery, RecordLocation, UnifiedContentRecord
from ingestion.fallback import state_samples
from ingestion.normalization import infer_tags, normalize_category, normalize_status

logger = logging.getLogger(__name__)

OPENSTATES_BASE_URL = "https://v3.openstates.org"


class OpenStatesAdapter(CachedSourceAdapter):
    name = "openstates"

    def __init__(self, *, base_url: str = OPENSTATES_BASE_URL, **kwargs):
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    def cache_params(self, query: FeedQuery) -> Optional[Dict[str, Any]]:
        if not query.location.state_code:
            return None
        return {
            "jurisdiction": query.location.state_code.lower(),
            "per_page": query.limit or self.limit,
            "page": query.page + 1,
        }

    async def request(self, client: httpx.AsyncClient, params: Dict[str, Any]) -> Any:
        return await self.get_json(
            client,
            f"{self.base_url}/bills",
            params={
                **params,
                "sort": "-updated_at",
                "include": ["sponsorships", "abstracts"],
            },
            headers={"X-API-KEY": self.api_key or ""},
        )

    def normalize(self, payload: Any, query: FeedQuery) -> List[UnifiedContentRecord]:
        if not isinstance(payload, dict):
            raise ValueError("expected a JSON object")

        location = RecordLocation.from_parsed(query.location, city_level=False)
        records = []
        for bill in payload.get("results") or []:
            title = (bill.get("title") or "").strip()
            if not title or not bill.get("id"):
                continue

            abstracts = bill.get("abstracts") or []
            summary = abstracts[0].get("abstract", "") if abstracts else ""

            sponsorships = bill.get("sponsorships") or []
            sponsor = None
            if sponsorships:
                sponsor = sponsorships[0].get("name")
                party = sponsorships[0].get("party")
                if sponsor and party:
                    sponsor = f"{sponsor} ({party})"
            cosponsors = [s.get("name") for s in sponsorships[1:] if s.get("name")]

            latest = bill.get("latest_action") or {}
            action_text = latest.get("description") or ""
            subjects = bill.get("subject") or []
            subject = subjects[0] if subjects else None

            records.append(UnifiedContentRecord(
                id=f"openstates-{bill['id']}",
                kind=ContentKind.STATE_BILL,
                title=title,
                status=normalize_status(action_text),
                scope=ContentScope.STATE,
                category=normalize_category(subject or title),
                location=location,
                summary=summary or title,
                description=f"Latest action: {action_text}" if action_text else "",
                sponsor=sponsor,
                cosponsors=cosponsors,
                location_tags=["state", query.location.state_code.lower()],
                bill_number=bill.get("identifier"),
                introduced_date=bill.get("first_action_date"),
                last_action=action_text or None,
                last_action_date=latest.get("date"),
                source=self.name,
                source_url=bill.get("openstates_url"),
                **infer_tags(title, summary, subject),
            ))
        return records

    def fallback(self, query: FeedQuery) -> List[UnifiedContentRecord]:
        return state_samples(query.location, self.name)
