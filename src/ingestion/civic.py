"""
Local ballot measures from the Google Civic Information voterinfo endpoint.
"""
import hashlib
import logging
from typing import Any, Dict, List, Optional

import httpx

from core.taxonomy import ContentKind, ContentScope, ContentStatus
from ingestion.base import CachedSourceAdapter, FeedQuery, RecordLocation, UnifiedContentRecord
from ingestion.fallback import local_samples
from ingestion.normalization import categorize_ballot_measure, infer_tags

logger = logging.getLogger(__name__)

CIVIC_BASE_URL = "https://www.googleapis.com/civicinfo/v2"


def _is_measure(contest: Dict[str, Any]) -> bool:
    return contest.get("type") == "Referendum" or bool(contest.get("ballotTitle"))


class CivicAdapter(CachedSourceAdapter):
    name = "civic"

    def __init__(self, *, base_url: str = CIVIC_BASE_URL, **kwargs):
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    def cache_params(self, query: FeedQuery) -> Optional[Dict[str, Any]]:
        address = query.raw_location or query.location.full_location
        if not address:
            return None
        return {"address": address}

    async def request(self, client: httpx.AsyncClient, params: Dict[str, Any]) -> Any:
        return await self.get_json(
            client,
            f"{self.base_url}/voterinfo",
            params={"key": self.api_key, "address": params["address"]},
        )

    def normalize(self, payload: Any, query: FeedQuery) -> List[UnifiedContentRecord]:
        if not isinstance(payload, dict):
            raise ValueError("expected a JSON object")

        election_date = (payload.get("election") or {}).get("electionDay")
        location = RecordLocation.from_parsed(query.location)
        records = []

        for contest in payload.get("contests") or []:
            if not _is_measure(contest):
                continue

            title = (
                contest.get("referendumTitle")
                or contest.get("ballotTitle")
                or contest.get("office")
                or ""
            ).strip()
            if not title:
                continue

            subtitle = contest.get("referendumSubtitle") or ""
            text = contest.get("referendumText") or ""
            digest = hashlib.sha1(f"{title}|{election_date}".encode()).hexdigest()[:12]
            options = [
                c.get("name") for c in contest.get("candidates") or [] if c.get("name")
            ] or contest.get("referendumBallotResponses") or ["Yes", "No"]

            records.append(UnifiedContentRecord(
                id=f"civic-{digest}",
                kind=ContentKind.BALLOT_MEASURE,
                title=title,
                status=ContentStatus.ON_BALLOT,
                scope=ContentScope.LOCAL,
                category=categorize_ballot_measure(title),
                location=location,
                summary=subtitle or title,
                description=text,
                location_tags=["local"],
                election_date=election_date,
                voting_options=options,
                source=self.name,
                source_url=contest.get("referendumUrl"),
                **infer_tags(title, subtitle, text),
            ))

        if not records:
            # No measures on the ballot for this address; keep the local section populated
            logger.info(f"[{self.name}] No ballot measures returned, adding sample measures")
            records.extend(local_samples(query.location, self.name))

        return records

    def fallback(self, query: FeedQuery) -> List[UnifiedContentRecord]:
        return local_samples(query.location, self.name)
