"""
Elected officials for an address, via Google Civic representatives.

Uses the same cache -> credential -> network -> fallback template as the
content adapters but yields Representative objects instead of records.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from ingestion.base import CachedSourceAdapter, FeedQuery
from ingestion.civic import CIVIC_BASE_URL

logger = logging.getLogger(__name__)


class Representative(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    office: str
    party: Optional[str] = None
    phones: List[str] = Field(default_factory=list)
    emails: List[str] = Field(default_factory=list)
    urls: List[str] = Field(default_factory=list)
    photo_url: Optional[str] = Field(default=None, alias="photoUrl")
    is_sample_content: bool = Field(default=False, alias="isSampleContent")


def sample_representatives(state: Optional[str]) -> List[Representative]:
    label = state or "Your State"
    return [
        Representative(
            name=f"{label} Senator (Senior)",
            office="U.S. Senator",
            is_sample_content=True,
        ),
        Representative(
            name=f"{label} Senator (Junior)",
            office="U.S. Senator",
            is_sample_content=True,
        ),
        Representative(
            name="Your House Representative",
            office="U.S. Representative",
            is_sample_content=True,
        ),
    ]


class RepresentativeLookup(CachedSourceAdapter):
    name = "representatives"

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
            f"{self.base_url}/representatives",
            params={
                "key": self.api_key,
                "address": params["address"],
                "levels": "country",
                "roles": ["legislatorUpperBody", "legislatorLowerBody"],
            },
        )

    def normalize(self, payload: Any, query: FeedQuery) -> List[Representative]:
        if not isinstance(payload, dict):
            raise ValueError("expected a JSON object")

        officials = payload.get("officials") or []
        reps = []
        for office in payload.get("offices") or []:
            for idx in office.get("officialIndices") or []:
                if idx >= len(officials):
                    continue
                official = officials[idx]
                reps.append(Representative(
                    name=official.get("name") or "Unknown",
                    office=office.get("name") or "Unknown Office",
                    party=official.get("party"),
                    phones=official.get("phones") or [],
                    emails=official.get("emails") or [],
                    urls=official.get("urls") or [],
                    photo_url=official.get("photoUrl"),
                ))
        return reps

    def fallback(self, query: FeedQuery) -> List[Representative]:
        return sample_representatives(query.location.state)
