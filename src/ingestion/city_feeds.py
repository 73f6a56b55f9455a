"""
City news and meeting notices from municipal RSS feeds.

Most city sites publish RSS at a handful of predictable paths. Feed URLs
are templates filled in with the city slug, e.g.
"https://www.{city_slug}.gov/news/rss".
"""
import hashlib
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import feedparser
import httpx

from core.errors import UpstreamUnavailable
from core.taxonomy import ContentCategory, ContentKind, ContentScope, ContentStatus
from ingestion.base import CachedSourceAdapter, FeedQuery, RecordLocation, UnifiedContentRecord
from ingestion.fallback import city_samples
from ingestion.normalization import infer_tags, normalize_category

logger = logging.getLogger(__name__)

DEFAULT_FEED_TEMPLATES = [
    "https://www.{city_slug}.gov/news/rss",
    "https://www.cityof{city_slug}.org/rss",
    "https://www.{city_slug}{state_code}.gov/rss.aspx",
]

_MEETING_RE = re.compile(r"\b(meeting|hearing|council|commission|town hall)\b", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")


def city_slug(city: str) -> str:
    return re.sub(r"[^a-z0-9]", "", city.lower())


class CityFeedAdapter(CachedSourceAdapter):
    name = "city_feeds"
    requires_credential = False

    def __init__(self, *, feeds: Optional[List[str]] = None, **kwargs):
        super().__init__(**kwargs)
        self.feed_templates = feeds or list(DEFAULT_FEED_TEMPLATES)

    def cache_params(self, query: FeedQuery) -> Optional[Dict[str, Any]]:
        if not query.location.city:
            return None
        return {
            "city_slug": city_slug(query.location.city),
            "state_code": (query.location.state_code or "").lower(),
        }

    def feed_urls(self, params: Dict[str, Any]) -> List[str]:
        return [t.format(**params) for t in self.feed_templates]

    async def request(self, client: httpx.AsyncClient, params: Dict[str, Any]) -> Any:
        entries = []
        errors = []

        for url in self.feed_urls(params):
            try:
                resp = await client.get(url, follow_redirects=True)
                resp.raise_for_status()
            except httpx.HTTPError as e:
                errors.append(f"{url}: {e.__class__.__name__}")
                continue

            feed = feedparser.parse(resp.content)
            if feed.bozo and not feed.entries:
                errors.append(f"{url}: not a feed")
                continue

            entries.extend(feed.entries)

        if not entries and errors:
            raise UpstreamUnavailable(self.name, "; ".join(errors))

        return entries

    def normalize(self, payload: Any, query: FeedQuery) -> List[UnifiedContentRecord]:
        location = RecordLocation.from_parsed(query.location)
        slug = city_slug(query.location.city or "")
        records = []
        seen = set()

        for entry in payload[: self.limit]:
            title = (entry.get("title") or "").strip()
            if not title:
                continue

            link = entry.get("link") or ""
            key = entry.get("id") or link or title
            digest = hashlib.sha1(key.encode()).hexdigest()[:12]
            if digest in seen:
                continue
            seen.add(digest)

            summary = _TAG_RE.sub("", entry.get("summary") or "").strip()

            published = None
            if entry.get("published_parsed"):
                published = datetime(*entry.published_parsed[:6]).date().isoformat()

            is_meeting = bool(_MEETING_RE.search(title))
            category = normalize_category(f"{title} {summary}")
            if category == ContentCategory.OTHER and not is_meeting:
                category = ContentCategory.INFRASTRUCTURE

            records.append(UnifiedContentRecord(
                id=f"city-{slug}-{digest}",
                kind=ContentKind.PUBLIC_MEETING if is_meeting else ContentKind.CITY_PROJECT,
                title=title,
                status=ContentStatus.SCHEDULED if is_meeting else ContentStatus.PROPOSED,
                scope=ContentScope.CITY,
                category=category,
                location=location,
                summary=summary[:500] or title,
                location_tags=["city", slug],
                last_action_date=published,
                source=self.name,
                source_url=link or None,
                **infer_tags(title, summary),
            ))

        return records

    def fallback(self, query: FeedQuery) -> List[UnifiedContentRecord]:
        return city_samples(query.location, self.name)
