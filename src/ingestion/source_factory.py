"""
Source Factory - Creates ingestion adapters from configuration.
"""
import logging
from typing import List, Optional

import httpx

from ingestion.base import CachedSourceAdapter
from ingestion.city_feeds import CityFeedAdapter
from ingestion.civic import CivicAdapter
from ingestion.congress import CongressAdapter
from ingestion.openstates import OpenStatesAdapter
from ingestion.representatives import RepresentativeLookup
from services.cache import TTLCache
from services.config import FeedConfig, SourceConfig, get_enabled_sources
from services.rate_limit import RateLimitGuard

logger = logging.getLogger(__name__)

# Aggregation order: federal, state, local
SOURCE_ORDER = ["congress", "openstates", "civic", "city_feeds"]

ADAPTER_TYPES = {
    "congress": CongressAdapter,
    "openstates": OpenStatesAdapter,
    "civic": CivicAdapter,
    "city_feeds": CityFeedAdapter,
    "representatives": RepresentativeLookup,
}


def create_source_adapter(
    source_config: SourceConfig,
    rate_guard: Optional[RateLimitGuard] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> CachedSourceAdapter:
    """
    Create a source adapter from configuration.

    Args:
        source_config: Configuration for the source
        rate_guard: Shared quota tracker (only the Congress adapter uses it)
        transport: Optional httpx transport, injected by tests

    Returns:
        Configured adapter with its own cache

    Raises:
        ValueError: If source type is unknown
    """
    source_type = source_config.type.lower()
    adapter_cls = ADAPTER_TYPES.get(source_type)
    if adapter_cls is None:
        raise ValueError(f"Unknown source type: {source_type}")

    kwargs = dict(
        cache=TTLCache(
            expiry_seconds=source_config.expiry_seconds,
            max_entries=source_config.max_cache_entries,
        ),
        api_key=source_config.api_key,
        timeout=source_config.timeout,
        limit=source_config.limit,
        transport=transport,
    )
    if source_config.base_url:
        kwargs["base_url"] = source_config.base_url

    if source_type == "congress":
        return CongressAdapter(
            rate_guard=rate_guard,
            allow_demo_key=source_config.allow_demo_key,
            **kwargs,
        )

    elif source_type == "city_feeds":
        return CityFeedAdapter(feeds=source_config.feeds, **kwargs)

    return adapter_cls(**kwargs)


def create_adapters_from_config(
    feed_config: FeedConfig,
    rate_guard: Optional[RateLimitGuard] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[CachedSourceAdapter]:
    """
    Create all enabled content adapters, ordered federal -> state -> local.

    Raises:
        ValueError: If a source type is unknown
    """
    enabled_sources = sorted(
        get_enabled_sources(feed_config),
        key=lambda s: SOURCE_ORDER.index(s.type) if s.type in SOURCE_ORDER else len(SOURCE_ORDER),
    )

    adapters = []
    for source_config in enabled_sources:
        adapter = create_source_adapter(source_config, rate_guard=rate_guard, transport=transport)
        adapters.append(adapter)
        logger.info(
            f"Created {source_config.type} adapter "
            f"(timeout={source_config.timeout}s, cache={source_config.expiry_seconds / 60:.0f}m, "
            f"key={'yes' if source_config.api_key else 'no'})"
        )

    return adapters
