"""
Pipeline Factory - Creates the feed pipeline from configuration.
Caches, the rate guard and the analysis client are built here and injected,
so nothing in the pipeline holds module-level state.
"""
import logging
from typing import Any, Optional

import httpx

from core.scoring import RelevanceScorer
from ingestion.congress import CongressAdapter
from ingestion.source_factory import create_adapters_from_config, create_source_adapter
from processing.aggregator import ContentAggregator
from processing.enricher import ImpactEnricher
from services.config import Config
from services.llm import OllamaClient
from services.rate_limit import RateLimitGuard
from workflows.personalized_feed import PersonalizedFeedPipeline

logger = logging.getLogger(__name__)


def create_llm_from_config(config: Config) -> OllamaClient:
    return OllamaClient(
        base_url=config.llm.base_url,
        model=config.llm.model,
        temperature=config.llm.temperature,
        timeout=config.llm.timeout,
    )


def create_feed_pipeline(
    config: Config,
    llm: Optional[Any] = None,
    enrich: bool = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PersonalizedFeedPipeline:
    """
    Build a PersonalizedFeedPipeline from configuration.

    Args:
        config: Loaded configuration
        llm: Analysis client exposing evaluate(); built from config when None
        enrich: Disable to skip impact analysis entirely
        transport: Optional httpx transport shared by all adapters (tests)

    Raises:
        ValueError: If a configured source type is unknown
    """
    rate_guard = RateLimitGuard(
        hourly_limit=config.rate_limit.hourly_limit,
        demo_hourly_limit=config.rate_limit.demo_hourly_limit,
        demo_daily_limit=config.rate_limit.demo_daily_limit,
    )

    adapters = create_adapters_from_config(config.feed, rate_guard=rate_guard, transport=transport)
    representatives = create_source_adapter(
        config.feed.representatives, rate_guard=rate_guard, transport=transport
    )

    congress = next((a for a in adapters if isinstance(a, CongressAdapter)), None)

    enricher = None
    if enrich and config.llm.enabled:
        enricher = ImpactEnricher(
            llm=llm if llm is not None else create_llm_from_config(config),
            max_concurrency=config.llm.max_concurrency,
            bill_text=congress.fetch_bill_text if congress is not None else None,
        )
    else:
        logger.info("Impact enrichment disabled")

    logger.info(f"Created feed pipeline with {len(adapters)} sources")

    return PersonalizedFeedPipeline(
        aggregator=ContentAggregator(adapters),
        scorer=RelevanceScorer(),
        enricher=enricher,
        representatives=representatives,
        page_size=config.feed.page_size,
        load_more_step=config.feed.load_more_step,
    )
