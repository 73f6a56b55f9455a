import statistics

import httpx
import pytest

from conftest import StubLLM, failing_transport, recording_transport
from core.entities import FeedFilters
from core.profile import UserProfile
from core.taxonomy import ContentCategory, ContentScope
from ingestion.base import FeedQuery, SourceAdapter
from processing.aggregator import ContentAggregator
from services.config import config_from_dict
from workflows.pipeline_factory import create_feed_pipeline
from workflows.personalized_feed import PersonalizedFeedPipeline

ALL_SOURCES = {
    "feed": {
        "page_size": 5,
        "load_more_step": 3,
        "sources": [
            {"type": "congress"},
            {"type": "openstates"},
            {"type": "civic"},
            {"type": "city_feeds"},
        ],
    }
}


def _pipeline(env=None, transport=None, llm=None):
    config = config_from_dict(ALL_SOURCES, env=env or {})
    return create_feed_pipeline(
        config,
        llm=llm or StubLLM(error=ConnectionError("offline")),
        transport=transport or failing_transport(),
    )


@pytest.mark.asyncio
async def test_all_sources_down_still_yields_a_ranked_sample_feed(veteran_profile):
    pipeline = _pipeline(
        env={"CONGRESS_API_KEY": "k", "OPENSTATES_API_KEY": "k", "GOOGLE_CIVIC_API_KEY": "k"}
    )

    page = await pipeline.get_personalized_feed(veteran_profile, limit=50)

    assert page.items
    assert all(item.is_sample_content for item in page.items)

    scores = [item.relevance_score for item in page.items]
    assert scores == sorted(scores, reverse=True)
    assert all(s >= 0.1 for s in scores)

    median = statistics.median(scores)
    veterans = [i for i in page.items if i.category == ContentCategory.VETERANS_AFFAIRS]
    assert any(i.relevance_score > median for i in veterans)

    ids = [item.id for item in page.items]
    assert len(ids) == len(set(ids))
    assert all(item.location is None for item in page.items if item.scope == ContentScope.FEDERAL)


@pytest.mark.asyncio
async def test_samples_are_not_sent_for_analysis(veteran_profile):
    llm = StubLLM(error=ConnectionError("offline"))
    pipeline = _pipeline(llm=llm)

    await pipeline.get_personalized_feed(veteran_profile)

    assert llm.prompts == []


@pytest.mark.asyncio
async def test_live_records_are_enriched(veteran_profile):
    payload = {
        "bills": [{
            "congress": 118, "type": "HR", "number": "7",
            "title": "Rural Broadband Act",
            "latestAction": {"text": "Introduced in House"},
        }]
    }

    def handler(request):
        if request.url.host == "api.congress.gov":
            return httpx.Response(200, json=payload)
        return httpx.Response(503)

    reply = '{"personalImpact": "You could get faster internet.", "financialEffect": 0}'
    llm = StubLLM(reply)
    pipeline = _pipeline(env={"CONGRESS_API_KEY": "k"}, transport=httpx.MockTransport(handler), llm=llm)

    page = await pipeline.get_personalized_feed(veteran_profile, limit=50)

    live = [i for i in page.items if i.id == "congress-118-hr-7"]
    assert live and live[0].personal_impact == "You could get faster internet."
    assert len(llm.prompts) == 1


@pytest.mark.parametrize(
    "reply",
    [
        '{"personalImpact": "You pay less.", "financialEffect": 10, "confidence": 1e999}',
        [{"type": "text", "text": "not a string reply"}],
    ],
)
@pytest.mark.asyncio
async def test_odd_analysis_reply_keeps_the_feed(reply, veteran_profile):
    payload = {"bills": [{"congress": 118, "type": "HR", "number": "7", "title": "Rural Broadband Act"}]}

    def handler(request):
        if request.url.host == "api.congress.gov":
            return httpx.Response(200, json=payload)
        return httpx.Response(503)

    pipeline = _pipeline(
        env={"CONGRESS_API_KEY": "k"}, transport=httpx.MockTransport(handler), llm=StubLLM(reply)
    )

    page = await pipeline.get_personalized_feed(veteran_profile, limit=50)

    ids = [i.id for i in page.items]
    assert "congress-118-hr-7" in ids
    assert any(i.is_sample_content for i in page.items)
    live = page.items[ids.index("congress-118-hr-7")]
    assert live.personal_impact
    assert 0 <= live.confidence <= 100


@pytest.mark.asyncio
async def test_load_more_grows_without_refetch(veteran_profile):
    transport, calls = recording_transport(lambda r: httpx.Response(503))
    pipeline = _pipeline(transport=transport)

    first = await pipeline.get_personalized_feed(veteran_profile)
    fetched = len(calls)

    assert len(first.items) == 5
    assert first.has_more

    more = pipeline.load_more()
    assert len(more.items) == min(8, first.total)
    assert more.items[:5] == first.items
    assert len(calls) == fetched


@pytest.mark.asyncio
async def test_refresh_bypasses_cache(veteran_profile):
    payload = {"bills": [{"congress": 118, "type": "S", "number": "1", "title": "A Bill"}]}
    transport, calls = recording_transport(lambda r: httpx.Response(200, json=payload))
    config = config_from_dict({"feed": {"sources": [{"type": "congress"}]}}, env={"CONGRESS_API_KEY": "k"})
    pipeline = create_feed_pipeline(config, enrich=False, transport=transport)

    await pipeline.get_personalized_feed(veteran_profile)
    await pipeline.get_personalized_feed(veteran_profile)
    assert len(calls) == 1

    pipeline.refresh()
    await pipeline.get_personalized_feed(veteran_profile)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_filters_apply(veteran_profile):
    pipeline = _pipeline()
    page = await pipeline.get_personalized_feed(
        veteran_profile, filters=FeedFilters(scope=ContentScope.LOCAL), limit=50
    )
    assert page.items
    assert all(i.scope in (ContentScope.LOCAL, ContentScope.CITY) for i in page.items)


@pytest.mark.asyncio
async def test_no_profile_gets_flat_scores():
    page = await _pipeline().get_personalized_feed(None, limit=50)
    assert page.items
    assert {i.relevance_score for i in page.items} == {1.0}
    assert all(i.relevance_explanation is None for i in page.items)


@pytest.mark.asyncio
async def test_broken_adapter_is_skipped(veteran_profile):
    class Exploding(SourceAdapter):
        name = "exploding"

        async def fetch(self, query: FeedQuery):
            raise RuntimeError("bug")

    class Fixed(SourceAdapter):
        name = "fixed"

        async def fetch(self, query: FeedQuery):
            from ingestion.fallback import federal_samples
            return federal_samples("fixed")

    pipeline = PersonalizedFeedPipeline(ContentAggregator([Exploding(), Fixed()]))
    page = await pipeline.get_personalized_feed(veteran_profile)
    assert len(page.items) == 3


@pytest.mark.asyncio
async def test_representatives_fallback():
    profile = UserProfile(location="Sacramento, CA")
    reps = await _pipeline().get_representatives(profile)
    assert len(reps) == 3
    assert all(r.is_sample_content for r in reps)


def test_page_serializes_by_alias():
    from core.entities import FeedPage
    from ingestion.fallback import federal_samples

    data = FeedPage(items=federal_samples(), total=3, limit=3).to_dict()
    item = data["items"][0]
    assert item["isSampleContent"] is True
    assert "financialEffect" in item
    assert item["scope"] == "Federal"
