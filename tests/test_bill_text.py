import httpx
import pytest

from conftest import StubLLM, recording_transport
from core.location import parse_location
from core.taxonomy import ContentCategory, ContentKind, ContentScope
from ingestion.base import FeedQuery, UnifiedContentRecord
from ingestion.bill_text import excerpt_from_text, html_to_text, latest_formatted_text
from ingestion.congress import CongressAdapter
from processing.enricher import ImpactEnricher
from services.cache import TTLCache
from services.rate_limit import RateLimitGuard

BILL_HTML = """<html><body><pre>
118th CONGRESS
2d Session
H. R. 1234

AN ACT
To expand veterans benefits.

SECTION 1. SHORT TITLE.
    This Act may be cited as the ``Veterans Benefits Improvement Act''.
SEC. 2. HOUSING ASSISTANCE FOR VETERANS.
    (a) In General.--A veteran who is eligible under section 3702 of title 38
shall be entitled to financial assistance for the purchase of a home.
    (b) Amount.--The amount of assistance shall not exceed $5,000 per veteran
in any fiscal year.
SEC. 3. EFFECTIVE DATE.
    This Act takes effect 180 days after the date of enactment.
</pre></body></html>"""

TEXT_VERSIONS = {
    "textVersions": [
        {
            "type": "Engrossed in House",
            "date": "2024-03-01T04:00:00Z",
            "formats": [
                {"type": "PDF", "url": "https://www.congress.gov/118/bills/hr1234/BILLS-118hr1234eh.pdf"},
                {"type": "Formatted Text", "url": "https://www.congress.gov/118/bills/hr1234/BILLS-118hr1234eh.htm"},
            ],
        },
        {
            "type": "Introduced in House",
            "date": "2024-01-10T05:00:00Z",
            "formats": [
                {"type": "Formatted Text", "url": "https://www.congress.gov/118/bills/hr1234/BILLS-118hr1234ih.htm"},
            ],
        },
    ]
}

LISTING = {
    "bills": [{
        "congress": 118, "type": "HR", "number": "1234",
        "title": "Veterans Benefits Improvement Act",
        "latestAction": {"text": "Passed House."},
    }]
}


def _congress_handler(text_status=200, versions=TEXT_VERSIONS):
    def handler(request):
        if request.url.host == "www.congress.gov":
            return httpx.Response(200, text=BILL_HTML, headers={"content-type": "text/html"})
        if request.url.path.endswith("/text"):
            return httpx.Response(text_status, json=versions)
        return httpx.Response(200, json=LISTING)

    return handler


async def _live_record(adapter):
    records = await adapter.fetch(FeedQuery(location=parse_location("Austin, TX")))
    assert records[0].id == "congress-118-hr-1234"
    return records[0]


def test_passages_are_extracted_from_formatted_text():
    excerpt = excerpt_from_text(html_to_text(BILL_HTML), version="Engrossed in House")

    assert excerpt.available
    assert 0 < len(excerpt.impact_sections) <= 5
    assert any("shall be entitled" in s for s in excerpt.impact_sections)
    assert excerpt.eligibility.startswith("(a) In General")
    assert "$5,000" in excerpt.financial_details

    assert len(excerpt.key_provisions) == 5
    assert excerpt.key_provisions[1].startswith("SEC. 2. HOUSING ASSISTANCE")
    assert all(p.endswith("...") and len(p) <= 203 for p in excerpt.key_provisions)


def test_text_without_matches_is_not_available():
    assert not excerpt_from_text("short\nlines\nonly").available


def test_latest_formatted_text_picks_first_version_with_html():
    latest = latest_formatted_text(TEXT_VERSIONS["textVersions"])
    assert latest["version"] == "Engrossed in House"
    assert latest["url"].endswith("eh.htm")

    assert latest_formatted_text([{"type": "Enrolled", "formats": [{"type": "PDF", "url": "x"}]}]) is None
    assert latest_formatted_text([]) is None


@pytest.mark.asyncio
async def test_fetch_bill_text_is_cached_and_metered(clock):
    guard = RateLimitGuard(clock=clock)
    transport, calls = recording_transport(_congress_handler())
    adapter = CongressAdapter(
        cache=TTLCache(expiry_seconds=1800, clock=clock),
        api_key="secret",
        transport=transport,
        rate_guard=guard,
    )
    record = await _live_record(adapter)

    excerpt = await adapter.fetch_bill_text(record)

    assert excerpt.version == "Engrossed in House"
    assert "$5,000" in excerpt.financial_details
    text_calls = [c for c in calls if c.url.path.endswith("/text")]
    assert text_calls[0].url.path == "/v3/bill/118/hr/1234/text"
    assert text_calls[0].url.params["api_key"] == "secret"
    assert any(c.url.host == "www.congress.gov" for c in calls)

    # listing and text lookup, the document itself is not metered
    assert guard.remaining("secret")["hourly_remaining"] == 998

    fetched = len(calls)
    assert await adapter.fetch_bill_text(record) == excerpt
    assert len(calls) == fetched

    adapter.clear_cache()
    await adapter.fetch_bill_text(record)
    assert len(calls) > fetched


@pytest.mark.asyncio
async def test_fetch_bill_text_failure_is_not_cached(clock):
    transport, calls = recording_transport(_congress_handler(text_status=503))
    adapter = CongressAdapter(cache=TTLCache(expiry_seconds=1800, clock=clock), api_key="secret", transport=transport)
    record = await _live_record(adapter)

    assert await adapter.fetch_bill_text(record) is None
    fetched = len(calls)
    assert await adapter.fetch_bill_text(record) is None
    assert len(calls) == fetched + 1


@pytest.mark.asyncio
async def test_bill_without_formatted_text_is_remembered(clock):
    transport, calls = recording_transport(_congress_handler(versions={"textVersions": []}))
    adapter = CongressAdapter(cache=TTLCache(expiry_seconds=1800, clock=clock), api_key="secret", transport=transport)
    record = await _live_record(adapter)

    assert await adapter.fetch_bill_text(record) is None
    fetched = len(calls)
    assert await adapter.fetch_bill_text(record) is None
    assert len(calls) == fetched


@pytest.mark.asyncio
async def test_bill_text_needs_registered_key_and_live_record(clock):
    transport, calls = recording_transport(_congress_handler())
    demo = CongressAdapter(
        cache=TTLCache(expiry_seconds=1800, clock=clock), allow_demo_key=True, transport=transport
    )
    record = UnifiedContentRecord(
        id="congress-118-hr-1234", kind=ContentKind.FEDERAL_BILL, title="A Bill",
        scope=ContentScope.FEDERAL, source="congress",
    )
    assert await demo.fetch_bill_text(record) is None

    keyed = CongressAdapter(cache=TTLCache(expiry_seconds=1800, clock=clock), api_key="k", transport=transport)
    sample = record.model_copy(update={"is_sample_content": True})
    other = record.model_copy(update={"source": "openstates"})
    assert await keyed.fetch_bill_text(sample) is None
    assert await keyed.fetch_bill_text(other) is None
    assert calls == []


def _federal_record(**kwargs):
    return UnifiedContentRecord(
        id="congress-118-hr-1234",
        kind=ContentKind.FEDERAL_BILL,
        title="Veterans Benefits Improvement Act",
        scope=ContentScope.FEDERAL,
        category=ContentCategory.VETERANS_AFFAIRS,
        bill_number="HR 1234",
        source="congress",
        **kwargs,
    )


@pytest.mark.asyncio
async def test_prompt_carries_bill_text_passages(veteran_profile):
    async def lookup(record):
        return excerpt_from_text(html_to_text(BILL_HTML), version="Engrossed in House")

    llm = StubLLM('{"personalImpact": "You could get $5,000.", "financialEffect": 5000}')
    record = await ImpactEnricher(llm, bill_text=lookup).enrich(_federal_record(), veteran_profile)

    prompt = llm.prompts[0]
    assert "BILL TEXT EXCERPTS (Engrossed in House)" in prompt
    assert "shall not exceed $5,000" in prompt
    assert "Key provisions:" in prompt
    assert record.financial_effect == 5000


@pytest.mark.asyncio
async def test_failed_lookup_still_analyzes(veteran_profile):
    async def lookup(record):
        raise RuntimeError("boom")

    llm = StubLLM('{"personalImpact": "You may benefit.", "financialEffect": 0}')
    record = await ImpactEnricher(llm, bill_text=lookup).enrich(_federal_record(), veteran_profile)

    assert record.personal_impact == "You may benefit."
    assert "BILL TEXT EXCERPTS" not in llm.prompts[0]
    assert "Full bill text was not available" in llm.prompts[0]
