import asyncio
import json

import pytest

from conftest import StubLLM
from core.profile import UserProfile
from core.taxonomy import ContentCategory, ContentKind, ContentScope
from ingestion.base import UnifiedContentRecord
from processing.enricher import APOLOGY_ESTIMATE, ImpactEnricher, build_impact_prompt
from processing.json_extract import extract_json_object


def _record(record_id="r1", **kwargs):
    return UnifiedContentRecord(
        id=record_id,
        kind=ContentKind.FEDERAL_BILL,
        title="Veterans Healthcare Expansion Act",
        scope=ContentScope.FEDERAL,
        category=ContentCategory.VETERANS_AFFAIRS,
        **kwargs,
    )


GOOD_REPLY = (
    "Here is the analysis:\n"
    + json.dumps({
        "personalImpact": "You would pay less for VA care.",
        "financialEffect": 1200,
        "timeline": "3-6 months",
        "confidence": 140,
        "isBenefit": True,
    })
    + "\nLet me know if you need more."
)


def test_extract_json_object_from_prose():
    assert extract_json_object('Sure! {"a": 1} done') == {"a": 1}


def test_extract_json_object_from_code_fence():
    assert extract_json_object('```json\n{"a": {"b": 2}}\n```') == {"a": {"b": 2}}


@pytest.mark.parametrize(
    "content",
    [None, "", "no braces here", "{not json}", "} backwards {", "[1, 2]", [{"type": "text"}], 42],
)
def test_extract_json_object_failures(content):
    assert extract_json_object(content) is None


def test_prompt_is_second_person_with_veteran_block(veteran_profile):
    prompt = build_impact_prompt(_record(), veteran_profile)
    assert "SECOND PERSON" in prompt
    assert "VETERAN-SPECIFIC CONSIDERATIONS" in prompt
    assert "Annual Income: $48,000" in prompt
    assert "Sacramento" in prompt
    assert "Sacramento is the state capital" in prompt

    civilian = build_impact_prompt(_record(), UserProfile(location="Austin, TX"))
    assert "VETERAN-SPECIFIC" not in civilian


@pytest.mark.asyncio
async def test_enrich_applies_validated_estimate(veteran_profile):
    enricher = ImpactEnricher(StubLLM(GOOD_REPLY))
    record = await enricher.enrich(_record(), veteran_profile)

    assert record.personal_impact == "You would pay less for VA care."
    assert record.financial_effect == 1200
    assert record.timeline == "3-6 months"
    assert record.confidence == 100
    assert record.is_benefit is True


@pytest.mark.asyncio
async def test_enrich_defaults_optional_fields(veteran_profile):
    reply = '{"personalImpact": "You may save a little.", "financialEffect": -50.5}'
    record = await ImpactEnricher(StubLLM(reply)).enrich(_record(), veteran_profile)

    assert record.financial_effect == -50.5
    assert record.timeline == "Unknown"
    assert record.confidence == 50
    assert record.is_benefit is None


@pytest.mark.parametrize(
    "reply",
    [
        "I cannot help with that.",
        '{"financialEffect": 100}',
        '{"personalImpact": "You win.", "financialEffect": "lots"}',
        '{"personalImpact": "   ", "financialEffect": 1}',
    ],
)
@pytest.mark.asyncio
async def test_enrich_falls_back_on_bad_output(reply, veteran_profile):
    record = await ImpactEnricher(StubLLM(reply)).enrich(_record(), veteran_profile)

    assert record.personal_impact == APOLOGY_ESTIMATE.personal_impact
    assert record.financial_effect == 0
    assert record.timeline == "Unknown"
    assert record.confidence == 0
    assert record.is_benefit is None


@pytest.mark.asyncio
async def test_enrich_falls_back_on_service_error(veteran_profile):
    llm = StubLLM(error=ConnectionError("ollama down"))
    record = await ImpactEnricher(llm).enrich(_record(), veteran_profile)
    assert record.personal_impact == APOLOGY_ESTIMATE.personal_impact


@pytest.mark.asyncio
async def test_infinite_confidence_falls_back(veteran_profile):
    reply = '{"personalImpact": "You pay less.", "financialEffect": 10, "confidence": 1e999}'
    record = await ImpactEnricher(StubLLM(reply)).enrich(_record(), veteran_profile)

    assert record.personal_impact == "You pay less."
    assert record.confidence == 50


@pytest.mark.asyncio
async def test_infinite_financial_effect_falls_back(veteran_profile):
    reply = '{"personalImpact": "You pay less.", "financialEffect": -1e999}'
    record = await ImpactEnricher(StubLLM(reply)).enrich(_record(), veteran_profile)

    assert record.personal_impact == APOLOGY_ESTIMATE.personal_impact
    assert record.financial_effect == 0


@pytest.mark.asyncio
async def test_non_string_content_falls_back(veteran_profile):
    parts = [{"type": "text", "text": '{"personalImpact": "You win.", "financialEffect": 1}'}]
    record = await ImpactEnricher(StubLLM(parts)).enrich(_record(), veteran_profile)

    assert record.personal_impact == APOLOGY_ESTIMATE.personal_impact
    assert record.confidence == 0


@pytest.mark.asyncio
async def test_unexpected_error_building_estimate_falls_back(veteran_profile):
    class BrokenReply(dict):
        def get(self, *args):
            raise RuntimeError("malformed reply object")

    class BrokenLLM:
        async def evaluate(self, prompt):
            return BrokenReply()

    record = await ImpactEnricher(BrokenLLM()).enrich(_record(), veteran_profile)
    assert record.personal_impact == APOLOGY_ESTIMATE.personal_impact


@pytest.mark.asyncio
async def test_one_bad_reply_does_not_affect_other_records(veteran_profile):
    bad = '{"personalImpact": "You pay less.", "financialEffect": 10, "confidence": "1e999"}'
    llm = StubLLM(replies=[GOOD_REPLY, [{"type": "text"}], bad, GOOD_REPLY])
    records = [_record(f"r{i}") for i in range(4)]

    enriched = await ImpactEnricher(llm, max_concurrency=1).enrich_all(records, veteran_profile)

    assert [r.id for r in enriched] == ["r0", "r1", "r2", "r3"]
    assert enriched[0].personal_impact == "You would pay less for VA care."
    assert enriched[1].personal_impact == APOLOGY_ESTIMATE.personal_impact
    assert enriched[2].personal_impact == "You pay less."
    assert enriched[3].financial_effect == 1200


@pytest.mark.asyncio
async def test_repeated_analysis_may_differ_but_always_fits_schema(veteran_profile):
    first = '{"personalImpact": "You could save on VA copays.", "financialEffect": 300, "confidence": 60}'
    second = (
        '```json\n{"personalImpact": "Your clinic wait times may drop.", '
        '"financialEffect": 0, "timeline": "1-2 years", "confidence": -20, "isBenefit": true}\n```'
    )
    enricher = ImpactEnricher(StubLLM(replies=[first, second]))

    a = await enricher.enrich(_record("same"), veteran_profile)
    b = await enricher.enrich(_record("same"), veteran_profile)

    assert a.personal_impact != b.personal_impact
    for record in (a, b):
        assert record.personal_impact
        assert record.financial_effect is not None
        assert record.timeline
        assert 0 <= record.confidence <= 100
    assert b.confidence == 0
    assert b.timeline == "1-2 years"


@pytest.mark.asyncio
async def test_enrich_all_skips_annotated_records(veteran_profile):
    llm = StubLLM(GOOD_REPLY)
    annotated = _record("done", personal_impact="Already known.", financial_effect=5)
    pending = [_record(f"r{i}") for i in range(4)]

    records = await ImpactEnricher(llm, max_concurrency=2).enrich_all([annotated, *pending], veteran_profile)

    assert len(llm.prompts) == 4
    assert records[0].personal_impact == "Already known."
    assert all(r.personal_impact for r in records)


@pytest.mark.asyncio
async def test_enrich_all_bounds_concurrency(veteran_profile):
    in_flight = 0
    peak = 0

    class CountingLLM:
        async def evaluate(self, prompt):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return {"content": GOOD_REPLY}

    records = [_record(f"r{i}") for i in range(12)]
    await ImpactEnricher(CountingLLM(), max_concurrency=5).enrich_all(records, veteran_profile)

    assert peak <= 5
