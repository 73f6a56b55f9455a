"""
Personal impact annotation via the analysis service.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional

from pydantic import ValidationError

from core.errors import AnalysisUnavailable
from core.location import format_for_display, is_state_capital, location_type
from core.profile import UserProfile
from core.schemas import ImpactEstimate
from core.taxonomy import ContentScope
from ingestion.base import UnifiedContentRecord
from ingestion.bill_text import BillTextExcerpt
from processing.json_extract import extract_json_object

logger = logging.getLogger(__name__)

APOLOGY_ESTIMATE = ImpactEstimate(
    personal_impact="Unable to analyze personal impact at this time. Please try again later.",
    financial_effect=0,
    timeline="Unknown",
    confidence=0,
    is_benefit=None,
)


BillTextLookup = Callable[[UnifiedContentRecord], Awaitable[Optional[BillTextExcerpt]]]


def _bill_text_block(record: UnifiedContentRecord, excerpt: Optional[BillTextExcerpt]) -> str:
    if excerpt is None or not excerpt.available:
        if record.bill_number and record.scope == ContentScope.FEDERAL and not record.is_sample_content:
            return (
                "\nBILL TEXT:\nFull bill text was not available. Base the analysis on the "
                "summary, status and sponsor information above.\n"
            )
        return ""

    lines = ["", f"BILL TEXT EXCERPTS ({excerpt.version or 'latest version'}):"]
    if excerpt.eligibility:
        lines.append(f"Eligibility: {excerpt.eligibility}")
    if excerpt.financial_details:
        lines.append(f"Financial details: {excerpt.financial_details}")
    for section in excerpt.impact_sections:
        lines.append(f"- {section}")
    if excerpt.key_provisions:
        lines.append("Key provisions:")
        lines.extend(f"- {provision}" for provision in excerpt.key_provisions)
    return "\n".join(lines) + "\n"


def build_impact_prompt(
    record: UnifiedContentRecord,
    profile: UserProfile,
    excerpt: Optional[BillTextExcerpt] = None,
) -> str:
    """
    Second-person analysis prompt for one record and one profile, with
    bill text passages when the source could provide them.
    """
    monthly = profile.monthly_income or 0
    place = profile.location or "Not specified"

    if record.location is not None:
        record_place = ", ".join(
            p for p in (record.location.city, record.location.state) if p
        ) or "Nationwide"
    else:
        record_place = "Nationwide"

    veteran_block = ""
    if profile.is_veteran:
        veteran_block = """
VETERAN-SPECIFIC CONSIDERATIONS:
- Analyze VA benefit interactions and eligibility changes
- Consider military pension implications (TSP, retirement pay)
- Account for veteran tax benefits and exemptions
- Evaluate veteran-specific programs and services
- Consider VA healthcare and disability compensation impacts
"""

    parsed = profile.parsed_location
    area = location_type(parsed)
    capital_line = ""
    if is_state_capital(parsed.city, parsed.state_code):
        capital_line = f"\n- {parsed.city} is the state capital; weigh state government employment and agency changes"

    return f"""You are a legislative impact analyst specializing in personalized assessments. Analyze how this item specifically affects this person and write the assessment in SECOND PERSON (using "you/your").

ITEM:
Title: {record.title}
Status: {record.status}
Category: {record.category.value}
Scope: {record.scope.value} level
Location: {record_place}
Description: {record.description or record.summary or 'No description provided'}
{_bill_text_block(record, excerpt)}
USER PROFILE:
Name: {profile.name or 'Not specified'}
Age: {profile.age or 'Not specified'}
Location: {place}
Annual Income: ${monthly * 12:,.0f}
Monthly Income: ${monthly:,.0f}
Company: {profile.company or 'Not specified'}
Veteran Status: {'Yes' if profile.is_veteran else 'No'}
Political Interests: {', '.join(profile.interests) or 'None specified'}

ANALYSIS REQUIREMENTS:
{veteran_block}
LOCATION-SPECIFIC FACTORS:
- Consider cost of living in {format_for_display(parsed)} ({area} area)
- Account for state and local tax implications
- Evaluate regional economic conditions and local industry impacts{capital_line}

Write personalImpact addressing the user as "you", e.g. "You would benefit from..." or "Your monthly costs would decrease by...", never by name or as "the user".

Return ONLY a JSON object with this structure:
{{
  "personalImpact": "2-3 sentences in second person on how this affects you",
  "financialEffect": 0,
  "timeline": "3-6 months",
  "confidence": 75,
  "isBenefit": true
}}

financialEffect is the estimated annual impact in dollars (positive for savings or benefits, negative for costs). confidence is 0-100. isBenefit is true if generally positive, false if generally negative.

JSON:"""


class ImpactEnricher:
    """
    Annotates records that have no personal impact yet. One analysis call
    per record, bounded by a semaphore; any failure yields the fixed
    apology annotation instead of an error. The analysis client owns the
    per-call timeout.
    """

    def __init__(
        self,
        llm: Any,
        max_concurrency: int = 5,
        bill_text: Optional[BillTextLookup] = None,
    ):
        self.llm = llm
        self.max_concurrency = max(1, max_concurrency)
        self.bill_text = bill_text

    async def _excerpt_for(self, record: UnifiedContentRecord) -> Optional[BillTextExcerpt]:
        if self.bill_text is None:
            return None
        try:
            return await self.bill_text(record)
        except Exception as e:
            logger.warning(f"Bill text lookup failed for {record.id}: {e}")
            return None

    async def _request_estimate(self, prompt: str) -> ImpactEstimate:
        try:
            response = await self.llm.evaluate(prompt)
        except AnalysisUnavailable:
            raise
        except Exception as e:
            raise AnalysisUnavailable(f"analysis call failed: {e}") from e

        content = response.get("content") if isinstance(response, dict) else None
        data = extract_json_object(content)
        if data is None:
            raise AnalysisUnavailable("no JSON object in analysis response")

        try:
            return ImpactEstimate.model_validate(data)
        except ValidationError as e:
            raise AnalysisUnavailable(f"analysis response failed validation: {e.error_count()} errors") from e

    async def enrich(self, record: UnifiedContentRecord, profile: UserProfile) -> UnifiedContentRecord:
        if record.has_impact:
            return record

        try:
            excerpt = await self._excerpt_for(record)
            estimate = await self._request_estimate(build_impact_prompt(record, profile, excerpt))
        except AnalysisUnavailable as e:
            logger.warning(f"Impact analysis unavailable for {record.id}: {e}")
            estimate = APOLOGY_ESTIMATE
        except Exception as e:
            logger.warning(f"Impact analysis failed for {record.id}: {e!r}")
            estimate = APOLOGY_ESTIMATE

        record.apply_impact(estimate)
        return record

    async def enrich_all(
        self,
        records: List[UnifiedContentRecord],
        profile: Optional[UserProfile],
    ) -> List[UnifiedContentRecord]:
        if profile is None:
            return records

        pending = [r for r in records if not r.has_impact]
        if not pending:
            return records

        logger.info(f"Enriching {len(pending)} records (concurrency {self.max_concurrency})")
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(record: UnifiedContentRecord) -> UnifiedContentRecord:
            async with semaphore:
                return await self.enrich(record, profile)

        await asyncio.gather(*(_bounded(r) for r in pending))
        return records
