"""
Deterministic sample records used when an upstream cannot be reached.

Every record is flagged is_sample_content and carries a placeholder impact
annotation, so the enricher leaves it alone and the UI can label it.
Ids are derived from source + jurisdiction, so two calls for the same
location produce the same records.
"""
import re
from typing import List, Optional

from core.location import ParsedLocation
from core.taxonomy import ContentCategory, ContentKind, ContentScope, ContentStatus
from ingestion.base import RecordLocation, UnifiedContentRecord
from ingestion.normalization import infer_tags

SAMPLE_NOTE = "(sample estimate)"


def _slug(value: Optional[str]) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (value or "unknown").lower()).strip("-") or "unknown"


def _sample(**kwargs) -> UnifiedContentRecord:
    title = kwargs["title"]
    summary = kwargs.pop("summary")
    tags = infer_tags(title, summary)
    # explicit tags win over inferred ones
    for key, value in tags.items():
        kwargs.setdefault(key, value)
    return UnifiedContentRecord(
        summary=f"{summary} {SAMPLE_NOTE}",
        is_sample_content=True,
        **kwargs,
    )


def federal_samples(source: str = "congress") -> List[UnifiedContentRecord]:
    """National sample bills, Federal scope, no location."""
    return [
        _sample(
            id=f"{source}-sample-housing-tax-credit",
            kind=ContentKind.FEDERAL_BILL,
            title="Affordable Housing Tax Credit Extension Act",
            status=ContentStatus.IN_COMMITTEE,
            scope=ContentScope.FEDERAL,
            category=ContentCategory.HOUSING,
            summary="Extends and expands the low-income housing tax credit to increase "
                    "the supply of affordable rental housing.",
            description="Would expand housing tax credits for moderate-income renters "
                        "and first-time homebuyers.",
            personal_impact="You could see lower rent or better access to affordable "
                            "housing options in your area.",
            financial_effect=2400,
            timeline="6-12 months",
            confidence=75,
            is_benefit=True,
            relevant_demographics=["renters", "potential_homebuyers", "low_income", "all_residents"],
            relevant_interests=["housing_affordability", "housing_policy"],
            location_tags=["federal"],
            source=source,
        ),
        _sample(
            id=f"{source}-sample-veterans-healthcare",
            kind=ContentKind.FEDERAL_BILL,
            title="Veterans Healthcare Expansion Act",
            status=ContentStatus.PASSED_ONE,
            scope=ContentScope.FEDERAL,
            category=ContentCategory.VETERANS_AFFAIRS,
            summary="Expands VA healthcare eligibility and community care access for veterans.",
            description="Broadens VA coverage and reduces copays for veterans and their families.",
            personal_impact="If you are a veteran, you could gain broader VA healthcare "
                            "coverage and lower out-of-pocket costs.",
            financial_effect=1200,
            timeline="3-6 months",
            confidence=85,
            is_benefit=True,
            relevant_demographics=["veterans", "military_families", "all_residents"],
            relevant_interests=["veterans_affairs", "healthcare_access"],
            location_tags=["federal"],
            source=source,
        ),
        _sample(
            id=f"{source}-sample-infrastructure-investment",
            kind=ContentKind.FEDERAL_BILL,
            title="National Infrastructure Investment Act",
            status=ContentStatus.INTRODUCED,
            scope=ContentScope.FEDERAL,
            category=ContentCategory.TRANSPORTATION,
            summary="Funds repairs to roads, bridges and public transit systems nationwide.",
            description="Provides federal grants to states for transportation infrastructure.",
            personal_impact="You could see shorter commutes and safer roads as local "
                            "transportation projects receive federal funding.",
            financial_effect=300,
            timeline="1-3 years",
            confidence=60,
            is_benefit=True,
            relevant_demographics=["public_transit_users", "workers", "all_residents"],
            relevant_interests=["public_transportation", "infrastructure"],
            location_tags=["federal"],
            source=source,
        ),
    ]


def state_samples(parsed: ParsedLocation, source: str = "openstates") -> List[UnifiedContentRecord]:
    """Sample state bills for the parsed state; [] when no state is known."""
    if not parsed.state_code:
        return []

    state = parsed.state or parsed.state_code
    location = RecordLocation.from_parsed(parsed, city_level=False)
    prefix = f"{source}-sample-{parsed.state_code.lower()}"

    return [
        _sample(
            id=f"{prefix}-education-funding",
            kind=ContentKind.STATE_BILL,
            title=f"{state} Education Funding Enhancement Act",
            status=ContentStatus.IN_COMMITTEE,
            scope=ContentScope.STATE,
            category=ContentCategory.EDUCATION,
            location=location,
            summary=f"Increases per-student public school funding across {state}.",
            description="Raises the state education funding formula and teacher pay.",
            personal_impact="You may see improved local schools without a direct change "
                            "to your taxes.",
            financial_effect=0,
            timeline="1-2 years",
            confidence=55,
            is_benefit=True,
            relevant_demographics=["families_with_children", "students", "all_residents"],
            relevant_interests=["education_policy"],
            location_tags=["state", parsed.state_code.lower()],
            source=source,
        ),
        _sample(
            id=f"{prefix}-veterans-property-tax",
            kind=ContentKind.STATE_BILL,
            title=f"{state} Veterans Property Tax Relief",
            status=ContentStatus.INTRODUCED,
            scope=ContentScope.STATE,
            category=ContentCategory.VETERANS_AFFAIRS,
            location=location,
            summary=f"Expands the property tax exemption for veterans living in {state}.",
            description="Raises the assessed-value exemption for veteran homeowners.",
            personal_impact="If you are a veteran homeowner, your property tax bill "
                            "could go down.",
            financial_effect=600,
            timeline="1-2 years",
            confidence=60,
            is_benefit=True,
            relevant_demographics=["veterans", "military_families", "homeowners"],
            relevant_interests=["veterans_affairs", "tax_policy"],
            location_tags=["state", parsed.state_code.lower()],
            source=source,
        ),
    ]


def local_samples(parsed: ParsedLocation, source: str = "civic") -> List[UnifiedContentRecord]:
    """Sample ballot/tax measures. Uses "Local" when no city is known."""
    city = parsed.city or "Local"
    location = RecordLocation.from_parsed(parsed)
    prefix = f"{source}-sample-{_slug(parsed.city)}-{_slug(parsed.state_code)}"
    tags = [t for t in ("local", _slug(parsed.city) if parsed.city else None) if t]

    return [
        _sample(
            id=f"{prefix}-infrastructure-bond",
            kind=ContentKind.BALLOT_MEASURE,
            title=f"{city} Infrastructure Improvement Bond",
            status=ContentStatus.ON_BALLOT,
            scope=ContentScope.LOCAL,
            category=ContentCategory.INFRASTRUCTURE,
            location=location,
            summary="Authorizes bonds to repair streets, sidewalks and storm drains.",
            description="A general obligation bond repaid through property taxes.",
            personal_impact="You would likely pay a small annual property tax increase "
                            "in exchange for repaired local roads.",
            financial_effect=-120,
            timeline="2-3 years",
            confidence=65,
            is_benefit=True,
            relevant_demographics=["homeowners", "all_residents"],
            relevant_interests=["infrastructure", "public_transportation"],
            location_tags=tags,
            voting_options=["Yes", "No"],
            source=source,
        ),
        _sample(
            id=f"{prefix}-public-safety-tax",
            kind=ContentKind.TAX_MEASURE,
            title=f"{city} Public Safety Enhancement Tax",
            status=ContentStatus.PROPOSED,
            scope=ContentScope.LOCAL,
            category=ContentCategory.PUBLIC_SAFETY,
            location=location,
            summary="Adds a quarter-cent sales tax to fund police and fire services.",
            description="Revenue is dedicated to emergency response staffing.",
            personal_impact="You would pay slightly more in sales tax on everyday purchases.",
            financial_effect=-150,
            timeline="6-12 months",
            confidence=80,
            is_benefit=False,
            relevant_demographics=["all_residents"],
            relevant_interests=["public_safety"],
            location_tags=tags,
            voting_options=["Yes", "No"],
            source=source,
        ),
    ]


def city_samples(parsed: ParsedLocation, source: str = "city_feeds") -> List[UnifiedContentRecord]:
    """One sample public meeting for the parsed city; [] without a city."""
    if not parsed.city:
        return []

    return [
        _sample(
            id=f"{source}-sample-{_slug(parsed.city)}-{_slug(parsed.state_code)}-council-meeting",
            kind=ContentKind.PUBLIC_MEETING,
            title=f"{parsed.city} City Council Public Meeting",
            status=ContentStatus.SCHEDULED,
            scope=ContentScope.CITY,
            category=ContentCategory.OTHER,
            location=RecordLocation.from_parsed(parsed),
            summary="Regular council session open to public comment on city business.",
            description="Agenda items typically include budget, zoning and service updates.",
            personal_impact="You can attend and comment on decisions that affect your "
                            "neighborhood.",
            financial_effect=0,
            timeline="Upcoming",
            confidence=50,
            is_benefit=None,
            relevant_demographics=["all_residents"],
            location_tags=["city", _slug(parsed.city)],
            source=source,
        ),
    ]
