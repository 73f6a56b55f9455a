"""
Shared vocabularies for civic content: kinds, scopes, categories, statuses.
"""
from enum import Enum


class ContentKind(str, Enum):
    """What sort of civic item a record describes."""
    FEDERAL_BILL = "federal_bill"
    STATE_BILL = "state_bill"
    LOCAL_ORDINANCE = "local_ordinance"
    BALLOT_MEASURE = "ballot_measure"
    CITY_PROJECT = "city_project"
    BUDGET_ITEM = "budget_item"
    TAX_MEASURE = "tax_measure"
    ELECTION = "election"
    CANDIDATE = "candidate"
    PUBLIC_MEETING = "public_meeting"
    INFRASTRUCTURE = "infrastructure"
    SPECIAL_DISTRICT = "special_district"


class ContentScope(str, Enum):
    """Level of government an item belongs to."""
    FEDERAL = "Federal"
    STATE = "State"
    COUNTY = "County"
    CITY = "City"
    LOCAL = "Local"
    SPECIAL_DISTRICT = "SpecialDistrict"


# Scopes the UI groups under "Local"
LOCAL_SCOPES = frozenset({
    ContentScope.LOCAL,
    ContentScope.CITY,
    ContentScope.COUNTY,
    ContentScope.SPECIAL_DISTRICT,
})


class ContentCategory(str, Enum):
    """Fixed policy taxonomy."""
    HOUSING = "Housing"
    HEALTHCARE = "Healthcare"
    TRANSPORTATION = "Transportation"
    EDUCATION = "Education"
    ECONOMIC = "Economic"
    ENVIRONMENT = "Environment"
    PUBLIC_SAFETY = "PublicSafety"
    VETERANS_AFFAIRS = "VeteransAffairs"
    SOCIAL_ISSUES = "SocialIssues"
    INFRASTRUCTURE = "Infrastructure"
    TAX_POLICY = "TaxPolicy"
    OTHER = "Other"


class ContentStatus:
    """Normalized status strings. Plain constants, status stays free-form."""
    SIGNED = "Signed"
    PASSED_BOTH = "Passed Both Chambers"
    PASSED_ONE = "Passed One Chamber"
    IN_COMMITTEE = "In Committee"
    INTRODUCED = "Introduced"
    IN_PROGRESS = "In Progress"
    ON_BALLOT = "On Ballot"
    SCHEDULED = "Scheduled"
    PROPOSED = "Proposed"
