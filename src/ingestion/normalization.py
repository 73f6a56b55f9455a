"""
Normalization rule tables shared by the source adapters.

Every classifier here is an ordered list of (pattern, result) pairs; the
first pattern that matches wins. Order matters: "passed" and "committee"
often appear in the same latest-action text, and a policy area like
"Armed Forces and National Security" must land on veterans before the
broader rules get a chance.

Usage:
    from ingestion.normalization import normalize_status, normalize_category, infer_tags

    status = normalize_status(raw["latestAction"]["text"])
    category = normalize_category(raw["policyArea"]["name"])
    record = UnifiedContentRecord(..., **infer_tags(title, summary))
"""
import re
from typing import Dict, List, Optional, Pattern, Sequence, Tuple, TypeVar

from core.taxonomy import ContentCategory, ContentStatus

T = TypeVar("T")

Rule = Tuple[Pattern[str], T]


def _rx(*alternatives: str, words: bool = False) -> Pattern[str]:
    body = "|".join(alternatives)
    if words:
        body = rf"\b(?:{body})\b"
    return re.compile(body, re.IGNORECASE)


def classify(text: Optional[str], rules: Sequence[Rule], default: T) -> T:
    """Return the result of the first rule whose pattern matches text."""
    if not text:
        return default
    for pattern, result in rules:
        if pattern.search(text):
            return result
    return default


# ============================================================================
# Status
# ============================================================================

_PASSED_BOTH = re.compile(
    r"passed both|"
    r"passed (?:the )?house.*passed (?:the )?senate|"
    r"passed (?:the )?senate.*passed (?:the )?house|"
    r"presented to (?:the )?(?:president|governor)|"
    r"to (?:the )?(?:president|governor)",
    re.IGNORECASE | re.DOTALL,
)

STATUS_RULES: List[Rule] = [
    # word boundary keeps "assigned to committee" out of this rule
    (_rx("signed", "became law", "became public law", "enacted", "chaptered", words=True),
     ContentStatus.SIGNED),
    (_PASSED_BOTH, ContentStatus.PASSED_BOTH),
    (_rx(r"passed (?:the )?(?:house|senate|assembly)", "third reading", r"passed/agreed to in"),
     ContentStatus.PASSED_ONE),
    (_rx("committee", "referred to"), ContentStatus.IN_COMMITTEE),
    (_rx("introduced", "first reading", "prefiled"), ContentStatus.INTRODUCED),
]


def normalize_status(action_text: Optional[str]) -> str:
    """
    Classify free-text latest action into a normalized status.

    Examples:
        >>> normalize_status("Became Public Law No: 118-42.")
        'Signed'
        >>> normalize_status("Passed Senate. Referred to House Committee on Ways and Means.")
        'Passed One Chamber'
        >>> normalize_status("Read twice and referred to the Committee on Finance.")
        'In Committee'
    """
    return classify(action_text, STATUS_RULES, ContentStatus.IN_PROGRESS)


# ============================================================================
# Category
# ============================================================================

CATEGORY_RULES: List[Rule] = [
    (_rx("health", "medicare", "medicaid"), ContentCategory.HEALTHCARE),
    (_rx("housing", "urban"), ContentCategory.HOUSING),
    (_rx("veteran", "military", "armed forces"), ContentCategory.VETERANS_AFFAIRS),
    (_rx("tax", "economic", "finance", "budget"), ContentCategory.ECONOMIC),
    (_rx("environment", "climate", "energy"), ContentCategory.ENVIRONMENT),
    (_rx("transport", "infrastructure", "public works"), ContentCategory.TRANSPORTATION),
    (_rx("social", "civil rights", "civil-rights", "immigration", "welfare"),
     ContentCategory.SOCIAL_ISSUES),
    (_rx("education", "school"), ContentCategory.EDUCATION),
    (_rx("crime", "law enforcement", "police"), ContentCategory.PUBLIC_SAFETY),
]

BALLOT_MEASURE_RULES: List[Rule] = [
    (_rx("school", "education"), ContentCategory.EDUCATION),
    (_rx("transport", "road", "transit"), ContentCategory.TRANSPORTATION),
    (_rx("housing", "development"), ContentCategory.HOUSING),
    (_rx("tax", "bond"), ContentCategory.ECONOMIC),
    (_rx("environment", "park"), ContentCategory.ENVIRONMENT),
    (_rx("safety", "police", "fire"), ContentCategory.PUBLIC_SAFETY),
]


def normalize_category(subject: Optional[str]) -> ContentCategory:
    """
    Map a policy area / subject string onto the fixed category taxonomy.

    Examples:
        >>> normalize_category("Armed Forces and National Security")
        <ContentCategory.VETERANS_AFFAIRS: 'VeteransAffairs'>
        >>> normalize_category("Taxation")
        <ContentCategory.ECONOMIC: 'Economic'>
    """
    return classify(subject, CATEGORY_RULES, ContentCategory.OTHER)


def categorize_ballot_measure(title: Optional[str]) -> ContentCategory:
    return classify(title, BALLOT_MEASURE_RULES, ContentCategory.OTHER)


# ============================================================================
# Scoring tags
# ============================================================================

TagTable = List[Tuple[Tuple[str, ...], Tuple[str, ...]]]

DEMOGRAPHIC_TAGS: TagTable = [
    (("veteran", "military", "armed forces"), ("veterans", "military_families")),
    (("senior", "elderly", "medicare", "age 65"), ("seniors",)),
    (("student", "education", "college"), ("students", "families_with_children")),
    (("low income", "low-income", "poverty", "snap", "medicaid"), ("low_income",)),
    (("small business", "entrepreneur", "startup"), ("small_business_owners",)),
    (("worker", "employee", "labor", "unemployment"), ("workers",)),
    (("homeowner", "mortgage", "property tax", "property owner"), ("homeowners",)),
    (("renter", "tenant", "rental"), ("renters",)),
    (("unemployed", "unemployment insurance"), ("unemployed",)),
    (("family", "families", "child", "parent"), ("families_with_children",)),
    (("transit", "public transportation"), ("public_transit_users",)),
]

INTEREST_TAGS: TagTable = [
    (("healthcare", "health insurance", "medical", "medicare", "medicaid"),
     ("healthcare_access", "affordable_healthcare")),
    (("housing", "rent", "mortgage"), ("housing_affordability", "housing_policy")),
    (("environment", "climate", "pollution", "clean energy"),
     ("environmental_protection", "climate_action")),
    (("tax", "irs"), ("tax_policy",)),
    (("transport", "transit", "highway", "infrastructure"),
     ("public_transportation", "infrastructure")),
    (("education", "school", "college", "student loan"), ("education_policy",)),
    (("gun", "firearm", "safety", "crime"), ("public_safety",)),
    (("economic", "business", "employment", "jobs"), ("economic_development",)),
    (("veteran", "military", "va "), ("veterans_affairs", "military_benefits")),
    (("trade", "import", "export"), ("trade_policy",)),
]

HOUSEHOLD_TAGS: TagTable = [
    (("family", "families", "child", "parent", "dependent"), ("families_with_children",)),
    (("single", "individual"), ("single_person_households",)),
    (("senior", "elderly", "medicare"), ("senior_households",)),
    (("military family", "veteran family"), ("military_households",)),
]

PRIORITY_TAGS: TagTable = [
    (("affordable housing", "rent control", "housing credit"),
     ("affordable_housing", "cost_of_living")),
    (("healthcare cost", "medical expense", "prescription drug"),
     ("healthcare_access", "healthcare_costs")),
    (("job", "employment", "wage"), ("job_security", "fair_wages")),
    (("education funding", "school budget", "student loan"),
     ("education_quality", "education_funding")),
    (("environment", "clean", "climate change"), ("environmental_protection",)),
    (("public safety", "crime", "law enforcement"), ("public_safety",)),
    (("transport", "road", "infrastructure", "bridge"),
     ("transportation_access", "infrastructure")),
    (("tax relief", "tax cut", "tax credit"), ("tax_relief", "financial_stability")),
    (("veteran", "military benefit"), ("veterans_benefits", "military_support")),
    (("retirement", "social security", "pension"),
     ("retirement_security", "financial_planning")),
]

# First match wins, like the status table
INCOME_RULES: List[Tuple[Tuple[str, ...], List[str]]] = [
    (("low income", "low-income", "poverty", "assistance", "snap", "medicaid"), ["low_income"]),
    (("middle class", "working families", "median income"), ["middle_income"]),
    (("high earner", "wealthy", "estate tax"), ["high_income"]),
    (("small business", "entrepreneur"), ["middle_income", "small_business"]),
]


def _collect(text: str, table: TagTable) -> List[str]:
    tags: List[str] = []
    for keywords, outputs in table:
        if any(k in text for k in keywords):
            for tag in outputs:
                if tag not in tags:
                    tags.append(tag)
    return tags


def infer_income_relevance(text: str) -> List[str]:
    for keywords, brackets in INCOME_RULES:
        if any(k in text for k in keywords):
            return list(brackets)
    return ["any_income"]


def infer_tags(*parts: Optional[str]) -> Dict[str, List[str]]:
    """
    Derive the scoring tag arrays for a record from its title/summary text.
    Keys match UnifiedContentRecord field names.
    """
    text = " ".join(p for p in parts if p).lower()

    household = _collect(text, HOUSEHOLD_TAGS) or ["any_household_size"]

    return {
        "relevant_demographics": _collect(text, DEMOGRAPHIC_TAGS),
        "relevant_interests": _collect(text, INTEREST_TAGS),
        "household_relevance": household,
        "income_relevance": infer_income_relevance(text),
        "priority_match": _collect(text, PRIORITY_TAGS),
    }
