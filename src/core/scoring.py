"""
Module to score every record against a user profile
"""
import logging
from typing import Iterable, List, Optional, Tuple

from core.location import ParsedLocation
from core.profile import UserProfile
from core.taxonomy import ContentCategory, ContentScope
from ingestion.base import UnifiedContentRecord

logger = logging.getLogger(__name__)

WEIGHTS = {
    "location": 0.25,
    "demographics": 0.20,
    "interests": 0.20,
    "income": 0.15,
    "veteran": 0.10,
    "category": 0.10,
}

SCORE_FLOOR = 0.1
NO_PROFILE_SCORE = 1.0
MAX_REASONS = 3

VETERAN_TAGS = ("veterans", "military_families")


def _same(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a and b and a.strip().lower() == b.strip().lower())


class RelevanceScorer:
    """
    Weighted average over the factors that actually fired.

    Each factor returns a 0-100 score or None when it has no signal; a None
    factor contributes neither score nor weight, so missing profile data
    never drags a record toward zero.
    """

    def __init__(self, weights: Optional[dict] = None):
        self.weights = dict(weights or WEIGHTS)

    # ------------------------------------------------------------------
    # Factors
    # ------------------------------------------------------------------

    def location_score(self, record: UnifiedContentRecord, parsed: ParsedLocation) -> Optional[float]:
        loc = record.location
        if loc is not None:
            if _same(loc.city, parsed.city):
                return 100.0
            if _same(loc.county, parsed.county):
                return 85.0
            if _same(loc.state_code, parsed.state_code) or _same(loc.state, parsed.state):
                return 70.0

        if record.scope == ContentScope.FEDERAL:
            return 50.0

        return None

    def demographics_score(self, record: UnifiedContentRecord, profile: UserProfile) -> Optional[float]:
        tags = record.relevant_demographics
        if not tags:
            return None

        mine = set(profile.demographics())
        matches = [t for t in tags if t in mine or t == "all_residents"]
        if not matches:
            return None

        return len(matches) / len(tags) * 100

    def interests_score(self, record: UnifiedContentRecord, profile: UserProfile) -> Optional[float]:
        tags = record.relevant_interests
        if not tags or not profile.interests:
            return None

        mine = set(profile.interests_lower)
        matches = [t for t in tags if t.lower() in mine]
        if not matches:
            return None

        return len(matches) / len(tags) * 100

    def income_score(self, record: UnifiedContentRecord, profile: UserProfile) -> Optional[float]:
        bracket = profile.income_bracket
        if bracket is None or not record.income_relevance:
            return None

        if bracket in record.income_relevance or "any_income" in record.income_relevance:
            return 80.0

        return None

    def veteran_score(self, record: UnifiedContentRecord, profile: UserProfile) -> Optional[float]:
        if record.category == ContentCategory.VETERANS_AFFAIRS:
            return 100.0 if profile.is_veteran else 20.0

        if profile.is_veteran and any(t in record.relevant_demographics for t in VETERAN_TAGS):
            return 90.0

        return None

    def category_score(self, record: UnifiedContentRecord, profile: UserProfile) -> Optional[float]:
        ranking = profile.priority_categories
        if not ranking or record.category not in ranking:
            return None

        n = len(ranking)
        return (n - ranking.index(record.category)) / n * 100

    def factors(self, record: UnifiedContentRecord, profile: UserProfile) -> List[Tuple[str, Optional[float]]]:
        return [
            ("location", self.location_score(record, profile.parsed_location)),
            ("demographics", self.demographics_score(record, profile)),
            ("interests", self.interests_score(record, profile)),
            ("income", self.income_score(record, profile)),
            ("veteran", self.veteran_score(record, profile)),
            ("category", self.category_score(record, profile)),
        ]

    # ------------------------------------------------------------------

    def score(self, record: UnifiedContentRecord, profile: Optional[UserProfile]) -> float:
        if profile is None:
            return NO_PROFILE_SCORE

        total = 0.0
        applied = 0.0
        for name, value in self.factors(record, profile):
            if value is None:
                continue
            weight = self.weights[name]
            total += value * weight
            applied += weight

        if applied == 0:
            return SCORE_FLOOR

        return max(SCORE_FLOOR, min(100.0, total / applied))

    def explain(
        self,
        record: UnifiedContentRecord,
        profile: Optional[UserProfile],
        score: float,
    ) -> Optional[str]:
        """
        One-sentence explanation built from up to three reasons, or None
        when nothing meaningful fired.
        """
        if profile is None or score <= NO_PROFILE_SCORE:
            return None

        reasons: List[str] = []
        parsed = profile.parsed_location
        loc = record.location

        if loc is not None and _same(loc.city, parsed.city):
            reasons.append(f"it affects {loc.city} directly")
        elif loc is not None and (_same(loc.state_code, parsed.state_code) or _same(loc.state, parsed.state)):
            reasons.append(f"it applies across {loc.state or loc.state_code}")

        if profile.is_veteran and (
            record.category == ContentCategory.VETERANS_AFFAIRS
            or any(t in record.relevant_demographics for t in VETERAN_TAGS)
        ):
            reasons.append("it affects veteran benefits")

        if profile.company:
            words = [w for w in profile.company.lower().split() if len(w) > 3]
            if "workers" in record.relevant_demographics or any(w in record.text for w in words):
                reasons.append("it touches your industry or employment")

        if profile.has_family and (
            "families_with_children" in record.relevant_demographics
            or "families_with_children" in record.household_relevance
        ):
            reasons.append("it affects families with dependents")

        bracket = profile.income_bracket
        if bracket and bracket in record.income_relevance:
            reasons.append("it targets your income bracket")

        if profile.uses_public_transit and (
            record.category == ContentCategory.TRANSPORTATION
            or "public_transit_users" in record.relevant_demographics
        ):
            reasons.append("it affects public transportation you use")
        elif profile.has_health_coverage is False and record.category == ContentCategory.HEALTHCARE:
            reasons.append("it could change your health coverage options")

        if self.interests_score(record, profile) is not None:
            reasons.append("it matches your interests")

        if not reasons:
            return None

        return "Relevant because " + ", ".join(reasons[:MAX_REASONS]) + "."

    def score_all(
        self,
        records: Iterable[UnifiedContentRecord],
        profile: Optional[UserProfile],
    ) -> List[UnifiedContentRecord]:
        """Set relevance_score and relevance_explanation on each record in place."""
        scored = []
        for record in records:
            value = self.score(record, profile)
            record.relevance_score = round(value, 2)
            record.relevance_explanation = self.explain(record, profile, value)
            scored.append(record)
        return scored
