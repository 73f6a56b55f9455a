"""
User profile and the demographic facts inferred from it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.location import ParsedLocation, parse_location
from core.taxonomy import ContentCategory


# (exclusive upper bound, bracket); the last band has no upper bound
INCOME_BRACKETS = [
    (30_000, "very_low_income"),
    (50_000, "low_income"),
    (80_000, "moderate_income"),
    (120_000, "middle_income"),
]
TOP_INCOME_BRACKET = "high_income"


def income_bracket(annual_income: float) -> str:
    for upper, bracket in INCOME_BRACKETS:
        if annual_income < upper:
            return bracket
    return TOP_INCOME_BRACKET


@dataclass
class UserProfile:
    """
    Everything the pipeline knows about the person the feed is for.
    All fields are optional; scoring skips factors it has no data for.
    """
    name: Optional[str] = None
    age: Optional[int] = None
    location: Optional[str] = None
    monthly_income: Optional[float] = None
    company: Optional[str] = None
    is_veteran: bool = False
    interests: List[str] = field(default_factory=list)
    goals: List[str] = field(default_factory=list)
    priority_categories: List[ContentCategory] = field(default_factory=list)
    household_size: Optional[int] = None
    has_dependents: Optional[bool] = None
    has_health_coverage: Optional[bool] = None
    uses_public_transit: Optional[bool] = None

    _parsed_location: Optional[ParsedLocation] = field(
        default=None, init=False, repr=False, compare=False
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        """
        Build a profile from the snake_case dict shape the profile form
        stores (monthly_income, is_veteran, political_interests, ...).
        """
        priorities = []
        for raw in data.get("priority_categories") or []:
            try:
                priorities.append(ContentCategory(raw))
            except ValueError:
                continue

        monthly_income = data.get("monthly_income")
        age = data.get("age")

        return cls(
            name=data.get("name"),
            age=int(age) if age is not None else None,
            location=data.get("location"),
            monthly_income=float(monthly_income) if monthly_income is not None else None,
            company=data.get("company"),
            is_veteran=bool(data.get("is_veteran", False)),
            interests=list(data.get("interests") or data.get("political_interests") or []),
            goals=list(data.get("goals") or []),
            priority_categories=priorities,
            household_size=data.get("household_size"),
            has_dependents=data.get("has_dependents"),
            has_health_coverage=data.get("has_health_coverage"),
            uses_public_transit=data.get("uses_public_transit"),
        )

    @property
    def parsed_location(self) -> ParsedLocation:
        if self._parsed_location is None:
            self._parsed_location = parse_location(self.location)
        return self._parsed_location

    @property
    def annual_income(self) -> Optional[float]:
        if not self.monthly_income:
            return None
        return self.monthly_income * 12

    @property
    def income_bracket(self) -> Optional[str]:
        annual = self.annual_income
        if annual is None:
            return None
        return income_bracket(annual)

    @property
    def interests_lower(self) -> List[str]:
        return [i.lower() for i in self.interests]

    @property
    def has_family(self) -> bool:
        if self.has_dependents:
            return True
        if self.household_size is not None and self.household_size > 2:
            return True
        return any(i in ("education_policy", "childcare") for i in self.interests_lower)

    def demographics(self) -> List[str]:
        """
        Demographic tags inferred from the profile. Always includes
        all_residents.
        """
        tags: List[str] = []

        if self.age:
            if self.age >= 65:
                tags.append("seniors")
            if self.age <= 30:
                tags.append("young_adults")
            if 18 <= self.age <= 25:
                tags.append("students")

        annual = self.annual_income
        if annual is not None:
            if annual < 50_000:
                tags.append("low_income")
            if annual > 100_000:
                tags.append("high_income")

        if self.is_veteran:
            tags.extend(["veterans", "military_families"])

        interests = self.interests_lower
        if "home_purchase" in self.goals or "housing_affordability" in interests:
            tags.extend(["renters", "potential_homebuyers"])

        if self.has_family:
            tags.append("families_with_children")

        if self.uses_public_transit or "public_transportation" in interests:
            tags.append("public_transit_users")

        if self.company:
            tags.append("workers")

        tags.append("all_residents")
        return tags
