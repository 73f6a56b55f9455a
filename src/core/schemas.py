"""
Pydantic schemas for structured output returned by the analysis service.
"""
import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ImpactEstimate(BaseModel):
    """
    Personal impact estimate for one record.
    personalImpact and financialEffect are required; the rest default.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    personal_impact: str = Field(..., alias="personalImpact", min_length=1)
    financial_effect: float = Field(..., alias="financialEffect")
    timeline: str = "Unknown"
    confidence: int = 50
    is_benefit: Optional[bool] = Field(default=None, alias="isBenefit")

    @field_validator("personal_impact")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("personalImpact must not be blank")
        return value.strip()

    @field_validator("financial_effect", mode="before")
    @classmethod
    def _numeric(cls, value):
        # bool is an int subclass; "true" is not a dollar amount
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("financialEffect must be a number")
        if not math.isfinite(value):
            raise ValueError("financialEffect must be finite")
        return value

    @field_validator("timeline", mode="before")
    @classmethod
    def _timeline(cls, value):
        return str(value) if value else "Unknown"

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value):
        if value is None or isinstance(value, bool):
            return 50
        try:
            number = int(round(float(value)))
        except (TypeError, ValueError, OverflowError):
            # inf, nan and non-numeric strings
            return 50
        return max(0, min(100, number))
