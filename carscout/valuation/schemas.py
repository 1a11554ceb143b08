"""Value objects exchanged by the valuation engine and the HTTP layer."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ValuationSource(str, Enum):
    EXTERNAL_API = "external_api"
    RETENTION_MODEL = "retention_model"


class ResellabilitySource(str, Enum):
    COMPARABLES = "comparables"
    AI_ESTIMATE = "ai_estimate"


class ValuationRequest(BaseModel):
    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: int = Field(ge=1900, le=2100)
    mileage: int = Field(ge=0)
    condition: str = "good"
    vin: Optional[str] = None


class ValuationEstimate(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    vin: Optional[str] = None
    make: str
    model: str
    year: int
    mileage: int
    condition: str
    estimated_value: int
    low_value: int
    high_value: int
    fetched_at: datetime
    expires_at: datetime
    source: ValuationSource = ValuationSource.RETENTION_MODEL

    @model_validator(mode="after")
    def _ordered_range(self) -> "ValuationEstimate":
        if not (self.low_value <= self.estimated_value <= self.high_value):
            raise ValueError(
                f"range must satisfy low <= point <= high "
                f"({self.low_value}, {self.estimated_value}, {self.high_value})"
            )
        return self


class ResellabilityScore(BaseModel):
    median_days_to_sell: int
    comp_count: int
    price_percentile: int = Field(ge=0, le=100)
    resellability_score: int = Field(ge=1, le=10)
    source: ResellabilitySource = ResellabilitySource.COMPARABLES


DEFAULT_MEDIAN_DAYS = 14


def neutral_resellability(source: ResellabilitySource = ResellabilitySource.COMPARABLES) -> ResellabilityScore:
    """Documented neutral default when no market evidence is available."""
    return ResellabilityScore(
        median_days_to_sell=DEFAULT_MEDIAN_DAYS,
        comp_count=0,
        price_percentile=50,
        resellability_score=5,
        source=source,
    )
