"""Calibration data for the retention model.

The numbers live in calibration.json so the matching/depreciation code and
the market data can be tested and tuned separately.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from carscout.config import settings

logger = logging.getLogger(__name__)

DEFAULT_CALIBRATION_PATH = Path(__file__).with_name("calibration.json")


class MileageCalibration(BaseModel):
    annual_miles: int = 12000
    rate_per_10k: float = 0.03
    high_mileage_threshold: int = 100000
    high_mileage_bonus_fade: int = 150000
    high_mileage_rate_per_10k: float = 0.02
    max_penalty: float = -0.30
    max_bonus: float = 0.15


class ValueFloor(BaseModel):
    older_than: int
    floor: float


class RangeCalibration(BaseModel):
    low_factor: float = 0.82
    high_factor: float = 1.15


class Calibration(BaseModel):
    """Declarative market data consumed by AnchorResolver and RetentionModel."""

    default_anchor: float = 25000
    baseline_year: int = 2010
    pre_baseline_deflation: float = 0.975
    model_anchors: dict[str, dict[str, float]] = Field(default_factory=dict)
    make_anchors: dict[str, float] = Field(default_factory=dict)
    retained_fraction: list[float]
    retained_decay_beyond_table: float = 0.95
    mileage: MileageCalibration = Field(default_factory=MileageCalibration)
    condition_multipliers: dict[str, float]
    neutral_condition: str = "good"
    brand_retention: dict[str, float] = Field(default_factory=dict)
    value_floors: list[ValueFloor] = Field(default_factory=list)
    default_floor: float = 1000
    range: RangeCalibration = Field(default_factory=RangeCalibration)

    @field_validator("model_anchors", "make_anchors", "brand_retention", "condition_multipliers")
    @classmethod
    def _lowercase_keys(cls, value: dict) -> dict:
        out = {}
        for key, inner in value.items():
            if isinstance(inner, dict):
                inner = {k.lower(): v for k, v in inner.items()}
            out[key.lower()] = inner
        return out

    @field_validator("retained_fraction")
    @classmethod
    def _non_increasing(cls, value: list[float]) -> list[float]:
        if not value or value[0] != 1.0:
            raise ValueError("retained_fraction must start at 1.0 for age 0")
        for prev, cur in zip(value, value[1:]):
            if cur > prev:
                raise ValueError("retained_fraction must be non-increasing with age")
        return value

    @field_validator("value_floors")
    @classmethod
    def _oldest_band_first(cls, value: list[ValueFloor]) -> list[ValueFloor]:
        return sorted(value, key=lambda f: f.older_than, reverse=True)


def load_calibration(path: str | Path | None = None) -> Calibration:
    """Load and validate a calibration file."""
    path = Path(path) if path else DEFAULT_CALIBRATION_PATH
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    calibration = Calibration.model_validate(data)
    model_count = sum(len(m) for m in calibration.model_anchors.values())
    logger.info(
        f"Loaded calibration from {path} "
        f"({len(calibration.make_anchors)} makes, {model_count} model anchors)"
    )
    return calibration


@lru_cache()
def get_calibration() -> Calibration:
    """Get the process-wide calibration (configured path or bundled default)."""
    return load_calibration(settings.calibration_path or None)
