"""Retention model: pure vehicle value estimate from sparse attributes.

Pipeline (order matters):
    anchor -> age retention curve -> mileage adjustment -> condition
    -> brand retention -> age-band floor -> range
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from carscout.valuation.anchors import Anchor, AnchorResolver, normalize
from carscout.valuation.calibration import Calibration, get_calibration

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class RetentionEstimate:
    point: int
    low: int
    high: int
    age: int
    anchor: Anchor
    condition: str


class RetentionModel:
    """Depreciation-curve valuation. No I/O; safe to share across requests."""

    def __init__(
        self,
        calibration: Optional[Calibration] = None,
        current_year: Optional[Callable[[], int]] = None,
    ):
        self.calibration = calibration or get_calibration()
        self.anchors = AnchorResolver(self.calibration)
        self._current_year = current_year or (lambda: date.today().year)

    def retained_fraction(self, age: int) -> float:
        """Fraction of the anchor a good-condition vehicle keeps at `age`."""
        if age <= 0:
            return 1.0
        table = self.calibration.retained_fraction
        if age < len(table):
            return table[age]
        return table[-1] * self.calibration.retained_decay_beyond_table ** (age - (len(table) - 1))

    def mileage_adjustment(self, age: int, mileage: int) -> float:
        """Signed fractional adjustment, capped to [max_penalty, max_bonus]."""
        cal = self.calibration.mileage
        expected = max(age, 0) * cal.annual_miles
        adjustment = -((mileage - expected) / 10000) * cal.rate_per_10k

        if mileage > cal.high_mileage_threshold:
            excess = mileage - cal.high_mileage_threshold
            # Low-for-its-age but high absolute mileage keeps only part of the bonus
            if adjustment > 0:
                adjustment *= max(0.0, 1 - excess / cal.high_mileage_bonus_fade)
            adjustment -= (excess / 10000) * cal.high_mileage_rate_per_10k

        return max(cal.max_penalty, min(cal.max_bonus, adjustment))

    def normalize_condition(self, condition: Optional[str]) -> str:
        c = normalize(condition)
        if c in self.calibration.condition_multipliers:
            return c
        if c:
            logger.debug(f"Unknown condition '{condition}', using '{self.calibration.neutral_condition}'")
        return self.calibration.neutral_condition

    def brand_multiplier(self, make: Optional[str]) -> float:
        return self.calibration.brand_retention.get(normalize(make), 1.0)

    def value_floor(self, age: int) -> float:
        for band in self.calibration.value_floors:
            if age > band.older_than:
                return band.floor
        return self.calibration.default_floor

    def estimate(
        self,
        make: Optional[str],
        model: Optional[str],
        year: int,
        mileage: Optional[int],
        condition: Optional[str],
    ) -> RetentionEstimate:
        age = self._current_year() - int(year)
        mileage = max(int(mileage or 0), 0)
        condition = self.normalize_condition(condition)

        anchor = self.anchors.resolve(make, model, year)
        value = anchor.value * self.retained_fraction(age)
        value *= 1 + self.mileage_adjustment(age, mileage)
        value *= self.calibration.condition_multipliers[condition]
        value *= self.brand_multiplier(make)
        value = max(value, self.value_floor(age))

        rng = self.calibration.range
        return RetentionEstimate(
            point=round_half_up(value),
            low=round_half_up(value * rng.low_factor),
            high=round_half_up(value * rng.high_factor),
            age=age,
            anchor=anchor,
            condition=condition,
        )
