"""Generative fallback for resellability when comparables are thin.

Never raises: any client failure yields the neutral score tagged as an AI
estimate, with the failure recorded on the outcome.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from carscout.api.openrouter import GenerativeClient, generative_client
from carscout.valuation.outcome import Outcome
from carscout.valuation.retention import round_half_up
from carscout.valuation.schemas import (
    ResellabilityScore,
    ResellabilitySource,
    neutral_resellability,
)

logger = logging.getLogger(__name__)

DAYS_RANGE = (1, 60)
SCORE_RANGE = (1, 10)
PERCENTILE_RANGE = (0, 100)


def _clamp(value: float, bounds: tuple[int, int]) -> int:
    if not math.isfinite(value):
        raise ValueError(f"non-finite value {value!r}")
    lo, hi = bounds
    return max(lo, min(hi, round_half_up(value)))


class GenerativeFallbackEstimator:
    """Lower-confidence resellability opinion from a generative model."""

    def __init__(self, client: Optional[GenerativeClient] = None):
        self.client = client or generative_client

    async def estimate(
        self, make: str, model: str, year: int, price: float
    ) -> Outcome[ResellabilityScore]:
        try:
            raw = await self.client.estimate_resellability(make, model, year, price)
            score = ResellabilityScore(
                median_days_to_sell=_clamp(raw.median_days_to_sell, DAYS_RANGE),
                comp_count=0,
                price_percentile=_clamp(raw.price_percentile, PERCENTILE_RANGE),
                resellability_score=_clamp(raw.resellability_score, SCORE_RANGE),
                source=ResellabilitySource.AI_ESTIMATE,
            )
            return Outcome(score)
        except Exception as e:
            logger.warning(f"AI resellability estimate failed for {year} {make} {model}: {e}")
            outcome = Outcome(neutral_resellability(ResellabilitySource.AI_ESTIMATE))
            outcome.degrade("ai_estimate_failed")
            return outcome
