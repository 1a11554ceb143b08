"""Deal quality scoring for a listing against its estimated market value."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from carscout.valuation.retention import round_half_up
from carscout.valuation.schemas import DEFAULT_MEDIAN_DAYS, ResellabilityScore, ValuationEstimate

# Score thresholds (0-100)
GREAT_DEAL = 80
GOOD_DEAL = 60
FAIR_DEAL = 40

HOLDING_COST_PER_DAY = 12


def deal_score(asking_price: Optional[float], estimated_value: Optional[float]) -> Optional[int]:
    """Map % below market to 0-100: 20%+ below -> 100, at market -> 50, 20%+ above -> 0."""
    if not asking_price or not estimated_value or asking_price <= 0 or estimated_value <= 0:
        return None
    pct_below = (estimated_value - asking_price) / estimated_value * 100
    return round_half_up(min(100.0, max(0.0, 50 + pct_below * 2.5)))


def deal_tier(score: Optional[int]) -> str:
    if score is None:
        return "unknown"
    if score >= GREAT_DEAL:
        return "great"
    if score >= GOOD_DEAL:
        return "good"
    if score >= FAIR_DEAL:
        return "fair"
    return "overpriced"


@dataclass(frozen=True)
class FlipAnalysis:
    retail_value: int
    asking_price: float
    days_to_sell: int
    holding_cost: int
    net_profit_low: int
    net_profit_high: int
    profit_per_day_low: int
    profit_per_day_high: int


def flip_analysis(
    asking_price: float,
    valuation: ValuationEstimate,
    resellability: Optional[ResellabilityScore] = None,
    repair_low: float = 0,
    repair_high: float = 0,
) -> FlipAnalysis:
    """Net profit range of buying at `asking_price` and reselling at market value."""
    days = resellability.median_days_to_sell if resellability else DEFAULT_MEDIAN_DAYS
    holding_cost = round_half_up(HOLDING_COST_PER_DAY * days)
    retail = valuation.estimated_value

    net_low = round_half_up(retail - asking_price - max(repair_low, repair_high) - holding_cost)
    net_high = round_half_up(retail - asking_price - min(repair_low, repair_high) - holding_cost)

    return FlipAnalysis(
        retail_value=retail,
        asking_price=asking_price,
        days_to_sell=days,
        holding_cost=holding_cost,
        net_profit_low=net_low,
        net_profit_high=net_high,
        profit_per_day_low=round_half_up(net_low / days) if days > 0 else 0,
        profit_per_day_high=round_half_up(net_high / days) if days > 0 else 0,
    )
