"""Tests for deal scoring and flip analysis."""

from datetime import datetime, timedelta

import pytest

from carscout.valuation import ResellabilityScore, ValuationEstimate
from carscout.valuation.deal import deal_score, deal_tier, flip_analysis


def _valuation(value=20000):
    now = datetime(2026, 10, 1)
    return ValuationEstimate(
        make="Toyota",
        model="Camry",
        year=2020,
        mileage=60000,
        condition="good",
        estimated_value=value,
        low_value=int(value * 0.82),
        high_value=int(value * 1.15),
        fetched_at=now,
        expires_at=now + timedelta(days=7),
    )


class TestDealScore:

    @pytest.mark.parametrize(
        "asking, score",
        [(20000, 50), (18000, 75), (16000, 100), (10000, 100), (22000, 25), (24000, 0), (30000, 0)],
    )
    def test_percent_below_market(self, asking, score):
        assert deal_score(asking, 20000) == score

    @pytest.mark.parametrize("asking, value", [(None, 20000), (0, 20000), (15000, 0), (15000, None)])
    def test_unknown_without_prices(self, asking, value):
        assert deal_score(asking, value) is None

    @pytest.mark.parametrize(
        "score, tier",
        [(100, "great"), (80, "great"), (79, "good"), (60, "good"), (59, "fair"), (40, "fair"),
         (39, "overpriced"), (None, "unknown")],
    )
    def test_tiers(self, score, tier):
        assert deal_tier(score) == tier


class TestFlipAnalysis:

    def test_uses_resellability_days(self):
        resellability = ResellabilityScore(
            median_days_to_sell=10, comp_count=8, price_percentile=30, resellability_score=7
        )

        flip = flip_analysis(15000, _valuation(), resellability, repair_low=500, repair_high=1500)

        assert flip.days_to_sell == 10
        assert flip.holding_cost == 120
        assert flip.net_profit_low == 20000 - 15000 - 1500 - 120
        assert flip.net_profit_high == 20000 - 15000 - 500 - 120
        assert flip.profit_per_day_low == 338
        assert flip.profit_per_day_high == 438

    def test_default_holding_period(self):
        flip = flip_analysis(19000, _valuation())

        assert flip.days_to_sell == 14
        assert flip.holding_cost == 168
        assert flip.net_profit_low == flip.net_profit_high == 832
