"""Tests for the comparable-sales engine."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from carscout.valuation import CompsEngine, ResellabilitySource
from carscout.valuation.comps import (
    CompSale,
    median_days,
    narrow_by_mileage,
    price_percentile,
    score_for_days,
    summarize_comparables,
)
from tests.conftest import make_listing, make_sold


@pytest.fixture
def engine_for(db):
    return CompsEngine(db, year_band=2, mileage_band=30000, batch_limit=50, min_count=3)


class TestScoring:

    @pytest.mark.parametrize(
        "days, score",
        [(1, 10), (3, 10), (4, 9), (5, 9), (7, 8), (10, 7), (14, 6), (21, 5), (30, 4), (45, 3), (46, 2), (400, 2)],
    )
    def test_step_table(self, days, score):
        assert score_for_days(days) == score

    def test_non_increasing_in_days(self):
        scores = [score_for_days(d) for d in range(0, 120)]
        assert all(b <= a for a, b in zip(scores, scores[1:]))

    def test_median_uses_upper_middle_element(self):
        comps = [CompSale(10000, 50000, d) for d in (30, 5, 20, 10)]
        assert median_days(comps) == 20

    def test_median_ignores_non_positive_days(self):
        comps = [CompSale(10000, 50000, d) for d in (0, None, 7)]
        assert median_days(comps) == 7

    def test_median_default_when_no_days(self):
        assert median_days([CompSale(10000, 50000, 0)]) == 14

    def test_percentile_counts_strictly_below(self):
        comps = [CompSale(p, 50000, 10) for p in (10000, 12000, 13000, 16000)]
        assert price_percentile(comps, 13000) == 50

    def test_percentile_default_without_prices(self):
        assert price_percentile([CompSale(None, 50000, 10)], 13000) == 50

    def test_mileage_band_is_inclusive(self):
        comps = [CompSale(1, m, 10) for m in (30000, 90000, 60000, 89999)]
        narrowed = narrow_by_mileage(comps, 60000, 30000, 3)
        assert len(narrowed) == 4

    def test_high_liquidity_boost_is_capped(self):
        comps = [CompSale(10000, 60000, 2) for _ in range(25)]
        assert summarize_comparables(comps, 10000, 60000).resellability_score == 10

    def test_high_liquidity_boost(self):
        comps = [CompSale(10000, 60000, 10) for _ in range(20)]
        assert summarize_comparables(comps, 10000, 60000).resellability_score == 8

    def test_small_sample_penalty(self):
        comps = [CompSale(10000, 60000, 3) for _ in range(2)]
        result = summarize_comparables(comps, 10000, 60000)
        assert result.comp_count == 2
        assert result.resellability_score == 9

    def test_small_sample_penalty_floors_at_one(self):
        comps = [CompSale(10000, 60000, 90)]
        assert summarize_comparables(comps, 10000, 60000).resellability_score == 1


class TestCompsEngine:

    def test_no_comparables_returns_neutral_default(self, engine_for):
        outcome = engine_for.get_resellability_score("Toyota", "Camry", 2020, 18000, 60000)
        assert outcome.value.model_dump() == {
            "median_days_to_sell": 14,
            "comp_count": 0,
            "price_percentile": 50,
            "resellability_score": 5,
            "source": ResellabilitySource.COMPARABLES,
        }
        assert "no_comparables" in outcome.degraded

    def test_mileage_narrowing_reverts_when_too_few(self, db, engine_for):
        for miles in (55000, 70000):
            make_sold(db, mileage=miles, days_on_market=5)
        for miles in (150000, 160000, 170000, 180000, 190000):
            make_sold(db, mileage=miles, days_on_market=40)

        result = engine_for.get_resellability_score("Toyota", "Camry", 2020, 18000, 60000).value
        assert result.comp_count == 7
        assert result.median_days_to_sell == 40

    def test_mileage_narrowing_applies_with_enough_in_band(self, db, engine_for):
        for miles in (55000, 65000, 85000):
            make_sold(db, mileage=miles, days_on_market=4)
        make_sold(db, mileage=200000, days_on_market=60)

        result = engine_for.get_resellability_score("Toyota", "Camry", 2020, 18000, 60000).value
        assert result.comp_count == 3
        assert result.median_days_to_sell == 4
        assert result.resellability_score == 9

    def test_year_band_is_inclusive(self, db, engine_for):
        for year in (2018, 2022):
            make_sold(db, year=year)
        for year in (2017, 2023):
            make_sold(db, year=year)

        result = engine_for.get_resellability_score("Toyota", "Camry", 2020, 18000, 60000).value
        assert result.comp_count == 2

    def test_make_model_match_is_case_insensitive(self, db, engine_for):
        make_sold(db, make="TOYOTA", model="camry")
        make_sold(db, make="toyota", model="CAMRY")
        make_sold(db, make="Toyota", model="Corolla")

        result = engine_for.get_resellability_score("Toyota", "Camry", 2020, 18000, 60000).value
        assert result.comp_count == 2

    def test_active_listings_are_not_comparables(self, db, engine_for):
        make_listing(db)
        make_listing(db, days_on_market=None)

        result = engine_for.get_resellability_score("Toyota", "Camry", 2020, 18000, 60000).value
        assert result.comp_count == 0

    def test_price_percentile_from_sold_prices(self, db, engine_for):
        for price in ("15000", "16000", "20000", "21000"):
            make_sold(db, price=Decimal(price))

        result = engine_for.get_resellability_score("Toyota", "Camry", 2020, 18000, 60000).value
        assert result.price_percentile == 50

    def test_batch_limit_keeps_most_recent(self, db):
        engine = CompsEngine(db, batch_limit=3)
        for days_ago in (1, 2, 3):
            make_sold(db, sold_days_ago=days_ago, days_on_market=2)
        for days_ago in (30, 31, 32, 33):
            make_sold(db, sold_days_ago=days_ago, days_on_market=50)

        result = engine.get_resellability_score("Toyota", "Camry", 2020, 18000, 60000).value
        assert result.comp_count == 3
        assert result.median_days_to_sell == 2

    def test_query_failure_degrades_to_default(self):
        db = MagicMock()
        db.query.side_effect = RuntimeError("connection reset")
        outcome = CompsEngine(db).get_resellability_score("Toyota", "Camry", 2020, 18000, 60000)
        assert outcome.value.comp_count == 0
        assert outcome.value.resellability_score == 5
        assert outcome.degraded == ["comps_query_failed"]
