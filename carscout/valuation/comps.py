"""Comparable-sales engine: liquidity from recently sold listings.

Sold listings (status=sold with days_on_market) for the same make/model
within a year band are narrowed to a mileage band, then reduced to a median
days-to-sell, a price percentile and a 1-10 resellability score.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from carscout.config import settings
from carscout.models import CarListing, ListingStatus
from carscout.valuation.outcome import Outcome
from carscout.valuation.retention import round_half_up
from carscout.valuation.schemas import (
    DEFAULT_MEDIAN_DAYS,
    ResellabilityScore,
    ResellabilitySource,
    neutral_resellability,
)

logger = logging.getLogger(__name__)

# (max median days, score); anything slower scores SLOWEST_SCORE
SCORE_STEPS: tuple[tuple[int, int], ...] = (
    (3, 10),
    (5, 9),
    (7, 8),
    (10, 7),
    (14, 6),
    (21, 5),
    (30, 4),
    (45, 3),
)
SLOWEST_SCORE = 2

HIGH_LIQUIDITY_COMPS = 20


@dataclass(frozen=True)
class CompSale:
    price: Optional[float]
    mileage: Optional[int]
    days_on_market: Optional[int]


def median_days(comps: Sequence[CompSale]) -> int:
    """Upper-middle element of positive days_on_market values."""
    days = sorted(c.days_on_market for c in comps if c.days_on_market and c.days_on_market > 0)
    if not days:
        return DEFAULT_MEDIAN_DAYS
    return days[len(days) // 2]


def price_percentile(comps: Sequence[CompSale], price: float) -> int:
    """Share (0-100) of comparable sale prices strictly below `price`."""
    prices = [c.price for c in comps if c.price and c.price > 0]
    if not prices:
        return 50
    below = sum(1 for p in prices if p < price)
    return round_half_up(below / len(prices) * 100)


def score_for_days(days: float) -> int:
    for max_days, score in SCORE_STEPS:
        if days <= max_days:
            return score
    return SLOWEST_SCORE


def narrow_by_mileage(
    comps: Sequence[CompSale], mileage: int, band: int, min_count: int
) -> list[CompSale]:
    """Keep comps within +/- band miles (inclusive); revert if too few remain.

    Comps with unknown mileage stay in the band.
    """
    narrowed = [c for c in comps if not c.mileage or abs(c.mileage - mileage) <= band]
    return narrowed if len(narrowed) >= min_count else list(comps)


def summarize_comparables(
    comps: Sequence[CompSale],
    price: float,
    mileage: int,
    mileage_band: int = 30000,
    min_count: int = 3,
) -> ResellabilityScore:
    if not comps:
        return neutral_resellability()

    final = narrow_by_mileage(comps, mileage, mileage_band, min_count)
    days = median_days(final)

    score = score_for_days(days)
    if len(final) >= HIGH_LIQUIDITY_COMPS:
        score = min(10, score + 1)
    if len(final) < min_count:
        score = max(1, score - 1)

    return ResellabilityScore(
        median_days_to_sell=days,
        comp_count=len(final),
        price_percentile=price_percentile(final, price),
        resellability_score=score,
        source=ResellabilitySource.COMPARABLES,
    )


class CompsEngine:
    """Resellability score backed by sold rows in car_listings."""

    def __init__(
        self,
        db: Session,
        year_band: int | None = None,
        mileage_band: int | None = None,
        batch_limit: int | None = None,
        min_count: int | None = None,
    ):
        self.db = db
        self.year_band = settings.comps_year_band if year_band is None else year_band
        self.mileage_band = settings.comps_mileage_band if mileage_band is None else mileage_band
        self.batch_limit = settings.comps_batch_limit if batch_limit is None else batch_limit
        self.min_count = settings.comps_min_count if min_count is None else min_count

    def find_comparables(self, make: str, model: str, year: int) -> list[CompSale]:
        rows: Iterable[CarListing] = (
            self.db.query(CarListing)
            .filter(CarListing.status == ListingStatus.SOLD.value)
            .filter(func.lower(CarListing.make) == make.strip().lower())
            .filter(func.lower(CarListing.model) == model.strip().lower())
            .filter(CarListing.year >= year - self.year_band)
            .filter(CarListing.year <= year + self.year_band)
            .filter(CarListing.sold_at.isnot(None))
            .filter(CarListing.days_on_market.isnot(None))
            .order_by(CarListing.sold_at.desc())
            .limit(self.batch_limit)
            .all()
        )
        return [
            CompSale(
                price=float(r.price) if r.price is not None else None,
                mileage=r.mileage,
                days_on_market=r.days_on_market,
            )
            for r in rows
        ]

    def get_resellability_score(
        self, make: str, model: str, year: int, price: float, mileage: int
    ) -> Outcome[ResellabilityScore]:
        try:
            comps = self.find_comparables(make, model, year)
        except Exception as e:
            logger.error(f"Comps query failed for {year} {make} {model}: {e}")
            self.db.rollback()
            outcome = Outcome(neutral_resellability())
            outcome.degrade("comps_query_failed")
            return outcome

        score = summarize_comparables(comps, price, mileage, self.mileage_band, self.min_count)
        outcome = Outcome(score)
        if not comps:
            outcome.degrade("no_comparables")
        logger.debug(
            f"Resellability {year} {make} {model}: {score.comp_count} comps, "
            f"median {score.median_days_to_sell}d, score {score.resellability_score}"
        )
        return outcome
