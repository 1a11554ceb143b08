"""Valuation cache port and its SQL implementation.

The orchestrator depends only on ValuationCache, so the store can be swapped
(SQL table, Redis, in-process dict) without touching the fallback chain.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from carscout.models import ValuationCacheEntry
from carscout.valuation.schemas import ValuationEstimate

logger = logging.getLogger(__name__)


class ValuationCache(ABC):
    """get-by-(make, model, year[, vin]) with TTL filtering, plus insert."""

    @abstractmethod
    def get(
        self, make: str, model: str, year: int, vin: Optional[str] = None
    ) -> Optional[ValuationEstimate]:
        ...

    @abstractmethod
    def put(self, estimate: ValuationEstimate) -> None:
        ...


class SqlValuationCache(ValuationCache):
    """Insert-only cache backed by the valuation_cache table."""

    def __init__(self, db: Session, now: Callable[[], datetime] = datetime.utcnow):
        self.db = db
        self._now = now

    def get(
        self, make: str, model: str, year: int, vin: Optional[str] = None
    ) -> Optional[ValuationEstimate]:
        query = (
            self.db.query(ValuationCacheEntry)
            .filter(func.lower(ValuationCacheEntry.make) == make.lower())
            .filter(func.lower(ValuationCacheEntry.model) == model.lower())
            .filter(ValuationCacheEntry.year == year)
            .filter(ValuationCacheEntry.expires_at > self._now())
        )
        if vin:
            query = query.filter(ValuationCacheEntry.vin == vin)

        # Duplicate inserts are allowed; newest wins.
        try:
            row = query.order_by(ValuationCacheEntry.fetched_at.desc()).first()
        except Exception:
            # Leave the session usable for the write that follows a miss
            self.db.rollback()
            raise
        if row is None:
            return None
        return ValuationEstimate.model_validate(row)

    def put(self, estimate: ValuationEstimate) -> None:
        try:
            self.db.add(
                ValuationCacheEntry(
                    vin=estimate.vin,
                    make=estimate.make,
                    model=estimate.model,
                    year=estimate.year,
                    mileage=estimate.mileage,
                    condition=estimate.condition,
                    estimated_value=estimate.estimated_value,
                    low_value=estimate.low_value,
                    high_value=estimate.high_value,
                    source=estimate.source.value,
                    fetched_at=estimate.fetched_at,
                    expires_at=estimate.expires_at,
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


def expiry_for(fetched_at: datetime, ttl_days: int) -> datetime:
    return fetched_at + timedelta(days=ttl_days)
