"""Valuation orchestrator: cache -> pricing API -> retention model -> cache write.

Always returns a well-formed estimate. Every fallback taken is recorded on
the returned Outcome instead of being silently swallowed.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from carscout.api.pricing import PricingAPI, pricing_api
from carscout.config import settings
from carscout.valuation.cache import ValuationCache, expiry_for
from carscout.valuation.outcome import Outcome
from carscout.valuation.retention import RetentionModel
from carscout.valuation.schemas import ValuationEstimate, ValuationRequest, ValuationSource

logger = logging.getLogger(__name__)


class ValuationService:
    """Public valuation operation composed from injected collaborators."""

    def __init__(
        self,
        cache: ValuationCache,
        retention_model: Optional[RetentionModel] = None,
        pricing: Optional[PricingAPI] = None,
        ttl_days: int | None = None,
        now: Callable[[], datetime] = datetime.utcnow,
    ):
        self.cache = cache
        self.retention_model = retention_model or RetentionModel()
        self.pricing = pricing or pricing_api
        self.ttl_days = settings.valuation_ttl_days if ttl_days is None else ttl_days
        self._now = now

    async def get_valuation(self, request: ValuationRequest) -> Outcome[ValuationEstimate]:
        outcome: Outcome[Optional[ValuationEstimate]] = Outcome(None)

        try:
            cached = self.cache.get(request.make, request.model, request.year, request.vin)
        except Exception as e:
            logger.error(f"Valuation cache read failed: {e}")
            outcome.degrade("cache_read_failed")
            cached = None

        if cached is not None:
            logger.debug(f"Valuation cache hit for {request.year} {request.make} {request.model}")
            outcome.value = cached
            return outcome

        outcome.value = await self._fetch(request, outcome)

        try:
            self.cache.put(outcome.value)
        except Exception as e:
            logger.error(f"Failed to cache valuation: {e}")
            outcome.degrade("cache_write_failed")

        return outcome

    async def _fetch(self, request: ValuationRequest, outcome: Outcome) -> ValuationEstimate:
        fetched_at = self._now()
        common = dict(
            vin=request.vin,
            make=request.make,
            model=request.model,
            year=request.year,
            mileage=request.mileage,
            condition=request.condition,
            fetched_at=fetched_at,
            expires_at=expiry_for(fetched_at, self.ttl_days),
        )

        if self.pricing.is_configured:
            try:
                quote = await self.pricing.get_quote(
                    request.make, request.model, request.year, request.mileage, request.condition
                )
                return ValuationEstimate(
                    estimated_value=quote.value,
                    low_value=quote.low,
                    high_value=quote.high,
                    source=ValuationSource.EXTERNAL_API,
                    **common,
                )
            except Exception as e:
                logger.warning(f"Pricing API error, using retention model: {e}")
                outcome.degrade("pricing_api_failed")
        else:
            outcome.degrade("pricing_api_unconfigured")

        estimate = self.retention_model.estimate(
            request.make, request.model, request.year, request.mileage, request.condition
        )
        return ValuationEstimate(
            estimated_value=estimate.point,
            low_value=estimate.low,
            high_value=estimate.high,
            source=ValuationSource.RETENTION_MODEL,
            **common,
        )
