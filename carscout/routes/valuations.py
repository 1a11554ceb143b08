"""Valuation, resellability and deal-score routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from carscout.database import get_db
from carscout.valuation import (
    CompsEngine,
    GenerativeFallbackEstimator,
    ResellabilityScore,
    SqlValuationCache,
    ValuationEstimate,
    ValuationRequest,
    ValuationService,
)
from carscout.valuation.deal import deal_score, deal_tier, flip_analysis

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/valuations", tags=["valuations"])


def get_valuation_service(db: Session = Depends(get_db)) -> ValuationService:
    return ValuationService(cache=SqlValuationCache(db))


def get_comps_engine(db: Session = Depends(get_db)) -> CompsEngine:
    return CompsEngine(db)


def get_fallback_estimator() -> GenerativeFallbackEstimator:
    return GenerativeFallbackEstimator()


async def resolve_resellability(
    comps: CompsEngine,
    fallback: GenerativeFallbackEstimator,
    make: str,
    model: str,
    year: int,
    price: float,
    mileage: int,
) -> ResellabilityScore:
    """Comparables first; a generative estimate when there are too few comps."""
    outcome = comps.get_resellability_score(make, model, year, price, mileage)
    if outcome.is_degraded:
        logger.info(f"Comparables served degraded: {', '.join(outcome.degraded)}")
    if outcome.value.comp_count >= comps.min_count:
        return outcome.value

    logger.info(
        f"Only {outcome.value.comp_count} comps for {year} {make} {model}, using AI estimate"
    )
    estimate = await fallback.estimate(make, model, year, price)
    if estimate.is_degraded:
        logger.info(f"AI estimate served degraded: {', '.join(estimate.degraded)}")
    return estimate.value


@router.get("/kbb", response_model=ValuationEstimate)
async def get_valuation(
    make: str = Query(..., min_length=1),
    model: str = Query(..., min_length=1),
    year: int = Query(..., ge=1900, le=2100),
    mileage: int = Query(..., ge=0),
    condition: str = Query(..., min_length=1),
    vin: Optional[str] = None,
    service: ValuationService = Depends(get_valuation_service),
):
    """Market value estimate with low/high range (cached for the TTL)."""
    request = ValuationRequest(
        make=make, model=model, year=year, mileage=mileage, condition=condition, vin=vin
    )
    outcome = await service.get_valuation(request)
    if outcome.is_degraded:
        logger.info(f"Valuation served degraded: {', '.join(outcome.degraded)}")
    return outcome.value


@router.get("/resellability", response_model=ResellabilityScore)
async def get_resellability(
    make: str = Query(..., min_length=1),
    model: str = Query(..., min_length=1),
    year: int = Query(..., ge=1900, le=2100),
    price: float = Query(..., gt=0),
    mileage: int = Query(50000, ge=0),
    comps: CompsEngine = Depends(get_comps_engine),
    fallback: GenerativeFallbackEstimator = Depends(get_fallback_estimator),
):
    """Liquidity estimate from comparable sold listings."""
    return await resolve_resellability(comps, fallback, make, model, year, price, mileage)


class DealRequest(BaseModel):
    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: int = Field(ge=1900, le=2100)
    mileage: int = Field(ge=0)
    condition: str = "good"
    vin: Optional[str] = None
    asking_price: float = Field(gt=0)
    repair_low: float = Field(default=0, ge=0)
    repair_high: float = Field(default=0, ge=0)


@router.post("/deal")
async def score_deal(
    payload: DealRequest,
    service: ValuationService = Depends(get_valuation_service),
    comps: CompsEngine = Depends(get_comps_engine),
    fallback: GenerativeFallbackEstimator = Depends(get_fallback_estimator),
):
    """Combine valuation, resellability and asking price into a deal score."""
    valuation = (
        await service.get_valuation(
            ValuationRequest(
                make=payload.make,
                model=payload.model,
                year=payload.year,
                mileage=payload.mileage,
                condition=payload.condition,
                vin=payload.vin,
            )
        )
    ).value
    resellability = await resolve_resellability(
        comps, fallback, payload.make, payload.model, payload.year, payload.asking_price, payload.mileage
    )
    score = deal_score(payload.asking_price, valuation.estimated_value)
    flip = flip_analysis(
        payload.asking_price, valuation, resellability, payload.repair_low, payload.repair_high
    )

    return {
        "deal_score": score,
        "deal_tier": deal_tier(score),
        "price_vs_market": round(
            (payload.asking_price - valuation.estimated_value) / valuation.estimated_value * 100, 1
        ),
        "valuation": valuation.model_dump(mode="json"),
        "resellability": resellability.model_dump(mode="json"),
        "flip": {
            "retail_value": flip.retail_value,
            "days_to_sell": flip.days_to_sell,
            "holding_cost": flip.holding_cost,
            "net_profit_low": flip.net_profit_low,
            "net_profit_high": flip.net_profit_high,
            "profit_per_day_low": flip.profit_per_day_low,
            "profit_per_day_high": flip.profit_per_day_high,
        },
    }
