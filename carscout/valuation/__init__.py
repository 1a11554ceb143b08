"""Valuation and resellability engine."""

from carscout.valuation.calibration import Calibration, get_calibration, load_calibration
from carscout.valuation.retention import RetentionEstimate, RetentionModel
from carscout.valuation.cache import SqlValuationCache, ValuationCache
from carscout.valuation.comps import CompsEngine
from carscout.valuation.fallback import GenerativeFallbackEstimator
from carscout.valuation.orchestrator import ValuationService
from carscout.valuation.outcome import Outcome
from carscout.valuation.schemas import (
    ResellabilityScore,
    ResellabilitySource,
    ValuationEstimate,
    ValuationRequest,
    ValuationSource,
)

__all__ = [
    "Calibration",
    "get_calibration",
    "load_calibration",
    "RetentionEstimate",
    "RetentionModel",
    "SqlValuationCache",
    "ValuationCache",
    "CompsEngine",
    "GenerativeFallbackEstimator",
    "ValuationService",
    "Outcome",
    "ResellabilityScore",
    "ResellabilitySource",
    "ValuationEstimate",
    "ValuationRequest",
    "ValuationSource",
]
