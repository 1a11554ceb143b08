"""Original-price anchor resolution.

Layered lookup: exact (make, model) -> model fragment match under the make
-> make-level average -> global default. Never fails on unknown input.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from carscout.valuation.calibration import Calibration


class AnchorTier(str, Enum):
    MODEL_EXACT = "model_exact"
    MODEL_PARTIAL = "model_partial"
    MAKE_AVERAGE = "make_average"
    DEFAULT = "default"


@dataclass(frozen=True)
class Anchor:
    value: float
    tier: AnchorTier


def normalize(name: Optional[str]) -> str:
    return " ".join((name or "").lower().split())


class AnchorResolver:
    """Resolves a base original price for a (make, model, year)."""

    def __init__(self, calibration: Calibration):
        self.calibration = calibration

    def resolve(self, make: Optional[str], model: Optional[str], year: int) -> Anchor:
        m = normalize(make)
        mod = normalize(model)
        cal = self.calibration

        models = cal.model_anchors.get(m) if m else None
        if models and mod:
            if mod in models:
                return Anchor(models[mod], AnchorTier.MODEL_EXACT)
            # Trims: "es 350" -> "es", "f-150 xlt" -> "f-150". Longest fragment wins
            # so "cx-30 select" resolves to "cx-30", not "3".
            for fragment, value in sorted(models.items(), key=lambda kv: -len(kv[0])):
                if mod.startswith(fragment) or fragment in mod:
                    return Anchor(value, AnchorTier.MODEL_PARTIAL)

        if m in cal.make_anchors:
            anchor = Anchor(cal.make_anchors[m], AnchorTier.MAKE_AVERAGE)
        else:
            anchor = Anchor(cal.default_anchor, AnchorTier.DEFAULT)

        # Older model years had lower sticker prices
        if year < cal.baseline_year:
            years_back = cal.baseline_year - year
            anchor = Anchor(anchor.value * cal.pre_baseline_deflation ** years_back, anchor.tier)

        return anchor
