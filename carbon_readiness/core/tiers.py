"""Readiness tiers.

Every place a score is classified (results gauge, PDF, emails) goes through
`classify`, so the thresholds below exist only here.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .translations import TranslationBundle, resolve

ADVANCED_MIN = 85
SOLID_MIN = 65
BASIC_MIN = 35
SCALE_MAX = 100


class Tier(str, Enum):
    URGENT = "urgent"
    BASIC = "basic"
    SOLID = "solid"
    ADVANCED = "advanced"


# Ascending order, inclusive lower bounds
TIER_BANDS: List[Tuple[Tier, int]] = [
    (Tier.URGENT, 0),
    (Tier.BASIC, BASIC_MIN),
    (Tier.SOLID, SOLID_MIN),
    (Tier.ADVANCED, ADVANCED_MIN),
]

DEFAULT_RESULT_TEXT = {
    Tier.ADVANCED: "Advanced Carbon Credit Readiness",
    Tier.SOLID: "Solid Carbon Credit Readiness",
    Tier.BASIC: "Basic Carbon Credit Readiness",
    Tier.URGENT: "Immediate Action Required",
}

SPEEDOMETER_KEYS = {
    Tier.URGENT: "critical",
    Tier.BASIC: "poor",
    Tier.SOLID: "fair",
    Tier.ADVANCED: "good",
}

TIER_COLORS = {
    Tier.URGENT: "#ef4444",
    Tier.BASIC: "#f97316",
    Tier.SOLID: "#eab308",
    Tier.ADVANCED: "#22c55e",
}


@dataclass(frozen=True)
class TierResult:
    tier: Tier
    result: str
    suggestion: str


@dataclass(frozen=True)
class GaugeSegment:
    tier: Tier
    start: int
    end: int
    color: str


def classify(score: int) -> Tier:
    if score >= ADVANCED_MIN:
        return Tier.ADVANCED
    if score >= SOLID_MIN:
        return Tier.SOLID
    if score >= BASIC_MIN:
        return Tier.BASIC
    return Tier.URGENT


def classify_result(score: int, bundle: Optional[TranslationBundle] = None) -> TierResult:
    tier = classify(score)
    return TierResult(
        tier=tier,
        result=resolve(bundle, f"result_texts.{tier.value}.result", DEFAULT_RESULT_TEXT[tier]),
        suggestion=resolve(bundle, f"result_texts.{tier.value}.suggestion", ""),
    )


def gauge_segments(scale_max: int = SCALE_MAX) -> List[GaugeSegment]:
    segments: List[GaugeSegment] = []
    for i, (tier, start) in enumerate(TIER_BANDS):
        end = TIER_BANDS[i + 1][1] if i + 1 < len(TIER_BANDS) else scale_max
        segments.append(GaugeSegment(tier=tier, start=start, end=end, color=TIER_COLORS[tier]))
    return segments


def segment_label(tier: Tier, bundle: Optional[TranslationBundle] = None) -> str:
    return resolve(bundle, f"speedometer.{SPEEDOMETER_KEYS[tier]}", DEFAULT_RESULT_TEXT[tier])
