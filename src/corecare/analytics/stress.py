"""Stress percentage (heuristic, not diagnostic).

Four independently capped bands are summed and clamped to 0-100:

    current BPM   0-50
    average BPM   0-25
    blood press.  0-15  (only when both systolic and diastolic are known)
    variability   0-10  (max - min of the BPM window)
"""

from __future__ import annotations

import math
import operator
from dataclasses import dataclass, field
from typing import Callable, Sequence

from corecare.analytics.features import round_half_up


# (threshold, points) pairs, highest threshold first; first match wins
CURRENT_BPM_BAND = [(120, 50), (100, 35), (90, 25), (80, 15), (70, 5)]
AVERAGE_BPM_BAND = [(100, 25), (90, 18), (80, 12), (75, 6)]
BP_BAND = [((140, 90), 15), ((130, 85), 10), ((120, 80), 5)]
VARIABILITY_BAND = [(40, 10), (25, 6), (15, 3)]  # strict: range > threshold

BAND_CAPS = {"current": 50, "average": 25, "bp": 15, "variability": 10}

LOW_MAX = 25
MODERATE_MAX = 55

FLOOR_OFFSET = 55
FLOOR_MIN = 5
FLOOR_MAX = 20


@dataclass
class StressResult:
    """Stress score and the inputs that drove it."""

    score: float  # 0-100
    category: str  # Low / Moderate / High
    current_bpm: float | None
    bpm_category: str | None
    systolic: float | None
    diastolic: float | None
    reading_count: int
    average_bpm: float | None
    bp_available: bool
    base_score: float  # sum of bands before clamping and floor
    bands: dict[str, float] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"StressResult(score={self.score:.0f}%, {self.category}, "
            f"n={self.reading_count})"
        )


def _band_points(
    value: float,
    band: list[tuple[float, int]],
    hit: Callable[[float, float], bool],
) -> int:
    for threshold, points in band:
        if hit(value, threshold):
            return points
    return 0


def _bp_points(systolic: float, diastolic: float) -> int:
    for (sys_t, dia_t), points in BP_BAND:
        if systolic >= sys_t or diastolic >= dia_t:
            return points
    return 0


def stress_category(score: float) -> str:
    if score <= LOW_MAX:
        return "Low"
    if score <= MODERATE_MAX:
        return "Moderate"
    return "High"


def current_bpm_category(bpm: float | None) -> str | None:
    """Label the current BPM for stress output: Low, Normal, Elevated or High."""
    if bpm is None:
        return None
    if bpm < 60:
        return "Low"
    if bpm <= 100:
        return "Normal"
    if bpm <= 120:
        return "Elevated"
    return "High"


def _valid(v: float | None) -> bool:
    return v is not None and math.isfinite(v) and v > 0


def score_stress(
    recent_bpm: Sequence[float | None],
    systolic: float | None = None,
    diastolic: float | None = None,
) -> StressResult:
    """Compute the stress percentage.

    Args:
        recent_bpm: Recent BPM readings, most recent first.  Missing or
            non-positive entries are ignored.
        systolic: Latest systolic reading, if any.
        diastolic: Latest diastolic reading, if any.

    Returns:
        StressResult.  With no BPM readings the score is 0 and the
        category Low.
    """
    bpm = [float(v) for v in recent_bpm if _valid(v)]
    sys_v = float(systolic) if _valid(systolic) else None
    dia_v = float(diastolic) if _valid(diastolic) else None
    bp_available = sys_v is not None and dia_v is not None

    if not bpm:
        return StressResult(
            score=0.0,
            category="Low",
            current_bpm=None,
            bpm_category=None,
            systolic=sys_v,
            diastolic=dia_v,
            reading_count=0,
            average_bpm=None,
            bp_available=bp_available,
            base_score=0.0,
            bands={name: 0.0 for name in BAND_CAPS},
        )

    current = bpm[0]
    avg = sum(bpm) / len(bpm)
    spread = max(bpm) - min(bpm)

    bands = {
        "current": _band_points(current, CURRENT_BPM_BAND, operator.ge),
        "average": _band_points(avg, AVERAGE_BPM_BAND, operator.ge),
        "bp": _bp_points(sys_v, dia_v) if bp_available else 0,
        "variability": _band_points(spread, VARIABILITY_BAND, operator.gt),
    }
    bands = {name: float(min(points, BAND_CAPS[name])) for name, points in bands.items()}

    base = sum(bands.values())
    score = max(0.0, min(100.0, base))

    # Never report zero stress while a vital sign is present
    if score == 0 and current > 0:
        score = float(max(FLOOR_MIN, min(FLOOR_MAX, current - FLOOR_OFFSET)))

    score = round_half_up(score, 1)

    return StressResult(
        score=score,
        category=stress_category(score),
        current_bpm=current,
        bpm_category=current_bpm_category(current),
        systolic=sys_v,
        diastolic=dia_v,
        reading_count=len(bpm),
        average_bpm=round_half_up(avg, 1),
        bp_available=bp_available,
        base_score=base,
        bands=bands,
    )
