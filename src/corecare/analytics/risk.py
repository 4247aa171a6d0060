"""Daily cardiovascular risk assessment (rule-based, heuristic).

Every rule in ``RULES`` is evaluated against the day's summary metrics.
Rules are not exclusive: all rules that fire add their points, a factor
and a recommendation, in table order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, NamedTuple, Sequence

from corecare.analytics.features import HR_BAND, filter_band, hrv_from_bpm, round_half_up
from corecare.errors import NoReadingsError


class RiskLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    VERY_HIGH = "Very High"


class RiskRule(NamedTuple):
    metric: str  # key into the day's metrics
    predicate: Callable[[float], bool]
    points: int
    factor: str
    recommendation: str


RULES: list[RiskRule] = [
    RiskRule("avg_bpm", lambda v: v >= 100, 20, "Elevated HR (≥100 bpm)", "Cardio evaluation"),
    RiskRule("avg_bpm", lambda v: v >= 90, 12, "Moderately elevated HR (90–99 bpm)", "Monitor HR trends"),
    RiskRule("avg_bpm", lambda v: v >= 85, 8, "Slightly elevated HR (85–89 bpm)", "Maintain exercise"),
    RiskRule("avg_bpm", lambda v: v <= 50, 15, "Very low HR (≤50 bpm)", "Consult provider"),
    RiskRule("avg_bpm", lambda v: v <= 60, 3, "Low HR (51–60 bpm)", "Monitor bradycardia"),
    RiskRule("max_bpm", lambda v: v > 150, 12, "High peak HR (>150)", "Review exercise"),
    RiskRule("range_bpm", lambda v: v >= 60, 8, "High HR range (≥60)", "Check rhythms"),
    RiskRule("range_bpm", lambda v: v <= 10, 4, "Low HR range (≤10)", "Stress management"),
    RiskRule("hrv", lambda v: v <= 20, 12, "Very low HRV (≤20 ms)", "Stress management"),
    RiskRule("hrv", lambda v: 20 < v <= 30, 8, "Low HRV (21–30 ms)", "Stress reduction"),
    RiskRule("hrv", lambda v: v > 100, 8, "Unusually high HRV (>100 ms)", "Verify accuracy"),
]

# (minimum score, level), highest first
LEVELS = [
    (60, RiskLevel.VERY_HIGH),
    (40, RiskLevel.HIGH),
    (20, RiskLevel.MODERATE),
]

DEFAULT_RECOMMENDATIONS = ["Maintain healthy lifestyle", "Monitor vitals"]
LOW_RISK_CLOSING = "Keep up the good work"
ELEVATED_RISK_CLOSING = "Follow up with provider"


@dataclass
class RiskAssessment:
    """Risk score for one subject-day."""

    day: str  # ISO date
    score: int
    level: RiskLevel
    avg_bpm: float
    min_bpm: int
    max_bpm: int
    hrv_rmssd_ms: float | None
    factors: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "date": self.day,
            "avg_bpm": self.avg_bpm,
            "min_bpm": self.min_bpm,
            "max_bpm": self.max_bpm,
            "hrv_rmssd_ms": self.hrv_rmssd_ms,
            "risk_score": self.score,
            "risk_level": self.level.value,
            "factors": list(self.factors),
            "recommendations": list(self.recommendations),
        }

    def __repr__(self) -> str:
        return (
            f"RiskAssessment({self.day}: score={self.score}, "
            f"level={self.level.value}, factors={len(self.factors)})"
        )


def risk_level(score: int) -> RiskLevel:
    for minimum, level in LEVELS:
        if score >= minimum:
            return level
    return RiskLevel.LOW


def assess_risk(bpm_values: Sequence[float | None], day: date | str) -> RiskAssessment:
    """Score one day of heart-rate readings.

    Args:
        bpm_values: The day's BPM readings in chronological order.
        day: The calendar day being assessed.

    Raises:
        NoReadingsError: if no in-band reading exists for the day.
    """
    date_str = day if isinstance(day, str) else day.isoformat()

    bpm = filter_band(bpm_values, HR_BAND)
    if not bpm:
        raise NoReadingsError(f"No readings for {date_str}")

    avg = round_half_up(sum(bpm) / len(bpm), 1)
    lo = int(min(bpm))
    hi = int(max(bpm))
    hrv = hrv_from_bpm(bpm)

    metrics: dict[str, float | None] = {
        "avg_bpm": avg,
        "max_bpm": hi,
        "range_bpm": hi - lo,
        "hrv": hrv,
    }

    score = 0
    factors: list[str] = []
    recommendations: list[str] = []
    for rule in RULES:
        value = metrics[rule.metric]
        if value is None:
            continue
        if rule.predicate(value):
            score += rule.points
            factors.append(rule.factor)
            recommendations.append(rule.recommendation)

    level = risk_level(score)

    if not recommendations:
        recommendations = list(DEFAULT_RECOMMENDATIONS)
    if level is RiskLevel.LOW:
        recommendations.append(LOW_RISK_CLOSING)
    else:
        recommendations.append(ELEVATED_RISK_CLOSING)

    return RiskAssessment(
        day=date_str,
        score=score,
        level=level,
        avg_bpm=avg,
        min_bpm=lo,
        max_bpm=hi,
        hrv_rmssd_ms=hrv,
        factors=factors,
        recommendations=recommendations,
    )
