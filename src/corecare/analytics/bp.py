"""Illustrative blood-pressure estimate from heart rate alone.

FOR EDUCATIONAL PURPOSES ONLY.  The estimate is a piecewise-linear
adjustment of a 120/80 reference around a 70 bpm resting rate, not a
measurement.  Every intermediate quantity is recorded in ``steps`` so the
result can be explained to the user line by line.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any

from corecare.analytics.features import round_half_up


# ---------------------------------------------------------------------------
# Reference values and limits
# ---------------------------------------------------------------------------

BPM_MIN = 40
BPM_MAX = 180

RESTING_HR = 70
BASE_SYSTOLIC = 120
BASE_DIASTOLIC = 80

SYSTOLIC_LIMITS = (85, 200)
DIASTOLIC_LIMITS = (50, 130)

# Diastolic is forced this far below systolic if clamping inverts them
MIN_PULSE_PRESSURE = 20

# (lo, hi, confidence) - first inclusive range containing the bpm wins
CONFIDENCE_BANDS = [
    (60, 100, 0.95),
    (50, 120, 0.85),
    (40, 150, 0.75),
]
FALLBACK_CONFIDENCE = 0.60


@dataclass
class SyntheticBP:
    """Estimated BP with its audit trail."""

    systolic: int
    diastolic: int
    pulse_pressure: int
    mean_arterial_pressure: int
    confidence: float
    condition: str
    steps: list[str] = field(default_factory=list)
    raw_calculations: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def __repr__(self) -> str:
        return (
            f"SyntheticBP({self.systolic}/{self.diastolic}, "
            f"MAP={self.mean_arterial_pressure}, {self.condition}, "
            f"conf={self.confidence:.2f})"
        )


@dataclass
class BPClassification:
    category: str
    risk_score: float  # 0-1
    recommendation: str


def _num(x: float) -> str:
    """Format a number for a step line: no trailing zeros or float noise."""
    return f"{x:.14g}"


def _adjustments(bpm: float, deviation: float) -> tuple[float, float, str, str]:
    """Pick the regime for a clamped bpm.

    Returns ``(systolic_adj, diastolic_adj, condition, step)``.
    """
    if bpm < 50:
        return (
            -25 + (bpm - 40) * 0.5,
            -15 + (bpm - 40) * 0.3,
            "Severe Bradycardia",
            "Step 4a: Severe bradycardia detected - applying compensatory adjustments",
        )
    if bpm < 60:
        return (
            -15 + (bpm - 50) * 1.0,
            -10 + (bpm - 50) * 0.5,
            "Mild Bradycardia",
            "Step 4b: Mild bradycardia - reduced cardiac output compensation",
        )
    if bpm <= 100:
        return (
            deviation * 0.4,
            deviation * 0.2,
            "Normal Range",
            "Step 4c: Normal HR range - linear BP adjustment",
        )

    excess = bpm - 100
    if bpm <= 120:
        return (
            12 + excess * 0.8,
            4 + excess * 0.4,
            "Mild Tachycardia",
            "Step 4d: Mild tachycardia - increased cardiac output",
        )
    if bpm <= 150:
        return (
            16 + excess * 0.6,
            8 + excess * 0.3,
            "Moderate Tachycardia",
            "Step 4e: Moderate tachycardia - significant cardiovascular stress",
        )
    return (
        20 + excess * 0.4,
        10 + excess * 0.2,
        "Severe Tachycardia",
        "Step 4f: Severe tachycardia - maximum cardiovascular response",
    )


def _confidence(bpm: float) -> float:
    for lo, hi, conf in CONFIDENCE_BANDS:
        if lo <= bpm <= hi:
            return conf
    return FALLBACK_CONFIDENCE


def estimate_bp_from_bpm(bpm: float) -> SyntheticBP:
    """Estimate systolic/diastolic from a single heart-rate value.

    The input is clamped to 40-180 bpm.  Diastolic is always strictly
    below systolic in the result.
    """
    steps: list[str] = []

    original = bpm
    bpm = max(BPM_MIN, min(BPM_MAX, bpm))
    steps.append(
        f"Step 1: Heart rate validation - Input: {_num(original)} BPM, "
        f"Clamped: {_num(bpm)} BPM"
    )
    steps.append(
        f"Step 2: Base values - Resting HR: {RESTING_HR}, "
        f"Base BP: {BASE_SYSTOLIC}/{BASE_DIASTOLIC}"
    )

    deviation = bpm - RESTING_HR
    steps.append(f"Step 3: HR deviation from resting = {_num(deviation)} BPM")

    sys_adj, dia_adj, condition, regime_step = _adjustments(bpm, deviation)
    steps.append(regime_step)

    raw_sys = BASE_SYSTOLIC + sys_adj
    raw_dia = BASE_DIASTOLIC + dia_adj
    steps.append(
        f"Step 5: Raw calculations - Systolic: {BASE_SYSTOLIC} + "
        f"{_num(sys_adj)} = {_num(raw_sys)}"
    )
    steps.append(
        f"Step 5: Raw calculations - Diastolic: {BASE_DIASTOLIC} + "
        f"{_num(dia_adj)} = {_num(raw_dia)}"
    )

    systolic = int(max(SYSTOLIC_LIMITS[0], min(SYSTOLIC_LIMITS[1], round_half_up(raw_sys))))
    diastolic = int(max(DIASTOLIC_LIMITS[0], min(DIASTOLIC_LIMITS[1], round_half_up(raw_dia))))
    if diastolic >= systolic:
        diastolic = systolic - MIN_PULSE_PRESSURE
    steps.append(f"Step 6: Applied physiological limits - Final BP: {systolic}/{diastolic}")

    pulse_pressure = systolic - diastolic
    mean_arterial = int(round_half_up(diastolic + pulse_pressure / 3))
    steps.append(
        f"Step 7: Calculated metrics - Pulse Pressure: {pulse_pressure}, "
        f"MAP: {mean_arterial}"
    )

    confidence = _confidence(bpm)
    steps.append(f"Step 8: Confidence assessment - {confidence:.2f} based on HR range")

    return SyntheticBP(
        systolic=systolic,
        diastolic=diastolic,
        pulse_pressure=pulse_pressure,
        mean_arterial_pressure=mean_arterial,
        confidence=confidence,
        condition=condition,
        steps=steps,
        raw_calculations={
            "hr_deviation": deviation,
            "systolic_adjustment": round_half_up(sys_adj, 2),
            "diastolic_adjustment": round_half_up(dia_adj, 2),
        },
    )


# ---------------------------------------------------------------------------
# Clinical category
# ---------------------------------------------------------------------------


def classify_bp(systolic: float, diastolic: float) -> BPClassification:
    """Map a systolic/diastolic pair to a clinical category.

    Categories are tested in order: Normal, Elevated, Stage 1, then
    Stage 2 / Crisis.  Anything left over is Indeterminate.
    """
    if systolic < 120 and diastolic < 80:
        return BPClassification(
            "Normal",
            0.1,
            "Maintain healthy lifestyle: regular exercise, balanced diet, adequate sleep.",
        )
    if 120 <= systolic <= 129 and diastolic < 80:
        return BPClassification(
            "Elevated",
            0.25,
            "Lifestyle modifications: reduce sodium intake, increase physical activity, "
            "manage stress.",
        )
    if 130 <= systolic <= 139 or 80 <= diastolic <= 89:
        return BPClassification(
            "Hypertension Stage 1",
            0.4,
            "Lifestyle changes and regular monitoring. Consider medical consultation.",
        )
    if systolic >= 140 or diastolic >= 90:
        if systolic > 180 or diastolic > 120:
            return BPClassification(
                "Hypertensive Crisis",
                0.95,
                "IMMEDIATE medical attention required - potential medical emergency.",
            )
        return BPClassification(
            "Hypertension Stage 2",
            0.7,
            "Medical evaluation and treatment likely needed. Monitor closely.",
        )
    return BPClassification(
        "Indeterminate",
        0.5,
        "Consult healthcare provider for proper assessment.",
    )
