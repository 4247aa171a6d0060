"""Analytics engine for heart-rate derived metrics.

Modules:
    features -- Plausibility filtering, HRV (RMSSD), resting HR
    stress   -- Banded stress percentage
    risk     -- Rule-based daily risk assessment
    bp       -- Synthetic BP estimate from heart rate, BP classification
    report   -- Day/week/month report aggregation
    pipeline -- Store-backed orchestration of the above
"""

from corecare.analytics.features import (
    filter_band,
    compute_rmssd,
    hrv_from_bpm,
    resting_hr,
)
from corecare.analytics.stress import score_stress, StressResult
from corecare.analytics.risk import assess_risk, RiskAssessment, RiskLevel
from corecare.analytics.bp import (
    estimate_bp_from_bpm,
    classify_bp,
    SyntheticBP,
    BPClassification,
)
from corecare.analytics.report import (
    assemble_report,
    Period,
    Report,
    ReportSummary,
    DailyReading,
)

__all__ = [
    # features
    "filter_band",
    "compute_rmssd",
    "hrv_from_bpm",
    "resting_hr",
    # stress
    "score_stress",
    "StressResult",
    # risk
    "assess_risk",
    "RiskAssessment",
    "RiskLevel",
    # bp
    "estimate_bp_from_bpm",
    "classify_bp",
    "SyntheticBP",
    "BPClassification",
    # report
    "assemble_report",
    "Period",
    "Report",
    "ReportSummary",
    "DailyReading",
]
