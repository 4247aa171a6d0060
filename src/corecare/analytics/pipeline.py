"""Analytics pipeline: fetch a subject's readings and run the estimators.

Every function takes the ``ReadingStore`` to read from; nothing here holds
state between calls.  ``today`` is a parameter so reports are reproducible.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Any

from corecare.analytics.bp import BPClassification, SyntheticBP, classify_bp, estimate_bp_from_bpm
from corecare.analytics.report import Period, Report, assemble_report, period_range
from corecare.analytics.risk import RiskAssessment, assess_risk
from corecare.analytics.stress import StressResult, score_stress
from corecare.errors import InvalidInputError, NoReadingsError
from corecare.store import ReadingStore

logger = logging.getLogger(__name__)

STRESS_WINDOW = 30
BASELINE_BPM = 72


def validate_subject_id(subject_id: Any) -> int:
    """Coerce a subject id to a positive int.

    Raises:
        InvalidInputError: if the id is not a positive integer.
    """
    try:
        value = int(subject_id)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid subject id: {subject_id!r}") from None
    if value <= 0:
        raise InvalidInputError(f"Invalid subject id: {subject_id!r}")
    return value


def stress_for_subject(
    store: ReadingStore,
    subject_id: int,
    window: int = STRESS_WINDOW,
) -> StressResult:
    """Score stress from the subject's latest readings and BP."""
    recent = store.fetch_recent_readings(subject_id, window)
    latest_bp = store.fetch_latest_bp(subject_id)
    logger.debug("Subject %d: %d recent readings, bp=%s", subject_id, len(recent), latest_bp)

    result = score_stress(
        [r.value for r in recent],
        systolic=latest_bp.systolic if latest_bp else None,
        diastolic=latest_bp.diastolic if latest_bp else None,
    )
    logger.debug("Subject %d stress: %r", subject_id, result)
    return result


def risk_for_day(store: ReadingStore, subject_id: int, day: date) -> RiskAssessment:
    """Risk assessment over one calendar day.

    Raises:
        NoReadingsError: if the subject has no readings that day.
    """
    readings = store.fetch_readings(subject_id, day, day)
    logger.debug("Subject %d: %d readings on %s", subject_id, len(readings), day)
    try:
        result = assess_risk([r.value for r in readings], day)
    except NoReadingsError:
        logger.warning("Subject %d has no readings on %s", subject_id, day)
        raise
    logger.debug("Subject %d risk: %r", subject_id, result)
    return result


@dataclass
class SubjectBPEstimate:
    """A synthetic BP estimate with its classification and provenance."""

    estimate: SyntheticBP
    classification: BPClassification
    input_bpm: float
    data_source: str  # latest_measurement / baseline_estimation / user_input
    measurement_time: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data = self.estimate.to_dict()
        data.update(asdict(self.classification))
        data["input_bpm"] = self.input_bpm
        data["data_source"] = self.data_source
        data["measurement_time"] = (
            self.measurement_time.isoformat(sep=" ") if self.measurement_time else None
        )
        return data


def estimate_bp(bpm: float, data_source: str = "user_input") -> SubjectBPEstimate:
    """Synthetic BP plus clinical category for a given BPM."""
    estimate = estimate_bp_from_bpm(bpm)
    return SubjectBPEstimate(
        estimate=estimate,
        classification=classify_bp(estimate.systolic, estimate.diastolic),
        input_bpm=bpm,
        data_source=data_source,
    )


def estimate_bp_for_subject(
    store: ReadingStore,
    subject_id: int,
    baseline_bpm: float = BASELINE_BPM,
) -> SubjectBPEstimate:
    """Synthetic BP from the subject's most recent reading.

    Falls back to ``baseline_bpm`` when the subject has no readings.
    """
    latest = store.fetch_recent_readings(subject_id, 1)
    if latest:
        result = estimate_bp(latest[0].value, "latest_measurement")
        result.measurement_time = latest[0].timestamp
    else:
        logger.debug("Subject %d has no readings; using baseline %s bpm", subject_id, baseline_bpm)
        result = estimate_bp(baseline_bpm, "baseline_estimation")
    return result


def build_report(
    store: ReadingStore,
    subject_id: int,
    period: Period | str,
    today: date | None = None,
) -> Report:
    """Day, week or month report ending on ``today``."""
    today = today or date.today()
    start, end = period_range(period, today)
    readings = store.fetch_readings(subject_id, start, end)
    bp_readings = store.fetch_bp_readings(subject_id, start, end)
    logger.debug(
        "Subject %d %s report %s..%s: %d HR, %d BP readings",
        subject_id, Period.parse(period).value, start, end, len(readings), len(bp_readings),
    )
    return assemble_report(readings, bp_readings, period, end)
