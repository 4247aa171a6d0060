"""Period report aggregator.

Builds one summary for a date range plus a per-day breakdown.  Day, week
and month reports share the same algorithm and differ only in how many
days before the end date the range starts.
"""

from __future__ import annotations

import json
from collections import defaultdict
from dataclasses import dataclass, field, asdict, replace
from datetime import date, timedelta
from enum import Enum
from typing import Any, Sequence

from corecare.analytics.features import (
    DIASTOLIC_BAND,
    HR_BAND,
    SYSTOLIC_BAND,
    filter_band,
    hrv_from_bpm,
    mean_or_none,
    resting_hr,
)
from corecare.errors import InvalidInputError
from corecare.models import BPReading, Reading, naive_utc


class Period(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def start_offset(self) -> int:
        """Days before the end date that the range starts."""
        return {"day": 0, "week": 6, "month": 29}[self.value]

    @classmethod
    def parse(cls, value: str | Period) -> Period:
        try:
            return cls(value)
        except ValueError:
            raise InvalidInputError(f"Unknown report period: {value!r}") from None


def period_range(period: Period | str, end: date) -> tuple[date, date]:
    """Inclusive ``(start, end)`` dates covered by a report."""
    period = Period.parse(period)
    return end - timedelta(days=period.start_offset), end


@dataclass
class DailyReading:
    """One calendar day inside a report."""

    date: str  # ISO date
    avg_bpm: float
    avg_systolic: int | None
    avg_diastolic: int | None
    measurement_count: int
    hrv: float | None


@dataclass
class ReportSummary:
    """Whole-range aggregates."""

    avg_bpm: float | None = None
    min_bpm: int | None = None
    max_bpm: int | None = None
    avg_bp_systolic: int | None = None
    avg_bp_diastolic: int | None = None
    avg_hrv: float | None = None
    resting_heart_rate: float | None = None
    recovery_heart_rate: float | None = None  # not derived from BPM data
    measurement_count: int = 0


@dataclass
class Report:
    period: str
    start_date: str
    end_date: str
    summary: ReportSummary = field(default_factory=ReportSummary)
    daily_readings: list[DailyReading] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict (JSON-friendly)."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"Report({self.period} {self.start_date}..{self.end_date}: "
            f"n={self.summary.measurement_count}, days={len(self.daily_readings)})"
        )


def _plausible_bp(r: BPReading) -> bool:
    return bool(
        filter_band([r.systolic], SYSTOLIC_BAND) and filter_band([r.diastolic], DIASTOLIC_BAND)
    )


def _avg_bp(bp_readings: Sequence[BPReading]) -> tuple[int | None, int | None]:
    """Mean systolic/diastolic of plausible readings, rounded to integers."""
    valid = [r for r in bp_readings if _plausible_bp(r)]
    sys_avg = mean_or_none([r.systolic for r in valid], 0)
    dia_avg = mean_or_none([r.diastolic for r in valid], 0)
    return (
        int(sys_avg) if sys_avg is not None else None,
        int(dia_avg) if dia_avg is not None else None,
    )


def _in_range(day: date, start: date, end: date) -> bool:
    return start <= day <= end


def assemble_report(
    readings: Sequence[Reading],
    bp_readings: Sequence[BPReading],
    period: Period | str,
    end: date,
) -> Report:
    """Build a report from already-fetched readings.

    Args:
        readings: Heart-rate readings; anything outside the period is ignored.
        bp_readings: Blood-pressure readings; same.
        period: ``day``, ``week`` or ``month``.
        end: Last calendar day of the report (usually today).

    Returns:
        A Report.  Days without an in-band heart-rate reading are left out
        of ``daily_readings``; the summary's ``measurement_count`` equals
        the sum of the daily counts.
    """
    period = Period.parse(period)
    start, end = period_range(period, end)

    readings = [replace(r, timestamp=naive_utc(r.timestamp)) for r in readings]
    bp_readings = [replace(r, timestamp=naive_utc(r.timestamp)) for r in bp_readings]

    hr = sorted(
        (r for r in readings if _in_range(r.timestamp.date(), start, end)),
        key=lambda r: r.timestamp,
    )
    bp = [r for r in bp_readings if _in_range(r.timestamp.date(), start, end)]

    # hr is sorted, so each day's values stay chronological
    hr_by_day: dict[date, list[float]] = defaultdict(list)
    for r in hr:
        if filter_band([r.value], HR_BAND):
            hr_by_day[r.timestamp.date()].append(float(r.value))
    bp_by_day: dict[date, list[BPReading]] = defaultdict(list)
    for r in bp:
        bp_by_day[r.timestamp.date()].append(r)

    all_bpm = [v for day in sorted(hr_by_day) for v in hr_by_day[day]]

    sys_avg, dia_avg = _avg_bp(bp)
    summary = ReportSummary(
        avg_bpm=mean_or_none(all_bpm, 1),
        min_bpm=int(min(all_bpm)) if all_bpm else None,
        max_bpm=int(max(all_bpm)) if all_bpm else None,
        avg_bp_systolic=sys_avg,
        avg_bp_diastolic=dia_avg,
        avg_hrv=hrv_from_bpm(all_bpm),
        resting_heart_rate=resting_hr(all_bpm),
        measurement_count=len(all_bpm),
    )

    daily: list[DailyReading] = []
    for day in sorted(hr_by_day):
        values = hr_by_day[day]
        day_sys, day_dia = _avg_bp(bp_by_day.get(day, []))
        daily.append(
            DailyReading(
                date=day.isoformat(),
                avg_bpm=mean_or_none(values, 1),
                avg_systolic=day_sys,
                avg_diastolic=day_dia,
                measurement_count=len(values),
                hrv=hrv_from_bpm(values),
            )
        )

    return Report(
        period=period.value,
        start_date=start.isoformat(),
        end_date=end.isoformat(),
        summary=summary,
        daily_readings=daily,
    )
