"""Tests for corecare.analytics.pipeline -- store-backed analytics."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from corecare.analytics.pipeline import (
    build_report,
    estimate_bp,
    estimate_bp_for_subject,
    risk_for_day,
    stress_for_subject,
    validate_subject_id,
)
from corecare.analytics.risk import RiskLevel
from corecare.errors import InvalidInputError, NoReadingsError
from corecare.models import Reading

from tests.conftest import fill_store, make_bp, make_readings


class TestValidateSubjectId:
    @pytest.mark.parametrize("value, expected", [("5", 5), (12, 12), ("007", 7)])
    def test_valid(self, value, expected):
        assert validate_subject_id(value) == expected

    @pytest.mark.parametrize("value", ["0", -3, "abc", None, "1.5"])
    def test_invalid(self, value):
        with pytest.raises(InvalidInputError):
            validate_subject_id(value)


class TestStressForSubject:
    def test_uses_latest_window(self, memory_store):
        # 40 readings: oldest 35 at 60 bpm, newest 5 at 120 bpm
        fill_store(memory_store, 1, make_readings([60] * 35 + [120] * 5, step_min=1))
        result = stress_for_subject(memory_store, 1, window=30)
        assert result.reading_count == 30
        assert result.current_bpm == 120.0
        assert result.average_bpm == 70.0

    def test_latest_bp_used(self, memory_store):
        fill_store(memory_store, 1, make_readings([65]), [
            make_bp(110, 70, datetime(2024, 3, 9, 8)),
            make_bp(145, 92, datetime(2024, 3, 10, 8)),
        ])
        result = stress_for_subject(memory_store, 1)
        assert (result.systolic, result.diastolic) == (145, 92)
        assert result.bands["bp"] == 15

    def test_no_data_degrades_to_zero(self, memory_store):
        result = stress_for_subject(memory_store, 1)
        assert result.score == 0.0
        assert result.category == "Low"


class TestRiskForDay:
    def test_scores_requested_day_only(self, memory_store):
        fill_store(memory_store, 1, make_readings([100], start=datetime(2024, 3, 9, 8)))
        fill_store(memory_store, 1, make_readings([84, 96, 84, 96]))
        result = risk_for_day(memory_store, 1, date(2024, 3, 10))
        assert result.score == 20
        assert result.level is RiskLevel.MODERATE

    def test_no_readings_is_a_failure(self, memory_store):
        fill_store(memory_store, 1, make_readings([70]))
        with pytest.raises(NoReadingsError, match="2024-03-11"):
            risk_for_day(memory_store, 1, date(2024, 3, 11))


class TestEstimateBP:
    def test_user_supplied_bpm(self):
        result = estimate_bp(110)
        assert result.data_source == "user_input"
        assert result.classification.category == "Hypertension Stage 1"
        d = result.to_dict()
        assert d["systolic"] == 140
        assert d["category"] == "Hypertension Stage 1"
        assert d["measurement_time"] is None

    def test_baseline_when_no_readings(self, memory_store):
        result = estimate_bp_for_subject(memory_store, 1)
        assert result.data_source == "baseline_estimation"
        assert result.input_bpm == 72
        assert (result.estimate.systolic, result.estimate.diastolic) == (121, 80)

    def test_custom_baseline(self, memory_store):
        result = estimate_bp_for_subject(memory_store, 1, baseline_bpm=70)
        assert result.estimate.systolic == 120

    def test_latest_measurement(self, memory_store):
        fill_store(memory_store, 1, make_readings([70, 101]))
        result = estimate_bp_for_subject(memory_store, 1)
        assert result.data_source == "latest_measurement"
        assert result.input_bpm == 101
        assert result.measurement_time == datetime(2024, 3, 10, 8, 10)
        assert result.to_dict()["measurement_time"] == "2024-03-10 08:10:00"


class TestBuildReport:
    def test_week_report_from_store(self, memory_store):
        fill_store(memory_store, 1, make_readings([70, 72], start=datetime(2024, 3, 5, 8)))
        fill_store(memory_store, 1, make_readings([80], start=datetime(2024, 2, 1, 8)))
        fill_store(memory_store, 1, [], [make_bp(118, 76, datetime(2024, 3, 5, 9))])
        report = build_report(memory_store, 1, "week", today=date(2024, 3, 10))
        assert report.summary.measurement_count == 2
        assert report.summary.avg_bp_systolic == 118
        assert [d.date for d in report.daily_readings] == ["2024-03-05"]

    def test_month_reaches_further_back(self, memory_store):
        fill_store(memory_store, 1, make_readings([80], start=datetime(2024, 2, 10, 8)))
        report = build_report(memory_store, 1, "month", today=date(2024, 3, 10))
        assert report.summary.measurement_count == 1
        assert report.start_date == "2024-02-10"

    def test_sqlite_and_memory_agree(self, memory_store, sqlite_store):
        readings = make_readings([62, 75, 71, 90, 66], start=datetime(2024, 3, 8, 7), step_min=300)
        fill_store(memory_store, 1, readings)
        fill_store(sqlite_store, 1, readings)
        a = build_report(memory_store, 1, "week", today=date(2024, 3, 10))
        b = build_report(sqlite_store, 1, "week", today=date(2024, 3, 10))
        assert a == b

    def test_naive_and_aware_readings(self, memory_store):
        fill_store(memory_store, 1, [
            Reading(70, datetime(2024, 3, 10, 8)),
            Reading(80, datetime(2024, 3, 10, 9, tzinfo=timezone.utc)),
        ])
        report = build_report(memory_store, 1, "day", today=date(2024, 3, 10))
        assert report.summary.measurement_count == 2
        assert report.summary.avg_bpm == 75.0
