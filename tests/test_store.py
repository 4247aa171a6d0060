"""Tests for corecare.store -- memory/SQLite stores and JSONL import."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from corecare.errors import InvalidInputError
from corecare.models import BPReading, Reading
from corecare.store import MemoryStore, SQLiteStore, load_jsonl, parse_entry, parse_timestamp

from tests.conftest import fill_store, make_bp, make_readings, write_jsonl


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryStore()
    else:
        s = SQLiteStore(tmp_path / "store.db")
        yield s
        s.close()


class TestParseTimestamp:
    def test_naive(self):
        assert parse_timestamp("2024-03-10T08:30:00") == datetime(2024, 3, 10, 8, 30)

    def test_space_separator(self):
        assert parse_timestamp("2024-03-10 08:30:00") == datetime(2024, 3, 10, 8, 30)

    def test_zulu_converted_to_naive_utc(self):
        assert parse_timestamp("2024-03-10T08:30:00Z") == datetime(2024, 3, 10, 8, 30)

    def test_offset_converted_to_utc(self):
        assert parse_timestamp("2024-03-10T10:30:00+02:00") == datetime(2024, 3, 10, 8, 30)

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")


class TestReadingStore:
    def test_fetch_by_inclusive_dates(self, store):
        fill_store(store, 1, [
            Reading(60, datetime(2024, 3, 3, 23, 59, 59)),
            Reading(70, datetime(2024, 3, 4, 0, 0, 0)),
            Reading(80, datetime(2024, 3, 10, 23, 59, 59)),
            Reading(90, datetime(2024, 3, 11, 0, 0, 0)),
        ])
        rows = store.fetch_readings(1, date(2024, 3, 4), date(2024, 3, 10))
        assert [r.value for r in rows] == [70, 80]

    def test_fetch_is_chronological(self, store):
        readings = make_readings([70, 75, 80])
        fill_store(store, 1, list(reversed(readings)))
        rows = store.fetch_readings(1, date(2024, 3, 10), date(2024, 3, 10))
        assert [r.value for r in rows] == [70, 75, 80]
        assert rows[0].timestamp == datetime(2024, 3, 10, 8, 0)

    def test_subjects_isolated(self, store):
        fill_store(store, 1, make_readings([70]))
        fill_store(store, 2, make_readings([90]))
        rows = store.fetch_readings(2, date(2024, 3, 10), date(2024, 3, 10))
        assert [r.value for r in rows] == [90]

    def test_recent_most_recent_first(self, store):
        fill_store(store, 1, make_readings([60, 65, 70, 75, 80]))
        rows = store.fetch_recent_readings(1, 3)
        assert [r.value for r in rows] == [80, 75, 70]

    def test_recent_unknown_subject(self, store):
        assert store.fetch_recent_readings(99, 30) == []

    def test_bp_range_and_latest(self, store):
        fill_store(store, 1, [], [
            make_bp(120, 80, datetime(2024, 3, 9, 8)),
            make_bp(130, 85, datetime(2024, 3, 10, 8)),
        ])
        rows = store.fetch_bp_readings(1, date(2024, 3, 10), date(2024, 3, 10))
        assert [(r.systolic, r.diastolic) for r in rows] == [(130, 85)]
        latest = store.fetch_latest_bp(1)
        assert (latest.systolic, latest.diastolic) == (130, 85)

    def test_latest_bp_none(self, store):
        assert store.fetch_latest_bp(1) is None

    def test_naive_and_aware_mixed(self, store):
        fill_store(store, 1, [
            Reading(80, datetime(2024, 3, 10, 9, tzinfo=timezone.utc)),
            Reading(70, datetime(2024, 3, 10, 8)),
            # 10:30 at +02:00 is 08:30 UTC
            Reading(75, datetime(2024, 3, 10, 10, 30, tzinfo=timezone(timedelta(hours=2)))),
        ], [make_bp(120, 80, datetime(2024, 3, 10, 7, tzinfo=timezone.utc))])
        rows = store.fetch_readings(1, date(2024, 3, 10), date(2024, 3, 10))
        assert [r.value for r in rows] == [70, 75, 80]
        assert all(r.timestamp.tzinfo is None for r in rows)
        assert [r.value for r in store.fetch_recent_readings(1, 2)] == [80, 75]
        assert store.fetch_latest_bp(1).timestamp == datetime(2024, 3, 10, 7)

    def test_aware_reading_lands_on_utc_day(self, store):
        # 01:00 at +05:00 is 20:00 UTC the day before
        fill_store(store, 1, [
            Reading(70, datetime(2024, 3, 10, 1, tzinfo=timezone(timedelta(hours=5)))),
        ])
        assert store.fetch_readings(1, date(2024, 3, 10), date(2024, 3, 10)) == []
        rows = store.fetch_readings(1, date(2024, 3, 9), date(2024, 3, 9))
        assert rows[0].timestamp == datetime(2024, 3, 9, 20)


class TestSQLiteStore:
    def test_persists_across_connections(self, tmp_path):
        path = tmp_path / "persist.db"
        with SQLiteStore(path) as s:
            s.add_reading(1, Reading(72, datetime(2024, 3, 10, 8)))
        with SQLiteStore(path) as s:
            rows = s.fetch_recent_readings(1, 10)
        assert [r.value for r in rows] == [72.0]

    def test_category_stored(self, sqlite_store):
        sqlite_store.add_reading(1, Reading(130, datetime(2024, 3, 10, 8)))
        row = sqlite_store._conn.execute("SELECT category FROM hr").fetchone()
        assert row["category"] == "Tachycardia"


class TestParseEntry:
    def test_hr_entry(self):
        subject, reading = parse_entry(
            {"user_id": "3", "type": "hr", "bpm": 72, "timestamp": "2024-03-10T08:00:00"}
        )
        assert subject == 3
        assert reading == Reading(72.0, datetime(2024, 3, 10, 8))

    def test_type_defaults_to_hr(self):
        _, reading = parse_entry({"user_id": 1, "bpm": 60, "timestamp": "2024-03-10T08:00:00"})
        assert isinstance(reading, Reading)

    def test_bp_entry(self):
        _, reading = parse_entry({
            "user_id": 1, "type": "bp", "systolic": 120, "diastolic": 80,
            "timestamp": "2024-03-10T08:00:00",
        })
        assert reading == BPReading(120.0, 80.0, datetime(2024, 3, 10, 8))

    @pytest.mark.parametrize(
        "entry",
        [
            {"type": "hr", "bpm": 72, "timestamp": "2024-03-10T08:00:00"},
            {"user_id": 1, "type": "hr", "timestamp": "2024-03-10T08:00:00"},
            {"user_id": 1, "type": "hr", "bpm": "fast", "timestamp": "2024-03-10T08:00:00"},
            {"user_id": 1, "type": "hr", "bpm": 72, "timestamp": "not a time"},
            {"user_id": 1, "type": "weight", "kg": 70, "timestamp": "2024-03-10T08:00:00"},
            ["not", "a", "dict"],
        ],
    )
    def test_malformed(self, entry):
        with pytest.raises(InvalidInputError):
            parse_entry(entry)


class TestLoadJSONL:
    def test_imports_and_skips(self, tmp_path, memory_store):
        path = write_jsonl(tmp_path / "log.jsonl", [
            {"user_id": 1, "type": "hr", "bpm": 72, "timestamp": "2024-03-10T08:00:00"},
            "",
            "{not json",
            {"user_id": 1, "type": "bp", "systolic": 118, "diastolic": 76,
             "timestamp": "2024-03-10T08:05:00"},
            {"user_id": 1, "type": "hr", "timestamp": "2024-03-10T08:10:00"},
        ])
        imported, skipped = load_jsonl(path, memory_store)
        assert (imported, skipped) == (2, 2)
        assert [r.value for r in memory_store.fetch_recent_readings(1, 10)] == [72.0]
        assert memory_store.fetch_latest_bp(1).systolic == 118.0

    def test_into_sqlite(self, tmp_path, sqlite_store):
        path = write_jsonl(tmp_path / "log.jsonl", [
            {"user_id": 2, "bpm": v, "timestamp": f"2024-03-10T08:{i:02d}:00"}
            for i, v in enumerate([70, 71, 72])
        ])
        assert load_jsonl(path, sqlite_store) == (3, 0)
        rows = sqlite_store.fetch_readings(2, date(2024, 3, 10), date(2024, 3, 10))
        assert [r.value for r in rows] == [70.0, 71.0, 72.0]
