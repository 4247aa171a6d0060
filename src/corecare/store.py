"""Data access for heart-rate and blood-pressure readings.

Analytics never open a connection themselves; a ``ReadingStore`` is passed
into every pipeline call.  Two implementations ship here: an in-memory
store (tests, JSONL replays) and a SQLite store.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import replace
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Protocol

from corecare.errors import InvalidInputError
from corecare.models import BPReading, Reading, heart_rate_category, naive_utc

logger = logging.getLogger(__name__)


class ReadingStore(Protocol):
    def fetch_readings(self, subject_id: int, date_from: date, date_to: date) -> list[Reading]:
        """Readings on ``date_from..date_to`` (inclusive), oldest first."""
        ...

    def fetch_bp_readings(
        self, subject_id: int, date_from: date, date_to: date
    ) -> list[BPReading]:
        """BP readings on ``date_from..date_to`` (inclusive), oldest first."""
        ...

    def fetch_recent_readings(self, subject_id: int, limit: int) -> list[Reading]:
        """Up to ``limit`` readings, most recent first."""
        ...

    def fetch_latest_bp(self, subject_id: int) -> BPReading | None:
        ...


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO timestamp.  Aware values are converted to naive UTC."""
    if isinstance(value, datetime):
        ts = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        ts = datetime.fromisoformat(text)
    return naive_utc(ts)


def _on_days(ts: datetime, date_from: date, date_to: date) -> bool:
    return date_from <= ts.date() <= date_to


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class MemoryStore:
    """Readings held in process memory, keyed by subject."""

    def __init__(self) -> None:
        self._hr: dict[int, list[Reading]] = {}
        self._bp: dict[int, list[BPReading]] = {}

    def add_reading(self, subject_id: int, reading: Reading) -> None:
        reading = replace(reading, timestamp=naive_utc(reading.timestamp))
        self._hr.setdefault(subject_id, []).append(reading)

    def add_bp_reading(self, subject_id: int, reading: BPReading) -> None:
        reading = replace(reading, timestamp=naive_utc(reading.timestamp))
        self._bp.setdefault(subject_id, []).append(reading)

    def fetch_readings(self, subject_id: int, date_from: date, date_to: date) -> list[Reading]:
        rows = [
            r for r in self._hr.get(subject_id, []) if _on_days(r.timestamp, date_from, date_to)
        ]
        return sorted(rows, key=lambda r: r.timestamp)

    def fetch_bp_readings(
        self, subject_id: int, date_from: date, date_to: date
    ) -> list[BPReading]:
        rows = [
            r for r in self._bp.get(subject_id, []) if _on_days(r.timestamp, date_from, date_to)
        ]
        return sorted(rows, key=lambda r: r.timestamp)

    def fetch_recent_readings(self, subject_id: int, limit: int) -> list[Reading]:
        rows = sorted(self._hr.get(subject_id, []), key=lambda r: r.timestamp, reverse=True)
        return rows[:limit]

    def fetch_latest_bp(self, subject_id: int) -> BPReading | None:
        rows = self._bp.get(subject_id, [])
        if not rows:
            return None
        return max(rows, key=lambda r: r.timestamp)


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------

SCHEMA = """
CREATE TABLE IF NOT EXISTS hr (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    bpm REAL NOT NULL,
    category TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_hr_user_time ON hr (user_id, created_at);

CREATE TABLE IF NOT EXISTS bp (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    systolic REAL NOT NULL,
    diastolic REAL NOT NULL,
    recorded_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_bp_user_time ON bp (user_id, recorded_at);
"""


def _ts_text(ts: datetime) -> str:
    return naive_utc(ts).isoformat(sep=" ", timespec="seconds")


def _day_bounds(date_from: date, date_to: date) -> tuple[str, str]:
    """Half-open text bounds covering whole days."""
    return date_from.isoformat(), (date_to + timedelta(days=1)).isoformat()


class SQLiteStore:
    """Readings persisted in a SQLite database with a fixed schema."""

    def __init__(self, path: str | Path = ":memory:") -> None:
        self.path = str(path)
        self._conn = sqlite3.connect(self.path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(SCHEMA)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> SQLiteStore:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # -- writes -------------------------------------------------------------

    def add_reading(self, subject_id: int, reading: Reading) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT INTO hr (user_id, bpm, category, created_at) VALUES (?, ?, ?, ?)",
                (
                    subject_id,
                    float(reading.value),
                    heart_rate_category(reading.value),
                    _ts_text(reading.timestamp),
                ),
            )
        logger.info("Stored HR reading for subject %d: %s", subject_id, reading)

    def add_bp_reading(self, subject_id: int, reading: BPReading) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT INTO bp (user_id, systolic, diastolic, recorded_at) VALUES (?, ?, ?, ?)",
                (
                    subject_id,
                    float(reading.systolic),
                    float(reading.diastolic),
                    _ts_text(reading.timestamp),
                ),
            )
        logger.info("Stored BP reading for subject %d: %s", subject_id, reading)

    # -- reads --------------------------------------------------------------

    def fetch_readings(self, subject_id: int, date_from: date, date_to: date) -> list[Reading]:
        lo, hi = _day_bounds(date_from, date_to)
        cur = self._conn.execute(
            "SELECT bpm, created_at FROM hr "
            "WHERE user_id = ? AND created_at >= ? AND created_at < ? "
            "ORDER BY created_at, id",
            (subject_id, lo, hi),
        )
        return [Reading(row["bpm"], parse_timestamp(row["created_at"])) for row in cur]

    def fetch_bp_readings(
        self, subject_id: int, date_from: date, date_to: date
    ) -> list[BPReading]:
        lo, hi = _day_bounds(date_from, date_to)
        cur = self._conn.execute(
            "SELECT systolic, diastolic, recorded_at FROM bp "
            "WHERE user_id = ? AND recorded_at >= ? AND recorded_at < ? "
            "ORDER BY recorded_at, id",
            (subject_id, lo, hi),
        )
        return [
            BPReading(row["systolic"], row["diastolic"], parse_timestamp(row["recorded_at"]))
            for row in cur
        ]

    def fetch_recent_readings(self, subject_id: int, limit: int) -> list[Reading]:
        cur = self._conn.execute(
            "SELECT bpm, created_at FROM hr WHERE user_id = ? "
            "ORDER BY created_at DESC, id DESC LIMIT ?",
            (subject_id, limit),
        )
        return [Reading(row["bpm"], parse_timestamp(row["created_at"])) for row in cur]

    def fetch_latest_bp(self, subject_id: int) -> BPReading | None:
        row = self._conn.execute(
            "SELECT systolic, diastolic, recorded_at FROM bp WHERE user_id = ? "
            "ORDER BY recorded_at DESC, id DESC LIMIT 1",
            (subject_id,),
        ).fetchone()
        if row is None:
            return None
        return BPReading(row["systolic"], row["diastolic"], parse_timestamp(row["recorded_at"]))


# ---------------------------------------------------------------------------
# JSONL import
# ---------------------------------------------------------------------------


def parse_entry(entry: dict) -> tuple[int, Reading | BPReading]:
    """Turn one JSONL log entry into ``(subject_id, reading)``.

    Entries look like ``{"user_id": 1, "type": "hr", "bpm": 72,
    "timestamp": "..."}`` or ``{"user_id": 1, "type": "bp", "systolic":
    120, "diastolic": 80, "timestamp": "..."}``.

    Raises:
        InvalidInputError: on a missing or malformed field.
    """
    try:
        subject_id = int(entry["user_id"])
        ts = parse_timestamp(entry["timestamp"])
        kind = entry.get("type", "hr")
        if kind == "hr":
            return subject_id, Reading(float(entry["bpm"]), ts)
        if kind == "bp":
            return subject_id, BPReading(float(entry["systolic"]), float(entry["diastolic"]), ts)
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidInputError(f"Malformed reading entry: {e}") from e
    raise InvalidInputError(f"Unknown reading type: {kind!r}")


def load_jsonl(path: str | Path, store: MemoryStore | SQLiteStore) -> tuple[int, int]:
    """Load a .jsonl reading log into ``store``.

    Blank lines are ignored; invalid lines are logged and skipped.

    Returns:
        ``(imported, skipped)`` line counts.
    """
    path = Path(path)
    imported = 0
    skipped = 0

    with open(path) as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                subject_id, reading = parse_entry(json.loads(line))
            except (json.JSONDecodeError, InvalidInputError) as e:
                logger.warning("%s:%d skipped: %s", path.name, line_num, e)
                skipped += 1
                continue

            if isinstance(reading, BPReading):
                store.add_bp_reading(subject_id, reading)
            else:
                store.add_reading(subject_id, reading)
            imported += 1

    logger.info("Imported %d readings from %s (%d skipped)", imported, path.name, skipped)
    return imported, skipped
