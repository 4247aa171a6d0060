"""Shared fixtures and helpers for the corecare test suite."""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from corecare.models import BPReading, Reading
from corecare.store import MemoryStore, SQLiteStore


# ---------------------------------------------------------------------------
# Reading builders
# ---------------------------------------------------------------------------


def make_readings(
    values: list[float],
    start: datetime = datetime(2024, 3, 10, 8, 0, 0),
    step_min: float = 10.0,
) -> list[Reading]:
    """HR readings spaced ``step_min`` minutes apart, oldest first."""
    return [
        Reading(v, start + timedelta(minutes=i * step_min))
        for i, v in enumerate(values)
    ]


def make_bp(
    systolic: float,
    diastolic: float,
    at: datetime = datetime(2024, 3, 10, 9, 0, 0),
) -> BPReading:
    return BPReading(systolic, diastolic, at)


def fill_store(store, subject_id: int, readings: list[Reading], bp: list[BPReading] = ()) -> None:
    for r in readings:
        store.add_reading(subject_id, r)
    for r in bp:
        store.add_bp_reading(subject_id, r)


# ---------------------------------------------------------------------------
# JSONL log helpers
# ---------------------------------------------------------------------------


def write_jsonl(path: Path, entries: list) -> Path:
    """Write entries (dicts or raw strings) as JSONL to the given path."""
    with open(path, "w") as f:
        for entry in entries:
            line = entry if isinstance(entry, str) else json.dumps(entry)
            f.write(line + "\n")
    return path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def sqlite_store(tmp_path):
    store = SQLiteStore(tmp_path / "corecare.db")
    yield store
    store.close()
