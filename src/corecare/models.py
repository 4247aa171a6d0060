"""Reading records as handed over by the data-access layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class Reading:
    """A single heart-rate sample."""

    value: float  # bpm
    timestamp: datetime

    def __repr__(self) -> str:
        return f"Reading({self.value:g}bpm @ {self.timestamp.isoformat()})"


@dataclass(frozen=True)
class BPReading:
    """A single blood-pressure measurement (mmHg)."""

    systolic: float
    diastolic: float
    timestamp: datetime

    def __repr__(self) -> str:
        return (
            f"BPReading({self.systolic:g}/{self.diastolic:g} "
            f"@ {self.timestamp.isoformat()})"
        )


def heart_rate_category(bpm: float | None) -> str | None:
    """Label a BPM value: Bradycardia, Normal, Elevated or Tachycardia."""
    if bpm is None:
        return None
    if bpm < 60:
        return "Bradycardia"
    if bpm <= 100:
        return "Normal"
    if bpm <= 120:
        return "Elevated"
    return "Tachycardia"


def naive_utc(ts: datetime) -> datetime:
    """Convert an aware timestamp to naive UTC; naive ones pass through."""
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts
