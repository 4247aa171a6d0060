"""Sample filtering and heart-rate features.

This is the shared foundation for the other analytics modules.  It provides:
  - Plausibility-band filtering of raw readings
  - BPM to RR-interval conversion
  - HRV (RMSSD) estimated from a chronological BPM series
  - Resting heart rate from the lower tail of a window
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np


# ---------------------------------------------------------------------------
# Plausibility bands (inclusive)
# ---------------------------------------------------------------------------

HR_BAND = (40.0, 200.0)
RESTING_HR_BAND = (40.0, 100.0)
SYSTOLIC_BAND = (70.0, 250.0)
DIASTOLIC_BAND = (40.0, 150.0)

# RMSSD above this is clamped, not rejected
HRV_CEILING_MS = 150.0

# Fraction of the sorted window averaged for resting HR
RESTING_PERCENTILE = 0.2


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round with ties away from zero (``round`` rounds ties to even)."""
    factor = 10.0 ** ndigits
    # pre-round so 80.15 * 10 == 801.4999... still rounds up
    scaled = round(abs(value) * factor, 9)
    return math.copysign(math.floor(scaled + 0.5) / factor, value)


def filter_band(
    values: Iterable[float | None],
    band: tuple[float, float],
) -> list[float]:
    """Keep values inside the inclusive ``band``, preserving order.

    None, NaN and infinite values are always dropped.
    """
    lo, hi = band
    kept: list[float] = []
    for v in values:
        if v is None:
            continue
        v = float(v)
        if math.isfinite(v) and lo <= v <= hi:
            kept.append(v)
    return kept


def bpm_to_rr(bpm_values: Sequence[float]) -> np.ndarray:
    """RR intervals (ms) for each BPM value: ``60000 / bpm``."""
    arr = np.asarray(bpm_values, dtype=np.float64)
    return 60000.0 / arr


# ---------------------------------------------------------------------------
# HRV
# ---------------------------------------------------------------------------


def compute_rmssd(rr_intervals: Sequence[float]) -> float | None:
    """Root mean square of successive RR-interval differences (ms).

    Returns None if fewer than 2 intervals are provided.
    """
    if len(rr_intervals) < 2:
        return None
    arr = np.asarray(rr_intervals, dtype=np.float64)
    diffs = np.diff(arr)
    return float(np.sqrt(np.mean(diffs ** 2)))


def hrv_from_bpm(bpm_values: Sequence[float | None]) -> float | None:
    """RMSSD-based HRV from a chronological BPM series.

    Samples outside 40-200 bpm are dropped first.  The result is capped at
    150 ms and rounded to 2 decimals; None when fewer than 2 samples remain.
    """
    filtered = filter_band(bpm_values, HR_BAND)
    if len(filtered) < 2:
        return None
    rmssd = compute_rmssd(bpm_to_rr(filtered))
    if rmssd is None:
        return None
    return round_half_up(min(rmssd, HRV_CEILING_MS), 2)


# ---------------------------------------------------------------------------
# Resting HR
# ---------------------------------------------------------------------------


def resting_hr(bpm_values: Sequence[float | None]) -> float | None:
    """Resting HR as the mean of the lowest 20% of in-band samples.

    Only 40-100 bpm samples are candidates.  At least one sample is always
    averaged.  Returns None when nothing is in band.
    """
    filtered = filter_band(bpm_values, RESTING_HR_BAND)
    if not filtered:
        return None
    arr = np.sort(np.asarray(filtered, dtype=np.float64))
    n = max(1, int(len(arr) * RESTING_PERCENTILE))
    return round_half_up(float(np.mean(arr[:n])), 1)


def mean_or_none(values: Sequence[float], ndigits: int = 1) -> float | None:
    """Rounded mean, or None for an empty sequence."""
    if len(values) == 0:
        return None
    return round_half_up(float(np.mean(np.asarray(values, dtype=np.float64))), ndigits)
