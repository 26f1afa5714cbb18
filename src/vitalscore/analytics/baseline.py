"""Rolling personal baselines for HRV and resting heart rate.

A baseline is the mean of per-day means over a trailing window (14 days
by default).  Averaging per-day means rather than the raw samples keeps a
day with many readings (e.g. a day with a long workout recorded at high
frequency) from dominating the baseline.

When the window holds too few samples the configured population default
is returned unchanged, so callers always get a usable number.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

import numpy as np

from vitalscore.analytics.timeutils import bucket_by, round_to, trailing_window
from vitalscore.config import SystemDefaults
from vitalscore.samples import BiometricSample

logger = logging.getLogger(__name__)

# Fraction of each day's lowest HR readings treated as "resting"
RESTING_FRACTION = 0.2


@dataclass(frozen=True)
class DailyBaseline:
    """Personal reference values used by stress and recovery scoring."""

    hrv_mean: float  # ms SDNN
    rhr_mean: float  # bpm

    def __repr__(self) -> str:
        return f"DailyBaseline(hrv={self.hrv_mean:.1f}ms, rhr={self.rhr_mean:.1f}bpm)"


def _in_window(
    samples: Sequence[BiometricSample],
    end: datetime | None,
    days: int,
) -> list[BiometricSample]:
    if end is None:
        return list(samples)
    start, stop = trailing_window(end, days)
    return [s for s in samples if start <= s.start < stop]


def baseline_mean(
    samples: Sequence[BiometricSample],
    default: float,
    end: datetime | None = None,
    days: int = 14,
    min_samples: int = 1,
) -> float:
    """Mean of per-day means over the trailing window.

    Args:
        samples: Samples of a single kind (HRV or resting HR).
        default: Value returned when data is too sparse.
        end: End of the trailing window; ``None`` uses every sample.
        days: Window length in days.
        min_samples: Minimum number of samples in the window.

    Returns:
        The baseline value, or exactly *default* when fewer than
        *min_samples* samples fall inside the window.
    """
    window = [
        s for s in _in_window(samples, end, days)
        if isinstance(s.quantity, (int, float)) and math.isfinite(s.quantity)
    ]
    if len(window) == 0 or len(window) < min_samples:
        logger.debug(
            "Baseline fallback: %d samples in %d-day window (need %d), using %.1f",
            len(window), days, min_samples, default,
        )
        return default

    daily_means = [
        float(np.mean([s.quantity for s in day_samples]))
        for day_samples in bucket_by(window, "day").values()
    ]
    return float(np.mean(daily_means))


def daily_baseline(
    hrv_samples: Sequence[BiometricSample],
    rhr_samples: Sequence[BiometricSample],
    end: datetime | None = None,
    defaults: SystemDefaults | None = None,
) -> DailyBaseline:
    """Compute the HRV and resting-HR baselines in one call."""
    cfg = defaults or SystemDefaults()
    hrv = baseline_mean(
        hrv_samples, cfg.hrv_baseline, end,
        days=cfg.baseline_days, min_samples=cfg.baseline_min_samples,
    )
    rhr = baseline_mean(
        rhr_samples, cfg.resting_heart_rate, end,
        days=cfg.baseline_days, min_samples=cfg.baseline_min_samples,
    )
    return DailyBaseline(hrv_mean=hrv, rhr_mean=rhr)


def estimate_resting_hr(
    hr_samples: Sequence[BiometricSample],
    fraction: float = RESTING_FRACTION,
) -> float | None:
    """Estimate resting HR from raw heart-rate readings.

    Takes the lowest *fraction* of each day's readings (at least one per
    day) and averages them across all days.

    Returns:
        Resting HR in bpm, or None if there are no readings.
    """
    if len(hr_samples) == 0:
        return None

    restful: list[float] = []
    for day_samples in bucket_by(hr_samples, "day").values():
        values = sorted(s.quantity for s in day_samples)
        keep = max(1, int(math.floor(len(values) * fraction)))
        restful.extend(values[:keep])

    return round_to(float(np.mean(restful)), 1)
