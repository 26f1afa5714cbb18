"""Stress inference from heart rate and HRV deviation against baseline.

A *stress moment* is a 0-3 value for one clock hour.  Elevated heart rate
and suppressed HRV (relative to the user's baselines) raise it; the result
is then scaled by a time-of-day multiplier, since the same deviation means
more at 3 am than at 5 pm.

HRV is sampled intermittently while HR is near-continuous, so hours
without HRV use a banded estimate derived from the HR elevation alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Sequence

from vitalscore.analytics.baseline import DailyBaseline
from vitalscore.analytics.timeutils import (
    bucket_by,
    clamp,
    day_bounds,
    mean,
    overlaps_intervals,
    round_to,
)
from vitalscore.config import SystemDefaults
from vitalscore.samples import BiometricSample

logger = logging.getLogger(__name__)

STRESS_MAX = 3.0

# (start_hour, end_hour, multiplier); first match wins, hours not listed get 1.0
TIME_OF_DAY_MULTIPLIERS = [
    (22, 24, 1.4),
    (0, 6, 1.4),
    (6, 9, 0.8),
    (13, 14, 0.7),
    (14, 15, 0.8),
    (15, 16, 0.9),
    (16, 19, 1.2),
    (19, 22, 1.1),
]

# HR elevation ratio -> estimated HRV stress when HRV is missing
ELEVATION_BANDS = [
    (1.00, 0.9),
    (0.75, 0.75),
    (0.50, 0.6),
    (0.30, 0.45),
    (0.20, 0.3),
    (0.10, 0.2),
]
ELEVATION_FLOOR = 0.1

# RHR/HRV ratio mapped linearly onto 0-100
STRESS_RATIO_LOW = 0.5
STRESS_RATIO_HIGH = 3.0

STRESS_LABELS = [(20, "Low"), (40, "Mild"), (60, "Moderate"), (80, "High")]


@dataclass(frozen=True)
class HourlyHeartData:
    """Mean HR (and HRV, if any was recorded) for one clock hour."""

    hour_start: datetime
    heart_rate: float
    hrv: float | None = None


@dataclass(frozen=True)
class StressMoment:
    hour_start: datetime
    stress: float  # 0-3

    def to_dict(self) -> dict:
        return {"hour_start": self.hour_start.isoformat(), "stress": self.stress}


@dataclass(frozen=True)
class StressDayMetrics:
    """A day's stress aggregates and its hourly series."""

    baseline_hrv: float
    baseline_rhr: float
    total_day_stress: float
    sleep_stress: float
    non_activity_stress: float
    hourly_stress: list[StressMoment] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "baseline_hrv": self.baseline_hrv,
            "baseline_rhr": self.baseline_rhr,
            "total_day_stress": self.total_day_stress,
            "sleep_stress": self.sleep_stress,
            "non_activity_stress": self.non_activity_stress,
            "hourly_stress": [m.to_dict() for m in self.hourly_stress],
        }

    def __repr__(self) -> str:
        return (
            f"StressDayMetrics(day={self.total_day_stress:.2f}/3, "
            f"sleep={self.sleep_stress:.2f}, "
            f"non_activity={self.non_activity_stress:.2f}, "
            f"hours={len(self.hourly_stress)})"
        )


# ---------------------------------------------------------------------------
# Single moment
# ---------------------------------------------------------------------------


def time_of_day_multiplier(hour: int) -> float:
    for start, end, multiplier in TIME_OF_DAY_MULTIPLIERS:
        if start <= hour < end:
            return multiplier
    return 1.0


def _estimated_hrv_stress(elevation: float) -> float:
    for floor, stress in ELEVATION_BANDS:
        if elevation >= floor:
            return stress
    return ELEVATION_FLOOR


def stress_moment(
    heart_rate: float,
    hrv: float | None,
    baseline_rhr: float,
    baseline_hrv: float,
    hour: int,
    defaults: SystemDefaults | None = None,
) -> float:
    """Instantaneous stress (0-3) for one hour.

    Args:
        heart_rate: Mean HR for the hour (bpm).
        hrv: Mean HRV for the hour (ms), or None if none was recorded.
        baseline_rhr: Resting HR baseline (bpm).
        baseline_hrv: HRV baseline (ms).
        hour: Hour of day (0-23) for the time-of-day multiplier.
        defaults: System defaults (HR sensitivity, fallback baselines).

    Returns:
        Stress in [0, 3], two decimals.
    """
    cfg = defaults or SystemDefaults()
    if baseline_rhr <= 0:
        baseline_rhr = cfg.resting_heart_rate
    if baseline_hrv <= 0:
        baseline_hrv = cfg.hrv_baseline

    elevation = (heart_rate - baseline_rhr) / baseline_rhr
    hr_stress = clamp(elevation / cfg.stress_hr_sensitivity, 0.0, 1.0)

    if hrv is not None and hrv > 0:
        hrv_stress = clamp(1.0 - hrv / baseline_hrv, 0.0, 1.0)
        combined = 0.5 * hr_stress + 0.5 * hrv_stress
    else:
        combined = 0.7 * hr_stress + 0.3 * _estimated_hrv_stress(elevation)

    stress = combined * STRESS_MAX * time_of_day_multiplier(hour)
    return round_to(clamp(stress, 0.0, STRESS_MAX), 2)


def ratio_stress_level(resting_hr: float | None, hrv: float | None) -> float:
    """0-100 stress level from the RHR/HRV ratio.

    A ratio of 0.5 maps to 0 and 3.0 to 100.  Missing or zero inputs
    give 0.
    """
    if not resting_hr or not hrv:
        return 0.0
    ratio = resting_hr / hrv
    score = (ratio - STRESS_RATIO_LOW) / (STRESS_RATIO_HIGH - STRESS_RATIO_LOW) * 100.0
    return clamp(round_to(score, 1), 0.0, 100.0)


def stress_label(level: float) -> str:
    """Coarse label for a 0-100 stress level."""
    for upper, label in STRESS_LABELS:
        if level < upper:
            return label
    return "Very High"


# ---------------------------------------------------------------------------
# Hourly series and day aggregates
# ---------------------------------------------------------------------------


def hourly_heart_data(
    hr_samples: Sequence[BiometricSample],
    hrv_samples: Sequence[BiometricSample] = (),
    day: date | None = None,
) -> list[HourlyHeartData]:
    """Per-hour mean HR and HRV, for hours that have HR readings.

    With *day* given, only samples starting within that calendar day are
    used.
    """
    if len(hr_samples) == 0:
        return []
    if day is not None:
        start, end = day_bounds(day, hr_samples[0].start.tzinfo)
        hr_samples = [s for s in hr_samples if start <= s.start < end]
        hrv_samples = [s for s in hrv_samples if start <= s.start < end]

    hrv_by_hour = {
        hour: mean(s.quantity for s in samples)
        for hour, samples in bucket_by(hrv_samples, "hour").items()
    }
    return [
        HourlyHeartData(
            hour_start=hour,
            heart_rate=mean(s.quantity for s in samples),
            hrv=hrv_by_hour.get(hour),
        )
        for hour, samples in bucket_by(hr_samples, "hour").items()
    ]


def aggregate_stress(
    moments: Sequence[StressMoment],
    baseline: DailyBaseline,
    sleep_intervals: Sequence[tuple[datetime, datetime]] = (),
    workout_intervals: Sequence[tuple[datetime, datetime]] = (),
) -> StressDayMetrics:
    """Roll hourly stress moments up into day, sleep and non-activity means.

    An hour belongs to an interval if the two overlap.  Empty groups
    average to 0.
    """
    hour = timedelta(hours=1)
    in_sleep = [overlaps_intervals(m.hour_start, m.hour_start + hour, sleep_intervals) for m in moments]
    in_workout = [overlaps_intervals(m.hour_start, m.hour_start + hour, workout_intervals) for m in moments]

    sleep_values = [m.stress for m, s in zip(moments, in_sleep) if s]
    quiet_values = [
        m.stress for m, s, w in zip(moments, in_sleep, in_workout) if not s and not w
    ]

    return StressDayMetrics(
        baseline_hrv=round_to(baseline.hrv_mean, 1),
        baseline_rhr=round_to(baseline.rhr_mean, 1),
        total_day_stress=round_to(mean(m.stress for m in moments), 2),
        sleep_stress=round_to(mean(sleep_values), 2),
        non_activity_stress=round_to(mean(quiet_values), 2),
        hourly_stress=list(moments),
    )


def stress_day_metrics(
    hourly: Sequence[HourlyHeartData],
    baseline: DailyBaseline,
    sleep_intervals: Sequence[tuple[datetime, datetime]] = (),
    workout_intervals: Sequence[tuple[datetime, datetime]] = (),
    defaults: SystemDefaults | None = None,
) -> StressDayMetrics:
    """Compute a stress moment per hour and aggregate them for the day."""
    moments = [
        StressMoment(
            hour_start=h.hour_start,
            stress=stress_moment(
                h.heart_rate, h.hrv,
                baseline.rhr_mean, baseline.hrv_mean,
                h.hour_start.hour, defaults,
            ),
        )
        for h in sorted(hourly, key=lambda h: h.hour_start)
    ]
    if not moments:
        logger.debug("No hourly heart data, stress aggregates default to 0")
    return aggregate_stress(moments, baseline, sleep_intervals, workout_intervals)
