"""Strain / training load scoring (HR-zone load variant).

Time spent in each Karvonen heart rate zone is weighted by zone (1..5) to
give cardio points; strength workouts add muscle points.  The combined
load is mapped onto the 0-21 strain scale with the lower of a log curve
and a saturating exponential, so small loads rise quickly and large loads
approach 21 without exceeding it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Sequence, Union

import numpy as np

from vitalscore.analytics.timeutils import clamp, day_bounds, round_to, to_minutes
from vitalscore.analytics.zones import (
    ZONE_LABELS,
    ZoneThresholds,
    activity_threshold,
    zone_index,
    zone_thresholds,
)
from vitalscore.config import SystemDefaults
from vitalscore.samples import BiometricSample, Workout

logger = logging.getLogger(__name__)

# Whoop strain ceiling
STRAIN_MAX = 21.0

# Log-curve branch: ln(load + 1) * LOG_SCALE
LOG_SCALE = 3.2
# Exponential branch damping applied on top of strain_exp_scale_factor
EXP_DAMPING = 0.7


# ---------------------------------------------------------------------------
# Workout load (first available measure wins)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WeightLifted:
    total_weight: float


@dataclass(frozen=True)
class EnergyBurned:
    kcal: float


@dataclass(frozen=True)
class DurationOnly:
    minutes: float


WorkoutLoad = Union[WeightLifted, EnergyBurned, DurationOnly]


def workout_load(workout: Workout) -> WorkoutLoad | None:
    """Pick the load measure for a workout.

    Precedence: total weight lifted, then energy burned, then duration
    (recorded duration if present, else end - start).
    """
    if workout.total_weight_lifted is not None and workout.total_weight_lifted > 0:
        return WeightLifted(workout.total_weight_lifted)
    if workout.total_energy_kcal is not None and workout.total_energy_kcal > 0:
        return EnergyBurned(workout.total_energy_kcal)
    if workout.duration_seconds is not None and workout.duration_seconds > 0:
        return DurationOnly(workout.duration_seconds / 60.0)
    minutes = to_minutes(workout.end - workout.start)
    if minutes > 0:
        return DurationOnly(minutes)
    return None


def muscle_points(load: WorkoutLoad | None, defaults: SystemDefaults | None = None) -> float:
    cfg = defaults or SystemDefaults()
    if isinstance(load, WeightLifted):
        return load.total_weight
    if isinstance(load, EnergyBurned):
        return load.kcal * cfg.muscle_points_per_kcal
    if isinstance(load, DurationOnly):
        return load.minutes * cfg.muscle_points_per_minute
    return 0.0


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StrainBreakdown:
    """Strain score and breakdown."""

    cardio_points: float
    muscle_points: float
    total_load: float
    score: float  # 0-21
    zone_minutes: dict[str, float] = field(default_factory=dict)  # label -> minutes

    def to_dict(self) -> dict:
        return {
            "cardio_points": self.cardio_points,
            "muscle_points": self.muscle_points,
            "total_load": self.total_load,
            "score": self.score,
            "zone_minutes": dict(self.zone_minutes),
        }

    def __repr__(self) -> str:
        return (
            f"StrainBreakdown(score={self.score:.1f}/21, "
            f"cardio={self.cardio_points:.0f}, muscle={self.muscle_points:.0f})"
        )


def strain_from_load(load: float, defaults: SystemDefaults | None = None) -> float:
    """Map a training load onto the 0-21 strain scale (one decimal)."""
    cfg = defaults or SystemDefaults()
    if load <= 0:
        return 0.0
    log_branch = math.log(max(1.0, load + 1.0)) * LOG_SCALE
    exp_branch = STRAIN_MAX * (1.0 - math.exp(-cfg.strain_exp_scale_factor * load * EXP_DAMPING))
    return round_to(clamp(min(log_branch, exp_branch), 0.0, STRAIN_MAX), 1)


# ---------------------------------------------------------------------------
# Sample durations
# ---------------------------------------------------------------------------


def _sample_minutes(
    ordered: Sequence[BiometricSample],
    day_end: datetime | None,
    max_gap_minutes: float | None = None,
) -> list[float]:
    """Minutes each sample stands for: up to the next sample, or its own end.

    Clipped at *day_end*, and at *max_gap_minutes* when one is set.
    """
    minutes: list[float] = []
    for i, s in enumerate(ordered):
        stop = ordered[i + 1].start if i + 1 < len(ordered) else s.end
        if day_end is not None and stop > day_end:
            stop = day_end
        span = max(0.0, to_minutes(stop - s.start))
        if max_gap_minutes is not None:
            span = min(span, max_gap_minutes)
        minutes.append(span)
    return minutes


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def score_strain(
    hr_samples: Sequence[BiometricSample],
    workouts: Sequence[Workout] = (),
    resting_hr: float = 60.0,
    max_hr: float = 190.0,
    defaults: SystemDefaults | None = None,
    day: date | None = None,
    thresholds: ZoneThresholds | None = None,
) -> StrainBreakdown:
    """Compute the day's strain.

    Args:
        hr_samples: Heart rate samples for the day (any order).
        workouts: The day's workouts; only strength types add muscle points.
        resting_hr: Resting heart rate (bpm).
        max_hr: Max heart rate (bpm).
        defaults: System defaults (zone weights, muscle factors, k).
        day: Calendar day being scored; sample durations are clipped at
            its end.  ``None`` disables clipping.
        thresholds: Precomputed zones; computed from the samples if omitted.

    Returns:
        StrainBreakdown with the 0-21 score and zone minutes.
    """
    cfg = defaults or SystemDefaults()
    ordered = sorted(hr_samples, key=lambda s: s.start)
    hr_values = [s.quantity for s in ordered]

    if thresholds is None:
        thresholds = zone_thresholds(resting_hr, max_hr, hr_values, cfg)
    active_floor = activity_threshold(thresholds.resting_hr, thresholds.max_hr, cfg)

    day_end = None
    if day is not None:
        tz = ordered[0].start.tzinfo if ordered else None
        day_end = day_bounds(day, tz)[1]

    zone_mins = np.zeros(len(ZONE_LABELS), dtype=np.float64)
    for s, minutes in zip(ordered, _sample_minutes(ordered, day_end, cfg.max_sample_gap_minutes)):
        if s.quantity <= active_floor:
            continue
        idx = zone_index(s.quantity, thresholds)
        if idx is not None:
            zone_mins[idx] += minutes

    weights = np.asarray(cfg.heart_rate_zone_weights, dtype=np.float64)
    cardio = float(np.dot(zone_mins, weights[: len(zone_mins)]))

    muscle = 0.0
    for w in workouts:
        if not w.is_strength:
            continue
        load = workout_load(w)
        if load is None:
            logger.debug("Strength workout at %s has no usable load", w.start)
        muscle += muscle_points(load, cfg)

    total = cardio + muscle
    score = strain_from_load(total, cfg)
    logger.debug("Strain: cardio=%.1f muscle=%.1f load=%.1f -> %.1f", cardio, muscle, total, score)

    return StrainBreakdown(
        cardio_points=round_to(cardio, 2),
        muscle_points=round_to(muscle, 2),
        total_load=round_to(total, 2),
        score=score,
        zone_minutes={label: round_to(m, 1) for label, m in zip(ZONE_LABELS, zone_mins)},
    )
