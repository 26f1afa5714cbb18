"""Shared fixtures and helpers for the vitalscore test suite."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

from vitalscore.config import SystemDefaults
from vitalscore.samples import (
    BiometricSample,
    InMemorySampleProvider,
    SampleKind,
    SleepStage,
    Workout,
)

DAY = date(2024, 3, 5)


# ---------------------------------------------------------------------------
# Sample-building helpers
# ---------------------------------------------------------------------------


def at(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    """A naive timestamp on *day*."""
    return datetime(day.year, day.month, day.day, hour, minute)


def make_sample(
    start: datetime,
    quantity: float,
    kind: SampleKind = SampleKind.HEART_RATE,
    seconds: float = 0.0,
) -> BiometricSample:
    return BiometricSample(
        start=start,
        end=start + timedelta(seconds=seconds),
        quantity=quantity,
        kind=kind,
    )


def hr_series(
    start: datetime,
    values: list[float],
    step_min: float = 1.0,
) -> list[BiometricSample]:
    """Heart rate readings every *step_min* minutes, each lasting one step."""
    step = timedelta(minutes=step_min)
    return [
        BiometricSample(start=start + i * step, end=start + (i + 1) * step, quantity=v)
        for i, v in enumerate(values)
    ]


def hrv(start: datetime, ms: float) -> BiometricSample:
    return make_sample(start, ms, SampleKind.HRV_SDNN)


def rhr(start: datetime, bpm: float) -> BiometricSample:
    return make_sample(start, bpm, SampleKind.RESTING_HEART_RATE)


def stage(start: datetime, end: datetime, value: SleepStage) -> BiometricSample:
    return BiometricSample(start=start, end=end, quantity=float(value), kind=SampleKind.SLEEP_STAGE)


def night(
    bed: datetime,
    asleep_hours: float,
    awake_minutes: float = 0.0,
) -> list[BiometricSample]:
    """Core sleep from *bed*, followed by an optional awake block."""
    wake = bed + timedelta(hours=asleep_hours)
    samples = [stage(bed, wake, SleepStage.ASLEEP_CORE)]
    if awake_minutes:
        samples.append(stage(wake, wake + timedelta(minutes=awake_minutes), SleepStage.AWAKE))
    return samples


def strength_workout(start: datetime, minutes: float = 45.0, **loads) -> Workout:
    return Workout(
        activity_type="traditional_strength_training",
        start=start,
        end=start + timedelta(minutes=minutes),
        **loads,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def defaults() -> SystemDefaults:
    return SystemDefaults()


@pytest.fixture
def day_provider() -> InMemorySampleProvider:
    """Two weeks of HRV/RHR history, last night's sleep and a training day."""
    samples: list[BiometricSample] = []
    for back in range(1, 15):
        d = DAY - timedelta(days=back)
        samples.append(hrv(at(7, day=d), 42.0 + back % 3))
        samples.append(rhr(at(7, day=d), 58.0 + back % 2))
        samples.extend(hr_series(at(12, day=d), [75.0] * 30, step_min=2.0))

    samples.extend(night(at(23, day=DAY - timedelta(days=1)), 7.5, awake_minutes=20))
    samples.append(hrv(at(6), 44.0))
    samples.append(rhr(at(8), 57.0))
    samples.append(make_sample(at(3), 14.5, SampleKind.RESPIRATORY_RATE))

    samples.extend(hr_series(at(9), [62.0, 64.0, 61.0, 63.0] * 15))
    samples.extend(hr_series(at(17), [150.0] * 20 + [172.0] * 20))
    samples.extend(hr_series(at(21), [66.0] * 30))

    workouts = [
        strength_workout(at(18), minutes=40.0, total_energy_kcal=300.0),
        Workout(activity_type="running", start=at(17), end=at(17, 40), total_energy_kcal=450.0),
    ]
    return InMemorySampleProvider(samples, workouts)


def write_export(path: Path, provider_data: dict) -> Path:
    with open(path, "w") as f:
        json.dump(provider_data, f)
    return path
