"""Biometric sample records and the Sample Provider collaborator.

The analytics engine never performs I/O.  It consumes plain, immutable
sample records handed over by a *Sample Provider*: anything that can
answer "give me the heart-rate samples between A and B".  An in-memory
provider that loads a JSON export is included so the CLI can score a
day end to end.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, Sequence


class SampleKind(str, Enum):
    """Kind of physiological quantity carried by a sample."""

    HEART_RATE = "heart_rate"  # bpm
    HRV_SDNN = "hrv_sdnn"  # ms
    RESTING_HEART_RATE = "resting_heart_rate"  # bpm
    RESPIRATORY_RATE = "respiratory_rate"  # breaths/min
    BLOOD_OXYGEN = "blood_oxygen"  # fraction 0-1
    SLEEP_STAGE = "sleep_stage"  # SleepStage code


class SleepStage(int, Enum):
    """Sleep-analysis category values (HealthKit numbering)."""

    IN_BED = 0
    ASLEEP_UNSPECIFIED = 1
    AWAKE = 2
    ASLEEP_CORE = 3
    ASLEEP_DEEP = 4
    ASLEEP_REM = 5

    @property
    def is_asleep(self) -> bool:
        return self in ASLEEP_STAGES


ASLEEP_STAGES = frozenset({
    SleepStage.ASLEEP_UNSPECIFIED,
    SleepStage.ASLEEP_CORE,
    SleepStage.ASLEEP_DEEP,
    SleepStage.ASLEEP_REM,
})

# Workout activity types that count towards muscular load
STRENGTH_ACTIVITY_TYPES = frozenset({
    "functional_strength_training",
    "traditional_strength_training",
    "cross_training",
})


@dataclass(frozen=True)
class BiometricSample:
    """A single timestamped reading."""

    start: datetime
    end: datetime
    quantity: float
    kind: SampleKind = SampleKind.HEART_RATE

    @property
    def stage(self) -> SleepStage:
        """The sleep stage for SLEEP_STAGE samples."""
        return SleepStage(int(self.quantity))

    @property
    def duration_sec(self) -> float:
        return max(0.0, (self.end - self.start).total_seconds())


@dataclass(frozen=True)
class Workout:
    """A workout record as exported by the device platform."""

    activity_type: str
    start: datetime
    end: datetime
    total_energy_kcal: float | None = None
    duration_seconds: float | None = None
    total_weight_lifted: float | None = None

    @property
    def is_strength(self) -> bool:
        return self.activity_type in STRENGTH_ACTIVITY_TYPES


# ---------------------------------------------------------------------------
# Parsing (outer entry point: malformed records raise here, nowhere else)
# ---------------------------------------------------------------------------


def _parse_time(value: Any, field_name: str) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be an ISO-8601 string, got {type(value).__name__}")
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _parse_optional_float(value: Any, field_name: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{field_name} must be a number, got {type(value).__name__}")
    return float(value)


def parse_sample(record: dict[str, Any]) -> BiometricSample:
    """Build a BiometricSample from a JSON-style dict.

    Sleep-stage quantities may be given by name (``"asleep_deep"``) or by
    numeric code.  ``end`` defaults to ``start`` for point readings.

    Raises:
        ValueError: unknown kind or sleep stage, or a missing field.
        TypeError: a field has the wrong type.
    """
    if not isinstance(record, dict):
        raise TypeError(f"sample record must be a dict, got {type(record).__name__}")
    try:
        kind = SampleKind(record["kind"])
        start = _parse_time(record["start"], "start")
        raw_quantity = record["quantity"]
    except KeyError as e:
        raise ValueError(f"sample record is missing field {e.args[0]!r}") from e

    end = _parse_time(record["end"], "end") if record.get("end") is not None else start

    if kind is SampleKind.SLEEP_STAGE and isinstance(raw_quantity, str):
        try:
            quantity = float(SleepStage[raw_quantity.upper()].value)
        except KeyError as e:
            raise ValueError(f"unknown sleep stage {raw_quantity!r}") from e
    else:
        parsed = _parse_optional_float(raw_quantity, "quantity")
        if parsed is None:
            raise ValueError("sample quantity must not be null")
        if kind is SampleKind.SLEEP_STAGE:
            SleepStage(int(parsed))  # raises ValueError for unknown codes
        quantity = parsed

    return BiometricSample(start=start, end=end, quantity=quantity, kind=kind)


def parse_workout(record: dict[str, Any]) -> Workout:
    """Build a Workout from a JSON-style dict."""
    if not isinstance(record, dict):
        raise TypeError(f"workout record must be a dict, got {type(record).__name__}")
    try:
        activity_type = str(record["activity_type"])
        start = _parse_time(record["start"], "start")
        end = _parse_time(record["end"], "end")
    except KeyError as e:
        raise ValueError(f"workout record is missing field {e.args[0]!r}") from e

    return Workout(
        activity_type=activity_type,
        start=start,
        end=end,
        total_energy_kcal=_parse_optional_float(record.get("total_energy_kcal"), "total_energy_kcal"),
        duration_seconds=_parse_optional_float(record.get("duration_seconds"), "duration_seconds"),
        total_weight_lifted=_parse_optional_float(record.get("total_weight_lifted"), "total_weight_lifted"),
    )


# ---------------------------------------------------------------------------
# Sample Provider
# ---------------------------------------------------------------------------


class SampleProvider(Protocol):
    """Supplies samples for a requested date range.

    Ranges are half-open ``[start, end)`` on the sample start time.
    Failures while fetching are the provider's concern; an empty list is
    always an acceptable answer.
    """

    def samples(self, kind: SampleKind, start: datetime, end: datetime) -> list[BiometricSample]:
        ...

    def workouts(self, start: datetime, end: datetime) -> list[Workout]:
        ...


class InMemorySampleProvider:
    """A SampleProvider backed by in-memory lists."""

    def __init__(
        self,
        samples: Sequence[BiometricSample] = (),
        workouts: Sequence[Workout] = (),
    ) -> None:
        self._samples = sorted(samples, key=lambda s: s.start)
        self._workouts = sorted(workouts, key=lambda w: w.start)

    def samples(self, kind: SampleKind, start: datetime, end: datetime) -> list[BiometricSample]:
        return [s for s in self._samples if s.kind is kind and start <= s.start < end]

    def workouts(self, start: datetime, end: datetime) -> list[Workout]:
        return [w for w in self._workouts if start <= w.start < end]

    @property
    def latest_timestamp(self) -> datetime | None:
        """Start time of the most recent sample or workout, if any."""
        candidates = []
        if self._samples:
            candidates.append(self._samples[-1].start)
        if self._workouts:
            candidates.append(self._workouts[-1].start)
        return max(candidates) if candidates else None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InMemorySampleProvider:
        """Build a provider from ``{"samples": [...], "workouts": [...]}``."""
        if not isinstance(data, dict):
            raise TypeError(f"export must be a JSON object, got {type(data).__name__}")
        samples = [parse_sample(r) for r in data.get("samples", [])]
        workouts = [parse_workout(r) for r in data.get("workouts", [])]
        return cls(samples, workouts)

    @classmethod
    def from_json(cls, path: str | Path) -> InMemorySampleProvider:
        """Load a JSON export file."""
        with open(path) as f:
            return cls.from_dict(json.load(f))

    def __repr__(self) -> str:
        return (
            f"InMemorySampleProvider(samples={len(self._samples)}, "
            f"workouts={len(self._workouts)})"
        )
