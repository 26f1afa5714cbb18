"""Date ranges, duration conversions, normalization and bucketing.

This is the shared foundation for all analytics modules.  It provides:
  - Day / trailing-window / night-window boundaries
  - timedelta -> minutes / hours conversions
  - Clamped linear normalization onto 0-100
  - Grouping of samples by calendar day or clock hour
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Iterable, Sequence, TypeVar

import numpy as np

from vitalscore.samples import BiometricSample

T = TypeVar("T", bound=BiometricSample)


# ---------------------------------------------------------------------------
# Date ranges
# ---------------------------------------------------------------------------


def day_bounds(day: date, tzinfo=None) -> tuple[datetime, datetime]:
    """Return ``(start_of_day, start_of_next_day)`` for *day*."""
    start = datetime.combine(day, time.min, tzinfo=tzinfo)
    return start, start + timedelta(days=1)


def trailing_window(end: datetime, days: int) -> tuple[datetime, datetime]:
    """Return ``(end - days, end)``."""
    return end - timedelta(days=days), end


def night_window(day: date, tzinfo=None) -> tuple[datetime, datetime]:
    """The night ending on *day*: previous day 12:00 to *day* 12:00."""
    noon = datetime.combine(day, time(12, 0), tzinfo=tzinfo)
    return noon - timedelta(days=1), noon


def night_of(t: datetime) -> date:
    """Date of the night window that contains *t* (the morning's date)."""
    return (t + timedelta(hours=12)).date()


def hour_start(t: datetime) -> datetime:
    return t.replace(minute=0, second=0, microsecond=0)


# ---------------------------------------------------------------------------
# Conversions and scalar helpers
# ---------------------------------------------------------------------------


def to_minutes(delta: timedelta) -> float:
    return delta.total_seconds() / 60.0


def to_hours(delta: timedelta) -> float:
    return delta.total_seconds() / 3600.0


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def round_to(value: float, decimals: int) -> float:
    return round(float(value), decimals)


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean; 0.0 for an empty input."""
    arr = np.asarray(list(values), dtype=np.float64)
    if len(arr) == 0:
        return 0.0
    return float(np.mean(arr))


def normalize(value: float, lo: float, hi: float) -> float:
    """Map *value* from ``[lo, hi]`` onto ``[0, 100]``, clamped.

    A degenerate range (``hi == lo``) maps everything to 100.
    """
    if hi == lo:
        return 100.0
    return clamp((value - lo) / (hi - lo) * 100.0, 0.0, 100.0)


def invert(score: float) -> float:
    """Turn a "higher is worse" 0-100 score into "higher is better"."""
    return 100.0 - clamp(score, 0.0, 100.0)


# ---------------------------------------------------------------------------
# Bucketing
# ---------------------------------------------------------------------------


def bucket_by(samples: Sequence[T], by: str) -> dict[datetime | date, list[T]]:
    """Group samples by the calendar day or clock hour of their start time.

    Args:
        samples: Samples in any order.
        by: ``"day"`` (keys are ``date``) or ``"hour"`` (keys are the hour's
            start ``datetime``).

    Returns:
        Dict of bucket key -> samples, keys in ascending order.
    """
    if by not in ("day", "hour"):
        raise ValueError(f"unsupported bucket type: {by!r}")

    buckets: dict = defaultdict(list)
    for s in samples:
        key = s.start.date() if by == "day" else hour_start(s.start)
        buckets[key].append(s)
    return {k: buckets[k] for k in sorted(buckets)}


def is_in_intervals(t: datetime, intervals: Sequence[tuple[datetime, datetime]]) -> bool:
    """True if *t* falls in any half-open ``[start, end)`` interval."""
    return any(start <= t < end for start, end in intervals)


def overlaps_intervals(
    start: datetime,
    end: datetime,
    intervals: Sequence[tuple[datetime, datetime]],
) -> bool:
    """True if ``[start, end)`` overlaps any interval."""
    return any(start < iv_end and iv_start < end for iv_start, iv_end in intervals)
