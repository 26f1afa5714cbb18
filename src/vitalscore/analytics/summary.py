"""Daily summary aggregator.

Pulls the four score records for one day, plus the latest blood-oxygen
reading, into a single DailySummary that is JSON-serializable.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from vitalscore.analytics.baseline import DailyBaseline
from vitalscore.analytics.recovery import RecoveryBreakdown
from vitalscore.analytics.sleep import SleepPerformance
from vitalscore.analytics.strain import StrainBreakdown
from vitalscore.analytics.stress import StressDayMetrics, stress_label


@dataclass(frozen=True)
class LatestReading:
    """Most recent reading of a spot-check metric, e.g. blood oxygen."""

    value: float
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "timestamp": self.timestamp.isoformat()}


@dataclass(frozen=True)
class DailySummary:
    """A single day's health scores."""

    date: str  # ISO date string, e.g. "2026-02-13"
    strain: StrainBreakdown
    recovery: RecoveryBreakdown
    stress: StressDayMetrics
    sleep: SleepPerformance
    baseline: DailyBaseline
    resting_hr: float  # bpm used for zones and recovery
    max_hr: float  # bpm used for zones
    stress_level: float = 0.0  # 0-100, RHR/HRV ratio
    blood_oxygen: LatestReading | None = None  # fraction 0-1

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict (JSON-friendly)."""
        return {
            "date": self.date,
            "resting_hr": self.resting_hr,
            "max_hr": self.max_hr,
            "baseline": {
                "hrv_mean": round(self.baseline.hrv_mean, 1),
                "rhr_mean": round(self.baseline.rhr_mean, 1),
            },
            "strain": self.strain.to_dict(),
            "recovery": self.recovery.to_dict(),
            "stress": self.stress.to_dict(),
            "stress_level": self.stress_level,
            "stress_label": stress_label(self.stress_level),
            "sleep": self.sleep.to_dict(),
            "blood_oxygen": self.blood_oxygen.to_dict() if self.blood_oxygen else None,
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"DailySummary({self.date}: "
            f"strain={self.strain.score:.1f}/21, "
            f"recovery={self.recovery.total_score:.0f}, "
            f"stress={self.stress.total_day_stress:.2f}/3, "
            f"sleep={self.sleep.overall_score:.0f})"
        )


def build_daily_summary(
    day: date | str,
    strain: StrainBreakdown,
    recovery: RecoveryBreakdown,
    stress: StressDayMetrics,
    sleep: SleepPerformance,
    baseline: DailyBaseline,
    resting_hr: float,
    max_hr: float,
    stress_level: float = 0.0,
    blood_oxygen: LatestReading | None = None,
) -> DailySummary:
    """Build a daily summary from individual analytics results."""
    date_str = day if isinstance(day, str) else day.isoformat()
    return DailySummary(
        date=date_str,
        strain=strain,
        recovery=recovery,
        stress=stress,
        sleep=sleep,
        baseline=baseline,
        resting_hr=round(resting_hr, 1),
        max_hr=round(max_hr, 1),
        stress_level=stress_level,
        blood_oxygen=blood_oxygen,
    )
