"""Sleep sessions and sleep performance from sleep-stage intervals.

Raw sleep-stage samples are merged into sessions ("clusters") while the
gap between them is at most 3 hours.  Per night window (noon to noon) the
cluster with the most time asleep, among those with at least 3 hours
asleep, is the main sleep; anything else is a nap.

Sleep performance combines four 0-100 sub-scores:

    hours vs needed  -- asleep hours against the sleep need
    efficiency       -- asleep time / time in bed (cluster span)
    consistency      -- bedtime and wake-time regularity over recent nights
    sleep stress     -- physiological deviation during sleep (inverted)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Sequence

import numpy as np

from vitalscore.analytics.timeutils import clamp, invert, mean, night_of, round_to, to_hours
from vitalscore.config import SystemDefaults
from vitalscore.samples import BiometricSample, SleepStage

logger = logging.getLogger(__name__)

# Sleep stress: percentile cut-offs and signal weights
HIGH_PERCENTILE = 90
LOW_PERCENTILE = 10
STRESS_WEIGHTS = {"heart_rate": 0.4, "hrv": 0.4, "respiratory": 0.2}

# Consistency: minutes of timing deviation per point lost
CONSISTENCY_MINUTES_PER_POINT = 6.0
# Awake-percentage fallbacks
AWAKE_CONSISTENCY_FACTOR = 2.0
AWAKE_STRESS_ALLOWANCE = 10.0

STAGE_GROUPS = {
    SleepStage.AWAKE: "awake",
    SleepStage.ASLEEP_UNSPECIFIED: "light",
    SleepStage.ASLEEP_CORE: "light",
    SleepStage.ASLEEP_DEEP: "deep",
    SleepStage.ASLEEP_REM: "rem",
}


@dataclass(frozen=True)
class SleepCluster:
    """One contiguous sleep session."""

    start: datetime
    end: datetime
    asleep_duration: timedelta
    time_in_bed_duration: timedelta
    awake_duration: timedelta = timedelta(0)
    is_main_sleep: bool = False
    stage_minutes: dict[str, float] = field(default_factory=dict)  # awake/light/deep/rem

    @property
    def asleep_hours(self) -> float:
        return to_hours(self.asleep_duration)

    @property
    def awake_pct(self) -> float:
        """Awake time as % of asleep + awake time."""
        asleep = self.asleep_duration.total_seconds()
        awake = self.awake_duration.total_seconds()
        if asleep <= 0:
            return 0.0
        return awake / (asleep + awake) * 100.0

    @property
    def restorative_minutes(self) -> float:
        return self.stage_minutes.get("deep", 0.0) + self.stage_minutes.get("rem", 0.0)

    def contains(self, t: datetime) -> bool:
        return self.start <= t < self.end

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "asleep_min": round_to(self.asleep_duration.total_seconds() / 60.0, 1),
            "time_in_bed_min": round_to(self.time_in_bed_duration.total_seconds() / 60.0, 1),
            "awake_min": round_to(self.awake_duration.total_seconds() / 60.0, 1),
            "is_main_sleep": self.is_main_sleep,
            "stage_minutes": {k: round_to(v, 1) for k, v in self.stage_minutes.items()},
            "restorative_min": round_to(self.restorative_minutes, 1),
        }

    def __repr__(self) -> str:
        tag = "main" if self.is_main_sleep else "nap"
        return (
            f"SleepCluster({self.start:%Y-%m-%d %H:%M}-{self.end:%H:%M}, "
            f"asleep={self.asleep_hours:.1f}h, {tag})"
        )


@dataclass(frozen=True)
class SleepPerformance:
    """Sleep performance sub-scores and overall score (each 0-100)."""

    hours_vs_needed: float
    sleep_consistency: float
    sleep_efficiency: float
    sleep_stress: float
    overall_score: float
    main_sleep: SleepCluster | None = None

    def to_dict(self) -> dict:
        return {
            "hours_vs_needed": self.hours_vs_needed,
            "sleep_consistency": self.sleep_consistency,
            "sleep_efficiency": self.sleep_efficiency,
            "sleep_stress": self.sleep_stress,
            "overall_score": self.overall_score,
            "main_sleep": self.main_sleep.to_dict() if self.main_sleep else None,
        }

    def __repr__(self) -> str:
        return (
            f"SleepPerformance(overall={self.overall_score:.0f}, "
            f"hours={self.hours_vs_needed:.0f}, "
            f"eff={self.sleep_efficiency:.0f}, "
            f"consistency={self.sleep_consistency:.0f}, "
            f"stress={self.sleep_stress:.0f})"
        )


NO_SLEEP = SleepPerformance(
    hours_vs_needed=0.0,
    sleep_consistency=0.0,
    sleep_efficiency=0.0,
    sleep_stress=0.0,
    overall_score=0.0,
)


# ---------------------------------------------------------------------------
# Clustering
# ---------------------------------------------------------------------------


def _build_cluster(samples: list[BiometricSample]) -> SleepCluster:
    start = min(s.start for s in samples)
    end = max(s.end for s in samples)
    stage_sec = {"awake": 0.0, "light": 0.0, "deep": 0.0, "rem": 0.0}
    asleep_sec = 0.0
    for s in samples:
        stage = s.stage
        group = STAGE_GROUPS.get(stage)
        if group is not None:
            stage_sec[group] += s.duration_sec
        if stage.is_asleep:
            asleep_sec += s.duration_sec
    return SleepCluster(
        start=start,
        end=end,
        asleep_duration=timedelta(seconds=asleep_sec),
        time_in_bed_duration=end - start,
        awake_duration=timedelta(seconds=stage_sec["awake"]),
        stage_minutes={k: v / 60.0 for k, v in stage_sec.items()},
    )


def cluster_sleep(
    samples: Sequence[BiometricSample],
    gap: timedelta = timedelta(hours=3),
) -> list[SleepCluster]:
    """Merge sleep-stage samples into sessions.

    Samples are sorted by start; a sample joins the running cluster while
    its start is at most *gap* after the cluster's latest end.

    Returns:
        Clusters in chronological order, none marked as main sleep.
    """
    if len(samples) == 0:
        return []

    ordered = sorted(samples, key=lambda s: s.start)
    groups: list[list[BiometricSample]] = [[ordered[0]]]
    running_end = ordered[0].end
    for s in ordered[1:]:
        if s.start - running_end <= gap:
            groups[-1].append(s)
            running_end = max(running_end, s.end)
        else:
            groups.append([s])
            running_end = s.end

    return [_build_cluster(g) for g in groups]


def mark_main_sleep(
    clusters: Sequence[SleepCluster],
    min_asleep: timedelta = timedelta(hours=3),
) -> list[SleepCluster]:
    """Mark at most one main sleep per night window.

    The night window is noon to noon, keyed by the date of the morning
    the session's start falls before.
    """
    best: dict[date, int] = {}
    for i, c in enumerate(clusters):
        if c.asleep_duration < min_asleep:
            continue
        night = night_of(c.start)
        if night not in best or c.asleep_duration > clusters[best[night]].asleep_duration:
            best[night] = i

    main = set(best.values())
    return [replace(c, is_main_sleep=(i in main)) for i, c in enumerate(clusters)]


# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------


def _minutes_from_noon(t: datetime) -> float:
    # Bedtimes either side of midnight stay adjacent on this scale
    return ((t.hour * 60 + t.minute + t.second / 60.0) - 720.0) % 1440.0


def _mean_abs_deviation(values: Sequence[float]) -> float:
    arr = np.asarray(values, dtype=np.float64)
    return float(np.mean(np.abs(arr - np.mean(arr))))


def sleep_consistency(
    main_sleeps: Sequence[SleepCluster],
    awake_pct: float = 0.0,
) -> float:
    """Timing regularity of recent main sleeps (0-100).

    ``100 - avg_deviation / 6``, where avg_deviation is the mean of the
    bedtime and wake-time mean absolute deviations in minutes.  With fewer
    than two nights, falls back to ``100 - awake_pct * 2``.
    """
    if len(main_sleeps) < 2:
        return clamp(100.0 - awake_pct * AWAKE_CONSISTENCY_FACTOR, 0.0, 100.0)

    bed_dev = _mean_abs_deviation([_minutes_from_noon(c.start) for c in main_sleeps])
    wake_dev = _mean_abs_deviation([_minutes_from_noon(c.end) for c in main_sleeps])
    avg_dev = (bed_dev + wake_dev) / 2.0
    return clamp(100.0 - avg_dev / CONSISTENCY_MINUTES_PER_POINT, 0.0, 100.0)


def _fraction_in_sleep(
    samples: Sequence[BiometricSample],
    cluster: SleepCluster,
    percentile: int,
    above: bool,
) -> float | None:
    if len(samples) == 0:
        return None
    in_sleep = np.asarray([s.quantity for s in samples if cluster.contains(s.start)], dtype=np.float64)
    if len(in_sleep) == 0:
        return None
    cutoff = float(np.percentile([s.quantity for s in samples], percentile))
    hits = in_sleep > cutoff if above else in_sleep < cutoff
    return float(np.mean(hits))


def sleep_stress_score(
    cluster: SleepCluster,
    hr_samples: Sequence[BiometricSample] = (),
    hrv_samples: Sequence[BiometricSample] = (),
    resp_samples: Sequence[BiometricSample] = (),
) -> float:
    """Physiological calm during the session (0-100, higher is better).

    Looks at the fraction of in-sleep HR readings above the 90th
    percentile of all HR readings, HRV readings below the 10th percentile
    and respiratory readings above the 90th percentile.  Without any
    in-sleep readings, uses the awake percentage instead.
    """
    fractions = {
        "heart_rate": _fraction_in_sleep(hr_samples, cluster, HIGH_PERCENTILE, above=True),
        "hrv": _fraction_in_sleep(hrv_samples, cluster, LOW_PERCENTILE, above=False),
        "respiratory": _fraction_in_sleep(resp_samples, cluster, HIGH_PERCENTILE, above=True),
    }
    available = {k: v for k, v in fractions.items() if v is not None}
    if not available:
        logger.debug("No physiological samples during sleep, using awake percentage")
        return invert(max(0.0, cluster.awake_pct - AWAKE_STRESS_ALLOWANCE))

    total_weight = sum(STRESS_WEIGHTS[k] for k in available)
    stress = sum(v * STRESS_WEIGHTS[k] for k, v in available.items()) / total_weight
    return invert(stress * 100.0)


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def score_sleep(
    stage_samples: Sequence[BiometricSample],
    target_date: date,
    sleep_need_hours: float | None = None,
    hr_samples: Sequence[BiometricSample] = (),
    hrv_samples: Sequence[BiometricSample] = (),
    resp_samples: Sequence[BiometricSample] = (),
    defaults: SystemDefaults | None = None,
) -> SleepPerformance:
    """Score the night ending on *target_date*.

    Args:
        stage_samples: Sleep-stage samples; include previous nights to get
            a consistency score from history.
        target_date: Date of the morning the night ends on.
        sleep_need_hours: Sleep need; the system default if None or not positive.
        hr_samples: Heart rate readings covering the night.
        hrv_samples: HRV readings covering the night.
        resp_samples: Respiratory rate readings covering the night.
        defaults: System defaults (cluster gap, main-sleep minimum).

    Returns:
        SleepPerformance; all zeros when there was no sleep that night.
    """
    cfg = defaults or SystemDefaults()
    need = sleep_need_hours if sleep_need_hours and sleep_need_hours > 0 else cfg.sleep_need_hours

    clusters = mark_main_sleep(
        cluster_sleep(stage_samples, timedelta(hours=cfg.sleep_cluster_gap_hours)),
        timedelta(hours=cfg.main_sleep_min_hours),
    )
    tonight = [c for c in clusters if night_of(c.start) == target_date and c.asleep_duration > timedelta(0)]
    if not tonight:
        logger.debug("No sleep recorded for the night ending %s", target_date)
        return NO_SLEEP

    mains = [c for c in tonight if c.is_main_sleep]
    session = mains[0] if mains else max(tonight, key=lambda c: c.asleep_duration)

    hours_vs_needed = clamp(session.asleep_hours / need * 100.0, 0.0, 100.0)

    in_bed = session.time_in_bed_duration.total_seconds()
    efficiency = min(100.0, session.asleep_duration.total_seconds() / in_bed * 100.0) if in_bed > 0 else 0.0

    history = [c for c in clusters if c.is_main_sleep and night_of(c.start) <= target_date]
    consistency = sleep_consistency(history[-cfg.consistency_nights:], session.awake_pct)

    stress = sleep_stress_score(session, hr_samples, hrv_samples, resp_samples)

    subs = [round_to(v, 1) for v in (hours_vs_needed, consistency, efficiency, stress)]
    overall = float(round(mean(subs)))

    return SleepPerformance(
        hours_vs_needed=subs[0],
        sleep_consistency=subs[1],
        sleep_efficiency=subs[2],
        sleep_stress=subs[3],
        overall_score=overall,
        main_sleep=session,
    )
