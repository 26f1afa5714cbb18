"""Scoring engine for daily health metrics from biometric samples.

Modules:
    timeutils -- Day/night windows, normalization, bucketing
    baseline  -- Rolling HRV and resting-HR baselines
    zones     -- Karvonen heart rate zones and max-HR formulas
    strain    -- HR-zone + strength-workout strain scoring (0-21)
    recovery  -- Weighted biometric/lifestyle recovery scoring (0-100)
    stress    -- Hourly stress moments and daily aggregates (0-3)
    sleep     -- Sleep clustering and sleep performance (0-100)
    summary   -- Daily summary aggregation
    pipeline  -- Score one day end to end from a Sample Provider
"""

from vitalscore.analytics.baseline import (
    DailyBaseline,
    baseline_mean,
    daily_baseline,
    estimate_resting_hr,
)
from vitalscore.analytics.zones import (
    ZoneThresholds,
    zone_thresholds,
    zone_index,
    estimate_max_hr,
    effective_max_hr,
)
from vitalscore.analytics.strain import (
    score_strain,
    StrainBreakdown,
    WeightLifted,
    EnergyBurned,
    DurationOnly,
    workout_load,
)
from vitalscore.analytics.recovery import (
    score_recovery,
    RecoveryBreakdown,
    RecoveryMode,
    LifestyleInputs,
)
from vitalscore.analytics.stress import (
    stress_moment,
    stress_day_metrics,
    hourly_heart_data,
    ratio_stress_level,
    StressMoment,
    StressDayMetrics,
)
from vitalscore.analytics.sleep import (
    cluster_sleep,
    mark_main_sleep,
    score_sleep,
    SleepCluster,
    SleepPerformance,
)
from vitalscore.analytics.summary import build_daily_summary, DailySummary, LatestReading
from vitalscore.analytics.pipeline import score_day

__all__ = [
    # baseline
    "DailyBaseline",
    "baseline_mean",
    "daily_baseline",
    "estimate_resting_hr",
    # zones
    "ZoneThresholds",
    "zone_thresholds",
    "zone_index",
    "estimate_max_hr",
    "effective_max_hr",
    # strain
    "score_strain",
    "StrainBreakdown",
    "WeightLifted",
    "EnergyBurned",
    "DurationOnly",
    "workout_load",
    # recovery
    "score_recovery",
    "RecoveryBreakdown",
    "RecoveryMode",
    "LifestyleInputs",
    # stress
    "stress_moment",
    "stress_day_metrics",
    "hourly_heart_data",
    "ratio_stress_level",
    "StressMoment",
    "StressDayMetrics",
    # sleep
    "cluster_sleep",
    "mark_main_sleep",
    "score_sleep",
    "SleepCluster",
    "SleepPerformance",
    # summary
    "build_daily_summary",
    "DailySummary",
    "LatestReading",
    # pipeline
    "score_day",
]
