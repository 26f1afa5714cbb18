"""Analytics pipeline: pull one day from a Sample Provider and score it.

The pipeline fetches the day itself, the trailing baseline window and the
recent sleep history, then runs

    baseline -> zones -> strain
             -> stress
             -> sleep -> recovery

and returns a :class:`DailySummary`.  Sleep efficiency and the previous
day's strain feed into recovery.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, timedelta, tzinfo as TzInfo

from vitalscore.analytics.baseline import DailyBaseline, daily_baseline, estimate_resting_hr
from vitalscore.analytics.recovery import LifestyleInputs, score_recovery
from vitalscore.analytics.sleep import cluster_sleep, score_sleep
from vitalscore.analytics.strain import STRAIN_MAX, score_strain
from vitalscore.analytics.stress import hourly_heart_data, ratio_stress_level, stress_day_metrics
from vitalscore.analytics.summary import DailySummary, LatestReading, build_daily_summary
from vitalscore.analytics.timeutils import day_bounds, mean, night_window
from vitalscore.analytics.zones import effective_max_hr, estimate_max_hr, zone_thresholds
from vitalscore.config import EngineContext, setup
from vitalscore.samples import SampleKind, SampleProvider

logger = logging.getLogger(__name__)

# Window for the RHR/HRV ratio stress level
STRESS_LEVEL_DAYS = 7


def _personal_baseline(baseline: DailyBaseline, context: EngineContext) -> DailyBaseline:
    profile = context.profile
    return DailyBaseline(
        hrv_mean=profile.baseline_hrv if profile.baseline_hrv else baseline.hrv_mean,
        rhr_mean=profile.baseline_rhr if profile.baseline_rhr else baseline.rhr_mean,
    )


def _prior_strain(
    provider: SampleProvider,
    day: date,
    resting_hr: float,
    max_hr: float,
    context: EngineContext,
    tz: TzInfo | None,
) -> float | None:
    """Previous day's strain on a 0-100 scale, or None without data."""
    prev = day - timedelta(days=1)
    start, end = day_bounds(prev, tz)
    hr = provider.samples(SampleKind.HEART_RATE, start, end)
    workouts = provider.workouts(start, end)
    if not hr and not workouts:
        return None
    strain = score_strain(hr, workouts, resting_hr, max_hr, context.defaults, prev)
    return strain.score / STRAIN_MAX * 100.0


def score_day(
    provider: SampleProvider,
    day: date,
    context: EngineContext | None = None,
    lifestyle: LifestyleInputs | None = None,
    tz: TzInfo | None = None,
) -> DailySummary:
    """Compute all four scores for *day*.

    Args:
        provider: Source of biometric samples and workouts.
        day: Calendar day to score.
        context: Engine context from :func:`vitalscore.config.setup`.
        lifestyle: Optional lifestyle inputs for recovery; prior strain is
            filled in from the previous day when not given.
        tz: Time zone of the day boundaries; must match the samples'
            (naive samples need ``None``).

    Returns:
        A populated DailySummary.
    """
    if context is None:
        context = setup()
    elif not context.initialized:
        logger.warning("Engine context was not created by setup(); using it as given")
    cfg = context.defaults

    day_start, day_end = day_bounds(day, tz)
    history_start = day_start - timedelta(days=cfg.baseline_days)

    # --- Fetch ---
    hr_day = provider.samples(SampleKind.HEART_RATE, day_start, day_end)
    hrv_day = provider.samples(SampleKind.HRV_SDNN, day_start, day_end)
    hrv_hist = provider.samples(SampleKind.HRV_SDNN, history_start, day_end)
    rhr_hist = provider.samples(SampleKind.RESTING_HEART_RATE, history_start, day_end)
    spo2_day = provider.samples(SampleKind.BLOOD_OXYGEN, day_start, day_end)
    workouts = provider.workouts(day_start, day_end)

    night_start, night_end = night_window(day, tz)
    sleep_hist_start = night_start - timedelta(days=cfg.consistency_nights)
    stages = provider.samples(SampleKind.SLEEP_STAGE, sleep_hist_start, day_end)
    hr_night = provider.samples(SampleKind.HEART_RATE, night_start, night_end)
    hrv_night = provider.samples(SampleKind.HRV_SDNN, night_start, night_end)
    resp_night = provider.samples(SampleKind.RESPIRATORY_RATE, night_start, night_end)
    logger.debug(
        "%s: %d HR, %d HRV, %d sleep-stage samples, %d workouts",
        day, len(hr_day), len(hrv_hist), len(stages), len(workouts),
    )

    # --- Baselines and heart rate range ---
    baseline = _personal_baseline(daily_baseline(hrv_hist, rhr_hist, day_end, cfg), context)

    rhr_today = [s for s in rhr_hist if s.start >= day_start]
    if context.profile.resting_heart_rate:
        resting_hr = float(context.profile.resting_heart_rate)
    elif rhr_today:
        resting_hr = max(rhr_today, key=lambda s: s.start).quantity
    else:
        resting_hr = estimate_resting_hr(hr_day) or baseline.rhr_mean

    hr_values = [s.quantity for s in hr_day]
    max_hr = effective_max_hr(estimate_max_hr(context.profile, cfg), hr_values)
    zones = zone_thresholds(resting_hr, max_hr, hr_values, cfg)

    # --- Strain ---
    strain = score_strain(hr_day, workouts, resting_hr, max_hr, cfg, day, thresholds=zones)

    # --- Sleep ---
    sleep = score_sleep(
        stages, day, context.sleep_need_hours,
        hr_night, hrv_night, resp_night, cfg,
    )

    # --- Stress ---
    sleep_intervals = [
        (c.start, c.end)
        for c in cluster_sleep(stages, timedelta(hours=cfg.sleep_cluster_gap_hours))
        if c.end > day_start
    ]
    workout_intervals = [(w.start, w.end) for w in workouts]
    stress = stress_day_metrics(
        hourly_heart_data(hr_day, hrv_day, day),
        baseline, sleep_intervals, workout_intervals, cfg,
    )

    week_start = day_end - timedelta(days=STRESS_LEVEL_DAYS)
    hrv_week = [s.quantity for s in hrv_hist if s.start >= week_start]
    stress_level = ratio_stress_level(resting_hr, mean(hrv_week) if hrv_week else None)

    # --- Recovery ---
    lifestyle = lifestyle or LifestyleInputs()
    if lifestyle.prior_strain is None:
        lifestyle = replace(
            lifestyle,
            prior_strain=_prior_strain(provider, day, resting_hr, max_hr, context, tz),
        )

    has_personal_baseline = (
        len(hrv_hist) >= cfg.baseline_min_samples
        or bool(context.profile.baseline_hrv)
    )
    recovery = score_recovery(
        [s.quantity for s in sorted(hrv_hist, key=lambda s: s.start)],
        resting_hr=resting_hr,
        respiratory_rate=mean(s.quantity for s in resp_night) if resp_night else None,
        sleep_efficiency_pct=sleep.sleep_efficiency if sleep.main_sleep else None,
        lifestyle=lifestyle,
        baselines=baseline if has_personal_baseline else None,
        defaults=cfg,
    )

    # --- Spot checks ---
    blood_oxygen = None
    if spo2_day:
        latest = max(spo2_day, key=lambda s: s.start)
        blood_oxygen = LatestReading(value=latest.quantity, timestamp=latest.start)

    return build_daily_summary(
        day,
        strain=strain,
        recovery=recovery,
        stress=stress,
        sleep=sleep,
        baseline=baseline,
        resting_hr=resting_hr,
        max_hr=zones.max_hr,
        stress_level=stress_level,
        blood_oxygen=blood_oxygen,
    )
