"""Heart rate zones via the Heart-Rate-Reserve (Karvonen) method.

Zone i starts at ``resting + bound[i] * (max - resting)``.  Five zones,
bounds 50/60/70/80/90 % of reserve by default.

If the day's active readings average below zone 1, the nominal max HR is
clearly not representative of this person's effort range, so the zones
are regenerated from a reserve derived from what was actually observed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from vitalscore.config import SystemDefaults, UserProfile

logger = logging.getLogger(__name__)

ZONE_LABELS = ["Zone 1", "Zone 2", "Zone 3", "Zone 4", "Zone 5"]

# Adaptive widening: max' = max(observed_max + MAX_MARGIN, avg + AVG_MARGIN)
WIDEN_MAX_MARGIN = 10.0
WIDEN_AVG_MARGIN = 30.0


@dataclass(frozen=True)
class ZoneThresholds:
    """Lower BPM bound of each of the five zones."""

    bounds: tuple[float, ...]
    resting_hr: float
    max_hr: float
    widened: bool = False

    @property
    def reserve(self) -> float:
        return max(1.0, self.max_hr - self.resting_hr)

    def __getitem__(self, i: int) -> float:
        return self.bounds[i]

    def __len__(self) -> int:
        return len(self.bounds)

    def __repr__(self) -> str:
        zones = ", ".join(f"{b:.0f}" for b in self.bounds)
        flag = ", widened" if self.widened else ""
        return f"ZoneThresholds([{zones}] bpm, rest={self.resting_hr:.0f}, max={self.max_hr:.0f}{flag})"


# ---------------------------------------------------------------------------
# Max HR estimation
# ---------------------------------------------------------------------------


def estimate_max_hr(
    profile: UserProfile | None = None,
    defaults: SystemDefaults | None = None,
) -> float:
    """Estimate max HR from the user's profile.

    Formulas:
        tanaka  -- constant - coefficient * age  (208 - 0.7 * age)
        classic -- 220 - age
        fixed   -- the profile's max_heart_rate

    Falls back to the system default when the profile lacks what the
    chosen formula needs.
    """
    cfg = defaults or SystemDefaults()
    prof = profile or UserProfile()
    formula = prof.max_hr_formula.lower()

    if formula == "fixed" or (prof.max_heart_rate and formula not in ("tanaka", "classic")):
        if prof.max_heart_rate and prof.max_heart_rate > 0:
            return float(prof.max_heart_rate)
        return cfg.max_heart_rate

    age = prof.age
    if age is None or not 0 < age < 120:
        logger.debug("No usable age in profile, max HR defaults to %.0f", cfg.max_heart_rate)
        return cfg.max_heart_rate

    if formula == "classic":
        return 220.0 - age
    if formula == "tanaka":
        return float(round(prof.max_hr_constant - prof.max_hr_age_coefficient * age))

    logger.warning("Unknown max HR formula %r, using default", prof.max_hr_formula)
    return cfg.max_heart_rate


def effective_max_hr(estimated_max: float, hr_values: Sequence[float]) -> float:
    """Raise the estimated max HR to the observed peak if that is higher."""
    if len(hr_values) == 0:
        return estimated_max
    return max(estimated_max, float(np.max(np.asarray(hr_values, dtype=np.float64))))


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------


def _thresholds(resting_hr: float, max_hr: float, bound_fractions: Sequence[float]) -> tuple[float, ...]:
    hrr = max(1.0, max_hr - resting_hr)
    return tuple(resting_hr + frac * hrr for frac in bound_fractions)


def activity_threshold(resting_hr: float, max_hr: float, defaults: SystemDefaults | None = None) -> float:
    """HR above which a reading counts as active."""
    cfg = defaults or SystemDefaults()
    hrr = max(1.0, max_hr - resting_hr)
    return resting_hr + hrr * cfg.activity_threshold_pct


def zone_thresholds(
    resting_hr: float,
    max_hr: float,
    observed: Sequence[float] = (),
    defaults: SystemDefaults | None = None,
) -> ZoneThresholds:
    """Compute the five zone lower bounds.

    Args:
        resting_hr: Resting heart rate (bpm).
        max_hr: Maximum heart rate (bpm).
        observed: The day's HR readings (bpm), used for adaptive widening.
        defaults: System defaults (zone bounds, fallback adjustment).

    Returns:
        ZoneThresholds, strictly increasing.
    """
    cfg = defaults or SystemDefaults()
    if max_hr <= resting_hr:
        logger.debug(
            "max HR %.0f <= resting HR %.0f, adjusting by %.0f",
            max_hr, resting_hr, cfg.min_hrr_fallback_adjustment,
        )
        max_hr = resting_hr + cfg.min_hrr_fallback_adjustment

    bounds = _thresholds(resting_hr, max_hr, cfg.hrr_zone_lower_bounds)

    arr = np.asarray(observed, dtype=np.float64)
    if len(arr) == 0:
        return ZoneThresholds(bounds=bounds, resting_hr=resting_hr, max_hr=max_hr)

    active = arr[arr > activity_threshold(resting_hr, max_hr, cfg)]
    if len(active) == 0:
        return ZoneThresholds(bounds=bounds, resting_hr=resting_hr, max_hr=max_hr)

    avg_hr = float(np.mean(active))
    if avg_hr >= bounds[0]:
        return ZoneThresholds(bounds=bounds, resting_hr=resting_hr, max_hr=max_hr)

    widened_max = max(float(np.max(arr)) + WIDEN_MAX_MARGIN, avg_hr + WIDEN_AVG_MARGIN)
    if widened_max <= resting_hr:
        widened_max = resting_hr + cfg.min_hrr_fallback_adjustment
    logger.debug(
        "Active HR avg %.1f below zone 1 (%.1f); widening max HR %.0f -> %.0f",
        avg_hr, bounds[0], max_hr, widened_max,
    )
    return ZoneThresholds(
        bounds=_thresholds(resting_hr, widened_max, cfg.hrr_zone_lower_bounds),
        resting_hr=resting_hr,
        max_hr=widened_max,
        widened=True,
    )


def zone_index(hr: float, thresholds: ZoneThresholds) -> int | None:
    """Return the 0-based zone for *hr*, or None below zone 1."""
    for i in range(len(thresholds) - 1, -1, -1):
        if hr >= thresholds[i]:
            return i
    return None
