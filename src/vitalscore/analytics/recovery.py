"""Recovery score computation (HRV-driven).

Recovery is primarily determined by heart rate variability, with
adjustments for resting heart rate, respiratory rate and sleep
efficiency.  When lifestyle inputs (hydration, alcohol, nutrition, prior
strain) are supplied, a second weight table that includes prior strain is
used instead.

Each metric is mapped onto 0-100 against a reference range: population
ranges by default, or ranges derived from the user's own baselines.
"Lower is better" metrics (RHR, respiratory rate, alcohol, prior strain)
are normalized and then inverted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from vitalscore.analytics.baseline import DailyBaseline
from vitalscore.analytics.timeutils import clamp, invert, mean, normalize, round_to
from vitalscore.config import SystemDefaults

logger = logging.getLogger(__name__)


class RecoveryMode(str, Enum):
    BIOMETRIC = "biometric"
    LIFESTYLE = "lifestyle"


# Weights for the composite recovery score (each table sums to 1)
BIOMETRIC_WEIGHTS = {
    "hrv": 0.5,
    "rhr": 0.25,
    "respiratory": 0.125,
    "sleep_efficiency": 0.125,
}
LIFESTYLE_WEIGHTS = {
    "hrv": 0.4,
    "rhr": 0.2,
    "respiratory": 0.1,
    "sleep_efficiency": 0.2,
    "strain": 0.1,
}
MODE_WEIGHTS = {
    RecoveryMode.BIOMETRIC: BIOMETRIC_WEIGHTS,
    RecoveryMode.LIFESTYLE: LIFESTYLE_WEIGHTS,
}

# Population reference ranges
HRV_RANGE = (20.0, 85.0)  # ms SDNN
RHR_RANGE = (40.0, 100.0)  # bpm
RESPIRATORY_RANGE = (8.0, 20.0)  # breaths/min

# Floors for baseline-derived ranges
HRV_DYNAMIC_FLOOR = 15.0
RHR_DYNAMIC_FLOOR = 30.0


@dataclass(frozen=True)
class LifestyleInputs:
    """Self-reported or tracked lifestyle factors for the previous day.

    ``prior_strain`` is on a 0-100 scale.  When it is absent but
    ``active_energy_kcal`` is known, strain is judged from active energy
    against the low/high strain thresholds instead.
    """

    water_ml: float | None = None
    alcohol_drinks: float | None = None
    calories_kcal: float | None = None
    prior_strain: float | None = None
    active_energy_kcal: float | None = None


@dataclass(frozen=True)
class RecoveryBreakdown:
    """Recovery score and its components."""

    biometric_score: float  # 0-100
    lifestyle_score: float | None  # 0-100, None without lifestyle inputs
    total_score: float  # 0-100
    per_metric: dict[str, float] = field(default_factory=dict)
    mode: RecoveryMode = RecoveryMode.BIOMETRIC

    def to_dict(self) -> dict:
        return {
            "biometric_score": self.biometric_score,
            "lifestyle_score": self.lifestyle_score,
            "total_score": self.total_score,
            "per_metric": dict(self.per_metric),
            "mode": self.mode.value,
        }

    def __repr__(self) -> str:
        return (
            f"RecoveryBreakdown(total={self.total_score:.1f}, "
            f"biometric={self.biometric_score:.1f}, mode={self.mode.value})"
        )


# ---------------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------------


def static_ranges() -> dict[str, tuple[float, float]]:
    return {"hrv": HRV_RANGE, "rhr": RHR_RANGE, "respiratory": RESPIRATORY_RANGE}


def dynamic_ranges(baselines: DailyBaseline) -> dict[str, tuple[float, float]]:
    """Ranges centred on the user's own baselines.

    HRV:  [max(15, b * 0.5), b * 1.5]
    RHR:  [max(30, b * 0.7), b * 1.3]
    Respiratory rate keeps the population range.
    """
    hrv_b = baselines.hrv_mean
    rhr_b = baselines.rhr_mean
    return {
        "hrv": (max(HRV_DYNAMIC_FLOOR, hrv_b * 0.5), hrv_b * 1.5),
        "rhr": (max(RHR_DYNAMIC_FLOOR, rhr_b * 0.7), rhr_b * 1.3),
        "respiratory": RESPIRATORY_RANGE,
    }


# ---------------------------------------------------------------------------
# Lifestyle sub-scores
# ---------------------------------------------------------------------------


def hydration_score(water_ml: float, defaults: SystemDefaults) -> float:
    return normalize(water_ml, 0.0, defaults.water_target)


def alcohol_score(drinks: float, defaults: SystemDefaults) -> float:
    if drinks >= defaults.max_alcohol_for_zero_score:
        return 0.0
    return invert(drinks * defaults.alcohol_penalty_per_drink)


def nutrition_score(calories_kcal: float, defaults: SystemDefaults) -> float:
    return normalize(calories_kcal, 0.0, defaults.calorie_target)


def strain_recovery_score(lifestyle: LifestyleInputs, defaults: SystemDefaults) -> float:
    """Prior-day strain, inverted (a hard day lowers recovery)."""
    if lifestyle.prior_strain is not None:
        return invert(normalize(lifestyle.prior_strain, 0.0, 100.0))
    if lifestyle.active_energy_kcal is not None:
        return invert(normalize(
            lifestyle.active_energy_kcal,
            defaults.strain_low_threshold,
            defaults.strain_high_threshold,
        ))
    return invert(normalize(defaults.prior_strain, 0.0, 100.0))


def _lifestyle_metrics(lifestyle: LifestyleInputs, defaults: SystemDefaults) -> dict[str, float]:
    metrics: dict[str, float] = {}
    if lifestyle.water_ml is not None:
        metrics["hydration"] = hydration_score(lifestyle.water_ml, defaults)
    if lifestyle.alcohol_drinks is not None:
        metrics["alcohol"] = alcohol_score(lifestyle.alcohol_drinks, defaults)
    if lifestyle.calories_kcal is not None:
        metrics["nutrition"] = nutrition_score(lifestyle.calories_kcal, defaults)
    metrics["strain"] = strain_recovery_score(lifestyle, defaults)
    return metrics


# ---------------------------------------------------------------------------
# Composite scoring
# ---------------------------------------------------------------------------


def _weighted(metrics: dict[str, float], weights: dict[str, float]) -> float:
    return round_to(clamp(sum(metrics[k] * w for k, w in weights.items()), 0.0, 100.0), 1)


def score_recovery(
    hrv_values: Sequence[float],
    resting_hr: float | None = None,
    respiratory_rate: float | None = None,
    sleep_efficiency_pct: float | None = None,
    lifestyle: LifestyleInputs | None = None,
    baselines: DailyBaseline | None = None,
    defaults: SystemDefaults | None = None,
) -> RecoveryBreakdown:
    """Compute the composite recovery score.

    Args:
        hrv_values: Recent HRV (SDNN, ms) readings in time order; the last
            one is the current value.
        resting_hr: Current resting heart rate (bpm).
        respiratory_rate: Current respiratory rate (breaths/min).
        sleep_efficiency_pct: Last night's sleep efficiency (0-100).
        lifestyle: Optional lifestyle factors; switches to lifestyle mode.
        baselines: Personal baselines; switches HRV/RHR to dynamic ranges.
        defaults: System defaults used for any missing input.

    Returns:
        RecoveryBreakdown with every sub-score and total in [0, 100].
    """
    cfg = defaults or SystemDefaults()

    if len(hrv_values) > 0:
        hrv = float(hrv_values[-1])
    else:
        logger.debug("No HRV readings, using default %.1f ms", cfg.hrv_baseline)
        hrv = cfg.hrv_baseline
    rhr = resting_hr if resting_hr is not None else cfg.resting_heart_rate
    resp = respiratory_rate if respiratory_rate is not None else cfg.respiratory_rate
    sleep_eff = sleep_efficiency_pct if sleep_efficiency_pct is not None else cfg.sleep_efficiency

    ranges = dynamic_ranges(baselines) if baselines is not None else static_ranges()

    metrics = {
        "hrv": normalize(hrv, *ranges["hrv"]),
        "rhr": invert(normalize(rhr, *ranges["rhr"])),
        "respiratory": invert(normalize(resp, *ranges["respiratory"])),
        "sleep_efficiency": clamp(sleep_eff, 0.0, 100.0),
    }
    biometric = _weighted(metrics, MODE_WEIGHTS[RecoveryMode.BIOMETRIC])

    if lifestyle is None:
        mode = RecoveryMode.BIOMETRIC
        lifestyle_score = None
        total = biometric
    else:
        mode = RecoveryMode.LIFESTYLE
        extra = _lifestyle_metrics(lifestyle, cfg)
        lifestyle_score = round_to(mean(extra.values()), 1)
        metrics.update(extra)
        total = _weighted(metrics, MODE_WEIGHTS[mode])

    logger.debug("Recovery (%s): %s -> %.1f", mode.value, metrics, total)

    return RecoveryBreakdown(
        biometric_score=biometric,
        lifestyle_score=lifestyle_score,
        total_score=total,
        per_metric={k: round_to(v, 1) for k, v in metrics.items()},
        mode=mode,
    )
