"""Configuration snapshots consumed by the scoring engine.

Two explicit structs replace free-form settings dictionaries:

    SystemDefaults -- population fallback constants and algorithm tuning
    UserProfile    -- personal parameters (age, baselines, max-HR formula)

Every field has a documented default.  Building either struct from a
mapping never fails because a field is missing: absent keys keep their
default, unknown keys are logged and ignored.  Keys are matched
case-insensitively, so ``RESTING_HEART_RATE`` and ``resting_heart_rate``
are the same field.  Values are checked against the field types: a
string where a number belongs, or a zone tuple that is not 5 strictly
increasing values, raises ``TypeError`` / ``ValueError`` here rather than
deep inside scoring.

``setup()`` returns an :class:`EngineContext`, the explicit initialization
state that the pipeline threads through every call.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)


# Fields holding one value per heart rate zone
ZONE_TUPLE_FIELDS = ("heart_rate_zone_weights", "hrr_zone_lower_bounds")
ZONE_COUNT = 5


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce(cls, name: str, annotation: str, value: Any) -> Any:
    """Check *value* against the field's annotation and normalize it.

    Annotations are strings here (postponed evaluation), e.g. ``"float"``,
    ``"int | None"`` or ``"tuple[float, ...]"``.
    """
    kind = annotation.replace(" | None", "").strip()
    where = f"{cls.__name__}.{name}"

    if kind == "str":
        if not isinstance(value, str):
            raise TypeError(f"{where} must be a string, got {type(value).__name__}")
        return value

    if kind == "int":
        if not _is_number(value):
            raise TypeError(f"{where} must be a number, got {type(value).__name__}")
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"{where} must be a whole number, got {value!r}")
        return int(value)

    if kind == "float":
        if not _is_number(value):
            raise TypeError(f"{where} must be a number, got {type(value).__name__}")
        return float(value)

    if kind.startswith("tuple"):
        # JSON arrays arrive as lists; the structs hold tuples so they stay hashable
        if not isinstance(value, (list, tuple)):
            raise TypeError(f"{where} must be a list of numbers, got {type(value).__name__}")
        if not all(_is_number(v) for v in value):
            raise TypeError(f"{where} must contain only numbers")
        values = tuple(float(v) for v in value)
        if name in ZONE_TUPLE_FIELDS:
            if len(values) != ZONE_COUNT:
                raise ValueError(f"{where} needs {ZONE_COUNT} values, got {len(values)}")
            if any(b <= a for a, b in zip(values, values[1:])):
                raise ValueError(f"{where} must be strictly increasing, got {values}")
        return values

    return value


def _from_mapping(cls, data: Mapping[str, Any] | None):
    if data is None:
        return cls()
    if not isinstance(data, Mapping):
        raise TypeError(f"{cls.__name__} expects a mapping, got {type(data).__name__}")

    known = {f.name: f.type for f in fields(cls)}
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        name = str(key).lower()
        if name not in known:
            logger.warning("Ignoring unknown %s field %r", cls.__name__, key)
            continue
        if value is None:
            continue  # absent -> default
        kwargs[name] = _coerce(cls, name, str(known[name]), value)
    return cls(**kwargs)


@dataclass(frozen=True)
class SystemDefaults:
    """Population fallback constants and algorithm tuning."""

    # Vitals fallbacks
    resting_heart_rate: float = 60.0  # bpm
    max_heart_rate: float = 190.0  # bpm
    respiratory_rate: float = 15.0  # breaths/min
    sleep_efficiency: float = 85.0  # %
    hrv_baseline: float = 45.0  # ms SDNN
    prior_strain: float = 50.0  # 0-100

    # Heart rate zones (Karvonen)
    heart_rate_zone_weights: tuple[float, ...] = (1.0, 2.0, 3.0, 4.0, 5.0)
    hrr_zone_lower_bounds: tuple[float, ...] = (0.5, 0.6, 0.7, 0.8, 0.9)
    min_hrr_fallback_adjustment: float = 40.0  # bpm added when max <= resting
    activity_threshold_pct: float = 0.1  # of HRR above resting

    # Strain
    muscle_points_per_kcal: float = 0.5
    muscle_points_per_minute: float = 1.0
    strain_exp_scale_factor: float = 0.0025
    max_sample_gap_minutes: float | None = None  # no cap

    # Lifestyle recovery
    water_target: float = 2500.0  # ml
    calorie_target: float = 1800.0  # kcal
    strain_low_threshold: float = 500.0  # kcal active energy
    strain_high_threshold: float = 1000.0  # kcal active energy
    alcohol_penalty_per_drink: float = 50.0
    max_alcohol_for_zero_score: float = 2.0

    # Stress
    stress_hr_sensitivity: float = 0.6

    # Baselines
    baseline_days: int = 14
    baseline_min_samples: int = 1

    # Sleep
    sleep_need_hours: float = 8.0
    sleep_cluster_gap_hours: float = 3.0
    main_sleep_min_hours: float = 3.0
    consistency_nights: int = 5

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> SystemDefaults:
        return _from_mapping(cls, data)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UserProfile:
    """Personal parameters.  ``None`` means "use the system default"."""

    age: int | None = 30
    weight_kg: float | None = 70.0
    fitness_level: str = "intermediate"
    resting_heart_rate: float | None = None
    max_heart_rate: float | None = None
    baseline_hrv: float | None = None
    baseline_rhr: float | None = None
    max_hr_formula: str = "tanaka"  # tanaka | classic | fixed
    max_hr_constant: float = 208.0
    max_hr_age_coefficient: float = 0.7
    sleep_need_hours: float | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> UserProfile:
        return _from_mapping(cls, data)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EngineContext:
    """Initialization state returned by :func:`setup`.

    Holds the read-only configuration snapshot for one or more scoring
    calls.  ``initialized`` is False only for contexts built by hand
    without going through ``setup()``.
    """

    defaults: SystemDefaults = field(default_factory=SystemDefaults)
    profile: UserProfile = field(default_factory=UserProfile)
    initialized: bool = False

    @property
    def sleep_need_hours(self) -> float:
        need = self.profile.sleep_need_hours
        if need and need > 0:
            return float(need)
        return self.defaults.sleep_need_hours


def setup(
    defaults: SystemDefaults | Mapping[str, Any] | None = None,
    profile: UserProfile | Mapping[str, Any] | None = None,
) -> EngineContext:
    """Create the engine context from structs or plain mappings."""
    if not isinstance(defaults, SystemDefaults):
        defaults = SystemDefaults.from_mapping(defaults)
    if not isinstance(profile, UserProfile):
        profile = UserProfile.from_mapping(profile)
    logger.debug("Engine context initialized (max_hr_formula=%s)", profile.max_hr_formula)
    return EngineContext(defaults=defaults, profile=profile, initialized=True)


def load_config(path: str | Path) -> EngineContext:
    """Load ``{"defaults": {...}, "profile": {...}}`` from a JSON file."""
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise TypeError(f"config file must hold a JSON object, got {type(data).__name__}")
    return setup(data.get("defaults"), data.get("profile"))
