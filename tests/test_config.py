"""Tests for vitalscore.config -- defaults, profile and engine context."""

import dataclasses
import json
import logging

import pytest

from vitalscore.config import (
    EngineContext,
    SystemDefaults,
    UserProfile,
    load_config,
    setup,
)


class TestSystemDefaults:
    def test_documented_defaults(self):
        d = SystemDefaults()
        assert d.resting_heart_rate == 60.0
        assert d.max_heart_rate == 190.0
        assert d.hrv_baseline == 45.0
        assert d.heart_rate_zone_weights == (1.0, 2.0, 3.0, 4.0, 5.0)
        assert d.hrr_zone_lower_bounds == (0.5, 0.6, 0.7, 0.8, 0.9)
        assert d.stress_hr_sensitivity == 0.6
        assert d.baseline_days == 14

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            SystemDefaults().resting_heart_rate = 50.0

    def test_from_mapping_missing_keys_keep_defaults(self):
        d = SystemDefaults.from_mapping({"hrv_baseline": 50})
        assert d.hrv_baseline == 50
        assert d.resting_heart_rate == 60.0

    def test_from_mapping_case_insensitive(self):
        assert SystemDefaults.from_mapping({"RESTING_HEART_RATE": 55}).resting_heart_rate == 55

    def test_from_mapping_none_means_default(self):
        assert SystemDefaults.from_mapping({"max_heart_rate": None}).max_heart_rate == 190.0

    def test_from_mapping_lists_become_tuples(self):
        d = SystemDefaults.from_mapping({"heart_rate_zone_weights": [1, 2, 4, 8, 16]})
        assert d.heart_rate_zone_weights == (1, 2, 4, 8, 16)

    def test_unknown_key_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="vitalscore.config"):
            d = SystemDefaults.from_mapping({"resting_hart_rate": 55})
        assert d.resting_heart_rate == 60.0
        assert "resting_hart_rate" in caplog.text

    def test_non_mapping_raises(self):
        with pytest.raises(TypeError):
            SystemDefaults.from_mapping([("hrv_baseline", 50)])

    def test_from_none(self):
        assert SystemDefaults.from_mapping(None) == SystemDefaults()

    def test_to_dict(self):
        assert SystemDefaults().to_dict()["sleep_need_hours"] == 8.0

    def test_string_for_number_raises(self):
        with pytest.raises(TypeError, match="hrv_baseline"):
            SystemDefaults.from_mapping({"hrv_baseline": "fifty"})

    def test_bool_for_number_raises(self):
        with pytest.raises(TypeError):
            SystemDefaults.from_mapping({"resting_heart_rate": True})

    def test_fractional_int_raises(self):
        with pytest.raises(ValueError):
            SystemDefaults.from_mapping({"baseline_days": 7.5})

    def test_whole_float_for_int_accepted(self):
        assert SystemDefaults.from_mapping({"baseline_days": 7.0}).baseline_days == 7

    @pytest.mark.parametrize("field", ["heart_rate_zone_weights", "hrr_zone_lower_bounds"])
    def test_zone_tuple_wrong_length(self, field):
        with pytest.raises(ValueError, match=field):
            SystemDefaults.from_mapping({field: [1, 2, 3]})

    def test_zone_bounds_not_increasing(self):
        with pytest.raises(ValueError):
            SystemDefaults.from_mapping({"hrr_zone_lower_bounds": [0.5, 0.7, 0.6, 0.8, 0.9]})

    def test_zone_weights_not_numbers(self):
        with pytest.raises(TypeError):
            SystemDefaults.from_mapping({"heart_rate_zone_weights": [1, 2, "3", 4, 5]})

    def test_zone_weights_not_a_list(self):
        with pytest.raises(TypeError):
            SystemDefaults.from_mapping({"heart_rate_zone_weights": 5})


class TestUserProfile:
    def test_defaults(self):
        p = UserProfile()
        assert p.age == 30
        assert p.max_hr_formula == "tanaka"
        assert p.resting_heart_rate is None

    def test_from_mapping(self):
        p = UserProfile.from_mapping({"Age": 45, "max_hr_formula": "classic"})
        assert p.age == 45
        assert p.max_hr_formula == "classic"

    def test_string_age_raises(self):
        with pytest.raises(TypeError, match="age"):
            UserProfile.from_mapping({"age": "thirty"})

    def test_numeric_formula_raises(self):
        with pytest.raises(TypeError):
            UserProfile.from_mapping({"max_hr_formula": 220})


class TestSetup:
    def test_initialized(self):
        ctx = setup()
        assert ctx.initialized
        assert ctx.defaults == SystemDefaults()

    def test_hand_built_context_is_not_initialized(self):
        assert not EngineContext().initialized

    def test_accepts_mappings(self):
        ctx = setup({"hrv_baseline": 50}, {"age": 40})
        assert ctx.defaults.hrv_baseline == 50
        assert ctx.profile.age == 40

    def test_accepts_structs(self):
        d = SystemDefaults(sleep_need_hours=7.0)
        assert setup(d).defaults is d

    def test_sleep_need_prefers_profile(self):
        assert setup(profile={"sleep_need_hours": 9}).sleep_need_hours == 9.0
        assert setup().sleep_need_hours == 8.0

    def test_non_positive_sleep_need_uses_default(self):
        assert setup(profile={"sleep_need_hours": -2}).sleep_need_hours == 8.0

    def test_malformed_mapping_raises_at_setup(self):
        with pytest.raises(TypeError):
            setup({}, {"age": "thirty"})
        with pytest.raises(ValueError):
            setup({"heart_rate_zone_weights": [1, 2, 3]})


class TestLoadConfig:
    def test_load(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"defaults": {"water_target": 3000}, "profile": {"age": 25}}))
        ctx = load_config(path)
        assert ctx.initialized
        assert ctx.defaults.water_target == 3000
        assert ctx.profile.age == 25

    def test_missing_sections(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{}")
        assert load_config(path) == setup()

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        with pytest.raises(TypeError):
            load_config(path)
