"""Tests for vitalscore.samples -- record parsing and the in-memory provider."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from vitalscore.samples import (
    BiometricSample,
    InMemorySampleProvider,
    SampleKind,
    SleepStage,
    Workout,
    parse_sample,
    parse_workout,
)

from tests.conftest import at, make_sample, strength_workout, write_export


class TestSleepStage:
    def test_asleep_stages(self):
        assert SleepStage.ASLEEP_DEEP.is_asleep
        assert SleepStage.ASLEEP_UNSPECIFIED.is_asleep
        assert not SleepStage.AWAKE.is_asleep
        assert not SleepStage.IN_BED.is_asleep


class TestParseSample:
    def test_heart_rate(self):
        s = parse_sample({"kind": "heart_rate", "start": "2024-03-05T10:00:00Z", "quantity": 72})
        assert s.kind is SampleKind.HEART_RATE
        assert s.start == datetime(2024, 3, 5, 10, tzinfo=timezone.utc)
        assert s.end == s.start
        assert s.quantity == 72.0

    def test_sleep_stage_by_name(self):
        s = parse_sample({
            "kind": "sleep_stage",
            "start": "2024-03-04T23:00:00",
            "end": "2024-03-05T01:00:00",
            "quantity": "asleep_deep",
        })
        assert s.stage is SleepStage.ASLEEP_DEEP
        assert s.duration_sec == 7200.0

    def test_sleep_stage_by_code(self):
        s = parse_sample({"kind": "sleep_stage", "start": "2024-03-05T01:00:00", "quantity": 5})
        assert s.stage is SleepStage.ASLEEP_REM

    def test_unknown_stage(self):
        with pytest.raises(ValueError):
            parse_sample({"kind": "sleep_stage", "start": "2024-03-05T01:00:00", "quantity": "dozing"})

    def test_unknown_stage_code(self):
        with pytest.raises(ValueError):
            parse_sample({"kind": "sleep_stage", "start": "2024-03-05T01:00:00", "quantity": 9})

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            parse_sample({"kind": "steps", "start": "2024-03-05T01:00:00", "quantity": 10})

    def test_missing_field(self):
        with pytest.raises(ValueError, match="quantity"):
            parse_sample({"kind": "heart_rate", "start": "2024-03-05T01:00:00"})

    def test_bad_quantity_type(self):
        with pytest.raises(TypeError):
            parse_sample({"kind": "heart_rate", "start": "2024-03-05T01:00:00", "quantity": "fast"})

    def test_bad_time_type(self):
        with pytest.raises(TypeError):
            parse_sample({"kind": "heart_rate", "start": 1709629200, "quantity": 60})

    def test_not_a_dict(self):
        with pytest.raises(TypeError):
            parse_sample(["heart_rate", 60])


class TestParseWorkout:
    def test_full_record(self):
        w = parse_workout({
            "activity_type": "functional_strength_training",
            "start": "2024-03-05T18:00:00",
            "end": "2024-03-05T18:45:00",
            "total_energy_kcal": 320,
        })
        assert w.is_strength
        assert w.total_energy_kcal == 320.0
        assert w.total_weight_lifted is None

    def test_missing_end(self):
        with pytest.raises(ValueError):
            parse_workout({"activity_type": "running", "start": "2024-03-05T18:00:00"})

    def test_not_strength(self):
        assert not Workout("running", at(7), at(8)).is_strength


class TestInMemorySampleProvider:
    def test_half_open_range(self):
        samples = [make_sample(at(9), 60), make_sample(at(10), 70), make_sample(at(11), 80)]
        p = InMemorySampleProvider(samples)
        got = p.samples(SampleKind.HEART_RATE, at(9), at(11))
        assert [s.quantity for s in got] == [60, 70]

    def test_filters_by_kind(self):
        p = InMemorySampleProvider([
            make_sample(at(9), 60),
            make_sample(at(9), 45, SampleKind.HRV_SDNN),
        ])
        assert len(p.samples(SampleKind.HRV_SDNN, at(0), at(23))) == 1

    def test_sorted_output(self):
        p = InMemorySampleProvider([make_sample(at(11), 80), make_sample(at(9), 60)])
        assert [s.start for s in p.samples(SampleKind.HEART_RATE, at(0), at(23))] == [at(9), at(11)]

    def test_workouts(self):
        p = InMemorySampleProvider(workouts=[strength_workout(at(18))])
        assert len(p.workouts(at(0), at(23))) == 1
        assert p.workouts(at(19), at(23)) == []

    def test_latest_timestamp(self):
        p = InMemorySampleProvider([make_sample(at(9), 60)], [strength_workout(at(18))])
        assert p.latest_timestamp == at(18)
        assert InMemorySampleProvider().latest_timestamp is None

    def test_from_json(self, tmp_path):
        path = write_export(tmp_path / "export.json", {
            "samples": [
                {"kind": "heart_rate", "start": "2024-03-05T10:00:00", "quantity": 72},
                {"kind": "hrv_sdnn", "start": "2024-03-05T06:00:00", "quantity": 44.5},
            ],
            "workouts": [
                {"activity_type": "cross_training", "start": "2024-03-05T18:00:00", "end": "2024-03-05T18:30:00"},
            ],
        })
        p = InMemorySampleProvider.from_json(path)
        assert len(p.samples(SampleKind.HRV_SDNN, at(0), at(23))) == 1
        assert p.workouts(at(0), at(23))[0].is_strength
        assert "samples=2" in repr(p)

    def test_from_dict_rejects_non_object(self):
        with pytest.raises(TypeError):
            InMemorySampleProvider.from_dict([])

    def test_duration_never_negative(self):
        s = BiometricSample(start=at(10), end=at(10) - timedelta(minutes=5), quantity=60)
        assert s.duration_sec == 0.0
