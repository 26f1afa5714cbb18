"""Tests for vitalscore.analytics.timeutils -- windows, normalization, bucketing."""

from datetime import date, datetime, timedelta

import pytest

from vitalscore.analytics.timeutils import (
    bucket_by,
    clamp,
    day_bounds,
    invert,
    is_in_intervals,
    mean,
    night_of,
    night_window,
    normalize,
    overlaps_intervals,
    to_hours,
    to_minutes,
    trailing_window,
)

from tests.conftest import DAY, at, make_sample


class TestWindows:
    def test_day_bounds(self):
        start, end = day_bounds(DAY)
        assert start == datetime(2024, 3, 5, 0, 0)
        assert end == datetime(2024, 3, 6, 0, 0)

    def test_trailing_window(self):
        end = datetime(2024, 3, 5)
        assert trailing_window(end, 14) == (datetime(2024, 2, 20), end)

    def test_night_window_is_noon_to_noon(self):
        assert night_window(DAY) == (datetime(2024, 3, 4, 12), datetime(2024, 3, 5, 12))

    def test_night_of_evening_belongs_to_next_morning(self):
        assert night_of(datetime(2024, 3, 4, 23)) == date(2024, 3, 5)

    def test_night_of_early_morning(self):
        assert night_of(datetime(2024, 3, 5, 7)) == date(2024, 3, 5)

    def test_night_of_afternoon_starts_next_night(self):
        assert night_of(datetime(2024, 3, 5, 13)) == date(2024, 3, 6)


class TestConversions:
    def test_to_minutes(self):
        assert to_minutes(timedelta(hours=1, minutes=30)) == 90.0

    def test_to_hours(self):
        assert to_hours(timedelta(minutes=45)) == 0.75


class TestNormalize:
    def test_midpoint(self):
        assert normalize(50, 0, 100) == 50.0

    def test_scaled_range(self):
        assert normalize(52.5, 20, 85) == pytest.approx(50.0)

    def test_clamped_low(self):
        assert normalize(-5, 0, 10) == 0.0

    def test_clamped_high(self):
        assert normalize(500, 0, 10) == 100.0

    def test_degenerate_range(self):
        assert normalize(7, 5, 5) == 100.0

    def test_invert(self):
        assert invert(30) == 70.0
        assert invert(150) == 0.0

    def test_clamp(self):
        assert clamp(5, 0, 3) == 3
        assert clamp(-1, 0, 3) == 0


class TestMean:
    def test_empty(self):
        assert mean([]) == 0.0

    def test_values(self):
        assert mean([1, 2, 3]) == 2.0

    def test_generator(self):
        assert mean(x for x in (2.0, 4.0)) == 3.0


class TestBucketBy:
    def test_by_day(self):
        samples = [
            make_sample(at(23, day=date(2024, 3, 4)), 60),
            make_sample(at(1), 62),
            make_sample(at(9), 70),
        ]
        buckets = bucket_by(samples, "day")
        assert list(buckets) == [date(2024, 3, 4), date(2024, 3, 5)]
        assert [s.quantity for s in buckets[date(2024, 3, 5)]] == [62, 70]

    def test_by_hour(self):
        samples = [make_sample(at(10, 5), 70), make_sample(at(10, 55), 80), make_sample(at(9, 30), 60)]
        buckets = bucket_by(samples, "hour")
        assert list(buckets) == [at(9), at(10)]
        assert len(buckets[at(10)]) == 2

    def test_empty(self):
        assert bucket_by([], "day") == {}

    def test_unknown_bucket(self):
        with pytest.raises(ValueError):
            bucket_by([], "week")


class TestIntervals:
    def test_half_open_membership(self):
        intervals = [(at(1), at(3))]
        assert is_in_intervals(at(1), intervals)
        assert is_in_intervals(at(2, 59), intervals)
        assert not is_in_intervals(at(3), intervals)

    def test_no_intervals(self):
        assert not is_in_intervals(at(1), [])

    def test_overlap(self):
        intervals = [(at(10, 15), at(10, 45))]
        assert overlaps_intervals(at(10), at(11), intervals)
        assert not overlaps_intervals(at(11), at(12), intervals)
        assert not overlaps_intervals(at(9), at(10, 15), intervals)
