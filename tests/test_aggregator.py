import random

from signalk_wunderground import units
from signalk_wunderground.aggregator import (
    DEW_POINT,
    DEW_POINT_ALIAS,
    HUMIDITY,
    POSITION,
    PRESSURE,
    TEMPERATURE,
    WIND_DIRECTION,
    WIND_SPEED,
    AggregationWindow,
    median,
)
from signalk_wunderground.models import Coordinates


def test_median_odd_and_even():
    assert median([3.0, 1.0, 2.0]) == 2.0
    assert median([4.0, 1.0, 3.0, 2.0]) == 2.5
    assert median([7.5]) == 7.5


def test_median_of_nothing_is_none():
    assert median([]) is None


def test_median_ignores_order():
    values = [1.2, 9.4, 3.3, 3.3, 0.5, 7.1]
    expected = median(values)
    for _ in range(10):
        shuffled = values[:]
        random.shuffle(shuffled)
        assert median(shuffled) == expected


def test_wind_speed_median_and_gust():
    window = AggregationWindow()
    for speed in [5.0, 7.0, 6.0]:
        window.add_wind_speed(speed)

    snapshot = window.snapshot()
    assert snapshot.wind_speed_median == 6.0
    assert snapshot.wind_gust_max == 7.0


def test_gust_tracks_maximum_converted_speed():
    window = AggregationWindow()
    raw = [2.0, 4.5, 3.1, 0.0, 4.4]
    for value in raw:
        assert window.ingest(WIND_SPEED, value)

    snapshot = window.snapshot()
    assert snapshot.wind_gust_max == max(units.wind_speed_mph(v) for v in raw)
    assert all(snapshot.wind_gust_max >= sample for sample in snapshot.wind_speed_samples)
    assert len(snapshot.wind_speed_samples) == len(raw)


def test_latest_value_wins():
    window = AggregationWindow()
    window.ingest(TEMPERATURE, 280.0)
    window.ingest(TEMPERATURE, 293.15)
    window.ingest(PRESSURE, 101325)
    window.ingest(WIND_DIRECTION, 0.5)

    snapshot = window.snapshot()
    assert snapshot.temperature == 68.0
    assert snapshot.pressure == 29.92
    assert snapshot.wind_direction == 29


def test_dew_point_aliases():
    window = AggregationWindow()
    window.ingest(DEW_POINT_ALIAS, 273.15)
    assert window.snapshot().dew_point == 32.0
    window.ingest(DEW_POINT, 283.15)
    assert window.snapshot().dew_point == 50.0


def test_humidity_is_percentage():
    window = AggregationWindow()
    window.ingest(HUMIDITY, 0.734)
    assert window.snapshot().humidity == 73


def test_position():
    window = AggregationWindow()
    window.ingest(POSITION, {"latitude": 52.1, "longitude": 4.2, "altitude": 0})
    assert window.snapshot().position == Coordinates(latitude=52.1, longitude=4.2)


def test_unknown_path_and_bad_values_are_ignored():
    window = AggregationWindow()
    assert not window.ingest("navigation.speedOverGround", 3.2)
    assert not window.ingest(TEMPERATURE, "warm")
    assert not window.ingest(POSITION, {"latitude": 123.0, "longitude": 4.0})
    assert not window.ingest(WIND_SPEED, None)
    assert window.snapshot().is_empty


def test_snapshot_does_not_mutate():
    window = AggregationWindow()
    window.add_wind_speed(3.0)
    window.snapshot()
    assert window.snapshot().wind_speed_samples == (3.0,)


def test_reset_clears_everything_and_is_idempotent():
    window = AggregationWindow()
    window.add_wind_speed(10.0)
    window.ingest(TEMPERATURE, 290.0)
    window.ingest(POSITION, {"latitude": 52.0, "longitude": 4.0})

    window.reset()
    once = window.snapshot()
    window.reset()
    twice = window.snapshot()

    assert once == twice
    assert once.is_empty
    assert once.wind_gust_max is None
    assert once.wind_speed_median is None


def test_take_returns_snapshot_and_resets():
    window = AggregationWindow()
    window.add_wind_speed(4.0)
    taken = window.take()
    assert taken.wind_speed_samples == (4.0,)
    assert window.snapshot().is_empty


def test_humidity_tie_rounds_up():
    window = AggregationWindow()
    window.ingest(HUMIDITY, 0.125)
    assert window.snapshot().humidity == 13


def test_non_finite_values_are_ignored():
    window = AggregationWindow()
    for path in (HUMIDITY, WIND_DIRECTION, TEMPERATURE, PRESSURE, WIND_SPEED):
        assert not window.ingest(path, float("inf"))
        assert not window.ingest(path, float("-inf"))
        assert not window.ingest(path, float("nan"))
    assert not window.ingest(POSITION, {"latitude": float("nan"), "longitude": 4.0})
    assert not window.ingest(WIND_SPEED, 1e308)

    snapshot = window.snapshot()
    assert snapshot.is_empty
    assert snapshot.wind_gust_max is None


def test_nan_wind_speed_does_not_reach_median():
    window = AggregationWindow()
    window.ingest(WIND_SPEED, float("nan"))
    window.add_wind_speed(4.0)
    assert window.snapshot().wind_speed_samples == (4.0,)
    assert window.snapshot().wind_speed_median == 4.0
