import logging
import math
import statistics
import threading
from typing import Any, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from signalk_wunderground import units
from signalk_wunderground.models import Coordinates, WindowSnapshot

logger = logging.getLogger("signalk_wunderground.aggregator")

# Signal K paths
POSITION = "navigation.position"
WIND_SPEED = "environment.wind.speedOverGround"
WIND_DIRECTION = "environment.wind.directionGround"
WATER_TEMPERATURE = "environment.water.temperature"
DEW_POINT = "environment.outside.dewPointTemperature"
DEW_POINT_ALIAS = "environment.outside.dewpoint"
TEMPERATURE = "environment.outside.temperature"
UV = "environment.outside.uv"
PRESSURE = "environment.outside.pressure"
HUMIDITY = "environment.outside.humidity"

# Paths that overwrite a "latest value" slot, with their converter
LATEST_VALUE_PATHS = {
    WIND_DIRECTION: ("wind_direction", units.wind_direction_degrees),
    DEW_POINT: ("dew_point", units.temperature_f),
    DEW_POINT_ALIAS: ("dew_point", units.temperature_f),
    TEMPERATURE: ("temperature", units.temperature_f),
    WATER_TEMPERATURE: ("water_temperature", units.temperature_f),
    PRESSURE: ("pressure", units.pressure_inhg),
    HUMIDITY: ("humidity", units.ratio_to_percent),
    UV: ("uv", units.uv_index),
}

SUBSCRIBED_PATHS = (POSITION, WIND_SPEED, *LATEST_VALUE_PATHS)


def median(values: Sequence[float]) -> Optional[float]:
    """Median of the samples, or None when there are none"""
    if not values:
        return None
    return float(statistics.median(sorted(values)))


def finite(value: Any) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError("value is not finite")
    return number


def parse_position(value: Any) -> Coordinates:
    if isinstance(value, Coordinates):
        return value
    if isinstance(value, Mapping):
        return Coordinates(latitude=finite(value["latitude"]), longitude=finite(value["longitude"]))
    raise TypeError(f"Unsupported position value: {value!r}")


class AggregationWindow:
    """Accumulates one submission interval worth of sensor readings.

    Wind speed is kept as a list of samples (reduced to a median on snapshot)
    together with a running gust maximum. Every other metric only keeps the
    most recent value. All access goes through a single lock so the ingestion
    thread and the submission task never interleave.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._clear()

    def _clear(self) -> None:
        self.wind_speed_samples: List[float] = []
        self.wind_gust_max: Optional[float] = None
        self.wind_direction: Optional[int] = None
        self.dew_point: Optional[float] = None
        self.temperature: Optional[float] = None
        self.water_temperature: Optional[float] = None
        self.pressure: Optional[float] = None
        self.humidity: Optional[int] = None
        self.uv: Optional[float] = None
        self.position: Optional[Coordinates] = None

    def ingest(self, path: str, value: Any) -> bool:
        """Convert a raw Signal K value and store it.

        Returns True if the reading was stored, False if the path is unknown
        or the value could not be converted.
        """
        try:
            if path == WIND_SPEED:
                self.add_wind_speed(units.wind_speed_mph(finite(value)))
            elif path == POSITION:
                position = parse_position(value)
                with self._lock:
                    self.position = position
            elif path in LATEST_VALUE_PATHS:
                attr, convert = LATEST_VALUE_PATHS[path]
                converted = convert(finite(value))
                with self._lock:
                    setattr(self, attr, converted)
            else:
                logger.debug(f"Unknown path: {path}")
                return False
        except (TypeError, ValueError, ArithmeticError, KeyError, ValidationError) as e:
            logger.warning(f"Ignoring malformed value for {path}: {value!r} ({e})")
            return False
        return True

    def add_wind_speed(self, speed_mph: float) -> None:
        """Record an already converted wind speed sample"""
        with self._lock:
            self._add_wind_speed(speed_mph)

    def _add_wind_speed(self, speed: float) -> None:
        if self.wind_gust_max is None or speed > self.wind_gust_max:
            self.wind_gust_max = speed
        self.wind_speed_samples.append(speed)

    def snapshot(self) -> WindowSnapshot:
        with self._lock:
            return self._snapshot()

    def reset(self) -> None:
        with self._lock:
            self._clear()

    def take(self) -> WindowSnapshot:
        """Snapshot and reset in a single critical section"""
        with self._lock:
            snapshot = self._snapshot()
            self._clear()
        return snapshot

    def _snapshot(self) -> WindowSnapshot:
        return WindowSnapshot(
            wind_speed_samples=tuple(self.wind_speed_samples),
            wind_speed_median=median(self.wind_speed_samples),
            wind_gust_max=self.wind_gust_max,
            wind_direction=self.wind_direction,
            dew_point=self.dew_point,
            temperature=self.temperature,
            water_temperature=self.water_temperature,
            pressure=self.pressure,
            humidity=self.humidity,
            uv=self.uv,
            position=self.position,
        )
