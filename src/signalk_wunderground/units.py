"""Unit conversions from Signal K base units to Weather Underground units.

Signal K reports SI values (m/s, radians, Kelvin, Pascal, ratio 0..1) while the
Weather Underground upload protocol expects imperial units.

Rounding is half up: integers round ties towards +infinity and decimals round
ties away from zero, using the exact binary value of the float.
"""

import math
from decimal import ROUND_HALF_UP, Decimal

MPH_PER_MS = 2.237
DEGREES_PER_RADIAN = 57.2958
PASCAL_PER_INHG = 3386.388


def round_int(value: float) -> int:
    return int(math.floor(value + 0.5))


def round_to(value: float, digits: int) -> float:
    """Round to a number of decimals, ties away from zero.

    Raises:
        ValueError: for infinity or NaN
        decimal.InvalidOperation: for values too large to quantize
    """
    if not math.isfinite(value):
        raise ValueError(f"Cannot round {value}")
    return float(Decimal(value).quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP))


def ms_to_mph(value: float) -> float:
    return value * MPH_PER_MS


def radians_to_degrees(value: float) -> float:
    return value * DEGREES_PER_RADIAN


def kelvin_to_fahrenheit(value: float) -> float:
    return (value - 273.15) * 9 / 5 + 32


def pascal_to_inhg(value: float) -> float:
    return value / PASCAL_PER_INHG


def ratio_to_percent(value: float) -> int:
    return round_int(100 * float(value))


def wind_speed_mph(value: float) -> float:
    """Wind speed or gust in mph, 2 decimals"""
    return round_to(ms_to_mph(value), 2)


def wind_direction_degrees(value: float) -> int:
    return round_int(radians_to_degrees(value))


def temperature_f(value: float) -> float:
    """Air, dew point or water temperature in Fahrenheit, 1 decimal"""
    return round_to(kelvin_to_fahrenheit(value), 1)


def pressure_inhg(value: float) -> float:
    return round_to(pascal_to_inhg(value), 2)


def uv_index(value: float) -> float:
    return round_to(float(value), 2)
