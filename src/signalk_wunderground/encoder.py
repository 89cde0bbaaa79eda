"""Encoding of an aggregated observation into Weather Underground parameters.

See the PWS upload protocol: every measurement is a query parameter of a
single GET request, with ``action=updateraw``.
"""

from datetime import datetime, timezone
from typing import Dict, Optional

import httpx

from signalk_wunderground.config import Config
from signalk_wunderground.exceptions import EmptyObservationError
from signalk_wunderground.models import WindowSnapshot

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ACTION = "updateraw"

# Protocol parameter name -> snapshot attribute
MEASUREMENT_PARAMETERS = {
    "winddir": "wind_direction",
    "windspeedmph": "wind_speed_median",
    "windgustmph": "wind_gust_max",
    "dewptf": "dew_point",
    "tempf": "temperature",
    "humidity": "humidity",
    "baromin": "pressure",
    "UV": "uv",
}


def format_dateutc(now: datetime) -> str:
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime(DATE_FORMAT)


def encode_observation(
    snapshot: WindowSnapshot, config: Config, now: Optional[datetime] = None
) -> Dict[str, str]:
    """Build the query parameters for one submission.

    Metrics that were never observed during the interval are left out rather
    than sent as zero.

    Raises:
        EmptyObservationError: if no wind speed was sampled
    """
    if not snapshot.has_wind:
        raise EmptyObservationError("No wind speed samples collected during this interval")

    if now is None:
        now = datetime.now(timezone.utc)

    params = {
        "ID": config.station_id,
        "PASSWORD": config.password,
        "dateutc": format_dateutc(now),
    }
    for name, attr in MEASUREMENT_PARAMETERS.items():
        value = getattr(snapshot, attr)
        if value is not None:
            params[name] = str(value)
    params["action"] = ACTION
    return params


def build_submission_url(params: Dict[str, str], base_url: str, redact: bool = True) -> str:
    """Render the full request URL, used for debug logging"""
    if redact and "PASSWORD" in params:
        params = {**params, "PASSWORD": "***"}
    return str(httpx.URL(base_url, params=params))
