import logging
from math import atan2, cos, radians, sin, sqrt
from typing import Optional

from signalk_wunderground.models import Coordinates

logger = logging.getLogger("signalk_wunderground.geofence")

# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0

# Submissions are suppressed beyond this distance from the station
GEOFENCE_RADIUS_METERS = 400.0


def haversine_distance(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance in meters using the Haversine formula"""
    lat1, lon1 = radians(a.latitude), radians(a.longitude)
    lat2, lon2 = radians(b.latitude), radians(b.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(h), sqrt(1 - h))

    return EARTH_RADIUS_KM * c * 1000


def is_within_range(
    current: Optional[Coordinates],
    reference: Optional[Coordinates],
    threshold_meters: float = GEOFENCE_RADIUS_METERS,
) -> bool:
    """Check whether the vessel is close enough to the station to report.

    A missing position on either side denies the submission.
    """
    if current is None or reference is None:
        logger.info("No position available, treating vessel as out of range")
        return False

    distance = haversine_distance(current, reference)
    if distance > threshold_meters:
        logger.info(f"Vessel is {distance:.0f}m away from the station (limit {threshold_meters:.0f}m)")
        return False

    logger.debug(f"Vessel is {distance:.0f}m from the station")
    return True
