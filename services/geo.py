"""Great-circle distance helpers."""

import math
from typing import Optional

from models import Event, Located, UserLocation

EARTH_RADIUS_MILES = 3958.8
KM_PER_MILE = 1.609344


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in miles between two points given in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lon / 2) ** 2
    )
    # Rounding can push a a hair past 1 for near-antipodal points.
    a = min(1.0, a)
    return 2 * EARTH_RADIUS_MILES * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_to(event: Event, location: UserLocation) -> Optional[float]:
    """Miles from ``location`` to the event, or None for events without a coordinate."""
    if not isinstance(event.position, Located):
        return None
    return haversine_miles(
        location.latitude,
        location.longitude,
        event.position.latitude,
        event.position.longitude,
    )


def km_to_miles(km: float) -> float:
    return km / KM_PER_MILE


def miles_to_km(miles: float) -> float:
    return miles * KM_PER_MILE
