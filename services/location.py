"""Sources for the viewer's current position."""

import logging
import math
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import ValidationError

from models import UserLocation

logger = logging.getLogger(__name__)


class LocationUnavailable(Exception):
    """Permission was denied or no fix could be obtained."""


class LocationProvider(ABC):
    @abstractmethod
    async def current_location(self) -> UserLocation:
        """Return the current position or raise LocationUnavailable."""


class StaticLocationProvider(LocationProvider):
    """A fixed position, e.g. coordinates typed in by the user or passed on the CLI."""

    def __init__(self, location: Optional[UserLocation]):
        self.location = location

    async def current_location(self) -> UserLocation:
        if self.location is None:
            raise LocationUnavailable("Location permission denied")
        return self.location


def parse_coordinates(latitude: str, longitude: str) -> UserLocation:
    """
    Parse user-entered coordinates.

    Raises:
        ValueError: if either value is not a number or is out of range
    """
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError):
        raise ValueError("Please enter valid coordinates")

    if math.isnan(lat) or math.isnan(lng):
        raise ValueError("Please enter valid coordinates")

    try:
        return UserLocation(latitude=lat, longitude=lng)
    except ValidationError as e:
        logger.debug(f"Rejected coordinates {latitude!r}, {longitude!r}: {e}")
        raise ValueError("Please enter valid coordinates")
