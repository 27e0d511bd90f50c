"""Per-view pipeline presets."""

from dataclasses import dataclass
from typing import Optional, Tuple

from models import SortOption
from services.config import (
    DEFAULT_RADIUS_MILES,
    FEED_DISTANCE_OPTIONS,
    MAP_SEARCH_RADIUS_KM,
)
from services.geo import km_to_miles


@dataclass(frozen=True)
class FeedSettings:
    """
    What a view lets the user change.

    ``distance_options`` empty means the view never filters by radius;
    ``default_radius`` is then ignored.
    """

    name: str
    sort_options: Tuple[SortOption, ...]
    default_sort: SortOption
    distance_options: Tuple[float, ...] = ()
    default_radius: Optional[float] = None

    @property
    def filters_by_distance(self) -> bool:
        return bool(self.distance_options)

    def validate_radius(self, radius: float) -> float:
        if radius not in self.distance_options:
            raise ValueError(
                f"Radius {radius} not available in {self.name} view; "
                f"choose one of {list(self.distance_options)}"
            )
        return radius

    def validate_sort(self, sort: SortOption) -> SortOption:
        if sort not in self.sort_options:
            raise ValueError(
                f"Sort {sort.value} not available in {self.name} view; "
                f"choose one of {[s.value for s in self.sort_options]}"
            )
        return sort


FEED = FeedSettings(
    name="feed",
    sort_options=(SortOption.RECENT, SortOption.POPULAR, SortOption.NEARBY),
    default_sort=SortOption.RECENT,
    distance_options=FEED_DISTANCE_OPTIONS,
    default_radius=DEFAULT_RADIUS_MILES,
)

HOME = FeedSettings(
    name="home",
    sort_options=(SortOption.POPULAR,),
    default_sort=SortOption.POPULAR,
)

_MAP_RADIUS_MILES = km_to_miles(MAP_SEARCH_RADIUS_KM)

MAP = FeedSettings(
    name="map",
    sort_options=(SortOption.NEARBY,),
    default_sort=SortOption.NEARBY,
    distance_options=(_MAP_RADIUS_MILES,),
    default_radius=_MAP_RADIUS_MILES,
)

PRESETS = {settings.name: settings for settings in (FEED, HOME, MAP)}
