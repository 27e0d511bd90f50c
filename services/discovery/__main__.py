import argparse
import asyncio
import logging
import sys
from typing import Callable, List, Optional

from models import ALL, CategorySelection, Event, FilterState, SortOption, UserLocation, Viewer
from services.config import LOG_LEVEL
from services.discovery.filters import filter_by_category, filter_by_radius
from services.discovery.merger import EventRepository, VisibilityMerger
from services.discovery.settings import FEED, PRESETS, FeedSettings
from services.discovery.sorting import sort_events
from services.geo import distance_to
from services.location import LocationProvider, LocationUnavailable, StaticLocationProvider
from services.supabase_client import AuthError, BackendError, SupabaseEventRepository

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch events. Please try again."

Subscriber = Callable[[List[Event]], None]


class FeedCoordinator:
    """
    Owns the filter state, viewer location and fetched events for one view,
    and republishes the filtered, sorted list whenever any of them change.

    Pipeline order is fixed: category, then radius, then sort, so events
    without a coordinate are gone before a distance sort sees them.
    Each fetch and location request is stamped with a generation number;
    a response that arrives after a newer request was issued is dropped.
    """

    def __init__(
        self,
        repository: EventRepository,
        location_provider: Optional[LocationProvider] = None,
        settings: FeedSettings = FEED,
        access_token: Optional[str] = None,
    ):
        self.repository = repository
        self.location_provider = location_provider
        self.settings = settings
        self.access_token = access_token
        self.merger = VisibilityMerger(repository)

        self.state = FilterState(
            sort=settings.default_sort, radius=settings.default_radius or 0.0
        )
        self.location: Optional[UserLocation] = None
        self.viewer = Viewer()
        self.raw_events: List[Event] = []
        self.visible: List[Event] = []
        self.last_error: Optional[str] = None
        self.degraded: List[str] = []

        self._fetch_generation = 0
        self._location_generation = 0
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for published lists; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ----------------------------
    # State changes
    # ----------------------------
    def _update_state(self, **changes) -> None:
        self.state = FilterState.model_validate({**self.state.model_dump(), **changes})

    def set_category(self, category: CategorySelection) -> List[Event]:
        self._update_state(category=category)
        return self.apply()

    def set_sort(self, sort: SortOption) -> List[Event]:
        self._update_state(sort=self.settings.validate_sort(SortOption(sort)))
        return self.apply()

    def set_radius(self, radius: float) -> List[Event]:
        self._update_state(radius=self.settings.validate_radius(radius))
        return self.apply()

    def set_location(self, location: Optional[UserLocation]) -> List[Event]:
        self._location_generation += 1
        self.location = location
        return self.apply()

    # ----------------------------
    # Pipeline
    # ----------------------------
    def apply(self) -> List[Event]:
        events = filter_by_category(self.raw_events, self.state.category)
        if self.settings.filters_by_distance:
            events = filter_by_radius(events, self.location, self.state.radius)
        events = sort_events(events, self.state.sort, self.location)

        self.visible = events
        logger.debug(
            f"Published {len(events)}/{len(self.raw_events)} events "
            f"(category={self.state.category}, sort={self.state.sort.value}, "
            f"radius={self.state.radius}, located={self.location is not None})"
        )
        for callback in list(self._subscribers):
            callback(events)
        return events

    # ----------------------------
    # Remote inputs
    # ----------------------------
    async def resolve_viewer(self) -> Viewer:
        """Current user and their university; unknown parts are left as None."""
        if not self.access_token:
            return Viewer()

        try:
            user_id = await asyncio.to_thread(
                self.repository.get_current_user, self.access_token
            )
        except AuthError as e:
            logger.warning(f"Session rejected, showing public events only: {e}")
            return Viewer()

        try:
            profile = await asyncio.to_thread(self.repository.get_profile, user_id)
        except BackendError as e:
            logger.warning(f"Profile unavailable for {user_id}: {e}")
            return Viewer(user_id=user_id)

        if profile is None:
            logger.info(f"No university found for user {user_id}")
            return Viewer(user_id=user_id)
        return Viewer(user_id=user_id, university=profile.university)

    async def locate(self) -> Optional[UserLocation]:
        """Ask the location provider for a fix and re-run the pipeline with it."""
        if self.location_provider is None:
            return self.location

        self._location_generation += 1
        generation = self._location_generation
        try:
            location = await self.location_provider.current_location()
        except LocationUnavailable as e:
            logger.info(f"Location unavailable, distance features inactive: {e}")
            return self.location

        if generation != self._location_generation:
            logger.debug("Discarding superseded location fix")
            return self.location

        self.set_location(location)
        return location

    async def refresh(self) -> List[Event]:
        """Re-fetch events for the current viewer and re-run the pipeline."""
        self._fetch_generation += 1
        generation = self._fetch_generation

        if self.state.sort == SortOption.NEARBY and self.location is None:
            await self.locate()

        viewer = await self.resolve_viewer()
        merged = await self.merger.merge(viewer.university)

        if generation != self._fetch_generation:
            logger.info(f"Discarding stale fetch #{generation}")
            return self.visible

        self.viewer = viewer
        self.raw_events = merged.events
        self.degraded = merged.errors
        self.last_error = FETCH_FAILED_MESSAGE if merged.failed else None
        return self.apply()


# ----------------------------
# Runner
# ----------------------------
def _format_event(event: Event, location: Optional[UserLocation]) -> str:
    line = (
        f"[{event.category.value}] {event.title} - "
        f"{event.start_date:%Y-%m-%d %H:%M} @ {event.display_location()}"
    )
    if location is not None:
        distance = distance_to(event, location)
        if distance is not None:
            line += f" ({distance:.1f} mi)"
    return line


async def run_feed(coordinator: FeedCoordinator) -> List[Event]:
    await coordinator.locate()
    return await coordinator.refresh()


def main():
    """Print the feed for a viewer from the command line."""
    parser = argparse.ArgumentParser(description="Campus events feed")
    parser.add_argument("--view", choices=sorted(PRESETS), default=FEED.name)
    parser.add_argument("--token", help="Supabase access token of the viewer")
    parser.add_argument("--lat", type=float, help="Viewer latitude")
    parser.add_argument("--lng", type=float, help="Viewer longitude")
    parser.add_argument("--category", default=ALL, help="Category or ALL")
    parser.add_argument("--sort", type=SortOption, help="RECENT, POPULAR or NEARBY")
    parser.add_argument("--radius", type=float, help="Radius in miles")
    args = parser.parse_args()

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    location = None
    if args.lat is not None and args.lng is not None:
        location = UserLocation(latitude=args.lat, longitude=args.lng)

    coordinator = FeedCoordinator(
        SupabaseEventRepository(),
        location_provider=StaticLocationProvider(location),
        settings=PRESETS[args.view],
        access_token=args.token,
    )

    try:
        coordinator.set_category(args.category)
        if args.sort is not None:
            coordinator.set_sort(args.sort)
        if args.radius is not None:
            coordinator.set_radius(args.radius)
    except ValueError as e:
        parser.error(str(e))

    try:
        events = asyncio.run(run_feed(coordinator))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(130)

    if coordinator.last_error:
        print(coordinator.last_error)
        sys.exit(1)

    print(f"{len(events)} events")
    for event in events:
        print(_format_event(event, coordinator.location))


if __name__ == "__main__":
    main()
