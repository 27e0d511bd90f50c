"""Feed orderings. Every strategy returns a new list and is stable."""

from typing import Callable, Dict, List, Optional, Sequence

from models import Event, SortOption, UserLocation
from services.geo import distance_to

SortStrategy = Callable[[Sequence[Event], Optional[UserLocation]], List[Event]]


def sort_recent(
    events: Sequence[Event], location: Optional[UserLocation] = None
) -> List[Event]:
    return sorted(events, key=lambda event: event.created_at, reverse=True)


def sort_popular(
    events: Sequence[Event], location: Optional[UserLocation] = None
) -> List[Event]:
    # No popularity signal exists yet; soonest start stands in for it.
    return sorted(events, key=lambda event: event.start_date)


def sort_nearby(
    events: Sequence[Event], location: Optional[UserLocation] = None
) -> List[Event]:
    if location is None:
        return list(events)

    located = []
    unlocated = []
    for event in events:
        distance = distance_to(event, location)
        if distance is None:
            unlocated.append(event)
        else:
            located.append((distance, event))

    located.sort(key=lambda pair: pair[0])
    return [event for _, event in located] + unlocated


SORT_STRATEGIES: Dict[SortOption, SortStrategy] = {
    SortOption.RECENT: sort_recent,
    SortOption.POPULAR: sort_popular,
    SortOption.NEARBY: sort_nearby,
}


def sort_events(
    events: Sequence[Event],
    option: SortOption,
    location: Optional[UserLocation] = None,
) -> List[Event]:
    return SORT_STRATEGIES[option](events, location)
