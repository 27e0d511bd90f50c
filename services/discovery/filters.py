"""Category and distance filters over an in-memory event list."""

from typing import List, Optional, Sequence

from models import ALL, CategorySelection, Event, UserLocation
from services.geo import distance_to


def filter_by_category(
    events: Sequence[Event], category: CategorySelection
) -> List[Event]:
    if category == ALL:
        return list(events)
    return [event for event in events if event.category == category]


def filter_by_radius(
    events: Sequence[Event], location: Optional[UserLocation], radius: float
) -> List[Event]:
    """
    Keep events within ``radius`` miles of ``location``.

    Without a location the filter passes everything through. With one, events
    that have no coordinate are dropped.
    """
    if location is None:
        return list(events)

    kept = []
    for event in events:
        distance = distance_to(event, location)
        if distance is not None and distance <= radius:
            kept.append(event)
    return kept
