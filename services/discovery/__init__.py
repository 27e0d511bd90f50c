"""
Event discovery pipeline.

Fetches the events a viewer may see (their university's plus public ones),
then narrows and orders them:
- category filter
- distance filter around the viewer's location
- RECENT / POPULAR / NEARBY ordering
"""

from services.discovery.__main__ import FeedCoordinator
from services.discovery.filters import filter_by_category, filter_by_radius
from services.discovery.merger import MergeResult, VisibilityMerger, start_of_today
from services.discovery.settings import FEED, HOME, MAP, FeedSettings
from services.discovery.sorting import sort_events

__all__ = [
    "FeedCoordinator",
    "filter_by_category",
    "filter_by_radius",
    "MergeResult",
    "VisibilityMerger",
    "start_of_today",
    "FEED",
    "HOME",
    "MAP",
    "FeedSettings",
    "sort_events",
]
