"""Tests for category and distance filters."""

import pytest

from models import ALL, Category, Located, Unlocated, UserLocation
from services.discovery.filters import filter_by_category, filter_by_radius
from services.geo import distance_to


@pytest.fixture
def mixed_events(make_event):
    return [
        make_event(title="Pizza", category=Category.FOOD),
        make_event(title="Jazz", category=Category.CONCERT),
        make_event(title="Bagels", category=Category.FOOD),
        make_event(title="Hockey", category=Category.SPORTS),
    ]


def test_category_all_is_identity(mixed_events):
    """Test that ALL returns the input unchanged."""
    assert filter_by_category(mixed_events, ALL) == mixed_events


def test_category_all_returns_new_list(mixed_events):
    """Test that the identity filter does not hand back the caller's list."""
    result = filter_by_category(mixed_events, ALL)

    assert result is not mixed_events


def test_category_exact_match(mixed_events):
    """Test that only the selected category survives, in input order."""
    result = filter_by_category(mixed_events, Category.FOOD)

    assert [e.title for e in result] == ["Pizza", "Bagels"]


def test_category_filter_is_idempotent(mixed_events):
    """Test that filtering twice by the same category changes nothing."""
    once = filter_by_category(mixed_events, Category.FOOD)

    assert filter_by_category(once, Category.FOOD) == once


def test_category_with_no_matches(mixed_events):
    """Test an empty result when nothing matches."""
    assert filter_by_category(mixed_events, Category.ACADEMIC) == []


def test_radius_without_location_is_pass_through(make_event):
    """Test that the distance filter is inert until a location is known."""
    events = [make_event(), make_event(position=Located(latitude=10, longitude=10))]

    assert filter_by_radius(events, None, 1.0) == events


def test_radius_keeps_nearby_events(make_event, user_location, north_of):
    """Test the 1/3/6 mile scenario with a 5 mile radius."""
    one = make_event(title="one", position=north_of(user_location, 1))
    three = make_event(title="three", position=north_of(user_location, 3))
    six = make_event(title="six", position=north_of(user_location, 6))

    result = filter_by_radius([six, one, three], user_location, 5)

    assert [e.title for e in result] == ["one", "three"]


def test_radius_excludes_unlocated_events(make_event, user_location):
    """Test that events without a coordinate never pass a located filter."""
    events = [
        make_event(position=Unlocated(address="Somewhere")),
        make_event(position=Unlocated()),
    ]

    assert filter_by_radius(events, user_location, 10_000) == []


def test_zero_placeholder_not_treated_as_distance_zero(make_event, north_of):
    """Test that an unlocated event is excluded even with a user at (0, 0)."""
    origin = UserLocation(latitude=0, longitude=0)
    events = [make_event(position=Unlocated()), make_event(position=north_of(origin, 0.1))]

    result = filter_by_radius(events, origin, 0.5)

    assert len(result) == 1
    assert isinstance(result[0].position, Located)


@pytest.mark.parametrize("radius", [0, 0.5, 1, 2, 5, 50])
def test_radius_never_returns_far_events(make_event, user_location, north_of, radius):
    """Test that no returned event lies beyond the radius."""
    events = [
        make_event(position=north_of(user_location, miles))
        for miles in (0, 0.25, 0.75, 1.5, 3, 4.9, 7, 20, 100)
    ]

    for event in filter_by_radius(events, user_location, radius):
        assert distance_to(event, user_location) <= radius


def test_radius_zero_keeps_event_at_user_location(make_event, user_location):
    """Test that an event exactly at the user's position passes a zero radius."""
    here = make_event(
        position=Located(latitude=user_location.latitude, longitude=user_location.longitude)
    )

    assert filter_by_radius([here], user_location, 0) == [here]
