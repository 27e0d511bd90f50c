"""Pytest configuration and fixtures."""

import math
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from models import Category, Event, Located, Unlocated, UserLocation
from services.geo import EARTH_RADIUS_MILES
from services.supabase_client import AuthError, BackendError

NOW = datetime.now(timezone.utc).replace(microsecond=0)


class FakeRepository:
    """In-memory stand-in for SupabaseEventRepository."""

    def __init__(self, events=None, users=None, profiles=None):
        self.events = list(events or [])
        self.users = dict(users or {})
        self.profiles = dict(profiles or {})
        self.fail_scoped = False
        self.fail_public = False
        self.fail_profile = False
        self.calls = []

    def get_current_user(self, access_token):
        self.calls.append(("get_current_user", access_token))
        if access_token not in self.users:
            raise AuthError("Invalid JWT")
        return self.users[access_token]

    def get_profile(self, user_id):
        self.calls.append(("get_profile", user_id))
        if self.fail_profile:
            raise BackendError("profiles unavailable")
        return self.profiles.get(user_id)

    def fetch_scoped_events(self, university, since):
        self.calls.append(("fetch_scoped_events", university))
        if self.fail_scoped:
            raise BackendError("scoped query failed")
        return [e for e in self.events if e.university == university and e.start_date >= since]

    def fetch_public_events(self, since):
        self.calls.append(("fetch_public_events", None))
        if self.fail_public:
            raise BackendError("public query failed")
        return [e for e in self.events if e.university is None and e.start_date >= since]

    def get_user_events(self, user_id):
        events = [e for e in self.events if e.created_by == user_id]
        return sorted(events, key=lambda e: e.created_at, reverse=True)

    def get_events_within_radius(self, latitude, longitude, radius_km):
        self.calls.append(("get_events_within_radius", (latitude, longitude, radius_km)))
        return list(self.events)

    def create_event(self, user_id, new_event):
        profile = self.profiles.get(user_id)
        event = Event(
            id=str(uuid4()),
            title=new_event.title,
            description=new_event.description,
            category=new_event.category,
            start_date=new_event.start_date,
            end_date=new_event.end_date,
            created_at=NOW,
            position=new_event.position,
            university=profile.university if profile else None,
            created_by=user_id,
        )
        self.events.append(event)
        return event

    def get_creator_name(self, user_id):
        profile = self.profiles.get(user_id)
        return profile.university if profile and profile.university else "Anonymous"


def offset_north(origin: UserLocation, miles: float) -> Located:
    """A point ``miles`` due north of ``origin``; exact under the haversine formula."""
    degrees = miles / (EARTH_RADIUS_MILES * math.pi / 180)
    return Located(latitude=origin.latitude + degrees, longitude=origin.longitude)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_event():
    """Factory for events with sensible defaults."""

    def _make(
        title="Free Pizza Night",
        category=Category.FOOD,
        start_in=timedelta(days=1),
        created_ago=timedelta(hours=1),
        university=None,
        position=None,
        **kwargs,
    ):
        return Event(
            id=kwargs.pop("id", str(uuid4())),
            title=title,
            description=kwargs.pop("description", "Join us"),
            category=category,
            start_date=NOW + start_in,
            created_at=NOW - created_ago,
            position=position if position is not None else Unlocated(),
            university=university,
            created_by=kwargs.pop("created_by", "user-1"),
            **kwargs,
        )

    return _make


@pytest.fixture
def user_location():
    return UserLocation(latitude=40.0, longitude=-74.0)


@pytest.fixture
def fake_repository():
    """Factory for FakeRepository instances."""
    return FakeRepository


@pytest.fixture
def north_of():
    return offset_north
