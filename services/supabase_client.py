"""Supabase client for the campus events feed."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from httpx import HTTPError
from postgrest.exceptions import APIError
from pydantic import ValidationError

from models import Category, Event, NewEvent, UserProfile
from services.config import (
    EVENTS_TABLE,
    PROFILES_TABLE,
    SUPABASE_ANON_KEY,
    SUPABASE_SERVICE_ROLE_KEY,
    SUPABASE_URL,
)
from supabase import Client, create_client  # type: ignore[attr-defined]

logger = logging.getLogger(__name__)

# Global Supabase client
_supabase: Optional[Client] = None


class BackendError(Exception):
    """A Supabase request failed."""


class AuthError(BackendError):
    """The current session could not be resolved to a user."""


def get_supabase_client() -> Client:
    """Get or create Supabase client instance."""
    global _supabase

    if _supabase is None:
        key = SUPABASE_SERVICE_ROLE_KEY or SUPABASE_ANON_KEY
        if not SUPABASE_URL or not key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_ANON_KEY (or SUPABASE_SERVICE_ROLE_KEY) "
                "must be set in environment"
            )

        _supabase = create_client(SUPABASE_URL, key)
        logger.info("✅ Supabase client initialized")

    return _supabase


def parse_events(rows: Optional[List[Dict[str, Any]]]) -> List[Event]:
    """Convert rows to Events, dropping any row that does not validate."""
    events = []
    for row in rows or []:
        try:
            events.append(Event.from_row(row))
        except (KeyError, ValidationError) as e:
            logger.warning(f"Skipping malformed event row {row.get('id')}: {e}")
    return events


# ============================================
# User Operations
# ============================================


def get_current_user(access_token: str, client: Optional[Client] = None) -> str:
    """
    Resolve an access token to a user id.

    Raises:
        AuthError: if the token is missing, expired or rejected
    """
    if not access_token:
        raise AuthError("No access token")

    supabase = client or get_supabase_client()
    try:
        response = supabase.auth.get_user(access_token)
    except Exception as e:
        raise AuthError(f"Could not resolve current user: {e}") from e

    if response is None or response.user is None:
        raise AuthError("Session has no user")
    return response.user.id


def get_user_profile(
    user_id: str, client: Optional[Client] = None
) -> Optional[UserProfile]:
    """
    Get the profile for a user.

    Returns None when the user has no profile row.

    Raises:
        BackendError: if the query fails or the row is malformed
    """
    supabase = client or get_supabase_client()
    try:
        response = (
            supabase.table(PROFILES_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
    except (APIError, HTTPError) as e:
        raise BackendError(f"Profile lookup failed for {user_id}: {e}") from e

    if not response.data:
        return None

    try:
        return UserProfile.from_row(response.data[0])
    except (KeyError, ValidationError) as e:
        raise BackendError(f"Malformed profile row for {user_id}: {e}") from e


def get_creator_name(user_id: str, client: Optional[Client] = None) -> str:
    """Display name for an event's creator (their university for now)."""
    try:
        profile = get_user_profile(user_id, client)
    except BackendError as e:
        logger.error(f"Error fetching creator profile {user_id}: {e}")
        return "Anonymous"

    if profile is None or not profile.university:
        return "Anonymous"
    return profile.university


# ============================================
# Event Operations
# ============================================


def fetch_events(
    since: datetime,
    university: Optional[str] = None,
    public_only: bool = False,
    category: Optional[Category] = None,
    client: Optional[Client] = None,
) -> List[Event]:
    """
    Query upcoming events, soonest first.

    Args:
        since: lower bound on start_date (inclusive)
        university: restrict to events scoped to this university
        public_only: restrict to events with no university scope
        category: restrict to one category

    Raises:
        BackendError: if the query fails
    """
    supabase = client or get_supabase_client()

    query = (
        supabase.table(EVENTS_TABLE).select("*").gte("start_date", since.isoformat())
    )

    if public_only:
        query = query.is_("university", "null")
    elif university is not None:
        query = query.eq("university", university)

    if category is not None:
        query = query.eq("category", category.value)

    try:
        response = query.order("start_date").execute()
    except (APIError, HTTPError) as e:
        raise BackendError(f"Event query failed: {e}") from e

    return parse_events(response.data)


def get_user_events(user_id: str, client: Optional[Client] = None) -> List[Event]:
    """Events created by a user, newest first."""
    try:
        supabase = client or get_supabase_client()
        response = (
            supabase.table(EVENTS_TABLE)
            .select("*")
            .eq("created_by", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return parse_events(response.data)
    except (APIError, HTTPError) as e:
        logger.error(f"Error fetching events for user {user_id}: {e}")
        return []


def get_events_within_radius(
    latitude: float,
    longitude: float,
    radius_km: float,
    client: Optional[Client] = None,
) -> List[Event]:
    """
    Events the backend reports within ``radius_km`` of a point, newest first.

    Raises:
        BackendError: if the RPC fails
    """
    supabase = client or get_supabase_client()
    try:
        response = supabase.rpc(
            "get_events_within_radius",
            {"user_lat": latitude, "user_lng": longitude, "radius_km": radius_km},
        ).execute()
    except (APIError, HTTPError) as e:
        raise BackendError(f"Radius query failed: {e}") from e

    events = parse_events(response.data)
    return sorted(events, key=lambda event: event.created_at, reverse=True)


def create_event(
    user_id: str, new_event: NewEvent, client: Optional[Client] = None
) -> Event:
    """
    Insert an event owned by ``user_id``, scoped to the creator's university.

    Raises:
        BackendError: if the profile lookup or insert fails
    """
    supabase = client or get_supabase_client()

    profile = get_user_profile(user_id, supabase)
    university = profile.university if profile else None

    try:
        response = (
            supabase.table(EVENTS_TABLE)
            .insert(new_event.to_row(created_by=user_id, university=university))
            .execute()
        )
    except (APIError, HTTPError) as e:
        raise BackendError(f"Failed to create event: {e}") from e

    if not response.data:
        raise BackendError("Insert returned no row")

    event = Event.from_row(response.data[0])
    logger.info(f"✅ Created event {event.id} ({event.title}) for user {user_id}")
    return event


class SupabaseEventRepository:
    """Backend calls used by the feed coordinator, bound to one client."""

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def get_current_user(self, access_token: str) -> str:
        return get_current_user(access_token, self.client)

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return get_user_profile(user_id, self.client)

    def fetch_scoped_events(self, university: str, since: datetime) -> List[Event]:
        return fetch_events(since, university=university, client=self.client)

    def fetch_public_events(self, since: datetime) -> List[Event]:
        return fetch_events(since, public_only=True, client=self.client)

    def get_user_events(self, user_id: str) -> List[Event]:
        return get_user_events(user_id, self.client)

    def get_events_within_radius(
        self, latitude: float, longitude: float, radius_km: float
    ) -> List[Event]:
        return get_events_within_radius(latitude, longitude, radius_km, self.client)

    def create_event(self, user_id: str, new_event: NewEvent) -> Event:
        return create_event(user_id, new_event, self.client)

    def get_creator_name(self, user_id: str) -> str:
        return get_creator_name(user_id, self.client)
