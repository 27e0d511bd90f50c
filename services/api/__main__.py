"""HTTP API for the campus events feed, map, creation and profile views."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query

from models import ALL, Event, NewEvent, SortOption, UserLocation
from services.config import API_PORT, DEFAULT_RADIUS_MILES, LOG_LEVEL, MAP_SEARCH_RADIUS_KM
from services.discovery import FEED, HOME, FeedCoordinator, FeedSettings
from services.location import StaticLocationProvider
from services.supabase_client import AuthError, BackendError, SupabaseEventRepository

logger = logging.getLogger(__name__)

app = FastAPI(title="Campus Events API")


def get_repository() -> SupabaseEventRepository:
    return SupabaseEventRepository()


def get_access_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    """Bearer token from the Authorization header, if any."""
    if not authorization:
        return None

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Invalid authorization header")
    return token.strip()


def require_user(
    access_token: Optional[str] = Depends(get_access_token),
    repository: SupabaseEventRepository = Depends(get_repository),
) -> str:
    """User id of the caller; 401 when there is no valid session."""
    if not access_token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        return repository.get_current_user(access_token)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))


def _viewer_location(lat: Optional[float], lng: Optional[float]) -> Optional[UserLocation]:
    if lat is None and lng is None:
        return None
    if lat is None or lng is None:
        raise HTTPException(status_code=400, detail="lat and lng must be given together")
    return UserLocation(latitude=lat, longitude=lng)


def _feed_response(coordinator: FeedCoordinator, events: List[Event]) -> Dict[str, Any]:
    return {
        "count": len(events),
        "events": [event.to_api() for event in events],
        "error": coordinator.last_error,
        "university": coordinator.viewer.university,
        "filters": coordinator.state.model_dump(mode="json"),
    }


async def _build_feed(
    settings: FeedSettings,
    repository: SupabaseEventRepository,
    access_token: Optional[str],
    location: Optional[UserLocation],
    category: str,
    sort: Optional[SortOption] = None,
    radius: Optional[float] = None,
) -> Dict[str, Any]:
    coordinator = FeedCoordinator(
        repository,
        location_provider=StaticLocationProvider(location),
        settings=settings,
        access_token=access_token,
    )

    try:
        coordinator.set_category(category)
        if sort is not None:
            coordinator.set_sort(sort)
        if radius is not None:
            coordinator.set_radius(radius)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await coordinator.locate()
    events = await coordinator.refresh()
    return _feed_response(coordinator, events)


@app.get("/")
async def root():
    """API root endpoint."""
    return {"status": "ok", "service": "Campus Events API"}


@app.get("/health")
async def health():
    """Health check endpoint for Docker."""
    return {"status": "healthy", "service": "Campus Events API"}


@app.get("/events")
async def list_events(
    category: str = ALL,
    sort: SortOption = SortOption.RECENT,
    radius: float = DEFAULT_RADIUS_MILES,
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    access_token: Optional[str] = Depends(get_access_token),
    repository: SupabaseEventRepository = Depends(get_repository),
):
    """Feed of today's and upcoming events visible to the caller."""
    return await _build_feed(
        FEED,
        repository,
        access_token,
        _viewer_location(lat, lng),
        category,
        sort=sort,
        radius=radius,
    )


@app.get("/events/home")
async def home_events(
    category: str = ALL,
    access_token: Optional[str] = Depends(get_access_token),
    repository: SupabaseEventRepository = Depends(get_repository),
):
    """Upcoming events by start date with only the category filter."""
    return await _build_feed(HOME, repository, access_token, None, category)


@app.get("/events/map")
def map_events(
    lat: float = Query(ge=-90, le=90),
    lng: float = Query(ge=-180, le=180),
    radius_km: float = Query(default=MAP_SEARCH_RADIUS_KM, gt=0),
    repository: SupabaseEventRepository = Depends(get_repository),
):
    """Events around a map centre, as reported by the backend radius search."""
    try:
        events = repository.get_events_within_radius(lat, lng, radius_km)
    except BackendError as e:
        logger.error(f"Map query failed at ({lat}, {lng}): {e}")
        raise HTTPException(status_code=502, detail="Failed to fetch events")

    return {"count": len(events), "events": [event.to_api() for event in events]}


@app.post("/events", status_code=201)
def create_event(
    new_event: NewEvent,
    user_id: str = Depends(require_user),
    repository: SupabaseEventRepository = Depends(get_repository),
):
    """Create an event owned by the caller."""
    try:
        event = repository.create_event(user_id, new_event)
    except BackendError as e:
        logger.error(f"Error creating event for {user_id}: {e}")
        raise HTTPException(status_code=502, detail=f"Failed to create event: {e}")
    return event.to_api()


@app.get("/me")
def my_profile(
    user_id: str = Depends(require_user),
    repository: SupabaseEventRepository = Depends(get_repository),
):
    """The caller's profile."""
    try:
        profile = repository.get_profile(user_id)
    except BackendError as e:
        logger.error(f"Error fetching profile for {user_id}: {e}")
        raise HTTPException(status_code=502, detail="Failed to fetch profile")

    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile.model_dump(mode="json")


@app.get("/me/events")
def my_events(
    user_id: str = Depends(require_user),
    repository: SupabaseEventRepository = Depends(get_repository),
):
    """Events the caller has posted, newest first."""
    events = repository.get_user_events(user_id)
    return {"count": len(events), "events": [event.to_api() for event in events]}


@app.get("/users/{user_id}/name")
def creator_name(
    user_id: str,
    repository: SupabaseEventRepository = Depends(get_repository),
):
    return {"user_id": user_id, "name": repository.get_creator_name(user_id)}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=API_PORT)
