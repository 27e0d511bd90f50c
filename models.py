import math
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from urllib.parse import quote

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field


class Category(str, Enum):
    FOOD = "FOOD"
    CONCERT = "CONCERT"
    SPORTS = "SPORTS"
    ACADEMIC = "ACADEMIC"
    OTHER = "OTHER"


ALL = "ALL"
CategorySelection = Union[Category, Literal["ALL"]]


class SortOption(str, Enum):
    RECENT = "RECENT"
    # Stand-in until events carry a real interest signal: soonest start first.
    POPULAR = "POPULAR"
    NEARBY = "NEARBY"


class UserLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class Located(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["located"] = "located"
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    address: Optional[str] = None
    building_name: Optional[str] = None


class Unlocated(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["unlocated"] = "unlocated"
    address: Optional[str] = None
    building_name: Optional[str] = None


Position = Annotated[Union[Located, Unlocated], Field(discriminator="kind")]


def _coordinate(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def position_from_row(location: Optional[dict[str, Any]]) -> Union[Located, Unlocated]:
    """
    Parse the nested ``location`` JSON of an events row.

    The creation form stores ``(0, 0)`` for addresses typed in by hand, so that
    pair is read as "no coordinate" along with missing or non-numeric values.
    """
    if not isinstance(location, dict):
        return Unlocated()

    address = location.get("address") or None
    building_name = location.get("buildingName") or location.get("building_name") or None

    lat = _coordinate(location.get("latitude"))
    lng = _coordinate(location.get("longitude"))
    if (
        lat is None
        or lng is None
        or (lat == 0 and lng == 0)
        or not -90 <= lat <= 90
        or not -180 <= lng <= 180
    ):
        return Unlocated(address=address, building_name=building_name)

    return Located(
        latitude=lat, longitude=lng, address=address, building_name=building_name
    )


def position_to_row(position: Union[Located, Unlocated]) -> dict[str, Any]:
    """Inverse of ``position_from_row``; unlocated positions carry null coordinates."""
    return {
        "latitude": getattr(position, "latitude", None),
        "longitude": getattr(position, "longitude", None),
        "address": position.address or "",
        "buildingName": position.building_name or "",
    }


class Event(BaseModel):
    id: str
    title: str = Field(min_length=1)
    description: str = ""
    category: Category
    start_date: AwareDatetime
    end_date: Optional[AwareDatetime] = None
    created_at: AwareDatetime
    position: Position = Field(default_factory=Unlocated)
    university: Optional[str] = None
    created_by: str
    participants: list[str] = Field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Event":
        """Build an Event from a Supabase ``events`` row."""
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            description=row.get("description") or "",
            category=row.get("category"),
            start_date=row.get("start_date"),
            end_date=row.get("end_date"),
            created_at=row.get("created_at"),
            position=position_from_row(row.get("location")),
            university=row.get("university") or None,
            created_by=row.get("created_by"),
            participants=row.get("participants") or [],
        )

    @property
    def is_public(self) -> bool:
        return self.university is None

    def is_expired(self, now: datetime) -> bool:
        return self.start_date < now

    def display_location(self) -> str:
        building = self.position.building_name
        address = self.position.address
        if building:
            return f"{building} ({address})" if address else building
        if address:
            return address
        if isinstance(self.position, Located):
            return "Location coordinates only"
        return "Location not specified"

    def directions_url(self, platform: str = "android") -> Optional[str]:
        """Maps deep link for the event, or None when it has no coordinate."""
        if not isinstance(self.position, Located):
            return None

        lat, lng = self.position.latitude, self.position.longitude
        label = quote(self.position.address or "Event Location")
        if platform == "ios":
            return f"maps:?ll={lat},{lng}&q={label}"
        return f"geo:{lat},{lng}?q={label}"

    def to_api(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["location"] = position_to_row(self.position)
        data["location_label"] = self.display_location()
        del data["position"]
        return data


class NewEvent(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    category: Category = Category.OTHER
    start_date: AwareDatetime
    end_date: Optional[AwareDatetime] = None
    position: Position

    def to_row(self, created_by: str, university: Optional[str]) -> dict[str, Any]:
        row: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "location": position_to_row(self.position),
            "start_date": self.start_date.isoformat(),
            "created_by": created_by,
            "university": university,
        }
        if self.end_date is not None:
            row["end_date"] = self.end_date.isoformat()
        return row


class UserProfile(BaseModel):
    id: str
    user_id: str
    university: Optional[str] = None
    bio: Optional[str] = None
    interests: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "UserProfile":
        """Build a profile from a ``profiles`` row; sign-up leaves bio and interests null."""
        return cls(
            id=str(row["id"]),
            user_id=row.get("user_id"),
            university=row.get("university") or None,
            bio=row.get("bio"),
            interests=row.get("interests") or [],
            created_at=row.get("created_at"),
        )


class Viewer(BaseModel):
    """The caller a feed is being built for; both fields may be unknown."""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    university: Optional[str] = None


class FilterState(BaseModel):
    category: CategorySelection = ALL
    sort: SortOption = SortOption.RECENT
    radius: float = Field(default=5.0, ge=0)
