"""
schemas/travel.py
-----------------
Dataclass definitions for the inputs the planning engines work on.

All records live for one request/response cycle; nothing here is persisted.
Prices are in INR.

Coordinates arrive in three shapes from clients and providers:
  {"coordinates": [lat, lng]}   {"lat": .., "lng": ..}   {"latitude": .., "longitude": ..}
from_dict() accepts all three.  Unparseable values become None; NaN strings
stay NaN so the validation layer can report them.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Any, Optional


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _finite(value: Any, default: float = 0.0) -> float:
    """Numeric field value; missing, NaN and infinite inputs give *default*."""
    num = _to_float(value)
    return num if num is not None and math.isfinite(num) else default


def _extract_lat_lng(data: dict) -> tuple[Optional[float], Optional[float]]:
    """Pull (lat, lng) out of any supported coordinate shape."""
    coords = data.get("coordinates")
    if isinstance(coords, (list, tuple)):
        if len(coords) != 2:
            return None, None
        return _to_float(coords[0]), _to_float(coords[1])
    if isinstance(coords, dict):
        return _to_float(coords.get("lat")), _to_float(coords.get("lng"))
    if "lat" in data or "lng" in data:
        return _to_float(data.get("lat")), _to_float(data.get("lng"))
    return _to_float(data.get("latitude")), _to_float(data.get("longitude"))


def _str_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v) for v in value]


@dataclass
class Attraction:
    """
    A visitable point of interest.

    duration is free text ("2-3 hours", "Full day"); the planners convert it
    with route_planner.parse_duration_hours().
    """
    id: Any = None
    name: str = ""
    category: str = ""
    rating: float = 0.0                  # 0–5
    price: float = 0.0                   # entry fee, INR
    duration: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    description: str = ""
    facilities: list[str] = field(default_factory=list)
    reviews: int = 0
    image_url: str = ""
    city: str = ""
    # Original payload, echoed back in API responses
    raw: dict = field(default_factory=dict, repr=False, compare=False)

    @property
    def coordinates(self) -> Optional[tuple[float, float]]:
        if self.lat is None or self.lng is None:
            return None
        return (self.lat, self.lng)

    @classmethod
    def from_dict(cls, data: dict, index: int = 0) -> "Attraction":
        lat, lng = _extract_lat_lng(data)
        return cls(
            id=data.get("id", f"attraction_{index}"),
            name=str(data.get("name") or f"Attraction {index + 1}"),
            category=str(data.get("category") or ""),
            rating=_finite(data.get("rating")),
            price=_finite(data.get("price")),
            duration=str(data.get("duration") or ""),
            lat=lat,
            lng=lng,
            description=str(data.get("description") or ""),
            facilities=_str_list(data.get("facilities")),
            reviews=int(_finite(data.get("reviews"))),
            image_url=str(data.get("imageUrl") or data.get("image_url") or ""),
            city=str(data.get("city") or ""),
            raw=dict(data),
        )


@dataclass
class Accommodation:
    """A lodging option.  cluster is set transiently by accommodation_clustering."""
    id: Any = None
    name: str = ""
    price: float = 0.0                   # per night, INR
    rating: float = 0.0
    lat: Optional[float] = None
    lng: Optional[float] = None
    amenities: list[str] = field(default_factory=list)
    distance_from_center: float = 0.0    # km
    type: str = "Hotel"
    location: str = ""
    image_url: str = ""
    cluster: Optional[int] = None
    raw: dict = field(default_factory=dict, repr=False, compare=False)

    @property
    def coordinates(self) -> Optional[tuple[float, float]]:
        if self.lat is None or self.lng is None:
            return None
        return (self.lat, self.lng)

    @classmethod
    def from_dict(cls, data: dict, index: int = 0) -> "Accommodation":
        lat, lng = _extract_lat_lng(data)
        cluster = data.get("cluster")
        return cls(
            id=data.get("id", f"accommodation_{index}"),
            name=str(data.get("name") or "Accommodation"),
            price=_finite(data.get("price")),
            rating=_finite(data.get("rating")),
            lat=lat,
            lng=lng,
            amenities=_str_list(data.get("amenities")),
            distance_from_center=(
                _finite(data.get("distanceFromCenter", data.get("distance_from_center")))
            ),
            type=str(data.get("type") or "Hotel"),
            location=str(data.get("location") or ""),
            image_url=str(data.get("image") or data.get("imageUrl") or ""),
            cluster=int(cluster) if isinstance(cluster, int) else None,
            raw=dict(data),
        )


@dataclass
class UserProfile:
    """Request-scoped scoring input.  Never stored."""
    interests: list[str] = field(default_factory=list)
    budget: str = "medium"               # low | medium | high | luxury
    group_type: str = "couple"           # solo | couple | family | friends | group
    group_size: int = 1
    trip_type: str = "leisure"           # leisure | adventure | cultural | relaxation | budget | business
    duration: int = 3                    # days
    previous_visits: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "UserProfile":
        data = data or {}
        return cls(
            interests=_str_list(data.get("interests") or data.get("userInterests")),
            budget=str(data.get("budget") or "medium"),
            group_type=str(data.get("groupType") or data.get("group_type") or "couple"),
            group_size=int(_finite(data.get("groupSize") or data.get("group_size")) or 1),
            trip_type=str(data.get("tripType") or data.get("trip_type") or "leisure"),
            duration=int(_finite(data.get("duration")) or 3),
            previous_visits=_str_list(data.get("previousVisits")),
        )

    def to_dict(self) -> dict:
        return {
            "interests":      self.interests,
            "budget":         self.budget,
            "groupType":      self.group_type,
            "groupSize":      self.group_size,
            "tripType":       self.trip_type,
            "duration":       self.duration,
            "previousVisits": self.previous_visits,
        }
