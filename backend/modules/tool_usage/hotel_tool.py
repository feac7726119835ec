"""
modules/tool_usage/hotel_tool.py
---------------------------------
Provides hotel data.

Live mode  (GOOGLE_PLACES_API_KEY set, USE_STUB_HOTELS=false):
    1. GET /geocode/json              address="<destination>, India" → centre
    2. GET /place/nearbysearch/json   type=lodging, radius=10 km
    3. GET /place/details/json        per place: name, rating, price_level, address, types, photos

Fallback: five generated "<destination> ..." hotels.

Price: Google only exposes price_level (0–4), so
    price_per_night = price_level × 1000 + 1000 INR   (2000 when unknown)

distance_from_center is the haversine km from the geocoded city centre.
image is a PHOTO_PROXY_PATH link; photo() fetches the bytes with the key.

Results are cached per query (destination, dates, guests, maxPrice) in the
injected cache for CACHE_TTL_SECONDS; a cache hit keeps its original
source/provider and is flagged cached=True.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Optional
from urllib.parse import quote

import requests

import config
from db.cache import cache_key
from schemas.travel import Accommodation
from modules.tool_usage.distance_tool import haversine_km
from modules.tool_usage.result import LIVE, Sourced, failure_text

logger = logging.getLogger(__name__)

GEOCODE_URL        = "https://maps.googleapis.com/maps/api/geocode/json"
NEARBY_SEARCH_URL  = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
PLACE_DETAILS_URL  = "https://maps.googleapis.com/maps/api/place/details/json"
PLACE_PHOTO_URL    = "https://maps.googleapis.com/maps/api/place/photo"

# Hotel image links point here; only photo() sees the keyed upstream URL
PHOTO_PROXY_PATH = "/api/hotels/photo"

PROVIDER_GOOGLE_PLACES = "google_places"
PROVIDER_MOCK = "mock"

_CACHE_NAMESPACE = "hotels"
_DETAIL_FIELDS = "name,rating,price_level,formatted_address,types,photos,geometry"
_UNKNOWN_PRICE = 2000
_MAX_PAGE_SIZE = 100
_DEFAULT_PAGE_SIZE = 20

# Google place type → amenity label
_TYPE_AMENITIES: tuple[tuple[str, str], ...] = (
    ("lodging",    "Accommodation"),
    ("restaurant", "Restaurant"),
    ("gym",        "Gym"),
    ("spa",        "Spa"),
    ("parking",    "Parking"),
    ("wifi",       "Free WiFi"),
)


def extract_amenities(types: list[str]) -> list[str]:
    amenities = [label for place_type, label in _TYPE_AMENITIES if place_type in types]
    return amenities or ["Basic Amenities"]


def price_from_level(price_level: Any) -> float:
    if isinstance(price_level, (int, float)) and not isinstance(price_level, bool) and price_level > 0:
        return float(price_level * 1000 + 1000)
    return float(_UNKNOWN_PRICE)


def paginate(items: list, page: Any = 1, limit: Any = _DEFAULT_PAGE_SIZE) -> dict:
    """Slice *items*; page ≥ 1 and 1 ≤ limit ≤ 100 (bad values fall back to defaults)."""
    page_num = max(1, _int_or(page, 1))
    limit_num = min(_MAX_PAGE_SIZE, max(1, _int_or(limit, _DEFAULT_PAGE_SIZE)))
    skip = (page_num - 1) * limit_num
    return {
        "items":      items[skip: skip + limit_num],
        "total":      len(items),
        "page":       page_num,
        "limit":      limit_num,
        "totalPages": math.ceil(len(items) / limit_num),
    }


def _int_or(value: Any, default: int) -> int:
    try:
        # "0" is treated like a missing value
        return int(str(value).strip()) or default
    except (TypeError, ValueError):
        return default


def accommodation_record(acc: Accommodation) -> dict:
    """Accommodation → JSON-safe dict (cache payload and API body share this shape)."""
    record = {
        "id":                 acc.id,
        "name":               acc.name,
        "price":              acc.price,
        "currency":           config.CURRENCY_UNIT,
        "rating":             acc.rating,
        "image":              acc.image_url,
        "location":           acc.location,
        "amenities":          list(acc.amenities),
        "type":               acc.type,
        "distanceFromCenter": acc.distance_from_center,
    }
    if acc.coordinates is not None:
        record["coordinates"] = [acc.lat, acc.lng]
    if acc.cluster is not None:
        record["cluster"] = acc.cluster
    return record


# (suffix, price, rating, amenities, type, km from centre)
_MOCK_HOTELS: tuple[tuple[str, int, float, tuple[str, ...], str, float], ...] = (
    ("City Inn",        1200, 4.2, ("Free WiFi", "Parking"),    "Hotel",  2.5),
    ("Comfort Stay",    1800, 4.4, ("Free WiFi", "Breakfast"),  "Hotel",  4.0),
    ("Budget Lodge",     800, 3.9, ("Free WiFi",),              "Hostel", 6.5),
    ("Business Hotel",  2600, 4.5, ("Gym", "Restaurant"),       "Hotel",  1.2),
    ("Boutique Resort", 3200, 4.7, ("Spa", "Restaurant"),       "Resort", 12.0),
)


def mock_hotels(destination: str, max_price: float = 0) -> list[Accommodation]:
    dest = destination or "Unknown"
    hotels = [
        Accommodation(
            id=i + 1,
            name=f"{dest} {suffix}",
            price=float(price),
            rating=rating,
            amenities=list(amenities),
            type=kind,
            location=dest,
            distance_from_center=km,
        )
        for i, (suffix, price, rating, amenities, kind, km) in enumerate(_MOCK_HOTELS)
    ]
    if max_price > 0:
        hotels = [h for h in hotels if h.price <= max_price]
    return hotels


# ---------------------------------------------------------------------------
# HotelTool
# ---------------------------------------------------------------------------

class HotelTool:
    """Google Places lodging search with a generated fallback and a TTL cache."""

    def __init__(
        self,
        cache: Any = None,
        session: Optional[requests.Session] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.cache = cache
        self.session = session or requests.Session()
        self.api_key: str = config.GOOGLE_PLACES_API_KEY if api_key is None else api_key
        self.timeout: float = config.EXTERNAL_API_TIMEOUT_S if timeout is None else timeout

    def search(
        self,
        destination: str,
        max_price: Any = 0,
        checkin: str = "",
        checkout: str = "",
        adults: Any = 1,
        rooms: Any = 1,
    ) -> Sourced[list[Accommodation]]:
        """All hotels for the query (unpaginated), price-capped when max_price > 0."""
        cap = max(0, _int_or(max_price, 0))
        key = cache_key(
            _CACHE_NAMESPACE, destination=destination, checkin=checkin,
            checkout=checkout, adults=str(adults), rooms=str(rooms), maxPrice=cap,
        )

        if self.cache is not None:
            hit = self.cache.get(key)
            if hit is not None:
                logger.debug("[HotelTool] cache hit %s", key)
                return Sourced(
                    data=[Accommodation.from_dict(h, i) for i, h in enumerate(hit["hotels"])],
                    source=hit.get("source", LIVE),
                    provider=hit.get("provider", ""),
                    error=hit.get("error", ""),
                    cached=True,
                )

        result = self._fetch(destination, cap)
        if self.cache is not None:
            self.cache.set(key, {
                "hotels":   [accommodation_record(h) for h in result.data],
                "source":   result.source,
                "provider": result.provider,
                "error":    result.error,
            })
        return result

    def _fetch(self, destination: str, cap: int) -> Sourced[list[Accommodation]]:
        if config.USE_STUB_HOTELS or not self.api_key or not destination:
            return Sourced.fallback(mock_hotels(destination, cap), PROVIDER_MOCK,
                                    error="live hotel search disabled")
        try:
            hotels = self._google_places(destination)
        except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
            error = failure_text(exc, self.api_key)
            logger.warning("[HotelTool] Google Places failed for %r, using mock hotels: %s",
                           destination, error)
            return Sourced.fallback(mock_hotels(destination, cap), PROVIDER_MOCK, error=error)

        if cap > 0:
            hotels = [h for h in hotels if not h.price or h.price <= cap]
        logger.info("[HotelTool] %d live hotel(s) for %r", len(hotels), destination)
        return Sourced.live(hotels, PROVIDER_GOOGLE_PLACES)

    # ── Google Places ─────────────────────────────────────────────────────

    def photo(self, photo_reference: str, max_width: int = 800) -> tuple[bytes, str]:
        """Fetch one Places photo.  Returns (body, content type); raises on failure."""
        if not self.api_key:
            raise ValueError("live hotel search disabled")
        resp = self.session.get(PLACE_PHOTO_URL, params={
            "maxwidth":        max_width,
            "photo_reference": photo_reference,
            "key":             self.api_key,
        }, timeout=self.timeout)
        resp.raise_for_status()
        return resp.content, resp.headers.get("Content-Type", "image/jpeg")

    def _get(self, url: str, params: dict) -> dict:
        resp = self.session.get(url, params={**params, "key": self.api_key}, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def _geocode(self, destination: str) -> tuple[float, float]:
        data = self._get(GEOCODE_URL, {"address": f"{destination}, India"})
        if data.get("status") != "OK" or not data.get("results"):
            raise ValueError(f"geocoding failed for {destination!r}: status={data.get('status')!r}")
        loc = data["results"][0]["geometry"]["location"]
        return float(loc["lat"]), float(loc["lng"])

    def _google_places(self, destination: str) -> list[Accommodation]:
        center = self._geocode(destination)
        nearby = self._get(NEARBY_SEARCH_URL, {
            "location": f"{center[0]},{center[1]}",
            "radius":   config.GOOGLE_PLACES_SEARCH_RADIUS_M,
            "type":     "lodging",
            "language": "en",
        })
        # ZERO_RESULTS included: an empty area serves the generated list
        status = nearby.get("status")
        if status != "OK":
            raise ValueError(f"nearby search status={status!r}")

        places = (nearby.get("results") or [])[: config.GOOGLE_PLACES_MAX_RESULTS]
        return [self._hotel_from_place(place, destination, center) for place in places]

    def _hotel_from_place(self, place: dict, destination: str, center: tuple[float, float]) -> Accommodation:
        try:
            details = self._get(PLACE_DETAILS_URL, {
                "place_id": place["place_id"], "fields": _DETAIL_FIELDS, "language": "en",
            }).get("result") or {}
        except requests.RequestException as exc:
            # one missing detail page should not drop the whole search
            logger.warning("[HotelTool] details failed for %s: %s", place.get("place_id"),
                           failure_text(exc, self.api_key))
            details = {}

        loc = (details.get("geometry") or place.get("geometry") or {}).get("location") or {}
        lat, lng = loc.get("lat"), loc.get("lng")
        distance = (
            round(haversine_km(center[0], center[1], float(lat), float(lng)), 2)
            if lat is not None and lng is not None else 0.0
        )
        photos = details.get("photos") or []
        image = (
            f"{PHOTO_PROXY_PATH}?ref={quote(photos[0]['photo_reference'], safe='')}"
            if photos and photos[0].get("photo_reference") else ""
        )
        return Accommodation(
            id=place.get("place_id"),
            name=details.get("name") or place.get("name") or "Hotel",
            price=price_from_level(details.get("price_level")) if details else float(_UNKNOWN_PRICE),
            rating=float(details.get("rating") or place.get("rating") or 0),
            lat=float(lat) if lat is not None else None,
            lng=float(lng) if lng is not None else None,
            amenities=extract_amenities(details.get("types") or place.get("types") or []),
            distance_from_center=distance,
            location=details.get("formatted_address") or place.get("vicinity") or destination,
            image_url=image,
            raw=place,
        )


