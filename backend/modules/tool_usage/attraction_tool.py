"""
modules/tool_usage/attraction_tool.py
--------------------------------------
Fetches attractions for a destination.

Live:      RapidAPI Travel Advisor
             GET /locations/search      query=<destination>, limit=1  → location_id
             GET /attractions/list      location_id, currency=INR, lunit=km
           Auth: X-RapidAPI-Key / X-RapidAPI-Host headers (config.RAPIDAPI_KEY)

Fallback:  bundled records for Mumbai, Delhi and Goa; any other destination
           gets a single generic "<destination> Tourist Spot".

Travel Advisor has no category or facility fields; both are inferred from
keywords in the name/description.  price = price_level × 100 INR and every
live record gets the duration "1-2 hours".

Stub mode: USE_STUB_ATTRACTIONS=true (or RAPIDAPI_KEY absent) skips the
           network entirely.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

import config
from schemas.travel import Attraction
from modules.tool_usage.result import Sourced

logger = logging.getLogger(__name__)

TRAVEL_ADVISOR_BASE_URL = "https://travel-advisor.p.rapidapi.com"

PROVIDER_TRAVEL_ADVISOR = "travel_advisor"
PROVIDER_MOCK = "mock"

_LIVE_DURATION = "1-2 hours"
_PRICE_LEVEL_INR = 100

# ---------------------------------------------------------------------------
# Keyword → category / facility inference (first match wins for category)
# ---------------------------------------------------------------------------
_CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("beach",     ("beach", "coast", "shore", "seaside")),
    ("religious", ("temple", "mosque", "church", "dargah", "gurudwara", "shrine", "cathedral")),
    ("heritage",  ("fort", "palace", "heritage", "caves", "ruins", "unesco", "historic", "tomb")),
    ("monument",  ("monument", "memorial", "gate", "minar", "statue", "tower")),
    ("cultural",  ("museum", "gallery", "art", "culture", "theatre")),
    ("nature",    ("park", "garden", "lake", "waterfall", "forest", "wildlife", "zoo", "hill")),
    ("scenic",    ("promenade", "viewpoint", "sunset", "scenic", "drive")),
    ("adventure", ("trek", "rafting", "adventure", "safari", "paragliding", "diving")),
    ("shopping",  ("market", "bazaar", "mall", "shopping")),
)
_DEFAULT_CATEGORY = "attraction"

_FACILITY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Guided Tours",  ("tour", "guide")),
    ("Photography",   ("view", "scenic", "photo", "iconic", "architecture")),
    ("Museum",        ("museum", "exhibit")),
    ("Parking",       ("parking",)),
    ("Restrooms",     ("restroom", "toilet")),
    ("Boat Rides",    ("boat", "ferry", "cruise")),
    ("Water Sports",  ("water sports", "surf", "snorkel")),
    ("Food Stalls",   ("food", "street food", "snacks")),
    ("Shopping",      ("shop", "market", "souvenir")),
    ("Prayer",        ("temple", "mosque", "church", "dargah")),
)
_DEFAULT_FACILITIES = ["Photography"]


def categorize(name: str, description: str = "") -> str:
    text = f"{name} {description}".lower()
    for category, words in _CATEGORY_KEYWORDS:
        if any(w in text for w in words):
            return category
    return _DEFAULT_CATEGORY


def extract_facilities(description: str) -> list[str]:
    text = (description or "").lower()
    found = [facility for facility, words in _FACILITY_KEYWORDS if any(w in text for w in words)]
    return found or list(_DEFAULT_FACILITIES)


# ---------------------------------------------------------------------------
# Bundled fallback data
# ---------------------------------------------------------------------------

def _a(id_, name, rating, price, duration, description, lat, lng, category, facilities, reviews) -> dict:
    return {
        "id": id_, "name": name, "rating": rating, "price": price, "duration": duration,
        "description": description, "coordinates": [lat, lng], "category": category,
        "facilities": facilities, "imageUrl": "", "reviews": reviews,
    }


_MOCK_ATTRACTIONS: dict[str, list[dict]] = {
    "mumbai": [
        _a(1, "Gateway of India", 4.5, 0, "1-2 hours",
           "Iconic monument and historic gateway to Mumbai", 18.9220, 72.8347,
           "monument", ["Photography", "Boat Rides", "Shopping"], 12500),
        _a(2, "Marine Drive", 4.3, 0, "2-3 hours",
           "Famous promenade along the Arabian Sea", 18.9445, 72.8238,
           "scenic", ["Walking", "Photography", "Food Stalls"], 8900),
        _a(3, "Elephanta Caves", 4.4, 250, "3-4 hours",
           "Ancient rock-cut caves with Hindu sculptures", 18.9585, 72.9308,
           "heritage", ["Boat Transport", "Guided Tours", "Museum"], 6700),
        _a(4, "Chhatrapati Shivaji Terminus", 4.6, 0, "1 hour",
           "UNESCO World Heritage railway station", 18.9398, 72.8355,
           "heritage", ["Photography", "Architecture Tour", "Shopping"], 5400),
        _a(5, "Haji Ali Dargah", 4.2, 0, "1-2 hours",
           "Famous mosque on an islet", 18.9833, 72.8167,
           "religious", ["Photography", "Prayer", "Cultural Experience"], 4300),
    ],
    "delhi": [
        _a(1, "Red Fort", 4.6, 50, "2-3 hours",
           "Historic fort and UNESCO World Heritage Site", 28.6562, 77.2410,
           "heritage", ["Audio Guide", "Museum", "Photography"], 15200),
        _a(2, "India Gate", 4.4, 0, "1-2 hours",
           "War memorial and national monument", 28.6129, 77.2295,
           "monument", ["Photography", "Walking", "Evening Light Show"], 11800),
        _a(3, "Qutub Minar", 4.5, 40, "2-3 hours",
           "Tallest brick minaret in the world", 28.5244, 77.1855,
           "heritage", ["Photography", "Guided Tours", "Archaeological Site"], 9200),
    ],
    "goa": [
        _a(1, "Calangute Beach", 4.2, 0, "Full day",
           "Popular beach destination with water sports", 15.5385, 73.7553,
           "beach", ["Water Sports", "Beach Shacks", "Shopping"], 8900),
        _a(2, "Old Goa Churches", 4.6, 0, "2-3 hours",
           "UNESCO World Heritage churches", 15.4986, 73.9108,
           "heritage", ["Photography", "Guided Tours", "Religious Sites"], 5600),
    ],
}


def mock_attractions(destination: str) -> list[Attraction]:
    """Bundled records for known cities, else one generic spot named after *destination*."""
    rows = _MOCK_ATTRACTIONS.get(destination.strip().lower())
    if rows is None:
        rows = [_a(1, f"{destination} Tourist Spot", 4.2, 0, "2-3 hours",
                   f"A popular tourist destination in {destination}", 28.6139, 77.2090,
                   "attraction", ["Parking", "Restrooms", "Guided Tours"], 1000)]
    records = [Attraction.from_dict(row, i) for i, row in enumerate(rows)]
    for r in records:
        r.city = destination
    return records


# ---------------------------------------------------------------------------
# AttractionTool
# ---------------------------------------------------------------------------

class AttractionTool:
    """Travel Advisor client with a bundled-data fallback.  The session is injectable."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key: str = config.RAPIDAPI_KEY if api_key is None else api_key
        self.session = session or requests.Session()
        self.timeout: float = config.EXTERNAL_API_TIMEOUT_S if timeout is None else timeout

    def search(
        self,
        destination: str,
        min_rating: float = 0.0,
        max_results: int = 20,
    ) -> Sourced[list[Attraction]]:
        """
        Attractions for *destination*.

        Never raises for provider trouble: no key, HTTP errors, bad payloads
        and empty results all return the bundled data tagged "fallback".
        """
        if config.USE_STUB_ATTRACTIONS or not self.api_key or not destination:
            return Sourced.fallback(
                mock_attractions(destination), PROVIDER_MOCK,
                error="live attraction search disabled",
            )

        try:
            records = self._travel_advisor(destination, min_rating, max_results)
        except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
            logger.warning("[AttractionTool] Travel Advisor failed for %r, using bundled data: %s",
                           destination, exc)
            return Sourced.fallback(mock_attractions(destination), PROVIDER_MOCK, error=str(exc))

        if not records:
            logger.info("[AttractionTool] Travel Advisor returned nothing for %r", destination)
            return Sourced.fallback(mock_attractions(destination), PROVIDER_MOCK,
                                    error="no results from travel_advisor")

        logger.info("[AttractionTool] %d live attraction(s) for %r", len(records), destination)
        return Sourced.live(records, PROVIDER_TRAVEL_ADVISOR)

    # ── Travel Advisor ────────────────────────────────────────────────────

    def _headers(self) -> dict:
        return {"X-RapidAPI-Key": self.api_key, "X-RapidAPI-Host": config.RAPIDAPI_HOST}

    def _get(self, path: str, params: dict) -> dict:
        resp = self.session.get(
            f"{TRAVEL_ADVISOR_BASE_URL}{path}",
            params=params, headers=self._headers(), timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def _travel_advisor(self, destination: str, min_rating: float, max_results: int) -> list[Attraction]:
        found = self._get("/locations/search", {"query": destination, "limit": 1})
        locations = found.get("data") or []
        location_id = (locations[0].get("result_object") or locations[0]).get("location_id") if locations else None
        if not location_id:
            return []

        listing = self._get("/attractions/list", {
            "location_id": location_id,
            "currency":    config.CURRENCY_UNIT,
            "lang":        "en_US",
            "lunit":       "km",
            "limit":       max_results,
        })
        records: list[Attraction] = []
        for idx, item in enumerate(listing.get("data") or []):
            # Travel Advisor pads lists with ad rows that have no name
            if not item.get("name"):
                continue
            rating = float(item.get("rating") or 0)
            if rating < min_rating:
                continue
            records.append(_from_travel_advisor(item, idx, destination))
        return records


def _from_travel_advisor(item: dict[str, Any], idx: int, destination: str) -> Attraction:
    name = item.get("name") or f"Attraction {idx + 1}"
    description = item.get("description") or ""
    price_level = item.get("price_level")
    try:
        price = float(price_level) * _PRICE_LEVEL_INR if price_level else 0.0
    except (TypeError, ValueError):
        # Travel Advisor sometimes sends "$$" style levels
        price = float(len(str(price_level))) * _PRICE_LEVEL_INR
    image = (((item.get("photo") or {}).get("images") or {}).get("large") or {}).get("url", "")
    return Attraction.from_dict({
        "id":          item.get("location_id") or idx,
        "name":        name,
        "rating":      item.get("rating") or 0,
        "price":       price,
        "duration":    _LIVE_DURATION,
        "description": description,
        "lat":         item.get("latitude"),
        "lng":         item.get("longitude"),
        "imageUrl":    image,
        "category":    categorize(name, description),
        "facilities":  extract_facilities(description),
        "city":        destination,
        "reviews":     item.get("num_reviews") or 0,
    }, idx)
