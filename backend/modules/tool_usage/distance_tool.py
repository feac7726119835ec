"""
modules/tool_usage/distance_tool.py
-------------------------------------
Distances and travel times between lat/lng points.

Pure maths:
  haversine_km()                  great-circle km, R = 6371
  estimate_travel_time_minutes()  linear city-traffic model (CITY_MINUTES_PER_KM)

Live refinement (requires GOOGLE_PLACES_API_KEY / GOOGLE_MAPS_API_KEY):
  GET https://maps.googleapis.com/maps/api/distancematrix/json
  GET https://maps.googleapis.com/maps/api/directions/json

Each live call is attempted once with EXTERNAL_API_TIMEOUT_S.  On any failure
the tool returns the haversine estimate tagged source="fallback".

Config knobs (config.py):
  CITY_MINUTES_PER_KM     -- minutes per km for the linear estimate (default: 2.0)
  EXTERNAL_API_TIMEOUT_S  -- per-request timeout in seconds (default: 15)
"""

from __future__ import annotations
import math
import logging
import re
from typing import Any, Optional, Sequence

import requests

import config
from modules.tool_usage.result import Sourced, failure_text

logger = logging.getLogger(__name__)

DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"
DIRECTIONS_URL      = "https://maps.googleapis.com/maps/api/directions/json"

PROVIDER_MATRIX    = "google_distance_matrix"
PROVIDER_DIRECTIONS = "google_directions"
PROVIDER_HAVERSINE = "haversine"

_HTML_TAG_RE = re.compile(r"<[^>]*>")

# ---------------------------------------------------------------------------
# Pure maths
# ---------------------------------------------------------------------------

_EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points (Haversine formula) in km.

    NaN inputs propagate to a NaN result; callers filter bad points first.
    """
    r = _EARTH_RADIUS_KM
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    )
    return 2 * r * math.asin(math.sqrt(a))


def estimate_travel_time_minutes(km: float, minutes_per_km: Optional[float] = None) -> float:
    """Linear travel-time estimate.  2 min/km by default (≈ 30 km/h city traffic)."""
    rate = config.CITY_MINUTES_PER_KM if minutes_per_km is None else minutes_per_km
    return km * rate


def _latlng(point: Sequence[float]) -> str:
    return f"{point[0]},{point[1]}"


# ---------------------------------------------------------------------------
# DistanceTool
# ---------------------------------------------------------------------------


class DistanceTool:
    """
    Computes distances/travel times between (lat, lng) pairs.

    The requests session is injectable so tests never touch the network.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        minutes_per_km: Optional[float] = None,
    ) -> None:
        self.api_key: str = config.GOOGLE_PLACES_API_KEY if api_key is None else api_key
        self.session = session or requests.Session()
        self.timeout: float = config.EXTERNAL_API_TIMEOUT_S if timeout is None else timeout
        self.minutes_per_km: float = (
            config.CITY_MINUTES_PER_KM if minutes_per_km is None else minutes_per_km
        )

    # -------------------------------------------------------------------------
    # Haversine helpers
    # -------------------------------------------------------------------------

    def distance_km(self, a: Sequence[float], b: Sequence[float]) -> float:
        return haversine_km(a[0], a[1], b[0], b[1])

    def travel_time_minutes(self, km: float) -> float:
        return estimate_travel_time_minutes(km, self.minutes_per_km)

    def haversine_cell(self, a: Sequence[float], b: Sequence[float]) -> dict:
        km = self.distance_km(a, b)
        return {
            "distance_km":              km,
            "duration_min":             self.travel_time_minutes(km),
            "duration_in_traffic_min":  None,
        }

    def haversine_matrix(
        self,
        origins: Sequence[Sequence[float]],
        destinations: Sequence[Sequence[float]],
    ) -> list[list[dict]]:
        """Full len(origins) x len(destinations) matrix using Haversine + linear time."""
        return [[self.haversine_cell(o, d) for d in destinations] for o in origins]

    # -------------------------------------------------------------------------
    # Google Distance Matrix
    # -------------------------------------------------------------------------

    def distance_matrix(
        self,
        origins: Sequence[Sequence[float]],
        destinations: Sequence[Sequence[float]],
        mode: str = "driving",
    ) -> Sourced[list[list[Optional[dict]]]]:
        """
        Distance Matrix lookup.

        Live result cells are None where the API reported a non-OK element;
        callers fill those from haversine_cell().  The fallback matrix is
        fully populated.
        """
        if not origins or not destinations:
            return Sourced.live([], PROVIDER_HAVERSINE)
        if not self.api_key:
            return Sourced.fallback(
                self.haversine_matrix(origins, destinations),
                PROVIDER_HAVERSINE,
                error="Google Maps API key not configured",
            )

        params = {
            "origins":        "|".join(_latlng(o) for o in origins),
            "destinations":   "|".join(_latlng(d) for d in destinations),
            "key":            self.api_key,
            "mode":           mode,
            "units":          "metric",
            "traffic_model":  "best_guess",
            "departure_time": "now",
        }
        try:
            resp = self.session.get(DISTANCE_MATRIX_URL, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
            if data.get("status") != "OK" or not data.get("rows"):
                raise ValueError(f"status={data.get('status', 'UNKNOWN')!r}")
            matrix = [
                [_parse_matrix_element(el) for el in row.get("elements", [])]
                for row in data["rows"]
            ]
        except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
            error = failure_text(exc, self.api_key)
            logger.warning("[DistanceTool] Distance Matrix failed, using haversine: %s", error)
            return Sourced.fallback(
                self.haversine_matrix(origins, destinations),
                PROVIDER_HAVERSINE,
                error=error,
            )
        return Sourced.live(matrix, PROVIDER_MATRIX)

    # -------------------------------------------------------------------------
    # Google Directions
    # -------------------------------------------------------------------------

    def route_details(
        self,
        start: Sequence[float],
        end: Sequence[float],
        mode: str = "driving",
    ) -> Sourced[dict]:
        """
        Turn-by-turn route between two points.

        Returns {distance (km), duration (min), polyline, instructions[]}.
        Fallback has no polyline and no instructions.
        """
        fallback_km = self.distance_km(start, end)
        fallback = {
            "distance":     fallback_km,
            "duration":     self.travel_time_minutes(fallback_km),
            "instructions": [],
            "polyline":     None,
        }
        if not self.api_key:
            return Sourced.fallback(fallback, PROVIDER_HAVERSINE,
                                    error="Google Maps API key not configured")

        params = {
            "origin":        _latlng(start),
            "destination":   _latlng(end),
            "key":           self.api_key,
            "mode":          mode,
            "alternatives":  "false",
            "traffic_model": "best_guess",
            "departure_time": "now",
        }
        try:
            resp = self.session.get(DIRECTIONS_URL, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
            routes = data.get("routes") or []
            if not routes:
                raise ValueError(f"no routes (status={data.get('status', 'UNKNOWN')!r})")
            route = routes[0]
            leg = route["legs"][0]
            details = {
                "distance": leg["distance"]["value"] / 1000.0,
                "duration": leg["duration"]["value"] / 60.0,
                "polyline": route.get("overview_polyline", {}).get("points"),
                "instructions": [
                    {
                        "instruction": _HTML_TAG_RE.sub("", step.get("html_instructions", "")),
                        "distance":    step["distance"]["value"] / 1000.0,
                        "duration":    step["duration"]["value"] / 60.0,
                    }
                    for step in leg.get("steps", [])
                ],
            }
        except (requests.RequestException, ValueError, KeyError, IndexError, TypeError) as exc:
            error = failure_text(exc, self.api_key)
            logger.warning("[DistanceTool] Directions failed, using haversine: %s", error)
            return Sourced.fallback(fallback, PROVIDER_HAVERSINE, error=error)
        return Sourced.live(details, PROVIDER_DIRECTIONS)


def _parse_matrix_element(element: dict[str, Any]) -> Optional[dict]:
    if element.get("status") != "OK":
        return None
    traffic = element.get("duration_in_traffic")
    return {
        "distance_km":             element["distance"]["value"] / 1000.0,
        "duration_min":            element["duration"]["value"] / 60.0,
        "duration_in_traffic_min": traffic["value"] / 60.0 if traffic else None,
    }
