"""
modules/planning/route_planner.py
-----------------------------------
Visiting-order optimizer for a set of attractions.

Algorithm (greedy nearest neighbour, O(n²)):
  1. Drop points whose coordinates are missing / non-finite / out of range.
     They are returned in Route.skipped, never compared.
  2. Start from the given accommodation, or pop the first valid point.
  3. Repeatedly move to the closest unvisited point (haversine km).
     Equal distances resolve to the lowest id, then to input order.
  4. Optionally replace each hop's numbers with a Distance Matrix element.
     Any failure keeps the haversine value + linear time estimate.

Guarantees:
  - Route.points is a permutation of the valid input points.
  - No global optimality claim; nearest neighbour is a heuristic.

Also provides route metrics / insights and the consecutive-pair distance
report used by POST /api/routes/distance.
"""

from __future__ import annotations
import logging
import re
from typing import Any, Optional, Sequence, Union

from schemas.itinerary import Route, RouteSegment, RouteStop
from schemas.travel import Accommodation, Attraction
from modules.tool_usage.distance_tool import (
    DistanceTool, PROVIDER_MATRIX, PROVIDER_HAVERSINE, haversine_km,
)
from modules.validation import partition_valid, validate_point
from modules.observability.logger import StructuredLogger

logger = logging.getLogger(__name__)

_perf_logger = StructuredLogger()

ALGORITHM_NEAREST_NEIGHBOR = "nearest_neighbor"

# ── Insight thresholds ────────────────────────────────────────────────────────
_LONG_TOTAL_TRAVEL_MIN:   float = 180.0   # > 3 h of travel → suggest fewer stops
_LONG_TOTAL_DISTANCE_KM:  float = 100.0
_LONG_SEGMENT_MIN:        float = 60.0    # per-hop warning
_SCORE_MAX_TRAVEL_MIN:    float = 300.0   # efficiency score reference (5 h)
_SCORE_MAX_DISTANCE_KM:   float = 200.0

_DEFAULT_DURATION_HOURS = 2
_FULL_DAY_HOURS         = 8
_LEADING_INT_RE = re.compile(r"(\d+)")

Start = Union[Accommodation, Attraction, RouteStop]


# ── Module-level helpers ──────────────────────────────────────────────────────

def parse_duration_hours(duration: Any) -> int:
    """
    Free-text visit duration → whole hours.

      "2-3 hours" → 2   "1 hour" → 1   "hours" → 1
      "Full day"  → 8   anything else → 2
    """
    if isinstance(duration, str):
        if "hour" in duration:
            m = _LEADING_INT_RE.search(duration)
            return int(m.group(1)) if m else 1
        if "day" in duration:
            return _FULL_DAY_HOURS
    return _DEFAULT_DURATION_HOURS


def _id_sort_key(point_id: Any) -> tuple:
    """Order ids numerically when they look numeric, otherwise as strings."""
    if point_id is None:
        return (2, 0.0, "")
    if isinstance(point_id, (int, float)) and not isinstance(point_id, bool):
        return (0, float(point_id), "")
    try:
        return (0, float(str(point_id)), str(point_id))
    except ValueError:
        return (1, 0.0, str(point_id))


def _stop(point: Start, default_id: Any = "start", default_name: str = "Start") -> RouteStop:
    if isinstance(point, RouteStop):
        return point
    return RouteStop(
        id=point.id if point.id is not None else default_id,
        name=point.name or default_name,
        lat=float(point.lat),
        lng=float(point.lng),
    )


def _r2(value: float) -> float:
    return round(value * 100) / 100


class RoutePlanner:
    """
    Nearest-neighbour route optimizer.

    Usage:
        planner = RoutePlanner()
        route = planner.optimize(attractions, start=hotel)
        metrics = planner.metrics(route)
        insights = planner.insights(route, metrics)
    """

    def __init__(self, distance_tool: Optional[DistanceTool] = None) -> None:
        self.distance_tool = distance_tool or DistanceTool()

    # =========================================================================
    # PUBLIC: optimize
    # =========================================================================

    def optimize(
        self,
        attractions: Sequence[Attraction],
        start: Optional[Start] = None,
        use_distance_matrix: bool = False,
    ) -> Route:
        """Order *attractions* by greedy nearest neighbour from *start*."""
        with _perf_logger.timed("RoutePlanner.optimize", points=len(attractions)) as perf:
            valid, skipped = partition_valid(attractions, validate_point)
            if skipped:
                logger.warning(
                    "[RoutePlanner] %d point(s) skipped for invalid coordinates: %s",
                    len(skipped), [a.name for a in skipped],
                )
            if not valid:
                perf["segments"] = 0
                return Route(skipped=list(skipped), algorithm="none")

            unvisited: list[tuple[int, Attraction]] = list(enumerate(valid))
            ordered: list[Attraction] = []
            segments: list[RouteSegment] = []

            if start is not None and validate_point(start).valid:
                current = _stop(start, default_id="accommodation", default_name="Accommodation")
            else:
                if start is not None:
                    logger.warning("[RoutePlanner] start point has invalid coordinates; ignoring it")
                _, first = unvisited.pop(0)
                ordered.append(first)
                current = _stop(first)

            while unvisited:
                pos = min(
                    range(len(unvisited)),
                    key=lambda i: (
                        haversine_km(current.lat, current.lng,
                                     unvisited[i][1].lat, unvisited[i][1].lng),
                        _id_sort_key(unvisited[i][1].id),
                        unvisited[i][0],
                    ),
                )
                _, nearest = unvisited.pop(pos)
                nxt = _stop(nearest)
                km = haversine_km(current.lat, current.lng, nxt.lat, nxt.lng)
                segments.append(RouteSegment(
                    from_stop=current,
                    to_stop=nxt,
                    distance_km=km,
                    travel_time_min=self.distance_tool.travel_time_minutes(km),
                    source=PROVIDER_HAVERSINE,
                    attraction=nearest,
                ))
                ordered.append(nearest)
                current = nxt

            if use_distance_matrix and segments:
                self._refine_with_matrix(segments)

            perf["segments"] = len(segments)
            return Route(
                segments=segments,
                points=ordered,
                skipped=list(skipped),
                algorithm=ALGORITHM_NEAREST_NEIGHBOR,
            )

    def _refine_with_matrix(self, segments: list[RouteSegment]) -> None:
        """Overwrite hop numbers in place with Distance Matrix values where available."""
        origins = [s.from_stop.coordinates for s in segments]
        destinations = [s.to_stop.coordinates for s in segments]
        result = self.distance_tool.distance_matrix(origins, destinations)
        if not result.is_live:
            return
        for i, seg in enumerate(segments):
            try:
                cell = result.data[i][i]
            except IndexError:
                cell = None
            if cell is None:
                continue
            seg.distance_km = cell["distance_km"]
            seg.travel_time_min = cell["duration_min"]
            seg.source = PROVIDER_MATRIX

    # =========================================================================
    # PUBLIC: metrics / insights
    # =========================================================================

    @staticmethod
    def metrics(route: Route) -> dict:
        """
        Aggregate route numbers, rounded to 2 dp.

        totalAttractionTime is in hours; totalTravelTime and totalTripTime
        are in minutes.
        """
        travel_min = route.total_travel_time_min
        attraction_h = sum(parse_duration_hours(p.duration) for p in route.points)
        return {
            "totalDistance":       _r2(route.total_distance_km),
            "totalTravelTime":     _r2(travel_min),
            "totalAttractionTime": _r2(attraction_h),
            "totalTripTime":       _r2(travel_min + attraction_h * 60),
        }

    @staticmethod
    def efficiency_score(metrics: dict) -> float:
        """0–1, higher is better: mean of time and distance headroom."""
        time_score = max(0.0, 1 - metrics["totalTravelTime"] / _SCORE_MAX_TRAVEL_MIN)
        distance_score = max(0.0, 1 - metrics["totalDistance"] / _SCORE_MAX_DISTANCE_KM)
        return (time_score + distance_score) / 2

    @staticmethod
    def efficiency_rating(score: float) -> str:
        if score >= 0.8:
            return "excellent"
        if score >= 0.6:
            return "good"
        if score >= 0.4:
            return "fair"
        return "poor"

    def insights(self, route: Route, metrics: dict) -> dict:
        stops = len(route.segments)
        score = self.efficiency_score(metrics)
        insights: dict = {
            "efficiency": {
                "averageDistancePerStop": _r2(metrics["totalDistance"] / stops) if stops else 0.0,
                "totalStops":             stops,
                "efficiencyScore":        score,
                "rating":                 self.efficiency_rating(score),
            },
            "recommendations": [],
            "warnings":        [],
            "alternatives":    [],
        }

        if metrics["totalTravelTime"] > _LONG_TOTAL_TRAVEL_MIN:
            insights["recommendations"].append({
                "type":     "travel_time",
                "message":  "Consider reducing the number of attractions or staying overnight",
                "priority": "medium",
            })
        if metrics["totalDistance"] > _LONG_TOTAL_DISTANCE_KM:
            insights["recommendations"].append({
                "type":     "distance",
                "message":  "Long distance route - ensure adequate fuel and breaks",
                "priority": "low",
            })

        for idx, seg in enumerate(route.segments):
            if seg.travel_time_min > _LONG_SEGMENT_MIN:
                insights["warnings"].append({
                    "type":    "long_travel",
                    "message": (
                        f"Long travel time between {seg.from_stop.name} and "
                        f"{seg.to_stop.name} ({round(seg.travel_time_min)} minutes)"
                    ),
                    "segment": idx,
                })

        if route.skipped:
            insights["warnings"].append({
                "type":    "invalid_coordinates",
                "message": f"{len(route.skipped)} attraction(s) skipped: missing or invalid coordinates",
                "skipped": [a.id for a in route.skipped],
            })

        if score < 0.6:
            insights["alternatives"].append({
                "type":    "route_optimization",
                "message": "Consider splitting the stops across more days to shorten travel",
                "algorithm": ALGORITHM_NEAREST_NEIGHBOR,
            })
        return insights

    # =========================================================================
    # PUBLIC: consecutive-pair distances
    # =========================================================================

    def pairwise_distances(
        self,
        points: Sequence[Attraction],
        use_distance_matrix: bool = True,
    ) -> dict:
        """
        Distance and travel time for each consecutive pair in input order.

        The Distance Matrix is only consulted for more than two points.
        source is "google_distance_matrix" when the matrix answered,
        otherwise "haversine".  Points must already have valid coordinates.
        """
        coords = [(float(p.lat), float(p.lng)) for p in points]
        hops = list(zip(range(len(points) - 1), range(1, len(points))))

        if use_distance_matrix and len(points) > 2:
            result = self.distance_tool.distance_matrix(coords, coords)
            if result.is_live:
                distances: list[dict] = []
                total_km = 0.0
                total_min = 0.0
                for i, j in hops:
                    cell = _cell(result.data, i, j)
                    if cell is not None:
                        km, mins = _r2(cell["distance_km"]), _r2(cell["duration_min"])
                        traffic = cell.get("duration_in_traffic_min")
                        distances.append(self._hop(points[i], points[j], km, mins,
                                                   _r2(traffic) if traffic else None))
                    else:
                        raw_km = self.distance_tool.distance_km(coords[i], coords[j])
                        km = _r2(raw_km)
                        mins = round(self.distance_tool.travel_time_minutes(raw_km))
                        distances.append(self._hop(points[i], points[j], km, mins))
                    total_km += km
                    total_min += mins
                return {
                    "distances":       distances,
                    "totalDistance":   _r2(total_km),
                    "totalTravelTime": _r2(total_min),
                    "source":          PROVIDER_MATRIX,
                }

        distances = []
        total_km = 0.0
        for i, j in hops:
            raw_km = self.distance_tool.distance_km(coords[i], coords[j])
            distances.append(self._hop(
                points[i], points[j], _r2(raw_km),
                round(self.distance_tool.travel_time_minutes(raw_km)),
            ))
            total_km += raw_km
        return {
            "distances":       distances,
            "totalDistance":   _r2(total_km),
            "totalTravelTime": round(self.distance_tool.travel_time_minutes(total_km)),
            "source":          PROVIDER_HAVERSINE,
        }

    @staticmethod
    def _hop(a: Attraction, b: Attraction, km: float, mins: float,
             traffic: Optional[float] = None) -> dict:
        hop = {
            "from":                {"id": a.id, "name": a.name, "coordinates": [a.lat, a.lng]},
            "to":                  {"id": b.id, "name": b.name, "coordinates": [b.lat, b.lng]},
            "distance":            km,
            "estimatedTravelTime": mins,
        }
        if traffic is not None:
            hop["durationInTraffic"] = traffic
        return hop


def _cell(matrix: list, i: int, j: int) -> Optional[dict]:
    try:
        return matrix[i][j]
    except IndexError:
        return None
