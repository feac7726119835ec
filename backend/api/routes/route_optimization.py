"""
api/routes/route_optimization.py
--------------------------------
POST /api/routes/optimize   visiting order: segments, ordered points, skipped points,
                            metrics, insights
GET  /api/routes/details    turn-by-turn directions between two points
POST /api/routes/distance   consecutive-pair distances for an ordered list
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from api.deps import get_distance_tool, get_route_planner
from api.responses import success
from api.serializers import ser_attraction, ser_route
from schemas.travel import Accommodation, Attraction
from modules.planning.route_planner import RoutePlanner
from modules.tool_usage.distance_tool import DistanceTool
from modules.validation import ValidationError, parse_lat_lng, require_query_params, validate_point

logger = logging.getLogger(__name__)

router = APIRouter()


class OptimizeRouteRequest(BaseModel):
    attractions: Optional[list[dict[str, Any]]] = None
    accommodation: Optional[dict[str, Any]] = None
    preferences: Optional[dict[str, Any]] = None
    optimizationType: str = "time"
    useRealTimeData: bool = False


class DistanceRequest(BaseModel):
    points: Optional[list[dict[str, Any]]] = None
    useDistanceMatrix: bool = True


@router.post("/optimize", summary="Optimise the visiting order of attractions")
def optimize_route(
    req: OptimizeRouteRequest,
    planner: RoutePlanner = Depends(get_route_planner),
) -> dict:
    if not req.attractions:
        raise ValidationError("At least one attraction is required for route optimization")

    attractions = [Attraction.from_dict(a, i) for i, a in enumerate(req.attractions)]
    start = Accommodation.from_dict(req.accommodation) if req.accommodation else None

    route = planner.optimize(attractions, start=start, use_distance_matrix=req.useRealTimeData)
    metrics = planner.metrics(route)
    logger.info("[routes] optimised %d point(s), %d skipped, %.2f km",
                len(route.points), len(route.skipped), metrics["totalDistance"])

    return success(
        {
            "route":    ser_route(route),
            "points":   [ser_attraction(a) for a in route.points],
            "skipped":  [ser_attraction(a) for a in route.skipped],
            "metrics":  metrics,
            "insights": planner.insights(route, metrics),
        },
        algorithm=route.algorithm,
        optimizationType=req.optimizationType,
        skippedCount=len(route.skipped),
    )


@router.get("/details", summary="Directions between two lat,lng points")
def route_details(
    start: str = Query(""),
    end: str = Query(""),
    mode: str = Query("driving"),
    distance_tool: DistanceTool = Depends(get_distance_tool),
) -> dict:
    require_query_params({"start": start, "end": end}, ["start", "end"])
    start_coords = parse_lat_lng(start, "start")
    end_coords = parse_lat_lng(end, "end")

    result = distance_tool.route_details(start_coords, end_coords, mode)
    return success(
        {
            "route": result.data,
            "start": {"coordinates": list(start_coords)},
            "end":   {"coordinates": list(end_coords)},
        },
        mode=mode,
        source=result.source,
        provider=result.provider,
    )


@router.post("/distance", summary="Distances between consecutive points")
def calculate_distance(
    req: DistanceRequest,
    planner: RoutePlanner = Depends(get_route_planner),
) -> dict:
    if not req.points or len(req.points) < 2:
        raise ValidationError("At least two points are required for distance calculation")

    points = [Attraction.from_dict(p, i) for i, p in enumerate(req.points)]
    errors = []
    for i, p in enumerate(points):
        errors.extend(f"points[{i}]: {e}" for e in validate_point(p).errors)
    if errors:
        raise ValidationError(errors)

    result = planner.pairwise_distances(points, use_distance_matrix=req.useDistanceMatrix)
    return success(result, pointCount=len(points))
