"""
api/deps.py
-----------
FastAPI dependency providers.  Tests swap any of these through
app.dependency_overrides (e.g. a TTLCache with a fake clock, tools with a
mocked requests session).
"""
from __future__ import annotations

from fastapi import Depends

from db.cache import get_cache
from modules.planning.itinerary_scheduler import ItineraryScheduler
from modules.planning.route_planner import RoutePlanner
from modules.tool_usage.attraction_tool import AttractionTool
from modules.tool_usage.distance_tool import DistanceTool
from modules.tool_usage.hotel_tool import HotelTool


def get_distance_tool() -> DistanceTool:
    return DistanceTool()


def get_route_planner(distance_tool: DistanceTool = Depends(get_distance_tool)) -> RoutePlanner:
    return RoutePlanner(distance_tool=distance_tool)


def get_scheduler(route_planner: RoutePlanner = Depends(get_route_planner)) -> ItineraryScheduler:
    return ItineraryScheduler(route_planner=route_planner)


def get_attraction_tool() -> AttractionTool:
    return AttractionTool()


def get_hotel_tool(cache=Depends(get_cache)) -> HotelTool:
    return HotelTool(cache=cache)
