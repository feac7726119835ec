"""
api/serializers.py
------------------
Dataclass → JSON-ready dict converters (camelCase keys for the web client).
"""
from __future__ import annotations

from typing import Optional

from schemas.itinerary import BudgetAllocation, ItineraryDay, Route, RouteStop
from schemas.travel import Attraction
from modules.tool_usage.hotel_tool import accommodation_record


def ser_attraction(a: Attraction) -> dict:
    out = dict(a.raw)
    out.update({
        "id":          a.id,
        "name":        a.name,
        "category":    a.category,
        "rating":      a.rating,
        "price":       a.price,
        "duration":    a.duration,
        "description": a.description,
        "facilities":  list(a.facilities),
        "reviews":     a.reviews,
        "imageUrl":    a.image_url,
        "city":        a.city,
        "coordinates": [a.lat, a.lng] if a.coordinates is not None else None,
    })
    return out


ser_accommodation = accommodation_record


def ser_budget(allocation: BudgetAllocation) -> dict:
    return {
        name: {
            "amount":      cat.amount,
            "percentage":  cat.percentage,
            "perDay":      cat.per_day,
            "perPerson":   cat.per_person,
            "description": cat.description,
        }
        for name, cat in allocation.items()
    }


def _ser_stop(stop: RouteStop) -> dict:
    return {"id": stop.id, "name": stop.name, "coordinates": [stop.lat, stop.lng]}


def ser_route(route: Route) -> list[dict]:
    return [
        {
            "from":       _ser_stop(seg.from_stop),
            "to":         ser_attraction(seg.attraction) if seg.attraction else _ser_stop(seg.to_stop),
            "distance":   round(seg.distance_km, 2),
            "travelTime": round(seg.travel_time_min, 2),
            "source":     seg.source,
        }
        for seg in route.segments
    ]


def ser_day(day: ItineraryDay, route_summary: Optional[dict] = None) -> dict:
    out = {
        "day":  day.day,
        "date": day.date.isoformat() if day.date else None,
        "attractions": [
            {
                **ser_attraction(v.attraction),
                "startTime":  v.start_time,
                "endTime":    v.end_time,
                "travelTime": v.travel_time_min,
                "score":      round(v.score, 2),
            }
            for v in day.visits
        ],
        "meals":               [{"type": m.type, "time": m.time} for m in day.meals],
        "optimizationApplied": day.optimization_applied,
    }
    if route_summary is not None:
        out["routeOptimization"] = route_summary
    return out
