"""
api/routes/itinerary.py
------------------------
POST /api/itinerary/generate          day-by-day schedule from attractions + dates
POST /api/itinerary/optimize          re-route an existing itinerary, before/after metrics
GET  /api/itinerary/recommendations   five themed sample itineraries for a destination

Trip length is (endDate − startDate) in days with a minimum of 1, so a
same-day trip is one day.
"""

from __future__ import annotations

import logging
from datetime import date as date_type
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

import config
from api.deps import get_scheduler
from api.responses import success
from api.serializers import ser_day
from schemas.itinerary import ItineraryDay, ScheduledVisit
from schemas.travel import Accommodation, Attraction
from modules.planning.itinerary_scheduler import ItineraryScheduler, sample_itineraries
from modules.validation import (
    ValidationError, parse_iso_date, require_fields, require_query_params, validate_date_range,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_MAX_SAMPLE_DAYS = 30


# ── Request schemas ────────────────────────────────────────────────────────────

class GenerateRequest(BaseModel):
    destination: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    attractions: list[dict[str, Any]] = []
    accommodation: Optional[dict[str, Any]] = None
    userPreferences: Optional[dict[str, Any]] = None
    tripDetails: Optional[dict[str, Any]] = None


class OptimizeRequest(BaseModel):
    itinerary: Optional[list[dict[str, Any]]] = None
    optimizationCriteria: str = "time"
    constraints: Optional[dict[str, Any]] = None


# ── Helpers ────────────────────────────────────────────────────────────────────

def _interests(value: Any) -> list[str]:
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v).strip() for v in value or [] if str(v).strip()]


def _int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def _day_from_payload(payload: dict, index: int) -> ItineraryDay:
    """Rebuild an ItineraryDay from a client-supplied day object."""
    raw_date = payload.get("date")
    try:
        day_date = date_type.fromisoformat(raw_date) if isinstance(raw_date, str) else None
    except ValueError:
        day_date = None
    visits = [
        ScheduledVisit(
            attraction=Attraction.from_dict(a, i),
            start_time=str(a.get("startTime") or ""),
            end_time=str(a.get("endTime") or ""),
            travel_time_min=_int(a.get("travelTime")),
        )
        for i, a in enumerate(payload.get("attractions") or [])
    ]
    return ItineraryDay(day=_int(payload.get("day")) or index + 1, date=day_date, visits=visits)


# ── Endpoints ──────────────────────────────────────────────────────────────────

@router.post("/generate", summary="Generate a day-by-day itinerary")
def generate_itinerary(
    req: GenerateRequest,
    scheduler: ItineraryScheduler = Depends(get_scheduler),
) -> dict:
    require_fields(req.model_dump(), ["destination", "startDate", "endDate"])
    start = parse_iso_date(req.startDate, "startDate")
    end = parse_iso_date(req.endDate, "endDate")
    validate_date_range(start, end)
    days = max(1, (end - start).days)
    if days > config.MAX_TRIP_DAYS:
        raise ValidationError(f"Trip length must be at most {config.MAX_TRIP_DAYS} days")

    preferences = dict(req.userPreferences or {})
    preferences["interests"] = _interests(preferences.get("interests"))

    attractions = [Attraction.from_dict(a, i) for i, a in enumerate(req.attractions)]
    accommodation = Accommodation.from_dict(req.accommodation) if req.accommodation else None

    itinerary = scheduler.generate(attractions, accommodation, days, preferences, start_date=start)
    logger.info("[itinerary] %s: %d day(s) from %d attraction(s)", req.destination, days, len(attractions))

    return success(
        {
            "itinerary":       [ser_day(d, scheduler.route_summary(d)) for d in itinerary],
            "insights":        scheduler.insights(itinerary),
            "recommendations": scheduler.recommendations(itinerary, preferences),
            "tripSummary": {
                "destination":      req.destination,
                "duration":         days,
                "totalAttractions": len(attractions),
                "startDate":        req.startDate,
                "endDate":          req.endDate,
            },
        },
        algorithm="constraint_based_scheduling",
    )


@router.post("/optimize", summary="Re-optimise the route of every day in an itinerary")
def optimize_itinerary(
    req: OptimizeRequest,
    scheduler: ItineraryScheduler = Depends(get_scheduler),
) -> dict:
    if not req.itinerary:
        raise ValidationError("itinerary must be a non-empty array")

    original = [_day_from_payload(d, i) for i, d in enumerate(req.itinerary)]
    optimized, metrics = scheduler.optimize(original)

    return success(
        {
            "originalItinerary":   req.itinerary,
            "optimizedItinerary":  [ser_day(d, scheduler.route_summary(d)) for d in optimized],
            "optimizationMetrics": metrics,
        },
        criteria=req.optimizationCriteria,
        algorithm="nearest_neighbor",
    )


@router.get("/recommendations", summary="Sample itineraries for a destination")
def itinerary_recommendations(
    destination: str = Query(""),
    days: str = Query("3"),
    tripType: str = Query("leisure"),
    groupType: str = Query("couple"),
    interests: str = Query(""),
    budget: str = Query("medium"),
) -> dict:
    require_query_params({"destination": destination.strip()}, ["destination"])
    try:
        days_num = int(days)
    except ValueError:
        days_num = 0
    if not 1 <= days_num <= _MAX_SAMPLE_DAYS:
        raise ValidationError(f"days must be a number between 1 and {_MAX_SAMPLE_DAYS}")

    preferences = {
        "tripType":  tripType,
        "groupType": groupType,
        "interests": _interests(interests),
        "budget":    budget,
    }
    return success(
        {
            "recommendations": sample_itineraries(destination, days_num, preferences),
            "preferences":     preferences,
        },
        destination=destination,
        days=days_num,
    )
