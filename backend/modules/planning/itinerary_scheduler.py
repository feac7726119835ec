"""
modules/planning/itinerary_scheduler.py
-----------------------------------------
Day-by-day itinerary builder.

generate():
  per_day = ⌈n / days⌉
  for each day:
    1. score remaining attractions: rating + 0.5 if category ∈ interests
       (stable sort, so equal scores keep input order), take the top per_day
    2. order them with RoutePlanner.optimize() starting at the accommodation;
       picks with unusable coordinates are appended after the routed ones
    3. lay out from DAY_START_HOUR: the first visit starts immediately, each
       later visit starts INTER_STOP_BUFFER_MIN after the previous one ends
    4. add lunch / dinner slots when the day runs past LUNCH_HOUR / DINNER_HOUR

Times are minutes since midnight internally and rendered "HH:MM".  A long
day can run past 23:59 ("25:00"); the clock is not wrapped.

optimize() re-routes already-built days (no accommodation) and reports
before/after travel metrics.  insights(), recommendations() and
sample_itineraries() feed the itinerary endpoints.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import date, timedelta
from typing import Any, Optional, Sequence

import config
from schemas.itinerary import ItineraryDay, MealSlot, ScheduledVisit
from schemas.travel import Accommodation, Attraction
from modules.planning.route_planner import RoutePlanner, parse_duration_hours
from modules.tool_usage.distance_tool import haversine_km, estimate_travel_time_minutes
from modules.validation import valid_coordinates
from modules.observability.logger import StructuredLogger

logger = logging.getLogger(__name__)

_perf_logger = StructuredLogger()

_INTEREST_BONUS = 0.5

# Busy-ness bands for attractions per day
_GOOD_PER_DAY     = 4
_MODERATE_PER_DAY = 6

_PACKED_DAY_HOURS = 8
_LIGHT_DAY_HOURS  = 4


# ── Time helpers ──────────────────────────────────────────────────────────────

def format_clock(minutes: float) -> str:
    """Minutes since midnight → "HH:MM" (hours are not wrapped at 24)."""
    total = int(round(minutes))
    return f"{total // 60:02d}:{total % 60:02d}"


def _r2(value: float) -> float:
    return round(value * 100) / 100


def _band(count: int) -> str:
    if count <= _GOOD_PER_DAY:
        return "good"
    if count <= _MODERATE_PER_DAY:
        return "moderate"
    return "busy"


def day_hours(day: ItineraryDay) -> int:
    return sum(parse_duration_hours(a.duration) for a in day.attractions)


def sequential_travel(attractions: Sequence[Attraction]) -> tuple[float, float]:
    """(km, minutes) visiting *attractions* in the given order; hops without coordinates count 0."""
    km = 0.0
    for a, b in zip(attractions, attractions[1:]):
        if valid_coordinates(a.lat, a.lng) and valid_coordinates(b.lat, b.lng):
            km += haversine_km(a.lat, a.lng, b.lat, b.lng)
    return km, estimate_travel_time_minutes(km)


# =============================================================================
# ItineraryScheduler
# =============================================================================

class ItineraryScheduler:
    """
    Usage:
        scheduler = ItineraryScheduler()
        days = scheduler.generate(attractions, hotel, 3, {"interests": ["heritage"]},
                                  start_date=date(2025, 3, 1))
    """

    def __init__(self, route_planner: Optional[RoutePlanner] = None) -> None:
        self.route_planner = route_planner or RoutePlanner()

    # =========================================================================
    # PUBLIC: generate
    # =========================================================================

    def generate(
        self,
        attractions: Sequence[Attraction],
        accommodation: Optional[Accommodation],
        days: int,
        preferences: Optional[dict] = None,
        start_date: Optional[date] = None,
    ) -> list[ItineraryDay]:
        if days < 1:
            raise ValueError("days must be at least 1")
        preferences = preferences or {}
        interests = {str(i).strip().lower() for i in preferences.get("interests") or [] if str(i).strip()}
        first_day = start_date or date.today()
        per_day = math.ceil(len(attractions) / days) if attractions else 0

        with _perf_logger.timed("ItineraryScheduler.generate", days=days, attractions=len(attractions)):
            remaining: list[tuple[int, Attraction]] = list(enumerate(attractions))
            itinerary: list[ItineraryDay] = []

            for i in range(days):
                picks = self._select(remaining, per_day, interests)
                picked_idx = {idx for idx, _, _ in picks}
                remaining = [(idx, a) for idx, a in remaining if idx not in picked_idx]

                scores = {id(a): score for _, a, score in picks}
                chosen = [a for _, a, _ in picks]
                day = self._build_day(i + 1, first_day + timedelta(days=i), chosen, accommodation)
                for visit in day.visits:
                    visit.score = scores.get(id(visit.attraction), 0.0)
                itinerary.append(day)

        logger.info(
            "[ItineraryScheduler] %d day(s), %d of %d attraction(s) scheduled",
            days, sum(len(d.visits) for d in itinerary), len(attractions),
        )
        return itinerary

    @staticmethod
    def _select(
        remaining: list[tuple[int, Attraction]],
        limit: int,
        interests: set[str],
    ) -> list[tuple[int, Attraction, float]]:
        scored = [
            (idx, a, a.rating + (_INTEREST_BONUS if a.category.lower() in interests else 0.0))
            for idx, a in remaining
        ]
        scored.sort(key=lambda t: t[2], reverse=True)
        return scored[:limit]

    def _build_day(
        self,
        number: int,
        day_date: date,
        chosen: list[Attraction],
        start: Optional[Any],
    ) -> ItineraryDay:
        day = ItineraryDay(day=number, date=day_date)
        if not chosen:
            return day

        route = self.route_planner.optimize(chosen, start=start)
        ordered = route.points + route.skipped
        day.route_distance_km = _r2(route.total_distance_km)
        day.route_travel_time_min = _r2(route.total_travel_time_min)
        day.visits, end = self.layout(ordered)
        day.meals = self.meals(end)
        return day

    @staticmethod
    def layout(ordered: Sequence[Attraction]) -> tuple[list[ScheduledVisit], int]:
        """Timetable *ordered* from the day start.  Returns (visits, end minute)."""
        clock = config.DAY_START_HOUR * 60
        visits: list[ScheduledVisit] = []
        for i, attraction in enumerate(ordered):
            buffer = 0 if i == 0 else config.INTER_STOP_BUFFER_MIN
            clock += buffer
            end = clock + parse_duration_hours(attraction.duration) * 60
            visits.append(ScheduledVisit(
                attraction=attraction,
                start_time=format_clock(clock),
                end_time=format_clock(end),
                travel_time_min=buffer,
            ))
            clock = end
        return visits, clock

    @staticmethod
    def meals(end_minute: int) -> list[MealSlot]:
        slots: list[MealSlot] = []
        if end_minute >= config.LUNCH_HOUR * 60:
            slots.append(MealSlot(type="lunch", time=format_clock(config.LUNCH_HOUR * 60)))
        if end_minute >= config.DINNER_HOUR * 60:
            slots.append(MealSlot(type="dinner", time=format_clock(config.DINNER_HOUR * 60)))
        return slots

    @staticmethod
    def route_summary(day: ItineraryDay) -> dict:
        """Per-day route totals plus share of the day spent at attractions."""
        attraction_h = day_hours(day)
        travel_h = day.route_travel_time_min / 60
        denominator = attraction_h + travel_h
        share = attraction_h / denominator if denominator else 0.0
        if share >= 0.8:
            rating = "excellent"
        elif share >= 0.6:
            rating = "good"
        else:
            rating = "needs_improvement"
        return {
            "totalDistance": day.route_distance_km,
            "totalTime":     day.route_travel_time_min,
            "efficiency":    {"efficiency": int(math.floor(share * 100 + 0.5)), "rating": rating},
        }

    # =========================================================================
    # PUBLIC: optimize existing days
    # =========================================================================

    def optimize(self, itinerary: list[ItineraryDay]) -> tuple[list[ItineraryDay], dict]:
        """
        Re-order each day by nearest neighbour (no accommodation) and re-time it.

        Returns (optimized days, {original, optimized, improvement}).
        """
        optimized: list[ItineraryDay] = []
        for day in itinerary:
            if not day.visits:
                optimized.append(day)
                continue
            route = self.route_planner.optimize(day.attractions)
            visits, end = self.layout(route.points + route.skipped)
            optimized.append(replace(
                day,
                visits=visits,
                meals=self.meals(end),
                route_distance_km=_r2(route.total_distance_km),
                route_travel_time_min=_r2(route.total_travel_time_min),
                optimization_applied=True,
            ))

        original_metrics = self._metrics([sequential_travel(d.attractions) for d in itinerary], itinerary)
        optimized_metrics = self._metrics(
            [(d.route_distance_km, d.route_travel_time_min) for d in optimized], optimized,
        )
        before, after = original_metrics["efficiency"], optimized_metrics["efficiency"]
        improvement = {
            "timeSaved":       original_metrics["totalTravelTime"] - optimized_metrics["totalTravelTime"],
            "distanceReduced": _r2(original_metrics["totalDistance"] - optimized_metrics["totalDistance"]),
            "efficiencyGain":  _r2((after - before) / before * 100) if before else 0.0,
        }
        return optimized, {
            "original":    original_metrics,
            "optimized":   optimized_metrics,
            "improvement": improvement,
        }

    @staticmethod
    def _metrics(travel: list[tuple[float, float]], days: list[ItineraryDay]) -> dict:
        total_km = sum(km for km, _ in travel)
        total_min = sum(mins for _, mins in travel)
        count = sum(len(d.visits) for d in days)
        return {
            "totalTravelTime":  int(math.floor(total_min + 0.5)),
            "totalDistance":    _r2(total_km),
            "totalAttractions": count,
            "efficiency":       _r2(count / total_min) if count and total_min else 0.0,
        }

    # =========================================================================
    # PUBLIC: insights / recommendations
    # =========================================================================

    @staticmethod
    def insights(itinerary: list[ItineraryDay]) -> dict:
        total = sum(len(d.visits) for d in itinerary)
        average = total / len(itinerary) if itinerary else 0.0

        categories: list[str] = []
        for day in itinerary:
            for a in day.attractions:
                if a.category not in categories:
                    categories.append(a.category)
        if len(categories) >= 3:
            diversity = "high"
        elif len(categories) >= 2:
            diversity = "moderate"
        else:
            diversity = "low"

        balances = [
            {
                "day":               d.day,
                "attractionCount":   len(d.visits),
                "estimatedDuration": day_hours(d),
                "balance":           _band(len(d.visits)),
            }
            for d in itinerary
        ]
        if all(b["balance"] == "good" for b in balances):
            overall = "excellent"
        elif all(b["balance"] != "busy" for b in balances):
            overall = "good"
        else:
            overall = "needs_optimization"

        efficiency = "good" if average <= _GOOD_PER_DAY else "moderate" if average <= _MODERATE_PER_DAY else "busy"
        notes: list[dict] = []
        if efficiency == "busy":
            notes.append({
                "type": "efficiency", "priority": "medium",
                "message": "Consider reducing attractions per day for a more relaxed experience",
            })
        if diversity == "low":
            notes.append({
                "type": "diversity", "priority": "low",
                "message": "Add more variety to your itinerary with different types of attractions",
            })
        if overall == "needs_optimization":
            notes.append({
                "type": "balance", "priority": "high",
                "message": "Redistribute attractions across days for better balance",
            })

        return {
            "efficiency": {
                "totalAttractions": total,
                "averagePerDay":    round(average, 1),
                "efficiency":       efficiency,
            },
            "diversity": {
                "categoryCount": len(categories),
                "categories":    categories,
                "diversity":     diversity,
            },
            "balance": {"dailyBalances": balances, "overallBalance": overall},
            "recommendations": notes,
        }

    @staticmethod
    def recommendations(itinerary: list[ItineraryDay], preferences: Optional[dict] = None) -> dict:
        preferences = preferences or {}
        recs: dict[str, list[dict]] = {
            "timeManagement": [], "experience": [], "logistics": [], "alternatives": [],
        }

        for day in itinerary:
            hours = day_hours(day)
            if hours > _PACKED_DAY_HOURS:
                recs["timeManagement"].append({
                    "day": day.day, "priority": "high",
                    "message": (
                        f"Day {day.day} is packed with activities ({hours} hours). "
                        "Consider reducing attractions or extending your stay."
                    ),
                })
            elif hours < _LIGHT_DAY_HOURS:
                recs["timeManagement"].append({
                    "day": day.day, "priority": "low",
                    "message": (
                        f"Day {day.day} has light activities ({hours} hours). "
                        "You could add more attractions or have a relaxing day."
                    ),
                })

        planned = {a.category for d in itinerary for a in d.attractions}
        interests = [str(i).strip().lower() for i in preferences.get("interests") or []]
        if "cultural" not in planned and "culture" in interests:
            recs["experience"].append({
                "type": "cultural", "priority": "medium",
                "message": "Consider adding cultural attractions like museums or historical sites",
            })
        if "nature" not in planned and "nature" in interests:
            recs["experience"].append({
                "type": "nature", "priority": "medium",
                "message": "Consider adding nature attractions like parks or scenic viewpoints",
            })

        if preferences.get("groupType") == "family":
            recs["logistics"].append({
                "type": "family", "priority": "medium",
                "message": "Ensure attractions are family-friendly and have facilities like restrooms and parking",
            })
        if preferences.get("tripType") == "budget":
            recs["logistics"].append({
                "type": "budget", "priority": "high",
                "message": "Consider mixing free attractions with paid ones to manage costs",
            })
        return recs


# =============================================================================
# Sample itineraries (GET /api/itinerary/recommendations)
# =============================================================================

SAMPLE_STYLES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Cultural Explorer", ("heritage", "cultural", "monument")),
    ("Nature Lover",      ("nature", "beach", "scenic")),
    ("Adventure Seeker",  ("adventure", "sports", "outdoor")),
    ("Relaxation",        ("beach", "spa", "scenic")),
    ("Food & Culture",    ("cultural", "food", "local")),
)

_STYLE_THEMES: dict[str, tuple[str, ...]] = {
    "Cultural Explorer": ("Heritage Sites", "Museums & Galleries", "Local Culture"),
    "Nature Lover":      ("Beaches & Water", "Parks & Gardens", "Scenic Views"),
    "Adventure Seeker":  ("Outdoor Activities", "Sports & Adventure", "Nature Trails"),
    "Relaxation":        ("Beach Time", "Spa & Wellness", "Scenic Relaxation"),
    "Food & Culture":    ("Local Cuisine", "Cultural Sites", "Food Markets"),
}

# (name suffix, category, duration, rating)
_STYLE_SAMPLES: dict[str, tuple[tuple[str, str, str, float], ...]] = {
    "Cultural Explorer": (
        ("Museum", "cultural", "2-3 hours", 4.3),
        ("Heritage Site", "heritage", "1-2 hours", 4.5),
        ("Monument", "monument", "1 hour", 4.2),
    ),
    "Nature Lover": (
        ("Park", "nature", "2-3 hours", 4.4),
        ("Beach", "beach", "3-4 hours", 4.3),
        ("Scenic View", "scenic", "1 hour", 4.6),
    ),
    "Adventure Seeker": (
        ("Adventure Park", "adventure", "3-4 hours", 4.5),
        ("Sports Center", "sports", "2 hours", 4.2),
        ("Outdoor Activity", "outdoor", "2-3 hours", 4.4),
    ),
    "Relaxation": (
        ("Beach", "beach", "3-4 hours", 4.3),
        ("Spa Retreat", "spa", "2-3 hours", 4.5),
        ("Sunset Point", "scenic", "1 hour", 4.4),
    ),
    "Food & Culture": (
        ("Food Market", "food", "2 hours", 4.4),
        ("Old Quarter Walk", "local", "2-3 hours", 4.3),
        ("Cultural Centre", "cultural", "1-2 hours", 4.5),
    ),
}

# INR per day: (daily spend, accommodation per night)
_SAMPLE_COSTS: dict[str, tuple[int, int]] = {
    "low":    (1500, 2000),
    "medium": (3000, 4000),
    "high":   (6000, 8000),
    "luxury": (12000, 15000),
}


def day_theme(day: int, style: str, total_days: int) -> str:
    if day == 1:
        return "Arrival & Orientation"
    if day == total_days:
        return "Departure & Last-minute Exploration"
    themes = _STYLE_THEMES.get(style, ("Sightseeing", "Local Exploration", "Cultural Experience"))
    return themes[(day - 2) % len(themes)]


def meal_plan(budget: str) -> list[dict]:
    meals = [
        {"type": "breakfast", "time": "08:00", "suggestion": "Hotel breakfast or local cafe"},
        {"type": "lunch",     "time": "13:00", "suggestion": "Local restaurant or street food"},
        {"type": "dinner",    "time": "19:00", "suggestion": "Traditional restaurant or fine dining"},
    ]
    if budget == "luxury":
        meals[2]["suggestion"] = "Fine dining restaurant with local cuisine"
    elif budget == "low":
        meals[1]["suggestion"] = "Street food or budget restaurant"
        meals[2]["suggestion"] = "Local family restaurant"
    return meals


def estimated_cost(days: int, budget: str) -> dict:
    per_day, stay = _SAMPLE_COSTS.get(budget, _SAMPLE_COSTS["medium"])
    return {
        "total":         per_day * days + stay * days,
        "perDay":        per_day,
        "accommodation": stay * days,
        "currency":      config.CURRENCY_UNIT,
    }


def _sample_attractions(destination: str, day: int, style: str) -> list[dict]:
    samples = _STYLE_SAMPLES.get(style, _STYLE_SAMPLES["Cultural Explorer"])
    # the first two days are lighter
    count = 2 if day in (1, 2) else 3
    return [
        {"name": f"{destination} {suffix}", "category": category, "duration": duration, "rating": rating}
        for suffix, category, duration, rating in samples[:count]
    ]


def sample_itineraries(destination: str, days: int, preferences: Optional[dict] = None) -> list[dict]:
    """Five themed template itineraries built from the destination name."""
    preferences = preferences or {}
    budget = preferences.get("budget") or "medium"
    results: list[dict] = []
    for style, focus in SAMPLE_STYLES:
        plans = []
        for n in range(1, days + 1):
            attractions = _sample_attractions(destination, n, style)
            plans.append({
                "day":               n,
                "theme":             day_theme(n, style, days),
                "attractions":       attractions,
                "meals":             meal_plan(budget),
                "estimatedDuration": sum(parse_duration_hours(a["duration"]) for a in attractions),
                "highlights":        [a["name"] for a in attractions if a["rating"] >= 4.5],
            })
        results.append({
            "name":          style,
            "focus":         list(focus),
            "description":   f"A {days}-day {style.lower()} itinerary for {destination}",
            "days":          plans,
            "highlights":    [h for p in plans for h in p["highlights"]][:5],
            "estimatedCost": estimated_cost(days, budget),
            "difficulty":    "moderate",
        })
    return results
