"""
schemas/itinerary.py
--------------------
Dataclass definitions for the planner outputs: budget splits, routes and
day-by-day itineraries.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from schemas.travel import Attraction


@dataclass
class BudgetCategory:
    """One line of a BudgetAllocation (all amounts in INR, integer units)."""
    amount: int = 0
    percentage: int = 0
    per_day: int = 0
    per_person: int = 0
    description: str = ""


@dataclass
class BudgetAllocation:
    """
    Budget distributed by the BudgetPlanner engine.

    Categories keep insertion order:
      accommodation, food, transportation, activities, miscellaneous
      [, shopping]

    Invariant after BudgetPlanner.allocate(): total == total_budget.
    """
    total_budget: int = 0
    categories: dict[str, BudgetCategory] = field(default_factory=dict)

    @property
    def total(self) -> int:
        """Sum of category amounts."""
        return sum(c.amount for c in self.categories.values())

    def __getitem__(self, name: str) -> BudgetCategory:
        return self.categories[name]

    def __contains__(self, name: str) -> bool:
        return name in self.categories

    def items(self):
        return self.categories.items()

    def largest(self) -> str:
        """Name of the category with the largest amount (first one wins a tie)."""
        best = next(iter(self.categories))
        for name, cat in self.categories.items():
            if cat.amount > self.categories[best].amount:
                best = name
        return best


@dataclass
class RouteStop:
    """A point a route passes through: an attraction or the starting accommodation."""
    id: Any = None
    name: str = ""
    lat: float = 0.0
    lng: float = 0.0

    @property
    def coordinates(self) -> tuple[float, float]:
        return (self.lat, self.lng)


@dataclass
class RouteSegment:
    """
    One hop of a Route.

    source records where the numbers came from:
      "haversine"              : great-circle distance + linear time estimate
      "google_distance_matrix" : Distance Matrix API element
    """
    from_stop: RouteStop
    to_stop: RouteStop
    distance_km: float = 0.0
    travel_time_min: float = 0.0
    source: str = "haversine"
    attraction: Optional[Attraction] = None


@dataclass
class Route:
    """
    Ordered visiting sequence.  points is a permutation of the valid input
    attractions; skipped holds the ones excluded for bad coordinates.
    """
    segments: list[RouteSegment] = field(default_factory=list)
    points: list[Attraction] = field(default_factory=list)
    skipped: list[Attraction] = field(default_factory=list)
    algorithm: str = "nearest_neighbor"

    @property
    def total_distance_km(self) -> float:
        return sum(s.distance_km for s in self.segments)

    @property
    def total_travel_time_min(self) -> float:
        return sum(s.travel_time_min for s in self.segments)


@dataclass
class ScheduledVisit:
    """An attraction placed in a day's timetable.  Times are "HH:MM"."""
    attraction: Attraction
    start_time: str = ""
    end_time: str = ""
    travel_time_min: int = 0
    score: float = 0.0


@dataclass
class MealSlot:
    type: str = ""                       # lunch | dinner
    time: str = ""


@dataclass
class ItineraryDay:
    """One day's scheduled visits.  A generated itinerary is list[ItineraryDay]."""
    day: int = 0
    date: Optional[date] = None
    visits: list[ScheduledVisit] = field(default_factory=list)
    meals: list[MealSlot] = field(default_factory=list)
    route_distance_km: float = 0.0
    route_travel_time_min: float = 0.0
    optimization_applied: bool = False

    @property
    def attractions(self) -> list[Attraction]:
        return [v.attraction for v in self.visits]
