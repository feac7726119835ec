"""
Tests for modules/planning/itinerary_scheduler.py
"""
from datetime import date
from unittest.mock import MagicMock

import pytest

from modules.planning.itinerary_scheduler import (
    ItineraryScheduler, day_theme, estimated_cost, format_clock, meal_plan, sample_itineraries,
    sequential_travel,
)
from modules.planning.route_planner import RoutePlanner
from modules.tool_usage.distance_tool import DistanceTool
from schemas.itinerary import ItineraryDay, ScheduledVisit
from schemas.travel import Accommodation, Attraction


@pytest.fixture
def scheduler():
    tool = DistanceTool(api_key="", session=MagicMock(), minutes_per_km=2.0)
    return ItineraryScheduler(RoutePlanner(tool))


def _attr(aid, lat, lng, rating=4.0, category="heritage", duration="2 hours"):
    return Attraction(id=aid, name=f"A{aid}", lat=lat, lng=lng, rating=rating,
                      category=category, duration=duration)


@pytest.mark.parametrize("minutes,text", [(540, "09:00"), (690, "11:30"), (1500, "25:00"), (0, "00:00")])
def test_format_clock(minutes, text):
    assert format_clock(minutes) == text


def test_generate_distributes_and_times(scheduler):
    attractions = [_attr(i, 19.0, 72.8 + i * 0.01) for i in range(1, 5)]
    days = scheduler.generate(attractions, None, 2, {}, start_date=date(2025, 3, 1))

    assert [d.day for d in days] == [1, 2]
    assert [d.date for d in days] == [date(2025, 3, 1), date(2025, 3, 2)]
    assert [len(d.visits) for d in days] == [2, 2]

    first = days[0].visits
    assert (first[0].start_time, first[0].end_time, first[0].travel_time_min) == ("09:00", "11:00", 0)
    assert (first[1].start_time, first[1].end_time, first[1].travel_time_min) == ("11:30", "13:30", 30)
    assert [m.type for m in days[0].meals] == ["lunch"]


def test_generate_schedules_each_attraction_once(scheduler):
    attractions = [_attr(i, 19.0 + i * 0.01, 72.8) for i in range(7)]
    days = scheduler.generate(attractions, None, 3, {})
    ids = [a.id for d in days for a in d.attractions]
    assert sorted(ids) == list(range(7))


def test_generate_prefers_interests_then_rating(scheduler):
    attractions = [
        _attr(1, 19.0, 72.80, rating=4.8, category="nightlife"),
        _attr(2, 19.0, 72.81, rating=4.4, category="beach"),
        _attr(3, 19.0, 72.82, rating=4.0, category="market"),
    ]
    days = scheduler.generate(attractions, None, 3, {"interests": ["Beach"]})

    assert days[0].attractions[0].id == 2
    assert days[0].visits[0].score == pytest.approx(4.9)
    assert days[1].attractions[0].id == 1


def test_generate_keeps_attractions_without_coordinates(scheduler):
    attractions = [_attr(1, 19.0, 72.8), Attraction(id=2, name="Somewhere", rating=4.0, duration="1 hour")]
    days = scheduler.generate(attractions, None, 1, {})
    assert [a.id for a in days[0].attractions] == [1, 2]


def test_generate_starts_route_at_accommodation(scheduler):
    hotel = Accommodation(name="Hotel", lat=19.0, lng=73.0)
    attractions = [_attr(1, 19.0, 72.8), _attr(2, 19.0, 72.95)]
    days = scheduler.generate(attractions, hotel, 1, {})
    assert [a.id for a in days[0].attractions] == [2, 1]
    assert days[0].route_distance_km > 0


def test_generate_more_days_than_attractions(scheduler):
    days = scheduler.generate([_attr(1, 19.0, 72.8)], None, 3, {})
    assert [len(d.visits) for d in days] == [1, 0, 0]
    assert days[1].meals == []


def test_generate_rejects_zero_days(scheduler):
    with pytest.raises(ValueError):
        scheduler.generate([], None, 0)


def test_meals_for_long_day():
    attractions = [_attr(i, 19.0, 72.8, duration="Full day") for i in range(2)]
    visits, end = ItineraryScheduler.layout(attractions)
    assert visits[1].start_time == "17:30"
    assert format_clock(end) == "25:30"
    assert [m.type for m in ItineraryScheduler.meals(end)] == ["lunch", "dinner"]


def test_route_summary_rating():
    day = ItineraryDay(day=1, visits=[ScheduledVisit(_attr(1, 19.0, 72.8, duration="3 hours"))],
                       route_distance_km=10.0, route_travel_time_min=20.0)
    summary = ItineraryScheduler.route_summary(day)
    # 3 h at attractions vs 1/3 h travelling
    assert summary["efficiency"] == {"efficiency": 90, "rating": "excellent"}
    assert summary["totalDistance"] == 10.0


def test_sequential_travel_skips_bad_hops():
    km, mins = sequential_travel([_attr(1, 19.0, 72.8), Attraction(id=2), _attr(3, 19.0, 72.9)])
    assert km == 0.0
    assert mins == 0.0


def test_optimize_reorders_and_reports(scheduler):
    zigzag = [_attr(1, 19.0, 72.80), _attr(2, 19.0, 73.00), _attr(3, 19.0, 72.81), _attr(4, 19.0, 73.01)]
    day = ItineraryDay(day=1, visits=[ScheduledVisit(a) for a in zigzag])

    optimized, metrics = scheduler.optimize([day, ItineraryDay(day=2)])

    assert [a.id for a in optimized[0].attractions] == [1, 3, 2, 4]
    assert optimized[0].optimization_applied is True
    assert optimized[1].optimization_applied is False
    assert metrics["optimized"]["totalDistance"] < metrics["original"]["totalDistance"]
    assert metrics["improvement"]["timeSaved"] > 0
    assert metrics["improvement"]["efficiencyGain"] > 0
    assert metrics["original"]["totalAttractions"] == 4


def test_insights_balance_and_diversity(scheduler):
    busy = ItineraryDay(day=1, visits=[ScheduledVisit(_attr(i, 19.0, 72.8)) for i in range(7)])
    light = ItineraryDay(day=2, visits=[ScheduledVisit(_attr(9, 19.0, 72.8))])
    result = scheduler.insights([busy, light])

    assert result["balance"]["dailyBalances"][0]["balance"] == "busy"
    assert result["balance"]["overallBalance"] == "needs_optimization"
    assert result["diversity"]["diversity"] == "low"
    assert result["efficiency"]["averagePerDay"] == 4.0
    assert {r["type"] for r in result["recommendations"]} == {"diversity", "balance"}


def test_recommendations(scheduler):
    packed = ItineraryDay(day=1, visits=[ScheduledVisit(_attr(i, 19.0, 72.8, duration="3 hours")) for i in range(3)])
    light = ItineraryDay(day=2, visits=[ScheduledVisit(_attr(5, 19.0, 72.8, duration="1 hour"))])
    recs = scheduler.recommendations(
        [packed, light], {"interests": ["nature"], "groupType": "family", "tripType": "budget"},
    )

    assert [r["priority"] for r in recs["timeManagement"]] == ["high", "low"]
    assert [r["type"] for r in recs["experience"]] == ["nature"]
    assert [r["type"] for r in recs["logistics"]] == ["family", "budget"]
    assert recs["alternatives"] == []


def test_day_theme():
    assert day_theme(1, "Nature Lover", 4) == "Arrival & Orientation"
    assert day_theme(4, "Nature Lover", 4) == "Departure & Last-minute Exploration"
    assert day_theme(2, "Nature Lover", 4) == "Beaches & Water"
    assert day_theme(5, "Nature Lover", 9) == "Beaches & Water"


def test_meal_plan_budget_variants():
    assert meal_plan("low")[1]["suggestion"] == "Street food or budget restaurant"
    assert meal_plan("luxury")[2]["suggestion"] == "Fine dining restaurant with local cuisine"


def test_estimated_cost():
    assert estimated_cost(3, "medium") == {
        "total": 21000, "perDay": 3000, "accommodation": 12000, "currency": "INR",
    }


def test_sample_itineraries():
    plans = sample_itineraries("Jaipur", 3, {"budget": "low"})

    assert [p["name"] for p in plans] == [
        "Cultural Explorer", "Nature Lover", "Adventure Seeker", "Relaxation", "Food & Culture",
    ]
    cultural = plans[0]
    assert [len(d["attractions"]) for d in cultural["days"]] == [2, 2, 3]
    assert cultural["days"][0]["attractions"][0]["name"] == "Jaipur Museum"
    assert cultural["days"][0]["highlights"] == ["Jaipur Heritage Site"]
    assert cultural["estimatedCost"]["total"] == 10500
    assert plans[3]["days"][0]["attractions"][1]["category"] == "spa"
