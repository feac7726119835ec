"""
Endpoint tests through FastAPI's TestClient.

Every provider-backed dependency is overridden with a keyless tool and a
MagicMock session, so no request leaves the process.
"""
from unittest.mock import MagicMock

import pytest
import requests
from fastapi.testclient import TestClient

from conftest import json_response, routed_session
from api import deps
from api.server import app
from db.cache import TTLCache
from modules.planning.itinerary_scheduler import ItineraryScheduler
from modules.planning.route_planner import RoutePlanner
from modules.tool_usage.attraction_tool import AttractionTool
from modules.tool_usage.distance_tool import DistanceTool
from modules.tool_usage.hotel_tool import HotelTool

MUMBAI_POINTS = [
    {"id": 1, "name": "Gateway of India", "coordinates": [18.9220, 72.8347], "duration": "1-2 hours",
     "rating": 4.5, "category": "monument"},
    {"id": 2, "name": "Marine Drive", "coordinates": [18.9445, 72.8238], "duration": "2-3 hours",
     "rating": 4.3, "category": "scenic"},
    {"id": 3, "name": "Haji Ali Dargah", "coordinates": [18.9833, 72.8167], "duration": "1 hour",
     "rating": 4.2, "category": "religious"},
]


@pytest.fixture
def hotel_cache(fake_clock):
    return TTLCache(ttl_seconds=300, clock=fake_clock)


@pytest.fixture
def client(hotel_cache):
    distance_tool = DistanceTool(api_key="", session=MagicMock(), minutes_per_km=2.0)
    app.dependency_overrides[deps.get_distance_tool] = lambda: distance_tool
    app.dependency_overrides[deps.get_attraction_tool] = lambda: AttractionTool(api_key="", session=MagicMock())
    app.dependency_overrides[deps.get_hotel_tool] = lambda: HotelTool(
        cache=hotel_cache, session=MagicMock(), api_key="",
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def _error(resp, status=400, code="VALIDATION_ERROR"):
    assert resp.status_code == status
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == code
    assert "timestamp" in body["meta"]
    return body["error"]


# ── Health / envelope ─────────────────────────────────────────────────────────

def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["status"] == "ok"
    assert body["data"]["cacheBackend"] == "in_memory"


def test_unknown_route_uses_error_envelope(client):
    err = _error(client.get("/api/nope"), status=404, code="NOT_FOUND")
    assert err["message"]


def test_schema_errors_are_validation_errors(client):
    err = _error(client.post("/api/hotels/cluster", json={"accommodations": [{}], "k": "many"}))
    assert err["details"]["errors"]


def test_unhandled_error_is_500(client):
    broken = MagicMock(spec=ItineraryScheduler)
    broken.generate.side_effect = RuntimeError("kaput")
    app.dependency_overrides[deps.get_scheduler] = lambda: broken

    resp = TestClient(app, raise_server_exceptions=False).post("/api/itinerary/generate", json={
        "destination": "Mumbai", "startDate": "2025-03-01", "endDate": "2025-03-02",
    })
    err = _error(resp, status=500, code="INTERNAL_ERROR")
    assert err["message"] == "Internal server error"
    assert "details" not in err


# ── Budget ────────────────────────────────────────────────────────────────────

def test_budget_allocate(client):
    resp = client.post("/api/budget/allocate", json={
        "totalBudget": 50000, "duration": 5, "travelStyle": "moderate",
        "groupType": "couple", "groupSize": 2,
    })
    assert resp.status_code == 200
    body = resp.json()
    allocation = body["data"]["budgetAllocation"]

    assert sum(c["amount"] for c in allocation.values()) == 50000
    assert allocation["accommodation"]["amount"] == 17500
    assert body["data"]["summary"]["dailyBudget"] == 10000
    assert body["data"]["summary"]["perPersonBudget"] == 25000
    assert body["meta"]["algorithm"] == "intelligent_budget_allocation"


def test_budget_allocate_with_shopping(client):
    resp = client.post("/api/budget/allocate", json={
        "totalBudget": "33333", "duration": "3", "preferences": {"includeShopping": True},
    })
    allocation = resp.json()["data"]["budgetAllocation"]
    assert "shopping" in allocation
    assert sum(c["amount"] for c in allocation.values()) == 33333


def test_budget_allocate_missing_fields(client):
    err = _error(client.post("/api/budget/allocate", json={"duration": 3}))
    assert err["message"] == "Total budget and duration are required"


def test_budget_recommendations(client):
    resp = client.get("/api/budget/recommendations", params={
        "destination": "Goa", "duration": "4", "travelStyle": "budget", "groupSize": "3",
    })
    data = resp.json()["data"]
    assert data["estimatedCosts"]["totalForGroup"] == 1800 * 4 * 3
    assert data["recommendations"]["recommendedBudget"] == round(1800 * 4 * 3 * 1.1)


def test_budget_recommendations_requires_destination(client):
    err = _error(client.get("/api/budget/recommendations"))
    assert err["details"]["missingParams"] == ["destination"]


# ── Routes ────────────────────────────────────────────────────────────────────

def test_route_optimize(client):
    resp = client.post("/api/routes/optimize", json={
        "attractions": MUMBAI_POINTS + [{"id": 9, "name": "Broken", "coordinates": [0, 0]}],
        "accommodation": {"name": "Taj", "coordinates": [18.9217, 72.8330]},
    })
    assert resp.status_code == 200
    body = resp.json()
    route = body["data"]["route"]

    assert [seg["to"]["id"] for seg in route] == [1, 2, 3]
    assert route[0]["from"]["name"] == "Taj"
    assert body["meta"]["skippedCount"] == 1
    assert [p["id"] for p in body["data"]["points"]] == [1, 2, 3]
    assert [p["id"] for p in body["data"]["skipped"]] == [9]
    assert body["data"]["metrics"]["totalAttractionTime"] == 4
    warnings = [w["type"] for w in body["data"]["insights"]["warnings"]]
    assert "invalid_coordinates" in warnings


def test_route_optimize_single_point_is_listed(client):
    resp = client.post("/api/routes/optimize", json={
        "attractions": [{"id": 1, "name": "Red Fort", "coordinates": [28.6562, 77.2410]}],
    })
    data = resp.json()["data"]
    assert data["route"] == []
    assert [p["id"] for p in data["points"]] == [1]
    assert data["points"][0]["name"] == "Red Fort"
    assert data["metrics"]["totalAttractionTime"] == 2


def test_route_optimize_without_start_lists_every_point_once(client):
    resp = client.post("/api/routes/optimize", json={"attractions": MUMBAI_POINTS})
    data = resp.json()["data"]
    ids = [p["id"] for p in data["points"]]
    assert sorted(ids) == [1, 2, 3]
    assert ids[0] == 1
    assert [seg["to"]["id"] for seg in data["route"]] == ids[1:]
    assert data["skipped"] == []


def test_route_optimize_requires_attractions(client):
    err = _error(client.post("/api/routes/optimize", json={"attractions": []}))
    assert err["message"] == "At least one attraction is required for route optimization"


def test_route_details_fallback(client):
    resp = client.get("/api/routes/details", params={"start": "18.9220,72.8347", "end": "18.9445,72.8238"})
    body = resp.json()
    assert resp.status_code == 200
    assert body["meta"]["source"] == "fallback"
    assert body["data"]["route"]["instructions"] == []
    assert body["data"]["start"]["coordinates"] == [18.922, 72.8347]


@pytest.mark.parametrize("start", ["18.9", "a,b", "1,2,3", "95,10"])
def test_route_details_bad_coordinates(client, start):
    _error(client.get("/api/routes/details", params={"start": start, "end": "18.9,72.8"}))


def test_route_details_missing_params(client):
    err = _error(client.get("/api/routes/details", params={"start": "18.9,72.8"}))
    assert err["details"]["missingParams"] == ["end"]


def test_route_distance(client):
    resp = client.post("/api/routes/distance", json={"points": MUMBAI_POINTS, "useDistanceMatrix": False})
    data = resp.json()["data"]
    assert data["source"] == "haversine"
    assert len(data["distances"]) == 2
    assert resp.json()["meta"]["pointCount"] == 3


def test_route_distance_validation(client):
    _error(client.post("/api/routes/distance", json={"points": MUMBAI_POINTS[:1]}))
    err = _error(client.post("/api/routes/distance", json={
        "points": [MUMBAI_POINTS[0], {"name": "Bad", "lat": 200, "lng": 10}],
    }))
    assert err["details"]["errors"][0].startswith("points[1]:")


# ── Itinerary ─────────────────────────────────────────────────────────────────

def test_itinerary_generate_same_day_trip(client):
    resp = client.post("/api/itinerary/generate", json={
        "destination": "Mumbai", "startDate": "2025-03-01", "endDate": "2025-03-01",
        "attractions": MUMBAI_POINTS, "userPreferences": {"interests": "scenic"},
    })
    assert resp.status_code == 200
    data = resp.json()["data"]
    [day] = data["itinerary"]

    assert data["tripSummary"]["duration"] == 1
    assert day["date"] == "2025-03-01"
    assert day["attractions"][0]["startTime"] == "09:00"
    assert day["attractions"][1]["travelTime"] == 30
    assert "routeOptimization" in day
    assert data["insights"]["efficiency"]["totalAttractions"] == 3


def test_itinerary_generate_multi_day(client):
    resp = client.post("/api/itinerary/generate", json={
        "destination": "Mumbai", "startDate": "2025-03-01", "endDate": "2025-03-04",
        "attractions": MUMBAI_POINTS,
    })
    days = resp.json()["data"]["itinerary"]
    assert [d["date"] for d in days] == ["2025-03-01", "2025-03-02", "2025-03-03"]
    assert sum(len(d["attractions"]) for d in days) == 3


def test_itinerary_generate_validation(client):
    err = _error(client.post("/api/itinerary/generate", json={"destination": "Mumbai"}))
    assert err["details"]["missingFields"] == ["startDate", "endDate"]

    err = _error(client.post("/api/itinerary/generate", json={
        "destination": "Mumbai", "startDate": "01/03/2025", "endDate": "2025-03-02",
    }))
    assert err["details"]["errors"] == ["startDate must be in YYYY-MM-DD format"]

    err = _error(client.post("/api/itinerary/generate", json={
        "destination": "Mumbai", "startDate": "2025-03-05", "endDate": "2025-03-02",
    }))
    assert err["details"]["errors"] == ["endDate must be after or equal to startDate"]


def test_itinerary_generate_rejects_overlong_trip(client):
    err = _error(client.post("/api/itinerary/generate", json={
        "destination": "Mumbai", "startDate": "2000-01-01", "endDate": "2100-01-01",
    }))
    assert err["message"] == "Trip length must be at most 30 days"

    resp = client.post("/api/itinerary/generate", json={
        "destination": "Mumbai", "startDate": "2025-03-01", "endDate": "2025-03-31",
    })
    assert resp.status_code == 200
    assert len(resp.json()["data"]["itinerary"]) == 30


def test_itinerary_optimize(client):
    shuffled = [MUMBAI_POINTS[0], MUMBAI_POINTS[2], MUMBAI_POINTS[1]]
    resp = client.post("/api/itinerary/optimize", json={
        "itinerary": [{"day": 1, "date": "2025-03-01", "attractions": shuffled}],
    })
    assert resp.status_code == 200
    data = resp.json()["data"]
    optimized = data["optimizedItinerary"][0]

    assert [a["id"] for a in optimized["attractions"]] == [1, 2, 3]
    assert optimized["optimizationApplied"] is True
    assert data["originalItinerary"][0]["attractions"][1]["id"] == 3
    assert data["optimizationMetrics"]["improvement"]["distanceReduced"] > 0


def test_itinerary_optimize_requires_days(client):
    err = _error(client.post("/api/itinerary/optimize", json={"itinerary": []}))
    assert err["details"]["errors"] == ["itinerary must be a non-empty array"]


def test_itinerary_recommendations(client):
    resp = client.get("/api/itinerary/recommendations", params={"destination": "Jaipur", "days": "2"})
    data = resp.json()["data"]
    assert len(data["recommendations"]) == 5
    assert data["recommendations"][0]["days"][1]["theme"] == "Departure & Last-minute Exploration"


@pytest.mark.parametrize("days", ["0", "31", "abc"])
def test_itinerary_recommendations_day_bounds(client, days):
    err = _error(client.get("/api/itinerary/recommendations", params={"destination": "Jaipur", "days": days}))
    assert err["details"]["errors"] == ["days must be a number between 1 and 30"]


# ── Attractions ───────────────────────────────────────────────────────────────

def test_attraction_search_fallback(client):
    resp = client.get("/api/attractions/search", params={"destination": "Mumbai"})
    body = resp.json()
    assert resp.status_code == 200
    assert body["data"]["source"] == "fallback"
    assert body["data"]["totalFound"] == 5
    assert body["meta"]["provider"] == "mock"
    assert body["data"]["attractions"][0]["coordinates"] == [18.922, 72.8347]


def test_attraction_search_interest_and_budget(client):
    resp = client.get("/api/attractions/search", params={
        "destination": "Mumbai", "interests": "heritage", "budget": "low",
    })
    data = resp.json()["data"]
    ids = [a["id"] for a in data["attractions"]]
    assert ids[0] == 4
    assert 3 not in ids  # Elephanta costs 250
    assert data["filteredCount"] == 4


def test_attraction_recommendations(client):
    resp = client.post("/api/attractions/recommendations", json={
        "destination": "Delhi", "userInterests": ["fort"], "tripType": "cultural", "groupType": "couple",
    })
    data = resp.json()["data"]
    recs = data["recommendations"]

    assert set(recs) == {"topRated", "budgetFriendly", "contentBased", "trending", "personalized"}
    assert recs["personalized"][0]["name"] == "Red Fort"
    assert "personalizedScore" in recs["personalized"][0]
    assert data["totalAnalyzed"] == 3
    assert 0 <= data["confidence"] <= 100
    assert data["userProfile"]["interests"] == ["fort"]


def test_attraction_recommendations_non_finite_numbers(client):
    resp = client.post(
        "/api/attractions/recommendations",
        content='{"destination": "Delhi", "groupSize": Infinity, "duration": NaN}',
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 200
    profile = resp.json()["data"]["userProfile"]
    assert (profile["groupSize"], profile["duration"]) == (1, 3)


def test_attraction_recommendations_requires_destination(client):
    err = _error(client.post("/api/attractions/recommendations", json={}))
    assert err["details"]["missingFields"] == ["destination"]


# ── Hotels ────────────────────────────────────────────────────────────────────

def test_hotel_search_paginates_and_caches(client, hotel_cache):
    params = {"destination": "Pune", "page": "2", "limit": "2"}
    first = client.get("/api/hotels/search", params=params).json()

    assert [h["name"] for h in first["data"]["hotels"]] == ["Pune Budget Lodge", "Pune Business Hotel"]
    assert first["meta"]["source"] == "mock"
    assert first["meta"]["fallback"] is True
    assert (first["meta"]["total"], first["meta"]["totalPages"]) == (5, 3)

    second = client.get("/api/hotels/search", params=params).json()
    assert second["meta"]["source"] == "cache"
    assert second["data"]["hotels"] == first["data"]["hotels"]
    assert len(hotel_cache) == 1


def test_hotel_photo_relay(client):
    photo = json_response({})
    photo.content = b"png-bytes"
    photo.headers = {"Content-Type": "image/png"}
    app.dependency_overrides[deps.get_hotel_tool] = lambda: HotelTool(
        session=routed_session({"place/photo": photo}), api_key="k",
    )

    resp = client.get("/api/hotels/photo", params={"ref": "ref1"})
    assert resp.status_code == 200
    assert resp.content == b"png-bytes"
    assert resp.headers["content-type"] == "image/png"


def test_hotel_photo_relay_errors(client):
    _error(client.get("/api/hotels/photo"))

    app.dependency_overrides[deps.get_hotel_tool] = lambda: HotelTool(
        session=routed_session({"place/photo": requests.Timeout("slow")}), api_key="k",
    )
    err = _error(client.get("/api/hotels/photo", params={"ref": "ref1"}), status=502, code="BAD_GATEWAY")
    assert err["message"] == "Hotel photo unavailable"


def test_hotel_cluster(client):
    hotels = [
        {"id": i, "name": f"H{i}", "price": price, "rating": 4.0, "distanceFromCenter": 2}
        for i, price in enumerate([900, 1000, 1100, 7000, 7200, 7400])
    ]
    resp = client.post("/api/hotels/cluster", json={"accommodations": hotels, "k": 2, "seed": 11})
    body = resp.json()

    assert resp.status_code == 200
    assert all("cluster" in h for h in body["data"]["accommodations"])
    assert sum(c["count"] for c in body["data"]["clusters"]) == 6
    assert body["data"]["clusters"][0]["label"] == "budget"
    assert body["meta"]["k"] == 2


def test_hotel_cluster_validation(client):
    err = _error(client.post("/api/hotels/cluster", json={"accommodations": []}))
    assert err["details"]["errors"] == ["accommodations must be a non-empty array"]
    err = _error(client.post("/api/hotels/cluster", json={"accommodations": [{"price": 1}], "k": 0}))
    assert err["details"]["errors"] == ["k must be at least 1"]
