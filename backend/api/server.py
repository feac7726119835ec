"""
api/server.py
-------------
FastAPI application entry point.

Run dev server:
    cd backend
    uvicorn api.server:app --reload --port 8000

Endpoints:
    GET  /api/health
    POST /api/budget/allocate
    GET  /api/budget/recommendations
    POST /api/routes/optimize
    GET  /api/routes/details
    POST /api/routes/distance
    POST /api/itinerary/generate
    POST /api/itinerary/optimize
    GET  /api/itinerary/recommendations
    GET  /api/attractions/search
    POST /api/attractions/recommendations
    GET  /api/hotels/search
    POST /api/hotels/cluster
"""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from api.responses import register_exception_handlers
from api.routes import attractions, budget, health, hotels, itinerary, route_optimization

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Trip Planner API",
    version="1.0.0",
    description=(
        "Trip planning backend: budget allocation, nearest-neighbour route ordering, "
        "day-by-day scheduling and content-based attraction recommendations. "
        "Integrates Google Maps (Distance Matrix, Directions, Places) and Travel Advisor."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
)

# Allow the web client (any origin during development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health.router,             prefix="/api",             tags=["Health"])
app.include_router(budget.router,             prefix="/api/budget",      tags=["Budget"])
app.include_router(route_optimization.router, prefix="/api/routes",      tags=["Routes"])
app.include_router(itinerary.router,          prefix="/api/itinerary",   tags=["Itinerary"])
app.include_router(attractions.router,        prefix="/api/attractions", tags=["Attractions"])
app.include_router(hotels.router,             prefix="/api/hotels",      tags=["Hotels"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.server:app", host="0.0.0.0", port=8000, reload=True)
