"""
config.py
---------
Central configuration for the trip planner backend.
All secrets loaded from environment variables, never hard-coded.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the backend directory (if it exists) so env vars in that file
# are picked up by os.getenv() below.  Won't override vars already set in the shell.
_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path, override=False)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# ── Runtime ───────────────────────────────────────────────────────────────────
APP_ENV: str   = os.getenv("APP_ENV", "production")     # "development" exposes tracebacks
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
SERVICE_NAME: str = "trip-planner-backend"

# ── Google Maps Platform (Places, Geocoding, Directions, Distance Matrix) ─────
# Obtain at: https://console.cloud.google.com/apis/credentials
# Either variable name is accepted; GOOGLE_MAPS_API_KEY wins when both are set.
GOOGLE_PLACES_API_KEY: str = (
    os.getenv("GOOGLE_MAPS_API_KEY") or os.getenv("GOOGLE_PLACES_API_KEY", "")
)
GOOGLE_PLACES_SEARCH_RADIUS_M: int = int(os.getenv("GOOGLE_PLACES_SEARCH_RADIUS_M", "10000"))
GOOGLE_PLACES_MAX_RESULTS: int     = int(os.getenv("GOOGLE_PLACES_MAX_RESULTS", "20"))

# ── RapidAPI Travel Advisor (attraction search) ───────────────────────────────
RAPIDAPI_KEY: str  = os.getenv("RAPIDAPI_KEY", "")
RAPIDAPI_HOST: str = os.getenv("RAPIDAPI_HOST", "travel-advisor.p.rapidapi.com")

# Per-tool stub flags.  A tool also falls back to stub data when its key is absent.
USE_STUB_ATTRACTIONS: bool = _flag("USE_STUB_ATTRACTIONS", "false")
USE_STUB_HOTELS:      bool = _flag("USE_STUB_HOTELS",      "false")

# Single attempt per outbound call; no retries.
EXTERNAL_API_TIMEOUT_S: float = float(os.getenv("EXTERNAL_API_TIMEOUT_S", "15"))

# ── Travel-time model ─────────────────────────────────────────────────────────
# Linear city-traffic estimate: 2 min/km ≈ 30 km/h average.
CITY_MINUTES_PER_KM: float = float(os.getenv("CITY_MINUTES_PER_KM", "2.0"))

# ── Scheduling (minutes unless noted) ─────────────────────────────────────────
DAY_START_HOUR: int        = int(os.getenv("DAY_START_HOUR", "9"))       # 09:00
INTER_STOP_BUFFER_MIN: int = int(os.getenv("INTER_STOP_BUFFER_MIN", "30"))
LUNCH_HOUR: int            = 12
DINNER_HOUR: int           = 19
MAX_TRIP_DAYS: int         = int(os.getenv("MAX_TRIP_DAYS", "30"))     # per generate request

# ── Recommendation / clustering ───────────────────────────────────────────────
RECOMMENDATION_TOP_N: int  = int(os.getenv("RECOMMENDATION_TOP_N", "10"))
KMEANS_DEFAULT_K: int      = int(os.getenv("KMEANS_DEFAULT_K", "3"))
KMEANS_MAX_ITERATIONS: int = int(os.getenv("KMEANS_MAX_ITERATIONS", "100"))

# ── Currency ──────────────────────────────────────────────────────────────────
CURRENCY_UNIT: str = os.getenv("CURRENCY_UNIT", "INR")

# ── Cache backend ─────────────────────────────────────────────────────────────
# "in_memory" keeps entries per process; "redis" shares them across workers.
CACHE_BACKEND: str     = os.getenv("CACHE_BACKEND", "in_memory")
CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", "300"))   # 5 minutes

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_HOST: str     = os.getenv("REDIS_HOST",     "localhost")
REDIS_PORT: int     = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB: int       = int(os.getenv("REDIS_DB",   "0"))
REDIS_PASSWORD: str = os.getenv("REDIS_PASSWORD", "")
REDIS_KEY_PREFIX: str = os.getenv("REDIS_KEY_PREFIX", "tripcache")

# ── Observability ─────────────────────────────────────────────────────────────
# JSONL performance events land in <backend>/logs/<stream>.jsonl
PERF_LOG_ENABLED: bool = _flag("PERF_LOG_ENABLED", "true")
