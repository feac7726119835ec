"""
api/routes/attractions.py
-------------------------
GET  /api/attractions/search            content-based filtered attraction list
POST /api/attractions/recommendations   topRated / budgetFriendly / contentBased / trending / personalized
"""
from __future__ import annotations

import logging
import math
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from api.deps import get_attraction_tool
from api.responses import success
from api.serializers import ser_attraction
from schemas.travel import UserProfile
from modules.planning.attraction_scoring import ContentRecommender, filter_by_budget, insights
from modules.tool_usage.attraction_tool import AttractionTool
from modules.validation import require_fields

logger = logging.getLogger(__name__)

router = APIRouter()

# Candidate pool pulled for profile-based recommendations
_PROFILE_MIN_RATING = 3.0
_PROFILE_POOL_SIZE = 50


class RecommendationRequest(BaseModel):
    destination: Optional[str] = None
    userInterests: list[str] = []
    tripType: str = "leisure"
    groupType: str = "couple"
    budget: str = "medium"
    duration: Any = 3
    groupSize: Any = 1
    previousVisits: list[str] = []


def _number(value: str, default: float) -> float:
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    return num if math.isfinite(num) else default


@router.get("/search", summary="Search attractions with interest and budget filtering")
def search_attractions(
    destination: str = Query(""),
    interests: str = Query(""),
    budget: str = Query("medium"),
    minRating: str = Query("4"),
    maxResults: str = Query("20"),
    tool: AttractionTool = Depends(get_attraction_tool),
) -> dict:
    limit = max(1, int(_number(maxResults, 20)))
    result = tool.search(destination, min_rating=_number(minRating, 0), max_results=limit)
    base = result.data

    ranked = base
    user_interests = [i.strip() for i in interests.split(",") if i.strip()]
    if user_interests:
        ranked = ContentRecommender().score_attractions(user_interests, base)
    if budget != "any":
        ranked = filter_by_budget(ranked, budget)

    return success(
        {
            "attractions":   [ser_attraction(a) for a in ranked[:limit]],
            "insights":      insights(ranked),
            "totalFound":    len(base),
            "filteredCount": len(ranked),
            "source":        result.source,
        },
        provider=result.provider,
        algorithm="content_based_filtering",
    )


@router.post("/recommendations", summary="Profile-based attraction recommendations")
def recommend_attractions(
    req: RecommendationRequest,
    tool: AttractionTool = Depends(get_attraction_tool),
) -> dict:
    require_fields(req.model_dump(), ["destination"])
    profile = UserProfile.from_dict({
        "interests":      req.userInterests,
        "tripType":       req.tripType,
        "groupType":      req.groupType,
        "budget":         req.budget,
        "duration":       req.duration,
        "groupSize":      req.groupSize,
        "previousVisits": req.previousVisits,
    })

    result = tool.search(req.destination, min_rating=_PROFILE_MIN_RATING, max_results=_PROFILE_POOL_SIZE)
    recommender = ContentRecommender()
    recommendations = recommender.comprehensive(result.data, profile)
    logger.info("[attractions] %d candidate(s) analysed for %s", len(result.data), req.destination)

    body = {
        name: [ser_attraction(a) for a in items]
        for name, items in recommendations.items() if name != "personalized"
    }
    body["personalized"] = [
        {**ser_attraction(a), "personalizedScore": round(score, 2)}
        for a, score in recommendations["personalized"]
    ]
    return success(
        {
            "recommendations": body,
            "userProfile":     profile.to_dict(),
            "totalAnalyzed":   len(result.data),
            "confidence":      recommender.confidence(recommendations),
        },
        source=result.source,
        provider=result.provider,
        algorithm="multi_signal_ensemble",
    )
