"""
api/routes/budget.py
--------------------
POST /api/budget/allocate         split a total budget across categories
GET  /api/budget/recommendations  destination cost estimate + budget ranges
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from api.responses import success
from api.serializers import ser_budget
from modules.planning.budget_planner import BudgetPlanner, normalize_group_size, round_half_up
from modules.validation import positive_number, require_query_params

logger = logging.getLogger(__name__)

router = APIRouter()

_planner = BudgetPlanner()


class AllocateRequest(BaseModel):
    totalBudget: Optional[Any] = None
    duration: Optional[Any] = None
    travelStyle: str = "moderate"
    groupType: str = "solo"
    groupSize: Optional[Any] = 1
    preferences: Optional[dict] = None


@router.post("/allocate", summary="Allocate a trip budget across categories")
def allocate_budget(req: AllocateRequest) -> dict:
    allocation = _planner.allocate(
        req.totalBudget, req.duration, req.travelStyle, req.groupType, req.groupSize, req.preferences,
    )
    duration = int(float(req.duration))
    group_size = normalize_group_size(req.groupSize)
    logger.info("[budget] allocated %d INR over %d day(s) (%s/%s)",
                allocation.total_budget, duration, req.travelStyle, req.groupType)

    return success(
        {
            "budgetAllocation": ser_budget(allocation),
            "insights":         _planner.insights(allocation, req.travelStyle),
            "recommendations":  _planner.recommendations(allocation, duration),
            "summary": {
                "totalBudget":     allocation.total_budget,
                "duration":        duration,
                "dailyBudget":     round_half_up(allocation.total_budget / duration),
                "perPersonBudget": round_half_up(allocation.total_budget / group_size),
                "groupSize":       group_size,
                "travelStyle":     req.travelStyle,
            },
        },
        algorithm="intelligent_budget_allocation",
    )


@router.get("/recommendations", summary="Estimated trip cost and budget ranges for a destination")
def budget_recommendations(
    destination: str = Query(""),
    duration: str = Query("3"),
    travelStyle: str = Query("moderate"),
    groupType: str = Query("couple"),
    groupSize: str = Query("2"),
) -> dict:
    require_query_params({"destination": destination.strip()}, ["destination"])
    days = max(1, int(positive_number(duration, "duration")))
    size = normalize_group_size(groupSize)

    estimated = BudgetPlanner.estimate_destination_costs(destination, days, travelStyle, size)
    return success(
        {
            "destination":     destination,
            "estimatedCosts":  estimated,
            "recommendations": BudgetPlanner.budget_ranges(estimated, travelStyle),
            "travelStyle":     travelStyle,
            "groupType":       groupType,
            "groupSize":       size,
        },
        currency="INR",
    )


