"""
modules/planning/budget_planner.py
------------------------------------
Deterministic budget allocation engine.

  1. Look up the percentage table for the travel style (each sums to 1.0).
  2. Apply small group-type adjustments on a copy of the table:
       family → accommodation +0.05 (≤ 0.50), activities −0.02 (≥ 0.10)
       solo   → accommodation −0.05 (≥ 0.25), food +0.02
  3. Optional shopping line (preferences.includeShopping) takes 5 % and the
     other categories are scaled by 0.95.
  4. amount = round(total × pct); perDay / perPerson from the unrounded amount.
  5. Reconcile: add (total − Σ amount) to the largest category so that
     Σ(categories) == TotalBudget exactly.

Entry points
------------
  allocate()                   : POST /api/budget/allocate
  insights() / recommendations()
  estimate_destination_costs() : GET /api/budget/recommendations
  budget_ranges()

All monetary amounts are in INR.  Rounding is half-up, not banker's rounding.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Optional

from schemas.itinerary import BudgetAllocation, BudgetCategory
from modules.validation import ValidationError
from modules.observability.logger import StructuredLogger

logger = logging.getLogger(__name__)

_perf_logger = StructuredLogger()

CATEGORIES: tuple[str, ...] = (
    "accommodation", "food", "transportation", "activities", "miscellaneous",
)

# ── Base split per travel style (fractions of TotalBudget) ────────────────────
STYLE_ALLOCATIONS: dict[str, dict[str, float]] = {
    "budget":   {"accommodation": 0.30, "food": 0.20, "transportation": 0.25, "activities": 0.20, "miscellaneous": 0.05},
    "relaxed":  {"accommodation": 0.35, "food": 0.25, "transportation": 0.20, "activities": 0.15, "miscellaneous": 0.05},
    "moderate": {"accommodation": 0.35, "food": 0.25, "transportation": 0.20, "activities": 0.15, "miscellaneous": 0.05},
    "intense":  {"accommodation": 0.30, "food": 0.20, "transportation": 0.25, "activities": 0.20, "miscellaneous": 0.05},
    "luxury":   {"accommodation": 0.45, "food": 0.30, "transportation": 0.15, "activities": 0.08, "miscellaneous": 0.02},
}
_DEFAULT_STYLE = "moderate"

# ── Group adjustments ─────────────────────────────────────────────────────────
_FAMILY_ACCOMMODATION_CAP   = 0.50
_FAMILY_ACTIVITIES_FLOOR    = 0.10
_SOLO_ACCOMMODATION_FLOOR   = 0.25
_SHOPPING_PCT               = 0.05

# Reference splits used to grade a final allocation (percent points)
_IDEAL_PERCENTAGES: dict[str, dict[str, int]] = {
    "budget":   {"accommodation": 30, "food": 20, "transportation": 25, "activities": 20},
    "moderate": {"accommodation": 35, "food": 25, "transportation": 20, "activities": 15},
    "luxury":   {"accommodation": 45, "food": 30, "transportation": 15, "activities": 8},
}

_DESCRIPTIONS: dict[str, dict[str, str]] = {
    "accommodation": {
        "budget":   "Hostels, guesthouses, or budget hotels",
        "relaxed":  "Comfortable hotels with good amenities",
        "moderate": "Mid-range hotels or resorts",
        "luxury":   "Premium hotels or luxury resorts",
        "intense":  "Basic accommodation to save for activities",
    },
    "food": {
        "budget":   "Street food and local restaurants",
        "relaxed":  "Mix of local and restaurant dining",
        "moderate": "Restaurants with occasional fine dining",
        "luxury":   "Fine dining and premium restaurants",
        "intense":  "Quick meals and local food",
    },
    "transportation": {
        "budget":   "Public transport and shared rides",
        "relaxed":  "Mix of public and private transport",
        "moderate": "Private cabs and rental vehicles",
        "luxury":   "Private transport and premium vehicles",
        "intense":  "Public transport and group tours",
    },
    "activities": {
        "budget":   "Free attractions and low-cost activities",
        "relaxed":  "Main attractions with some premium experiences",
        "moderate": "Major attractions and experiences",
        "luxury":   "Exclusive experiences and private tours",
        "intense":  "Maximum activities and adventures",
    },
    "miscellaneous": {
        "budget":   "Emergency fund and essentials",
        "relaxed":  "Shopping, tips, and extras",
        "moderate": "Shopping, tips, and leisure",
        "luxury":   "Shopping, tips, and premium extras",
        "intense":  "Emergency fund and activity extras",
    },
    "shopping": {
        "moderate": "Shopping and souvenirs budget",
    },
}

# ── Destination daily cost per person (INR) ──────────────────────────────────
DESTINATION_DAILY_COSTS: dict[str, dict[str, float]] = {
    "mumbai":    {"budget": 1500, "moderate": 3500, "luxury": 12000},
    "delhi":     {"budget": 1200, "moderate": 3000, "luxury": 10000},
    "goa":       {"budget": 1800, "moderate": 4000, "luxury": 15000},
    "bangalore": {"budget": 1400, "moderate": 3200, "luxury": 11000},
}
_DEFAULT_DESTINATION = "mumbai"

_RANGE_MULTIPLIERS: dict[str, float] = {
    "minimum":     0.8,
    "recommended": 1.1,
    "comfortable": 1.3,
    "luxury":      1.8,
}
_BUFFER_PERCENTAGE = 10


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (matches client-side rounding)."""
    return int(math.floor(value + 0.5))


def describe_category(category: str, travel_style: str) -> str:
    table = _DESCRIPTIONS.get(category, {})
    return (
        table.get(travel_style)
        or table.get(_DEFAULT_STYLE)
        or "Budget allocation for this category"
    )


class BudgetPlanner:
    """
    Percentage-table budget planner.

    Usage:
        planner = BudgetPlanner()
        allocation = planner.allocate(50000, 5, "moderate", "couple", 2)
        assert allocation.total == 50000
    """

    # =========================================================================
    # PUBLIC: allocate
    # =========================================================================

    def allocate(
        self,
        total_budget: Any,
        duration: Any,
        travel_style: str = _DEFAULT_STYLE,
        group_type: str = "solo",
        group_size: Any = 1,
        preferences: Optional[dict] = None,
    ) -> BudgetAllocation:
        """
        Split *total_budget* across categories.

        Amounts are whole rupees: a fractional total_budget is first rounded
        half-up, and the category amounts sum to that rounded figure
        (1000.7 allocates 1001).

        Raises ValidationError when total_budget or duration is missing,
        non-numeric or not positive.  A group_size below 1 counts as 1.
        """
        errors: list[str] = []
        if total_budget in (None, "") or not _positive(total_budget):
            errors.append("totalBudget is required and must be greater than 0")
        if duration in (None, "") or not _positive(duration):
            errors.append("duration is required and must be greater than 0")
        if errors:
            raise ValidationError(errors, message="Total budget and duration are required")

        total = round_half_up(float(total_budget))
        days = int(float(duration))
        if days < 1:
            raise ValidationError("duration must be at least 1 day")
        size = normalize_group_size(group_size)
        preferences = preferences or {}

        with _perf_logger.timed("BudgetPlanner.allocate", style=travel_style, group_type=group_type):
            pct = self.adjusted_percentages(travel_style, group_type)
            if preferences.get("includeShopping"):
                pct = {name: value * (1 - _SHOPPING_PCT) for name, value in pct.items()}
                pct["shopping"] = _SHOPPING_PCT

            allocation = BudgetAllocation(total_budget=total)
            for name, share in pct.items():
                raw = total * share
                allocation.categories[name] = BudgetCategory(
                    amount=round_half_up(raw),
                    percentage=round_half_up(share * 100),
                    per_day=round_half_up(raw / days),
                    per_person=round_half_up(raw / size),
                    description=describe_category(name, travel_style),
                )

            # ── Reconcile rounding / adjustment remainder ─────────────────────
            difference = total - allocation.total
            if difference:
                largest = allocation.largest()
                allocation.categories[largest].amount += difference
                logger.debug(
                    "[BudgetPlanner] reconciled %+d into %s", difference, largest,
                )

        assert allocation.total == total, "budget reconciliation failed"
        return allocation

    @staticmethod
    def adjusted_percentages(travel_style: str, group_type: str) -> dict[str, float]:
        """Style table with group adjustments applied (never mutates the table)."""
        pct = dict(STYLE_ALLOCATIONS.get(travel_style, STYLE_ALLOCATIONS[_DEFAULT_STYLE]))
        if group_type == "family":
            pct["accommodation"] = min(pct["accommodation"] + 0.05, _FAMILY_ACCOMMODATION_CAP)
            pct["activities"] = max(pct["activities"] - 0.02, _FAMILY_ACTIVITIES_FLOOR)
        elif group_type == "solo":
            pct["accommodation"] = max(pct["accommodation"] - 0.05, _SOLO_ACCOMMODATION_FLOOR)
            pct["food"] = pct["food"] + 0.02
        return pct

    # =========================================================================
    # PUBLIC: insights / recommendations
    # =========================================================================

    def insights(self, allocation: BudgetAllocation, travel_style: str) -> dict:
        distribution = {
            name: {
                "percentage": cat.percentage,
                "perDay":     cat.per_day,
                "priority":   _priority(cat.percentage),
            }
            for name, cat in allocation.items()
        }
        daily = sum(cat.per_day for _, cat in allocation.items())

        recommendations: list[dict] = []
        if "accommodation" in allocation and allocation["accommodation"].percentage < 25:
            recommendations.append({
                "type":       "accommodation",
                "priority":   "medium",
                "message":    "Accommodation budget is low - consider hostels or shared accommodations",
                "suggestion": "Look for budget-friendly options or consider adjusting your travel style",
            })
        if "activities" in allocation and allocation["activities"].percentage < 10:
            recommendations.append({
                "type":       "activities",
                "priority":   "low",
                "message":    "Low activity budget - focus on free attractions",
                "suggestion": "Look for free walking tours and public parks",
            })

        return {
            "categoryDistribution": distribution,
            "budgetEfficiency": {
                "dailyBudget":      daily,
                "budgetPerDay":     daily,
                "efficiencyRating": self.efficiency_rating(allocation, travel_style),
                "affordability":    affordability(daily),
            },
            "recommendations": recommendations,
        }

    @staticmethod
    def efficiency_rating(allocation: BudgetAllocation, travel_style: str) -> int:
        """100 minus 2 points per percentage point away from the reference split, clamped 0–100."""
        ideal = _IDEAL_PERCENTAGES.get(travel_style, _IDEAL_PERCENTAGES[_DEFAULT_STYLE])
        score = 100.0
        for name, target in ideal.items():
            if name in allocation:
                score -= abs(allocation[name].percentage - target) * 2
        return max(0, min(100, round_half_up(score)))

    @staticmethod
    def recommendations(allocation: BudgetAllocation, duration: int) -> list[dict]:
        recs: list[dict] = []
        if duration > 7:
            recs.append({
                "type":     "duration",
                "priority": "medium",
                "message":  "Long trip - consider booking accommodations in advance for better rates",
                "action":   "Book early to get discounts",
            })
        if "accommodation" in allocation and allocation["accommodation"].percentage > 40:
            recs.append({
                "type":     "accommodation",
                "priority": "high",
                "message":  "High accommodation budget - look for package deals",
                "action":   "Consider booking accommodation + activities packages",
            })
        if "food" in allocation and allocation["food"].percentage < 20:
            recs.append({
                "type":     "food",
                "priority": "medium",
                "message":  "Low food budget - explore street food and local markets",
                "action":   "Research affordable local food options",
            })
        return recs

    # =========================================================================
    # PUBLIC: destination estimates
    # =========================================================================

    @staticmethod
    def estimate_destination_costs(
        destination: str,
        duration: int,
        travel_style: str,
        group_size: int,
    ) -> dict:
        """Rough trip cost from a per-destination daily rate.  Unknown cities use Mumbai rates."""
        tier = DESTINATION_DAILY_COSTS.get(
            destination.strip().lower(), DESTINATION_DAILY_COSTS[_DEFAULT_DESTINATION]
        )
        by_style = {
            "budget":   tier["budget"],
            "relaxed":  tier["moderate"] * 0.9,
            "moderate": tier["moderate"],
            "intense":  tier["budget"] * 1.2,
            "luxury":   tier["luxury"],
        }
        daily = by_style.get(travel_style, tier["moderate"])
        size = normalize_group_size(group_size)
        return {
            "dailyPerPerson": round_half_up(daily),
            "totalPerPerson": round_half_up(daily * duration),
            "totalForGroup":  round_half_up(daily * duration * size),
            "destination":    destination,
            "duration":       duration,
            "groupSize":      size,
        }

    @staticmethod
    def budget_ranges(estimated: dict, travel_style: str) -> dict:
        total = estimated["totalForGroup"]
        ranges = {name: round_half_up(total * m) for name, m in _RANGE_MULTIPLIERS.items()}
        return {
            "budgetRanges":      ranges,
            "recommendedBudget": ranges["recommended"],
            "bufferPercentage":  _BUFFER_PERCENTAGE,
            "emergencyFund":     round_half_up(ranges["recommended"] * _BUFFER_PERCENTAGE / 100),
            "explanation": (
                f"Based on {travel_style} travel style for {estimated['groupSize']} person(s)"
            ),
        }


# ── Module helpers ────────────────────────────────────────────────────────────

def _positive(value: Any) -> bool:
    try:
        num = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(num) and num > 0


def normalize_group_size(value: Any) -> int:
    try:
        size = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 1
    return size if size >= 1 else 1


def _priority(percentage: int) -> str:
    if percentage >= 30:
        return "high"
    if percentage >= 15:
        return "medium"
    return "low"


def affordability(daily_budget: float) -> str:
    if daily_budget < 1000:
        return "very_budget"
    if daily_budget < 2500:
        return "budget"
    if daily_budget < 5000:
        return "moderate"
    if daily_budget < 10000:
        return "comfortable"
    return "luxury"
