"""
modules/validation/request_validator.py
----------------------------------------
Input guards applied before any planner runs.

  Coordinates (attractions / accommodations / route points):
    ✓ lat and lng present and numeric
    ✓ both finite (NaN / inf rejected)
    ✓ Latitude in [-90, 90], longitude in [-180, 180]
    ✓ Not both exactly 0.0 (null island, a missing value)

  Request bodies / query strings:
    ✓ required fields present and non-empty
    ✓ dates are YYYY-MM-DD and end >= start
    ✓ "lat,lng" strings parse to exactly two finite numbers

Failures raise ValidationError, which the API layer turns into
HTTP 400 with code VALIDATION_ERROR.

Usage:
    from modules.validation import validate_point, partition_valid

    clean, rejected = partition_valid(attractions, validate_point)
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Iterable, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ValidationError(Exception):
    """
    Raised for missing or malformed caller input.

    Attributes:
        errors:  Human-readable list of failure reasons.
        message: Short summary used as the envelope's error.message.
        extra:   Additional keys merged into error.details (e.g. missingFields).
    """

    def __init__(
        self,
        errors: list[str] | str,
        message: Optional[str] = None,
        extra: Optional[dict] = None,
    ) -> None:
        self.errors = [errors] if isinstance(errors, str) else list(errors)
        # a lone reason doubles as the summary
        if message is None:
            message = errors if isinstance(errors, str) else "Validation failed"
        self.message = message
        self.extra = extra or {}
        super().__init__(f"{message}: {'; '.join(self.errors)}")


# ── Result dataclass ───────────────────────────────────────────────────────────

@dataclass
class ValidationResult:
    """
    Outcome of a single validation run.

    Attributes:
        valid:  True iff there are zero errors.
        errors: Human-readable list of failure reasons.
        record: The validated object (for logging purposes).
    """
    valid: bool
    errors: list[str] = field(default_factory=list)
    record: Any = field(default=None, repr=False)

    def __bool__(self) -> bool:
        return self.valid


# ── Coordinate validation ──────────────────────────────────────────────────────

def coordinate_errors(lat: Any, lng: Any) -> list[str]:
    """Return every reason (lat, lng) is unusable; empty list when valid."""
    if lat is None or lng is None:
        return [f"lat/lng must not be missing (got lat={lat!r}, lng={lng!r})"]
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        return [f"lat/lng must be numeric (got lat={lat!r}, lng={lng!r})"]

    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        return [f"lat/lng must be finite (got lat={lat_f}, lng={lng_f})"]

    errors: list[str] = []
    if not (-90.0 <= lat_f <= 90.0):
        errors.append(f"lat={lat_f} is outside valid range [-90, 90]")
    if not (-180.0 <= lng_f <= 180.0):
        errors.append(f"lng={lng_f} is outside valid range [-180, 180]")
    if lat_f == 0.0 and lng_f == 0.0:
        errors.append("lat=0.0 and lng=0.0: likely a missing/default value")
    return errors


def valid_coordinates(lat: Any, lng: Any) -> bool:
    return not coordinate_errors(lat, lng)


def validate_point(point: Any) -> ValidationResult:
    """
    Validate anything with .lat / .lng (Attraction, Accommodation, RouteStop).
    """
    errors = coordinate_errors(getattr(point, "lat", None), getattr(point, "lng", None))
    if errors:
        name = getattr(point, "name", "") or "?"
        errors = [f"'{name}': {e}" for e in errors]
    return ValidationResult(valid=not errors, errors=errors, record=point)


# ── Batch helpers ──────────────────────────────────────────────────────────────

def partition_valid(
    items: Iterable[T],
    validator: Callable[[T], ValidationResult],
) -> tuple[list[T], list[T]]:
    """Split items into (passed, rejected), preserving input order."""
    passed: list[T] = []
    rejected: list[T] = []
    for item in items:
        result = validator(item)
        if result.valid:
            passed.append(item)
        else:
            rejected.append(item)
            logger.info("[Validator] REJECTED %s", "; ".join(result.errors))
    return passed, rejected


# ── Request-level guards ───────────────────────────────────────────────────────

def _missing(value: Any) -> bool:
    return value is None or value == ""


def require_fields(payload: dict, fields: Iterable[str]) -> None:
    """Raise ValidationError listing every required body field that is absent or empty."""
    missing = [f for f in fields if _missing(payload.get(f))]
    if missing:
        raise ValidationError(
            [f"{f} is required" for f in missing],
            message="Missing required fields",
            extra={"missingFields": missing},
        )


def require_query_params(params: dict, names: Iterable[str]) -> None:
    """Raise ValidationError listing every required query parameter that is absent or empty."""
    missing = [n for n in names if _missing(params.get(n))]
    if missing:
        raise ValidationError(
            [f"{n} query parameter is required" for n in missing],
            message="Missing required query parameters",
            extra={"missingParams": missing},
        )


def parse_iso_date(value: Any, field_name: str) -> date:
    """Parse a strict YYYY-MM-DD string."""
    text = str(value or "")
    if not _ISO_DATE_RE.match(text):
        raise ValidationError(f"{field_name} must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"{field_name} must be in YYYY-MM-DD format") from None


def validate_date_range(start: date, end: date) -> None:
    if end < start:
        raise ValidationError("endDate must be after or equal to startDate")


def parse_lat_lng(text: Any, field_name: str) -> tuple[float, float]:
    """Parse "lat,lng" into a pair of floats, rejecting anything else."""
    parts = str(text or "").split(",")
    try:
        if len(parts) != 2:
            raise ValueError(text)
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError:
        raise ValidationError(
            f"Invalid coordinate format for {field_name}. Use lat,lng (e.g., 28.6139,77.2090)"
        ) from None
    errors = coordinate_errors(lat, lng)
    if errors:
        raise ValidationError([f"{field_name}: {e}" for e in errors])
    return lat, lng


def positive_number(value: Any, field_name: str) -> float:
    """Coerce to float and require > 0."""
    try:
        num = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number") from None
    if not math.isfinite(num) or num <= 0:
        raise ValidationError(f"{field_name} must be greater than 0")
    return num
