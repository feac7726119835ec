"""
modules/validation package: input guards before any planner runs.
"""
from modules.validation.request_validator import (
    ValidationError,
    ValidationResult,
    coordinate_errors,
    valid_coordinates,
    validate_point,
    partition_valid,
    require_fields,
    require_query_params,
    parse_iso_date,
    validate_date_range,
    parse_lat_lng,
    positive_number,
)

__all__ = [
    "ValidationError",
    "ValidationResult",
    "coordinate_errors",
    "valid_coordinates",
    "validate_point",
    "partition_valid",
    "require_fields",
    "require_query_params",
    "parse_iso_date",
    "validate_date_range",
    "parse_lat_lng",
    "positive_number",
]
