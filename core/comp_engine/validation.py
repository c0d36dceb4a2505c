"""
Request Validation - Payload Parsing, Input Rules and Eligibility

Converts loosely typed payloads into request records and applies the
input rules every valuation must pass before any computation starts.
No default prices or inferred attributes are ever inserted.
"""

from __future__ import annotations

import dataclasses
import math
from datetime import date, datetime
from typing import Any, List, Optional

from .models import (
    ComparableSale,
    EligibilityResult,
    SubjectPropertyDetails,
    ValuationRequest,
)


# =============================================================================
# Exceptions
# =============================================================================


class ValuationError(Exception):
    """Raised when a valuation cannot be produced from the given input."""

    pass


class InvalidInput(ValuationError, ValueError):
    """Raised when the request is missing data or malformed."""

    pass


class InsufficientComparables(ValuationError):
    """Raised when too few comparables remain to produce a range."""

    def __init__(self, found: int, required: int):
        self.found = found
        self.required = required
        super().__init__(
            f"At least {required} comparable properties with sale prices are "
            f"required to produce a valuation range (found {found})"
        )


# =============================================================================
# Configuration Constants
# =============================================================================

# Similarity assumed when a comparable arrives without one
DEFAULT_SIMILARITY_SCORE = 50.0

# Comparables recommended before a valuation is attempted
MIN_RECOMMENDED_COMPARABLES = 3


# =============================================================================
# Payload Parsing
# =============================================================================


def _lookup(data: dict[str, Any], *keys: str) -> Any:
    """Return the first non-None value among camelCase/snake_case keys."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _optional_number(data: dict[str, Any], label: str, *keys: str) -> Optional[float]:
    value = _lookup(data, *keys)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"{label} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidInput(f"{label} must be a finite number, got {value!r}")
    return value


def _optional_text(data: dict[str, Any], *keys: str) -> str:
    value = _lookup(data, *keys)
    return str(value).strip() if value is not None else ""


def parse_sale_date(value: Any) -> Optional[date]:
    """
    Parse a sale date.

    Accepts date/datetime objects and ISO-8601 strings, including full
    timestamps such as "2024-03-01T00:00:00.000Z". Only the calendar date
    is kept.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            raise InvalidInput(f"Invalid sale date: {value!r}") from exc
    raise InvalidInput(f"Invalid sale date: {value!r}")


def parse_subject(data: Optional[dict[str, Any]]) -> Optional[SubjectPropertyDetails]:
    """Build subject details from a payload dict (None if absent)."""
    if not data:
        return None
    if not isinstance(data, dict):
        raise InvalidInput("Property details must be an object")

    property_type = _optional_text(data, "propertyType", "property_type")
    if not property_type:
        raise InvalidInput("Property type is required")

    return SubjectPropertyDetails(
        property_type=property_type.lower(),
        bedrooms=_optional_number(data, "bedrooms", "bedrooms"),
        bathrooms=_optional_number(data, "bathrooms", "bathrooms"),
        land_size=_optional_number(data, "landSize", "landSize", "land_size"),
        floor_area=_optional_number(data, "floorArea", "floorArea", "floor_area"),
        year_built=_optional_number(data, "yearBuilt", "yearBuilt", "year_built"),
        address=_optional_text(data, "address", "property_address"),
        suburb=_optional_text(data, "suburb", "property_suburb"),
        city=_optional_text(data, "city", "property_city"),
    )


def parse_comparable(data: dict[str, Any], index: int = 0) -> ComparableSale:
    """Build a comparable sale from a payload dict."""
    if not isinstance(data, dict):
        raise InvalidInput(f"Comparable #{index} must be an object")

    comp_id = _optional_text(data, "id")
    if not comp_id:
        raise InvalidInput(f"Comparable #{index} is missing an id")

    property_type = _optional_text(data, "propertyType", "property_type")
    if not property_type:
        raise InvalidInput(f"Comparable {comp_id} is missing a property type")

    similarity = _optional_number(
        data, f"Comparable {comp_id} similarityScore", "similarityScore", "similarity_score"
    )

    return ComparableSale(
        id=comp_id,
        property_type=property_type.lower(),
        similarity_score=DEFAULT_SIMILARITY_SCORE if similarity is None else similarity,
        sale_price=_optional_number(data, f"Comparable {comp_id} salePrice", "salePrice", "sale_price"),
        sale_date=parse_sale_date(_lookup(data, "saleDate", "sale_date")),
        distance_km=_optional_number(data, f"Comparable {comp_id} distanceKm", "distanceKm", "distance_km"),
        bedrooms=_optional_number(data, f"Comparable {comp_id} bedrooms", "bedrooms"),
        bathrooms=_optional_number(data, f"Comparable {comp_id} bathrooms", "bathrooms"),
        land_size=_optional_number(data, f"Comparable {comp_id} landSize", "landSize", "land_size"),
        floor_area=_optional_number(data, f"Comparable {comp_id} floorArea", "floorArea", "floor_area"),
        year_built=_optional_number(data, f"Comparable {comp_id} yearBuilt", "yearBuilt", "year_built"),
        address=_optional_text(data, "address"),
        suburb=_optional_text(data, "suburb"),
        city=_optional_text(data, "city"),
    )


def parse_request(payload: dict[str, Any]) -> ValuationRequest:
    """
    Parse a valuation payload.

    Accepts both {"subject", "comparables"} and the appraisal-style
    {"propertyDetails", "comparableProperties"} shapes.

    Raises:
        InvalidInput: if the payload is malformed
    """
    if not isinstance(payload, dict):
        raise InvalidInput("Valuation request must be an object")

    raw_comparables = _lookup(payload, "comparables", "comparableProperties") or []
    if not isinstance(raw_comparables, list):
        raise InvalidInput("Comparable properties must be a list")

    return ValuationRequest(
        subject=parse_subject(_lookup(payload, "subject", "propertyDetails")),
        comparables=[parse_comparable(item, i) for i, item in enumerate(raw_comparables)],
        appraisal_id=_optional_text(payload, "appraisalId", "appraisal_id"),
    )


# =============================================================================
# Input Rules
# =============================================================================


SUBJECT_NUMERIC_FIELDS = ("bedrooms", "bathrooms", "land_size", "floor_area", "year_built")
COMPARABLE_NUMERIC_FIELDS = SUBJECT_NUMERIC_FIELDS + (
    "similarity_score",
    "sale_price",
    "distance_km",
)


def _require_finite(label: str, record: Any, fields: tuple) -> None:
    """Raise InvalidInput for any NaN or infinite numeric field."""
    for name in fields:
        value = getattr(record, name)
        if value is not None and not math.isfinite(value):
            raise InvalidInput(f"{label} {name} must be a finite number, got {value!r}")


def validate_request(request: ValuationRequest) -> List[ComparableSale]:
    """
    Apply the input rules and return the comparables that can participate.

    Only comparables with a positive sale price are kept. They are copied
    so the pipeline never writes derived fields onto the caller's records.

    Raises:
        InvalidInput: on the first rule that fails
    """
    if request.subject is None:
        raise InvalidInput("Property details are required")

    if not request.comparables:
        raise InvalidInput("At least one comparable property is required")

    _require_finite("Property details", request.subject, SUBJECT_NUMERIC_FIELDS)
    for comp in request.comparables:
        _require_finite(f"Comparable {comp.id}", comp, COMPARABLE_NUMERIC_FIELDS)

    valid = [dataclasses.replace(c) for c in request.comparables if c.has_valid_price]

    if not valid:
        raise InvalidInput("No valid comparable properties with sale prices")

    return valid


# =============================================================================
# Eligibility
# =============================================================================


def check_eligibility(request: ValuationRequest) -> EligibilityResult:
    """
    Report whether a request is ready for valuation.

    Unlike validate_request this collects every reason instead of stopping
    at the first, and applies the recommended minimum comparable count.
    """
    reasons: list[str] = []

    if request.subject is None:
        reasons.append("Property details are missing")
    elif not request.subject.property_type:
        reasons.append("Property type is missing")

    valid_count = sum(1 for c in request.comparables if c.has_valid_price)

    if not request.comparables:
        reasons.append("No comparable properties provided")
    elif valid_count == 0:
        reasons.append("No comparable properties have a sale price")

    if valid_count < MIN_RECOMMENDED_COMPARABLES:
        reasons.append(
            f"Not enough comparable properties "
            f"({valid_count}/{MIN_RECOMMENDED_COMPARABLES} minimum)"
        )

    return EligibilityResult(
        eligible=not reasons,
        reasons=reasons,
        valid_comparables=valid_count,
    )
