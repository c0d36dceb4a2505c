"""
Data models for the comparable-sales valuation engine.

Defines the subject property, comparable sales (with the derived fields the
pipeline attaches to them) and the valuation result envelope.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from utils.formatting import format_percent


METHODOLOGY_NOTES = (
    "Valuation calculated using weighted comparable analysis with adjustments "
    "for property attributes, sale recency and market movement."
)


class ConfidenceCategory(Enum):
    """
    Label for a 0-1 confidence score.

    Very High: >= 0.85
    High: >= 0.7
    Moderate: >= 0.5
    Low: below 0.5
    """
    VERY_HIGH = "Very High"
    HIGH = "High"
    MODERATE = "Moderate"
    LOW = "Low"

    @classmethod
    def from_score(cls, score: float) -> "ConfidenceCategory":
        """Map a confidence score to its category."""
        if score >= 0.85:
            return cls.VERY_HIGH
        if score >= 0.7:
            return cls.HIGH
        if score >= 0.5:
            return cls.MODERATE
        return cls.LOW


@dataclass
class SubjectPropertyDetails:
    """
    The property being valued.

    Only property_type is required. Descriptive address fields are carried
    for the audit trail and never enter the arithmetic.
    """
    property_type: str

    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    land_size: Optional[float] = None  # m2
    floor_area: Optional[float] = None  # m2
    year_built: Optional[int] = None

    address: str = ""
    suburb: str = ""
    city: str = ""


@dataclass
class ComparableSale:
    """
    A previously sold property used as a reference.

    The pipeline writes its derived fields (outlier flag, adjustment,
    weights) onto the same record so the audit trail matches the working set.
    """
    # Required fields
    id: str
    property_type: str
    similarity_score: float  # 0-100

    # Sale details
    sale_price: Optional[float] = None
    sale_date: Optional[date] = None
    distance_km: Optional[float] = None

    # Attribute mirror of the subject
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    land_size: Optional[float] = None
    floor_area: Optional[float] = None
    year_built: Optional[int] = None

    # Address components
    address: str = ""
    suburb: str = ""
    city: str = ""

    # Derived by the pipeline
    is_outlier: bool = False
    adjustment_factor: float = 1.0
    adjusted_price: float = 0.0
    adjustment_breakdown: Dict[str, float] = field(default_factory=dict)
    weight: float = 0.0
    normalized_weight: float = 0.0

    @property
    def has_valid_price(self) -> bool:
        """Whether this sale can take part in a valuation."""
        return (
            self.sale_price is not None
            and math.isfinite(self.sale_price)
            and self.sale_price > 0
        )

    def to_dict(self) -> dict:
        """Audit-trail entry for the output contract."""
        adjustment = (self.adjustment_factor - 1.0) * 100
        return {
            "id": self.id,
            "address": self.address,
            "salePrice": self.sale_price,
            "adjustedPrice": self.adjusted_price,
            "adjustmentFactor": self.adjustment_factor,
            "weight": self.weight,
            "normalizedWeight": self.normalized_weight,
            "isOutlier": self.is_outlier,
            "saleDate": self.sale_date.isoformat() if self.sale_date else None,
            "distanceFromSubject": self.distance_km,
            "adjustmentBreakdown": dict(self.adjustment_breakdown),
            "adjustmentExplanation": (
                f"Net adjustment {'+' if adjustment >= 0 else ''}"
                f"{format_percent(adjustment)} across "
                f"{len(self.adjustment_breakdown)} factor(s)"
            ),
        }


@dataclass
class ValuationRequest:
    """A subject property and the comparables to value it against."""
    subject: Optional[SubjectPropertyDetails]
    comparables: List[ComparableSale] = field(default_factory=list)
    appraisal_id: str = ""


@dataclass
class ValuationFactors:
    """
    Per-unit values for explanation.

    Bathroom, location and age factors are not produced; no formula exists
    for them.
    """
    bedroom_value: Optional[float] = None
    land_size_value: Optional[float] = None
    floor_area_value: Optional[float] = None

    def to_dict(self) -> dict:
        values = {
            "bedroomValue": self.bedroom_value,
            "landSizeValue": self.land_size_value,
            "floorAreaValue": self.floor_area_value,
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass
class MarketTrends:
    """Unweighted market statistics over the adjusted comparables."""
    median_price: float
    price_per_sqm: float
    annual_growth: float
    price_per_sqm_estimated: bool = False

    def to_dict(self) -> dict:
        return {
            "medianPrice": self.median_price,
            "pricePerSqm": self.price_per_sqm,
            "annualGrowth": self.annual_growth,
            "pricePerSqmEstimated": self.price_per_sqm_estimated,
        }


@dataclass
class ConfidenceBreakdown:
    """Each additive term of the confidence score."""
    base: float
    sample_size: float
    similarity: float
    consistency: float
    recency: float
    type_match: float
    outlier_penalty: float
    score: float

    def to_dict(self) -> dict:
        return {
            "base": self.base,
            "sampleSize": self.sample_size,
            "similarity": self.similarity,
            "consistency": self.consistency,
            "recency": self.recency,
            "typeMatch": self.type_match,
            "outlierPenalty": self.outlier_penalty,
        }


@dataclass
class AggregateValuation:
    """Output of the aggregation stage."""
    weighted_median: float
    weighted_mean: float
    base_valuation: float
    std_dev: float
    coefficient_of_variation: float
    range_percentage: float
    valuation_low: float
    valuation_high: float
    factors: ValuationFactors = field(default_factory=ValuationFactors)


@dataclass
class ValuationResult:
    """
    Complete valuation result for a subject property.

    Owned by the caller; nothing is persisted.
    """
    # Core valuation
    valuation_low: float
    valuation_high: float
    valuation_mid: float
    valuation_confidence: float
    confidence_category: ConfidenceCategory

    # Detailed comp data (for audit trail)
    adjusted_comparables: List[ComparableSale]
    valuation_factors: ValuationFactors
    market_trends: MarketTrends
    confidence_breakdown: Optional[ConfidenceBreakdown] = None

    methodology_notes: str = METHODOLOGY_NOTES

    @property
    def weight_distribution(self) -> Dict[str, float]:
        """Share of the estimate contributed by each comparable."""
        return {c.id: c.normalized_weight for c in self.adjusted_comparables}

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "valuationLow": self.valuation_low,
            "valuationHigh": self.valuation_high,
            "valuationMid": self.valuation_mid,
            "valuationConfidence": self.valuation_confidence,
            "confidenceCategory": self.confidence_category.value,
            "adjustedComparables": [c.to_dict() for c in self.adjusted_comparables],
            "valuationFactors": self.valuation_factors.to_dict(),
            "marketTrends": self.market_trends.to_dict(),
            "confidenceBreakdown": (
                self.confidence_breakdown.to_dict() if self.confidence_breakdown else {}
            ),
            "weightDistribution": self.weight_distribution,
            "methodologyNotes": self.methodology_notes,
        }


@dataclass
class ValuationResponse:
    """Success/failure envelope returned to the caller."""
    success: bool
    error: Optional[str] = None
    data: Optional[ValuationResult] = None

    @classmethod
    def failure(cls, error: str) -> "ValuationResponse":
        return cls(success=False, error=error)

    def to_dict(self) -> dict:
        payload: dict = {"success": self.success}
        if self.error is not None:
            payload["error"] = self.error
        if self.data is not None:
            payload["data"] = self.data.to_dict()
        return payload


@dataclass
class EligibilityResult:
    """Whether a request is ready for valuation, and why not."""
    eligible: bool
    reasons: List[str] = field(default_factory=list)
    valid_comparables: int = 0

    def to_dict(self) -> dict:
        return {
            "eligible": self.eligible,
            "reasons": list(self.reasons),
            "validComparables": self.valid_comparables,
        }
