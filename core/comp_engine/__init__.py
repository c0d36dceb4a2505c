"""
Comp Engine

Comparable-sales valuation pipeline: outlier flagging, price adjustment,
weighting, weighted median/mean aggregation, confidence scoring and market
trend summary for a single subject property.
"""

from .models import (
    ComparableSale,
    SubjectPropertyDetails,
    ValuationRequest,
    ValuationResult,
    ValuationResponse,
    ValuationFactors,
    MarketTrends,
    ConfidenceBreakdown,
    ConfidenceCategory,
    EligibilityResult,
)
from .settings import (
    ValuationSettings,
    MONTHLY_MARKET_GROWTH_RATE,
    ANNUAL_GROWTH_RATE,
)
from .validation import (
    ValuationError,
    InvalidInput,
    InsufficientComparables,
    parse_request,
    validate_request,
    check_eligibility,
)
from .outliers import OutlierBounds, calculate_iqr_bounds, flag_outliers
from .adjustments import PriceAdjustmentCalculator, months_between
from .weighting import ComparableWeighting
from .aggregation import ValuationAggregator
from .confidence import ConfidenceScorer
from .market_trends import summarize_market_trends
from .valuation import PropertyValuationEngine

__all__ = [
    # Models
    "ComparableSale",
    "SubjectPropertyDetails",
    "ValuationRequest",
    "ValuationResult",
    "ValuationResponse",
    "ValuationFactors",
    "MarketTrends",
    "ConfidenceBreakdown",
    "ConfidenceCategory",
    "EligibilityResult",
    # Settings
    "ValuationSettings",
    "MONTHLY_MARKET_GROWTH_RATE",
    "ANNUAL_GROWTH_RATE",
    # Validation
    "ValuationError",
    "InvalidInput",
    "InsufficientComparables",
    "parse_request",
    "validate_request",
    "check_eligibility",
    # Pipeline stages
    "OutlierBounds",
    "calculate_iqr_bounds",
    "flag_outliers",
    "PriceAdjustmentCalculator",
    "months_between",
    "ComparableWeighting",
    "ValuationAggregator",
    "ConfidenceScorer",
    "summarize_market_trends",
    # Engine
    "PropertyValuationEngine",
]

__version__ = "1.0"
