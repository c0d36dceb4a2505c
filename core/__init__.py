"""
Appraisal Valuation Engine - Core Business Logic

This module provides the comparable-sales valuation pipeline:
1. Input validation
2. Outlier flagging (IQR)
3. Price adjustment
4. Weighting
5. Aggregation (weighted median/mean blend, range)
6. Confidence scoring
7. Market trend summary
"""

from .comp_engine import (
    ComparableSale,
    SubjectPropertyDetails,
    ValuationRequest,
    ValuationResult,
    ValuationResponse,
    ConfidenceCategory,
    EligibilityResult,
    ValuationSettings,
    ValuationError,
    InvalidInput,
    InsufficientComparables,
    PropertyValuationEngine,
)

__all__ = [
    "ComparableSale",
    "SubjectPropertyDetails",
    "ValuationRequest",
    "ValuationResult",
    "ValuationResponse",
    "ConfidenceCategory",
    "EligibilityResult",
    "ValuationSettings",
    "ValuationError",
    "InvalidInput",
    "InsufficientComparables",
    "PropertyValuationEngine",
]
