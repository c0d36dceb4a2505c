"""
Valuation Engine for the Comp Engine

Pipeline order:
1. VALIDATE - Reject missing subject / unusable comparables
2. FLAG - Mark IQR outliers (kept, discounted later)
3. ADJUST - Per-comparable adjustment factor
4. WEIGH - Similarity, recency and distance weights
5. AGGREGATE - Weighted median/mean blend and range
6. SCORE - Confidence
7. SUMMARIZE - Market trends

The engine holds only immutable settings; each call is independent.
"""

import logging
import math
from typing import Any, Dict

from .adjustments import PriceAdjustmentCalculator
from .aggregation import ValuationAggregator
from .confidence import ConfidenceScorer
from .market_trends import summarize_market_trends
from .models import (
    ConfidenceCategory,
    EligibilityResult,
    ValuationRequest,
    ValuationResponse,
    ValuationResult,
)
from .outliers import flag_outliers
from .settings import ValuationSettings
from .weighting import ComparableWeighting
from .validation import (
    InvalidInput,
    ValuationError,
    check_eligibility,
    parse_request,
    validate_request,
)
from utils.formatting import format_currency


logger = logging.getLogger(__name__)


class PropertyValuationEngine:
    """
    Comparable-sales valuation for a single subject property.

    valuate() never raises; failures come back as a ValuationResponse with
    success=False. calculate() raises and is the building block for callers
    that want exceptions.
    """

    def __init__(self, settings: ValuationSettings = None):
        """
        Initialize valuation engine.

        Args:
            settings: Policy settings (default: ValuationSettings())
        """
        self._settings = settings or ValuationSettings()
        self._aggregator = ValuationAggregator()

    @property
    def settings(self) -> ValuationSettings:
        return self._settings

    def valuate(self, request: ValuationRequest) -> ValuationResponse:
        """
        Value the subject property against its comparables.

        Args:
            request: Subject details and comparable sales

        Returns:
            ValuationResponse envelope
        """
        logger.info(
            "Processing valuation request appraisal=%s comparables=%d",
            request.appraisal_id or "-",
            len(request.comparables),
        )

        try:
            result = self.calculate(request)
            logger.info(
                "Valuation complete appraisal=%s range=%s-%s confidence=%.3f",
                request.appraisal_id or "-",
                format_currency(round(result.valuation_low)),
                format_currency(round(result.valuation_high)),
                result.valuation_confidence,
            )
        except ValuationError as exc:
            logger.warning("Valuation rejected appraisal=%s: %s", request.appraisal_id or "-", exc)
            return ValuationResponse.failure(str(exc))
        except (ArithmeticError, TypeError, ValueError) as exc:
            logger.exception("Error calculating valuation appraisal=%s", request.appraisal_id or "-")
            return ValuationResponse.failure(f"Valuation failed: {exc}")

        return ValuationResponse(success=True, data=result)

    def valuate_payload(self, payload: Dict[str, Any]) -> ValuationResponse:
        """Parse a JSON-style payload and value it."""
        try:
            request = parse_request(payload)
        except InvalidInput as exc:
            logger.warning("Malformed valuation payload: %s", exc)
            return ValuationResponse.failure(str(exc))
        return self.valuate(request)

    def check_eligibility(self, request: ValuationRequest) -> EligibilityResult:
        """Pre-flight check; see validation.check_eligibility."""
        return check_eligibility(request)

    def calculate(self, request: ValuationRequest) -> ValuationResult:
        """
        Run the full pipeline.

        Raises:
            InvalidInput: request fails the input rules
            InsufficientComparables: fewer than two usable comparables
            ValuationError: degenerate weights or estimate
        """
        reference_date = self._settings.resolve_reference_date()

        # Step 1: Validate and copy usable comparables
        comparables = validate_request(request)
        subject = request.subject

        # Step 2: Flag outliers (not removed)
        bounds = flag_outliers(comparables)
        logger.debug(
            "Outlier fences %.0f-%.0f flagged=%d",
            bounds.lower,
            bounds.upper,
            sum(1 for c in comparables if c.is_outlier),
        )

        # Step 3: Adjust prices
        PriceAdjustmentCalculator(subject, self._settings, reference_date).adjust_all(comparables)

        # Step 4: Weigh comparables
        ComparableWeighting(self._settings, reference_date).weigh_all(comparables)

        # Step 5: Aggregate into a range
        aggregate = self._aggregator.aggregate(comparables, subject)
        estimates = (aggregate.valuation_low, aggregate.valuation_high, aggregate.base_valuation)
        if not all(math.isfinite(value) for value in estimates):
            raise ValuationError("Valuation produced a non-finite estimate")

        # Step 6: Confidence
        confidence = ConfidenceScorer(self._settings, reference_date).score(
            comparables, subject, aggregate.coefficient_of_variation
        )

        # Step 7: Market trends
        trends = summarize_market_trends(comparables, self._settings)

        return ValuationResult(
            valuation_low=aggregate.valuation_low,
            valuation_high=aggregate.valuation_high,
            valuation_mid=aggregate.base_valuation,
            valuation_confidence=confidence.score,
            confidence_category=ConfidenceCategory.from_score(confidence.score),
            adjusted_comparables=comparables,
            valuation_factors=aggregate.factors,
            market_trends=trends,
            confidence_breakdown=confidence,
        )
