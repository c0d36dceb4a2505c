"""
Confidence Scoring for the Comp Engine

Starts from a 0.7 base and adds credits for sample size, similarity,
price consistency, recency and property-type match, minus an outlier
penalty. The result is clamped to [0, 1].
"""

from datetime import date
from typing import List

from .adjustments import months_between
from .models import ComparableSale, ConfidenceBreakdown, SubjectPropertyDetails
from .settings import ValuationSettings


# =============================================================================
# Configuration Constants
# =============================================================================

BASE_CONFIDENCE = 0.7

SAMPLE_SIZE_CREDIT = 0.1
SAMPLE_SIZE_SATURATION = 10  # comparables

SIMILARITY_CREDIT = 0.1

CONSISTENCY_CREDIT = 0.1
CONSISTENCY_COV_PENALTY = 0.5

RECENCY_CREDIT = 0.1
RECENCY_HORIZON_MONTHS = 36

TYPE_MATCH_CREDIT = 0.05

MAX_OUTLIER_PENALTY = 0.2


class ConfidenceScorer:
    """Scores how reliable a valuation range is."""

    def __init__(self, settings: ValuationSettings = None, reference_date: date = None):
        self._settings = settings or ValuationSettings()
        self._reference_date = reference_date or self._settings.resolve_reference_date()

    def score(
        self,
        comparables: List[ComparableSale],
        subject: SubjectPropertyDetails,
        coefficient_of_variation: float,
    ) -> ConfidenceBreakdown:
        """
        Score the comparables behind a valuation.

        Args:
            comparables: Comparables used in the valuation (non-empty)
            subject: The property being valued
            coefficient_of_variation: From the aggregation stage

        Returns:
            ConfidenceBreakdown whose score is within [0, 1]
        """
        total = len(comparables)

        sample_size = min(total / SAMPLE_SIZE_SATURATION, 1) * SAMPLE_SIZE_CREDIT

        avg_similarity = sum(c.similarity_score for c in comparables) / total
        similarity = (avg_similarity / 100) * SIMILARITY_CREDIT

        consistency = max(0.0, CONSISTENCY_CREDIT - coefficient_of_variation * CONSISTENCY_COV_PENALTY)

        # Only dated comparables count towards recency
        dated = [c for c in comparables if c.sale_date is not None]
        recency = 0.0
        if dated:
            avg_months = sum(
                months_between(c.sale_date, self._reference_date) for c in dated
            ) / len(dated)
            recency = max(
                0.0,
                RECENCY_CREDIT - (avg_months / RECENCY_HORIZON_MONTHS) * RECENCY_CREDIT,
            )

        same_type = sum(1 for c in comparables if c.property_type == subject.property_type)
        type_match = (same_type / total) * TYPE_MATCH_CREDIT

        outliers = sum(1 for c in comparables if c.is_outlier)
        outlier_penalty = min(outliers / total, MAX_OUTLIER_PENALTY)

        raw = (
            BASE_CONFIDENCE
            + sample_size
            + similarity
            + consistency
            + recency
            + type_match
            - outlier_penalty
        )

        return ConfidenceBreakdown(
            base=BASE_CONFIDENCE,
            sample_size=sample_size,
            similarity=similarity,
            consistency=consistency,
            recency=recency,
            type_match=type_match,
            outlier_penalty=outlier_penalty,
            score=min(1.0, max(0.0, raw)),
        )
