"""
Comparable Weighting for the Comp Engine

Raw influence weight per comparable:

    similarity/100 * 0.4 + recency + distance

Recency and distance each contribute up to 0.3 and fall back to the
0.15 midpoint when the input is missing. Outliers keep 30% of their weight.
Normalization happens in the aggregator.
"""

from datetime import date
from typing import List

from .adjustments import months_between
from .models import ComparableSale
from .settings import ValuationSettings


# =============================================================================
# Configuration Constants
# =============================================================================

SIMILARITY_WEIGHT = 0.4
RECENCY_WEIGHT = 0.3
DISTANCE_WEIGHT = 0.3

# Midpoint of the 0-0.3 range, used when the input is missing
DEFAULT_RECENCY_COMPONENT = 0.15
DEFAULT_DISTANCE_COMPONENT = 0.15

MAX_RECENCY_MONTHS = 36
MAX_DISTANCE_KM = 10.0

OUTLIER_WEIGHT_MULTIPLIER = 0.3


class ComparableWeighting:
    """Assigns un-normalized weights to adjusted comparables."""

    def __init__(self, settings: ValuationSettings = None, reference_date: date = None):
        self._settings = settings or ValuationSettings()
        self._reference_date = reference_date or self._settings.resolve_reference_date()

    def recency_component(self, comp: ComparableSale) -> float:
        """Linear decay to zero at 36 months."""
        if comp.sale_date is None:
            return DEFAULT_RECENCY_COMPONENT
        months = min(months_between(comp.sale_date, self._reference_date), MAX_RECENCY_MONTHS)
        return (1 - months / MAX_RECENCY_MONTHS) * RECENCY_WEIGHT

    @staticmethod
    def distance_component(comp: ComparableSale) -> float:
        """Linear decay to zero at 10 km."""
        if comp.distance_km is None:
            return DEFAULT_DISTANCE_COMPONENT
        distance = min(max(comp.distance_km, 0.0), MAX_DISTANCE_KM)
        return (1 - distance / MAX_DISTANCE_KM) * DISTANCE_WEIGHT

    def weigh(self, comp: ComparableSale) -> ComparableSale:
        """Set comp.weight in place."""
        weight = (
            comp.similarity_score / 100 * SIMILARITY_WEIGHT
            + self.recency_component(comp)
            + self.distance_component(comp)
        )

        if comp.is_outlier:
            weight *= OUTLIER_WEIGHT_MULTIPLIER

        comp.weight = weight
        return comp

    def weigh_all(self, comparables: List[ComparableSale]) -> List[ComparableSale]:
        """Weigh every comparable in place."""
        return [self.weigh(comp) for comp in comparables]
