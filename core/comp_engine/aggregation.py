"""
Valuation Aggregation for the Comp Engine

Implements:
- Weight normalization across all comparables (outliers included)
- Weighted median (hard selection, no interpolation)
- Weighted mean and standard deviation
- 70/30 median/mean blend
- Range scaled by coefficient of variation, floored at 5%
- Per-unit values for bedrooms, land size and floor area
"""

import math
from typing import Callable, List, Optional

from .models import (
    AggregateValuation,
    ComparableSale,
    SubjectPropertyDetails,
    ValuationFactors,
)
from .validation import InsufficientComparables, ValuationError


# =============================================================================
# Configuration Constants
# =============================================================================

MIN_COMPS_FOR_RANGE = 2

MEDIAN_BLEND = 0.7
MEAN_BLEND = 0.3

# Half-width of the valuation range never drops below 5%
MIN_RANGE_PERCENTAGE = 0.05


def normalize_weights(comparables: List[ComparableSale]) -> None:
    """
    Set normalized_weight so the weights sum to 1.

    Raises:
        ValuationError: if the total weight is not positive
    """
    total = sum(c.weight for c in comparables)
    if total <= 0:
        raise ValuationError("Comparable weights sum to zero; cannot normalize")

    for comp in comparables:
        comp.normalized_weight = comp.weight / total


def weighted_median(comparables: List[ComparableSale]) -> float:
    """
    Adjusted price of the first comparable, in ascending price order, at
    which cumulative normalized weight reaches 0.5.
    """
    ordered = sorted(comparables, key=lambda c: c.adjusted_price)

    cumulative = 0.0
    for comp in ordered:
        cumulative += comp.normalized_weight
        if cumulative >= 0.5:
            return comp.adjusted_price

    # Rounding can leave the running total a hair under 0.5
    return ordered[-1].adjusted_price


def weighted_mean(comparables: List[ComparableSale]) -> float:
    return sum(c.adjusted_price * c.normalized_weight for c in comparables)


def weighted_std_dev(comparables: List[ComparableSale], mean: float) -> float:
    variance = sum(
        c.normalized_weight * (c.adjusted_price - mean) ** 2 for c in comparables
    )
    return math.sqrt(variance)


def _unit_value(
    comparables: List[ComparableSale],
    attribute: Callable[[ComparableSale], Optional[float]],
) -> Optional[float]:
    """
    Weighted average of adjusted price per unit of an attribute.

    Weights are renormalized over the comparables that carry the attribute,
    not taken from the global normalization.
    """
    subset = [c for c in comparables if attribute(c) is not None and attribute(c) > 0]
    subset_weight = sum(c.normalized_weight for c in subset)
    if not subset or subset_weight <= 0:
        return None

    return sum(
        (c.adjusted_price / attribute(c)) * (c.normalized_weight / subset_weight)
        for c in subset
    )


class ValuationAggregator:
    """Turns weighted, adjusted comparables into a valuation range."""

    def aggregate(
        self,
        comparables: List[ComparableSale],
        subject: SubjectPropertyDetails,
    ) -> AggregateValuation:
        """
        Aggregate comparables into a point estimate and range.

        Args:
            comparables: Adjusted and weighted comparables
            subject: The property being valued

        Returns:
            AggregateValuation

        Raises:
            InsufficientComparables: fewer than two comparables
            ValuationError: degenerate weights or non-positive estimate
        """
        if len(comparables) < MIN_COMPS_FOR_RANGE:
            raise InsufficientComparables(len(comparables), MIN_COMPS_FOR_RANGE)

        normalize_weights(comparables)

        median = weighted_median(comparables)
        mean = weighted_mean(comparables)
        if mean <= 0:
            raise ValuationError("Weighted mean of adjusted prices is not positive")

        base_valuation = MEDIAN_BLEND * median + MEAN_BLEND * mean
        if base_valuation <= 0:
            raise ValuationError("Blended valuation is not positive")

        std_dev = weighted_std_dev(comparables, mean)
        coefficient_of_variation = std_dev / mean
        range_percentage = max(MIN_RANGE_PERCENTAGE, coefficient_of_variation)

        return AggregateValuation(
            weighted_median=median,
            weighted_mean=mean,
            base_valuation=base_valuation,
            std_dev=std_dev,
            coefficient_of_variation=coefficient_of_variation,
            range_percentage=range_percentage,
            valuation_low=base_valuation * (1 - range_percentage),
            valuation_high=base_valuation * (1 + range_percentage),
            factors=self._calculate_factors(comparables, subject),
        )

    @staticmethod
    def _calculate_factors(
        comparables: List[ComparableSale],
        subject: SubjectPropertyDetails,
    ) -> ValuationFactors:
        """Per-unit values, only for attributes the subject itself has."""
        factors = ValuationFactors()

        if (subject.bedrooms or 0) > 0:
            factors.bedroom_value = _unit_value(comparables, lambda c: c.bedrooms)
        if (subject.land_size or 0) > 0:
            factors.land_size_value = _unit_value(comparables, lambda c: c.land_size)
        if (subject.floor_area or 0) > 0:
            factors.floor_area_value = _unit_value(comparables, lambda c: c.floor_area)

        return factors
