"""
Outlier Flagging for the Comp Engine

Marks comparables whose sale price falls outside the interquartile-range
fences. Flagged comparables stay in the working set; the weighting stage
discounts them instead.
"""

import math
from dataclasses import dataclass
from typing import List

from .models import ComparableSale


# =============================================================================
# Configuration Constants
# =============================================================================

Q1_POSITION = 0.25
Q3_POSITION = 0.75
IQR_MULTIPLIER = 1.5


@dataclass
class OutlierBounds:
    """Quartiles and fences used to flag outliers."""
    q1: float
    q3: float
    iqr: float
    lower: float
    upper: float

    def contains(self, price: float) -> bool:
        return self.lower <= price <= self.upper


def calculate_iqr_bounds(prices: List[float]) -> OutlierBounds:
    """
    Calculate IQR fences from sale prices.

    Quartiles are read positionally from the ascending-sorted prices at
    floor(n * 0.25) and floor(n * 0.75), with no interpolation. Samples of
    three or fewer are not special-cased; their fences may be wide or
    collapse to a single price.

    Args:
        prices: Sale prices (at least one)

    Returns:
        OutlierBounds for the sample
    """
    ordered = sorted(prices)
    n = len(ordered)

    q1 = ordered[math.floor(n * Q1_POSITION)]
    q3 = ordered[math.floor(n * Q3_POSITION)]
    iqr = q3 - q1

    return OutlierBounds(
        q1=q1,
        q3=q3,
        iqr=iqr,
        lower=q1 - IQR_MULTIPLIER * iqr,
        upper=q3 + IQR_MULTIPLIER * iqr,
    )


def flag_outliers(comparables: List[ComparableSale]) -> OutlierBounds:
    """
    Set is_outlier on every comparable in place.

    Args:
        comparables: Comparables with positive sale prices

    Returns:
        The bounds that were applied
    """
    bounds = calculate_iqr_bounds([c.sale_price for c in comparables])

    for comp in comparables:
        comp.is_outlier = not bounds.contains(comp.sale_price)

    return bounds
