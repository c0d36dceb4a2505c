"""
Market trend summary over the adjusted comparables.

Uses a plain (unweighted) median, separate from the weighted median the
aggregator selects.
"""

from typing import List

from .models import ComparableSale, MarketTrends
from .settings import ValuationSettings


def median(values: List[float]) -> float:
    """Median, averaging the two middle values on even counts (0 if empty)."""
    if not values:
        return 0.0

    ordered = sorted(values)
    n = len(ordered)
    mid = n // 2

    if n % 2 == 1:
        return float(ordered[mid])
    return (ordered[mid - 1] + ordered[mid]) / 2


def summarize_market_trends(
    comparables: List[ComparableSale],
    settings: ValuationSettings = None,
) -> MarketTrends:
    """
    Median price, price per square metre and the assumed annual growth.

    Args:
        comparables: Adjusted comparables
        settings: Policy settings supplying annual growth

    Returns:
        MarketTrends
    """
    settings = settings or ValuationSettings()
    median_price = median([c.adjusted_price for c in comparables])

    per_sqm = [
        c.adjusted_price / c.floor_area
        for c in comparables
        if c.floor_area is not None and c.floor_area > 0
    ]

    if per_sqm:
        price_per_sqm = sum(per_sqm) / len(per_sqm)
        estimated = False
    else:
        # FIXME: crude placeholder kept for compatibility with existing
        # reports; replace with a regional default once floor-area data is
        # sourced for comparables without it.
        price_per_sqm = median_price / 100
        estimated = True

    return MarketTrends(
        median_price=median_price,
        price_per_sqm=price_per_sqm,
        annual_growth=settings.annual_growth_rate,
        price_per_sqm_estimated=estimated,
    )
