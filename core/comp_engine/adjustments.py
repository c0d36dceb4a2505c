"""
Price Adjustments for the Comp Engine

Derives a per-comparable adjustment factor from attribute and timing
differences against the subject:

1. ATTRIBUTES - additive terms for bedrooms, bathrooms, land, floor area, age
2. PROPERTY TYPE - flat 10% multiplicative penalty on a type mismatch
3. MARKET MOVEMENT - flat growth per month since sale

The order is fixed; the type penalty scales the attribute terms but not
the market movement.
"""

from datetime import date
from typing import List, Optional

from .models import ComparableSale, SubjectPropertyDetails
from .settings import ValuationSettings


# =============================================================================
# Configuration Constants
# =============================================================================

BEDROOM_RATE = 0.05  # per bedroom
BATHROOM_RATE = 0.03  # per bathroom
LAND_SIZE_RATE = 0.10  # per unit of relative difference
FLOOR_AREA_RATE = 0.15  # per unit of relative difference
YEAR_BUILT_RATE = 0.005  # per year

PROPERTY_TYPE_MISMATCH_MULTIPLIER = 0.9


def months_between(earlier: date, later: date) -> int:
    """
    Whole calendar months from earlier to later.

    Day of month is ignored. Negative spans (a sale dated after the
    reference date) count as zero.
    """
    months = (later.year - earlier.year) * 12 + (later.month - earlier.month)
    # NOTE: clamped, so a future-dated sale gets no negative market movement
    # and no recency weight above the most recent sale.
    return max(0, months)


def _present(*values: Optional[float]) -> bool:
    return all(v is not None for v in values)


class PriceAdjustmentCalculator:
    """
    Adjusts comparable sale prices towards the subject property.

    A term is skipped whenever the attribute is missing on either side, so
    sparse records never raise.
    """

    def __init__(
        self,
        subject: SubjectPropertyDetails,
        settings: ValuationSettings = None,
        reference_date: date = None,
    ):
        """
        Initialize calculator for one subject.

        Args:
            subject: The property being valued
            settings: Policy settings (default: ValuationSettings())
            reference_date: Date to count months to (default: settings/today)
        """
        self._subject = subject
        self._settings = settings or ValuationSettings()
        self._reference_date = reference_date or self._settings.resolve_reference_date()

    def adjust(self, comp: ComparableSale) -> ComparableSale:
        """
        Set adjustment_factor, adjusted_price and adjustment_breakdown.

        Args:
            comp: Comparable with a positive sale price

        Returns:
            The same comparable, updated in place
        """
        subject = self._subject
        breakdown = {}
        factor = 1.0

        # Step 1: additive attribute terms
        if _present(subject.bedrooms, comp.bedrooms):
            breakdown["bedrooms"] = (subject.bedrooms - comp.bedrooms) * BEDROOM_RATE

        if _present(subject.bathrooms, comp.bathrooms):
            breakdown["bathrooms"] = (subject.bathrooms - comp.bathrooms) * BATHROOM_RATE

        if _present(subject.land_size, comp.land_size) and comp.land_size > 0:
            breakdown["landSize"] = (subject.land_size / comp.land_size - 1) * LAND_SIZE_RATE

        if _present(subject.floor_area, comp.floor_area) and comp.floor_area > 0:
            breakdown["floorArea"] = (subject.floor_area / comp.floor_area - 1) * FLOOR_AREA_RATE

        if _present(subject.year_built, comp.year_built):
            breakdown["yearBuilt"] = (subject.year_built - comp.year_built) * YEAR_BUILT_RATE

        for delta in breakdown.values():
            factor += delta

        # Step 2: property type penalty, applied once
        if comp.property_type != subject.property_type:
            penalised = factor * PROPERTY_TYPE_MISMATCH_MULTIPLIER
            breakdown["propertyType"] = penalised - factor
            factor = penalised

        # Step 3: market movement since sale
        if comp.sale_date is not None:
            months = months_between(comp.sale_date, self._reference_date)
            movement = months * self._settings.monthly_market_growth_rate
            breakdown["marketMovement"] = movement
            factor += movement

        comp.adjustment_factor = factor
        comp.adjusted_price = comp.sale_price * factor
        comp.adjustment_breakdown = breakdown
        return comp

    def adjust_all(self, comparables: List[ComparableSale]) -> List[ComparableSale]:
        """Adjust every comparable in place."""
        return [self.adjust(comp) for comp in comparables]
