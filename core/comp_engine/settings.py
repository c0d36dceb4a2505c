"""
Valuation policy settings.

The growth assumptions below are policy knobs, not values derived from
market data. They are named here so they can be tuned per deployment and
tested on their own.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional


# =============================================================================
# Policy Constants
# =============================================================================

# Flat market growth applied per month since sale (0.5%/month)
MONTHLY_MARKET_GROWTH_RATE = 0.005

# Reported annual growth (placeholder, not derived from any input)
ANNUAL_GROWTH_RATE = 0.05


@dataclass(frozen=True)
class ValuationSettings:
    """
    Overridable policy for a valuation run.

    Args:
        monthly_market_growth_rate: Adjustment added per month since sale
        annual_growth_rate: Growth reported in market trends
        reference_date: "Today" for month counting (default: date of the call)
    """
    monthly_market_growth_rate: float = MONTHLY_MARKET_GROWTH_RATE
    annual_growth_rate: float = ANNUAL_GROWTH_RATE
    reference_date: Optional[date] = None

    def resolve_reference_date(self) -> date:
        """Reference date to use for this run."""
        return self.reference_date or date.today()
