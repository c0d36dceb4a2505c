"""
Utility modules for the valuation engine.
"""

from .formatting import format_currency, format_percent
from .config import Config
from .logging import configure_logging

__all__ = ["format_currency", "format_percent", "Config", "configure_logging"]
