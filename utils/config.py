"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from typing import List


def _split_origins(value: str) -> List[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    production: bool = field(
        default_factory=lambda: os.getenv("PRODUCTION", "").lower() == "true"
    )
    allowed_origins: List[str] = field(
        default_factory=lambda: _split_origins(os.getenv("ALLOWED_ORIGINS", ""))
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Valuation policy
    monthly_market_growth_rate: float = field(
        default_factory=lambda: float(os.getenv("MONTHLY_MARKET_GROWTH_RATE", "0.005"))
    )
    annual_growth_rate: float = field(
        default_factory=lambda: float(os.getenv("ANNUAL_GROWTH_RATE", "0.05"))
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def engine_settings(self):
        """Valuation policy settings for the engine."""
        from core.comp_engine.settings import ValuationSettings

        return ValuationSettings(
            monthly_market_growth_rate=self.monthly_market_growth_rate,
            annual_growth_rate=self.annual_growth_rate,
        )

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "production": self.production,
            "allowed_origins": list(self.allowed_origins),
            "log_level": self.log_level,
            "monthly_market_growth_rate": self.monthly_market_growth_rate,
            "annual_growth_rate": self.annual_growth_rate,
        }
