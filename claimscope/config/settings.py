"""ClaimScope configuration settings.

Loads configuration from environment variables with sensible defaults.
Business thresholds live in EngineConfig (config.engine); the values here
only select which EngineConfig the host gets by default.
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file for local overrides (region, carrier, log level)
load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    """Read an optional float environment variable."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return float(raw)


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # Pricing
    default_region_id: str = field(default_factory=lambda: os.getenv("CLAIMSCOPE_DEFAULT_REGION", "US-NATIONAL"))
    default_tax_rate: Optional[float] = field(default_factory=lambda: _optional_float("CLAIMSCOPE_TAX_RATE"))

    # Settlement rules
    carrier_code: Optional[str] = field(default_factory=lambda: os.getenv("CLAIMSCOPE_CARRIER_CODE"))

    # Companion cascade
    max_cascade_depth: int = field(default_factory=lambda: int(os.getenv("CLAIMSCOPE_MAX_CASCADE_DEPTH", "2")))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_json: bool = field(default_factory=lambda: os.getenv("CLAIMSCOPE_LOG_JSON", "false").lower() == "true")

    def engine_config(self):
        """Build the EngineConfig implied by these settings.

        Carrier presets are applied first, then explicit environment
        overrides (tax rate, cascade depth). The result is validated.

        Raises:
            ValidationError: If an override is out of range.
        """
        from claimscope.config.engine import EngineConfig

        overrides = {"max_cascade_depth": self.max_cascade_depth}
        if self.default_tax_rate is not None:
            overrides["tax_rate"] = self.default_tax_rate
        return EngineConfig.for_carrier(self.carrier_code, **overrides)

    def validate(self) -> None:
        """Validate settings.

        Raises:
            ValueError: If a setting is out of range.
        """
        if self.max_cascade_depth < 0:
            raise ValueError("CLAIMSCOPE_MAX_CASCADE_DEPTH must be >= 0")
        if self.default_tax_rate is not None and not 0 <= self.default_tax_rate <= 1:
            raise ValueError("CLAIMSCOPE_TAX_RATE must be a fraction between 0 and 1")


# Singleton settings instance
settings = Settings()
