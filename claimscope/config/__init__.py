"""ClaimScope configuration.

This package contains:
- settings: Environment variables and configuration
- engine: EngineConfig thresholds and carrier presets
- errors: Custom exceptions and error codes
"""

from claimscope.config.settings import settings
from claimscope.config.engine import EngineConfig, CARRIER_RULES
from claimscope.config.errors import ClaimScopeError, ErrorCode

__all__ = [
    "settings",
    "EngineConfig",
    "CARRIER_RULES",
    "ClaimScopeError",
    "ErrorCode",
]
