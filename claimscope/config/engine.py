"""Engine configuration for ClaimScope.

EngineConfig carries every threshold, percentage and exclusion list the
engine consults. It is passed explicitly into each engine call; nothing in
the engine reads ambient flags or module-level counters.

Carrier settlement presets override the defaults per carrier.
"""

from typing import Dict, List, Optional, Any

import structlog
from pydantic import BaseModel, Field, model_validator

from claimscope.config.errors import ValidationError

logger = structlog.get_logger(__name__)


class EngineConfig(BaseModel):
    """Thresholds and policy knobs for scope assembly, pricing and aggregation."""

    carrier_code: str = Field(default="DEFAULT", description="Carrier preset this config came from")
    description: str = Field(default="Replacement cost value defaults")

    # Companion cascade
    max_cascade_depth: int = Field(default=2, ge=0, description="Companions of companions depth limit")
    demolition_area_threshold: float = Field(
        default=100.0, ge=0, description="Affected SF at/above which drywall cascades demolition"
    )
    demolition_quantity_divisor: float = Field(default=500.0, gt=0)
    mitigation_quantity_divisor: float = Field(default=200.0, gt=0)
    drying_area_threshold: float = Field(default=50.0, ge=0)
    plumbing_access_area_threshold: float = Field(default=200.0, ge=0)
    paint_access_area_threshold: float = Field(default=300.0, ge=0)
    flooring_trim_paint_max_area: float = Field(default=500.0, ge=0)
    electrical_access_linear_feet: float = Field(default=50.0, ge=0)
    water_forced_trades: List[str] = Field(
        default_factory=lambda: ["DEM", "MIT"],
        description="Trades forced in by Category 3 or Class 4 water"
    )

    # Overhead & profit
    op_trade_threshold: int = Field(default=3, ge=1)
    overhead_rate: float = Field(default=0.10, ge=0, le=1)
    profit_rate: float = Field(default=0.10, ge=0, le=1)
    op_excluded_trades: List[str] = Field(default_factory=list)

    # Tax
    tax_rate: float = Field(default=0.08, ge=0, le=1, description="Sales tax rate as a fraction")
    tax_labor: bool = Field(default=False, description="Carrier/jurisdiction taxes labor")

    # Depreciation
    apply_roof_payment_schedule: bool = False
    roof_schedule_age_threshold: float = Field(default=10.0, ge=0)
    roof_trades: List[str] = Field(default_factory=lambda: ["RFG"])
    code_upgrade_codes: List[str] = Field(
        default_factory=lambda: ["RFG-ICE-SQ", "ELE-GFCI-EA", "ELE-SMOKE-EA"]
    )

    # Validation
    sf_outlier_threshold: float = Field(default=10000.0, gt=0)
    companion_quantity_ratio_limit: float = Field(default=10.0, gt=0)
    opening_deduction_warning_ratio: float = Field(default=0.5, gt=0, le=1)

    @model_validator(mode="after")
    def validate_rates(self) -> "EngineConfig":
        """Overhead and profit together must leave room for cost."""
        if self.overhead_rate + self.profit_rate >= 1:
            raise ValueError(
                f"overhead_rate + profit_rate must be < 1, got "
                f"{self.overhead_rate} + {self.profit_rate}"
            )
        return self

    @classmethod
    def for_carrier(cls, carrier_code: Optional[str], **overrides: Any) -> "EngineConfig":
        """Build a config from a carrier preset plus explicit overrides.

        Unknown carriers fall back to the defaults with a warning.

        Args:
            carrier_code: Carrier identifier (case-insensitive).
            **overrides: Field values applied on top of the preset.

        Returns:
            EngineConfig for the carrier.

        Raises:
            ValidationError: If the merged values are invalid.
        """
        preset: Dict[str, Any] = {}
        if carrier_code:
            key = carrier_code.upper()
            if key in CARRIER_RULES:
                preset = {**CARRIER_RULES[key], "carrier_code": key}
            else:
                logger.warning("carrier_preset_not_found", carrier_code=carrier_code)

        try:
            return cls(**{**preset, **overrides})
        except ValueError as e:
            raise ValidationError(
                message=f"Invalid engine configuration: {e}",
                field="engine_config",
                details={"carrier_code": carrier_code}
            )

    def is_op_excluded(self, trade_code: str) -> bool:
        return trade_code.upper() in {t.upper() for t in self.op_excluded_trades}


# Carrier settlement presets
CARRIER_RULES: Dict[str, Dict[str, Any]] = {
    "CARRIER_STATE_FARM": {
        "op_trade_threshold": 3,
        "tax_labor": False,
        "overhead_rate": 0.12,
        "profit_rate": 0.08,
        "op_excluded_trades": ["MIT"],
        "apply_roof_payment_schedule": True,
        "description": "Non-taxable labor, roof payment schedule",
    },
    "CARRIER_ALLSTATE": {
        "op_trade_threshold": 2,
        "tax_labor": True,
        "overhead_rate": 0.10,
        "profit_rate": 0.10,
        "op_excluded_trades": ["MIT", "DEM"],
        "apply_roof_payment_schedule": False,
        "description": "2-trade O&P threshold",
    },
    "CARRIER_HOMEOWNERS_STANDARD": {
        "op_trade_threshold": 3,
        "tax_labor": True,
        "overhead_rate": 0.15,
        "profit_rate": 0.15,
        "op_excluded_trades": [],
        "apply_roof_payment_schedule": False,
        "description": "Standard homeowners (high O&P rates)",
    },
    "CARRIER_ROOFER_GC": {
        "op_trade_threshold": 3,
        "op_excluded_trades": ["RFG"],
        "apply_roof_payment_schedule": True,
        "roof_schedule_age_threshold": 15.0,
        "description": "Roofer acting as general contractor; roofing excluded from O&P",
    },
}
