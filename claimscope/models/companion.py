"""Companion rule Pydantic models for ClaimScope.

Trade-level companion rules are data: a trigger trade, a companion trade
with its default catalog code, a typed condition and a typed quantity
derivation. One generic matcher in services.companion_engine evaluates
them; there is no per-rule code.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


ANY_TRADE = "*"


class RuleCondition(BaseModel):
    """Conditions on the companion context. Every populated field must hold."""

    min_affected_area: Optional[float] = Field(
        default=None, ge=0, description="Affected SF must be >= this"
    )
    max_affected_area: Optional[float] = Field(
        default=None, ge=0, description="Affected SF must be < this"
    )
    min_linear_feet: Optional[float] = Field(default=None, ge=0, description="Linear feet must be > this")
    requires_water_classification: bool = False
    water_categories: List[int] = Field(default_factory=list)
    min_water_class: Optional[int] = Field(default=None, ge=1, le=4)
    drying_possible: Optional[bool] = Field(
        default=None, description="Skip when classification says otherwise; no classification passes"
    )
    trade_absent: Optional[str] = Field(default=None, description="Trade must not be in the room yet")
    water_forces_demolition: bool = Field(
        default=False, description="Only when Category 3 or Class 4 water is recorded"
    )

    class Config:
        extra = "forbid"


class DerivationKind(str, Enum):
    """How a trade rule computes the companion quantity."""

    FIXED = "fixed"
    AREA_RATIO = "area_ratio"
    FORMULA = "formula"


class QuantityDerivation(BaseModel):
    """Quantity recipe for a companion.

    FIXED uses ``value``; AREA_RATIO is ceil(affected_area / divisor) but
    never below ``minimum``; FORMULA evaluates the companion catalog item's
    own geometry formula.
    """

    kind: DerivationKind = DerivationKind.FIXED
    value: float = Field(default=1.0, ge=0)
    divisor: Optional[float] = Field(default=None, gt=0)
    minimum: float = Field(default=1.0, ge=0)

    class Config:
        extra = "forbid"

    @model_validator(mode="after")
    def require_divisor(self) -> "QuantityDerivation":
        if self.kind == DerivationKind.AREA_RATIO and self.divisor is None:
            raise ValueError("area_ratio derivation requires a divisor")
        return self


class CompanionRule(BaseModel):
    """Trade-level companion rule."""

    id: str
    trigger_trade: str = Field(..., description="Primary trade code, or '*' for any")
    companion_trade: str
    companion_code: str = Field(..., description="Default catalog code for the companion")
    relationship: str
    condition: RuleCondition = Field(default_factory=RuleCondition)
    quantity: QuantityDerivation = Field(default_factory=QuantityDerivation)
    priority: int = 0

    def triggers_on(self, trade_code: str) -> bool:
        return self.trigger_trade == ANY_TRADE or self.trigger_trade == trade_code


class CompanionSuggestion(BaseModel):
    """A companion the adjuster may want that is not in the room yet."""

    room_id: Optional[int] = None
    for_scope_item_id: Optional[int] = None
    catalog_code: str
    description: str = ""
    reason: str
