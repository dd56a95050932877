"""Estimate Pydantic models for ClaimScope.

Priced line items, aggregated totals and the report bundle consumed by
the rendering layer. All money values are USD rounded to cents.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from claimscope.models.scope import ScopeItem


class DepreciationType(str, Enum):
    """Recoverability of withheld depreciation."""

    RECOVERABLE = "Recoverable"
    NON_RECOVERABLE = "Non-Recoverable"
    PAID_WHEN_INCURRED = "Paid When Incurred"


class CoverageBucket(str, Enum):
    """Policy section a cost is billed against."""

    A = "A"
    B = "B"
    C = "C"
    CODE_UPGRADE = "CODE_UPGRADE"


class PricedLineItem(ScopeItem):
    """A ScopeItem enriched with computed money fields."""

    region_id: str
    material_cost: float = Field(..., ge=0, description="Unit material cost including waste")
    labor_cost: float = Field(..., ge=0, description="Unit labor cost")
    equipment_cost: float = Field(..., ge=0, description="Unit equipment cost")
    applied_waste_factor: float = Field(default=0.0, ge=0)
    unit_price: float = Field(..., ge=0)
    total_price: float = Field(..., ge=0, description="RCV before tax")
    tax_amount: float = Field(..., ge=0)
    depreciation_amount: float = Field(..., ge=0)
    depreciation_type: DepreciationType = DepreciationType.RECOVERABLE
    depreciation_percentage: float = Field(..., ge=0, le=100)
    acv: float = Field(..., ge=0)
    coverage_bucket: CoverageBucket = CoverageBucket.A


class PricingFailure(BaseModel):
    """An item that could not be priced; the rest of the estimate continues."""

    scope_item_id: Optional[int] = None
    catalog_code: Optional[str] = None
    code: str
    message: str


class Subtotal(BaseModel):
    """Money totals for one grouping (room, category or coverage bucket)."""

    key: str
    label: Optional[str] = None
    item_count: int = 0
    rcv: float = 0.0
    tax: float = 0.0
    depreciation: float = 0.0
    recoverable_depreciation: float = 0.0
    non_recoverable_depreciation: float = 0.0
    acv: float = 0.0


class EstimateSummary(BaseModel):
    """Aggregated estimate totals.

    ``line_item_subtotal`` is the sum of item RCVs before overhead and
    profit; room and category subtotals sum to it. ``total_rcv`` adds O&P.
    """

    line_item_subtotal: float = 0.0
    total_rcv: float = 0.0
    total_tax: float = 0.0
    total_depreciation: float = 0.0
    total_recoverable_depreciation: float = 0.0
    total_non_recoverable_depreciation: float = 0.0
    total_paid_when_incurred: float = 0.0
    total_acv: float = 0.0
    deductible: float = 0.0
    net_claim: float = 0.0
    net_claim_if_depreciation_recovered: float = 0.0
    qualifies_for_op: bool = False
    op_base: float = 0.0
    overhead_amount: float = 0.0
    profit_amount: float = 0.0
    trades_involved: List[str] = Field(default_factory=list)
    op_eligible_trades: List[str] = Field(default_factory=list)
    by_room: List[Subtotal] = Field(default_factory=list)
    by_category: List[Subtotal] = Field(default_factory=list)
    by_coverage: Dict[str, Subtotal] = Field(default_factory=dict)


class EstimateReport(BaseModel):
    """Everything the report renderer consumes for one session."""

    session_id: int
    region_id: str
    summary: EstimateSummary
    items_by_room: Dict[str, List[PricedLineItem]] = Field(default_factory=dict)
    pricing_failures: List[PricingFailure] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
