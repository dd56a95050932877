"""Scope item Pydantic models for ClaimScope.

A ScopeItem is a line item placed on an estimate: what work, how much,
and where it came from. Pricing lives in models.estimate.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from claimscope.models.catalog import ActivityType, CoverageType, QuantityFormula


class Provenance(str, Enum):
    """How a scope item got onto the estimate."""

    VOICE_COMMAND = "voice_command"
    COMPANION_AUTO_ADDED = "companion_auto_added"
    TEMPLATE = "template"
    MANUAL = "manual"
    DAMAGE_TRIGGERED = "damage_triggered"


# Provenances whose quantity was stated by a person and is never recomputed
OVERRIDE_PROVENANCES = frozenset({Provenance.VOICE_COMMAND, Provenance.MANUAL})


class ScopeStatus(str, Enum):
    """Lifecycle status of a scope item."""

    ACTIVE = "active"
    REMOVED = "removed"


class ScopeItem(BaseModel):
    """A line item on an inspection session's scope.

    Quantity is not range-checked here so that stored data with bad
    quantities can still be loaded and reported by the validators.
    """

    id: Optional[int] = None
    session_id: int
    room_id: Optional[int] = None
    damage_id: Optional[int] = None
    catalog_code: Optional[str] = None
    description: str = ""
    trade_code: str
    quantity: float = 1.0
    unit: str = "EA"
    quantity_formula: Optional[QuantityFormula] = None
    provenance: Provenance = Provenance.MANUAL
    parent_scope_item_id: Optional[int] = None
    status: ScopeStatus = ScopeStatus.ACTIVE
    activity_type: ActivityType = ActivityType.REPLACE
    coverage_type: Optional[CoverageType] = None
    waste_factor: Optional[float] = Field(default=None, ge=0, le=100)
    age: Optional[float] = Field(default=None, ge=0, description="Age of the damaged item in years")
    life_expectancy: Optional[float] = Field(default=None, ge=0, description="Years")
    is_code_upgrade: Optional[bool] = Field(
        default=None, description="None means detect from the catalog code"
    )
    dimension_warning: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == ScopeStatus.ACTIVE

    @property
    def is_companion(self) -> bool:
        return self.parent_scope_item_id is not None

    @property
    def quantity_is_override(self) -> bool:
        return self.provenance in OVERRIDE_PROVENANCES


class ManualQuantityRequest(BaseModel):
    """A catalog item the operator must quantify before it can be added."""

    catalog_code: str
    description: str
    unit: str
    reason: str


class AutoScopeResult(BaseModel):
    """Result of the autoScope contract narrated back by the voice agent."""

    items_created: List[ScopeItem] = Field(default_factory=list)
    companion_items: List[ScopeItem] = Field(default_factory=list)
    manual_quantity_needed: List[ManualQuantityRequest] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the dictionary shape the calling agent expects."""
        return {
            "itemsCreated": len(self.items_created),
            "summary": self.summary,
            "warnings": list(self.warnings),
            "items": [item.model_dump(mode="json") for item in self.items_created],
            "manualQuantityNeeded": [m.model_dump(mode="json") for m in self.manual_quantity_needed],
        }


# =============================================================================
# PERIL TEMPLATES
# =============================================================================


class PerilTemplateItem(BaseModel):
    """One catalog code in a peril template."""

    catalog_code: str
    auto_include: bool = Field(default=True, description="Add on apply; otherwise suggest only")
    quantity_multiplier: float = Field(default=1.0, gt=0, description="Applied to the geometry quantity")
    peril_notes: Optional[str] = None


class PerilTemplate(BaseModel):
    """Pre-built scope package for a peril and room context."""

    id: str
    peril_type: str = Field(..., description="water, hail, wind, fire")
    name: str
    description: str = ""
    applicable_room_types: List[str] = Field(default_factory=list)
    applicable_zone_types: List[str] = Field(default_factory=list)
    items: List[PerilTemplateItem] = Field(default_factory=list)


class TemplateApplication(BaseModel):
    """Result of applying a peril template to a room."""

    template_id: str
    items_created: List[ScopeItem] = Field(default_factory=list)
    suggested: List[PerilTemplateItem] = Field(default_factory=list)
    manual_quantity_needed: List[ManualQuantityRequest] = Field(default_factory=list)
    skipped_codes: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
