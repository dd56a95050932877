"""Catalog Pydantic models for ClaimScope.

This module defines the reference data the engine reads: priced,
trade-coded catalog items with their geometry formula and rule metadata,
and regional price rows.

Rule payloads (scope conditions, companion rules) arrive as loose JSON in
seed files. They are parsed once into the strict models below; unknown
keys are rejected so a typo in a rule table surfaces at load time.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================


class Unit(str, Enum):
    """Measurement unit of a catalog item."""

    SF = "SF"
    LF = "LF"
    SY = "SY"
    SQ = "SQ"
    CF = "CF"
    EA = "EA"
    DAY = "DAY"
    HR = "HR"
    LD = "LD"


class QuantityFormula(str, Enum):
    """Named geometry formulas a catalog item derives its quantity from."""

    FLOOR_SF = "FLOOR_SF"
    CEILING_SF = "CEILING_SF"
    WALL_SF = "WALL_SF"
    WALL_SF_NET = "WALL_SF_NET"
    WALLS_CEILING_SF = "WALLS_CEILING_SF"
    PERIMETER_LF = "PERIMETER_LF"
    CEILING_PERIM_LF = "CEILING_PERIM_LF"
    FLOOR_SY = "FLOOR_SY"
    ROOF_SF = "ROOF_SF"
    ROOF_SQ = "ROOF_SQ"
    VOLUME_CF = "VOLUME_CF"
    EACH = "EACH"
    MANUAL = "MANUAL"


class ActivityType(str, Enum):
    """Kind of work a line item represents."""

    INSTALL = "install"
    REPLACE = "replace"
    REMOVE = "remove"
    REPAIR = "repair"
    CLEAN = "clean"
    RESET = "reset"
    LABOR_ONLY = "labor_only"


class CoverageType(str, Enum):
    """Policy coverage section a catalog item normally lands in."""

    A = "A"   # Dwelling
    B = "B"   # Other structures
    C = "C"   # Personal property


class TradeCode(str, Enum):
    """Canonical trade codes."""

    MIT = "MIT"    # Mitigation
    DEM = "DEM"    # Demolition
    DRY = "DRY"    # Drywall
    PNT = "PNT"    # Painting
    FLR = "FLR"    # Flooring
    INS = "INS"    # Insulation
    CAR = "CAR"    # Carpentry
    CAB = "CAB"    # Cabinetry
    CTR = "CTR"    # Countertops
    RFG = "RFG"    # Roofing
    WIN = "WIN"    # Windows
    EXT = "EXT"    # Exterior / siding
    ELE = "ELE"    # Electrical
    PLM = "PLM"    # Plumbing
    HVAC = "HVAC"  # HVAC
    GEN = "GEN"    # General


# Aliases seen in voice commands and legacy price lists
TRADE_CODE_ALIASES = {
    "ROOF": "RFG", "ROOFING": "RFG", "GUT": "RFG", "FLS": "RFG",
    "SDG": "EXT", "SID": "EXT", "SIDING": "EXT", "EXTERIOR": "EXT",
    "DYW": "DRY", "DRYWALL": "DRY",
    "PAINT": "PNT", "PAINTING": "PNT",
    "FLOOR": "FLR", "FLOORING": "FLR", "CARPET": "FLR",
    "WINDOW": "WIN", "WINDOWS": "WIN",
    "ELC": "ELE", "ELEC": "ELE", "ELECTRICAL": "ELE",
    "PLUMB": "PLM", "PLUMBING": "PLM",
    "HVA": "HVAC", "MEC": "HVAC", "MECHANICAL": "HVAC",
    "INSULATION": "INS",
    "CABINET": "CAB", "CABINETRY": "CAB",
    "COUNTER": "CTR", "COUNTERTOP": "CTR",
    "FRM": "CAR", "FRAME": "CAR", "CARPENTRY": "CAR",
    "DEMO": "DEM", "DEMOLITION": "DEM",
    "MITIGATION": "MIT", "WTR": "MIT",
    "GENERAL": "GEN",
}


def normalize_trade_code(raw: Optional[str]) -> str:
    """Map a trade code or alias to its canonical code.

    Unknown codes are returned upper-cased so catalog-specific trades still
    group consistently; empty input maps to GEN.
    """
    if not raw:
        return TradeCode.GEN.value
    key = raw.strip().upper()
    if key in TradeCode.__members__:
        return key
    return TRADE_CODE_ALIASES.get(key, key)


# =============================================================================
# RULE PAYLOAD MODELS
# =============================================================================


class ScopeConditions(BaseModel):
    """Match predicate on the damage context.

    AND across the keys that are present, OR within each key's list. Absent
    or empty keys are wildcards.
    """

    damage_types: List[str] = Field(default_factory=list)
    surfaces: List[str] = Field(default_factory=list)
    severities: List[str] = Field(default_factory=list)
    room_types: List[str] = Field(default_factory=list)
    zone_types: List[str] = Field(default_factory=list)

    class Config:
        extra = "forbid"

    @field_validator("damage_types", "surfaces", "severities", "room_types", "zone_types", mode="before")
    @classmethod
    def coerce_to_list(cls, v):
        """Accept a bare string where a list is expected."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    def is_empty(self) -> bool:
        return not any(
            (self.damage_types, self.surfaces, self.severities, self.room_types, self.zone_types)
        )


class CompanionRules(BaseModel):
    """Catalog-level companion declarations."""

    requires: List[str] = Field(default_factory=list, description="Codes that must coexist")
    auto_adds: List[str] = Field(default_factory=list, description="Codes to cascade")
    excludes: List[str] = Field(default_factory=list, description="Codes that must not coexist")

    class Config:
        extra = "forbid"


# =============================================================================
# CATALOG MODELS
# =============================================================================


class CatalogItem(BaseModel):
    """A priced, reusable unit of repair work."""

    code: str = Field(..., min_length=1, description="Unique catalog code, e.g. 'DRY-X-1-2'")
    description: str = Field(..., description="Standard description")
    trade_code: str = Field(..., description="Trade grouping, e.g. DRY, RFG, MIT")
    unit: Unit = Field(..., description="Unit of measurement")
    default_waste_factor: float = Field(default=0.0, ge=0, le=100, description="Material waste %")
    quantity_formula: Optional[QuantityFormula] = Field(
        default=None, description="Geometry formula; None behaves like EACH"
    )
    activity_type: ActivityType = Field(default=ActivityType.INSTALL)
    coverage_type: CoverageType = Field(default=CoverageType.A)
    scope_conditions: Optional[ScopeConditions] = None
    companion_rules: CompanionRules = Field(default_factory=CompanionRules)
    is_active: bool = True
    sort_order: int = 0

    @field_validator("trade_code", mode="before")
    @classmethod
    def canonical_trade(cls, v):
        """Store the canonical trade code."""
        return normalize_trade_code(v)

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.strip().upper()


class RegionalPrice(BaseModel):
    """Unit price components for one catalog code in one region."""

    region_id: str = Field(..., min_length=1)
    line_item_code: str = Field(..., min_length=1)
    region_name: Optional[str] = None
    material_cost: float = Field(default=0.0, ge=0)
    labor_cost: float = Field(default=0.0, ge=0)
    equipment_cost: float = Field(default=0.0, ge=0)
    effective_date: Optional[str] = None
    price_list_version: Optional[str] = None

    @field_validator("line_item_code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def key(self):
        return (self.region_id, self.line_item_code)
