"""Inspection Pydantic models for ClaimScope.

Rooms with their geometry and openings, damage observations, and the
IICRC water classification recorded during an inspection session.
"""

from enum import Enum
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================


class ZoneType(str, Enum):
    """Zone derived from the room type prefix."""

    INTERIOR = "interior"
    EXTERIOR = "exterior"
    ROOF = "roof"
    UNKNOWN = "unknown"


class WaterSource(str, Enum):
    """Water source cleanliness."""

    CLEAN = "clean"
    GRAY = "gray"
    BLACK = "black"


class ContaminationLevel(str, Enum):
    """Contamination assessment."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Structures that route to Coverage B (other structures)
DETACHED_STRUCTURE_KEYWORDS = ("detach", "garage", "shed", "fence", "barn", "outbuilding")


# =============================================================================
# ROOM MODELS
# =============================================================================


class Opening(BaseModel):
    """A door, window or other opening that deducts from wall area."""

    id: Optional[int] = None
    opening_type: str = Field(default="window", description="window, standard_door, sliding_door, ...")
    wall_index: int = Field(default=0, ge=0, le=3, description="Wall 0-3, clockwise from entry")
    width: Optional[float] = Field(default=None, ge=0, description="Width in feet")
    height: Optional[float] = Field(default=None, ge=0, description="Height in feet")
    quantity: int = Field(default=1, ge=1)
    label: Optional[str] = None


class Room(BaseModel):
    """Geometry snapshot for one room of an inspection session.

    Dimensions are optional: rooms are created as soon as the adjuster names
    them and filled in as measurements arrive.
    """

    id: int
    session_id: int
    name: str
    room_type: Optional[str] = Field(default=None, description="e.g. interior_kitchen, exterior_roof")
    structure: str = Field(default="Main Dwelling")
    length: Optional[float] = Field(default=None, ge=0, description="Feet")
    width: Optional[float] = Field(default=None, ge=0, description="Feet")
    height: Optional[float] = Field(default=None, ge=0, description="Feet")
    floor: int = 1
    ceiling_type: Optional[str] = Field(default=None, description="flat, vaulted, cathedral, ...")
    roof_pitch: Optional[float] = Field(default=None, ge=0, description="Rise per 12 of run")
    openings: List[Opening] = Field(default_factory=list)

    @property
    def zone_type(self) -> ZoneType:
        room_type = (self.room_type or "").lower()
        if room_type.startswith("interior_"):
            return ZoneType.INTERIOR
        if "roof" in room_type:
            return ZoneType.ROOF
        if room_type.startswith("exterior_"):
            return ZoneType.EXTERIOR
        return ZoneType.UNKNOWN

    @property
    def is_roof(self) -> bool:
        return self.zone_type == ZoneType.ROOF

    @property
    def is_detached_structure(self) -> bool:
        structure = self.structure.lower()
        return any(keyword in structure for keyword in DETACHED_STRUCTURE_KEYWORDS)


class GeometryBag(BaseModel):
    """Derived measurements for a room.

    Any measurement the resolver could not compute is absent from
    ``values``; ``incomplete`` tells callers to fall back to manual entry.
    """

    room_id: Optional[int] = None
    values: Dict[str, float] = Field(default_factory=dict)
    incomplete: bool = False
    missing: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    def get(self, name: str) -> Optional[float]:
        return self.values.get(name)


# =============================================================================
# DAMAGE & WATER
# =============================================================================


class WaterClassification(BaseModel):
    """IICRC water damage classification."""

    category: int = Field(..., ge=1, le=3, description="1=clean, 2=gray, 3=black")
    water_class: int = Field(..., ge=1, le=4, description="Extent/depth of saturation")
    source: Optional[WaterSource] = None
    contamination_level: ContaminationLevel = ContaminationLevel.LOW
    drying_possible: bool = True
    notes: Optional[str] = None

    @property
    def forces_demolition(self) -> bool:
        """Category 3 or class 4 water forces demolition and mitigation."""
        return self.category == 3 or self.water_class == 4


class DamageObservation(BaseModel):
    """Damage the adjuster observed in a room."""

    id: Optional[int] = None
    session_id: int
    room_id: int
    damage_type: str = Field(..., description="e.g. water_intrusion, hail_impact, crack")
    severity: Optional[str] = Field(default=None, description="minor, moderate, severe")
    surface: Optional[str] = Field(default=None, description="wall, ceiling, floor, roof, ...")
    description: Optional[str] = None
    affected_area: Optional[float] = Field(default=None, ge=0, description="SF")
    linear_feet: Optional[float] = Field(default=None, ge=0)
    trade_hints: List[str] = Field(default_factory=list)

    @field_validator("damage_type", "severity", "surface", mode="before")
    @classmethod
    def normalize(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


# =============================================================================
# WATER DAMAGE PROTOCOL
# =============================================================================


class WaterProtocolQuestion(BaseModel):
    """One step of the water damage questioning flow."""

    step: int = Field(..., ge=1)
    question: str
    field: str = Field(..., description="WaterProtocolResponses field the answer fills")
    answer_format: str = Field(..., description="text, datetime, number or boolean")
    examples: List[str] = Field(default_factory=list)


class WaterProtocolResponses(BaseModel):
    """Adjuster answers to the water damage protocol."""

    water_source: str = Field(..., description="Free-text source, e.g. 'supply line break'")
    standing_water_start: Optional[datetime] = None
    standing_water_end: Optional[datetime] = None
    affected_area: Optional[float] = Field(default=None, ge=0, description="SF")
    visible_contamination: bool = False
    affected_materials: Optional[str] = None
    notes: Optional[str] = None
