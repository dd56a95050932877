"""Inspection fixtures for testing.

Provides room, damage, scope item and water classification builders with
realistic defaults for a single inspection session.
"""

from typing import List, Optional

from claimscope.models.inspection import (
    DamageObservation,
    Opening,
    Room,
    WaterClassification,
    WaterSource,
)
from claimscope.models.scope import Provenance, ScopeItem

SESSION_ID = 1


# =============================================================================
# ROOMS
# =============================================================================


def make_room(
    room_id: int = 1,
    name: str = "Kitchen",
    room_type: str = "interior_kitchen",
    length: Optional[float] = 20.0,
    width: Optional[float] = 15.0,
    height: Optional[float] = 8.0,
    structure: str = "Main Dwelling",
    openings: Optional[List[Opening]] = None,
    roof_pitch: Optional[float] = None,
    session_id: int = SESSION_ID,
) -> Room:
    return Room(
        id=room_id,
        session_id=session_id,
        name=name,
        room_type=room_type,
        length=length,
        width=width,
        height=height,
        structure=structure,
        openings=openings or [],
        roof_pitch=roof_pitch,
    )


def make_roof(room_id: int = 10, length: float = 40.0, width: float = 25.0, pitch: Optional[float] = 6.0) -> Room:
    return make_room(
        room_id=room_id,
        name="Main Roof",
        room_type="exterior_roof",
        length=length,
        width=width,
        height=None,
        roof_pitch=pitch,
    )


# =============================================================================
# DAMAGE & WATER
# =============================================================================


def make_damage(
    room_id: int = 1,
    damage_type: str = "water_intrusion",
    severity: Optional[str] = "moderate",
    surface: Optional[str] = "wall",
    affected_area: Optional[float] = None,
    damage_id: Optional[int] = 1,
) -> DamageObservation:
    return DamageObservation(
        id=damage_id,
        session_id=SESSION_ID,
        room_id=room_id,
        damage_type=damage_type,
        severity=severity,
        surface=surface,
        affected_area=affected_area,
    )


CATEGORY_3_WATER = WaterClassification(
    category=3,
    water_class=2,
    source=WaterSource.BLACK,
    drying_possible=False,
)

CLASS_4_WATER = WaterClassification(
    category=1,
    water_class=4,
    source=WaterSource.CLEAN,
    drying_possible=False,
)

CLEAN_WATER = WaterClassification(
    category=1,
    water_class=2,
    source=WaterSource.CLEAN,
    drying_possible=True,
)


# =============================================================================
# SCOPE ITEMS
# =============================================================================


def make_item(
    item_id: Optional[int],
    catalog_code: str,
    trade_code: str,
    quantity: float = 100.0,
    room_id: Optional[int] = 1,
    unit: str = "SF",
    provenance: Provenance = Provenance.MANUAL,
    **extra,
) -> ScopeItem:
    return ScopeItem(
        id=item_id,
        session_id=SESSION_ID,
        room_id=room_id,
        catalog_code=catalog_code,
        description=extra.pop("description", catalog_code),
        trade_code=trade_code,
        quantity=quantity,
        unit=unit,
        provenance=provenance,
        **extra,
    )
