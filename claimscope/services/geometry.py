"""Geometry resolver for ClaimScope.

Derives the measurement bag a room's line items are quantified from:
floor, ceiling and wall areas, opening deductions, perimeters, volume and
roof squares. Pure: no I/O, no mutation of the room, and missing
dimensions produce a partial bag rather than an exception.
"""

import math
from typing import Dict, List, Tuple

import structlog

from claimscope.models.inspection import GeometryBag, Opening, Room

logger = structlog.get_logger(__name__)


# =============================================================================
# OPENING DEFAULTS
# =============================================================================

# Standard opening sizes in feet (width, height) used when the adjuster
# did not measure the opening
DEFAULT_OPENING_SIZES: Dict[str, Tuple[float, float]] = {
    "window": (3.0, 4.0),
    "standard_door": (2.67, 6.67),
    "door": (2.67, 6.67),
    "sliding_door": (6.0, 6.67),
    "french_door": (5.0, 6.67),
    "overhead_door": (7.0, 8.0),
    "garage_door": (7.0, 8.0),
    "archway": (3.0, 7.0),
    "pass_through": (3.0, 4.0),
    "missing_wall": (0.0, 0.0),
    "cased_opening": (0.0, 0.0),
}
FALLBACK_OPENING_SIZE = (3.0, 4.0)

# Data-quality limits for a single opening
MAX_OPENING_DIMENSION_FT = 15.0
MAX_OPENING_AREA_SF = 200.0

SF_PER_SQUARE = 100.0
SF_PER_SY = 9.0


def opening_area(opening: Opening) -> Tuple[float, List[str]]:
    """Area of one opening entry (all of its quantity) plus warnings.

    Missing width or height falls back to the standard size for the
    opening type.
    """
    warnings: List[str] = []
    opening_type = (opening.opening_type or "").lower()
    default_width, default_height = DEFAULT_OPENING_SIZES.get(opening_type, FALLBACK_OPENING_SIZE)

    width = opening.width
    height = opening.height
    if width is None or height is None:
        warnings.append(
            f"Opening '{opening.label or opening_type}' missing dimensions; "
            f"using standard {opening_type or 'opening'} size {default_width}' x {default_height}'"
        )
        width = default_width if width is None else width
        height = default_height if height is None else height

    if width > MAX_OPENING_DIMENSION_FT or height > MAX_OPENING_DIMENSION_FT:
        warnings.append(
            f"Opening '{opening.label or opening_type}' has an unusual dimension "
            f"({width}' x {height}'); verify measurement"
        )

    area = width * height
    if area > MAX_OPENING_AREA_SF:
        warnings.append(
            f"Opening '{opening.label or opening_type}' area {round(area, 2)} SF exceeds "
            f"{MAX_OPENING_AREA_SF} SF; verify measurement"
        )

    return area * opening.quantity, warnings


def calculate_opening_deductions(room: Room) -> Tuple[float, List[str]]:
    """Total opening area deducted from the room's walls.

    Returns:
        (deduction in SF, warnings)
    """
    total = 0.0
    warnings: List[str] = []
    for opening in room.openings:
        area, opening_warnings = opening_area(opening)
        total += area
        warnings.extend(opening_warnings)
    return round(total, 2), warnings


# =============================================================================
# RESOLVER
# =============================================================================


def _pitch_multiplier(roof_pitch: float) -> float:
    """Slope factor for a roof pitch given as rise per 12 of run."""
    return math.sqrt(1 + (roof_pitch / 12.0) ** 2)


def resolve_geometry(room: Room) -> GeometryBag:
    """Compute the geometry bag for a room.

    Args:
        room: Room snapshot; any dimension may be missing.

    Returns:
        GeometryBag with every measurement that could be derived. When
        length, width or height is missing the dependent measurements are
        left out and ``incomplete`` is set.
    """
    values: Dict[str, float] = {}
    missing: List[str] = []
    warnings: List[str] = []

    length, width, height = room.length, room.width, room.height
    required = [("length", length), ("width", width)]
    # Roof facets are measured in plan; wall height does not apply
    if not room.is_roof:
        required.append(("height", height))
    for name, value in required:
        if value is None:
            missing.append(name)

    has_plan = length is not None and width is not None

    if has_plan:
        floor_sf = length * width
        perimeter = 2 * (length + width)
        values["floor_sf"] = floor_sf
        values["ceiling_sf"] = floor_sf
        values["perimeter_lf"] = perimeter
        values["ceiling_perim_lf"] = perimeter
        values["floor_sy"] = floor_sf / SF_PER_SY

        if room.is_roof:
            roof_sf = floor_sf
            if room.roof_pitch:
                roof_sf = floor_sf * _pitch_multiplier(room.roof_pitch)
            values["roof_sf"] = roof_sf
            values["roof_sq"] = roof_sf / SF_PER_SQUARE

    if has_plan and height is not None:
        gross_wall = values["perimeter_lf"] * height
        deduction, opening_warnings = calculate_opening_deductions(room)
        warnings.extend(opening_warnings)
        values["wall_sf"] = gross_wall
        values["opening_deduction_sf"] = deduction
        values["wall_sf_net"] = max(0.0, gross_wall - deduction)
        values["volume_cf"] = values["floor_sf"] * height
    elif room.openings:
        # Deductions are still reported so the validator can flag them
        deduction, opening_warnings = calculate_opening_deductions(room)
        warnings.extend(opening_warnings)
        values["opening_deduction_sf"] = deduction

    bag = GeometryBag(
        room_id=room.id,
        values={name: round(value, 2) for name, value in values.items()},
        incomplete=bool(missing),
        missing=missing,
        warnings=warnings,
    )

    if bag.incomplete:
        logger.debug("geometry_incomplete", room_id=room.id, missing=missing)

    return bag
