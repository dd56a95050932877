"""Quantity formula evaluator for ClaimScope.

Maps a catalog item's named formula onto the room geometry bag. A formula
whose input is missing yields None, never a fabricated zero; callers decide
how to degrade (see resolve_quantity).
"""

from typing import Optional, Tuple, Union

import structlog

from claimscope.models.catalog import QuantityFormula
from claimscope.models.inspection import GeometryBag

logger = structlog.get_logger(__name__)


# Formula -> geometry bag key
FORMULA_MEASUREMENTS = {
    QuantityFormula.FLOOR_SF: "floor_sf",
    QuantityFormula.CEILING_SF: "ceiling_sf",
    QuantityFormula.WALL_SF: "wall_sf",
    QuantityFormula.WALL_SF_NET: "wall_sf_net",
    QuantityFormula.PERIMETER_LF: "perimeter_lf",
    QuantityFormula.CEILING_PERIM_LF: "ceiling_perim_lf",
    QuantityFormula.FLOOR_SY: "floor_sy",
    QuantityFormula.ROOF_SF: "roof_sf",
    QuantityFormula.ROOF_SQ: "roof_sq",
    QuantityFormula.VOLUME_CF: "volume_cf",
}


def parse_formula(raw: Union[str, QuantityFormula, None]) -> Optional[QuantityFormula]:
    """Parse a formula name from catalog data.

    Unknown names are logged and treated as absent.
    """
    if raw is None or isinstance(raw, QuantityFormula):
        return raw
    name = raw.strip().upper()
    if not name:
        return None
    try:
        return QuantityFormula(name)
    except ValueError:
        logger.warning("unknown_quantity_formula", formula=raw)
        return None


def evaluate_formula(
    formula: Union[str, QuantityFormula, None],
    bag: GeometryBag,
) -> Optional[float]:
    """Evaluate a named formula against a geometry bag.

    Args:
        formula: Formula name; None is treated as EACH.
        bag: Derived room measurements.

    Returns:
        Quantity rounded to 2 decimals, or None when the formula is MANUAL,
        unknown, or the bag lacks its input.
    """
    if formula is None:
        return 1.0
    parsed = parse_formula(formula)
    if parsed is None:
        return None
    if parsed == QuantityFormula.EACH:
        return 1.0
    if parsed == QuantityFormula.MANUAL:
        return None

    if parsed == QuantityFormula.WALLS_CEILING_SF:
        wall = bag.get("wall_sf")
        ceiling = bag.get("ceiling_sf")
        if wall is None or ceiling is None:
            return None
        return round(wall + ceiling, 2)

    value = bag.get(FORMULA_MEASUREMENTS[parsed])
    if value is None:
        return None
    return round(value, 2)


def resolve_quantity(
    formula: Union[str, QuantityFormula, None],
    bag: GeometryBag,
    catalog_code: Optional[str] = None,
) -> Tuple[Optional[float], Optional[str]]:
    """Evaluate a formula and apply the missing-dimension policy.

    A non-MANUAL formula that cannot be evaluated falls back to quantity 1
    with a dimension warning. MANUAL returns (None, None): the operator has
    to supply the quantity.

    Returns:
        (quantity, dimension_warning)
    """
    if formula is None:
        return 1.0, None
    parsed = parse_formula(formula)
    if parsed == QuantityFormula.MANUAL:
        return None, None

    quantity = evaluate_formula(parsed, bag) if parsed is not None else None
    if quantity is not None:
        return quantity, None

    formula_name = parsed.value if parsed is not None else str(formula)
    missing = ", ".join(bag.missing) if bag.missing else "measurement"
    warning = (
        f"{catalog_code or 'Item'}: {formula_name} could not be derived (missing {missing}); "
        f"defaulted to 1, adjust when dimensions are known"
    )
    logger.info("quantity_defaulted", catalog_code=catalog_code, formula=formula_name, missing=bag.missing)
    return 1.0, warning
