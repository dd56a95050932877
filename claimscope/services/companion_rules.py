"""Default trade-level companion rules.

Each rule says "when work of trade X is scoped, trade Y usually comes with
it". Thresholds and divisors come from EngineConfig so carriers can tune
them without touching the table.
"""

from typing import Any, Dict, Iterable, List, Tuple

import structlog
from pydantic import ValidationError as PydanticValidationError

from claimscope.config.engine import EngineConfig
from claimscope.config.errors import RuleDefinitionError
from claimscope.models.companion import (
    ANY_TRADE,
    CompanionRule,
    DerivationKind,
    QuantityDerivation,
    RuleCondition,
)

logger = structlog.get_logger(__name__)


# Catalog code used when a trade rule adds a companion of that trade
COMPANION_DEFAULT_CODES: Dict[str, str] = {
    "DEM": "DEM-DRY-LD",
    "DRY": "DRY-X-1-2",
    "PNT": "PNT-INT-SF",
    "FLR": "FLR-CARPET-SF",
    "MIT": "MIT-AIRM-DAY",
    "RFG": "RFG-X-300",
    "WIN": "WIN-DOUBLE-EA",
    "ELE": "ELE-OUTL-EA",
}


def _formula() -> QuantityDerivation:
    return QuantityDerivation(kind=DerivationKind.FORMULA)


def _ratio(divisor: float) -> QuantityDerivation:
    return QuantityDerivation(kind=DerivationKind.AREA_RATIO, divisor=divisor, minimum=1)


def _fixed(value: float) -> QuantityDerivation:
    return QuantityDerivation(kind=DerivationKind.FIXED, value=value)


def default_companion_rules(config: EngineConfig) -> List[CompanionRule]:
    """Build the default companion rule table for a config.

    Args:
        config: Engine configuration supplying thresholds and divisors.

    Returns:
        Rules sorted by descending priority.
    """
    rules = [
        # ---- Drywall ------------------------------------------------------
        CompanionRule(
            id="dry-dem-area",
            trigger_trade="DRY", companion_trade="DEM", companion_code="DEM-DRY-LD",
            relationship="Wet drywall over the demolition threshold is torn out first",
            condition=RuleCondition(min_affected_area=config.demolition_area_threshold),
            quantity=_ratio(config.demolition_quantity_divisor),
            priority=100,
        ),
        CompanionRule(
            id="dry-mit",
            trigger_trade="DRY", companion_trade="MIT", companion_code="MIT-AIRM-DAY",
            relationship="Drywall replacement needs drying equipment",
            quantity=_ratio(config.mitigation_quantity_divisor),
            priority=95,
        ),
        CompanionRule(
            id="dry-pnt",
            trigger_trade="DRY", companion_trade="PNT", companion_code="PNT-INT-SF",
            relationship="New drywall must be primed and painted",
            condition=RuleCondition(drying_possible=True),
            quantity=_formula(),
            priority=50,
        ),

        # ---- Mitigation ---------------------------------------------------
        CompanionRule(
            id="mit-dry",
            trigger_trade="MIT", companion_trade="DRY", companion_code="DRY-X-1-2",
            relationship="Drying out a room usually means replacing drywall",
            condition=RuleCondition(trade_absent="DRY", min_affected_area=config.drying_area_threshold),
            quantity=_formula(),
            priority=120,
        ),
        CompanionRule(
            id="mit-dem",
            trigger_trade="MIT", companion_trade="DEM", companion_code="DEM-DRY-LD",
            relationship="Class 3 and 4 saturation requires tear-out",
            condition=RuleCondition(min_water_class=3),
            quantity=_ratio(config.demolition_quantity_divisor),
            priority=105,
        ),

        # ---- Flooring -----------------------------------------------------
        CompanionRule(
            id="flr-dem",
            trigger_trade="FLR", companion_trade="DEM", companion_code="DEM-FLR-SF",
            relationship="Old flooring is removed before install",
            quantity=_formula(),
            priority=100,
        ),
        CompanionRule(
            id="flr-pnt",
            trigger_trade="FLR", companion_trade="PNT", companion_code="PNT-TRIM-LF",
            relationship="Baseboard is repainted after flooring in small rooms",
            condition=RuleCondition(max_affected_area=config.flooring_trim_paint_max_area),
            quantity=_formula(),
            priority=40,
        ),

        # ---- Demolition ---------------------------------------------------
        CompanionRule(
            id="dem-dry",
            trigger_trade="DEM", companion_trade="DRY", companion_code="DRY-X-1-2",
            relationship="Water-driven tear-out is followed by drywall replacement",
            condition=RuleCondition(trade_absent="DRY", requires_water_classification=True),
            quantity=_formula(),
            priority=90,
        ),
        CompanionRule(
            id="dem-pnt",
            trigger_trade="DEM", companion_trade="PNT", companion_code="PNT-INT-SF",
            relationship="Surfaces disturbed by demolition are repainted",
            quantity=_formula(),
            priority=70,
        ),

        # ---- Painting -----------------------------------------------------
        CompanionRule(
            id="pnt-dem",
            trigger_trade="PNT", companion_trade="DEM", companion_code="DEM-DRY-LD",
            relationship="Large repaint areas usually involve surface removal",
            condition=RuleCondition(trade_absent="DEM", min_affected_area=config.paint_access_area_threshold),
            quantity=_ratio(config.demolition_quantity_divisor),
            priority=45,
        ),

        # ---- Roofing ------------------------------------------------------
        CompanionRule(
            id="rfg-dem",
            trigger_trade="RFG", companion_trade="DEM", companion_code="DEM-RFG-SQ",
            relationship="Existing roofing is torn off before replacement",
            quantity=_formula(),
            priority=110,
        ),

        # ---- Windows / exterior -------------------------------------------
        CompanionRule(
            id="win-pnt",
            trigger_trade="WIN", companion_trade="PNT", companion_code="PNT-WIN-EA",
            relationship="Replacement windows need trim painted",
            quantity=_fixed(1),
            priority=60,
        ),
        CompanionRule(
            id="ext-pnt",
            trigger_trade="EXT", companion_trade="PNT", companion_code="PNT-EXT-SF",
            relationship="Exterior surface work requires repaint",
            quantity=_formula(),
            priority=60,
        ),

        # ---- Plumbing / electrical ----------------------------------------
        CompanionRule(
            id="plm-dem",
            trigger_trade="PLM", companion_trade="DEM", companion_code="DEM-DRY-LD",
            relationship="Wet plumbing repairs over a large area need wall access",
            condition=RuleCondition(
                requires_water_classification=True,
                min_affected_area=config.plumbing_access_area_threshold,
            ),
            quantity=_ratio(config.demolition_quantity_divisor),
            priority=85,
        ),
        CompanionRule(
            id="plm-mit",
            trigger_trade="PLM", companion_trade="MIT", companion_code="MIT-DEHU-DAY",
            relationship="Plumbing leaks require dehumidification",
            condition=RuleCondition(requires_water_classification=True),
            quantity=_fixed(3),
            priority=80,
        ),
        CompanionRule(
            id="ele-dem",
            trigger_trade="ELE", companion_trade="DEM", companion_code="DEM-DRY-LD",
            relationship="Long electrical runs need wall access",
            condition=RuleCondition(min_linear_feet=config.electrical_access_linear_feet),
            quantity=_fixed(1),
            priority=75,
        ),
        CompanionRule(
            id="ele-pnt",
            trigger_trade="ELE", companion_trade="PNT", companion_code="PNT-INT-SF",
            relationship="Walls opened for electrical are repainted",
            condition=RuleCondition(min_linear_feet=config.electrical_access_linear_feet),
            quantity=_formula(),
            priority=35,
        ),

        # ---- Contaminated / saturated water (any trade) -------------------
        CompanionRule(
            id="water-dem",
            trigger_trade=ANY_TRADE, companion_trade="DEM", companion_code="DEM-DRY-LD",
            relationship="Category 3 or Class 4 water requires removal of affected materials",
            condition=RuleCondition(water_forces_demolition=True, trade_absent="DEM"),
            quantity=_ratio(config.demolition_quantity_divisor),
            priority=150,
        ),
        CompanionRule(
            id="water-mit",
            trigger_trade=ANY_TRADE, companion_trade="MIT", companion_code="MIT-AIRM-DAY",
            relationship="Category 3 or Class 4 water requires drying and antimicrobial treatment",
            condition=RuleCondition(water_forces_demolition=True, trade_absent="MIT"),
            quantity=_ratio(config.mitigation_quantity_divisor),
            priority=140,
        ),
    ]
    return sorted(rules, key=lambda r: -r.priority)


def parse_companion_rule(row: Any) -> CompanionRule:
    """Parse one raw rule row.

    Raises:
        RuleDefinitionError: If the row does not describe a valid rule.
    """
    if isinstance(row, CompanionRule):
        return row
    if not isinstance(row, dict):
        raise RuleDefinitionError(message=f"Companion rule must be an object, got {type(row).__name__}")
    if not row.get("companion_code") and row.get("companion_trade") in COMPANION_DEFAULT_CODES:
        row = {**row, "companion_code": COMPANION_DEFAULT_CODES[row["companion_trade"]]}
    try:
        return CompanionRule(**row)
    except PydanticValidationError as e:
        raise RuleDefinitionError(
            message=f"Invalid companion rule {row.get('id', '?')}: {e}",
            details={"rule_id": row.get("id")},
        )


def load_companion_rules(rows: Iterable[Any]) -> Tuple[List[CompanionRule], List[str]]:
    """Parse a rule table, skipping malformed rows.

    Returns:
        (rules sorted by descending priority, warnings for rejected rows)
    """
    rules: List[CompanionRule] = []
    warnings: List[str] = []
    for index, row in enumerate(rows):
        try:
            rules.append(parse_companion_rule(row))
        except RuleDefinitionError as e:
            logger.warning("companion_rule_rejected", index=index, error=e.message)
            warnings.append(f"Companion rule {index} rejected: {e.message}")
    return sorted(rules, key=lambda r: -r.priority), warnings
