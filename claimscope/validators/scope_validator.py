"""Scope completeness and consistency validation.

Runs a fixed set of checks over a session's rooms, damage observations and
scope items and returns a scored report. Validation is advisory: a check
that fails internally is logged and reported as an issue, and the
function never raises.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional

import structlog

from claimscope.config.engine import EngineConfig
from claimscope.models.catalog import CoverageType, QuantityFormula
from claimscope.models.inspection import DamageObservation, Room, WaterClassification
from claimscope.models.scope import ScopeItem
from claimscope.models.validation import ScopeValidationReport, Severity, ValidationIssue
from claimscope.services.catalog_repository import CatalogSnapshot
from claimscope.services.geometry import resolve_geometry

logger = structlog.get_logger(__name__)


# Score deductions per finding
SCORE_PENALTIES = {
    Severity.ERROR: 10,
    Severity.WARNING: 3,
    Severity.SUGGESTION: 1,
}

WALL_FORMULAS = frozenset({QuantityFormula.WALL_SF, QuantityFormula.WALL_SF_NET})


@dataclass(frozen=True)
class TradeSequence:
    """Trades expected in a room once the trigger trade is scoped.

    When ``damage_surfaces`` is set the sequence only applies if the room
    has damage on one of those surfaces.
    """

    name: str
    trigger: str
    requires: tuple
    damage_surfaces: Optional[FrozenSet[str]] = None


TRADE_SEQUENCES = (
    TradeSequence("Drywall", "DRY", ("DEM", "PNT")),
    TradeSequence("Flooring", "FLR", ("DEM",), frozenset({"floor"})),
    TradeSequence("Mitigation", "MIT", ("DEM",)),
    TradeSequence("Roofing", "RFG", ("DEM",)),
    TradeSequence("Painting", "PNT", ("DRY",), frozenset({"wall", "walls", "ceiling"})),
    TradeSequence("Plumbing", "PLM", ("DEM", "DRY")),
    TradeSequence("Windows", "WIN", ("PNT",)),
    TradeSequence("Exterior", "EXT", ("PNT",)),
)


@dataclass
class _ScopeData:
    rooms: List[Room]
    damages: List[DamageObservation]
    items: List[ScopeItem]
    catalog: CatalogSnapshot
    config: EngineConfig
    water: Optional[WaterClassification]
    active: List[ScopeItem] = field(default_factory=list)
    by_room: Dict[Optional[int], List[ScopeItem]] = field(default_factory=dict)

    def __post_init__(self):
        self.active = [item for item in self.items if item.is_active]
        for item in self.active:
            self.by_room.setdefault(item.room_id, []).append(item)

    def room_items(self, room_id: int) -> List[ScopeItem]:
        return self.by_room.get(room_id, [])


# =============================================================================
# CHECKS
# =============================================================================


def _check_scope_gaps(data: _ScopeData) -> List[ValidationIssue]:
    issues = []
    for room in data.rooms:
        damage_count = sum(1 for d in data.damages if d.room_id == room.id)
        if damage_count and not data.room_items(room.id):
            issues.append(ValidationIssue(
                category="missing_scope",
                severity=Severity.ERROR,
                message=f"Room '{room.name}' has {damage_count} damage observation(s) but no scope items",
                room_id=room.id,
            ))
    return issues


def _check_unlinked_damage(data: _ScopeData) -> List[ValidationIssue]:
    linked = {item.damage_id for item in data.active if item.damage_id is not None}
    rooms = {room.id: room for room in data.rooms}
    issues = []
    for damage in data.damages:
        if damage.id in linked:
            continue
        room = rooms.get(damage.room_id)
        issues.append(ValidationIssue(
            category="unlinked_damage",
            severity=Severity.WARNING,
            message=(
                f"Damage '{damage.description or damage.damage_type}' in "
                f"'{room.name if room else 'unknown room'}' has no linked scope items"
            ),
            room_id=damage.room_id,
        ))
    return issues


def _check_missing_companions(data: _ScopeData) -> List[ValidationIssue]:
    issues = []
    for room_id, items in data.by_room.items():
        codes = {item.catalog_code for item in items}
        for item in items:
            catalog_item = data.catalog.get_item(item.catalog_code)
            if catalog_item is None:
                continue
            for required in catalog_item.companion_rules.requires:
                if required in codes:
                    continue
                required_item = data.catalog.get_item(required)
                issues.append(ValidationIssue(
                    category="missing_companion",
                    severity=Severity.WARNING,
                    message=(
                        f"'{item.description}' requires "
                        f"'{required_item.description if required_item else required}' in the same room"
                    ),
                    room_id=room_id,
                    scope_item_id=item.id,
                    code=required,
                ))
    return issues


def _check_trade_sequences(data: _ScopeData) -> List[ValidationIssue]:
    rooms = {room.id: room for room in data.rooms}
    issues = []
    for room_id, items in data.by_room.items():
        if room_id is None:
            continue
        trades = {item.trade_code for item in items}
        surfaces = {d.surface for d in data.damages if d.room_id == room_id and d.surface}
        room = rooms.get(room_id)
        for sequence in TRADE_SEQUENCES:
            if sequence.trigger not in trades:
                continue
            if sequence.damage_surfaces is not None and not surfaces & sequence.damage_surfaces:
                continue
            for required in sequence.requires:
                if required not in trades:
                    issues.append(ValidationIssue(
                        category="trade_sequence",
                        severity=Severity.WARNING,
                        message=(
                            f"Room '{room.name if room else room_id}': {sequence.name} sequence incomplete, "
                            f"has {sequence.trigger} but missing {required}"
                        ),
                        room_id=room_id,
                        code=required,
                    ))
    return issues


def _check_quantities(data: _ScopeData) -> List[ValidationIssue]:
    issues = []
    for item in data.active:
        if item.quantity <= 0:
            issues.append(ValidationIssue(
                category="invalid_quantity",
                severity=Severity.ERROR,
                message=f"'{item.description}' has invalid quantity {item.quantity}",
                room_id=item.room_id,
                scope_item_id=item.id,
            ))
        elif item.unit == "SF" and item.quantity > data.config.sf_outlier_threshold:
            issues.append(ValidationIssue(
                category="quantity_outlier",
                severity=Severity.WARNING,
                message=f"'{item.description}' has an unusually large quantity: {item.quantity} SF",
                room_id=item.room_id,
                scope_item_id=item.id,
            ))
    return issues


def _check_duplicates(data: _ScopeData) -> List[ValidationIssue]:
    seen = set()
    issues = []
    for item in data.active:
        key = (item.room_id, item.catalog_code, item.activity_type)
        if key in seen:
            issues.append(ValidationIssue(
                category="duplicate",
                severity=Severity.WARNING,
                message=f"'{item.description}' ({item.catalog_code}) appears more than once in the same room",
                room_id=item.room_id,
                scope_item_id=item.id,
                code=item.catalog_code,
            ))
        seen.add(key)
    return issues


def _check_openings(data: _ScopeData) -> List[ValidationIssue]:
    issues = []
    limit = data.config.opening_deduction_warning_ratio
    for room in data.rooms:
        items = data.room_items(room.id)
        if not any(item.quantity_formula in WALL_FORMULAS for item in items):
            continue
        if not room.openings:
            issues.append(ValidationIssue(
                category="wall_scope_no_openings",
                severity=Severity.WARNING,
                message=(
                    f"Room '{room.name}' has wall items but no openings recorded; "
                    f"wall scope may be overstated"
                ),
                room_id=room.id,
                code="WALL_SCOPE_NO_OPENINGS",
            ))
            continue
        bag = resolve_geometry(room)
        gross = bag.get("wall_sf")
        deduction = bag.get("opening_deduction_sf") or 0.0
        if gross and deduction / gross > limit:
            issues.append(ValidationIssue(
                category="opening_deduction_excessive",
                severity=Severity.WARNING,
                message=(
                    f"Room '{room.name}' opening deductions ({deduction} SF) exceed "
                    f"{limit:.0%} of gross wall area ({round(gross)} SF)"
                ),
                room_id=room.id,
                code="OPENING_DEDUCTION_EXCESSIVE",
            ))
    return issues


def _check_coverage(data: _ScopeData) -> List[ValidationIssue]:
    rooms = {room.id: room for room in data.rooms}
    issues = []
    for item in data.active:
        room = rooms.get(item.room_id)
        if room is None or item.coverage_type is None or item.coverage_type == CoverageType.C:
            continue
        expected = CoverageType.B if room.is_detached_structure else CoverageType.A
        if item.coverage_type != expected:
            issues.append(ValidationIssue(
                category="coverage_mismatch",
                severity=Severity.SUGGESTION,
                message=(
                    f"'{item.description}' in '{room.name}' ({room.structure}) has coverage "
                    f"{item.coverage_type.value} but expected {expected.value}"
                ),
                room_id=room.id,
                scope_item_id=item.id,
            ))
    return issues


def _check_water(data: _ScopeData) -> List[ValidationIssue]:
    water = data.water
    if water is None:
        return []
    trades = {item.trade_code for item in data.active}
    issues = []
    if water.category == 3 and "DEM" not in trades:
        issues.append(ValidationIssue(
            category="water_classification",
            severity=Severity.ERROR,
            message="Category 3 black water damage requires demolition (DEM) in scope",
            code="DEM",
        ))
    if water.category == 3 and "MIT" not in trades:
        issues.append(ValidationIssue(
            category="water_classification",
            severity=Severity.ERROR,
            message="Category 3 water damage requires mitigation (MIT) in scope",
            code="MIT",
        ))
    if water.water_class == 4 and "DRY" not in trades:
        issues.append(ValidationIssue(
            category="water_classification",
            severity=Severity.WARNING,
            message="Class 4 water damage typically requires drywall replacement (DRY)",
            code="DRY",
        ))
    return issues


CHECKS: List[Callable[[_ScopeData], List[ValidationIssue]]] = [
    _check_scope_gaps,
    _check_unlinked_damage,
    _check_missing_companions,
    _check_trade_sequences,
    _check_quantities,
    _check_duplicates,
    _check_openings,
    _check_coverage,
    _check_water,
]


# =============================================================================
# ENTRY POINT
# =============================================================================


def score_issues(issues: List[ValidationIssue]) -> int:
    """100 minus the per-severity penalties, clamped to 0-100."""
    score = 100 - sum(SCORE_PENALTIES[issue.severity] for issue in issues)
    return max(0, min(100, score))


def validate_scope(
    rooms: List[Room],
    damages: List[DamageObservation],
    items: List[ScopeItem],
    catalog: CatalogSnapshot,
    config: Optional[EngineConfig] = None,
    water: Optional[WaterClassification] = None,
) -> ScopeValidationReport:
    """Validate a session's scope for completeness and consistency.

    Args:
        rooms: Rooms of the session.
        damages: Damage observations of the session.
        items: Scope items of the session (inactive items are ignored).
        catalog: Catalog snapshot for requires lookups.
        config: Engine configuration for thresholds.
        water: Session water classification, if recorded.

    Returns:
        ScopeValidationReport; ``valid`` is False when any error exists.
    """
    data = _ScopeData(
        rooms=list(rooms),
        damages=list(damages),
        items=list(items),
        catalog=catalog,
        config=config or EngineConfig(),
        water=water,
    )

    issues: List[ValidationIssue] = []
    for check in CHECKS:
        try:
            issues.extend(check(data))
        except Exception as e:
            logger.error("validation_check_failed", check=check.__name__, error=str(e))
            issues.append(ValidationIssue(
                category="validator_error",
                severity=Severity.WARNING,
                message=f"Validation check {check.__name__.lstrip('_')} could not run: {e}",
            ))

    report = ScopeValidationReport(
        valid=not any(issue.severity == Severity.ERROR for issue in issues),
        score=score_issues(issues),
        errors=[i for i in issues if i.severity == Severity.ERROR],
        warnings=[i for i in issues if i.severity == Severity.WARNING],
        suggestions=[i for i in issues if i.severity == Severity.SUGGESTION],
    )
    logger.info(
        "scope_validated",
        valid=report.valid,
        score=report.score,
        errors=len(report.errors),
        warnings=len(report.warnings),
        suggestions=len(report.suggestions),
    )
    return report
