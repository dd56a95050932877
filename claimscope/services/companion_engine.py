"""Companion rule engine for ClaimScope.

Given a primary scope item, adds the line items professional estimators
expect alongside it (tear-out before drywall, drying equipment, paint
after patching). Candidates come from two data sources: the primary
catalog item's ``auto_adds`` and the trade-level rule table. Both are
evaluated by the generic matchers below.

The cascade is an explicit worklist bounded by ``max_cascade_depth`` with
a visited set of catalog codes, so cyclic auto_adds terminate.
"""

import math
from collections import deque
from dataclasses import dataclass, field
from itertools import count
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

import structlog

from claimscope.config.engine import EngineConfig
from claimscope.models.catalog import CatalogItem, ScopeConditions
from claimscope.models.companion import (
    CompanionRule,
    CompanionSuggestion,
    DerivationKind,
    QuantityDerivation,
)
from claimscope.models.inspection import DamageObservation, GeometryBag, Room, WaterClassification
from claimscope.models.scope import ManualQuantityRequest, Provenance, ScopeItem
from claimscope.models.validation import (
    CompanionValidationIssue,
    CompanionValidationResult,
    Severity,
)
from claimscope.services.catalog_repository import CatalogSnapshot
from claimscope.services.companion_rules import default_companion_rules
from claimscope.services.geometry import resolve_geometry
from claimscope.services.quantity_formulas import resolve_quantity

logger = structlog.get_logger(__name__)


# Geometry measurement used as affected area when the adjuster gave none
SURFACE_AREA_MEASUREMENTS = {
    "wall": "wall_sf_net",
    "walls": "wall_sf_net",
    "ceiling": "ceiling_sf",
    "floor": "floor_sf",
    "roof": "roof_sf",
}


# =============================================================================
# CONTEXT
# =============================================================================


@dataclass
class CompanionContext:
    """Damage context a cascade is evaluated against."""

    room: Room
    bag: GeometryBag
    damage: Optional[DamageObservation] = None
    water: Optional[WaterClassification] = None
    affected_area: Optional[float] = None
    linear_feet: Optional[float] = None

    @classmethod
    def build(
        cls,
        room: Room,
        damage: Optional[DamageObservation] = None,
        water: Optional[WaterClassification] = None,
        bag: Optional[GeometryBag] = None,
    ) -> "CompanionContext":
        """Build a context, deriving affected area from geometry when needed."""
        bag = bag or resolve_geometry(room)
        affected_area = damage.affected_area if damage else None
        if affected_area is None:
            surface = damage.surface if damage else None
            affected_area = bag.get(SURFACE_AREA_MEASUREMENTS.get(surface or "", "floor_sf"))
        return cls(
            room=room,
            bag=bag,
            damage=damage,
            water=water,
            affected_area=affected_area,
            linear_feet=damage.linear_feet if damage else None,
        )

    def match_values(self) -> Dict[str, Optional[str]]:
        """Damage context keyed by ScopeConditions field."""
        return {
            "damage_types": self.damage.damage_type if self.damage else None,
            "surfaces": self.damage.surface if self.damage else None,
            "severities": self.damage.severity if self.damage else None,
            "room_types": (self.room.room_type or "").lower() or None,
            "zone_types": self.room.zone_type.value,
        }

    @property
    def water_forces_demolition(self) -> bool:
        return self.water is not None and self.water.forces_demolition


@dataclass
class CompanionResult:
    """Companions created by one cascade."""

    items: List[ScopeItem] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    manual_quantity_needed: List[ManualQuantityRequest] = field(default_factory=list)


@dataclass
class _Candidate:
    item: CatalogItem
    source: str
    derivation: Optional[QuantityDerivation] = None


# =============================================================================
# MATCHERS
# =============================================================================


def scope_conditions_match(conditions: Optional[ScopeConditions], context: CompanionContext) -> bool:
    """AND across populated keys, OR within each key's list.

    Missing or empty conditions match everything. A populated key fails
    when the context has no value for it.
    """
    if conditions is None or conditions.is_empty():
        return True
    for key, value in context.match_values().items():
        allowed = getattr(conditions, key)
        if not allowed:
            continue
        if value is None or value not in {a.lower() for a in allowed}:
            return False
    return True


def rule_condition_matches(
    rule: CompanionRule,
    context: CompanionContext,
    room_trades: Set[str],
    config: EngineConfig,
) -> bool:
    """Evaluate a trade rule's condition against the context.

    Category 3 or class 4 water lifts area thresholds for the trades in
    ``config.water_forced_trades``.
    """
    condition = rule.condition
    water = context.water
    area = context.affected_area

    area_waived = context.water_forces_demolition and rule.companion_trade in config.water_forced_trades
    if condition.min_affected_area is not None and not area_waived:
        if area is None or area < condition.min_affected_area:
            return False
    if condition.max_affected_area is not None:
        if area is None or area >= condition.max_affected_area:
            return False
    if condition.min_linear_feet is not None:
        if context.linear_feet is None or context.linear_feet <= condition.min_linear_feet:
            return False

    if condition.requires_water_classification and water is None:
        return False
    if condition.water_categories and (water is None or water.category not in condition.water_categories):
        return False
    if condition.min_water_class is not None and (water is None or water.water_class < condition.min_water_class):
        return False
    if condition.drying_possible is not None and water is not None:
        if water.drying_possible != condition.drying_possible:
            return False
    if condition.water_forces_demolition and not context.water_forces_demolition:
        return False

    if condition.trade_absent and condition.trade_absent in room_trades:
        return False
    return True


# =============================================================================
# ENGINE
# =============================================================================


class CompanionEngine:
    """Cascades and validates companion line items.

    Args:
        catalog: Catalog snapshot for this invocation.
        config: Engine configuration.
        rules: Trade-level rule table; defaults to default_companion_rules(config).
    """

    def __init__(
        self,
        catalog: CatalogSnapshot,
        config: Optional[EngineConfig] = None,
        rules: Optional[List[CompanionRule]] = None,
    ):
        self.catalog = catalog
        self.config = config or EngineConfig()
        if rules is None:
            rules = default_companion_rules(self.config)
        self.rules = sorted(rules, key=lambda r: -r.priority)

    # -------------------------------------------------------------------------
    # Cascade
    # -------------------------------------------------------------------------

    def auto_add_companions(
        self,
        primary: ScopeItem,
        context: CompanionContext,
        existing_items: Iterable[ScopeItem] = (),
        persist: Optional[Callable[[ScopeItem], ScopeItem]] = None,
    ) -> CompanionResult:
        """Add companion items for a primary scope item.

        Args:
            primary: The primary item; must already carry an id.
            context: Damage context (room, geometry, damage, water).
            existing_items: Items already in scope; only active items of the
                primary's room take part in dedup and exclusion checks.
            persist: Stores a new item and returns it with an id. Without it,
                ids are allocated above the highest existing id.

        Returns:
            CompanionResult with the new items in creation order and warnings.
        """
        result = CompanionResult()
        if primary.id is None:
            result.warnings.append(f"{primary.catalog_code}: primary has no id; companions skipped")
            logger.warning("companion_primary_without_id", catalog_code=primary.catalog_code)
            return result

        existing_items = list(existing_items)
        room_items = [
            item for item in existing_items
            if item.is_active and item.room_id == primary.room_id and item.id != primary.id
        ]
        room_items.append(primary)

        if persist is None:
            # Ids are unique across the session, not just the room
            next_id = count(max(item.id or 0 for item in [*existing_items, primary]) + 1)

            def persist(item: ScopeItem) -> ScopeItem:
                return item.model_copy(update={"id": next(next_id)})

        room_trades = {item.trade_code for item in room_items}
        visited: Set[str] = {primary.catalog_code} if primary.catalog_code else set()
        worklist = deque([(primary, 0)])

        while worklist:
            trigger, depth = worklist.popleft()
            if depth >= self.config.max_cascade_depth:
                continue

            for candidate in self._candidates(trigger, context, room_trades, result.warnings):
                item = candidate.item
                if item.trade_code in room_trades:
                    logger.debug(
                        "companion_duplicate_trade_skipped",
                        catalog_code=item.code,
                        trade_code=item.trade_code,
                        room_id=primary.room_id,
                    )
                    continue
                if self._is_excluded(item, room_items):
                    logger.info("companion_excluded", catalog_code=item.code, room_id=primary.room_id)
                    continue

                quantity, warning = self._derive_quantity(candidate, context)
                if quantity is None:
                    if item.code not in {r.catalog_code for r in result.manual_quantity_needed}:
                        result.manual_quantity_needed.append(ManualQuantityRequest(
                            catalog_code=item.code,
                            description=item.description,
                            unit=item.unit.value,
                            reason=f"Manual quantity required (companion of {trigger.catalog_code})",
                        ))
                    logger.info("companion_manual_quantity_needed", catalog_code=item.code, room_id=primary.room_id)
                    continue
                if quantity <= 0:
                    logger.info(
                        "companion_zero_quantity_skipped",
                        catalog_code=item.code,
                        quantity=quantity,
                        room_id=primary.room_id,
                    )
                    continue

                companion = persist(ScopeItem(
                    session_id=primary.session_id,
                    room_id=primary.room_id,
                    damage_id=primary.damage_id,
                    catalog_code=item.code,
                    description=item.description,
                    trade_code=item.trade_code,
                    quantity=quantity,
                    unit=item.unit.value,
                    quantity_formula=item.quantity_formula,
                    provenance=Provenance.COMPANION_AUTO_ADDED,
                    parent_scope_item_id=trigger.id,
                    activity_type=item.activity_type,
                    coverage_type=item.coverage_type,
                    waste_factor=item.default_waste_factor,
                    dimension_warning=warning,
                ))
                if warning:
                    result.warnings.append(warning)

                result.items.append(companion)
                room_items.append(companion)
                room_trades.add(companion.trade_code)

                if item.code not in visited:
                    visited.add(item.code)
                    worklist.append((companion, depth + 1))

        if result.items:
            logger.info(
                "companions_added",
                primary_id=primary.id,
                catalog_code=primary.catalog_code,
                room_id=primary.room_id,
                count=len(result.items),
                codes=[item.catalog_code for item in result.items],
            )
        return result

    def _candidates(
        self,
        trigger: ScopeItem,
        context: CompanionContext,
        room_trades: Set[str],
        warnings: List[str],
    ) -> List[_Candidate]:
        """Catalog auto_adds first, then trade rules by descending priority."""
        candidates: List[_Candidate] = []
        trigger_item = self.catalog.get_item(trigger.catalog_code)

        if trigger_item is not None:
            for code in trigger_item.companion_rules.auto_adds:
                item = self._lookup(code, trigger.catalog_code, warnings)
                if item is None or not scope_conditions_match(item.scope_conditions, context):
                    continue
                if not self._passes_trade_gate(trigger.trade_code, item.trade_code, context, room_trades):
                    continue
                candidates.append(_Candidate(item=item, source=f"catalog:{trigger_item.code}"))

        for rule in self.rules:
            if not rule.triggers_on(trigger.trade_code):
                continue
            if not rule_condition_matches(rule, context, room_trades, self.config):
                continue
            item = self._lookup(rule.companion_code, rule.id, warnings)
            if item is None:
                continue
            if item.trade_code != rule.companion_trade:
                message = (
                    f"Companion rule {rule.id}: {item.code} is trade {item.trade_code}, "
                    f"expected {rule.companion_trade}"
                )
                logger.warning("companion_rule_trade_mismatch", rule_id=rule.id, catalog_code=item.code)
                warnings.append(message)
                continue
            if not scope_conditions_match(item.scope_conditions, context):
                continue
            candidates.append(_Candidate(item=item, source=rule.id, derivation=rule.quantity))

        return candidates

    def _lookup(self, code: str, source: Optional[str], warnings: List[str]) -> Optional[CatalogItem]:
        item = self.catalog.get_item(code)
        if item is None:
            logger.warning("companion_code_not_in_catalog", catalog_code=code, source=source)
            warnings.append(f"Companion {code} (from {source}) is not in the catalog")
            return None
        if not item.is_active:
            return None
        return item

    def _passes_trade_gate(
        self,
        trigger_trade: str,
        companion_trade: str,
        context: CompanionContext,
        room_trades: Set[str],
    ) -> bool:
        """Trade thresholds also gate catalog auto_adds.

        When rules exist for the trigger/companion trade pair, at least one
        of them must apply.
        """
        gates = [
            rule for rule in self.rules
            if rule.triggers_on(trigger_trade) and rule.companion_trade == companion_trade
        ]
        if not gates:
            return True
        return any(rule_condition_matches(rule, context, room_trades, self.config) for rule in gates)

    def _is_excluded(self, item: CatalogItem, room_items: List[ScopeItem]) -> bool:
        room_codes = {i.catalog_code for i in room_items if i.catalog_code}
        if room_codes & set(item.companion_rules.excludes):
            return True
        for code in room_codes:
            existing = self.catalog.get_item(code)
            if existing is not None and item.code in existing.companion_rules.excludes:
                return True
        return False

    def _derive_quantity(
        self, candidate: _Candidate, context: CompanionContext
    ) -> Tuple[Optional[float], Optional[str]]:
        """Quantity for a candidate; None when it needs a manual quantity."""
        derivation = candidate.derivation
        item = candidate.item

        if derivation is None or derivation.kind == DerivationKind.FORMULA:
            return resolve_quantity(item.quantity_formula, context.bag, item.code)

        if derivation.kind == DerivationKind.FIXED:
            return derivation.value, None

        area = context.affected_area
        if area is None:
            return derivation.minimum, (
                f"{item.code}: affected area unknown; defaulted to {derivation.minimum}"
            )
        return max(derivation.minimum, float(math.ceil(area / derivation.divisor))), None

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_companion_items(self, items: List[ScopeItem]) -> CompanionValidationResult:
        """Check companion integrity across a set of scope items.

        Unresolved parents are errors; exclusion conflicts, missing required
        siblings and implausible companion quantities are warnings.
        """
        issues: List[CompanionValidationIssue] = []
        by_id = {item.id: item for item in items if item.id is not None}
        active = [item for item in items if item.is_active]
        ratio_limit = self.config.companion_quantity_ratio_limit

        for item in active:
            if not item.is_companion:
                continue
            parent = by_id.get(item.parent_scope_item_id)
            if parent is None or parent.session_id != item.session_id:
                issues.append(CompanionValidationIssue(
                    item_id=item.id,
                    severity=Severity.ERROR,
                    message=f"{item.catalog_code}: parent item {item.parent_scope_item_id} not found in session",
                ))
                continue
            if item.quantity <= 0:
                issues.append(CompanionValidationIssue(
                    item_id=item.id,
                    severity=Severity.WARNING,
                    message=f"{item.catalog_code}: companion quantity {item.quantity} is not positive",
                ))
            elif parent.quantity > 0 and item.quantity > parent.quantity * ratio_limit:
                issues.append(CompanionValidationIssue(
                    item_id=item.id,
                    severity=Severity.WARNING,
                    message=(
                        f"{item.catalog_code}: quantity {item.quantity} is more than "
                        f"{ratio_limit:g}x its primary {parent.catalog_code} ({parent.quantity})"
                    ),
                ))

        for room_id, room_items in _group_by_room(active).items():
            codes = {item.catalog_code for item in room_items if item.catalog_code}
            reported: Set[Tuple[str, str]] = set()
            for item in room_items:
                catalog_item = self.catalog.get_item(item.catalog_code)
                if catalog_item is None:
                    continue
                for excluded in catalog_item.companion_rules.excludes:
                    pair = tuple(sorted((catalog_item.code, excluded)))
                    if excluded in codes and pair not in reported:
                        reported.add(pair)
                        issues.append(CompanionValidationIssue(
                            item_id=item.id,
                            severity=Severity.WARNING,
                            message=f"{catalog_item.code} and {excluded} should not both be in room {room_id}",
                        ))
                missing = [code for code in catalog_item.companion_rules.requires if code not in codes]
                if missing:
                    issues.append(CompanionValidationIssue(
                        item_id=item.id,
                        severity=Severity.WARNING,
                        message=f"{catalog_item.code} requires {', '.join(missing)}",
                    ))

        valid = not any(issue.severity == Severity.ERROR for issue in issues)
        if not valid:
            logger.warning("companion_validation_failed", errors=sum(1 for i in issues if i.severity == Severity.ERROR))
        return CompanionValidationResult(valid=valid, issues=issues)

    def suggest_missing_companions(self, items: List[ScopeItem]) -> List[CompanionSuggestion]:
        """Suggest required or commonly added companions not yet in scope."""
        suggestions: List[CompanionSuggestion] = []
        for room_id, room_items in _group_by_room([i for i in items if i.is_active]).items():
            codes = {item.catalog_code for item in room_items if item.catalog_code}
            suggested: Set[str] = set()
            for item in room_items:
                catalog_item = self.catalog.get_item(item.catalog_code)
                if catalog_item is None:
                    continue
                rules = catalog_item.companion_rules
                for code, reason in [(c, "required") for c in rules.requires] + [
                    (c, "commonly added") for c in rules.auto_adds
                ]:
                    if code in codes or code in suggested:
                        continue
                    companion = self.catalog.get_item(code)
                    if companion is None or not companion.is_active:
                        continue
                    suggested.add(code)
                    suggestions.append(CompanionSuggestion(
                        room_id=room_id,
                        for_scope_item_id=item.id,
                        catalog_code=code,
                        description=companion.description,
                        reason=f"{reason} with {catalog_item.code}",
                    ))
        return suggestions


def _group_by_room(items: List[ScopeItem]) -> Dict[Optional[int], List[ScopeItem]]:
    grouped: Dict[Optional[int], List[ScopeItem]] = {}
    for item in items:
        grouped.setdefault(item.room_id, []).append(item)
    return grouped
