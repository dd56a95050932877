"""Scope assembly for ClaimScope.

Turns one damage observation into scope items: select the primary catalog
items whose scope conditions match the damage, quantify them from room
geometry, then cascade their companions.
"""

from typing import Callable, Iterable, List, Optional

import structlog

from claimscope.config.engine import EngineConfig
from claimscope.models.catalog import CatalogItem, normalize_trade_code
from claimscope.models.companion import CompanionRule
from claimscope.models.inspection import DamageObservation, Room, WaterClassification
from claimscope.models.scope import AutoScopeResult, ManualQuantityRequest, Provenance, ScopeItem
from claimscope.services.catalog_repository import CatalogSnapshot
from claimscope.services.companion_engine import CompanionContext, CompanionEngine, scope_conditions_match
from claimscope.services.quantity_formulas import resolve_quantity

logger = structlog.get_logger(__name__)


def match_primary_items(
    catalog: CatalogSnapshot,
    context: CompanionContext,
    trade_hints: Iterable[str] = (),
) -> List[CatalogItem]:
    """Active catalog items whose scope conditions match the damage context.

    Items without scope conditions are never primaries. Trade hints, when
    given, narrow the result to those trades.
    """
    hints = {normalize_trade_code(h) for h in trade_hints if h}
    matches = [
        item for item in catalog.active_items()
        if item.scope_conditions is not None
        and not item.scope_conditions.is_empty()
        and scope_conditions_match(item.scope_conditions, context)
    ]
    if hints:
        matches = [item for item in matches if item.trade_code in hints]
    return matches


def _excluded_by(code: str, others: Iterable[str], catalog: CatalogSnapshot) -> Optional[str]:
    """Return the code that excludes ``code`` (in either direction), if any."""
    item = catalog.get_item(code)
    for other_code in others:
        other = catalog.get_item(other_code)
        if other is not None and code in other.companion_rules.excludes:
            return other_code
        if item is not None and other_code in item.companion_rules.excludes:
            return other_code
    return None


def assemble_scope(
    room: Room,
    damage: DamageObservation,
    catalog: CatalogSnapshot,
    existing_items: List[ScopeItem],
    persist: Callable[[ScopeItem], ScopeItem],
    config: Optional[EngineConfig] = None,
    water: Optional[WaterClassification] = None,
    provenance: Provenance = Provenance.DAMAGE_TRIGGERED,
    rules: Optional[List[CompanionRule]] = None,
) -> AutoScopeResult:
    """Create primary and companion scope items for a damage observation.

    Args:
        room: Room the damage was observed in.
        damage: The damage observation (stored, with an id).
        catalog: Catalog snapshot for this invocation.
        existing_items: Scope items already in the session.
        persist: Stores a new item and returns it with an id.
        config: Engine configuration.
        water: Session water classification, if any.
        provenance: Provenance for the primaries (damage_triggered or voice_command).
        rules: Trade-level companion rules; defaults to the built-in table.

    Returns:
        AutoScopeResult with created items, MANUAL items awaiting a
        quantity, warnings and a one-line summary.
    """
    config = config or EngineConfig()
    result = AutoScopeResult()
    context = CompanionContext.build(room, damage, water)

    matches = match_primary_items(catalog, context, damage.trade_hints)
    if not matches:
        message = (
            f"No catalog items matched damage '{damage.damage_type}' "
            f"(severity {damage.severity or 'unspecified'}, surface {damage.surface or 'unspecified'}) "
            f"in {room.room_type or 'room'}; add items manually"
        )
        result.warnings.append(message)
        result.summary = f"No items added to {room.name}."
        logger.info("auto_scope_no_match", room_id=room.id, damage_type=damage.damage_type)
        return result

    room_items = [i for i in existing_items if i.is_active and i.room_id == room.id]
    room_codes = [i.catalog_code for i in room_items if i.catalog_code]
    primaries: List[ScopeItem] = []

    for catalog_item in matches:
        if catalog_item.code in room_codes:
            result.warnings.append(f"Skipped {catalog_item.code}: already in scope for {room.name}")
            continue
        excluded_by = _excluded_by(catalog_item.code, room_codes, catalog)
        if excluded_by:
            result.warnings.append(f"Skipped {catalog_item.code}: excluded by {excluded_by}")
            continue

        quantity, warning = resolve_quantity(catalog_item.quantity_formula, context.bag, catalog_item.code)
        if quantity is None:
            result.manual_quantity_needed.append(ManualQuantityRequest(
                catalog_code=catalog_item.code,
                description=catalog_item.description,
                unit=catalog_item.unit.value,
                reason="Manual quantity required",
            ))
            continue
        if warning:
            result.warnings.append(warning)

        primary = persist(ScopeItem(
            session_id=room.session_id,
            room_id=room.id,
            damage_id=damage.id,
            catalog_code=catalog_item.code,
            description=catalog_item.description,
            trade_code=catalog_item.trade_code,
            quantity=quantity,
            unit=catalog_item.unit.value,
            quantity_formula=catalog_item.quantity_formula,
            provenance=provenance,
            activity_type=catalog_item.activity_type,
            coverage_type=catalog_item.coverage_type,
            waste_factor=catalog_item.default_waste_factor,
            dimension_warning=warning,
        ))
        primaries.append(primary)
        room_items.append(primary)
        room_codes.append(primary.catalog_code)

    engine = CompanionEngine(catalog, config, rules)
    for primary in primaries:
        cascade = engine.auto_add_companions(primary, context, room_items, persist=persist)
        result.companion_items.extend(cascade.items)
        result.warnings.extend(cascade.warnings)
        result.manual_quantity_needed.extend(
            request for request in cascade.manual_quantity_needed
            if request.catalog_code not in {m.catalog_code for m in result.manual_quantity_needed}
        )
        room_items.extend(cascade.items)

    result.items_created = primaries + result.companion_items
    result.summary = _summarize(room, primaries, result)

    logger.info(
        "auto_scope_completed",
        room_id=room.id,
        damage_id=damage.id,
        primaries=[p.catalog_code for p in primaries],
        companions=[c.catalog_code for c in result.companion_items],
        manual=len(result.manual_quantity_needed),
        warnings=len(result.warnings),
    )
    return result


def _summarize(room: Room, primaries: List[ScopeItem], result: AutoScopeResult) -> str:
    parts = []
    if primaries:
        codes = ", ".join(p.catalog_code for p in primaries)
        parts.append(f"Added {len(primaries)} item(s) to {room.name}: {codes}.")
    else:
        parts.append(f"No new items added to {room.name}.")
    if result.companion_items:
        codes = ", ".join(c.catalog_code for c in result.companion_items)
        parts.append(f"{len(result.companion_items)} companion item(s) auto-added: {codes}.")
    if result.manual_quantity_needed:
        codes = ", ".join(m.catalog_code for m in result.manual_quantity_needed)
        parts.append(f"Quantity needed for: {codes}.")
    return " ".join(parts)
