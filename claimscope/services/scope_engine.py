"""ClaimScope engine facade.

The entry points the host application calls: auto-scope a damage
observation, keep quantities in step with room geometry, apply peril
templates, record water classifications, build the priced estimate and
validate a session.

Each call takes a fresh catalog snapshot; all state lives in the
repositories passed in.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import structlog

from claimscope.config.engine import EngineConfig
from claimscope.config.errors import ClaimScopeError, ErrorCode
from claimscope.models.catalog import QuantityFormula
from claimscope.models.companion import CompanionRule
from claimscope.models.estimate import EstimateReport, PricedLineItem
from claimscope.models.inspection import (
    DamageObservation,
    GeometryBag,
    Opening,
    Room,
    WaterClassification,
    WaterProtocolResponses,
)
from claimscope.models.scope import AutoScopeResult, Provenance, ScopeItem, TemplateApplication
from claimscope.models.validation import SessionValidation
from claimscope.services.catalog_repository import CatalogRepository
from claimscope.services.companion_engine import CompanionEngine
from claimscope.services.companion_rules import load_companion_rules
from claimscope.services.estimate_aggregator import UNASSIGNED_ROOM, EstimateAggregator
from claimscope.services.geometry import resolve_geometry
from claimscope.services.peril_templates import build_template_items, get_template
from claimscope.services.pricing import PricingCalculator
from claimscope.services.quantity_formulas import evaluate_formula
from claimscope.services.scope_assembly import assemble_scope
from claimscope.services.scope_repository import ScopeRepository
from claimscope.services.water_protocol import classify_water_damage
from claimscope.utils.engine_logger import log_auto_scope_result, log_estimate_summary
from claimscope.validators.scope_validator import validate_scope

logger = structlog.get_logger(__name__)

# Formulas that do not depend on room geometry
FIXED_FORMULAS = frozenset({QuantityFormula.EACH, QuantityFormula.MANUAL})


@dataclass
class DimensionUpdate:
    """Outcome of a geometry change: the new bag and the items it re-quantified."""

    room: Room
    bag: GeometryBag
    updated_items: List[ScopeItem] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class ScopeEngine:
    """Scope assembly and estimate engine for one host application.

    Args:
        catalog_repo: Catalog and regional price store.
        scope_repo: Session store for rooms, damage and scope items.
        config: Engine configuration; defaults to the one implied by settings.
        region_id: Price list region; defaults to settings.default_region_id.
        companion_rules: Raw trade-level rule rows replacing the built-in
            table. Parsed once here; rejected rows end up in ``rule_warnings``.
    """

    def __init__(
        self,
        catalog_repo: CatalogRepository,
        scope_repo: ScopeRepository,
        config: Optional[EngineConfig] = None,
        region_id: Optional[str] = None,
        companion_rules: Optional[Iterable[Any]] = None,
    ):
        from claimscope.config.settings import settings

        self.catalog_repo = catalog_repo
        self.scope_repo = scope_repo
        self.config = config or settings.engine_config()
        self.region_id = region_id or settings.default_region_id
        self.companion_rules: Optional[List[CompanionRule]] = None
        self.rule_warnings: List[str] = []
        if companion_rules is not None:
            self.companion_rules, self.rule_warnings = load_companion_rules(companion_rules)

    # =========================================================================
    # ROOMS & GEOMETRY
    # =========================================================================

    def add_room(self, room: Room) -> Room:
        """Register a room; dimensions may be filled in later."""
        return self.scope_repo.save_room(room)

    def update_room_dimensions(
        self,
        room_id: int,
        length: Optional[float] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
        roof_pitch: Optional[float] = None,
        ceiling_type: Optional[str] = None,
    ) -> DimensionUpdate:
        """Apply dimension edits and re-quantify the room's geometry-derived items.

        Only the given values change. Items whose quantity a person stated
        (voice command or manual) keep their quantity.
        """
        room = self.scope_repo.get_room(room_id)
        changes = {
            key: value for key, value in {
                "length": length,
                "width": width,
                "height": height,
                "roof_pitch": roof_pitch,
                "ceiling_type": ceiling_type,
            }.items()
            if value is not None
        }
        room = self.scope_repo.save_room(Room.model_validate({**room.model_dump(), **changes}))
        return self._recompute_quantities(room)

    def add_opening(self, room_id: int, opening: Opening) -> DimensionUpdate:
        """Record a door or window and re-quantify the room's wall items."""
        room = self.scope_repo.get_room(room_id)
        next_id = max((o.id or 0 for o in room.openings), default=0) + 1
        stored = opening.model_copy(update={"id": opening.id or next_id})
        room = self.scope_repo.save_room(room.model_copy(update={"openings": [*room.openings, stored]}))
        logger.info("opening_added", room_id=room_id, opening_type=stored.opening_type, quantity=stored.quantity)
        return self._recompute_quantities(room)

    def _recompute_quantities(self, room: Room) -> DimensionUpdate:
        bag = resolve_geometry(room)
        update = DimensionUpdate(room=room, bag=bag, warnings=list(bag.warnings))

        for item in self.scope_repo.list_scope_items(room.session_id, room_id=room.id, active_only=True):
            if item.quantity_is_override:
                continue
            if item.quantity_formula is None or item.quantity_formula in FIXED_FORMULAS:
                continue
            quantity = evaluate_formula(item.quantity_formula, bag)
            if quantity is None:
                update.warnings.append(
                    f"{item.catalog_code}: {item.quantity_formula.value} cannot be computed yet; "
                    f"kept quantity {item.quantity}"
                )
                continue
            if quantity == item.quantity and item.dimension_warning is None:
                continue
            update.updated_items.append(self.scope_repo.update_scope_item(
                item.model_copy(update={"quantity": quantity, "dimension_warning": None})
            ))

        logger.info(
            "room_quantities_recomputed",
            room_id=room.id,
            incomplete=bag.incomplete,
            updated=len(update.updated_items),
        )
        return update

    # =========================================================================
    # SCOPE
    # =========================================================================

    def auto_scope(
        self,
        room_id: int,
        damage_type: str,
        severity: Optional[str] = None,
        surface: Optional[str] = None,
        water_classification: Optional[WaterClassification] = None,
        affected_area: Optional[float] = None,
        linear_feet: Optional[float] = None,
        description: Optional[str] = None,
        trade_hints: Optional[Iterable[str]] = None,
        provenance: Provenance = Provenance.DAMAGE_TRIGGERED,
    ) -> AutoScopeResult:
        """Record a damage observation and scope it.

        A water classification given here is recorded for the session and
        replaces any earlier one.

        Returns:
            AutoScopeResult for the voice agent to narrate.

        Raises:
            ClaimScopeError: If the room does not exist.
        """
        room = self.scope_repo.get_room(room_id)
        if water_classification is not None:
            self.scope_repo.set_water_classification(room.session_id, water_classification)
        water = self.scope_repo.get_water_classification(room.session_id)

        damage = self.scope_repo.add_damage(DamageObservation(
            session_id=room.session_id,
            room_id=room.id,
            damage_type=damage_type,
            severity=severity,
            surface=surface,
            description=description,
            affected_area=affected_area,
            linear_feet=linear_feet,
            trade_hints=list(trade_hints or []),
        ))

        result = assemble_scope(
            room=room,
            damage=damage,
            catalog=self.catalog_repo.snapshot(),
            existing_items=self.scope_repo.list_scope_items(room.session_id, active_only=True),
            persist=self.scope_repo.add_scope_item,
            config=self.config,
            water=water,
            provenance=provenance,
            rules=self.companion_rules,
        )
        log_auto_scope_result(room.name, damage_type, result)
        return result

    def apply_template(self, room_id: int, template_id: str) -> TemplateApplication:
        """Add a peril template's auto-include items to a room.

        Raises:
            ClaimScopeError: If the room or template does not exist.
        """
        template = get_template(template_id)
        if template is None:
            raise ClaimScopeError(
                code=ErrorCode.TEMPLATE_NOT_FOUND,
                message=f"Peril template {template_id} not found",
                details={"template_id": template_id},
            )
        room = self.scope_repo.get_room(room_id)
        application = build_template_items(
            template,
            room,
            resolve_geometry(room),
            self.catalog_repo.snapshot(),
            self.scope_repo.list_scope_items(room.session_id, room_id=room.id, active_only=True),
        )
        stored = [self.scope_repo.add_scope_item(item) for item in application.items_created]

        logger.info(
            "template_applied",
            template_id=template_id,
            room_id=room_id,
            created=len(stored),
            suggested=len(application.suggested),
            skipped=len(application.skipped_codes),
        )
        return application.model_copy(update={"items_created": stored})

    def record_water_classification(
        self,
        session_id: int,
        responses: WaterProtocolResponses,
        now: Optional[datetime] = None,
    ) -> WaterClassification:
        """Classify water protocol answers and record them for the session."""
        classification = classify_water_damage(responses, now=now)
        self.scope_repo.set_water_classification(session_id, classification)
        return classification

    # =========================================================================
    # ESTIMATE & VALIDATION
    # =========================================================================

    def build_estimate(
        self,
        session_id: int,
        deductible: float = 0.0,
        region_id: Optional[str] = None,
    ) -> EstimateReport:
        """Price the session's active scope and aggregate it.

        Items without a regional price are reported as pricing failures and
        left out of the totals.

        Raises:
            InvariantViolationError: If a scope item has a negative quantity.
        """
        region_id = region_id or self.region_id
        rooms = self.scope_repo.list_rooms(session_id)
        items = self.scope_repo.list_scope_items(session_id, active_only=True)

        calculator = PricingCalculator(self.catalog_repo.snapshot(), region_id, self.config)
        priced, failures = calculator.price_items(items, {room.id: room for room in rooms})
        summary = EstimateAggregator(self.config).summarize(priced, rooms, deductible)

        items_by_room: Dict[str, List[PricedLineItem]] = {}
        for item in priced:
            key = str(item.room_id) if item.room_id is not None else UNASSIGNED_ROOM
            items_by_room.setdefault(key, []).append(item)

        warnings = [failure.message for failure in failures]
        warnings.extend(item.dimension_warning for item in priced if item.dimension_warning)
        if not summary.qualifies_for_op and summary.trades_involved:
            warnings.append(
                f"Overhead and profit not applied: {len(summary.trades_involved)} trade(s), "
                f"{self.config.op_trade_threshold} required"
            )

        logger.info(
            "estimate_built",
            session_id=session_id,
            region_id=region_id,
            items=len(priced),
            failures=len(failures),
            total_rcv=summary.total_rcv,
        )
        log_estimate_summary(session_id, region_id, summary)
        return EstimateReport(
            session_id=session_id,
            region_id=region_id,
            summary=summary,
            items_by_room=items_by_room,
            pricing_failures=failures,
            warnings=warnings,
        )

    def validate(self, session_id: int) -> SessionValidation:
        """Run scope and companion validation for a session."""
        catalog = self.catalog_repo.snapshot()
        items = self.scope_repo.list_scope_items(session_id)
        companion_engine = CompanionEngine(catalog, self.config, self.companion_rules)

        return SessionValidation(
            session_id=session_id,
            scope=validate_scope(
                self.scope_repo.list_rooms(session_id),
                self.scope_repo.list_damages(session_id),
                items,
                catalog,
                self.config,
                self.scope_repo.get_water_classification(session_id),
            ),
            companions=companion_engine.validate_companion_items(items),
            suggestions=companion_engine.suggest_missing_companions(items),
        )
