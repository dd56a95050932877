"""Peril scope templates.

Starting-point scope packages per peril and room context. Applying a
template adds its auto-include codes to a room with ``template``
provenance; the remaining codes are returned as suggestions.
"""

from typing import List, Optional

import structlog

from claimscope.models.inspection import GeometryBag, Room
from claimscope.models.scope import (
    ManualQuantityRequest,
    PerilTemplate,
    PerilTemplateItem,
    Provenance,
    ScopeItem,
    TemplateApplication,
)
from claimscope.services.catalog_repository import CatalogSnapshot
from claimscope.services.quantity_formulas import resolve_quantity

logger = structlog.get_logger(__name__)


def _item(code: str, auto_include: bool = True, notes: Optional[str] = None) -> PerilTemplateItem:
    return PerilTemplateItem(catalog_code=code, auto_include=auto_include, peril_notes=notes)


PERIL_TEMPLATES: List[PerilTemplate] = [
    PerilTemplate(
        id="water-interior",
        peril_type="water",
        name="Water Damage - Interior Room",
        description="Category 1-2 water in a living space, walls and floors affected",
        applicable_room_types=[
            "interior_bedroom", "interior_living", "interior_family",
            "interior_den", "interior_dining", "interior_hallway",
        ],
        items=[
            _item("MIT-EXTR-SF", notes="Extract standing water first"),
            _item("MIT-DEHU-DAY", notes="Minimum 3 days, adjust per monitoring"),
            _item("MIT-AIRM-DAY"),
            _item("MIT-APPL-SF", auto_include=False, notes="Add for Category 2/3 water"),
            _item("DEM-DRY-SF"),
            _item("DEM-FLR-SF", auto_include=False, notes="Only if flooring is non-salvageable"),
            _item("DEM-HAUL-LD"),
            _item("DRY-X-1-2"),
            _item("PNT-INT-SF"),
            _item("PNT-TRIM-LF"),
            _item("FLR-CARPET-SF", auto_include=False),
            _item("FLR-PAD-SF", auto_include=False),
            _item("GEN-CLEAN-SF"),
        ],
    ),
    PerilTemplate(
        id="water-kitchen",
        peril_type="water",
        name="Water Damage - Kitchen",
        description="Kitchen water loss including base cabinetry",
        applicable_room_types=["interior_kitchen"],
        items=[
            _item("MIT-EXTR-SF"),
            _item("MIT-DEHU-DAY"),
            _item("MIT-AIRM-DAY"),
            _item("DEM-DRY-SF"),
            _item("DEM-HAUL-LD"),
            _item("CAB-BASE-LF", auto_include=False, notes="Measure affected base cabinet run"),
            _item("DRY-X-1-2"),
            _item("PNT-INT-SF"),
            _item("FLR-VINYL-SF", auto_include=False),
            _item("ELE-GFCI-EA", auto_include=False, notes="Code upgrade if outlets were wet"),
            _item("GEN-CLEAN-SF"),
        ],
    ),
    PerilTemplate(
        id="hail-roof",
        peril_type="hail",
        name="Hail Damage - Roof",
        description="Roof replacement for hail damage",
        applicable_room_types=["exterior_roof_slope", "exterior_roof"],
        applicable_zone_types=["roof"],
        items=[
            _item("DEM-RFG-SQ"),
            _item("RFG-X-300"),
            _item("RFG-FELT-SQ"),
            _item("RFG-ICE-SQ", notes="Code upgrade where required"),
            _item("RFG-DRIP-LF"),
            _item("RFG-RIDG-LF"),
        ],
    ),
    PerilTemplate(
        id="hail-exterior",
        peril_type="hail",
        name="Hail Damage - Exterior",
        description="Siding and window damage from hail",
        applicable_zone_types=["exterior"],
        items=[
            _item("EXT-SIDING-SF"),
            _item("PNT-EXT-SF", auto_include=False),
            _item("WIN-DOUBLE-EA", auto_include=False, notes="Only windows with broken glass or frames"),
        ],
    ),
    PerilTemplate(
        id="wind-roof",
        peril_type="wind",
        name="Wind Damage - Roof",
        description="Lifted or missing shingles",
        applicable_room_types=["exterior_roof_slope", "exterior_roof"],
        applicable_zone_types=["roof"],
        items=[
            _item("RFG-X-300", notes="Adjust to the damaged squares for partial repairs"),
            _item("RFG-FELT-SQ"),
            _item("RFG-RIDG-LF", auto_include=False),
        ],
    ),
]


def get_matching_templates(peril_type: str, room: Room) -> List[PerilTemplate]:
    """Templates for a peril that apply to the room's type or zone."""
    peril = (peril_type or "").lower()
    room_type = (room.room_type or "").lower()
    zone = room.zone_type.value
    return [
        t for t in PERIL_TEMPLATES
        if t.peril_type == peril
        and (room_type in t.applicable_room_types or zone in t.applicable_zone_types)
    ]


def get_template(template_id: str) -> Optional[PerilTemplate]:
    for template in PERIL_TEMPLATES:
        if template.id == template_id:
            return template
    return None


def build_template_items(
    template: PerilTemplate,
    room: Room,
    bag: GeometryBag,
    catalog: CatalogSnapshot,
    existing_items: List[ScopeItem],
) -> TemplateApplication:
    """Build (unsaved) scope items for a template's auto-include codes.

    Codes already active in the room are skipped; unknown codes are warned
    about; MANUAL items are returned for the operator to quantify.
    """
    result = TemplateApplication(template_id=template.id)
    room_codes = {i.catalog_code for i in existing_items if i.is_active and i.room_id == room.id}

    for entry in template.items:
        if not entry.auto_include:
            result.suggested.append(entry)
            continue
        if entry.catalog_code in room_codes:
            result.skipped_codes.append(entry.catalog_code)
            continue
        catalog_item = catalog.get_item(entry.catalog_code)
        if catalog_item is None or not catalog_item.is_active:
            logger.warning("template_code_not_in_catalog", template_id=template.id, catalog_code=entry.catalog_code)
            result.warnings.append(f"Template {template.id}: {entry.catalog_code} is not in the catalog")
            continue

        quantity, warning = resolve_quantity(catalog_item.quantity_formula, bag, catalog_item.code)
        if quantity is None:
            result.manual_quantity_needed.append(ManualQuantityRequest(
                catalog_code=catalog_item.code,
                description=catalog_item.description,
                unit=catalog_item.unit.value,
                reason=entry.peril_notes or "Quantity must be measured",
            ))
            continue
        if warning:
            result.warnings.append(warning)
        else:
            quantity = round(quantity * entry.quantity_multiplier, 2)

        result.items_created.append(ScopeItem(
            session_id=room.session_id,
            room_id=room.id,
            catalog_code=catalog_item.code,
            description=catalog_item.description,
            trade_code=catalog_item.trade_code,
            quantity=quantity,
            unit=catalog_item.unit.value,
            quantity_formula=catalog_item.quantity_formula,
            provenance=Provenance.TEMPLATE,
            activity_type=catalog_item.activity_type,
            coverage_type=catalog_item.coverage_type,
            waste_factor=catalog_item.default_waste_factor,
            dimension_warning=warning,
        ))
        room_codes.add(catalog_item.code)

    return result
