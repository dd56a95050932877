"""Pricing calculator for ClaimScope.

Turns scope items into priced line items: regional unit costs, waste on
material, sales tax on (wasted) material, depreciation and ACV. A missing price for
one item never stops the batch.
"""

from typing import Dict, List, Optional, Tuple

import structlog

from claimscope.config.engine import EngineConfig
from claimscope.config.errors import InvariantViolationError, MissingRegionalPriceError
from claimscope.models.catalog import CoverageType
from claimscope.models.estimate import CoverageBucket, PricedLineItem, PricingFailure
from claimscope.models.inspection import Room
from claimscope.models.scope import ScopeItem
from claimscope.services.catalog_repository import CatalogSnapshot
from claimscope.services.depreciation import calculate_depreciation, is_code_upgrade

logger = structlog.get_logger(__name__)


def resolve_coverage_bucket(
    item: ScopeItem,
    config: EngineConfig,
    room: Optional[Room] = None,
) -> CoverageBucket:
    """Route an item to the policy coverage it is billed against.

    Code upgrades go to CODE_UPGRADE; personal property to C; items in a
    detached structure to B; everything else to A.
    """
    if is_code_upgrade(item, config):
        return CoverageBucket.CODE_UPGRADE
    if item.coverage_type == CoverageType.C:
        return CoverageBucket.C
    if item.coverage_type == CoverageType.B or (room is not None and room.is_detached_structure):
        return CoverageBucket.B
    return CoverageBucket.A


class PricingCalculator:
    """Prices scope items against one region.

    Args:
        catalog: Catalog snapshot for this invocation.
        region_id: Price list region.
        config: Engine configuration (tax rate, labor taxation, depreciation).
    """

    def __init__(self, catalog: CatalogSnapshot, region_id: str, config: Optional[EngineConfig] = None):
        self.catalog = catalog
        self.region_id = region_id
        self.config = config or EngineConfig()

    def price_item(self, item: ScopeItem, room: Optional[Room] = None) -> PricedLineItem:
        """Price a single scope item.

        Raises:
            InvariantViolationError: If the quantity is negative.
            MissingRegionalPriceError: If the region has no price for the item.
        """
        if item.quantity < 0:
            raise InvariantViolationError(
                message=f"Scope item {item.id} ({item.catalog_code}) has negative quantity {item.quantity}",
                scope_item_id=item.id,
                details={"quantity": item.quantity},
            )

        price = self.catalog.get_price(self.region_id, item.catalog_code or "")
        if price is None:
            raise MissingRegionalPriceError(
                catalog_code=item.catalog_code or "",
                region_id=self.region_id,
                scope_item_id=item.id,
            )

        waste_factor = item.waste_factor
        if waste_factor is None:
            catalog_item = self.catalog.get_item(item.catalog_code)
            waste_factor = catalog_item.default_waste_factor if catalog_item else 0.0

        material = price.material_cost * (1 + waste_factor / 100.0)
        unit_price = material + price.labor_cost + price.equipment_cost
        total_price = round(item.quantity * unit_price, 2)

        taxable = material + (price.labor_cost if self.config.tax_labor else 0.0)
        tax_amount = round(item.quantity * taxable * self.config.tax_rate, 2)

        depreciation = calculate_depreciation(item, total_price, self.config)
        acv = max(0.0, round(total_price + tax_amount - depreciation.amount, 2))

        return PricedLineItem(
            **item.model_dump(exclude={"life_expectancy"}),
            life_expectancy=depreciation.life_expectancy,
            region_id=self.region_id,
            material_cost=round(material, 2),
            labor_cost=round(price.labor_cost, 2),
            equipment_cost=round(price.equipment_cost, 2),
            applied_waste_factor=waste_factor,
            unit_price=round(unit_price, 2),
            total_price=total_price,
            tax_amount=tax_amount,
            depreciation_amount=depreciation.amount,
            depreciation_type=depreciation.depreciation_type,
            depreciation_percentage=depreciation.percentage,
            acv=acv,
            coverage_bucket=resolve_coverage_bucket(item, self.config, room),
        )

    def price_items(
        self,
        items: List[ScopeItem],
        rooms: Optional[Dict[int, Room]] = None,
    ) -> Tuple[List[PricedLineItem], List[PricingFailure]]:
        """Price active items, recording missing prices as per-item failures.

        Raises:
            InvariantViolationError: If any item has a negative quantity.

        Returns:
            (priced items, failures)
        """
        rooms = rooms or {}
        priced: List[PricedLineItem] = []
        failures: List[PricingFailure] = []

        for item in items:
            if not item.is_active:
                continue
            try:
                priced.append(self.price_item(item, rooms.get(item.room_id)))
            except MissingRegionalPriceError as e:
                logger.warning(
                    "item_pricing_failed",
                    scope_item_id=item.id,
                    catalog_code=item.catalog_code,
                    region_id=self.region_id,
                    error_code=e.code,
                )
                failures.append(PricingFailure(
                    scope_item_id=item.id,
                    catalog_code=item.catalog_code,
                    code=e.code,
                    message=e.message,
                ))

        logger.info(
            "items_priced",
            region_id=self.region_id,
            priced=len(priced),
            failed=len(failures),
        )
        return priced, failures
