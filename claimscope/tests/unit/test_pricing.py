"""
Unit Tests for Pricing and Depreciation.

Tests PricingCalculator and the depreciation helpers:
- Unit price, waste and tax arithmetic
- acv = rcv + tax - depreciation for randomized inputs
- Depreciation clamps at 100% and ACV is never negative
- Paid-when-incurred code upgrades and the roof payment schedule
- Missing regional prices degrade to per-item failures
- Negative quantities raise InvariantViolationError
"""

import numpy as np
import pytest

from claimscope.config.engine import EngineConfig
from claimscope.config.errors import ErrorCode, InvariantViolationError, MissingRegionalPriceError
from claimscope.models.catalog import CoverageType
from claimscope.models.estimate import CoverageBucket, DepreciationType
from claimscope.models.scope import ScopeStatus
from claimscope.services.depreciation import lookup_life_expectancy
from claimscope.services.pricing import PricingCalculator, resolve_coverage_bucket
from claimscope.tests.fixtures.inspection_data import make_item, make_room


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def calculator(catalog, config):
    return PricingCalculator(catalog, "US-NATIONAL", config)


# =============================================================================
# Line item arithmetic
# =============================================================================


class TestPriceItem:
    """Tests for price_item() arithmetic."""

    def test_drywall_line_item(self, calculator):
        item = make_item(1, "DRY-X-1-2", "DRY", quantity=100)

        priced = calculator.price_item(item)

        # material 0.62 + 10% waste = 0.682; labor 1.58
        assert priced.applied_waste_factor == 10
        assert priced.material_cost == pytest.approx(0.68)
        assert priced.unit_price == pytest.approx(2.26)
        assert priced.total_price == pytest.approx(226.20)
        assert priced.tax_amount == pytest.approx(5.46)
        assert priced.depreciation_amount == 0.0
        assert priced.acv == pytest.approx(231.66)

    def test_item_waste_factor_overrides_catalog(self, calculator):
        item = make_item(1, "DRY-X-1-2", "DRY", quantity=100, waste_factor=0)

        priced = calculator.price_item(item)

        assert priced.total_price == pytest.approx(220.00)
        assert priced.tax_amount == pytest.approx(4.96)

    def test_labor_taxed_when_configured(self, catalog):
        calculator = PricingCalculator(catalog, "US-NATIONAL", EngineConfig(tax_labor=True))
        item = make_item(1, "DRY-X-1-2", "DRY", quantity=100, waste_factor=0)

        priced = calculator.price_item(item)

        assert priced.tax_amount == pytest.approx(17.60)

    def test_regional_prices_differ(self, catalog, config):
        item = make_item(1, "DRY-X-1-2", "DRY", quantity=100)

        national = PricingCalculator(catalog, "US-NATIONAL", config).price_item(item)
        nyc = PricingCalculator(catalog, "NY-NYC", config).price_item(item)

        assert nyc.total_price > national.total_price
        assert nyc.region_id == "NY-NYC"

    def test_priced_item_keeps_scope_fields(self, calculator):
        item = make_item(7, "PNT-INT-SF", "PNT", quantity=50, parent_scope_item_id=3, damage_id=2)

        priced = calculator.price_item(item)

        assert priced.id == 7
        assert priced.parent_scope_item_id == 3
        assert priced.damage_id == 2
        assert priced.catalog_code == "PNT-INT-SF"


# =============================================================================
# Depreciation
# =============================================================================


class TestDepreciation:
    """Depreciation percentage, type and clamping."""

    def test_old_roof_fully_depreciated_acv_not_negative(self, calculator):
        roof = make_item(1, "RFG-X-300", "RFG", quantity=20, unit="SQ", age=22, life_expectancy=20)

        priced = calculator.price_item(roof)

        assert priced.depreciation_percentage == 100.0
        assert priced.depreciation_amount == priced.total_price
        assert priced.acv >= 0
        assert priced.acv == pytest.approx(priced.tax_amount)

    def test_straight_line_depreciation(self, calculator):
        carpet = make_item(1, "FLR-CARPET-SF", "FLR", quantity=200, age=5, description="Carpet - standard grade")

        priced = calculator.price_item(carpet)

        assert priced.life_expectancy == 10
        assert priced.depreciation_percentage == 50.0
        assert priced.depreciation_amount == pytest.approx(priced.total_price / 2, abs=0.01)

    def test_code_upgrade_is_paid_when_incurred(self, calculator):
        gfci = make_item(1, "ELE-GFCI-EA", "ELE", quantity=2, unit="EA", age=10)

        priced = calculator.price_item(gfci)

        assert priced.depreciation_type == DepreciationType.PAID_WHEN_INCURRED
        assert priced.depreciation_amount == 0.0
        assert priced.coverage_bucket == CoverageBucket.CODE_UPGRADE

    def test_explicit_code_upgrade_flag_wins(self, calculator):
        outlet = make_item(1, "ELE-OUTL-EA", "ELE", quantity=1, unit="EA", is_code_upgrade=True)

        priced = calculator.price_item(outlet)

        assert priced.depreciation_type == DepreciationType.PAID_WHEN_INCURRED

    def test_roof_schedule_is_non_recoverable(self, catalog):
        config = EngineConfig(apply_roof_payment_schedule=True)
        calculator = PricingCalculator(catalog, "US-NATIONAL", config)
        roof = make_item(1, "RFG-X-300", "RFG", quantity=20, unit="SQ", age=12, life_expectancy=25)

        priced = calculator.price_item(roof)

        assert priced.depreciation_type == DepreciationType.NON_RECOVERABLE
        assert priced.depreciation_percentage == 48.0

    def test_young_roof_stays_recoverable_under_schedule(self, catalog):
        config = EngineConfig(apply_roof_payment_schedule=True)
        calculator = PricingCalculator(catalog, "US-NATIONAL", config)
        roof = make_item(1, "RFG-X-300", "RFG", quantity=20, unit="SQ", age=8)

        priced = calculator.price_item(roof)

        assert priced.depreciation_type == DepreciationType.RECOVERABLE

    @pytest.mark.parametrize("trade,description,expected", [
        ("RFG", "Laminated - comp. shingle roofing", 30),
        ("RFG", "Roofing felt - 15 lb.", 30),
        ("FLR", "Carpet - standard grade", 10),
        ("PNT", "Seal/prime then paint walls", 7),
        ("DRY", "Drywall", 70),
        ("MIT", "Air mover", 0),
        ("XYZ", "Unknown trade", 0),
    ])
    def test_life_expectancy_table(self, trade, description, expected):
        assert lookup_life_expectancy(trade, description) == expected


# =============================================================================
# Batch pricing
# =============================================================================


class TestPriceItems:
    """Tests for price_items() batch behavior."""

    def test_missing_price_becomes_failure(self, calculator):
        items = [
            make_item(1, "DRY-X-1-2", "DRY", quantity=100),
            make_item(2, "HVAC-UNKNOWN", "HVAC", quantity=1, unit="EA"),
        ]

        priced, failures = calculator.price_items(items)

        assert [p.id for p in priced] == [1]
        assert len(failures) == 1
        assert failures[0].scope_item_id == 2
        assert failures[0].code == ErrorCode.NO_REGIONAL_PRICE

    def test_unknown_region_raises_for_single_item(self, catalog, config):
        calculator = PricingCalculator(catalog, "ZZ-NOWHERE", config)

        with pytest.raises(MissingRegionalPriceError) as exc_info:
            calculator.price_item(make_item(1, "DRY-X-1-2", "DRY"))

        assert exc_info.value.to_dict()["details"]["region_id"] == "ZZ-NOWHERE"

    def test_inactive_items_are_skipped(self, calculator):
        items = [make_item(1, "DRY-X-1-2", "DRY", status=ScopeStatus.REMOVED)]

        priced, failures = calculator.price_items(items)

        assert priced == []
        assert failures == []

    def test_negative_quantity_raises(self, calculator):
        items = [make_item(1, "DRY-X-1-2", "DRY", quantity=-5)]

        with pytest.raises(InvariantViolationError) as exc_info:
            calculator.price_items(items)

        assert exc_info.value.scope_item_id == 1

    def test_acv_identity_randomized(self, catalog, config):
        """acv == rcv + tax - depreciation for every item across random inputs."""
        rng = np.random.default_rng(20260916)
        codes = [item.code for item in catalog.active_items() if catalog.get_price("US-NATIONAL", item.code)]
        calculator = PricingCalculator(catalog, "US-NATIONAL", config)

        items = []
        for index in range(200):
            code = codes[rng.integers(len(codes))]
            catalog_item = catalog.get_item(code)
            items.append(make_item(
                index + 1,
                code,
                catalog_item.trade_code,
                quantity=float(round(rng.uniform(0, 2500), 2)),
                unit=catalog_item.unit.value,
                description=catalog_item.description,
                age=float(round(rng.uniform(0, 60), 1)) if rng.random() < 0.8 else None,
                waste_factor=float(rng.integers(0, 20)) if rng.random() < 0.3 else None,
            ))

        priced, failures = calculator.price_items(items)

        assert failures == []
        for item in priced:
            assert item.acv >= 0
            assert 0 <= item.depreciation_percentage <= 100
            assert item.depreciation_amount <= item.total_price + 0.01
            assert item.acv == pytest.approx(item.total_price + item.tax_amount - item.depreciation_amount, abs=0.01)


# =============================================================================
# Coverage routing
# =============================================================================


class TestCoverageBucket:
    """Tests for resolve_coverage_bucket()."""

    def test_dwelling_defaults_to_a(self, config):
        item = make_item(1, "DRY-X-1-2", "DRY", coverage_type=CoverageType.A)

        assert resolve_coverage_bucket(item, config, make_room()) == CoverageBucket.A

    def test_detached_structure_routes_to_b(self, config):
        garage = make_room(room_id=3, name="Garage", structure="Detached Garage")
        item = make_item(1, "DRY-X-1-2", "DRY", room_id=3, coverage_type=CoverageType.A)

        assert resolve_coverage_bucket(item, config, garage) == CoverageBucket.B

    def test_contents_route_to_c(self, config):
        item = make_item(1, "CON-PACK-EA", "GEN", coverage_type=CoverageType.C)

        assert resolve_coverage_bucket(item, config, make_room()) == CoverageBucket.C

    def test_code_upgrade_wins(self, config):
        garage = make_room(room_id=3, structure="Shed")
        item = make_item(1, "ELE-SMOKE-EA", "ELE", room_id=3)

        assert resolve_coverage_bucket(item, config, garage) == CoverageBucket.CODE_UPGRADE
