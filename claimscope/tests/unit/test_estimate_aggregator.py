"""
Unit Tests for the Estimate Aggregator.

Tests EstimateAggregator.summarize():
- O&P gating: 2 trades never, 3+ non-excluded trades always
- Carrier-excluded trades count toward the threshold but get no O&P
- Room and category subtotals sum to the line item subtotal
- Totals keep acv = rcv + tax - depreciation
- Coverage buckets, deductible and net claim
"""

import numpy as np
import pytest

from claimscope.config.engine import EngineConfig
from claimscope.models.catalog import CoverageType
from claimscope.models.estimate import CoverageBucket
from claimscope.models.scope import ScopeStatus
from claimscope.services.estimate_aggregator import UNASSIGNED_ROOM, EstimateAggregator
from claimscope.services.pricing import PricingCalculator
from claimscope.tests.fixtures.inspection_data import make_item, make_room


# =============================================================================
# Fixtures
# =============================================================================


def _price(catalog, config, items, rooms=None):
    calculator = PricingCalculator(catalog, "US-NATIONAL", config)
    priced, failures = calculator.price_items(items, {room.id: room for room in rooms or []})
    assert failures == []
    return priced


@pytest.fixture
def two_trade_items():
    return [
        make_item(1, "DRY-X-1-2", "DRY", quantity=400),
        make_item(2, "PNT-INT-SF", "PNT", quantity=400, parent_scope_item_id=1),
    ]


@pytest.fixture
def three_trade_items(two_trade_items):
    return two_trade_items + [
        make_item(3, "MIT-AIRM-DAY", "MIT", quantity=3, unit="DAY", parent_scope_item_id=1),
    ]


# =============================================================================
# Overhead & Profit
# =============================================================================


class TestOverheadAndProfit:
    """O&P eligibility and amounts."""

    def test_two_trades_never_qualify(self, catalog, config, two_trade_items):
        summary = EstimateAggregator(config).summarize(_price(catalog, config, two_trade_items))

        assert summary.qualifies_for_op is False
        assert summary.overhead_amount == 0.0
        assert summary.profit_amount == 0.0
        assert summary.total_rcv == summary.line_item_subtotal

    def test_three_trades_qualify_at_configured_rates(self, catalog, config, three_trade_items):
        summary = EstimateAggregator(config).summarize(_price(catalog, config, three_trade_items))

        assert summary.qualifies_for_op is True
        assert summary.op_eligible_trades == ["DRY", "MIT", "PNT"]
        assert summary.op_base == summary.line_item_subtotal
        assert summary.overhead_amount == pytest.approx(round(summary.op_base * 0.10, 2))
        assert summary.profit_amount == pytest.approx(round(summary.op_base * 0.10, 2))
        assert summary.total_rcv == pytest.approx(
            summary.line_item_subtotal + summary.overhead_amount + summary.profit_amount
        )

    def test_excluded_trade_still_counts_toward_threshold(self, catalog, three_trade_items):
        config = EngineConfig(op_excluded_trades=["MIT"])
        priced = _price(catalog, config, three_trade_items)

        summary = EstimateAggregator(config).summarize(priced)

        mitigation = sum(p.total_price for p in priced if p.trade_code == "MIT")
        assert summary.qualifies_for_op is True
        assert summary.trades_involved == ["DRY", "MIT", "PNT"]
        assert summary.op_eligible_trades == ["DRY", "PNT"]
        assert summary.op_base == pytest.approx(summary.line_item_subtotal - mitigation)

    def test_roofer_gc_gets_op_on_other_trades(self, catalog, two_trade_items):
        config = EngineConfig.for_carrier("carrier_roofer_gc")
        items = two_trade_items + [make_item(3, "RFG-X-300", "RFG", quantity=20, unit="SQ")]
        priced = _price(catalog, config, items)

        summary = EstimateAggregator(config).summarize(priced)

        roofing = sum(p.total_price for p in priced if p.trade_code == "RFG")
        assert summary.qualifies_for_op is True
        assert summary.op_eligible_trades == ["DRY", "PNT"]
        assert summary.op_base == pytest.approx(summary.line_item_subtotal - roofing)
        assert summary.overhead_amount == pytest.approx(round(summary.op_base * config.overhead_rate, 2))
        assert summary.overhead_amount > 0

    def test_carrier_preset_threshold(self, catalog, two_trade_items):
        config = EngineConfig.for_carrier("carrier_allstate")

        summary = EstimateAggregator(config).summarize(_price(catalog, config, two_trade_items))

        assert summary.qualifies_for_op is True

    def test_inactive_items_do_not_count(self, catalog, config, three_trade_items):
        priced = _price(catalog, config, three_trade_items)
        priced[2] = priced[2].model_copy(update={"status": ScopeStatus.REMOVED})

        summary = EstimateAggregator(config).summarize(priced)

        assert summary.qualifies_for_op is False
        assert "MIT" not in summary.trades_involved

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_op_gating_randomized(self, catalog, config, seed):
        rng = np.random.default_rng(seed)
        pool = [("DRY-X-1-2", "DRY"), ("PNT-INT-SF", "PNT"), ("FLR-CARPET-SF", "FLR"),
                ("RFG-X-300", "RFG"), ("WIN-DOUBLE-EA", "WIN"), ("PLM-SUPPLY-EA", "PLM")]
        aggregator = EstimateAggregator(config)

        for _ in range(20):
            size = int(rng.integers(1, len(pool) + 1))
            picks = rng.choice(len(pool), size=size, replace=False)
            items = [
                make_item(i + 1, pool[p][0], pool[p][1], quantity=float(rng.uniform(1, 300)))
                for i, p in enumerate(picks)
            ]
            summary = aggregator.summarize(_price(catalog, config, items))
            assert summary.qualifies_for_op is (size >= 3)


# =============================================================================
# Totals & subtotals
# =============================================================================


class TestTotals:
    """Totals and grouping."""

    def test_room_subtotals_sum_to_line_items(self, catalog, config):
        rooms = [make_room(1, "Kitchen"), make_room(2, "Hall", room_type="interior_hallway")]
        items = [
            make_item(1, "DRY-X-1-2", "DRY", quantity=300, room_id=1),
            make_item(2, "PNT-INT-SF", "PNT", quantity=300, room_id=1),
            make_item(3, "FLR-CARPET-SF", "FLR", quantity=120, room_id=2),
            make_item(4, "DEM-HAUL-LD", "DEM", quantity=1, unit="LD", room_id=None),
        ]

        summary = EstimateAggregator(config).summarize(_price(catalog, config, items, rooms), rooms)

        assert sum(s.rcv for s in summary.by_room) == pytest.approx(summary.line_item_subtotal)
        assert sum(s.rcv for s in summary.by_category) == pytest.approx(summary.line_item_subtotal)
        labels = {s.key: s.label for s in summary.by_room}
        assert labels == {"1": "Kitchen", "2": "Hall", UNASSIGNED_ROOM: None}

    def test_categories_sorted_by_trade(self, catalog, config, three_trade_items):
        summary = EstimateAggregator(config).summarize(_price(catalog, config, three_trade_items))

        assert [s.key for s in summary.by_category] == ["DRY", "MIT", "PNT"]

    def test_total_identity_and_net_claim(self, catalog, config):
        items = [
            make_item(1, "RFG-X-300", "RFG", quantity=25, unit="SQ", age=12, room_id=10),
            make_item(2, "RFG-FELT-SQ", "RFG", quantity=25, unit="SQ", age=12, room_id=10),
            make_item(3, "WIN-DOUBLE-EA", "WIN", quantity=2, unit="EA", age=5),
            make_item(4, "EXT-SIDING-SF", "EXT", quantity=400, age=20),
        ]

        summary = EstimateAggregator(config).summarize(_price(catalog, config, items), deductible=1000)

        assert summary.total_acv == pytest.approx(
            summary.total_rcv + summary.total_tax - summary.total_depreciation, abs=0.01
        )
        assert summary.net_claim == pytest.approx(summary.total_acv - 1000, abs=0.01)
        assert summary.net_claim_if_depreciation_recovered == pytest.approx(
            summary.net_claim + summary.total_recoverable_depreciation, abs=0.01
        )

    def test_net_claim_never_negative(self, catalog, config, two_trade_items):
        summary = EstimateAggregator(config).summarize(
            _price(catalog, config, two_trade_items), deductible=1_000_000
        )

        assert summary.net_claim == 0.0

    def test_depreciation_split(self, catalog):
        config = EngineConfig(apply_roof_payment_schedule=True)
        items = [
            make_item(1, "RFG-X-300", "RFG", quantity=20, unit="SQ", age=15, life_expectancy=30),
            make_item(2, "PNT-INT-SF", "PNT", quantity=300, age=3),
            make_item(3, "ELE-GFCI-EA", "ELE", quantity=2, unit="EA", age=5),
        ]
        priced = _price(catalog, config, items)

        summary = EstimateAggregator(config).summarize(priced)

        gfci = next(p for p in priced if p.catalog_code == "ELE-GFCI-EA")
        assert summary.total_non_recoverable_depreciation == pytest.approx(priced[0].depreciation_amount)
        assert summary.total_recoverable_depreciation == pytest.approx(priced[1].depreciation_amount)
        assert summary.total_paid_when_incurred == pytest.approx(gfci.total_price)
        assert summary.total_depreciation == pytest.approx(
            summary.total_recoverable_depreciation + summary.total_non_recoverable_depreciation
        )

    def test_coverage_buckets(self, catalog, config):
        garage = make_room(3, "Garage", structure="Detached Garage")
        rooms = [make_room(1), garage]
        items = [
            make_item(1, "DRY-X-1-2", "DRY", quantity=100, room_id=1, coverage_type=CoverageType.A),
            make_item(2, "DRY-X-1-2", "DRY", quantity=100, room_id=3, coverage_type=CoverageType.A),
            make_item(3, "CON-PACK-EA", "GEN", quantity=10, unit="EA", room_id=1, coverage_type=CoverageType.C),
            make_item(4, "ELE-GFCI-EA", "ELE", quantity=1, unit="EA", room_id=1),
        ]

        summary = EstimateAggregator(config).summarize(_price(catalog, config, items, rooms), rooms)

        assert set(summary.by_coverage) == {b.value for b in CoverageBucket}
        assert summary.by_coverage["A"].item_count == 1
        assert summary.by_coverage["B"].item_count == 1
        assert summary.by_coverage["C"].item_count == 1
        assert summary.by_coverage["CODE_UPGRADE"].item_count == 1
        assert sum(s.rcv for s in summary.by_coverage.values()) == pytest.approx(summary.line_item_subtotal)

    def test_empty_estimate(self, config):
        summary = EstimateAggregator(config).summarize([])

        assert summary.total_rcv == 0.0
        assert summary.qualifies_for_op is False
        assert summary.by_room == []
