"""
Unit Tests for the Catalog Repository.

Tests payload parsing and the in-memory repository:
- camelCase keys and JSON-encoded rule columns are accepted
- Trade aliases are normalized to canonical codes
- Malformed rows are rejected with warnings, never fatal
- Upserts are idempotent and snapshots do not see later writes
"""

import json
from pathlib import Path

import pytest

from claimscope.config.errors import CatalogError, ErrorCode, RuleDefinitionError
from claimscope.models.catalog import QuantityFormula, Unit, normalize_trade_code
from claimscope.services.catalog_repository import (
    InMemoryCatalogRepository,
    load_catalog_payload,
    load_price_payload,
    parse_catalog_row,
)


# Path to fixtures
FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


def load_fixture(filename: str) -> dict:
    """Load a JSON fixture file."""
    with open(FIXTURES_DIR / filename) as f:
        return json.load(f)


@pytest.fixture
def legacy_seed():
    return load_fixture("catalog_seed_legacy.json")


# =============================================================================
# Row parsing
# =============================================================================


class TestParseCatalogRow:
    """Tests for parse_catalog_row()."""

    def test_camel_case_row_with_json_rule_columns(self, legacy_seed):
        item = parse_catalog_row(legacy_seed["catalog"][0])

        assert item.code == "DRY-X-5-8"
        assert item.trade_code == "DRY"
        assert item.unit == Unit.SF
        assert item.quantity_formula == QuantityFormula.WALL_SF_NET
        assert item.default_waste_factor == 12
        assert item.scope_conditions.damage_types == ["fire_damage"]
        assert item.scope_conditions.surfaces == ["wall"]
        assert item.companion_rules.auto_adds == ["PNT-INT-SF"]
        assert item.sort_order == 15

    def test_blank_rule_column_uses_defaults(self, legacy_seed):
        item = parse_catalog_row(legacy_seed["catalog"][1])

        assert item.trade_code == "EXT"
        assert item.companion_rules.auto_adds == []
        assert item.scope_conditions is None

    def test_bad_rule_json_raises_rule_error(self, legacy_seed):
        with pytest.raises(RuleDefinitionError) as exc_info:
            parse_catalog_row(legacy_seed["catalog"][2])

        assert exc_info.value.code == ErrorCode.MALFORMED_RULE
        assert exc_info.value.catalog_code == "BAD-RULE-EA"

    def test_unknown_rule_key_raises_rule_error(self):
        row = {
            "code": "X-1", "description": "x", "trade_code": "GEN", "unit": "EA",
            "companion_rules": {"auto_add": ["PNT-INT-SF"]},
        }

        with pytest.raises(RuleDefinitionError):
            parse_catalog_row(row)

    def test_bad_unit_is_malformed_row(self, legacy_seed):
        with pytest.raises(CatalogError) as exc_info:
            parse_catalog_row(legacy_seed["catalog"][3])

        assert exc_info.value.code == ErrorCode.MALFORMED_CATALOG_ROW

    def test_non_mapping_row(self):
        with pytest.raises(CatalogError):
            parse_catalog_row(["DRY-X-1-2"])

    @pytest.mark.parametrize("raw,expected", [
        ("dyw", "DRY"),
        ("Roofing", "RFG"),
        ("SDG", "EXT"),
        ("MIT", "MIT"),
        ("POOL", "POOL"),
        (None, "GEN"),
        ("", "GEN"),
    ])
    def test_trade_aliases(self, raw, expected):
        assert normalize_trade_code(raw) == expected


# =============================================================================
# Batch payloads
# =============================================================================


class TestPayloads:
    """Tests for load_catalog_payload() and load_price_payload()."""

    def test_catalog_payload_skips_bad_rows(self, legacy_seed):
        items, warnings = load_catalog_payload(legacy_seed["catalog"])

        assert [item.code for item in items] == ["DRY-X-5-8", "SDG-VINYL-SF"]
        assert len(warnings) == 3
        assert "BAD-RULE-EA" in warnings[0]
        assert "no code" in warnings[2]

    def test_price_payload_skips_bad_rows(self, legacy_seed):
        prices, warnings = load_price_payload(legacy_seed["prices"])

        assert len(prices) == 1
        assert prices[0].key == ("TX-HOUSTON", "DRY-X-5-8")
        assert prices[0].labor_cost == 1.44
        assert len(warnings) == 2


# =============================================================================
# Repository
# =============================================================================


class TestInMemoryRepository:
    """Tests for InMemoryCatalogRepository."""

    def test_seed_reports_rejections(self, legacy_seed):
        repository = InMemoryCatalogRepository()

        warnings = repository.seed(legacy_seed["catalog"], legacy_seed["prices"])

        assert len(warnings) == 5
        assert repository.get_item("dry-x-5-8") is not None
        assert repository.get_price("TX-HOUSTON", "dry-x-5-8").material_cost == 0.71

    def test_upsert_is_idempotent(self, legacy_seed):
        repository = InMemoryCatalogRepository()
        items, _ = load_catalog_payload(legacy_seed["catalog"])

        repository.upsert_catalog_items(items)
        repository.upsert_catalog_items(items)

        assert len(repository.snapshot()) == 2

    def test_upsert_replaces_by_code(self, legacy_seed):
        repository = InMemoryCatalogRepository()
        item = parse_catalog_row(legacy_seed["catalog"][0])
        repository.upsert_catalog_items([item])

        repository.upsert_catalog_items([item.model_copy(update={"is_active": False})])

        snapshot = repository.snapshot()
        assert len(snapshot) == 1
        assert snapshot.active_items() == []

    def test_snapshot_does_not_see_later_writes(self, legacy_seed):
        repository = InMemoryCatalogRepository()
        snapshot = repository.snapshot()

        repository.seed(legacy_seed["catalog"], legacy_seed["prices"])

        assert len(snapshot) == 0
        assert "DRY-X-5-8" not in snapshot
        assert "DRY-X-5-8" in repository.snapshot()

    def test_default_catalog(self, catalog):
        assert "DRY-X-1-2" in catalog
        assert "US-NATIONAL" in catalog.regions()
        assert catalog.get_price("US-NATIONAL", "dry-x-1-2").labor_cost == 1.58
        orders = [(item.sort_order, item.code) for item in catalog.active_items()]
        assert orders == sorted(orders)
