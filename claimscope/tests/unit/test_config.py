"""
Unit Tests for Configuration.

Tests EngineConfig and Settings:
- Default thresholds and rate validation
- Carrier presets, overrides and unknown-carrier fallback
- Environment-driven Settings and the EngineConfig they imply
- Structured error payloads
"""

import pytest

from claimscope.config.engine import CARRIER_RULES, EngineConfig
from claimscope.config.errors import ErrorCode, RuleDefinitionError, ValidationError
from claimscope.config.settings import Settings


class TestEngineConfig:
    """Tests for EngineConfig defaults and presets."""

    def test_defaults(self):
        config = EngineConfig()

        assert config.op_trade_threshold == 3
        assert config.overhead_rate == 0.10
        assert config.profit_rate == 0.10
        assert config.max_cascade_depth == 2
        assert config.water_forced_trades == ["DEM", "MIT"]

    def test_rates_must_leave_room_for_cost(self):
        with pytest.raises(ValueError):
            EngineConfig(overhead_rate=0.6, profit_rate=0.4)

    def test_for_carrier_wraps_invalid_values(self):
        with pytest.raises(ValidationError) as exc_info:
            EngineConfig.for_carrier("carrier_state_farm", overhead_rate=0.95)

        error = exc_info.value.to_dict()
        assert error["code"] == ErrorCode.VALIDATION_ERROR
        assert error["details"]["field"] == "engine_config"
        assert error["details"]["carrier_code"] == "carrier_state_farm"

    @pytest.mark.parametrize("carrier_code", sorted(CARRIER_RULES))
    def test_every_preset_is_valid(self, carrier_code):
        config = EngineConfig.for_carrier(carrier_code)

        assert config.carrier_code == carrier_code

    def test_preset_values_applied(self):
        config = EngineConfig.for_carrier("Carrier_State_Farm")

        assert config.overhead_rate == 0.12
        assert config.profit_rate == 0.08
        assert config.is_op_excluded("mit") is True
        assert config.apply_roof_payment_schedule is True

    def test_overrides_win_over_preset(self):
        config = EngineConfig.for_carrier("CARRIER_ALLSTATE", op_trade_threshold=4)

        assert config.op_trade_threshold == 4
        assert config.tax_labor is True

    def test_unknown_carrier_falls_back_to_defaults(self):
        config = EngineConfig.for_carrier("CARRIER_NOBODY")

        assert config.carrier_code == "DEFAULT"
        assert config.model_dump() == EngineConfig().model_dump()

    def test_negative_depth_rejected(self):
        with pytest.raises(ValueError):
            EngineConfig(max_cascade_depth=-1)


class TestSettings:
    """Tests for environment-driven Settings."""

    def test_defaults(self, monkeypatch):
        for name in ("CLAIMSCOPE_DEFAULT_REGION", "CLAIMSCOPE_TAX_RATE", "CLAIMSCOPE_CARRIER_CODE",
                     "CLAIMSCOPE_MAX_CASCADE_DEPTH", "CLAIMSCOPE_LOG_JSON"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.default_region_id == "US-NATIONAL"
        assert settings.default_tax_rate is None
        assert settings.carrier_code is None
        assert settings.log_json is False
        assert settings.engine_config().model_dump() == EngineConfig().model_dump()

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CLAIMSCOPE_DEFAULT_REGION", "TX-HOUSTON")
        monkeypatch.setenv("CLAIMSCOPE_TAX_RATE", "0.0625")
        monkeypatch.setenv("CLAIMSCOPE_CARRIER_CODE", "carrier_allstate")
        monkeypatch.setenv("CLAIMSCOPE_MAX_CASCADE_DEPTH", "3")
        monkeypatch.setenv("CLAIMSCOPE_LOG_JSON", "TRUE")

        settings = Settings()
        config = settings.engine_config()

        assert settings.default_region_id == "TX-HOUSTON"
        assert settings.log_json is True
        assert config.carrier_code == "CARRIER_ALLSTATE"
        assert config.op_trade_threshold == 2
        assert config.tax_rate == 0.0625
        assert config.max_cascade_depth == 3

    def test_engine_config_validates_overrides(self, monkeypatch):
        monkeypatch.setenv("CLAIMSCOPE_CARRIER_CODE", "CARRIER_STATE_FARM")
        monkeypatch.setenv("CLAIMSCOPE_MAX_CASCADE_DEPTH", "-1")

        with pytest.raises(ValidationError) as exc_info:
            Settings().engine_config()

        assert exc_info.value.details["field"] == "engine_config"
        assert exc_info.value.details["carrier_code"] == "CARRIER_STATE_FARM"

    def test_blank_tax_rate_is_unset(self, monkeypatch):
        monkeypatch.setenv("CLAIMSCOPE_TAX_RATE", "  ")

        assert Settings().default_tax_rate is None

    def test_validate_rejects_bad_values(self, monkeypatch):
        monkeypatch.setenv("CLAIMSCOPE_TAX_RATE", "8")

        with pytest.raises(ValueError, match="CLAIMSCOPE_TAX_RATE"):
            Settings().validate()

        monkeypatch.setenv("CLAIMSCOPE_TAX_RATE", "0.08")
        monkeypatch.setenv("CLAIMSCOPE_MAX_CASCADE_DEPTH", "-1")

        with pytest.raises(ValueError, match="CLAIMSCOPE_MAX_CASCADE_DEPTH"):
            Settings().validate()


class TestErrors:
    """Structured error payloads."""

    def test_rule_definition_error(self):
        error = RuleDefinitionError("bad JSON", catalog_code="DRY-X-1-2", details={"column": "companion_rules"})

        assert error.code == ErrorCode.MALFORMED_RULE
        assert error.catalog_code == "DRY-X-1-2"
        assert error.to_dict()["details"] == {"column": "companion_rules", "catalog_code": "DRY-X-1-2"}
