"""
Unit Tests for the Engine Logger.

Tests the banner summaries and structlog configuration.
"""

import structlog

from claimscope.models.estimate import EstimateSummary
from claimscope.models.scope import AutoScopeResult, ManualQuantityRequest
from claimscope.utils.engine_logger import (
    BANNER_WIDTH,
    _create_banner,
    configure_logging,
    log_auto_scope_result,
    log_estimate_summary,
)
from claimscope.tests.fixtures.inspection_data import make_item


class TestBanners:
    """Console summaries printed for operators."""

    def test_banner_is_full_width(self):
        banner = _create_banner("=", "AUTO SCOPE: KITCHEN")

        assert len(banner) == BANNER_WIDTH
        assert " AUTO SCOPE: KITCHEN " in banner

    def test_auto_scope_result(self, capsys):
        result = AutoScopeResult(
            items_created=[
                make_item(1, "DRY-X-1-2", "DRY", quantity=560),
                make_item(2, "PNT-INT-SF", "PNT", quantity=560, parent_scope_item_id=1),
            ],
            manual_quantity_needed=[ManualQuantityRequest(
                catalog_code="CAB-BASE-LF", description="Base cabinets", unit="LF", reason="Manual quantity required",
            )],
            warnings=["Skipped ELE-OUTL-EA: excluded by ELE-GFCI-EA"],
            summary="Added 1 item(s) to Kitchen: DRY-X-1-2.",
        )

        log_auto_scope_result("Kitchen", "water_intrusion", result)

        out = capsys.readouterr().out
        assert "AUTO SCOPE: KITCHEN" in out
        assert "• DRY-X-1-2" in out
        assert "+ PNT-INT-SF" in out
        assert "? CAB-BASE-LF" in out
        assert "WARNINGS:" in out

    def test_estimate_summary(self, capsys):
        log_estimate_summary(1, "US-NATIONAL", EstimateSummary())

        out = capsys.readouterr().out
        assert "ESTIMATE: SESSION 1" in out
        assert "Region            : US-NATIONAL" in out


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_json_output(self, capsys):
        configure_logging(level="info", json_output=True)
        try:
            structlog.get_logger("claimscope.test").info("scope_logged", room_id=1)
            structlog.get_logger("claimscope.test").debug("hidden_event")
        finally:
            structlog.reset_defaults()

        out = capsys.readouterr().out
        assert '"event": "scope_logged"' in out
        assert '"room_id": 1' in out
        assert "hidden_event" not in out
