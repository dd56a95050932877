"""Engine output logger for ClaimScope.

Configures structlog for the host process and provides formatted,
highly visible summaries of auto-scope results and estimate totals.
"""

import logging
from typing import Optional

import structlog

from claimscope.models.estimate import EstimateSummary
from claimscope.models.scope import AutoScopeResult

logger = structlog.get_logger()

# Visual markers for different log types
BANNER_WIDTH = 80
SCOPE_BANNER_CHAR = "═"
ESTIMATE_BANNER_CHAR = "█"


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """Configure structlog processors and the level filter.

    Args:
        level: Log level name; defaults to settings.log_level.
        json_output: Render JSON lines instead of console output; defaults
            to settings.log_json.
    """
    from claimscope.config.settings import settings

    level_name = (level or settings.log_level).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)
    use_json = settings.log_json if json_output is None else json_output

    renderer = structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
    )


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def log_auto_scope_result(room_name: str, damage_type: str, result: AutoScopeResult) -> None:
    """Log an auto-scope result with created items and warnings."""
    print("\n")
    print(SCOPE_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(SCOPE_BANNER_CHAR, f"AUTO SCOPE: {room_name.upper()}"))
    print(SCOPE_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Damage       : {damage_type}")
    print(f"║ Summary      : {result.summary}")
    for item in result.items_created:
        marker = "+" if item.is_companion else "•"
        print(f"║   {marker} {item.catalog_code:<14} {item.quantity:>10,.2f} {item.unit:<4} {item.description}")
    for request in result.manual_quantity_needed:
        print(f"║   ? {request.catalog_code:<14} {'':>10} {request.unit:<4} {request.reason}")
    if result.warnings:
        print(SCOPE_BANNER_CHAR * BANNER_WIDTH)
        print("║ WARNINGS:")
        for warning in result.warnings:
            print(f"║   {warning}")
    print(SCOPE_BANNER_CHAR * BANNER_WIDTH)
    print("\n")

    logger.info(
        "auto_scope_result_logged",
        room=room_name,
        damage_type=damage_type,
        items_created=len(result.items_created),
        companions=len(result.companion_items),
        warnings=len(result.warnings),
    )


def log_estimate_summary(session_id: int, region_id: str, summary: EstimateSummary) -> None:
    """Log estimate totals with the O&P decision and coverage split."""
    print("\n")
    print(ESTIMATE_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(ESTIMATE_BANNER_CHAR, f"ESTIMATE: SESSION {session_id}"))
    print(ESTIMATE_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Region            : {region_id}")
    print(f"║ Line Items        : ${summary.line_item_subtotal:,.2f}")
    op_status = "yes" if summary.qualifies_for_op else "no"
    print(f"║ O&P ({op_status:<3})         : ${summary.overhead_amount + summary.profit_amount:,.2f}"
          f"  [{', '.join(summary.op_eligible_trades)}]")
    print(f"║ Total RCV         : ${summary.total_rcv:,.2f}")
    print(f"║ Tax               : ${summary.total_tax:,.2f}")
    print(f"║ Depreciation      : ${summary.total_depreciation:,.2f}"
          f" (recoverable ${summary.total_recoverable_depreciation:,.2f})")
    print(f"║ Total ACV         : ${summary.total_acv:,.2f}")
    print(f"║ Deductible        : ${summary.deductible:,.2f}")
    print(f"║ Net Claim         : ${summary.net_claim:,.2f}")
    print(ESTIMATE_BANNER_CHAR * BANNER_WIDTH)
    for bucket, subtotal in summary.by_coverage.items():
        if subtotal.item_count:
            print(f"║ Coverage {bucket:<13}: ${subtotal.rcv:,.2f} ({subtotal.item_count} items)")
    print(ESTIMATE_BANNER_CHAR * BANNER_WIDTH)
    print("\n")

    logger.info(
        "estimate_summary_logged",
        session_id=session_id,
        region_id=region_id,
        total_rcv=summary.total_rcv,
        total_acv=summary.total_acv,
        net_claim=summary.net_claim,
        qualifies_for_op=summary.qualifies_for_op,
    )
