"""Utility modules for ClaimScope."""

from claimscope.utils.engine_logger import (
    configure_logging,
    log_auto_scope_result,
    log_estimate_summary,
)

__all__ = [
    "configure_logging",
    "log_auto_scope_result",
    "log_estimate_summary",
]
