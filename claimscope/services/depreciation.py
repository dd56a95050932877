"""Depreciation calculations for ClaimScope.

Straight-line depreciation by age over life expectancy, capped at 100%.
Life expectancy falls back to a table keyed by trade category with
description keyword overrides.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import structlog

from claimscope.config.engine import EngineConfig
from claimscope.models.estimate import DepreciationType
from claimscope.models.scope import ScopeItem

logger = structlog.get_logger(__name__)


# =============================================================================
# LIFE EXPECTANCY TABLE
# =============================================================================

# Category -> (keyword overrides in match order, default life in years)
LIFE_EXPECTANCY_TABLE: Dict[str, Tuple[List[Tuple[str, float]], float]] = {
    "roofing": ([
        ("3-tab", 20), ("laminated", 30), ("architectural", 30), ("metal", 50),
        ("tile", 50), ("modified bitumen", 20), ("wood shake", 30), ("felt", 30),
        ("ice & water", 30), ("ridge", 25), ("drip edge", 25), ("flashing", 25),
    ], 25),
    "siding": ([
        ("vinyl", 40), ("aluminum", 40), ("wood", 30), ("fiber cement", 50),
        ("stucco", 50), ("brick", 100),
    ], 35),
    "windows": ([("vinyl", 30), ("wood", 30), ("aluminum", 25)], 30),
    "doors": ([("exterior", 30), ("interior", 50), ("garage", 25), ("storm", 20)], 30),
    "drywall": ([], 70),
    "painting": ([("interior", 7), ("exterior", 7)], 7),
    "flooring": ([
        ("carpet", 10), ("hardwood", 50), ("laminate", 15), ("tile", 50), ("vinyl", 20),
    ], 20),
    "plumbing": ([], 40),
    "electrical": ([("smoke detector", 10)], 40),
    "hvac": ([], 15),
    "cabinetry": ([], 50),
    "insulation": ([], 50),
    "general": ([], 0),
}

# Trade code -> life expectancy category
TRADE_LIFE_CATEGORIES: Dict[str, str] = {
    "RFG": "roofing",
    "EXT": "siding",
    "WIN": "windows",
    "CAR": "doors",
    "DRY": "drywall",
    "PNT": "painting",
    "FLR": "flooring",
    "PLM": "plumbing",
    "ELE": "electrical",
    "HVAC": "hvac",
    "CAB": "cabinetry",
    "CTR": "cabinetry",
    "INS": "insulation",
    "DEM": "general",
    "MIT": "general",
    "GEN": "general",
}


def lookup_life_expectancy(trade_code: str, description: str = "") -> float:
    """Life expectancy in years for a trade and item description.

    Returns 0 for categories that do not depreciate (labor-only trades).
    """
    category = TRADE_LIFE_CATEGORIES.get((trade_code or "").upper(), "general")
    keywords, default = LIFE_EXPECTANCY_TABLE[category]
    text = (description or "").lower()
    for keyword, life in keywords:
        if keyword in text:
            return float(life)
    return float(default)


# =============================================================================
# CALCULATION
# =============================================================================


@dataclass
class DepreciationResult:
    """Depreciation outcome for one priced item."""

    depreciation_type: DepreciationType
    life_expectancy: float
    percentage: float
    amount: float


def is_code_upgrade(item: ScopeItem, config: EngineConfig) -> bool:
    """Explicit flag wins; otherwise detect by catalog code."""
    if item.is_code_upgrade is not None:
        return item.is_code_upgrade
    codes = {code.upper() for code in config.code_upgrade_codes}
    return (item.catalog_code or "").upper() in codes


def classify_depreciation_type(item: ScopeItem, config: EngineConfig) -> DepreciationType:
    """Recoverable unless a code upgrade or a scheduled roof."""
    if is_code_upgrade(item, config):
        return DepreciationType.PAID_WHEN_INCURRED
    roof_trades = {t.upper() for t in config.roof_trades}
    if (
        config.apply_roof_payment_schedule
        and item.trade_code.upper() in roof_trades
        and item.age is not None
        and item.age > config.roof_schedule_age_threshold
    ):
        return DepreciationType.NON_RECOVERABLE
    return DepreciationType.RECOVERABLE


def calculate_depreciation(
    item: ScopeItem,
    total_price: float,
    config: EngineConfig,
) -> DepreciationResult:
    """Compute depreciation for a scope item priced at ``total_price``.

    Args:
        item: The scope item (age, life expectancy, trade, code upgrade flag).
        total_price: Item RCV before tax.
        config: Engine configuration.

    Returns:
        DepreciationResult with percentage in 0-100 and the amount in USD.
    """
    depreciation_type = classify_depreciation_type(item, config)
    life = item.life_expectancy
    if life is None:
        life = lookup_life_expectancy(item.trade_code, item.description)

    if depreciation_type == DepreciationType.PAID_WHEN_INCURRED:
        return DepreciationResult(depreciation_type, life, 0.0, 0.0)

    if not item.age or not life:
        return DepreciationResult(depreciation_type, life, 0.0, 0.0)

    percentage = round(min(100.0, item.age / life * 100.0), 2)
    amount = round(total_price * percentage / 100.0, 2)
    return DepreciationResult(depreciation_type, life, percentage, amount)
