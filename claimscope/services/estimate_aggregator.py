"""Estimate aggregator for ClaimScope.

Rolls priced line items up into the estimate summary: room, trade and
coverage subtotals, the recoverable / non-recoverable / paid-when-incurred
split, overhead & profit eligibility and the net claim.
"""

from typing import Dict, Iterable, List, Optional

import structlog

from claimscope.config.engine import EngineConfig
from claimscope.models.estimate import (
    CoverageBucket,
    DepreciationType,
    EstimateSummary,
    PricedLineItem,
    Subtotal,
)
from claimscope.models.inspection import Room

logger = structlog.get_logger(__name__)

UNASSIGNED_ROOM = "unassigned"


def _subtotal(key: str, items: Iterable[PricedLineItem], label: Optional[str] = None) -> Subtotal:
    items = list(items)
    recoverable = sum(
        i.depreciation_amount for i in items if i.depreciation_type == DepreciationType.RECOVERABLE
    )
    non_recoverable = sum(
        i.depreciation_amount for i in items if i.depreciation_type == DepreciationType.NON_RECOVERABLE
    )
    return Subtotal(
        key=key,
        label=label,
        item_count=len(items),
        rcv=round(sum(i.total_price for i in items), 2),
        tax=round(sum(i.tax_amount for i in items), 2),
        depreciation=round(sum(i.depreciation_amount for i in items), 2),
        recoverable_depreciation=round(recoverable, 2),
        non_recoverable_depreciation=round(non_recoverable, 2),
        acv=round(sum(i.acv for i in items), 2),
    )


class EstimateAggregator:
    """Aggregates priced line items into an EstimateSummary."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def op_trades(self, items: Iterable[PricedLineItem]) -> List[str]:
        """Distinct active trades that receive O&P once the estimate qualifies."""
        return sorted({
            i.trade_code for i in items
            if i.is_active and not self.config.is_op_excluded(i.trade_code)
        })

    def summarize(
        self,
        priced: List[PricedLineItem],
        rooms: Optional[Iterable[Room]] = None,
        deductible: float = 0.0,
    ) -> EstimateSummary:
        """Aggregate priced items.

        Args:
            priced: Priced line items; inactive items are ignored.
            rooms: Rooms used to label room subtotals.
            deductible: Policy deductible in USD.

        Returns:
            EstimateSummary. Room and category subtotals sum to
            ``line_item_subtotal``; ``total_rcv`` adds overhead and profit.
        """
        items = [i for i in priced if i.is_active]
        room_names: Dict[int, str] = {room.id: room.name for room in (rooms or [])}
        config = self.config

        line_item_subtotal = round(sum(i.total_price for i in items), 2)
        total_tax = round(sum(i.tax_amount for i in items), 2)
        total_depreciation = round(sum(i.depreciation_amount for i in items), 2)
        recoverable = round(sum(
            i.depreciation_amount for i in items if i.depreciation_type == DepreciationType.RECOVERABLE
        ), 2)
        non_recoverable = round(sum(
            i.depreciation_amount for i in items if i.depreciation_type == DepreciationType.NON_RECOVERABLE
        ), 2)
        paid_when_incurred = round(sum(
            i.total_price for i in items if i.depreciation_type == DepreciationType.PAID_WHEN_INCURRED
        ), 2)

        trades_involved = sorted({i.trade_code for i in items})
        op_trades = self.op_trades(items)
        qualifies_for_op = len(trades_involved) >= config.op_trade_threshold

        op_base = 0.0
        overhead = 0.0
        profit = 0.0
        if qualifies_for_op:
            op_base = round(sum(i.total_price for i in items if i.trade_code in op_trades), 2)
            overhead = round(op_base * config.overhead_rate, 2)
            profit = round(op_base * config.profit_rate, 2)

        total_rcv = round(line_item_subtotal + overhead + profit, 2)
        total_acv = round(total_rcv + total_tax - total_depreciation, 2)
        net_claim = round(max(0.0, total_acv - deductible), 2)

        by_room: Dict[str, List[PricedLineItem]] = {}
        for item in items:
            key = str(item.room_id) if item.room_id is not None else UNASSIGNED_ROOM
            by_room.setdefault(key, []).append(item)

        by_category: Dict[str, List[PricedLineItem]] = {}
        for item in items:
            by_category.setdefault(item.trade_code, []).append(item)

        by_coverage: Dict[str, Subtotal] = {}
        for bucket in CoverageBucket:
            bucket_items = [i for i in items if i.coverage_bucket == bucket]
            by_coverage[bucket.value] = _subtotal(bucket.value, bucket_items)

        summary = EstimateSummary(
            line_item_subtotal=line_item_subtotal,
            total_rcv=total_rcv,
            total_tax=total_tax,
            total_depreciation=total_depreciation,
            total_recoverable_depreciation=recoverable,
            total_non_recoverable_depreciation=non_recoverable,
            total_paid_when_incurred=paid_when_incurred,
            total_acv=total_acv,
            deductible=deductible,
            net_claim=net_claim,
            net_claim_if_depreciation_recovered=round(net_claim + recoverable, 2),
            qualifies_for_op=qualifies_for_op,
            op_base=op_base,
            overhead_amount=overhead,
            profit_amount=profit,
            trades_involved=trades_involved,
            op_eligible_trades=op_trades,
            by_room=[
                _subtotal(key, group, room_names.get(int(key)) if key != UNASSIGNED_ROOM else None)
                for key, group in by_room.items()
            ],
            by_category=[_subtotal(trade, group, trade) for trade, group in sorted(by_category.items())],
            by_coverage=by_coverage,
        )

        logger.info(
            "estimate_summarized",
            items=len(items),
            line_item_subtotal=line_item_subtotal,
            total_rcv=total_rcv,
            total_acv=total_acv,
            qualifies_for_op=qualifies_for_op,
            op_trades=op_trades,
        )
        return summary
