"""Grouped statistics over mirrored transaction records."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Final

from ledgermirror.models.transaction import TransactionRecord

UNKNOWN_ITEM: Final = "unknown"


@dataclass
class GlobalStats:
    """Totals across every record in the input."""

    total_buy: float = 0.0
    total_sell: float = 0.0
    net_profit: float = 0.0
    count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalBuy": self.total_buy,
            "totalSell": self.total_sell,
            "netProfit": self.net_profit,
            "count": self.count,
        }


@dataclass
class GroupBreakdown:
    """Buy/sell breakdown for one item code or transaction type."""

    name: str
    count: int = 0
    buy_qty: float = 0.0
    buy_total: float = 0.0
    sell_qty: float = 0.0
    sell_total: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "count": self.count,
            "buyQty": self.buy_qty,
            "buyTotal": self.buy_total,
            "sellQty": self.sell_qty,
            "sellTotal": self.sell_total,
        }


@dataclass
class AnalysisReport:
    """Result of folding records into global, per-item and per-type groups.

    ``by_item`` only holds trading records, keyed by item code. ``by_type``
    holds every other record, keyed by transaction type.
    """

    global_stats: GlobalStats = field(default_factory=GlobalStats)
    by_item: dict[str, GroupBreakdown] = field(default_factory=dict)
    by_type: dict[str, GroupBreakdown] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "global": self.global_stats.to_dict(),
            "byItem": {key: group.to_dict() for key, group in self.by_item.items()},
            "byType": {key: group.to_dict() for key, group in self.by_type.items()},
        }


def process_analysis_data(
    records: Iterable[TransactionRecord],
    my_user_id: str,
) -> AnalysisReport:
    """Fold transaction records into an analysis report for one user.

    A record counts as a purchase when ``my_user_id`` is the buyer and as a
    sale when it is the seller. Both global totals move when the user is on
    both sides, but a group only records the buy side in that case.

    Args:
        records: Records to aggregate, in any order
        my_user_id: Identity of the local user

    Returns:
        AnalysisReport; all zeros for an empty input
    """
    report = AnalysisReport()
    stats = report.global_stats
    count = 0

    for record in records:
        count += 1
        is_buyer = record.buyer_id == my_user_id
        is_seller = record.seller_id == my_user_id
        money = record.money or 0.0
        qty = record.quantity or 0.0

        if is_buyer:
            stats.total_buy += money
        if is_seller:
            stats.total_sell += money

        if record.is_trading:
            group_key = record.item_code
            if group_key is None:
                group_key = UNKNOWN_ITEM
            groups = report.by_item
        else:
            group_key = record.transaction_type
            groups = report.by_type

        group = groups.get(group_key)
        if group is None:
            group = GroupBreakdown(name=group_key)
            groups[group_key] = group

        group.count += 1
        if is_buyer:
            group.buy_qty += qty
            group.buy_total += money
        elif is_seller:
            group.sell_qty += qty
            group.sell_total += money

    stats.net_profit = stats.total_sell - stats.total_buy
    stats.count = count
    return report
