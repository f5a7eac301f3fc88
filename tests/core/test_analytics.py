from __future__ import annotations

from typing import Any

from ledgermirror.core.analytics import (
    UNKNOWN_ITEM,
    AnalysisReport,
    GlobalStats,
    GroupBreakdown,
    process_analysis_data,
)
from ledgermirror.models.transaction import TransactionRecord

ME = "u1"


def create_record(**overrides: Any) -> TransactionRecord:
    """Create a record from camelCase wire fields."""
    data: dict[str, Any] = {
        "id": "txn_1",
        "createdAt": "2025-01-01T00:00:00Z",
        "transactionType": "wage",
    }
    data.update(overrides)
    return TransactionRecord.from_wire(data)


def test_single_wage_purchase() -> None:
    # input
    records = [create_record(buyerId=ME, money=10, quantity=2)]

    # act
    report = process_analysis_data(records, ME)

    # expected
    expected_global = GlobalStats(total_buy=10, total_sell=0, net_profit=-10, count=1)
    expected_wage = GroupBreakdown(
        name="wage", count=1, buy_qty=2, buy_total=10, sell_qty=0, sell_total=0
    )

    # assert
    assert report.global_stats == expected_global
    assert report.by_type == {"wage": expected_wage}
    assert report.by_item == {}


def test_empty_input_gives_zero_report() -> None:
    report = process_analysis_data([], ME)

    assert report == AnalysisReport()
    assert report.to_dict() == {
        "global": {"totalBuy": 0.0, "totalSell": 0.0, "netProfit": 0.0, "count": 0},
        "byItem": {},
        "byType": {},
    }


def test_trading_records_group_by_item_code() -> None:
    # input
    records = [
        create_record(
            id="a",
            transactionType="trading",
            itemCode="lead",
            buyerId=ME,
            sellerId="other",
            money=5,
            quantity=10,
        ),
        create_record(
            id="b",
            transactionType="trading",
            itemCode="lead",
            buyerId="other",
            sellerId=ME,
            money=8,
            quantity=4,
        ),
        create_record(
            id="c",
            transactionType="trading",
            itemCode="limestone",
            buyerId="other",
            sellerId=ME,
            money=3,
            quantity=1,
        ),
    ]

    # act
    report = process_analysis_data(records, ME)

    # expected
    expected_by_item = {
        "lead": GroupBreakdown(
            name="lead", count=2, buy_qty=10, buy_total=5, sell_qty=4, sell_total=8
        ),
        "limestone": GroupBreakdown(
            name="limestone", count=1, buy_qty=0, buy_total=0, sell_qty=1, sell_total=3
        ),
    }

    # assert
    assert report.by_item == expected_by_item
    assert report.by_type == {}
    assert report.global_stats.total_buy == 5
    assert report.global_stats.total_sell == 11
    assert report.global_stats.net_profit == 6


def test_non_trading_records_group_by_type() -> None:
    records = [
        create_record(id="1", transactionType="wage", sellerId=ME, money=100),
        create_record(id="2", transactionType="donation", buyerId=ME, money=20),
        create_record(id="3", transactionType="applicationFee", buyerId=ME, money=1),
        create_record(id="4", transactionType="wage", sellerId=ME, money=50),
    ]

    report = process_analysis_data(records, ME)

    assert set(report.by_type) == {"wage", "donation", "applicationFee"}
    assert report.by_type["wage"].count == 2
    assert report.by_type["wage"].sell_total == 150
    assert report.by_type["donation"].buy_total == 20
    assert report.by_item == {}


def test_missing_money_and_quantity_count_as_zero() -> None:
    records = [
        create_record(id="1", buyerId=ME),
        create_record(id="2", sellerId=ME, money=None, quantity=None),
    ]

    report = process_analysis_data(records, ME)

    assert report.global_stats == GlobalStats(count=2)
    assert report.by_type["wage"] == GroupBreakdown(name="wage", count=2)


def test_record_not_involving_user_only_counts() -> None:
    records = [create_record(buyerId="x", sellerId="y", money=40, quantity=3)]

    report = process_analysis_data(records, ME)

    assert report.global_stats == GlobalStats(count=1)
    assert report.by_type["wage"] == GroupBreakdown(name="wage", count=1)


def test_user_on_both_sides_updates_both_totals_but_only_buy_group() -> None:
    # input
    records = [create_record(buyerId=ME, sellerId=ME, money=7, quantity=2)]

    # act
    report = process_analysis_data(records, ME)

    # assert
    assert report.global_stats.total_buy == 7
    assert report.global_stats.total_sell == 7
    assert report.global_stats.net_profit == 0
    assert report.by_type["wage"] == GroupBreakdown(
        name="wage", count=1, buy_qty=2, buy_total=7, sell_qty=0, sell_total=0
    )


def test_count_is_additive_over_disjoint_inputs() -> None:
    part_a = [create_record(id=f"a{i}", buyerId=ME, money=i) for i in range(4)]
    part_b = [
        create_record(id=f"b{i}", transactionType="trading", itemCode="iron")
        for i in range(3)
    ]

    combined = process_analysis_data(part_a + part_b, ME).global_stats.count
    separate = (
        process_analysis_data(part_a, ME).global_stats.count
        + process_analysis_data(part_b, ME).global_stats.count
    )

    assert combined == separate == 7


def test_net_profit_equals_sell_minus_buy() -> None:
    records = [
        create_record(id="1", buyerId=ME, money=0.1),
        create_record(id="2", sellerId=ME, money=0.2),
        create_record(id="3", buyerId=ME, money=1e-9),
        create_record(id="4", sellerId=ME, money=-3.5),
    ]

    stats = process_analysis_data(records, ME).global_stats

    assert stats.net_profit == stats.total_sell - stats.total_buy


def test_every_record_lands_in_exactly_one_group() -> None:
    records = [
        create_record(id="1", transactionType="trading", itemCode="lead"),
        create_record(id="2", transactionType="trading", itemCode="iron"),
        create_record(id="3", transactionType="itemMarket"),
        create_record(id="4", transactionType="donation"),
        create_record(id="5", transactionType="trading", itemCode="lead"),
    ]

    report = process_analysis_data(records, ME)

    item_total = sum(group.count for group in report.by_item.values())
    type_total = sum(group.count for group in report.by_type.values())
    assert item_total == 3
    assert type_total == 2
    assert "trading" not in report.by_type


def test_trading_record_without_item_code_groups_as_unknown() -> None:
    records = [
        create_record(id="1", transactionType="trading", sellerId=ME, money=6),
        create_record(id="2", transactionType="trading", itemCode="lead"),
    ]

    report = process_analysis_data(records, ME)

    assert set(report.by_item) == {UNKNOWN_ITEM, "lead"}
    assert report.by_item[UNKNOWN_ITEM].name == "unknown"
    assert report.by_item[UNKNOWN_ITEM].count == 1
    assert report.by_item[UNKNOWN_ITEM].sell_total == 6.0
    assert report.by_type == {}

def test_accepts_generator_input() -> None:
    records = (create_record(id=str(i), sellerId=ME, money=2) for i in range(3))

    report = process_analysis_data(records, ME)

    assert report.global_stats.count == 3
    assert report.global_stats.total_sell == 6


def test_to_dict_uses_camel_case_keys() -> None:
    records = [
        create_record(
            transactionType="trading", itemCode="lead", sellerId=ME, money=4, quantity=2
        )
    ]

    result = process_analysis_data(records, ME).to_dict()

    assert result["global"] == {
        "totalBuy": 0.0,
        "totalSell": 4.0,
        "netProfit": 4.0,
        "count": 1,
    }
    assert result["byItem"]["lead"] == {
        "name": "lead",
        "count": 1,
        "buyQty": 0.0,
        "buyTotal": 0.0,
        "sellQty": 2.0,
        "sellTotal": 4.0,
    }
