from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.services.period_profit import (
    NO_ACTIVITY_NOTICE,
    PeriodProfitError,
    PeriodProfitService,
    aggregate_period_profit,
    group_profit_trends,
    resolve_period_range,
    validate_date_range,
)
from tests.factories import product_record, utc


def snapshot_item(quantity, price, cost_per_unit):
    price = Decimal(str(price))
    return SimpleNamespace(
        quantity=quantity,
        price=price,
        total=price * quantity,
        cost_per_unit=Decimal(str(cost_per_unit)),
        total_profit=None,
        product=None,
    )


def order_record(total, items, created_at=None, subtotal=None, shipping=0):
    return SimpleNamespace(
        total=Decimal(str(total)),
        subtotal=Decimal(str(subtotal if subtotal is not None else total)),
        shipping=Decimal(str(shipping)),
        items=items,
        created_at=created_at,
    )


def cost_record(amount, cost_date, category="RENT"):
    return SimpleNamespace(amount=Decimal(str(amount)), cost_date=cost_date, category=category)


# =============================================================================
# AGGREGATION
# =============================================================================

def test_net_profit_waterfall():
    delivered = [order_record(1000, [snapshot_item(10, 95, 60)], subtotal=950, shipping=50)]
    costs = [cost_record(100, date(2026, 3, 5)), cost_record(50, date(2026, 3, 6), "MARKETING")]
    returned = [order_record(50, [])]

    period = aggregate_period_profit(delivered, costs, returned, tax_rate=0)

    assert period.total_revenue == Decimal("1000")
    assert period.shipping_revenue == Decimal("50")
    assert period.cost_of_goods == Decimal("600")
    assert period.gross_profit == Decimal("400")
    assert period.operational_costs == Decimal("150")
    assert period.operational_costs_by_category == {"RENT": Decimal("100"), "MARKETING": Decimal("50")}
    assert period.operating_profit == Decimal("250")
    assert period.returns == Decimal("50")
    assert period.net_profit == Decimal("200")
    assert period.total_costs == Decimal("750")
    assert period.notices == []


def test_tax_on_revenue():
    delivered = [order_record(1000, [snapshot_item(10, 100, 60)])]
    period = aggregate_period_profit(delivered, [], [], tax_rate=Decimal("0.1"))

    assert period.tax == Decimal("100")
    assert period.net_profit == Decimal("300")


def test_empty_period_is_zero_with_notice():
    period = aggregate_period_profit([], [], [], tax_rate=0)

    assert period.net_profit == 0
    assert period.net_margin == 0
    assert period.notices == [NO_ACTIVITY_NOTICE]


def test_items_without_snapshot_raise_data_quality_notice():
    legacy = SimpleNamespace(
        quantity=10,
        price=Decimal("100"),
        total=Decimal("1000"),
        cost_per_unit=None,
        total_profit=None,
        product=product_record(),
    )
    period = aggregate_period_profit([order_record(1000, [legacy])], [], [], tax_rate=0)

    assert period.items_without_snapshot == 1
    assert period.cost_of_goods == Decimal("800")
    assert len(period.notices) == 1
    assert "no cost snapshot" in period.notices[0]


def test_period_to_dict_renders_floats():
    period = aggregate_period_profit(
        [order_record(1000, [snapshot_item(10, 100, 60)])], [], [], tax_rate=0,
        start_date=date(2026, 3, 1), end_date=date(2026, 3, 31),
    )
    data = period.to_dict()

    assert data["start_date"] == "2026-03-01"
    assert data["revenue"]["total"] == 1000.0
    assert data["net_profit"] == 400.0


# =============================================================================
# DATE RANGES
# =============================================================================

def test_resolve_period_ranges():
    ref = date(2024, 2, 14)  # Wednesday
    assert resolve_period_range("DAILY", ref) == (ref, ref)
    assert resolve_period_range("WEEKLY", ref) == (date(2024, 2, 12), date(2024, 2, 18))
    assert resolve_period_range("MONTHLY", ref) == (date(2024, 2, 1), date(2024, 2, 29))
    assert resolve_period_range("yearly", ref) == (date(2024, 1, 1), date(2024, 12, 31))

    with pytest.raises(ValueError):
        resolve_period_range("CUSTOM", ref)


def test_validate_date_range():
    assert validate_date_range(date(2026, 3, 1), date(2026, 3, 1)) is None
    assert validate_date_range(date(2026, 3, 2), date(2026, 3, 1)) == "Start date must be on or before end date"
    assert validate_date_range(date(2025, 1, 1), date(2026, 3, 1)) == "Date range cannot exceed 366 days"


def test_group_trends_by_day_and_month():
    orders = [
        order_record(1000, [snapshot_item(10, 100, 60)], created_at=utc(2026, 3, 1)),
        order_record(500, [snapshot_item(5, 100, 60)], created_at=utc(2026, 3, 1, 18)),
        order_record(200, [snapshot_item(2, 100, 60)], created_at=utc(2026, 4, 2)),
    ]
    costs = [cost_record(100, date(2026, 3, 2))]

    daily = group_profit_trends(orders, costs, "day")
    assert [d["period"] for d in daily] == ["2026-03-01", "2026-03-02", "2026-04-02"]
    assert daily[0]["order_count"] == 2
    assert daily[0]["gross_profit"] == Decimal("600")
    assert daily[1]["profit"] == Decimal("-100")

    monthly = group_profit_trends(orders, costs, "MONTH")
    assert [m["period"] for m in monthly] == ["2026-03", "2026-04"]
    assert monthly[0]["profit"] == Decimal("500")


def test_group_trends_rejects_unknown_grouping():
    with pytest.raises(ValueError):
        group_profit_trends([], [], "QUARTER")


# =============================================================================
# DATABASE
# =============================================================================

async def test_calculate_for_period_filters_by_date_and_status(db, make_product, make_order, make_cost):
    product = await make_product()
    await make_order(product, 150, created_at=utc(2026, 3, 10))                 # 12750 revenue, 12000 cost
    await make_order(product, 20, created_at=utc(2026, 3, 31, 23))              # 1900 revenue, 1600 cost
    await make_order(product, 20, created_at=utc(2026, 4, 1, 0))                # outside range
    await make_order(product, 20, status="PENDING", created_at=utc(2026, 3, 12))
    await make_order(product, 10, status="RETURNED", created_at=utc(2026, 3, 20))  # 950 returned
    await make_cost(300, date(2026, 3, 31))
    await make_cost(999, date(2026, 4, 1))

    period = await PeriodProfitService(db).calculate_for_period(
        date(2026, 3, 1), date(2026, 3, 31), tax_rate=0
    )

    assert period.order_count == 2
    assert period.total_revenue == Decimal("14650")
    assert period.cost_of_goods == Decimal("13600")
    assert period.operational_costs == Decimal("300")
    assert period.returns == Decimal("950")
    assert period.return_count == 1
    assert period.net_profit == Decimal("14650") - Decimal("13600") - Decimal("300") - Decimal("950")


async def test_calculate_for_period_uses_frozen_snapshot(db, make_product, make_order):
    product = await make_product()
    await make_order(product, 100, created_at=utc(2026, 3, 10))

    product.base_price = Decimal("500")
    await db.flush()

    period = await PeriodProfitService(db).calculate_for_period(date(2026, 3, 1), date(2026, 3, 31), tax_rate=0)
    assert period.cost_of_goods == Decimal("8000")
    assert period.items_without_snapshot == 0


async def test_calculate_for_period_flags_legacy_items(db, make_product, make_legacy_order):
    product = await make_product()
    await make_legacy_order(product, 10, 100, created_at=utc(2026, 3, 10))

    period = await PeriodProfitService(db).calculate_for_period(date(2026, 3, 1), date(2026, 3, 31), tax_rate=0)
    assert period.items_without_snapshot == 1
    assert period.cost_of_goods == Decimal("800")
    assert any("no cost snapshot" in n for n in period.notices)


async def test_empty_period_from_database(db):
    period = await PeriodProfitService(db).calculate_for_period(date(2026, 1, 1), date(2026, 1, 31))
    assert period.net_profit == 0
    assert period.notices == [NO_ACTIVITY_NOTICE]


async def test_invalid_period_raises(db):
    with pytest.raises(PeriodProfitError):
        await PeriodProfitService(db).calculate_for_period(date(2026, 2, 1), date(2026, 1, 1))


async def test_trends_from_database(db, make_product, make_order):
    product = await make_product()
    await make_order(product, 100, created_at=utc(2026, 3, 2))
    await make_order(product, 100, created_at=utc(2026, 3, 4))

    trends = await PeriodProfitService(db).get_trends(date(2026, 3, 1), date(2026, 3, 31), "WEEK")
    assert [t["period"] for t in trends] == ["2026-03-02"]
    assert trends[0]["order_count"] == 2
