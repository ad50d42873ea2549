from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.services.profit_calculation import (
    ProfitConfig,
    OrderProfitItem,
    split_gross_profit,
    calculate_product_profit,
    calculate_order_profit,
    calculate_tier_profit,
    snapshot_line_item,
    resolve_line_item_cost,
    calculate_profit_margin,
    categorize_margin,
    calculate_roi,
    calculate_suggested_wholesale_price,
    calculate_break_even_quantity,
    analyze_profit_performance,
)
from tests.factories import standard_tiers, product_record


def config(**overrides):
    fields = dict(base_price=Decimal("80"), wholesale_price=Decimal("100"))
    fields.update(overrides)
    return ProfitConfig(**fields)


# =============================================================================
# PROFIT SPLIT
# =============================================================================

def test_seller_commission_split_conserves_gross_profit():
    breakdown = calculate_product_profit(1, config(seller_commission_percentage=Decimal("30")))

    assert breakdown.gross_profit == Decimal("20")
    assert breakdown.seller_profit == Decimal("6")
    assert breakdown.platform_profit == Decimal("14")
    assert breakdown.platform_profit + breakdown.seller_profit == breakdown.gross_profit


def test_platform_keeps_remainder_without_seller_commission():
    breakdown = calculate_product_profit(
        150,
        config(wholesale_price=Decimal("85"), platform_profit_percentage=Decimal("20")),
    )

    assert breakdown.revenue == Decimal("12750")
    assert breakdown.total_cost == Decimal("12000")
    assert breakdown.gross_profit == Decimal("750")
    assert breakdown.platform_profit == Decimal("750")
    assert breakdown.seller_profit == 0


@pytest.mark.parametrize("gross,platform,seller", [
    ("100", "20", "30"),
    ("33.33", "17.5", "12.25"),
    ("-40", "20", "30"),
    ("0", "50", "50"),
    ("1", "100", "100"),
])
def test_split_always_sums_to_gross(gross, platform, seller):
    gross = Decimal(gross)
    platform_profit, seller_profit = split_gross_profit(gross, Decimal(platform), Decimal(seller))
    assert platform_profit + seller_profit == gross


def test_seller_share_taken_from_remainder_after_platform_share():
    platform_profit, seller_profit = split_gross_profit(Decimal("100"), Decimal("20"), Decimal("30"))
    assert seller_profit == Decimal("24")
    assert platform_profit == Decimal("76")


def test_zero_revenue_margin_is_zero():
    breakdown = calculate_product_profit(0, config())
    assert breakdown.profit_margin == 0


def test_landed_unit_cost():
    cfg = config(cost_per_unit=Decimal("70"), shipping_cost=Decimal("5"), handling_cost=Decimal("2"))
    assert cfg.unit_cost == Decimal("77")
    assert config(shipping_cost=Decimal("3")).unit_cost == Decimal("83")


def test_config_from_product_uses_override_price():
    cfg = ProfitConfig.from_product(product_record(), unit_price=Decimal("90"))
    assert cfg.wholesale_price == Decimal("90")
    assert cfg.platform_profit_percentage == Decimal("20")
    assert cfg.shipping_cost == 0


# =============================================================================
# ORDER PROFIT
# =============================================================================

def test_order_profit_recomputes_margin_from_totals():
    items = [
        OrderProfitItem(product_id="a", quantity=10, config=config()),
        OrderProfitItem(product_id="b", quantity=5, config=config(base_price=Decimal("50"), wholesale_price=Decimal("100"))),
    ]
    result = calculate_order_profit(items)

    assert result.subtotal == Decimal("1500")
    assert result.total_cost == Decimal("1050")
    assert result.gross_profit == Decimal("450")
    assert result.profit_margin == Decimal("30")
    assert result.platform_profit + result.seller_profit == result.gross_profit
    assert len(result.item_breakdowns) == 2


def test_order_profit_to_dict():
    result = calculate_order_profit([OrderProfitItem(product_id=None, quantity=1, config=config())])
    data = result.to_dict()
    assert data["gross_profit"] == 20.0
    assert data["items"][0]["product_id"] is None


def test_tier_profit():
    breakdown = calculate_tier_profit(60, 80, standard_tiers(), 20)
    assert breakdown.revenue == Decimal("5400")
    assert breakdown.gross_profit == Decimal("600")


def test_tier_profit_without_matching_tier():
    assert calculate_tier_profit(5, 80, standard_tiers(), 20) is None


# =============================================================================
# SNAPSHOTS
# =============================================================================

def test_snapshot_line_item():
    product = product_record(shipping_cost=Decimal("2"))
    snapshot = snapshot_line_item(product, 10, Decimal("90"))

    assert snapshot.cost_per_unit == Decimal("82")
    assert snapshot.profit_per_unit == Decimal("8")
    assert snapshot.total_profit == Decimal("80")
    assert snapshot.profit_margin == Decimal("80") / Decimal("900") * 100


def test_snapshot_wins_over_current_product_cost():
    product = product_record(base_price=Decimal("200"))
    item = SimpleNamespace(
        quantity=10,
        price=Decimal("90"),
        total=Decimal("900"),
        cost_per_unit=Decimal("82"),
        total_profit=Decimal("80"),
        product=product,
    )
    line = resolve_line_item_cost(item)

    assert line.from_snapshot is True
    assert line.cost_per_unit == Decimal("82")
    assert line.total_cost == Decimal("820")
    assert line.gross_profit == Decimal("80")


def test_legacy_item_uses_current_product_cost():
    item = SimpleNamespace(
        quantity=10,
        price=Decimal("90"),
        total=Decimal("900"),
        cost_per_unit=None,
        total_profit=None,
        product=product_record(),
    )
    line = resolve_line_item_cost(item)

    assert line.from_snapshot is False
    assert line.cost_per_unit == Decimal("80")
    assert line.gross_profit == Decimal("100")


# =============================================================================
# PLANNING HELPERS
# =============================================================================

def test_margin_helpers():
    assert calculate_profit_margin(100, 80) == Decimal("20")
    assert calculate_profit_margin(0, 80) == 0
    assert categorize_margin(-1) == "loss"
    assert categorize_margin(45) == "high"
    assert categorize_margin(25) == "medium"
    assert categorize_margin(10) == "low"
    assert calculate_roi(20, 80) == Decimal("25")


def test_suggested_wholesale_price():
    assert calculate_suggested_wholesale_price(80, 20) == Decimal("100")
    assert calculate_suggested_wholesale_price(80, 20, shipping_cost=5) == Decimal("107")

    with pytest.raises(ValueError):
        calculate_suggested_wholesale_price(80, 100)


def test_break_even_quantity():
    assert calculate_break_even_quantity(80, 100, 1000) == 50
    assert calculate_break_even_quantity(80, 100, 1010) == 51
    assert calculate_break_even_quantity(80, 80, 1000) is None


def test_profit_performance():
    orders = [
        {"date": date(2026, 3, 1), "revenue": 1000, "cost": 800, "profit": 200},
        {"date": date(2026, 3, 2), "revenue": 1500, "cost": 1100, "profit": 400},
        {"date": date(2026, 3, 3), "revenue": 1200, "cost": 900, "profit": 300},
    ]
    summary = analyze_profit_performance(orders)

    assert summary["total_revenue"] == Decimal("3700")
    assert summary["total_profit"] == Decimal("900")
    assert summary["profit_growth"] == Decimal("50")
    assert summary["best_performing_day"]["date"] == date(2026, 3, 2)


def test_profit_performance_empty():
    summary = analyze_profit_performance([])
    assert summary["best_performing_day"] is None
    assert summary["total_profit"] == 0
