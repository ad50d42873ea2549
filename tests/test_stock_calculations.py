from datetime import date, timedelta

from app.services.stock_calculations import (
    StockItem,
    StockStatus,
    AdjustmentType,
    calculate_stock_status,
    validate_stock_adjustment,
    calculate_reorder_point,
    calculate_eoq,
    calculate_average_daily_sales,
    generate_stock_alert,
)


def stock_item(current_stock, reorder_point=20, reorder_quantity=0, moq=10, average_daily_sales=0):
    return StockItem(
        product_id="p-1",
        product_name="Basmati Rice 25kg",
        sku="RICE-25",
        current_stock=current_stock,
        moq=moq,
        reorder_point=reorder_point,
        reorder_quantity=reorder_quantity,
        average_daily_sales=average_daily_sales,
    )


def test_stock_status_thresholds():
    assert calculate_stock_status(stock_item(0)).status == StockStatus.OUT_OF_STOCK
    assert calculate_stock_status(stock_item(20)).status == StockStatus.REORDER_NEEDED
    assert calculate_stock_status(stock_item(30)).status == StockStatus.LOW_STOCK
    assert calculate_stock_status(stock_item(31)).status == StockStatus.IN_STOCK


def test_reorder_flag_only_at_or_below_reorder_point():
    assert calculate_stock_status(stock_item(0)).is_reorder_needed is True
    assert calculate_stock_status(stock_item(15)).is_reorder_needed is True
    assert calculate_stock_status(stock_item(25)).is_reorder_needed is False


def test_suggested_reorder_respects_moq():
    assert calculate_stock_status(stock_item(5, moq=10)).suggested_reorder_quantity == 40
    assert calculate_stock_status(stock_item(5, moq=100)).suggested_reorder_quantity == 100
    assert calculate_stock_status(stock_item(5, reorder_quantity=60)).suggested_reorder_quantity == 60


def test_days_of_stock_and_stockout_date():
    today = date(2026, 3, 1)
    calc = calculate_stock_status(stock_item(50, average_daily_sales=5), today=today)

    assert calc.days_of_stock == 10
    assert calc.estimated_stockout_date == today + timedelta(days=10)
    assert calc.to_dict()["estimated_stockout_date"] == "2026-03-11"


def test_no_sales_history_leaves_days_unknown():
    calc = calculate_stock_status(stock_item(50))
    assert calc.days_of_stock is None
    assert calc.estimated_stockout_date is None


def test_stock_adjustments():
    added = validate_stock_adjustment(10, 5, AdjustmentType.ADD, "Supplier delivery")
    assert added.is_valid and added.new_stock == 15

    removed = validate_stock_adjustment(10, 4, AdjustmentType.REMOVE, "Damaged bags")
    assert removed.is_valid and removed.new_stock == 6

    counted = validate_stock_adjustment(10, 7, AdjustmentType.SET, "Cycle count")
    assert counted.new_stock == 7


def test_stock_adjustment_errors():
    too_many = validate_stock_adjustment(10, 20, AdjustmentType.REMOVE, "Damaged bags")
    assert too_many.errors == ["Cannot remove more stock than available"]
    assert too_many.new_stock == 0

    no_reason = validate_stock_adjustment(10, 1, AdjustmentType.ADD, "oops")
    assert "Reason is required and must be at least 5 characters" in no_reason.errors

    negative = validate_stock_adjustment(10, -1, AdjustmentType.ADD, "Supplier delivery")
    assert "Adjustment quantity must be a positive number" in negative.errors

    unknown = validate_stock_adjustment(10, 1, "transfer", "Supplier delivery")
    assert unknown.errors == ["Invalid adjustment type"]
    assert unknown.new_stock == 10


def test_reorder_point_and_eoq():
    assert calculate_reorder_point(10, 5) == 120
    assert calculate_reorder_point(2.5, 3, safety_stock_days=2) == 13
    assert calculate_eoq(1000, 50, 4) == 159
    assert calculate_eoq(1000, 50, 0) == 0


def test_average_daily_sales_uses_trailing_window():
    today = date(2026, 3, 31)
    history = [
        (date(2026, 3, 30), 30),
        (date(2026, 3, 15), 60),
        (date(2026, 1, 1), 500),
    ]
    assert calculate_average_daily_sales(history, days=30, today=today) == 3


def test_stock_alerts():
    assert "OUT OF STOCK" in generate_stock_alert(calculate_stock_status(stock_item(0)))
    assert "needs reordering" in generate_stock_alert(calculate_stock_status(stock_item(10)))
    assert "running low" in generate_stock_alert(calculate_stock_status(stock_item(25)))
    assert "healthy" in generate_stock_alert(calculate_stock_status(stock_item(100)))
