import uuid
from datetime import datetime, timezone

import pytest

from app.services.stock_service import (
    ProductNotFoundError,
    StockAdjustmentError,
    StockService,
)


async def test_reorder_alerts_by_priority(db, make_product):
    await make_product(name="Chickpeas 10kg", stock_quantity=0)
    await make_product(name="Lentils 5kg", stock_quantity=15)
    await make_product(name="Sugar 50kg", stock_quantity=25)
    await make_product(name="Basmati Rice 25kg", stock_quantity=1000)
    await make_product(name="Untracked Salt", stock_quantity=None)
    await make_product(name="Retired Flour", stock_quantity=0, is_active=False)

    report = await StockService(db).reorder_alerts()
    alerts = report.alerts

    assert [a["product_name"] for a in alerts] == ["Chickpeas 10kg", "Lentils 5kg", "Sugar 50kg"]
    assert [a["priority"] for a in alerts] == ["critical", "high", "medium"]
    assert alerts[0]["alert_message"] == "Chickpeas 10kg is OUT OF STOCK. Reorder 50 units immediately."
    assert alerts[1]["suggested_reorder_quantity"] == 50

    summary = report.to_dict()["summary"]
    assert summary == {"total": 3, "critical": 1, "high": 1, "medium": 1}


async def test_reorder_alerts_use_product_settings_and_sales(db, make_product, make_order):
    product = await make_product(name="Lentils 5kg", reorder_level=40, reorder_quantity=200)
    await make_order(product, 60)
    product.stock_quantity = 30
    await db.flush()

    today = datetime.now(timezone.utc).date()
    [alert] = (await StockService(db).reorder_alerts(today=today)).alerts

    assert alert["status"] == "reorder_needed"
    assert alert["suggested_reorder_quantity"] == 200
    # 60 units over 30 days
    assert alert["days_of_stock"] == 15
    assert alert["alert_message"] == "Lentils 5kg needs reordering (15 days remaining). Suggested order: 200 units."


async def test_adjust_stock_logs_each_change(db, make_product):
    product = await make_product(stock_quantity=100)
    service = StockService(db)
    admin = uuid.uuid4()

    added = await service.adjust_stock(product.id, "add", 20, "Supplier delivery", performed_by=admin)
    assert (added.previous_stock, added.new_stock, added.quantity) == (100, 120, 20)
    assert added.performed_by == admin

    removed = await service.adjust_stock(product.id, "remove", 5, "Damaged in transit", notes="Pallet 4")
    assert (removed.previous_stock, removed.new_stock, removed.quantity) == (120, 115, -5)
    assert removed.notes == "Damaged in transit - Pallet 4"

    counted = await service.adjust_stock(product.id, "set", 110, "Cycle count")
    assert counted.new_stock == 110
    assert product.stock_quantity == 110


async def test_adjust_untracked_stock_starts_from_zero(db, make_product):
    product = await make_product(stock_quantity=None)

    log = await StockService(db).adjust_stock(product.id, "set", 40, "Opening stock")

    assert log.previous_stock == 0
    assert product.stock_quantity == 40


async def test_adjust_stock_rejections(db, make_product):
    product = await make_product(stock_quantity=10)
    service = StockService(db)

    with pytest.raises(StockAdjustmentError) as exc_info:
        await service.adjust_stock(product.id, "remove", 50, "Write-off")
    assert exc_info.value.errors == ["Cannot remove more stock than available"]

    with pytest.raises(StockAdjustmentError) as exc_info:
        await service.adjust_stock(product.id, "add", 5, "oops")
    assert "Reason is required and must be at least 5 characters" in exc_info.value.errors

    with pytest.raises(ProductNotFoundError):
        await service.adjust_stock(uuid.uuid4(), "add", 5, "Supplier delivery")

    assert product.stock_quantity == 10
