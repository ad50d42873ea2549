"""
Stock Service

Database side of the stock utilities:
- Reorder alerts for active, stock-tracked products
- Manual stock adjustments with an inventory log row per change
"""

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.inventory import InventoryLog
from app.models.order import Order, OrderItem, OrderStatus
from app.models.product import Product
from app.services.stock_calculations import (
    AdjustmentType,
    StockItem,
    StockStatus,
    calculate_average_daily_sales,
    calculate_stock_status,
    generate_stock_alert,
    validate_stock_adjustment,
)

logger = logging.getLogger(__name__)


class StockError(Exception):
    """Custom exception for stock errors."""
    def __init__(self, message: str, details: Dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ProductNotFoundError(StockError):
    pass


class StockAdjustmentError(StockError):
    """Adjustment failed validation; `errors` lists every problem."""
    def __init__(self, errors: List[str], product_id: uuid.UUID):
        self.errors = errors
        super().__init__("Validation failed", {"product_id": str(product_id), "errors": errors})


ALERT_PRIORITY = {
    StockStatus.OUT_OF_STOCK: "critical",
    StockStatus.REORDER_NEEDED: "high",
    StockStatus.LOW_STOCK: "medium",
}


@dataclass
class ReorderAlerts:
    alerts: List[dict] = field(default_factory=list)

    def grouped(self) -> Dict[str, List[dict]]:
        groups = {priority: [] for priority in ("critical", "high", "medium")}
        for alert in self.alerts:
            groups[alert["priority"]].append(alert)
        return groups

    def to_dict(self) -> dict:
        grouped = self.grouped()
        return {
            "alerts": self.alerts,
            "grouped": grouped,
            "summary": {
                "total": len(self.alerts),
                **{priority: len(items) for priority, items in grouped.items()},
            },
        }


def stock_item_for(product: Product, average_daily_sales: float = 0) -> StockItem:
    """Products without their own reorder settings use the configured defaults."""
    return StockItem(
        product_id=str(product.id),
        product_name=product.name,
        sku=product.sku,
        current_stock=product.stock_quantity or 0,
        moq=product.moq or 0,
        reorder_point=product.reorder_level or settings.REORDER_LEVEL_DEFAULT,
        reorder_quantity=product.reorder_quantity or settings.REORDER_QUANTITY_DEFAULT,
        average_daily_sales=average_daily_sales,
    )


class StockService:
    """Reorder alerts and manual stock adjustments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_product(self, product_id: uuid.UUID) -> Product:
        product = await self.db.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError("Product not found", {"product_id": str(product_id)})
        return product

    async def average_daily_sales(self, today: date) -> Dict[uuid.UUID, float]:
        """Units per day from delivered orders over the last SALES_VELOCITY_DAYS days."""
        days = settings.SALES_VELOCITY_DAYS
        since = datetime.combine(today - timedelta(days=days), time.min, tzinfo=timezone.utc)
        result = await self.db.execute(
            select(OrderItem.product_id, OrderItem.quantity, Order.created_at)
            .join(Order, OrderItem.order_id == Order.id)
            .where(
                and_(
                    Order.status == OrderStatus.DELIVERED.value,
                    Order.created_at >= since,
                )
            )
        )

        history = defaultdict(list)
        for product_id, quantity, created_at in result.all():
            history[product_id].append((created_at.date(), quantity))

        return {
            product_id: calculate_average_daily_sales(sales, days=days, today=today)
            for product_id, sales in history.items()
        }

    async def reorder_alerts(self, today: Optional[date] = None) -> ReorderAlerts:
        """Active, stock-tracked products that are low, due for reorder or out of stock."""
        today = today or datetime.now(timezone.utc).date()
        result = await self.db.execute(
            select(Product).where(
                and_(
                    Product.is_active.is_(True),
                    Product.stock_quantity.is_not(None),
                )
            ).order_by(Product.stock_quantity, Product.name)
        )
        products = list(result.scalars().all())
        velocity = await self.average_daily_sales(today)

        report = ReorderAlerts()
        for product in products:
            calculation = calculate_stock_status(
                stock_item_for(product, velocity.get(product.id, 0)), today=today
            )
            priority = ALERT_PRIORITY.get(calculation.status)
            if priority is None:
                continue

            report.alerts.append({
                **calculation.to_dict(),
                "alert_message": generate_stock_alert(calculation),
                "priority": priority,
            })

        return report

    async def adjust_stock(
        self,
        product_id: uuid.UUID,
        adjustment_type: str,
        quantity: int,
        reason: Optional[str],
        notes: Optional[str] = None,
        performed_by: Optional[uuid.UUID] = None,
    ) -> InventoryLog:
        """
        Apply a manual stock adjustment and log it.

        Untracked stock (NULL) counts as 0 and becomes tracked afterwards.

        Raises:
            ProductNotFoundError: Unknown product
            StockAdjustmentError: Invalid reason, quantity or type
        """
        product = await self.get_product(product_id)
        previous = product.stock_quantity or 0

        validation = validate_stock_adjustment(previous, quantity, adjustment_type, reason)
        if not validation.is_valid:
            raise StockAdjustmentError(validation.errors, product_id)

        product.stock_quantity = validation.new_stock
        log = InventoryLog(
            product_id=product.id,
            action="ADJUSTMENT",
            adjustment_type=AdjustmentType(adjustment_type).value,
            quantity=-quantity if adjustment_type == AdjustmentType.REMOVE else quantity,
            previous_stock=previous,
            new_stock=validation.new_stock,
            notes=f"{reason.strip()} - {notes}" if notes else reason.strip(),
            performed_by=performed_by,
        )
        self.db.add(log)
        await self.db.flush()

        logger.info(
            f"Stock for {product.sku} adjusted ({adjustment_type} {quantity}): "
            f"{previous} -> {validation.new_stock}"
        )
        return log
