"""
Stock level calculations for wholesale inventory.

Status thresholds relative to the reorder point:
- 0 units               -> OUT_OF_STOCK (reorder)
- <= reorder point       -> REORDER_NEEDED (reorder)
- <= 1.5 x reorder point -> LOW_STOCK
- otherwise              -> IN_STOCK
"""
import math
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Tuple


class StockStatus(str, Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"
    REORDER_NEEDED = "reorder_needed"


class AdjustmentType(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    SET = "set"


LOW_STOCK_MULTIPLIER = 1.5
DEFAULT_SAFETY_STOCK_DAYS = 7


@dataclass
class StockItem:
    product_id: str
    product_name: str
    sku: str
    current_stock: int
    moq: int
    reorder_point: int
    reorder_quantity: int
    average_daily_sales: float = 0


@dataclass
class StockCalculation:
    item: StockItem
    status: StockStatus
    is_reorder_needed: bool
    suggested_reorder_quantity: int
    days_of_stock: Optional[int] = None
    estimated_stockout_date: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            "product_id": self.item.product_id,
            "product_name": self.item.product_name,
            "sku": self.item.sku,
            "current_stock": self.item.current_stock,
            "status": self.status.value,
            "is_reorder_needed": self.is_reorder_needed,
            "suggested_reorder_quantity": self.suggested_reorder_quantity,
            "days_of_stock": self.days_of_stock,
            "estimated_stockout_date": (
                self.estimated_stockout_date.isoformat() if self.estimated_stockout_date else None
            ),
        }


@dataclass
class StockAdjustmentResult:
    is_valid: bool
    errors: List[str]
    new_stock: int


def calculate_stock_status(item: StockItem, today: Optional[date] = None) -> StockCalculation:
    """Classify the item's stock level and suggest a reorder quantity."""
    current = item.current_stock
    reorder_point = item.reorder_point

    is_reorder_needed = False
    if current == 0:
        status = StockStatus.OUT_OF_STOCK
        is_reorder_needed = True
    elif current <= reorder_point:
        status = StockStatus.REORDER_NEEDED
        is_reorder_needed = True
    elif current <= reorder_point * LOW_STOCK_MULTIPLIER:
        status = StockStatus.LOW_STOCK
    else:
        status = StockStatus.IN_STOCK

    days_of_stock = None
    if item.average_daily_sales > 0:
        days_of_stock = math.floor(current / item.average_daily_sales)

    estimated_stockout_date = None
    if days_of_stock:
        estimated_stockout_date = (today or date.today()) + timedelta(days=days_of_stock)

    base_quantity = item.reorder_quantity or reorder_point * 2
    suggested = max(base_quantity, item.moq)

    return StockCalculation(
        item=item,
        status=status,
        is_reorder_needed=is_reorder_needed,
        suggested_reorder_quantity=suggested,
        days_of_stock=days_of_stock or None,
        estimated_stockout_date=estimated_stockout_date,
    )


def validate_stock_adjustment(
    current_stock: int,
    adjustment_quantity: int,
    adjustment_type: str,
    reason: Optional[str],
) -> StockAdjustmentResult:
    """Validate a manual stock adjustment and compute the resulting level."""
    errors: List[str] = []

    if not reason or len(reason.strip()) < 5:
        errors.append("Reason is required and must be at least 5 characters")

    if adjustment_quantity is None or adjustment_quantity < 0:
        errors.append("Adjustment quantity must be a positive number")
        adjustment_quantity = 0

    if adjustment_type == AdjustmentType.ADD:
        new_stock = current_stock + adjustment_quantity
    elif adjustment_type == AdjustmentType.REMOVE:
        new_stock = current_stock - adjustment_quantity
        if new_stock < 0:
            errors.append("Cannot remove more stock than available")
            new_stock = 0
    elif adjustment_type == AdjustmentType.SET:
        new_stock = adjustment_quantity
    else:
        errors.append("Invalid adjustment type")
        new_stock = current_stock

    return StockAdjustmentResult(is_valid=not errors, errors=errors, new_stock=new_stock)


def calculate_reorder_point(
    average_daily_sales: float,
    lead_time_days: int,
    safety_stock_days: int = DEFAULT_SAFETY_STOCK_DAYS,
) -> int:
    """Reorder point = lead-time demand + safety stock, rounded up."""
    lead_time_demand = average_daily_sales * lead_time_days
    safety_stock = average_daily_sales * safety_stock_days
    return math.ceil(lead_time_demand + safety_stock)


def calculate_eoq(annual_demand: float, ordering_cost: float, holding_cost_per_unit: float) -> int:
    """Economic order quantity: ceil(sqrt(2DS / H)); 0 when H is 0."""
    if holding_cost_per_unit == 0:
        return 0
    return math.ceil(math.sqrt((2 * annual_demand * ordering_cost) / holding_cost_per_unit))


def calculate_average_daily_sales(
    order_history: Iterable[Tuple[date, int]],
    days: int = 30,
    today: Optional[date] = None,
) -> float:
    """Units sold per day over the trailing `days` window."""
    cutoff = (today or date.today()) - timedelta(days=days)
    total_sold = sum(quantity for sold_on, quantity in order_history if sold_on >= cutoff)
    return total_sold / days if days else 0


def generate_stock_alert(calculation: StockCalculation) -> str:
    name = calculation.item.product_name
    suggested = calculation.suggested_reorder_quantity

    if calculation.status == StockStatus.OUT_OF_STOCK:
        return f"{name} is OUT OF STOCK. Reorder {suggested} units immediately."
    if calculation.status == StockStatus.REORDER_NEEDED:
        days_msg = f" ({calculation.days_of_stock} days remaining)" if calculation.days_of_stock else ""
        return f"{name} needs reordering{days_msg}. Suggested order: {suggested} units."
    if calculation.status == StockStatus.LOW_STOCK:
        return f"{name} is running low ({calculation.item.current_stock} units). Consider reordering soon."
    return f"{name} stock level is healthy ({calculation.item.current_stock} units)."
