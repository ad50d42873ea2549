"""
Period Profit Aggregation.

Net profit for a date range:

    revenue          = Σ delivered order totals
    cost of goods    = Σ line cost (snapshot, else current product cost)
    gross profit     = revenue - cost of goods
    operating profit = gross profit - operational costs
    net profit       = operating profit - returns - tax

An empty period is not an error: it yields zeros and an informational
notice. Lines without a cost snapshot add a data-quality notice because
their cost comes from today's product cost and may not match history.
"""
import calendar
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.money import ZERO, to_decimal, safe_percentage
from app.models.order import Order, OrderStatus, OperationalCost
from app.services.profit_calculation import resolve_line_item_cost

logger = logging.getLogger(__name__)


NO_ACTIVITY_NOTICE = "No financial activity recorded for this period"


class PeriodProfitError(Exception):
    """Invalid period request."""
    def __init__(self, message: str, details: Dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


@dataclass
class PeriodProfit:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_revenue: Decimal = ZERO
    subtotal_revenue: Decimal = ZERO
    shipping_revenue: Decimal = ZERO
    cost_of_goods: Decimal = ZERO
    gross_profit: Decimal = ZERO
    gross_margin: Decimal = ZERO
    operational_costs: Decimal = ZERO
    operational_costs_by_category: Dict[str, Decimal] = field(default_factory=dict)
    operating_profit: Decimal = ZERO
    returns: Decimal = ZERO
    tax_rate: Decimal = ZERO
    tax: Decimal = ZERO
    net_profit: Decimal = ZERO
    net_margin: Decimal = ZERO
    order_count: int = 0
    return_count: int = 0
    items_without_snapshot: int = 0
    notices: List[str] = field(default_factory=list)

    @property
    def total_costs(self) -> Decimal:
        """Cost of goods plus operational costs (stored on payouts)."""
        return self.cost_of_goods + self.operational_costs

    @property
    def has_activity(self) -> bool:
        return bool(self.order_count or self.return_count or self.operational_costs_by_category)

    def to_dict(self) -> dict:
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "revenue": {
                "total": float(self.total_revenue),
                "subtotal": float(self.subtotal_revenue),
                "shipping": float(self.shipping_revenue),
                "order_count": self.order_count,
            },
            "cost_of_goods": float(self.cost_of_goods),
            "gross_profit": float(self.gross_profit),
            "gross_margin": float(self.gross_margin),
            "operational_costs": {
                "total": float(self.operational_costs),
                "by_category": {k: float(v) for k, v in self.operational_costs_by_category.items()},
            },
            "operating_profit": float(self.operating_profit),
            "returns": {
                "total": float(self.returns),
                "count": self.return_count,
            },
            "tax": {
                "rate": float(self.tax_rate),
                "amount": float(self.tax),
            },
            "net_profit": float(self.net_profit),
            "net_margin": float(self.net_margin),
            "total_costs": float(self.total_costs),
            "items_without_snapshot": self.items_without_snapshot,
            "notices": list(self.notices),
        }


def aggregate_period_profit(
    delivered_orders: Sequence[Any],
    operational_costs: Sequence[Any],
    returned_orders: Sequence[Any],
    tax_rate: Any = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> PeriodProfit:
    """Aggregate pre-loaded period records into a PeriodProfit. Pure."""
    rate = to_decimal(tax_rate if tax_rate is not None else settings.PAYOUT_TAX_RATE)
    result = PeriodProfit(start_date=start_date, end_date=end_date, tax_rate=rate)

    for order in delivered_orders:
        result.order_count += 1
        result.total_revenue += to_decimal(order.total)
        result.subtotal_revenue += to_decimal(getattr(order, "subtotal", None))
        result.shipping_revenue += to_decimal(getattr(order, "shipping", None))

        for item in order.items:
            line = resolve_line_item_cost(item)
            result.cost_of_goods += line.total_cost
            if not line.from_snapshot:
                result.items_without_snapshot += 1

    by_category: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for cost in operational_costs:
        amount = to_decimal(cost.amount)
        result.operational_costs += amount
        by_category[cost.category] += amount
    result.operational_costs_by_category = dict(by_category)

    for order in returned_orders:
        result.return_count += 1
        result.returns += to_decimal(order.total)

    result.gross_profit = result.total_revenue - result.cost_of_goods
    result.gross_margin = safe_percentage(result.gross_profit, result.total_revenue)
    result.operating_profit = result.gross_profit - result.operational_costs
    result.tax = result.total_revenue * rate
    result.net_profit = result.operating_profit - result.returns - result.tax
    result.net_margin = safe_percentage(result.net_profit, result.total_revenue)

    if not result.has_activity:
        result.notices.append(NO_ACTIVITY_NOTICE)

    if result.items_without_snapshot:
        logger.warning(
            f"{result.items_without_snapshot} order items in {start_date}..{end_date} "
            f"have no cost snapshot; using current product cost"
        )
        result.notices.append(
            f"{result.items_without_snapshot} order item(s) have no cost snapshot. "
            f"Their cost was taken from current product cost, so cost of goods may be understated."
        )

    return result


# =============================================================================
# DATE RANGES
# =============================================================================

def resolve_period_range(period_type: str, reference: Optional[date] = None) -> Tuple[date, date]:
    """
    Inclusive (start, end) of the period containing `reference`.

    Weeks start on Monday. CUSTOM has no implied range.
    """
    ref = reference or date.today()
    period = str(getattr(period_type, "value", period_type)).upper()

    if period == "DAILY":
        return ref, ref
    if period == "WEEKLY":
        start = ref - timedelta(days=ref.weekday())
        return start, start + timedelta(days=6)
    if period == "MONTHLY":
        last_day = calendar.monthrange(ref.year, ref.month)[1]
        return ref.replace(day=1), ref.replace(day=last_day)
    if period == "YEARLY":
        return date(ref.year, 1, 1), date(ref.year, 12, 31)

    raise ValueError(f"Period type {period_type} has no implied date range")


def validate_date_range(start_date: date, end_date: date, max_days: int = 366) -> Optional[str]:
    """Return an error message for an unusable range, None when it is fine."""
    if start_date > end_date:
        return "Start date must be on or before end date"
    if (end_date - start_date).days + 1 > max_days:
        return f"Date range cannot exceed {max_days} days"
    return None


def period_bounds(start_date: date, end_date: date) -> Tuple[datetime, datetime]:
    """[start 00:00 UTC, day after end 00:00 UTC) for timestamp filters."""
    start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
    end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return start, end


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _bucket_key(day: date, group_by: str) -> str:
    if group_by == "WEEK":
        return (day - timedelta(days=day.weekday())).isoformat()
    if group_by == "MONTH":
        return day.strftime("%Y-%m")
    return day.isoformat()


def group_profit_trends(
    delivered_orders: Sequence[Any],
    operational_costs: Sequence[Any] = (),
    group_by: str = "DAY",
) -> List[Dict[str, Any]]:
    """Revenue, cost and profit per DAY / WEEK (Monday) / MONTH bucket, oldest first."""
    group_by = group_by.upper()
    if group_by not in ("DAY", "WEEK", "MONTH"):
        raise ValueError(f"Unsupported grouping: {group_by}")

    buckets: Dict[str, Dict[str, Any]] = {}

    def bucket(key: str) -> Dict[str, Any]:
        if key not in buckets:
            buckets[key] = {
                "period": key,
                "order_count": 0,
                "revenue": ZERO,
                "cost_of_goods": ZERO,
                "operational_costs": ZERO,
            }
        return buckets[key]

    for order in delivered_orders:
        entry = bucket(_bucket_key(_as_date(order.created_at), group_by))
        entry["order_count"] += 1
        entry["revenue"] += to_decimal(order.total)
        for item in order.items:
            entry["cost_of_goods"] += resolve_line_item_cost(item).total_cost

    for cost in operational_costs:
        entry = bucket(_bucket_key(cost.cost_date, group_by))
        entry["operational_costs"] += to_decimal(cost.amount)

    trends = []
    for key in sorted(buckets):
        entry = buckets[key]
        gross = entry["revenue"] - entry["cost_of_goods"]
        entry["gross_profit"] = gross
        entry["profit"] = gross - entry["operational_costs"]
        entry["profit_margin"] = safe_percentage(entry["profit"], entry["revenue"])
        trends.append(entry)
    return trends


# =============================================================================
# DATABASE-BACKED SERVICE
# =============================================================================

class PeriodProfitService:
    """Loads period records from the database and aggregates them."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _delivered_orders(self, start_date: date, end_date: date) -> List[Order]:
        start, end = period_bounds(start_date, end_date)
        result = await self.db.execute(
            select(Order).where(
                and_(
                    Order.status == OrderStatus.DELIVERED.value,
                    Order.created_at >= start,
                    Order.created_at < end,
                )
            ).order_by(Order.created_at)
        )
        return list(result.scalars().all())

    async def _returned_orders(self, start_date: date, end_date: date) -> List[Order]:
        start, end = period_bounds(start_date, end_date)
        result = await self.db.execute(
            select(Order).where(
                and_(
                    Order.status == OrderStatus.RETURNED.value,
                    Order.updated_at >= start,
                    Order.updated_at < end,
                )
            )
        )
        return list(result.scalars().all())

    async def _operational_costs(self, start_date: date, end_date: date) -> List[OperationalCost]:
        result = await self.db.execute(
            select(OperationalCost).where(
                and_(
                    OperationalCost.cost_date >= start_date,
                    OperationalCost.cost_date <= end_date,
                )
            ).order_by(OperationalCost.cost_date)
        )
        return list(result.scalars().all())

    async def calculate_for_period(
        self,
        start_date: date,
        end_date: date,
        tax_rate: Any = None,
    ) -> PeriodProfit:
        """Net profit for the inclusive range [start_date, end_date]."""
        error = validate_date_range(start_date, end_date)
        if error:
            raise PeriodProfitError(error, {"start_date": str(start_date), "end_date": str(end_date)})

        delivered = await self._delivered_orders(start_date, end_date)
        returned = await self._returned_orders(start_date, end_date)
        costs = await self._operational_costs(start_date, end_date)

        period = aggregate_period_profit(
            delivered,
            costs,
            returned,
            tax_rate=tax_rate,
            start_date=start_date,
            end_date=end_date,
        )
        logger.info(
            f"Period {start_date}..{end_date}: {period.order_count} orders, "
            f"net profit {period.net_profit}"
        )
        return period

    async def get_trends(self, start_date: date, end_date: date, group_by: str = "DAY") -> List[Dict[str, Any]]:
        error = validate_date_range(start_date, end_date)
        if error:
            raise PeriodProfitError(error, {"start_date": str(start_date), "end_date": str(end_date)})

        delivered = await self._delivered_orders(start_date, end_date)
        costs = await self._operational_costs(start_date, end_date)
        return group_profit_trends(delivered, costs, group_by)
