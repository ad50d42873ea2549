"""
Profit Report Generation Service

Writes one ProfitReport per delivered order and fills the order's aggregate
profit fields. Line costs come from the cost snapshot frozen on each order
item at placement; current product cost is only used for legacy items.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.money import ZERO, to_decimal, safe_percentage
from app.models.order import Order, OrderStatus
from app.models.profit_report import ProfitReport
from app.services.ledger_service import LedgerService
from app.services.profit_calculation import resolve_line_item_cost, split_gross_profit

logger = logging.getLogger(__name__)


class ProfitReportError(Exception):
    """Custom exception for profit report errors."""
    def __init__(self, message: str, details: Dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class OrderNotFoundError(ProfitReportError):
    pass


class ProfitReportExistsError(ProfitReportError):
    def __init__(self, report_id: Optional[uuid.UUID], order_id: uuid.UUID):
        self.report_id = report_id
        details = {"order_id": str(order_id)}
        if report_id is not None:
            details["report_id"] = str(report_id)
        super().__init__("Profit report already exists for this order", details)


class ProfitReportService:
    """Per-order profit reports for delivered orders."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_report_for_order(self, order_id: uuid.UUID) -> Optional[ProfitReport]:
        result = await self.db.execute(
            select(ProfitReport).where(ProfitReport.order_id == order_id)
        )
        return result.scalar_one_or_none()

    async def generate_for_order(self, order_id: uuid.UUID) -> ProfitReport:
        """
        Generate the profit report for a delivered order.

        Raises:
            OrderNotFoundError: Unknown order
            ProfitReportError: Order is not DELIVERED
            ProfitReportExistsError: Report already generated (idempotency guard)
        """
        result = await self.db.execute(select(Order).where(Order.id == order_id))
        order = result.scalar_one_or_none()
        if order is None:
            raise OrderNotFoundError("Order not found", {"order_id": str(order_id)})

        if order.status != OrderStatus.DELIVERED.value:
            raise ProfitReportError(
                f"Profit reports are only generated for delivered orders (status: {order.status})",
                {"order_id": str(order_id), "status": order.status},
            )

        existing = await self.get_report_for_order(order_id)
        if existing is not None:
            raise ProfitReportExistsError(existing.id, order_id)

        return await self._build_report(order)

    async def _build_report(self, order: Order) -> ProfitReport:
        order_id = order.id
        revenue = ZERO
        cost_of_goods = ZERO
        gross_profit = ZERO
        platform_profit = ZERO
        seller_profit = ZERO
        legacy_items = 0
        seller_id = None

        for item in order.items:
            line = resolve_line_item_cost(item)
            product = item.product

            revenue += line.revenue
            cost_of_goods += line.total_cost
            gross_profit += line.gross_profit
            if not line.from_snapshot:
                legacy_items += 1

            platform_pct = to_decimal(getattr(product, "platform_profit_percentage", None))
            seller_pct = to_decimal(getattr(product, "seller_commission_percentage", None))
            line_platform, line_seller = split_gross_profit(line.gross_profit, platform_pct, seller_pct)
            platform_profit += line_platform
            seller_profit += line_seller

            if seller_id is None and product is not None:
                seller_id = product.seller_id

        if legacy_items:
            logger.warning(
                f"Order {order.order_number}: {legacy_items} items without cost snapshot, "
                f"costed from current product cost"
            )

        margin = safe_percentage(gross_profit, revenue)
        report = ProfitReport(
            order_id=order_id,
            revenue=revenue,
            cost_of_goods=cost_of_goods,
            gross_profit=gross_profit,
            net_profit=gross_profit,
            profit_margin=margin,
            platform_profit=platform_profit,
            platform_profit_percent=safe_percentage(platform_profit, gross_profit),
            seller_profit=seller_profit,
            seller_profit_percent=safe_percentage(seller_profit, gross_profit),
            seller_id=seller_id,
            legacy_items=legacy_items,
            report_period="daily",
            report_date=datetime.now(timezone.utc).date(),
        )
        self.db.add(report)

        order.total_cost = cost_of_goods
        order.gross_profit = gross_profit
        order.platform_profit = platform_profit
        order.seller_profit = seller_profit
        order.profit_margin = margin

        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            existing = await self.get_report_for_order(order_id)
            raise ProfitReportExistsError(existing.id if existing else None, order_id)

        logger.info(
            f"Profit report for order {order.order_number}: revenue {revenue}, "
            f"gross profit {gross_profit} ({margin:.2f}%)"
        )

        await LedgerService(self.db).record_order(order)
        return report

    async def generate_missing_reports(self, limit: Optional[int] = None) -> List[ProfitReport]:
        """Report every delivered order that has no report yet (batch job entry point)."""
        query = (
            select(Order)
            .outerjoin(ProfitReport, ProfitReport.order_id == Order.id)
            .where(
                and_(
                    Order.status == OrderStatus.DELIVERED.value,
                    ProfitReport.id.is_(None),
                )
            )
            .order_by(Order.created_at)
        )
        if limit:
            query = query.limit(limit)

        result = await self.db.execute(query)
        reports = []
        for order in result.scalars().all():
            reports.append(await self._build_report(order))

        logger.info(f"Generated {len(reports)} missing profit reports")
        return reports
