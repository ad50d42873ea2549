"""
Financial Ledger Service

Books money movements as debit/credit ledger entries:
- Order revenue (credit) and cost of goods (debit) when an order's profit report is generated
- Partner payouts (debit) when a payout is marked PAID

Also answers period balance queries and reconciles ledger totals against
delivered orders. Amounts are stored positive; the direction carries the sign.
"""

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, and_, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.money import ZERO, to_decimal, format_money
from app.models.ledger import LedgerEntry, LedgerDirection, LedgerSourceType, LedgerCategory
from app.models.order import Order, OrderStatus
from app.services.period_profit import period_bounds

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Custom exception for ledger errors."""
    def __init__(self, message: str, details: Dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# =============================================================================
# PURE HELPERS
# =============================================================================

def order_cost_of_goods(order: Any) -> Decimal:
    """Snapshot cost of an order's lines. Lines without a snapshot count as 0."""
    return sum(
        (to_decimal(item.cost_per_unit) * item.quantity for item in order.items),
        ZERO,
    )


@dataclass
class PeriodBalance:
    total_credits: Decimal = ZERO
    total_debits: Decimal = ZERO
    entry_count: int = 0
    by_category: Dict[str, Decimal] = field(default_factory=dict)

    @property
    def net_balance(self) -> Decimal:
        return self.total_credits - self.total_debits

    def to_dict(self) -> dict:
        return {
            "total_credits": float(self.total_credits),
            "total_debits": float(self.total_debits),
            "net_balance": float(self.net_balance),
            "entries": self.entry_count,
            "by_category": {k: float(v) for k, v in self.by_category.items()},
        }


def summarize_balance(entries: Iterable[Any]) -> PeriodBalance:
    """Credits, debits and per-category totals. Category totals are unsigned."""
    balance = PeriodBalance()
    by_category = defaultdict(lambda: ZERO)
    for entry in entries:
        amount = to_decimal(entry.amount)
        if entry.direction == LedgerDirection.CREDIT.value:
            balance.total_credits += amount
        else:
            balance.total_debits += amount
        by_category[entry.category] += amount
        balance.entry_count += 1

    balance.by_category = dict(by_category)
    return balance


@dataclass
class LedgerComparison:
    """Ledger order totals against delivered order totals for one period."""
    start_date: date
    end_date: date
    ledger_revenue: Decimal
    ledger_cogs: Decimal
    ledger_entry_count: int
    order_revenue: Decimal
    order_cogs: Decimal
    order_count: int
    tolerance: Decimal = Decimal("0.01")
    notices: List[str] = field(default_factory=list)

    @property
    def revenue_difference(self) -> Decimal:
        return abs(self.ledger_revenue - self.order_revenue)

    @property
    def cogs_difference(self) -> Decimal:
        return abs(self.ledger_cogs - self.order_cogs)

    @property
    def revenue_matches(self) -> bool:
        return self.revenue_difference < self.tolerance

    @property
    def cogs_matches(self) -> bool:
        return self.cogs_difference < self.tolerance

    def to_dict(self) -> dict:
        return {
            "period": {"start": self.start_date.isoformat(), "end": self.end_date.isoformat()},
            "ledger": {
                "revenue": float(self.ledger_revenue),
                "cogs": float(self.ledger_cogs),
                "entry_count": self.ledger_entry_count,
            },
            "orders": {
                "revenue": float(self.order_revenue),
                "cogs": float(self.order_cogs),
                "order_count": self.order_count,
            },
            "reconciliation": {
                "revenue_matches": self.revenue_matches,
                "cogs_matches": self.cogs_matches,
                "revenue_difference": float(self.revenue_difference),
                "cogs_difference": float(self.cogs_difference),
                "overall_match": self.revenue_matches and self.cogs_matches,
            },
            "notices": self.notices,
        }


def compare_ledger_to_orders(
    start_date: date,
    end_date: date,
    entries: List[Any],
    orders: List[Any],
    tolerance: Any = None,
) -> LedgerComparison:
    """Only ORDER entries take part. Order COGS is the order's recorded total cost."""
    ledger_revenue = ZERO
    ledger_cogs = ZERO
    for entry in entries:
        if entry.source_type != LedgerSourceType.ORDER.value:
            continue
        if entry.direction == LedgerDirection.CREDIT.value:
            ledger_revenue += to_decimal(entry.amount)
        else:
            ledger_cogs += to_decimal(entry.amount)

    comparison = LedgerComparison(
        start_date=start_date,
        end_date=end_date,
        ledger_revenue=ledger_revenue,
        ledger_cogs=ledger_cogs,
        ledger_entry_count=len(entries),
        order_revenue=sum((to_decimal(o.total) for o in orders), ZERO),
        order_cogs=sum((to_decimal(o.total_cost) for o in orders), ZERO),
        order_count=len(orders),
        tolerance=to_decimal(tolerance if tolerance is not None else settings.LEDGER_RECONCILE_TOLERANCE),
    )

    if not comparison.revenue_matches:
        comparison.notices.append(
            f"Revenue discrepancy detected: {format_money(comparison.revenue_difference, settings.CURRENCY_SYMBOL)}"
        )
    if not comparison.cogs_matches:
        comparison.notices.append(
            f"COGS discrepancy detected: {format_money(comparison.cogs_difference, settings.CURRENCY_SYMBOL)}"
        )
    if comparison.revenue_matches and comparison.cogs_matches:
        comparison.notices.append("Ledger entries match order totals")

    return comparison


# =============================================================================
# SERVICE
# =============================================================================

class LedgerService:
    """Ledger bookings, queries and reconciliation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def add_entry(
        self,
        source_type: LedgerSourceType,
        source_id: uuid.UUID,
        amount: Any,
        direction: LedgerDirection,
        category: LedgerCategory,
        entry_date: date,
        subcategory: Optional[str] = None,
        source_name: Optional[str] = None,
        order_id: Optional[uuid.UUID] = None,
        party_id: Optional[uuid.UUID] = None,
        party_name: Optional[str] = None,
        party_type: Optional[str] = None,
        description: Optional[str] = None,
        created_by: Optional[uuid.UUID] = None,
    ) -> LedgerEntry:
        entry = LedgerEntry(
            source_type=source_type.value,
            source_id=source_id,
            source_name=source_name,
            order_id=order_id,
            amount=abs(to_decimal(amount)),
            direction=direction.value,
            category=category.value,
            subcategory=subcategory,
            party_id=party_id,
            party_name=party_name,
            party_type=party_type,
            description=description,
            entry_date=entry_date,
            fiscal_year=entry_date.year,
            fiscal_month=entry_date.month,
            created_by=created_by,
        )
        self.db.add(entry)
        return entry

    async def entries_for_source(self, source_type: LedgerSourceType, source_id: uuid.UUID) -> List[LedgerEntry]:
        result = await self.db.execute(
            select(LedgerEntry).where(
                and_(
                    LedgerEntry.source_type == source_type.value,
                    LedgerEntry.source_id == source_id,
                )
            ).order_by(LedgerEntry.created_at)
        )
        return list(result.scalars().all())

    async def record_order(self, order: Order) -> List[LedgerEntry]:
        """
        Book revenue (credit) and cost of goods (debit) for a delivered order.

        An order is booked once; later calls return the existing entries.
        """
        existing = await self.entries_for_source(LedgerSourceType.ORDER, order.id)
        if existing:
            return existing

        entry_date = (order.created_at or datetime.now(timezone.utc)).date()
        entries = [
            self.add_entry(
                LedgerSourceType.ORDER,
                order.id,
                order.total,
                LedgerDirection.CREDIT,
                LedgerCategory.REVENUE,
                entry_date,
                subcategory="ORDER_REVENUE",
                source_name=order.order_number,
                order_id=order.id,
                description=f"Revenue from order {order.order_number}",
            )
        ]

        cogs = order_cost_of_goods(order)
        if cogs > 0:
            entries.append(
                self.add_entry(
                    LedgerSourceType.ORDER,
                    order.id,
                    cogs,
                    LedgerDirection.DEBIT,
                    LedgerCategory.COGS,
                    entry_date,
                    subcategory="ORDER_COGS",
                    source_name=order.order_number,
                    order_id=order.id,
                    description=f"Cost of goods for order {order.order_number}",
                )
            )

        await self.db.flush()
        return entries

    async def record_payout(self, distribution: Any, created_by: Optional[uuid.UUID] = None) -> LedgerEntry:
        """Book a PAID partner payout as a debit on its payment date."""
        existing = await self.entries_for_source(LedgerSourceType.COMMISSION, distribution.id)
        if existing:
            return existing[0]

        partner = distribution.partner
        partner_name = partner.name if partner is not None else None
        paid_at = distribution.paid_at or datetime.now(timezone.utc)

        entry = self.add_entry(
            LedgerSourceType.COMMISSION,
            distribution.id,
            distribution.distribution_amount,
            LedgerDirection.DEBIT,
            LedgerCategory.PARTNER_DISTRIBUTION,
            paid_at.date(),
            subcategory="COMMISSION_PAYOUT",
            party_id=distribution.partner_id,
            party_name=partner_name,
            party_type="PARTNER",
            description=f"Commission payout to {partner_name or 'partner'}",
            created_by=created_by,
        )
        await self.db.flush()

        logger.info(f"Booked payout {distribution.id}: {distribution.distribution_amount} to {partner_name}")
        return entry

    async def list_entries(
        self,
        source_type: Optional[str] = None,
        direction: Optional[str] = None,
        order_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        reconciled: Optional[bool] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[LedgerEntry], int]:
        """Filtered entries, newest first, with the total matching count."""
        conditions = []
        if source_type:
            conditions.append(LedgerEntry.source_type == source_type)
        if direction:
            conditions.append(LedgerEntry.direction == direction)
        if order_id:
            conditions.append(LedgerEntry.order_id == order_id)
        if start_date and end_date:
            conditions.append(LedgerEntry.entry_date >= start_date)
            conditions.append(LedgerEntry.entry_date <= end_date)
        if reconciled is not None:
            conditions.append(LedgerEntry.is_reconciled.is_(reconciled))

        total = (await self.db.execute(
            select(func.count()).select_from(LedgerEntry).where(*conditions)
        )).scalar_one()

        result = await self.db.execute(
            select(LedgerEntry)
            .where(*conditions)
            .order_by(LedgerEntry.entry_date.desc(), LedgerEntry.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def _entries_between(self, start_date: date, end_date: date) -> List[LedgerEntry]:
        result = await self.db.execute(
            select(LedgerEntry).where(
                and_(
                    LedgerEntry.entry_date >= start_date,
                    LedgerEntry.entry_date <= end_date,
                )
            )
        )
        return list(result.scalars().all())

    async def calculate_period_balance(self, start_date: date, end_date: date) -> PeriodBalance:
        """Credits, debits and net balance for entries dated within [start_date, end_date]."""
        if start_date > end_date:
            raise LedgerError(
                "Start date must be on or before end date",
                {"start_date": str(start_date), "end_date": str(end_date)},
            )
        return summarize_balance(await self._entries_between(start_date, end_date))

    async def get_unreconciled(self, limit: int = 100) -> List[LedgerEntry]:
        result = await self.db.execute(
            select(LedgerEntry)
            .where(LedgerEntry.is_reconciled.is_(False))
            .order_by(LedgerEntry.created_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def reconcile_entries(self, entry_ids: List[uuid.UUID], user_id: Optional[uuid.UUID] = None) -> int:
        """Mark entries reconciled. Returns how many were newly marked."""
        if not entry_ids:
            return 0

        result = await self.db.execute(
            select(LedgerEntry).where(
                and_(
                    LedgerEntry.id.in_(entry_ids),
                    LedgerEntry.is_reconciled.is_(False),
                )
            )
        )
        entries = list(result.scalars().all())

        now = datetime.now(timezone.utc)
        for entry in entries:
            entry.is_reconciled = True
            entry.reconciled_at = now
            entry.reconciled_by = user_id
        await self.db.flush()

        logger.info(f"Reconciled {len(entries)} ledger entries")
        return len(entries)

    async def compare_with_orders(self, start_date: date, end_date: date) -> LedgerComparison:
        """Ledger order revenue and COGS against delivered orders created in the period."""
        if start_date > end_date:
            raise LedgerError(
                "Start date must be on or before end date",
                {"start_date": str(start_date), "end_date": str(end_date)},
            )

        start, end = period_bounds(start_date, end_date)
        result = await self.db.execute(
            select(Order).where(
                and_(
                    Order.status == OrderStatus.DELIVERED.value,
                    Order.created_at >= start,
                    Order.created_at < end,
                )
            )
        )
        orders = list(result.scalars().all())
        entries = await self._entries_between(start_date, end_date)

        comparison = compare_ledger_to_orders(start_date, end_date, entries, orders)
        if not (comparison.revenue_matches and comparison.cogs_matches):
            logger.warning(
                f"Ledger mismatch for {start_date}..{end_date}: "
                f"revenue diff {comparison.revenue_difference}, COGS diff {comparison.cogs_difference}"
            )
        return comparison
