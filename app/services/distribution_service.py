"""
Partner Profit Distribution Service

Handles partner payouts:
- Payout generation for one partner and a date range
- Batch generation for every active partner
- Status lifecycle (via distribution_state_machine)
- Outstanding payout aging and urgency

Amounts are fixed at generation time. A payout is generated at most once per
(partner, start_date, end_date); the unique constraint on that tuple makes
the duplicate check atomic under concurrent requests.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.enum_utils import get_enum_value
from app.core.money import ZERO, HUNDRED, to_decimal, percent_of
from app.models.partner import Partner, ProfitDistribution, PeriodType
from app.services.distribution_state_machine import (
    DistributionStatus,
    transition_distribution,
)
from app.services.ledger_service import LedgerService
from app.services.period_profit import PeriodProfit, PeriodProfitService

logger = logging.getLogger(__name__)


class DistributionError(Exception):
    """Custom exception for payout errors."""
    def __init__(self, message: str, details: Dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class PartnerNotFoundError(DistributionError):
    pass


class DistributionNotFoundError(DistributionError):
    pass


class DistributionConflictError(DistributionError):
    """A payout already exists for this partner and period."""
    def __init__(self, existing_id: Optional[uuid.UUID], details: Dict = None):
        self.existing_id = existing_id
        merged = dict(details or {})
        if existing_id is not None:
            merged["existing_payout_id"] = str(existing_id)
        super().__init__("A payout already exists for this partner and period", details=merged)


# =============================================================================
# PURE CALCULATIONS
# =============================================================================

URGENCY_HIGH = "high"
URGENCY_MEDIUM = "medium"
URGENCY_LOW = "low"


def calculate_distribution_amount(net_profit: Any, share_percentage: Any) -> Decimal:
    """Partner's share of net profit, clamped at zero for loss-making periods."""
    return max(ZERO, percent_of(to_decimal(net_profit), to_decimal(share_percentage)))


@dataclass
class PayoutAging:
    days_outstanding: int
    is_overdue: bool
    urgency: str

    def to_dict(self) -> dict:
        return {
            "days_outstanding": self.days_outstanding,
            "is_overdue": self.is_overdue,
            "urgency": self.urgency,
        }


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def compute_payout_aging(distribution: Any, today: Optional[date] = None) -> PayoutAging:
    """
    Age of an unpaid payout, counted from approval (or creation if not yet
    approved). Derived on every read and never stored.
    """
    today = today or datetime.now(timezone.utc).date()
    reference = distribution.approved_at or distribution.created_at
    days = (today - _as_date(reference)).days

    if days > settings.PAYOUT_HIGH_URGENCY_DAYS:
        urgency = URGENCY_HIGH
    elif days > settings.PAYOUT_OVERDUE_DAYS:
        urgency = URGENCY_MEDIUM
    else:
        urgency = URGENCY_LOW

    return PayoutAging(
        days_outstanding=days,
        is_overdue=days > settings.PAYOUT_OVERDUE_DAYS,
        urgency=urgency,
    )


@dataclass
class OutstandingReport:
    payouts: List[Dict[str, Any]] = field(default_factory=list)
    total_outstanding: Decimal = ZERO
    approved_count: int = 0
    pending_count: int = 0
    overdue_count: int = 0
    high_urgency_count: int = 0
    average_outstanding: Decimal = ZERO
    by_partner: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "summary": {
                "total_outstanding": float(self.total_outstanding),
                "approved_count": self.approved_count,
                "pending_count": self.pending_count,
                "overdue_count": self.overdue_count,
                "high_urgency_count": self.high_urgency_count,
                "average_outstanding": float(self.average_outstanding),
            },
            "payouts": self.payouts,
            "by_partner": [
                {**group, "total_outstanding": float(group["total_outstanding"])}
                for group in self.by_partner
            ],
        }


def summarize_outstanding(distributions: List[Any], today: Optional[date] = None) -> OutstandingReport:
    """Totals, counts and per-partner rollups for unpaid payouts."""
    report = OutstandingReport()
    groups: Dict[str, Dict[str, Any]] = {}

    for dist in distributions:
        if dist.status not in DistributionStatus.outstanding():
            continue

        aging = compute_payout_aging(dist, today)
        amount = to_decimal(dist.distribution_amount)
        partner = getattr(dist, "partner", None)
        partner_name = partner.name if partner is not None else None

        report.total_outstanding += amount
        if dist.status == DistributionStatus.APPROVED:
            report.approved_count += 1
        else:
            report.pending_count += 1
        if aging.is_overdue:
            report.overdue_count += 1
        if aging.urgency == URGENCY_HIGH:
            report.high_urgency_count += 1

        report.payouts.append({
            "id": str(dist.id),
            "partner_id": str(dist.partner_id),
            "partner_name": partner_name,
            "status": dist.status,
            "start_date": _as_date(dist.start_date).isoformat(),
            "end_date": _as_date(dist.end_date).isoformat(),
            "distribution_amount": float(amount),
            **aging.to_dict(),
        })

        key = str(dist.partner_id)
        group = groups.setdefault(key, {
            "partner_id": key,
            "partner_name": partner_name,
            "total_outstanding": ZERO,
            "payout_count": 0,
            "oldest_outstanding_days": 0,
        })
        group["total_outstanding"] += amount
        group["payout_count"] += 1
        group["oldest_outstanding_days"] = max(group["oldest_outstanding_days"], aging.days_outstanding)

    count = len(report.payouts)
    if count:
        report.average_outstanding = report.total_outstanding / count

    report.payouts.sort(key=lambda p: p["days_outstanding"], reverse=True)
    report.by_partner = sorted(groups.values(), key=lambda g: g["total_outstanding"], reverse=True)
    return report


@dataclass
class DistributionBatch:
    """Result of generating payouts for every active partner."""
    period: PeriodProfit
    created: List[ProfitDistribution] = field(default_factory=list)
    conflicts: List[Dict[str, str]] = field(default_factory=list)
    total_share_percentage: Decimal = ZERO
    notices: List[str] = field(default_factory=list)


# =============================================================================
# DATABASE-BACKED SERVICE
# =============================================================================

class DistributionService:
    """Payout generation, status changes and outstanding reports."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_partner(self, partner_id: uuid.UUID) -> Partner:
        partner = await self.db.get(Partner, partner_id)
        if partner is None:
            raise PartnerNotFoundError("Partner not found", {"partner_id": str(partner_id)})
        return partner

    async def get_distribution(self, distribution_id: uuid.UUID) -> ProfitDistribution:
        result = await self.db.execute(
            select(ProfitDistribution).where(ProfitDistribution.id == distribution_id)
        )
        distribution = result.scalar_one_or_none()
        if distribution is None:
            raise DistributionNotFoundError("Payout not found", {"payout_id": str(distribution_id)})
        return distribution

    async def find_existing(
        self,
        partner_id: uuid.UUID,
        start_date: date,
        end_date: date,
    ) -> Optional[ProfitDistribution]:
        result = await self.db.execute(
            select(ProfitDistribution).where(
                and_(
                    ProfitDistribution.partner_id == partner_id,
                    ProfitDistribution.start_date == start_date,
                    ProfitDistribution.end_date == end_date,
                )
            )
        )
        return result.scalar_one_or_none()

    async def _create(
        self,
        partner: Partner,
        start_date: date,
        end_date: date,
        period: PeriodProfit,
        period_type: str,
        notes: Optional[str],
    ) -> ProfitDistribution:
        partner_id = partner.id
        share = to_decimal(partner.profit_share_percentage)
        distribution = ProfitDistribution(
            partner=partner,
            partner_id=partner_id,
            period_type=period_type,
            start_date=start_date,
            end_date=end_date,
            total_revenue=period.total_revenue,
            total_costs=period.total_costs,
            net_profit=period.net_profit,
            partner_share=share,
            distribution_amount=calculate_distribution_amount(period.net_profit, share),
            status=DistributionStatus.PENDING,
            notes=notes or f"Generated on {datetime.now(timezone.utc).isoformat()}",
        )
        self.db.add(distribution)

        try:
            await self.db.flush()
        except IntegrityError:
            # Lost a race with a concurrent request for the same period
            await self.db.rollback()
            existing = await self.find_existing(partner_id, start_date, end_date)
            logger.warning(
                f"Concurrent payout generation for partner {partner_id} "
                f"({start_date}..{end_date}) rejected by unique constraint"
            )
            raise DistributionConflictError(existing.id if existing else None)

        logger.info(
            f"Generated payout {distribution.id} for partner {partner.name}: "
            f"{distribution.distribution_amount} ({share}% of {period.net_profit})"
        )
        return distribution

    async def generate(
        self,
        partner_id: uuid.UUID,
        start_date: date,
        end_date: date,
        period_type: Any = PeriodType.CUSTOM,
        notes: Optional[str] = None,
    ) -> Tuple[ProfitDistribution, PeriodProfit]:
        """
        Generate a PENDING payout for one partner and period.

        Raises:
            PartnerNotFoundError: Unknown partner
            DistributionError: Inactive partner or invalid date range
            DistributionConflictError: A payout already exists for the period
        """
        if start_date > end_date:
            raise DistributionError(
                "Start date must be on or before end date",
                {"start_date": str(start_date), "end_date": str(end_date)},
            )

        partner = await self.get_partner(partner_id)
        if not partner.is_active:
            raise DistributionError(
                "Cannot generate payout for inactive partner",
                {"partner_id": str(partner_id)},
            )

        existing = await self.find_existing(partner_id, start_date, end_date)
        if existing is not None:
            raise DistributionConflictError(existing.id)

        period = await PeriodProfitService(self.db).calculate_for_period(start_date, end_date)
        distribution = await self._create(
            partner, start_date, end_date, period, get_enum_value(period_type), notes
        )
        return distribution, period

    async def distribute_to_active_partners(
        self,
        start_date: date,
        end_date: date,
        period_type: Any = PeriodType.CUSTOM,
        notes: Optional[str] = None,
    ) -> DistributionBatch:
        """
        Generate payouts for every active partner over one period.

        Partners that already have a payout for the period are reported as
        conflicts and skipped. Shares summing above 100% are reported, not
        corrected.
        """
        if start_date > end_date:
            raise DistributionError(
                "Start date must be on or before end date",
                {"start_date": str(start_date), "end_date": str(end_date)},
            )

        result = await self.db.execute(
            select(Partner).where(Partner.is_active.is_(True)).order_by(Partner.name)
        )
        partners = list(result.scalars().all())

        period = await PeriodProfitService(self.db).calculate_for_period(start_date, end_date)
        batch = DistributionBatch(period=period)
        batch.total_share_percentage = sum(
            (to_decimal(p.profit_share_percentage) for p in partners), ZERO
        )

        if batch.total_share_percentage > HUNDRED:
            logger.warning(
                f"Active partner shares sum to {batch.total_share_percentage}% "
                f"for {start_date}..{end_date}; payouts exceed net profit"
            )
            batch.notices.append(
                f"Active partner profit shares total {batch.total_share_percentage}%, "
                f"which is more than 100% of net profit"
            )

        if not partners:
            batch.notices.append("No active partners to distribute to")

        period_type_value = get_enum_value(period_type)
        for partner in partners:
            existing = await self.find_existing(partner.id, start_date, end_date)
            if existing is not None:
                batch.conflicts.append({
                    "partner_id": str(partner.id),
                    "existing_payout_id": str(existing.id),
                })
                continue

            distribution = await self._create(
                partner, start_date, end_date, period, period_type_value, notes
            )
            batch.created.append(distribution)

        return batch

    async def update_status(
        self,
        distribution_id: uuid.UUID,
        new_status: str,
        user_id: Optional[uuid.UUID] = None,
        payment_method: Optional[str] = None,
        payment_reference: Optional[str] = None,
        rejection_reason: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ProfitDistribution:
        """Apply a status transition; invalid transitions raise HTTPException(400)."""
        distribution = await self.get_distribution(distribution_id)
        old_status = distribution.status

        transition_distribution(
            distribution,
            get_enum_value(new_status),
            user_id=user_id,
            payment_method=get_enum_value(payment_method),
            payment_reference=payment_reference,
            rejection_reason=rejection_reason,
            notes=notes,
        )
        await self.db.flush()

        if distribution.status == DistributionStatus.PAID:
            await LedgerService(self.db).record_payout(distribution, created_by=user_id)

        logger.info(f"Payout {distribution.id}: {old_status} -> {distribution.status}")
        return distribution

    async def list_outstanding(
        self,
        partner_id: Optional[uuid.UUID] = None,
        today: Optional[date] = None,
    ) -> OutstandingReport:
        """PENDING and APPROVED payouts with aging applied."""
        query = select(ProfitDistribution).where(
            ProfitDistribution.status.in_(DistributionStatus.outstanding())
        )
        if partner_id is not None:
            query = query.where(ProfitDistribution.partner_id == partner_id)

        result = await self.db.execute(query.order_by(ProfitDistribution.created_at))
        return summarize_outstanding(list(result.scalars().all()), today)
