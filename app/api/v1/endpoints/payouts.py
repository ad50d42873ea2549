"""
Partner Payout API Endpoints

- Generate a payout statement for one partner and period
- Distribute a period's net profit to every active partner
- Outstanding payouts with aging
- Status changes (approve, pay, reject) via the payout state machine
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import DB
from app.schemas.distribution import (
    PayoutGenerateRequest,
    DistributeRequest,
    PayoutStatusUpdate,
    ProfitDistributionResponse,
    PayoutGenerateResponse,
    DistributeResponse,
)
from app.services.distribution_service import (
    DistributionService,
    DistributionError,
    DistributionConflictError,
    DistributionNotFoundError,
    PartnerNotFoundError,
)
from app.services.period_profit import PeriodProfitError

router = APIRouter()


def _conflict(e: DistributionConflictError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "message": e.message,
            "existing_payout_id": str(e.existing_id) if e.existing_id else None,
        },
    )


@router.post("/generate", response_model=PayoutGenerateResponse, status_code=status.HTTP_201_CREATED)
async def generate_payout(data: PayoutGenerateRequest, db: DB):
    """
    Generate a PENDING payout for a partner over [start_date, end_date].

    The amount is the partner's share of the period's net profit (never
    negative) and is fixed from this point on.
    """
    service = DistributionService(db)
    try:
        distribution, period = await service.generate(
            data.partner_id,
            data.start_date,
            data.end_date,
            period_type=data.period_type,
            notes=data.notes,
        )
    except PartnerNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except DistributionConflictError as e:
        raise _conflict(e)
    except (DistributionError, PeriodProfitError) as e:
        raise HTTPException(status_code=400, detail=e.message)

    return PayoutGenerateResponse(
        payout=ProfitDistributionResponse.model_validate(distribution),
        calculation=period.to_dict(),
    )


@router.post("/distribute", response_model=DistributeResponse, status_code=status.HTTP_201_CREATED)
async def distribute(data: DistributeRequest, db: DB):
    """
    Generate payouts for every active partner over one period.

    Partners that already have a payout for the period are listed under
    `conflicts`. A concurrent request for the same period aborts the whole
    batch with 409; retrying is safe.
    """
    service = DistributionService(db)
    try:
        batch = await service.distribute_to_active_partners(
            data.start_date,
            data.end_date,
            period_type=data.period_type,
            notes=data.notes,
        )
    except DistributionConflictError as e:
        raise _conflict(e)
    except (DistributionError, PeriodProfitError) as e:
        raise HTTPException(status_code=400, detail=e.message)

    return DistributeResponse(
        created=[ProfitDistributionResponse.model_validate(d) for d in batch.created],
        conflicts=batch.conflicts,
        total_share_percentage=batch.total_share_percentage,
        calculation=batch.period.to_dict(),
        notices=batch.notices,
    )


@router.get("/outstanding")
async def get_outstanding_payouts(
    db: DB,
    partner_id: Optional[UUID] = Query(None, description="Only this partner's payouts"),
):
    """PENDING and APPROVED payouts, oldest first, with aging and urgency."""
    report = await DistributionService(db).list_outstanding(partner_id=partner_id)
    return report.to_dict()


@router.get("/{payout_id}", response_model=ProfitDistributionResponse)
async def get_payout(payout_id: UUID, db: DB):
    try:
        distribution = await DistributionService(db).get_distribution(payout_id)
    except DistributionNotFoundError:
        raise HTTPException(status_code=404, detail="Payout not found")
    return ProfitDistributionResponse.model_validate(distribution)


@router.post("/{payout_id}/status", response_model=ProfitDistributionResponse)
async def update_payout_status(payout_id: UUID, data: PayoutStatusUpdate, db: DB):
    """
    Change payout status.

    Allowed: PENDING -> APPROVED | REJECTED, APPROVED -> PAID | REJECTED.
    Marking as PAID requires a payment method.
    """
    try:
        distribution = await DistributionService(db).update_status(
            payout_id,
            data.status,
            user_id=data.user_id,
            payment_method=data.payment_method,
            payment_reference=data.payment_reference,
            rejection_reason=data.rejection_reason,
            notes=data.notes,
        )
    except DistributionNotFoundError:
        raise HTTPException(status_code=404, detail="Payout not found")

    return ProfitDistributionResponse.model_validate(distribution)
