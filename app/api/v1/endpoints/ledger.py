"""
Financial Ledger API Endpoints

- Entry listing with filters and pagination
- Period balance (credits, debits, net)
- Unreconciled entries, marking entries reconciled
- Ledger vs delivered order comparison
"""
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query

from app.api.deps import DB
from app.schemas.ledger import (
    LedgerEntryResponse,
    LedgerListResponse,
    LedgerReconcileRequest,
    LedgerCompareRequest,
)
from app.services.ledger_service import LedgerService, LedgerError, summarize_balance

router = APIRouter()


@router.get("", response_model=LedgerListResponse)
async def list_ledger_entries(
    db: DB,
    source_type: Optional[str] = Query(None, description="ORDER, EXPENSE, COMMISSION, ADJUSTMENT"),
    direction: Optional[str] = Query(None, description="DEBIT or CREDIT"),
    order_id: Optional[UUID] = None,
    start_date: Optional[date] = Query(None, description="Inclusive, by entry date"),
    end_date: Optional[date] = Query(None, description="Inclusive, by entry date"),
    reconciled: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
):
    """Ledger entries, newest first. `page_summary` totals only the returned page."""
    entries, total = await LedgerService(db).list_entries(
        source_type=source_type.upper() if source_type else None,
        direction=direction.upper() if direction else None,
        order_id=order_id,
        start_date=start_date,
        end_date=end_date,
        reconciled=reconciled,
        page=page,
        limit=limit,
    )

    page_balance = summarize_balance(entries)
    return LedgerListResponse(
        entries=[LedgerEntryResponse.model_validate(e) for e in entries],
        total=total,
        page=page,
        limit=limit,
        has_more=(page - 1) * limit + len(entries) < total,
        page_summary={
            "page_credits": float(page_balance.total_credits),
            "page_debits": float(page_balance.total_debits),
            "page_balance": float(page_balance.net_balance),
        },
        notices=[] if entries else ["No ledger entries found for the specified criteria"],
    )


@router.get("/balance")
async def get_period_balance(
    db: DB,
    start_date: date = Query(..., description="Inclusive"),
    end_date: date = Query(..., description="Inclusive"),
):
    try:
        balance = await LedgerService(db).calculate_period_balance(start_date, end_date)
    except LedgerError as e:
        raise HTTPException(status_code=400, detail=e.message)

    return {
        "period": {"start": start_date.isoformat(), "end": end_date.isoformat()},
        "balance": balance.to_dict(),
    }


@router.get("/unreconciled")
async def get_unreconciled_entries(db: DB, limit: int = Query(100, ge=1, le=1000)):
    """Oldest unreconciled entries first."""
    entries = await LedgerService(db).get_unreconciled(limit=limit)
    return {
        "entries": [LedgerEntryResponse.model_validate(e).model_dump(mode="json") for e in entries],
        "count": len(entries),
    }


@router.post("/reconcile")
async def reconcile_entries(data: LedgerReconcileRequest, db: DB):
    count = await LedgerService(db).reconcile_entries(data.entry_ids, user_id=data.user_id)
    return {
        "reconciled_count": count,
        "message": f"Reconciled {count} ledger entries",
    }


@router.post("/compare")
async def compare_with_orders(data: LedgerCompareRequest, db: DB):
    """Ledger order revenue and COGS against delivered orders created in the period."""
    try:
        comparison = await LedgerService(db).compare_with_orders(data.start_date, data.end_date)
    except LedgerError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return comparison.to_dict()
