"""
Profit Report API Endpoints

- Per-order profit reports for delivered orders
- Period net profit (revenue, cost of goods, operational costs, returns, tax)
- Profit trends grouped by day, week or month
"""
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import DB
from app.core.enum_utils import VALID_PERIOD_TYPES, VALID_TREND_GROUPINGS
from app.schemas.profit import ProfitReportResponse
from app.services.period_profit import PeriodProfitService, PeriodProfitError, resolve_period_range
from app.services.profit_report_service import (
    ProfitReportService,
    ProfitReportError,
    ProfitReportExistsError,
    OrderNotFoundError,
)

router = APIRouter()


@router.post("/orders/{order_id}", response_model=ProfitReportResponse, status_code=status.HTTP_201_CREATED)
async def generate_order_report(order_id: UUID, db: DB):
    """Generate the profit report of a delivered order. Each order is reported once."""
    try:
        report = await ProfitReportService(db).generate_for_order(order_id)
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")
    except ProfitReportExistsError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": e.message, "report_id": e.details.get("report_id")},
        )
    except ProfitReportError as e:
        raise HTTPException(status_code=400, detail=e.message)

    return ProfitReportResponse.model_validate(report)


@router.get("/orders/{order_id}", response_model=ProfitReportResponse)
async def get_order_report(order_id: UUID, db: DB):
    report = await ProfitReportService(db).get_report_for_order(order_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Profit report not found")
    return ProfitReportResponse.model_validate(report)


@router.post("/generate-missing")
async def generate_missing_reports(
    db: DB,
    limit: Optional[int] = Query(None, ge=1, le=1000),
):
    """Report every delivered order that has none yet."""
    reports = await ProfitReportService(db).generate_missing_reports(limit=limit)
    return {
        "generated": len(reports),
        "order_ids": [str(r.order_id) for r in reports],
    }


@router.get("/period")
async def get_period_profit(
    db: DB,
    start_date: Optional[date] = Query(None, description="Inclusive start"),
    end_date: Optional[date] = Query(None, description="Inclusive end"),
    period_type: Optional[str] = Query(None, description="DAILY, WEEKLY, MONTHLY or YEARLY (ranges around today)"),
):
    """
    Net profit for a period.

    Pass either start_date and end_date, or a period_type to use the
    current day/week/month/year. An empty period returns zeros and a notice.
    """
    if start_date is None or end_date is None:
        if not period_type:
            raise HTTPException(status_code=400, detail="Provide start_date and end_date, or period_type")
        period = period_type.strip().upper()
        if period not in VALID_PERIOD_TYPES or period == "CUSTOM":
            raise HTTPException(status_code=400, detail=f"Invalid period type: {period_type}")
        start_date, end_date = resolve_period_range(period)

    try:
        result = await PeriodProfitService(db).calculate_for_period(start_date, end_date)
    except PeriodProfitError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return result.to_dict()


@router.get("/trends")
async def get_profit_trends(
    db: DB,
    start_date: date = Query(...),
    end_date: date = Query(...),
    group_by: str = Query("DAY", description="DAY, WEEK or MONTH"),
):
    grouping = group_by.strip().upper()
    if grouping not in VALID_TREND_GROUPINGS:
        raise HTTPException(status_code=400, detail=f"Invalid grouping: {group_by}")

    try:
        trends = await PeriodProfitService(db).get_trends(start_date, end_date, grouping)
    except PeriodProfitError as e:
        raise HTTPException(status_code=400, detail=e.message)

    return {
        "group_by": grouping,
        "trends": [
            {
                "period": entry["period"],
                "order_count": entry["order_count"],
                "revenue": float(entry["revenue"]),
                "cost_of_goods": float(entry["cost_of_goods"]),
                "operational_costs": float(entry["operational_costs"]),
                "gross_profit": float(entry["gross_profit"]),
                "profit": float(entry["profit"]),
                "profit_margin": float(entry["profit_margin"]),
            }
            for entry in trends
        ],
    }
