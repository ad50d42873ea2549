"""
Profit Processing Jobs

Background jobs for:
- Profit reports for delivered orders that have none yet
"""

import logging
from typing import Dict, Any
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


async def generate_missing_profit_reports() -> Dict[str, Any]:
    """
    Write a profit report for every delivered order still missing one.

    Runs on an interval so orders marked DELIVERED outside the API still get
    reported. Each run is capped at PROFIT_REPORT_JOB_BATCH_SIZE orders; the
    rest are picked up on the next run.
    """
    from app.config import settings
    from app.database import get_db_session
    from app.services.profit_report_service import ProfitReportService

    logger.info("Starting missing profit report generation...")
    start_time = datetime.now(timezone.utc)

    try:
        async with get_db_session() as session:
            reports = await ProfitReportService(session).generate_missing_reports(
                limit=settings.PROFIT_REPORT_JOB_BATCH_SIZE
            )
            generated = len(reports)
    except Exception as e:
        logger.error(f"Missing profit report job failed: {e}")
        raise

    duration = (datetime.now(timezone.utc) - start_time).total_seconds()
    logger.info(f"Missing profit report job completed: {generated} reports in {duration:.2f}s")
    return {"generated": generated, "duration_seconds": duration}
