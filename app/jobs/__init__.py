"""
Background Jobs Module

Handles scheduled tasks for:
- Profit report generation for delivered orders
"""

from app.jobs.scheduler import scheduler, start_scheduler, shutdown_scheduler
from app.jobs.profit_jobs import generate_missing_profit_reports

__all__ = [
    "scheduler",
    "start_scheduler",
    "shutdown_scheduler",
    "generate_missing_profit_reports",
]
