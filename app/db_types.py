"""Database-agnostic type definitions for SQLAlchemy models.

This module provides type definitions that work with both SQLite and PostgreSQL.
"""
from sqlalchemy import Numeric
from sqlalchemy.dialects.postgresql import UUID as PG_UUID

# UUID type that works with both databases
UUIDType = PG_UUID

# Money columns: 14 digits, 2 decimal places
MoneyType = Numeric(14, 2)

# Percentage columns (margins may go negative)
PercentType = Numeric(7, 2)
