"""
Enum Utilities for VARCHAR-based Status Fields

• Database: VARCHAR - NOT a native ENUM type
• SQLAlchemy: String(n) with Mapped[str]
• Pydantic: Python Enum for API validation
• Case: All enum values stored in UPPERCASE

INPUT (API Request):
    Pydantic Enum → .value → String → Database
    Example: DistributionStatus.APPROVED → "APPROVED" → VARCHAR

OUTPUT (API Response):
    Database → String → Return directly
"""

from enum import Enum
from typing import Any, Set


def get_enum_value(value: Any) -> str:
    """
    Safely get string value from an enum or string.

    Examples:
        >>> get_enum_value(PeriodType.MONTHLY)  # Pydantic input
        'MONTHLY'
        >>> get_enum_value("MONTHLY")  # Database value
        'MONTHLY'
        >>> get_enum_value(None)
        None
    """
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    return str(value)


# =============================================================================
# CASE NORMALIZATION FOR PYDANTIC SCHEMAS
# =============================================================================

def normalize_to_uppercase(value: Any, valid_values: Set[str]) -> Any:
    """
    Normalize a string value to UPPERCASE if it's a valid enum value.

    Invalid values are returned unchanged so Pydantic raises the validation error.

    Examples:
        >>> normalize_to_uppercase('approved', {'APPROVED', 'PAID'})
        'APPROVED'
        >>> normalize_to_uppercase('invalid', {'APPROVED', 'PAID'})
        'invalid'
    """
    if value is None:
        return value
    if isinstance(value, str):
        upper_v = value.strip().upper()
        if upper_v in valid_values:
            return upper_v
    return value


def create_uppercase_validator(field_name: str, valid_values: Set[str]) -> classmethod:
    """
    Create a Pydantic field_validator that normalizes values to UPPERCASE.

    Usage:
        class StatusUpdate(BaseModel):
            status: DistributionStatus

            _normalize_status = create_uppercase_validator('status', VALID_DISTRIBUTION_STATUSES)
    """
    from pydantic import field_validator

    @field_validator(field_name, mode='before')
    @classmethod
    def validate(cls, v):
        return normalize_to_uppercase(v, valid_values)

    return validate


# =============================================================================
# VALID VALUE SETS
# =============================================================================

VALID_DISTRIBUTION_STATUSES = {"PENDING", "APPROVED", "PAID", "REJECTED"}

VALID_PERIOD_TYPES = {"DAILY", "WEEKLY", "MONTHLY", "YEARLY", "CUSTOM"}

VALID_PAYMENT_METHODS = {"BANK_TRANSFER", "MOBILE_BANKING", "CASH", "CHEQUE"}

VALID_TREND_GROUPINGS = {"DAY", "WEEK", "MONTH"}
