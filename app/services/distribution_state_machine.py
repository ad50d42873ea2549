"""
Profit Distribution (Payout) State Machine

Every payout status change goes through this module.

    PENDING ──approve──▶ APPROVED ──pay──▶ PAID
       │                    │
       └──reject──▶ REJECTED ◀──reject──┘

PAID and REJECTED are terminal. The amounts on a distribution are never
recomputed; only status and its audit fields change.
"""

from typing import Optional, List, Dict
from datetime import datetime, timezone
from fastapi import HTTPException


# =============================================================================
# STATUS DEFINITIONS
# =============================================================================

class DistributionStatus:
    """Payout status constants - use these instead of strings."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PAID = "PAID"
    REJECTED = "REJECTED"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PENDING, cls.APPROVED, cls.PAID, cls.REJECTED]

    @classmethod
    def outstanding(cls) -> List[str]:
        """Statuses that still owe the partner money."""
        return [cls.PENDING, cls.APPROVED]


# =============================================================================
# TRANSITION RULES
# =============================================================================

DISTRIBUTION_TRANSITIONS: Dict[str, List[str]] = {
    DistributionStatus.PENDING: [
        DistributionStatus.APPROVED,
        DistributionStatus.REJECTED,
    ],
    DistributionStatus.APPROVED: [
        DistributionStatus.PAID,
        DistributionStatus.REJECTED,
    ],
    DistributionStatus.PAID: [],        # Terminal
    DistributionStatus.REJECTED: [],    # Terminal
}

TRANSITION_ACTIONS: Dict[tuple, str] = {
    (DistributionStatus.PENDING, DistributionStatus.APPROVED): "Approve",
    (DistributionStatus.PENDING, DistributionStatus.REJECTED): "Reject",
    (DistributionStatus.APPROVED, DistributionStatus.PAID): "Mark as Paid",
    (DistributionStatus.APPROVED, DistributionStatus.REJECTED): "Reject",
}


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def can_transition(current_status: str, new_status: str) -> bool:
    """Check if a transition is allowed."""
    return new_status in DISTRIBUTION_TRANSITIONS.get(current_status, [])


def get_allowed_transitions(current_status: str) -> List[str]:
    return DISTRIBUTION_TRANSITIONS.get(current_status, [])


def get_transition_action(current_status: str, new_status: str) -> str:
    """Human-readable action name for a transition."""
    return TRANSITION_ACTIONS.get((current_status, new_status), f"{current_status} -> {new_status}")


def is_terminal(status: str) -> bool:
    return status in [DistributionStatus.PAID, DistributionStatus.REJECTED]


def is_outstanding(status: str) -> bool:
    return status in DistributionStatus.outstanding()


def validate_transition(current_status: str, new_status: str) -> None:
    """
    Validate a status transition. Raises HTTPException(400) if invalid.

    Unlike a no-op edit, re-applying the current status is rejected: approving
    twice would overwrite the original approval audit fields.
    """
    if new_status not in DistributionStatus.all():
        raise HTTPException(
            status_code=400,
            detail=f"Unknown payout status '{new_status}'. "
                   f"Valid statuses: {', '.join(DistributionStatus.all())}"
        )

    if not can_transition(current_status, new_status):
        allowed = get_allowed_transitions(current_status)
        if not allowed:
            raise HTTPException(
                status_code=400,
                detail=f"Payout in '{current_status}' status cannot be modified. This is a terminal state."
            )
        raise HTTPException(
            status_code=400,
            detail=f"Cannot change payout from '{current_status}' to '{new_status}'. "
                   f"Allowed transitions: {', '.join(allowed)}"
        )


# =============================================================================
# TRANSITION EXECUTOR
# =============================================================================

def transition_distribution(
    distribution,
    new_status: str,
    user_id=None,
    payment_method: Optional[str] = None,
    payment_reference: Optional[str] = None,
    rejection_reason: Optional[str] = None,
    notes: Optional[str] = None,
) -> None:
    """
    Move a ProfitDistribution to `new_status` and stamp its audit fields.

    Raises:
        HTTPException: If the transition is not allowed, or a payment is
            recorded without a payment method.
    """
    validate_transition(distribution.status, new_status)

    now = datetime.now(timezone.utc)

    if new_status == DistributionStatus.APPROVED:
        distribution.approved_by = user_id
        distribution.approved_at = now

    elif new_status == DistributionStatus.PAID:
        if not payment_method:
            raise HTTPException(
                status_code=400,
                detail="Payment method is required to mark a payout as paid"
            )
        distribution.paid_at = now
        distribution.payment_method = payment_method
        distribution.payment_reference = payment_reference

    elif new_status == DistributionStatus.REJECTED:
        distribution.rejected_at = now
        distribution.rejection_reason = rejection_reason

    if notes:
        distribution.notes = notes

    distribution.status = new_status
