"""
Status Aggregator

Derives an assignment's overall status from its verification methods.

Precedence for the stored aggregate:
1. No methods            -> Pending
2. Any method Rejected   -> Rejected
3. All methods Approved  -> Approved
4. Any method Submitted  -> Submitted
5. Otherwise             -> Pending

Overdue never enters the stored aggregate. It is a display status computed
at read time from the due date (see effective_method_status).
"""
from datetime import datetime
from typing import Iterable, Optional

from ...models.scorecard import Assignment, VerificationMethod, VerificationStatus
from ..dates import is_past


FINAL_STATUSES = {VerificationStatus.APPROVED, VerificationStatus.REJECTED}


def compute_overall_status(methods: Iterable[VerificationMethod]) -> VerificationStatus:
    statuses = [m.status for m in methods]

    if not statuses:
        return VerificationStatus.PENDING
    if any(s == VerificationStatus.REJECTED for s in statuses):
        return VerificationStatus.REJECTED
    if all(s == VerificationStatus.APPROVED for s in statuses):
        return VerificationStatus.APPROVED
    if any(s == VerificationStatus.SUBMITTED for s in statuses):
        return VerificationStatus.SUBMITTED
    return VerificationStatus.PENDING


def effective_method_status(
    method: VerificationMethod,
    now: Optional[datetime] = None,
) -> VerificationStatus:
    """Status to display for a method: a Pending method past its due date shows as Overdue."""
    if method.status == VerificationStatus.PENDING and is_past(method.due_date, now):
        return VerificationStatus.OVERDUE

    return method.status


def display_overall_status(
    assignment: Assignment,
    now: Optional[datetime] = None,
) -> VerificationStatus:
    """
    Overall status to display, including Overdue.

    A stored Approved/Rejected aggregate is final and shown as is.
    """
    if assignment.overall_status in FINAL_STATUSES:
        return assignment.overall_status

    methods = assignment.assigned_verification_methods
    if not methods:
        return VerificationStatus.PENDING

    statuses = [effective_method_status(m, now) for m in methods]

    if all(s == VerificationStatus.APPROVED for s in statuses):
        return VerificationStatus.APPROVED
    if any(s == VerificationStatus.REJECTED for s in statuses):
        return VerificationStatus.REJECTED
    if any(s == VerificationStatus.SUBMITTED for s in statuses):
        return VerificationStatus.SUBMITTED
    if any(s == VerificationStatus.OVERDUE for s in statuses):
        return VerificationStatus.OVERDUE
    return VerificationStatus.PENDING
