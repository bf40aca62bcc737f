"""
Upload Gate

Decides whether a verification method accepts a new evidence file.

Rules, checked in order:
1. The method must exist                                  (MethodNotFound)
2. An unresolved method past its due date is closed       (DeadlinePassed)
   Approved/Rejected methods are never blocked by their own deadline.
3. Only Pending or Overdue methods accept files           (InvalidState)
   Submitted/Approved/Rejected methods must be reopened by a reviewer first.
"""
import re
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Tuple

from ...models.scorecard import VerificationMethod, VerificationStatus
from ..dates import is_past
from .status_aggregator import FINAL_STATUSES


class UploadDenial(str, Enum):
    METHOD_NOT_FOUND = "MethodNotFound"
    DEADLINE_PASSED = "DeadlinePassed"
    INVALID_STATE = "InvalidState"


DENIAL_MESSAGES = {
    UploadDenial.METHOD_NOT_FOUND: "Verification method not found",
    UploadDenial.DEADLINE_PASSED: "Files cannot be uploaded after the due date",
    UploadDenial.INVALID_STATE: "Files cannot be uploaded in the method's current state",
}

UPLOADABLE_STATUSES = {VerificationStatus.PENDING, VerificationStatus.OVERDUE}

_WHITESPACE = re.compile(r"\s+")


def normalize_method_name(name: str) -> str:
    """Trim and collapse whitespace runs (names are often pasted with line breaks)."""
    return _WHITESPACE.sub(" ", (name or "").strip())


def find_method(
    methods: Iterable[VerificationMethod],
    name: str,
) -> Optional[VerificationMethod]:
    wanted = normalize_method_name(name)
    for method in methods:
        if normalize_method_name(method.name) == wanted:
            return method
    return None


def can_upload(
    method: Optional[VerificationMethod],
    now: Optional[datetime] = None,
) -> Tuple[bool, Optional[UploadDenial]]:
    """
    Check whether `method` accepts an upload at `now`.

    Returns (allowed, denial_reason)
    """
    if method is None:
        return False, UploadDenial.METHOD_NOT_FOUND

    if method.status not in FINAL_STATUSES and is_past(method.due_date, now):
        return False, UploadDenial.DEADLINE_PASSED

    if method.status not in UPLOADABLE_STATUSES:
        return False, UploadDenial.INVALID_STATE

    return True, None
