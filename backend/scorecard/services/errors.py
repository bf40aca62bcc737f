"""
Workflow Errors

Every failure the workflow can surface is one of these classes. Each carries
the HTTP status the API layer answers with and a structured detail, so a
caller can tell a deadline rejection from a missing method without parsing
messages.
"""
from typing import Any, Dict, Optional


class WorkflowError(Exception):
    """Base class for workflow failures."""
    kind = "WorkflowError"
    status_code = 500

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason

    def to_detail(self) -> Dict[str, Any]:
        detail = {"error": self.kind, "message": self.message}
        if self.reason:
            detail["reason"] = self.reason
        return detail


class ValidationError(WorkflowError):
    """Missing or malformed input."""
    kind = "ValidationError"
    status_code = 400


class NotFoundError(WorkflowError):
    """Referenced user, assignment, indicator or method does not exist."""
    kind = "NotFoundError"
    status_code = 404


class PolicyDenied(WorkflowError):
    """A business rule rejected the action."""
    kind = "PolicyDenied"
    status_code = 403


class ConflictError(WorkflowError):
    """The document changed between read and write."""
    kind = "ConflictError"
    status_code = 409


class StorageFailure(WorkflowError):
    """Blob write or read failed. No document was changed."""
    kind = "StorageFailure"
    status_code = 500


class PersistFailure(WorkflowError):
    """Document write failed after the blob was written."""
    kind = "PersistFailure"
    status_code = 500

    def __init__(self, message: str, orphaned_path: Optional[str] = None):
        super().__init__(message)
        self.orphaned_path = orphaned_path


class NotificationFailure(WorkflowError):
    """Notification could not be delivered. Logged, never surfaced."""
    kind = "NotificationFailure"
    status_code = 500
