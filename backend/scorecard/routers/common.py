"""
Shared router helpers: workflow error translation and response models
"""
from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException
from pydantic import BaseModel

from ..models.scorecard import Assignment, EvidenceFile, STATUS_TRANSLATIONS
from ..services.errors import WorkflowError
from ..services.workflow import display_overall_status, effective_method_status


def http_error(error: WorkflowError) -> HTTPException:
    """Translate a workflow error into an HTTPException with structured detail."""
    return HTTPException(status_code=error.status_code, detail=error.to_detail())


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class EvidenceFileResponse(BaseModel):
    name: str
    original_name: str
    file_name: str
    url: str
    uploaded_at: str
    size: int
    type: str


class VerificationMethodResponse(BaseModel):
    name: str
    status: str
    display_status: str  # Includes Overdue, computed at read time
    display_label: str
    due_date: Optional[str] = None
    submitted_file: Optional[EvidenceFileResponse] = None
    file_history: List[EvidenceFileResponse] = []
    notes: Optional[str] = None


class AssignmentResponse(BaseModel):
    id: str
    user_id: str
    indicator_id: str
    responsable_name: Optional[str] = None
    perspective_id: Optional[str] = None
    jury: List[str]
    overall_status: str
    display_status: str
    assigned_date: Optional[str] = None
    revision: int
    assigned_verification_methods: List[VerificationMethodResponse]


def evidence_response(evidence: EvidenceFile) -> EvidenceFileResponse:
    return EvidenceFileResponse(**evidence.to_dict())


def assignment_response(assignment: Assignment, now: Optional[datetime] = None) -> AssignmentResponse:
    methods = []
    for method in assignment.assigned_verification_methods:
        shown = effective_method_status(method, now)
        methods.append(VerificationMethodResponse(
            name=method.name,
            status=method.status.value,
            display_status=shown.value,
            display_label=STATUS_TRANSLATIONS[shown],
            due_date=method.due_date.isoformat() if method.due_date else None,
            submitted_file=evidence_response(method.submitted_file) if method.submitted_file else None,
            file_history=[evidence_response(f) for f in method.file_history],
            notes=method.notes,
        ))

    return AssignmentResponse(
        id=assignment.id,
        user_id=assignment.user_id,
        indicator_id=assignment.indicator_id,
        responsable_name=assignment.responsable_name,
        perspective_id=assignment.perspective_id,
        jury=assignment.jury,
        overall_status=assignment.overall_status.value,
        display_status=display_overall_status(assignment, now).value,
        assigned_date=assignment.assigned_date.isoformat() if assignment.assigned_date else None,
        revision=assignment.revision,
        assigned_verification_methods=methods,
    )
