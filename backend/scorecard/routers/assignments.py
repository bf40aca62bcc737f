"""
Scorecard - Assignments Router
Assigning indicators to responsible users and jury review of their evidence.
"""
import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator

from ..auth import get_current_user, require_roles
from ..dependencies import get_assignment_service, get_review_service
from ..models.db_models import UserDB, UserRole
from ..models.scorecard import VerificationStatus
from ..services.assignments import AssignmentService
from ..services.dates import parse_date
from ..services.errors import ValidationError, WorkflowError
from ..services.workflow import REVIEWABLE_STATUSES, ReviewService
from .common import AssignmentResponse, assignment_response, http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assignments", tags=["assignments"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class CreateAssignmentRequest(BaseModel):
    user_id: str
    indicator_id: str
    jury: List[str] = []
    due_date: Optional[Any] = None  # ISO string, Spanish date string, epoch ms or {"seconds": ...}
    perspective_id: Optional[str] = None


class ReviewRequest(BaseModel):
    method_name: str
    status: str
    notes: Optional[str] = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        valid = sorted(s.value for s in REVIEWABLE_STATUSES)
        if v not in valid:
            raise ValueError(f'Invalid status. Must be one of: {", ".join(valid)}')
        return v


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.get("/mine", response_model=List[AssignmentResponse])
async def list_my_assignments(
    current_user: UserDB = Depends(get_current_user),
    service: AssignmentService = Depends(get_assignment_service),
):
    """Indicators assigned to the current user."""
    return [assignment_response(a) for a in service.list_for_user(current_user.id)]


@router.get("/jury", response_model=List[AssignmentResponse])
async def list_jury_assignments(
    current_user: UserDB = Depends(require_roles(UserRole.CALIFICADOR)),
    service: AssignmentService = Depends(get_assignment_service),
):
    """Assignments where the current user sits on the jury."""
    return [assignment_response(a) for a in service.list_for_jury(current_user.id)]


@router.post("", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    request: CreateAssignmentRequest,
    current_user: UserDB = Depends(require_roles(UserRole.ASIGNADOR)),
    service: AssignmentService = Depends(get_assignment_service),
):
    """Assign an indicator, with all of its verification methods Pending."""
    due_date = None
    if request.due_date not in (None, ""):
        due_date = parse_date(request.due_date)
        if due_date is None:
            raise http_error(ValidationError("Invalid due date", reason="InvalidDueDate"))

    try:
        assignment = service.create_assignment(
            user_id=request.user_id,
            indicator_id=request.indicator_id,
            jury=request.jury,
            due_date=due_date,
            perspective_id=request.perspective_id,
        )
    except WorkflowError as e:
        raise http_error(e)

    logger.info(f"Assignment {assignment.id} created by {current_user.email}")
    return assignment_response(assignment)


@router.post("/{assignment_id}/methods/review", response_model=AssignmentResponse)
async def review_method(
    assignment_id: str,
    request: ReviewRequest,
    current_user: UserDB = Depends(require_roles(UserRole.CALIFICADOR)),
    service: ReviewService = Depends(get_review_service),
):
    """Approve, reject or reopen one verification method."""
    try:
        assignment = service.review_method(
            assignment_id=assignment_id,
            method_name=request.method_name,
            reviewer_id=current_user.id,
            new_status=VerificationStatus(request.status),
            notes=request.notes,
        )
    except WorkflowError as e:
        raise http_error(e)

    return assignment_response(assignment)
