"""
Scorecard - Evidence API Router

Evidence upload, stored file download, and assigned-indicator lookup.
All endpoints require authentication.
"""
import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel

from ..auth import get_current_user, user_has_role
from ..dependencies import get_assignment_service, get_blob_store, get_lifecycle_manager
from ..models.db_models import UserDB, UserRole
from ..services.assignments import AssignmentService
from ..services.errors import PolicyDenied, ValidationError, WorkflowError
from ..services.storage import LocalBlobStore
from ..services.storage.blob_store import MAX_UPLOAD_BYTES, MAX_UPLOAD_MB, content_type_for
from ..services.workflow import FileLifecycleManager, IncomingFile
from .common import AssignmentResponse, EvidenceFileResponse, assignment_response, evidence_response, http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["evidence"])

# Roles that may read any assignment
OVERSIGHT_ROLES = (UserRole.ADMIN, UserRole.SUPERVISOR, UserRole.ASIGNADOR)


class UploadResponse(BaseModel):
    success: bool = True
    file: EvidenceFileResponse
    message: str


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/upload", response_model=UploadResponse)
async def upload_evidence(
    file: Optional[UploadFile] = File(None),
    assignedIndicatorId: Optional[str] = Form(None),
    verificationMethodName: Optional[str] = Form(None),
    userId: Optional[str] = Form(None),
    current_user: UserDB = Depends(get_current_user),
    manager: FileLifecycleManager = Depends(get_lifecycle_manager),
):
    """
    Upload an evidence file for one verification method of an assigned indicator.

    400 missing parameters or rejected file, 403 upload not allowed,
    404 unknown user/assignment/method, 409 concurrent change, 500 storage.
    """
    try:
        if file is None or not file.filename or not assignedIndicatorId or not verificationMethodName or not userId:
            raise ValidationError("Missing required parameters", reason="MissingParameters")

        if userId != current_user.id and not user_has_role(current_user, UserRole.ADMIN):
            raise PolicyDenied("Cannot upload evidence on behalf of another user", reason="NotOwner")

        # Never buffer more than one byte past the limit
        content = await file.read(MAX_UPLOAD_BYTES + 1)
        if len(content) > MAX_UPLOAD_BYTES:
            raise ValidationError(
                f"File exceeds the maximum allowed size of {MAX_UPLOAD_MB}MB",
                reason="FileTooLarge",
            )

        upload = IncomingFile(
            content=content,
            filename=file.filename,
            content_type=file.content_type or "application/octet-stream",
        )
        evidence = manager.submit_evidence(
            assignment_id=assignedIndicatorId,
            method_name=verificationMethodName,
            user_id=userId,
            upload=upload,
        )
    except WorkflowError as e:
        raise http_error(e)

    return UploadResponse(
        file=evidence_response(evidence),
        message="File uploaded successfully",
    )


@router.get("/files/{file_path:path}")
async def get_file(
    file_path: str,
    current_user: UserDB = Depends(get_current_user),
    blob_store: LocalBlobStore = Depends(get_blob_store),
):
    """Serve a stored evidence file inline."""
    if not blob_store.exists(file_path):
        raise HTTPException(status_code=404, detail="File not found")

    content = blob_store.read(file_path)
    if content is None:
        raise HTTPException(status_code=500, detail="Error reading file")

    file_name = os.path.basename(file_path)
    return Response(
        content=content,
        media_type=content_type_for(file_path),
        headers={
            "Content-Disposition": f'inline; filename="{file_name}"',
            "Cache-Control": "private, max-age=3600",
        },
    )


@router.get("/assigned-indicators/{assignment_id}", response_model=AssignmentResponse)
async def get_assigned_indicator(
    assignment_id: str,
    current_user: UserDB = Depends(get_current_user),
    service: AssignmentService = Depends(get_assignment_service),
):
    """Get one assigned indicator with read-time (Overdue-aware) statuses."""
    try:
        assignment = service.get(assignment_id)
    except WorkflowError as e:
        raise http_error(e)

    allowed = (
        current_user.id == assignment.user_id
        or current_user.id in assignment.jury
        or any(user_has_role(current_user, role) for role in OVERSIGHT_ROLES)
    )
    if not allowed:
        raise http_error(PolicyDenied("Not allowed to view this assignment", reason="NotParticipant"))

    return assignment_response(assignment)
