"""
Scorecard - Indicators Router
The indicator catalogue that assignments are created from.
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from ..auth import get_current_user, require_roles
from ..dependencies import get_indicator_service
from ..models.db_models import UserDB, UserRole
from ..services.errors import WorkflowError
from ..services.indicators import IndicatorService
from .common import http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/indicators", tags=["indicators"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class CreateIndicatorRequest(BaseModel):
    name: str
    verification_methods: List[str]
    perspective_id: Optional[str] = None
    more_information_link: Optional[str] = None


class IndicatorResponse(BaseModel):
    id: str
    name: str
    verification_methods: List[str] = []
    perspective_id: Optional[str] = None
    more_information_link: Optional[str] = None
    created_at: Optional[datetime] = None


def _indicator_response(doc) -> IndicatorResponse:
    return IndicatorResponse(
        id=doc["id"],
        name=doc["name"],
        verification_methods=doc.get("verification_methods") or [],
        perspective_id=doc.get("perspective_id"),
        more_information_link=doc.get("more_information_link"),
        created_at=doc.get("created_at"),
    )


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.get("", response_model=List[IndicatorResponse])
async def list_indicators(
    perspective_id: Optional[str] = None,
    current_user: UserDB = Depends(get_current_user),
    service: IndicatorService = Depends(get_indicator_service),
):
    """All indicators, by name. Optionally only one perspective's."""
    return [_indicator_response(doc) for doc in service.list_all(perspective_id)]


@router.get("/{indicator_id}", response_model=IndicatorResponse)
async def get_indicator(
    indicator_id: str,
    current_user: UserDB = Depends(get_current_user),
    service: IndicatorService = Depends(get_indicator_service),
):
    try:
        return _indicator_response(service.get(indicator_id))
    except WorkflowError as e:
        raise http_error(e)


@router.post("", response_model=IndicatorResponse, status_code=status.HTTP_201_CREATED)
async def create_indicator(
    request: CreateIndicatorRequest,
    current_user: UserDB = Depends(require_roles(UserRole.ASIGNADOR)),
    service: IndicatorService = Depends(get_indicator_service),
):
    """Add an indicator with the verification methods it requires."""
    try:
        doc = service.create(
            name=request.name,
            verification_methods=request.verification_methods,
            perspective_id=request.perspective_id,
            more_information_link=request.more_information_link,
        )
    except WorkflowError as e:
        raise http_error(e)

    logger.info(f"Indicator {doc['id']} created by {current_user.email}")
    return _indicator_response(doc)
