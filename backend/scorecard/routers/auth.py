"""
Scorecard - Authentication Router
Handles login, session verification, and administrator-managed accounts.
"""
from uuid import uuid4
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, field_validator
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.db_models import RoleType, UserDB, UserRole
from ..auth import (
    hash_password, verify_password, create_access_token, get_current_user, require_admin,
    require_roles, user_has_role,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

VALID_ROLES = [r.value for r in UserRole]


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MessageResponse(BaseModel):
    message: str


class CreateUserRequest(BaseModel):
    """Request model for an administrator creating an account."""
    name: str
    email: EmailStr
    password: str
    role: str = UserRole.RESPONSABLE.value
    available_roles: List[str] = []
    faculty_id: Optional[str] = None
    office_id: Optional[str] = None

    @field_validator('password')
    @classmethod
    def validate_password_strength(cls, v):
        if len(v) < 8:
            raise ValueError('Password must be at least 8 characters')
        return v

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        if v not in VALID_ROLES:
            raise ValueError(f'Invalid role. Must be one of: {", ".join(VALID_ROLES)}')
        return v

    @field_validator('available_roles')
    @classmethod
    def validate_available_roles(cls, v):
        invalid = [r for r in v if r not in VALID_ROLES]
        if invalid:
            raise ValueError(f'Invalid roles: {", ".join(invalid)}')
        return v


class ChangePasswordRequest(BaseModel):
    """Request model for changing password."""
    current_password: str
    new_password: str
    confirm_password: str

    @field_validator('new_password')
    @classmethod
    def validate_password_strength(cls, v):
        if len(v) < 8:
            raise ValueError('Password must be at least 8 characters')
        return v

    @field_validator('confirm_password')
    @classmethod
    def passwords_match(cls, v, info):
        if 'new_password' in info.data and v != info.data['new_password']:
            raise ValueError('Passwords do not match')
        return v


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    role_type: Optional[str] = None
    available_roles: List[str] = []
    faculty_id: Optional[str] = None
    office_id: Optional[str] = None


def _user_response(user: UserDB) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        role_type=user.role_type,
        available_roles=user.available_roles or [],
        faculty_id=user.faculty_id,
        office_id=user.office_id,
    )


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """
    Authenticate user and return JWT token.
    """
    user = db.query(UserDB).filter(UserDB.email == request.email).first()

    if not user or not verify_password(request.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(user.id, user.email, user.role)

    logger.info(f"User logged in: {request.email}")
    return TokenResponse(access_token=access_token)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: UserDB = Depends(get_current_user)):
    """
    Get current authenticated user info.
    """
    return _user_response(current_user)


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    role: Optional[str] = None,
    current_user: UserDB = Depends(require_roles(UserRole.ASIGNADOR)),
    db: Session = Depends(get_db)
):
    """
    List accounts, e.g. to pick the responsible user and jury of an assignment.
    With `role`, only users holding that role (primary or available).
    """
    if role is not None and role not in VALID_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}"
        )

    users = db.query(UserDB).order_by(UserDB.name).all()
    if role is not None:
        users = [u for u in users if user_has_role(u, UserRole(role))]
    return [_user_response(u) for u in users]


@router.put("/password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    current_user: UserDB = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Change the current user's password.
    """
    if not verify_password(request.current_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    current_user.password_hash = hash_password(request.new_password)
    db.commit()

    logger.info(f"Password changed for user: {current_user.email}")
    return MessageResponse(message="Password changed successfully")


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: CreateUserRequest,
    admin: UserDB = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Create an account. Accounts are provisioned by administrators only.
    """
    existing_email = db.query(UserDB).filter(UserDB.email == request.email).first()
    if existing_email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    roles = list(dict.fromkeys([request.role, *request.available_roles]))
    user = UserDB(
        id=str(uuid4()),
        name=request.name,
        email=request.email,
        password_hash=hash_password(request.password),
        role=request.role,
        role_type=RoleType.VARIANTE.value if len(roles) > 1 else RoleType.UNICO.value,
        available_roles=roles,
        faculty_id=request.faculty_id,
        office_id=request.office_id,
        notifications=[],
    )

    db.add(user)
    db.commit()

    logger.info(f"User {request.email} created by admin {admin.email}")
    return _user_response(user)
