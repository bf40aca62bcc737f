"""
Scorecard - SQLAlchemy ORM Models
Tables backing the user, indicator and assigned_indicator document collections
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, Integer, DateTime, Text, JSON
from ..database import Base


# =============================================================================
# ENUMS
# =============================================================================

class UserRole(str, Enum):
    """Roles a user can act under."""
    RESPONSABLE = "responsable"
    CALIFICADOR = "calificador"
    ASIGNADOR = "asignador"
    ADMIN = "admin"
    SUPERVISOR = "supervisor"


class RoleType(str, Enum):
    """Whether a user switches between several roles or holds one."""
    VARIANTE = "variante"
    UNICO = "unico"


class UserDB(Base):
    """User account. Notifications are embedded as a JSON list."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)  # UUID
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.RESPONSABLE.value)
    role_type = Column(String(20), nullable=False, default=RoleType.UNICO.value)
    available_roles = Column(JSON, nullable=True, default=list)

    faculty_id = Column(String(36), nullable=True)
    office_id = Column(String(36), nullable=True)

    # Format: [{"id": "notif_...", "title": "...", "read": false, ...}]
    notifications = Column(JSON, nullable=True, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class IndicatorDB(Base):
    """Institutional indicator and the evidence it requires."""
    __tablename__ = "indicators"

    id = Column(String(36), primary_key=True)
    name = Column(Text, nullable=False)
    more_information_link = Column(String(500), nullable=True)
    perspective_id = Column(String(36), nullable=True)

    # Names of the verification methods, e.g. ["Informe anual", "Acta de consejo"]
    verification_methods = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)


class AssignedIndicatorDB(Base):
    """
    One responsible user's obligation to evidence one indicator.

    The verification methods (with their files and history) are stored as a
    single JSON array and are always rewritten as a whole. `revision` is
    bumped on every write so concurrent writers can be detected.
    """
    __tablename__ = "assigned_indicators"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)
    indicator_id = Column(String(36), nullable=False, index=True)
    perspective_id = Column(String(36), nullable=True)
    responsable_name = Column(String(255), nullable=True)

    jury = Column(JSON, nullable=False, default=list)
    assigned_verification_methods = Column(JSON, nullable=False, default=list)
    overall_status = Column(String(20), nullable=False, default="Pending")

    assigned_date = Column(DateTime, default=datetime.utcnow)
    revision = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
