"""
Scorecard - Workflow Models

In-memory shapes of the documents the workflow reads and writes.
Documents are plain dicts with snake_case keys; these dataclasses are the
typed view the status rules and upload lifecycle operate on.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..services.dates import parse_date


# =============================================================================
# ENUMS
# =============================================================================

class VerificationStatus(str, Enum):
    PENDING = "Pending"
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    OVERDUE = "Overdue"

    @classmethod
    def parse(cls, value: Any) -> "VerificationStatus":
        """Unknown or missing statuses read as Pending."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.PENDING


STATUS_TRANSLATIONS = {
    VerificationStatus.PENDING: "Pendiente",
    VerificationStatus.SUBMITTED: "Presentado",
    VerificationStatus.APPROVED: "Aprobado",
    VerificationStatus.REJECTED: "Rechazado",
    VerificationStatus.OVERDUE: "Vencido",
}


# =============================================================================
# EVIDENCE
# =============================================================================

@dataclass(frozen=True)
class EvidenceFile:
    """An uploaded document. Never mutated, only superseded."""
    name: str
    original_name: str
    file_name: str
    url: str
    uploaded_at: str  # YYYY-MM-DD
    size: int
    type: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "original_name": self.original_name,
            "file_name": self.file_name,
            "url": self.url,
            "uploaded_at": self.uploaded_at,
            "size": self.size,
            "type": self.type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EvidenceFile:
        return cls(
            name=data.get("name", ""),
            original_name=data.get("original_name") or data.get("name", ""),
            file_name=data.get("file_name") or "",
            url=data.get("url", ""),
            uploaded_at=str(data.get("uploaded_at") or ""),
            size=int(data.get("size") or 0),
            type=data.get("type") or "",
        )


@dataclass(frozen=True)
class VerificationMethod:
    name: str
    status: VerificationStatus = VerificationStatus.PENDING
    due_date: Optional[datetime] = None
    submitted_file: Optional[EvidenceFile] = None
    file_history: List[EvidenceFile] = field(default_factory=list)
    notes: Optional[str] = None

    def with_changes(self, **changes) -> VerificationMethod:
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "submitted_file": self.submitted_file.to_dict() if self.submitted_file else None,
            "file_history": [f.to_dict() for f in self.file_history],
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> VerificationMethod:
        submitted = data.get("submitted_file")
        return cls(
            name=data.get("name", ""),
            status=VerificationStatus.parse(data.get("status")),
            due_date=parse_date(data.get("due_date")),
            submitted_file=EvidenceFile.from_dict(submitted) if submitted else None,
            file_history=[EvidenceFile.from_dict(f) for f in (data.get("file_history") or [])],
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class Assignment:
    """An assigned indicator (one owner, one indicator, many methods)."""
    id: str
    user_id: str
    indicator_id: str
    jury: List[str] = field(default_factory=list)
    assigned_verification_methods: List[VerificationMethod] = field(default_factory=list)
    overall_status: VerificationStatus = VerificationStatus.PENDING
    responsable_name: Optional[str] = None
    perspective_id: Optional[str] = None
    assigned_date: Optional[datetime] = None
    revision: int = 0

    def with_changes(self, **changes) -> Assignment:
        return replace(self, **changes)

    def methods_document(self) -> List[Dict[str, Any]]:
        return [m.to_dict() for m in self.assigned_verification_methods]

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> Assignment:
        return cls(
            id=doc["id"],
            user_id=doc.get("user_id", ""),
            indicator_id=doc.get("indicator_id", ""),
            jury=list(doc.get("jury") or []),
            assigned_verification_methods=[
                VerificationMethod.from_dict(m) for m in (doc.get("assigned_verification_methods") or [])
            ],
            overall_status=VerificationStatus.parse(doc.get("overall_status")),
            responsable_name=doc.get("responsable_name"),
            perspective_id=doc.get("perspective_id"),
            assigned_date=parse_date(doc.get("assigned_date")),
            revision=int(doc.get("revision") or 0),
        )
