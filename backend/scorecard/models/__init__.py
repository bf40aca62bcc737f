"""Scorecard - Data Models"""
from .scorecard import (
    VerificationStatus, STATUS_TRANSLATIONS,
    EvidenceFile, VerificationMethod, Assignment,
)

__all__ = [
    "VerificationStatus", "STATUS_TRANSLATIONS",
    "EvidenceFile", "VerificationMethod", "Assignment",
]
