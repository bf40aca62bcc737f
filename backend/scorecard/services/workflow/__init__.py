"""
Evidence Workflow Services

Status aggregation, upload gating, file lifecycle and jury review for
assigned indicators.
"""

from .status_aggregator import (
    compute_overall_status,
    effective_method_status,
    display_overall_status,
)
from .upload_gate import UploadDenial, can_upload, find_method, normalize_method_name
from .file_lifecycle import FileLifecycleManager, IncomingFile, apply_upload
from .review import REVIEWABLE_STATUSES, ReviewService

__all__ = [
    'compute_overall_status',
    'effective_method_status',
    'display_overall_status',
    'UploadDenial',
    'can_upload',
    'find_method',
    'normalize_method_name',
    'FileLifecycleManager',
    'IncomingFile',
    'apply_upload',
    'REVIEWABLE_STATUSES',
    'ReviewService',
]
