"""
Storage Services

Document store (SQLAlchemy tables as collections) and blob store (local files).
"""

from .document_store import DocumentStore
from .blob_store import LocalBlobStore, StoredBlob, validate_evidence_file

__all__ = [
    'DocumentStore',
    'LocalBlobStore',
    'StoredBlob',
    'validate_evidence_file',
]
