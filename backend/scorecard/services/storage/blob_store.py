"""
Blob Store

Evidence files on the local filesystem, laid out as
    {UPLOAD_DIR}/{sanitized_owner_name}/{unique_file_name}

The relative part ({owner}/{file}) is what documents reference, always
through the /api/files/ URL prefix.
"""
import logging
import os
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from uuid import uuid4

from ..dates import format_file_size
from ..errors import StorageFailure, ValidationError

logger = logging.getLogger(__name__)


UPLOAD_DIR = os.getenv(
    "UPLOAD_DIR",
    os.path.join(os.path.dirname(__file__), "..", "..", "..", "data", "uploads"),
)
MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "50"))
MAX_UPLOAD_BYTES = MAX_UPLOAD_MB * 1024 * 1024

ALLOWED_EXTENSIONS = (".pdf", ".doc", ".docx")

CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

FILE_URL_PREFIX = "/api/files/"

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class StoredBlob:
    relative_path: str
    file_name: str
    size: int


# =============================================================================
# NAMING
# =============================================================================

def sanitize_owner_name(owner_name: str) -> str:
    """Folder-safe version of a display name: 'Ana María / FIIS' -> 'Ana_María_FIIS'."""
    cleaned = _UNSAFE_CHARS.sub("", owner_name or "")
    cleaned = _WHITESPACE.sub("_", cleaned.strip())
    if cleaned in ("", ".", ".."):
        return "unknown"
    return cleaned


def generate_unique_file_name(original_name: str) -> str:
    """'informe final.pdf' -> 'informe_final_1718000000000_a1b2c3.pdf'."""
    base = Path(original_name or "file").name
    stem, ext = os.path.splitext(base)
    stem = _WHITESPACE.sub("_", _UNSAFE_CHARS.sub("", stem).strip()) or "file"
    timestamp = int(time.time() * 1000)
    return f"{stem}_{timestamp}_{uuid4().hex[:6]}{ext.lower()}"


def file_url(relative_path: str) -> str:
    return f"{FILE_URL_PREFIX}{relative_path}"


def content_type_for(path: str) -> str:
    return CONTENT_TYPES.get(os.path.splitext(path)[1].lower(), "application/octet-stream")


def is_valid_file_type(file_name: str) -> bool:
    return os.path.splitext(file_name or "")[1].lower() in ALLOWED_EXTENSIONS


def validate_evidence_file(file_name: str, size: int, max_bytes: int = MAX_UPLOAD_BYTES) -> None:
    """Raise ValidationError for files the store must not accept."""
    if size > max_bytes:
        raise ValidationError(
            f"File exceeds the maximum allowed size of {max_bytes // (1024 * 1024)}MB",
            reason="FileTooLarge",
        )
    if not is_valid_file_type(file_name):
        raise ValidationError(
            "File type not allowed. Only PDF and Word documents are accepted",
            reason="FileTypeNotAllowed",
        )


# =============================================================================
# STORE
# =============================================================================

class LocalBlobStore:
    """Filesystem-backed blob store rooted at a single upload directory."""

    def __init__(self, root_dir: str = UPLOAD_DIR):
        self.root = Path(root_dir).resolve()

    def _resolve(self, relative_path: str) -> Optional[Path]:
        """Absolute path for `relative_path`, or None when it escapes the root."""
        candidate = (self.root / relative_path).resolve()
        if candidate != self.root and self.root not in candidate.parents:
            logger.warning(f"Rejected blob path outside upload root: {relative_path}")
            return None
        return candidate

    def save(
        self,
        content: bytes,
        owner_name: str,
        indicator_id: str,
        method_name: str,
        original_name: str,
    ) -> StoredBlob:
        """Write `content` under the owner's folder. Raises StorageFailure."""
        folder = sanitize_owner_name(owner_name)
        unique_name = generate_unique_file_name(original_name)
        relative_path = f"{folder}/{unique_name}"

        try:
            owner_dir = self.root / folder
            owner_dir.mkdir(parents=True, exist_ok=True)
            (owner_dir / unique_name).write_bytes(content)
        except OSError as e:
            logger.error(f"Failed to store evidence for indicator {indicator_id} ({method_name}): {e}")
            raise StorageFailure("Internal error while saving the file") from e

        logger.info(f"Stored evidence {relative_path} ({format_file_size(len(content))}) for indicator {indicator_id}")
        return StoredBlob(relative_path=relative_path, file_name=unique_name, size=len(content))

    def read(self, relative_path: str) -> Optional[bytes]:
        path = self._resolve(relative_path)
        if path is None or not path.is_file():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            logger.error(f"Error reading blob {relative_path}: {e}")
            return None

    def exists(self, relative_path: str) -> bool:
        path = self._resolve(relative_path)
        return path is not None and path.is_file()
