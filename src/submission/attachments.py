"""
Claim Attachments

References to supporting documents uploaded alongside a claim. The wizard
only records references; file contents live in an external attachment
store and are never inspected here.

Accepted extensions: pdf, jpg, jpeg, png, doc, docx. The 10 MB limit is
advisory: oversized files are logged, not rejected.
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, Optional
from uuid import uuid4

from intake.errors import IntakeError

logger = logging.getLogger(__name__)


class AttachmentRejectedError(IntakeError):
    """Raised when an attachment reference fails the filename checks."""
    pass


class AttachmentCategory(str, Enum):
    """Supporting document slots on the submit step."""
    CLAIMANT_STATEMENT = "claimantStatement"
    WITNESS_STATEMENTS = "witnessStatements"
    MEDICAL_RECORDS = "medicalRecords"
    PHOTOS = "photos"
    OTHER_DOCS = "otherDocs"

    @property
    def display_name(self) -> str:
        names = {
            AttachmentCategory.CLAIMANT_STATEMENT: "Claimant's Statement",
            AttachmentCategory.WITNESS_STATEMENTS: "Witness Statements",
            AttachmentCategory.MEDICAL_RECORDS: "Medical Records",
            AttachmentCategory.PHOTOS: "Photos",
            AttachmentCategory.OTHER_DOCS: "Other Documents",
        }
        return names[self]


ALLOWED_EXTENSIONS: FrozenSet[str] = frozenset({"pdf", "jpg", "jpeg", "png", "doc", "docx"})

CONTENT_TYPES: Dict[str, str] = {
    "pdf": "application/pdf",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

ADVISORY_MAX_BYTES = 10 * 1024 * 1024

# Dangerous patterns in filenames
DANGEROUS_FILENAME_PATTERNS = [
    r'\.\.',           # Path traversal
    r'[<>:"|?*]',      # Windows reserved characters
    r'[\x00-\x1f]',    # Control characters
]

MAX_FILENAME_LENGTH = 255


@dataclass(frozen=True)
class AttachmentRef:
    """Pointer to a stored upload."""
    category: AttachmentCategory
    filename: str
    size_bytes: int
    content_type: str
    storage_key: str = field(default_factory=lambda: uuid4().hex)
    added_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def extension(self) -> str:
        return get_extension(self.filename)

    @property
    def is_oversized(self) -> bool:
        return self.size_bytes > ADVISORY_MAX_BYTES

    def to_dict(self) -> Dict[str, object]:
        return {
            "category": self.category.value,
            "filename": self.filename,
            "size_bytes": self.size_bytes,
            "content_type": self.content_type,
            "storage_key": self.storage_key,
        }


def get_extension(filename: str) -> str:
    """Lowercase extension without the dot, or '' if there is none."""
    if '.' not in filename:
        return ''
    return filename.rsplit('.', 1)[-1].lower()


def sanitize_filename(filename: str) -> str:
    """
    Strip path components and unsafe characters from an upload name.

    Raises:
        AttachmentRejectedError: If nothing usable is left
    """
    if not filename or not filename.strip():
        raise AttachmentRejectedError("Filename cannot be empty")

    filename = os.path.basename(filename.replace('\\', '/')).strip()
    for pattern in DANGEROUS_FILENAME_PATTERNS:
        filename = re.sub(pattern, '_', filename)
    filename = filename.lstrip('.')

    if not filename:
        raise AttachmentRejectedError("Filename invalid after sanitization")

    if len(filename) > MAX_FILENAME_LENGTH:
        name, ext = os.path.splitext(filename)
        filename = name[:MAX_FILENAME_LENGTH - len(ext)] + ext

    return filename


def make_attachment_ref(
    category: AttachmentCategory,
    filename: str,
    size_bytes: int,
    max_size_bytes: int = ADVISORY_MAX_BYTES,
    storage_key: Optional[str] = None,
) -> AttachmentRef:
    """
    Build a reference for an upload after checking its name.

    Raises:
        AttachmentRejectedError: For disallowed extensions or unusable names
    """
    category = AttachmentCategory(category)
    safe_name = sanitize_filename(filename)
    extension = get_extension(safe_name)
    if extension not in ALLOWED_EXTENSIONS:
        raise AttachmentRejectedError(
            f"File type '.{extension or '?'}' is not allowed. "
            f"Supported types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )
    if size_bytes < 0:
        raise AttachmentRejectedError(f"Invalid file size: {size_bytes}")
    if size_bytes > max_size_bytes:
        logger.warning(
            f"Attachment {safe_name} is {size_bytes / (1024 * 1024):.1f}MB, "
            f"above the advised {max_size_bytes / (1024 * 1024):.0f}MB"
        )

    kwargs = {"storage_key": storage_key} if storage_key else {}
    return AttachmentRef(
        category=category,
        filename=safe_name,
        size_bytes=size_bytes,
        content_type=CONTENT_TYPES[extension],
        **kwargs,
    )


class AttachmentStore(ABC):
    """External storage for uploaded files."""

    @abstractmethod
    def put(self, ref: AttachmentRef, content: bytes) -> None:
        pass

    @abstractmethod
    def load(self, ref: AttachmentRef) -> bytes:
        """Raises KeyError if the reference is unknown."""
        pass

    @abstractmethod
    def delete(self, ref: AttachmentRef) -> bool:
        pass


class InMemoryAttachmentStore(AttachmentStore):
    """Attachment store for development and testing."""

    def __init__(self):
        self._blobs: Dict[str, bytes] = {}

    def put(self, ref: AttachmentRef, content: bytes) -> None:
        self._blobs[ref.storage_key] = bytes(content)

    def load(self, ref: AttachmentRef) -> bytes:
        return self._blobs[ref.storage_key]

    def delete(self, ref: AttachmentRef) -> bool:
        return self._blobs.pop(ref.storage_key, None) is not None

    def __len__(self) -> int:
        return len(self._blobs)
