"""
Utilities for validating and encoding the user's resume file.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
from pathlib import Path
from typing import Optional

from data_models import FilePayload

LOGGER = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset(
    {"application/pdf", "image/jpeg", "image/png", "image/webp", "text/plain"}
)
ALLOWED_EXTENSIONS = frozenset({".pdf", ".txt", ".jpg", ".jpeg", ".png", ".webp"})
MAX_FILE_SIZE = 10 * 1024 * 1024

TYPE_ERROR_MESSAGE = "Supported formats: PDF, Images, or Text."
SIZE_ERROR_MESSAGE = "File size limit is 10MB."

mimetypes.add_type("image/webp", ".webp")


class FileValidationError(ValueError):
    """Raised when a file is rejected before any backend call."""


class FileReadError(OSError):
    """Raised when the resume bytes cannot be read."""


def validate_file(name: str, mime_type: Optional[str], size: int) -> None:
    """
    Check a file against the type allow-list and the size ceiling.

    Args:
        name: Original file name, used only for logging.
        mime_type: Declared MIME type.
        size: File size in bytes.

    Raises:
        FileValidationError: With a user-facing message when the file is rejected.
    """
    if mime_type not in ALLOWED_MIME_TYPES:
        LOGGER.warning("Rejected %s: unsupported type %s", name, mime_type)
        raise FileValidationError(TYPE_ERROR_MESSAGE)
    if size > MAX_FILE_SIZE:
        LOGGER.warning("Rejected %s: %d bytes exceeds %d", name, size, MAX_FILE_SIZE)
        raise FileValidationError(SIZE_ERROR_MESSAGE)


def guess_mime_type(path: Path) -> Optional[str]:
    """Guess the MIME type of a file from its extension."""
    if path.suffix.lower() not in ALLOWED_EXTENSIONS:
        return None
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type


def encode_file(path: Path, mime_type: Optional[str] = None) -> FilePayload:
    """
    Read a file and wrap its bytes in a FilePayload.

    Args:
        path: Location of the resume file.
        mime_type: Declared MIME type; guessed from the extension when omitted.

    Returns:
        Base64 encoded payload.

    Raises:
        FileReadError: If the file cannot be read.
    """
    try:
        data = path.read_bytes()
    except OSError as exc:
        LOGGER.error("Failed to read %s: %s", path, exc)
        raise FileReadError(f"Failed to process file: {path.name}") from exc

    return FilePayload(
        content=base64.b64encode(data).decode("ascii"),
        mime_type=mime_type or guess_mime_type(path) or "application/octet-stream",
        original_name=path.name,
    )


def load_resume_file(path: Path) -> FilePayload:
    """
    Validate and encode a resume file from disk.

    Args:
        path: Location of the resume file.

    Returns:
        Encoded payload ready for the generation pipeline.
    """
    mime_type = guess_mime_type(path)
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise FileReadError(f"Failed to process file: {path.name}") from exc

    validate_file(path.name, mime_type, size)
    payload = encode_file(path, mime_type)
    LOGGER.info("Loaded resume %s (%s, %d bytes)", path.name, mime_type, size)
    return payload
