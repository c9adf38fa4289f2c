"""
app/services/upload_service.py

Purpose: Avatar file storage

- Stores uploaded files under UPLOAD_DIR with collision-free names
- Best-effort deletion of stored files (never fatal)
"""

import re
import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.logging import get_logger

logger = get_logger(__name__)


def has_upload(upload: Optional[UploadFile]) -> bool:
    """Browsers send an empty part for an untouched file input."""
    return upload is not None and bool(upload.filename)


def upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _stored_name(original: str) -> str:
    """
    Derives a unique stored filename, e.g. "me photo.PNG" -> "me-photo-1f3a9c2b7d4e.png".
    """
    original_path = Path(original)
    stem = re.sub(r"[^A-Za-z0-9_-]+", "-", original_path.stem).strip("-")[:50] or "upload"
    suffix = re.sub(r"[^A-Za-z0-9.]", "", original_path.suffix.lower())[:10]
    return f"{stem}-{uuid.uuid4().hex[:12]}{suffix}"


async def save_upload(upload: UploadFile) -> str:
    """
    Writes an uploaded file to UPLOAD_DIR.

    Args:
        upload: File part of a multipart request

    Returns:
        Stored filename (the avatar reference kept on the user)

    Raises:
        ValidationError: If the file exceeds MAX_UPLOAD_SIZE_MB
    """
    content = await upload.read()
    if len(content) > settings.max_upload_bytes:
        raise ValidationError(
            f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB}MB"
        )

    filename = _stored_name(upload.filename or "")
    (upload_dir() / filename).write_bytes(content)
    logger.info(f"Stored upload {filename} ({len(content)} bytes)")
    return filename


def discard_file(filename: Optional[str]) -> bool:
    """
    Deletes a stored file, logging instead of raising on failure.

    The default avatar sentinel is never deleted.

    Returns:
        True if a file was removed
    """
    if not filename or filename == settings.DEFAULT_AVATAR:
        return False

    # Stored names never contain directories
    path = Path(settings.UPLOAD_DIR) / Path(filename).name
    try:
        path.unlink()
        logger.info(f"Deleted stored file {path.name}")
        return True
    except FileNotFoundError:
        logger.warning(f"Stored file already missing: {path.name}")
    except OSError as e:
        logger.error(f"Failed to delete stored file {path.name}: {e}")
    return False
