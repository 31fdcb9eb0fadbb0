"""
Blob storage for report images.
Images are written under UPLOAD_DIR/{folder}/{timestamp}_{filename} and served
back through the /uploads static mount.
"""

import logging
import os
import re
import time
from pathlib import Path
from typing import Optional

from services.auth import SessionContext, require_user_id

logger = logging.getLogger(__name__)

UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", "uploads"))
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class StorageError(Exception):
    """Raised when an image cannot be written to storage."""


def safe_filename(filename: Optional[str]) -> str:
    """Strip directories and unsafe characters from a client supplied filename."""
    name = Path(filename or "").name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "image.jpg"


def upload_image(
    session: Optional[SessionContext],
    content: bytes,
    filename: Optional[str],
    folder: str = "images",
) -> str:
    """
    Store raw image bytes and return their public URL.

    The millisecond timestamp prefix keeps names unique; an existing object is
    never overwritten.

    Args:
        session: Caller's session (required)
        content: Raw image bytes
        filename: Original filename from the client
        folder: Namespace, the report kind

    Returns:
        Publicly fetchable URL of the stored image

    Raises:
        NotAuthenticatedError: If there is no signed-in user
        StorageError: If the write fails
    """
    require_user_id(session)

    object_name = f"{int(time.time() * 1000)}_{safe_filename(filename)}"
    folder_path = UPLOAD_DIR / folder
    file_path = folder_path / object_name

    try:
        folder_path.mkdir(parents=True, exist_ok=True)
        with open(file_path, "xb") as buffer:
            buffer.write(content)
    except OSError as e:
        logger.error("Error uploading image %s: %s", file_path, e)
        raise StorageError(f"Failed to store image: {e}") from e

    public_url = f"{PUBLIC_BASE_URL}/uploads/{folder}/{object_name}"
    logger.info("Image uploaded: %s", public_url)
    return public_url
