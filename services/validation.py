"""
Image upload validation.
Checks only the declared media type and the size; file contents are never inspected.
"""

from dataclasses import dataclass
from typing import Optional

MAX_IMAGE_SIZE_BYTES = 10 * 1024 * 1024  # 10 MiB

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")


@dataclass(frozen=True)
class ImageFile:
    """Metadata and bytes of an uploaded image."""
    filename: str
    content_type: Optional[str]
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None


def validate_image_file(file: Optional[ImageFile]) -> ValidationResult:
    """
    Validate an image before any backend call is made.

    Args:
        file: Uploaded image, or None when nothing was selected

    Returns:
        ValidationResult with a human-readable reason when invalid
    """
    if file is None:
        return ValidationResult(valid=False, error="No file selected")

    content_type = (file.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        return ValidationResult(valid=False, error="Only JPEG, PNG, and WebP images are allowed")

    if file.size > MAX_IMAGE_SIZE_BYTES:
        return ValidationResult(valid=False, error="File size must be less than 10MB")

    return ValidationResult(valid=True)
