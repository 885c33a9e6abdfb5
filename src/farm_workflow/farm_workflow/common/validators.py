from __future__ import annotations

from typing import Optional

from ..core.constants import ALLOWED_PHOTO_EXTENSIONS, MAX_PHOTO_BYTES
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_photo_size(size: int, *, limit: int = MAX_PHOTO_BYTES) -> int:
    if size > limit:
        raise ValidationError(f"Photo exceeds the {limit // (1024 * 1024)} MB limit")
    return size


def require_photo_extension(filename: Optional[str]) -> str:
    ext = (filename or "").rsplit(".", 1)[-1].lower() if "." in (filename or "") else ""
    if ext not in ALLOWED_PHOTO_EXTENSIONS:
        raise ValidationError("Only image files are allowed (jpeg, jpg, png, gif, webp)")
    return ext
