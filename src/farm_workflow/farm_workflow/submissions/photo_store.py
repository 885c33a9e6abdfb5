from __future__ import annotations

import io
import secrets
import time
from pathlib import Path
from typing import Optional

import structlog
from PIL import Image, UnidentifiedImageError
from werkzeug.utils import secure_filename

from ..common.validators import require_photo_extension, require_photo_size
from ..core.constants import MAX_PHOTO_BYTES
from ..core.exceptions import ValidationError
from .model import PhotoUpload

logger = structlog.get_logger(__name__)

URL_PREFIX = "/uploads/task-submissions"


class PhotoStore:
    """Persist submission photos under ``upload_dir`` and hand back their public URL."""

    def __init__(self, upload_dir: str | Path, *, max_bytes: int = MAX_PHOTO_BYTES):
        self._dir = Path(upload_dir) / "task-submissions"
        self._max_bytes = int(max_bytes)

    @property
    def directory(self) -> Path:
        return self._dir

    def save(self, photo: Optional[PhotoUpload]) -> Optional[str]:
        if photo is None or not photo.content:
            return None

        ext = require_photo_extension(secure_filename(photo.filename or ""))
        require_photo_size(photo.size, limit=self._max_bytes)
        try:
            with Image.open(io.BytesIO(photo.content)) as img:
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ValidationError("Uploaded file is not a valid image") from e

        name = f"task-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}.{ext}"
        self._dir.mkdir(parents=True, exist_ok=True)
        (self._dir / name).write_bytes(photo.content)
        logger.info("photo_saved", filename=name, size=photo.size)
        return f"{URL_PREFIX}/{name}"

    def delete(self, url: Optional[str]) -> None:
        if not url or not url.startswith(URL_PREFIX + "/"):
            return
        path = self._dir / Path(url).name
        try:
            path.unlink()
        except FileNotFoundError:
            pass
