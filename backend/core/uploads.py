"""Transient storage for images attached to a chat request.

An accepted upload lives on disk only while its request is processed.
Callers must pass every image returned by `receive` to `release` on all
exit paths of the request.
"""

import base64
import mimetypes
import os
import time
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

import structlog

from backend.core.errors import ValidationError

logger = structlog.get_logger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class UploadedImage:
    """An image persisted for the duration of one request."""
    path: Path
    mime_type: str
    size_bytes: int

    def data_uri(self) -> str:
        """Encode the stored bytes as a `data:<mime>;base64,...` URI."""
        encoded = base64.b64encode(self.path.read_bytes()).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class UploadHandler:
    """Validates, stores and deletes transient image uploads."""

    def __init__(self, upload_dir: str | os.PathLike, max_bytes: int = MAX_UPLOAD_BYTES):
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def _unique_path(self, filename: str | None, mime_type: str) -> Path:
        suffix = Path(filename).suffix if filename else ""
        if not suffix:
            suffix = mimetypes.guess_extension(mime_type) or ""
        # Millisecond timestamp keeps names sortable, the random tail keeps them unique.
        name = f"{int(time.time() * 1000)}-{uuid4().hex[:8]}{suffix.lower()}"
        return self.upload_dir / name

    def receive(
        self,
        data: bytes,
        mime_type: str,
        size_bytes: int,
        filename: str | None = None,
    ) -> UploadedImage:
        """Validate and persist an uploaded image.

        Raises:
            ValidationError: If the MIME type is not `image/*` or the file is
                larger than the size ceiling. Nothing is written in that case.
        """
        mime_type = (mime_type or "").lower()
        if not mime_type.startswith("image/"):
            logger.warning("upload.rejected", reason="mime_type", mime_type=mime_type)
            raise ValidationError("Only image uploads are allowed")
        if size_bytes > self.max_bytes:
            logger.warning("upload.rejected", reason="too_large", size_bytes=size_bytes)
            raise ValidationError(f"Image exceeds the {self.max_bytes // (1024 * 1024)} MiB limit")

        path = self._unique_path(filename, mime_type)
        path.write_bytes(data)
        logger.debug("upload.stored", path=path.name, size_bytes=size_bytes)
        return UploadedImage(path=path, mime_type=mime_type, size_bytes=size_bytes)

    def release(self, image: UploadedImage) -> None:
        """Delete the stored file. A file that is already gone is only logged."""
        try:
            image.path.unlink()
            logger.debug("upload.released", path=image.path.name)
        except FileNotFoundError:
            logger.warning("upload.already_released", path=image.path.name)
