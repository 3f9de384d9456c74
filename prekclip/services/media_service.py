"""Upload handling: validates bytes and turns them into media references."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO
import io
import logging
import os
import secrets
import time

from PIL import Image, ImageOps, UnidentifiedImageError

from prekclip.core.config import Settings
from prekclip.services.errors import BadRequestError

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = {".mp4", ".mov", ".webm", ".m4v"}
IMAGE_FORMAT_EXTENSIONS = {"JPEG": ".jpg", "PNG": ".png", "GIF": ".gif", "WEBP": ".webp"}


class MediaStorage:
    def __init__(self, uploads_dir: Path, url_prefix: str, *, max_bytes: int, avatar_max_size: int):
        self.uploads_dir = Path(uploads_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes
        self.avatar_max_size = avatar_max_size

    @classmethod
    def from_settings(cls, settings: Settings) -> "MediaStorage":
        return cls(
            settings.uploads_dir,
            settings.uploads_url_prefix,
            max_bytes=settings.max_upload_bytes,
            avatar_max_size=settings.avatar_max_size,
        )

    # -------------------------------------- helpers --------------------------------------
    def _unique_name(self, ext: str) -> str:
        return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"

    def _check_size(self, data: bytes) -> None:
        if not data:
            raise BadRequestError("No file selected")
        if self.max_bytes and len(data) > self.max_bytes:
            raise BadRequestError("File too large")

    def _write(self, data: bytes, ext: str) -> str:
        name = self._unique_name(ext)
        os.makedirs(self.uploads_dir, exist_ok=True)
        with open(self.uploads_dir / name, "wb") as f:
            f.write(data)
        return f"{self.url_prefix}/{name}"

    @staticmethod
    def _open_image(data: bytes) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except Image.DecompressionBombError as exc:
            raise BadRequestError("Image dimensions are too large") from exc
        except (UnidentifiedImageError, OSError) as exc:
            raise BadRequestError("Invalid image file") from exc
        return image

    # -------------------------------------- public --------------------------------------
    def read_upload(self, stream: BinaryIO) -> bytes:
        """Read at most one byte past the limit so oversized uploads fail the size check."""
        if not self.max_bytes:
            return stream.read()
        return stream.read(self.max_bytes + 1)

    def resolve_kind(self, kind: str | None, content_type: str | None) -> str:
        """Use the declared post type, or infer it from the upload's content type."""
        declared = (kind or "").strip().lower()
        family = (content_type or "").split("/", 1)[0].lower()
        if not declared:
            declared = family
        if declared not in ("image", "video"):
            raise BadRequestError("Post type must be image or video")
        if family and family != declared:
            raise BadRequestError(f"Uploaded file is not a {declared}")
        return declared

    def save_post_media(self, data: bytes, filename: str, content_type: str | None, kind: str) -> str:
        self._check_size(data)
        if kind == "image":
            image = self._open_image(data)
            ext = IMAGE_FORMAT_EXTENSIONS.get(image.format or "")
            if not ext:
                raise BadRequestError("Unsupported image format")
        else:
            ext = os.path.splitext(filename or "")[1].lower()
            if ext not in VIDEO_EXTENSIONS:
                raise BadRequestError("Unsupported video format")
        reference = self._write(data, ext)
        logger.info("Stored %s upload %s (%d bytes)", kind, reference, len(data))
        return reference

    def discard(self, reference: str) -> None:
        """Remove a stored upload whose post/avatar update was rejected."""
        name = reference.rsplit("/", 1)[-1]
        path = self.uploads_dir / name
        if name and path.is_file():
            path.unlink()

    def save_avatar(self, data: bytes) -> str:
        self._check_size(data)
        image = self._open_image(data)
        try:
            image = ImageOps.exif_transpose(image)
        except Exception:  # pragma: no cover
            logger.debug("EXIF transpose failed; keeping original orientation")
        image = image.convert("RGB")
        image.thumbnail((self.avatar_max_size, self.avatar_max_size), Image.LANCZOS)
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=85, optimize=True)
        return self._write(buffer.getvalue(), ".jpg")
