"""
Image storage for submission attachments.

Uploads are validated by content (python-magic, not the client's declared
type), renamed to a random UUID and written under UPLOAD_DIR. Files are
served by the StaticFiles mount at /uploads.
"""

import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Protocol

import magic
from loguru import logger

from models.config import settings
from models.exceptions import ValidationException

ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

URL_PREFIX = "/uploads"


@dataclass(frozen=True)
class StoredImage:
    url: str
    public_id: str


class UploadLike(Protocol):
    filename: Optional[str]
    file: BinaryIO


class ImageStorage(Protocol):
    def upload(self, upload: UploadLike, folder: str) -> StoredImage: ...

    def delete(self, public_id: str) -> None: ...


class LocalImageStorage:
    """Stores images on local disk below ``root``."""

    def __init__(self, root: Optional[str] = None, max_size: Optional[int] = None):
        self.root = Path(root or settings.UPLOAD_DIR)
        self.max_size = max_size or settings.MAX_IMAGE_SIZE_BYTES

    def upload(self, upload: UploadLike, folder: str) -> StoredImage:
        """
        Validate and store one uploaded image.

        Args:
            upload: FastAPI UploadFile (or anything with ``file``)
            folder: Sub-directory, e.g. "issues" or "suggestions"

        Returns:
            StoredImage with a /uploads URL and the relative path as public_id

        Raises:
            ValidationException: If the file is empty, too large or not an image
        """
        content = upload.file.read()
        upload.file.seek(0)

        if not content:
            raise ValidationException("Uploaded file is empty")
        if len(content) > self.max_size:
            limit_mb = self.max_size // (1024 * 1024)
            raise ValidationException(f"File size exceeds {limit_mb}MB limit")

        detected_type = magic.from_buffer(content, mime=True)
        if detected_type not in ALLOWED_MIME_TYPES:
            raise ValidationException(
                f"Invalid file type '{detected_type}'. "
                f"Allowed: {', '.join(ALLOWED_MIME_TYPES.keys())}"
            )

        filename = f"{uuid.uuid4()}{ALLOWED_MIME_TYPES[detected_type]}"
        target_dir = self.root / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / filename).write_bytes(content)

        public_id = f"{folder}/{filename}"
        return StoredImage(url=f"{URL_PREFIX}/{public_id}", public_id=public_id)

    def delete(self, public_id: str) -> None:
        """Remove a stored file. Missing files are ignored."""
        path = (self.root / public_id).resolve()
        if self.root.resolve() not in path.parents:
            logger.warning(f"Refusing to delete image outside upload dir: {public_id}")
            return
        path.unlink(missing_ok=True)


def get_image_storage() -> ImageStorage:
    return LocalImageStorage()
