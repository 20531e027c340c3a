"""Cover image storage.

Stored images live under one logical folder and are addressed two ways: by
the public URL handed back from ``store`` (kept on the book record) and by a
storage identifier ``<folder>/<basename without extension>`` used for
deletion. ``identifier_from_url`` is the only place that knows how to get
from the first to the second.
"""
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import urlparse

from starlette.concurrency import run_in_threadpool

from config import settings

logger = logging.getLogger(__name__)


class InvalidImageError(ValueError):
    pass


@dataclass
class UploadedImage:
    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def extension(self) -> str:
        return PurePosixPath(self.filename or "").suffix.lower()


def check_image(image: UploadedImage, allowed_extensions=None, max_size: Optional[int] = None) -> None:
    """Raise InvalidImageError unless the upload looks like an acceptable cover."""
    allowed = allowed_extensions if allowed_extensions is not None else settings.allowed_image_extensions
    max_size = max_size if max_size is not None else settings.max_upload_size
    if not image.content:
        raise InvalidImageError("Image file is empty")
    if image.extension not in allowed:
        raise InvalidImageError(f"Unsupported image type '{image.extension or image.filename}'")
    if image.content_type and not image.content_type.startswith("image/"):
        raise InvalidImageError(f"Unsupported content type '{image.content_type}'")
    if len(image.content) > max_size:
        raise InvalidImageError(f"Image exceeds {max_size} bytes")


class ImageStorage:
    def __init__(self, folder: str):
        self.folder = folder.strip("/")

    def identifier_from_url(self, url: str) -> str:
        # ".../Book-Management/abc123.jpg" -> "Book-Management/abc123"
        basename = PurePosixPath(urlparse(url).path).name
        return f"{self.folder}/{basename.split('.')[0]}"

    async def store(self, content: bytes, filename: str, content_type: Optional[str] = None) -> str:
        raise NotImplementedError

    async def delete(self, identifier: str) -> bool:
        raise NotImplementedError


class LocalImageStorage(ImageStorage):
    """Writes covers to ``root/<folder>/`` and serves them from ``base_url``."""

    def __init__(self, root: str, base_url: str, folder: str):
        super().__init__(folder)
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    @property
    def directory(self) -> Path:
        return self.root / self.folder

    def _write(self, name: str, content: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / name).write_bytes(content)

    def _remove(self, stem: str) -> bool:
        removed = False
        for path in self.directory.glob(f"{stem}.*"):
            path.unlink()
            removed = True
        return removed

    async def store(self, content: bytes, filename: str, content_type: Optional[str] = None) -> str:
        name = uuid.uuid4().hex + PurePosixPath(filename or "").suffix.lower()
        await run_in_threadpool(self._write, name, content)
        logger.info("Stored cover image %s (%d bytes)", name, len(content))
        return f"{self.base_url}/{self.folder}/{name}"

    async def delete(self, identifier: str) -> bool:
        folder, _, stem = identifier.rpartition("/")
        if folder != self.folder or not stem:
            logger.warning("Refusing to delete image outside %s: %s", self.folder, identifier)
            return False
        removed = await run_in_threadpool(self._remove, stem)
        if not removed:
            logger.info("No stored image for %s", identifier)
        return removed


_storage: Optional[ImageStorage] = None

def get_image_storage() -> ImageStorage:
    global _storage
    if _storage is None:
        _storage = LocalImageStorage(
            root=settings.upload_dir,
            base_url=settings.public_base_url.rstrip("/") + settings.upload_url_path,
            folder=settings.image_folder,
        )
    return _storage
