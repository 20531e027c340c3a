# services/book_service.py: business rules on top of crud/book.py
import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from crud import book as book_crud
from models import Book
from services.image_storage import ImageStorage, UploadedImage

logger = logging.getLogger(__name__)


def format_timestamp(moment: datetime) -> str:
    """Render ``DD/MM/YYYY, h:mm:ss a``, e.g. ``05/03/2024, 9:07:02 pm``."""
    hour = moment.hour % 12 or 12
    marker = "am" if moment.hour < 12 else "pm"
    return f"{moment:%d/%m/%Y}, {hour}:{moment:%M:%S} {marker}"


class BookService:
    def __init__(
        self,
        db: AsyncSession,
        images: ImageStorage,
        clock: Callable[[], datetime] = datetime.now,
        purge_images_on_delete: Optional[bool] = None,
    ):
        self.db = db
        self.images = images
        self.clock = clock
        if purge_images_on_delete is None:
            purge_images_on_delete = settings.purge_images_on_delete
        self.purge_images_on_delete = purge_images_on_delete

    def _now(self) -> str:
        return format_timestamp(self.clock())

    async def _store(self, image: UploadedImage) -> str:
        return await self.images.store(image.content, image.filename, image.content_type)

    async def _discard(self, url: str) -> None:
        """Best-effort removal of a stored image; failures are only logged."""
        try:
            identifier = self.images.identifier_from_url(url)
            await self.images.delete(identifier)
            logger.info("Deleted old cover image %s", identifier)
        except Exception as e:
            logger.warning("Error deleting old cover image %s: %s", url, e)

    async def add_book(self, data: dict, image: UploadedImage) -> Optional[Book]:
        if image is None:
            raise ValueError("a cover image is required to add a book")
        fields = dict(data)
        fields["cover_image"] = await self._store(image)
        stamp = self._now()
        fields["created_at"] = stamp
        fields["updated_at"] = stamp

        try:
            book = await book_crud.create_book(self.db, fields)
        except Exception:
            await self._discard(fields["cover_image"])
            raise
        if not book:
            await self._discard(fields["cover_image"])
            return None
        logger.info("Added book %s (%s)", book.id, book.title)
        return book

    async def list_books(self) -> List[Book]:
        return await book_crud.get_books(self.db)

    async def get_book(self, book_id: str) -> Optional[Book]:
        return await book_crud.get_book(self.db, book_id)

    async def update_book(self, book_id: str, data: dict, image: Optional[UploadedImage] = None) -> Optional[Book]:
        existing = await book_crud.get_book(self.db, book_id)
        if not existing:
            return None

        fields = dict(data)
        fields.pop("created_at", None)
        old_cover = existing.cover_image
        if image is not None:
            fields["cover_image"] = await self._store(image)
        fields["updated_at"] = self._now()

        try:
            updated = await book_crud.update_book(self.db, book_id, fields)
        except Exception:
            if image is not None:
                await self._discard(fields["cover_image"])
            raise
        if image is not None:
            # the old cover goes only once the record no longer points at it
            if not updated:
                await self._discard(fields["cover_image"])
            elif old_cover:
                await self._discard(old_cover)
        return updated

    async def delete_book(self, book_id: str) -> Optional[Book]:
        book = await book_crud.delete_book(self.db, book_id)
        if book:
            logger.info("Deleted book %s (%s)", book.id, book.title)
            if self.purge_images_on_delete and book.cover_image:
                await self._discard(book.cover_image)
        return book
