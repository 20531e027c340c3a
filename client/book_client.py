# client/book_client.py: async API client, unwraps the response envelope
import logging
from typing import List, Optional, Tuple, Union

import httpx
from pydantic import BaseModel

from schemas import Book

logger = logging.getLogger(__name__)

# (filename, bytes, content_type), the shape httpx takes for a file part
CoverImage = Tuple[str, bytes, str]

FORM_FIELDS = ("title", "author", "category", "price", "publish_year", "isbn_num")


class BookApiError(Exception):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


def build_form(book: Union[BaseModel, dict]) -> dict:
    values = book.model_dump() if isinstance(book, BaseModel) else dict(book)
    return {k: str(values[k]) for k in FORM_FIELDS if values.get(k) is not None}


class BookClient:
    def __init__(self, base_url: str = "http://localhost:8000/api/book", http: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self.http = http or httpx.AsyncClient(timeout=10.0)

    async def aclose(self):
        await self.http.aclose()

    async def _call(self, method: str, url: str, default_error: str, **kwargs):
        try:
            r = await self.http.request(method, url, **kwargs)
            payload = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise BookApiError(default_error) from e

        if not isinstance(payload, dict) or payload.get("error") or r.status_code >= 400:
            message = payload.get("message") if isinstance(payload, dict) else None
            status = payload.get("status") if isinstance(payload, dict) else None
            raise BookApiError(message or default_error, status or r.status_code)
        return payload.get("result")

    async def get_all(self) -> List[Book]:
        result = await self._call("GET", self.base_url, "Failed to fetch books")
        if not isinstance(result, list):
            return []
        return [Book.model_validate(item) for item in result]

    async def get_by_id(self, book_id: str) -> Book:
        result = await self._call("GET", f"{self.base_url}/{book_id}", "Failed to fetch book")
        return Book.model_validate(result)

    async def add(self, book, cover_image: Optional[CoverImage] = None) -> Book:
        files = {"cover_image": cover_image} if cover_image else None
        result = await self._call(
            "POST", self.base_url, "Failed to add book", data=build_form(book), files=files
        )
        return Book.model_validate(result)

    async def update(self, book_id: str, book, cover_image: Optional[CoverImage] = None) -> Book:
        files = {"cover_image": cover_image} if cover_image else None
        result = await self._call(
            "PUT", f"{self.base_url}/{book_id}", "Failed to update book", data=build_form(book), files=files
        )
        return Book.model_validate(result)

    async def delete(self, book_id: str) -> Book:
        result = await self._call("DELETE", f"{self.base_url}/{book_id}", "Failed to delete book")
        return Book.model_validate(result)
