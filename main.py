# main.py: Book Catalog REST API
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

import responses as msg
import schemas
from config import settings
from database import get_db, init_db
from responses import error_response, success_response
from schemas import BookCreate, BookUpdate, describe_errors
from services.book_service import BookService
from services.image_storage import (
    ImageStorage, InvalidImageError, UploadedImage, check_image, get_image_storage
)

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("%s serving books under %s", settings.app_name, settings.api_prefix)
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
app.mount(settings.upload_url_path, StaticFiles(directory=settings.upload_dir), name="uploads")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(400, describe_errors(exc))


@app.get("/health")
async def health():
    return {"status": "ok"}


def get_book_service(
    db: AsyncSession = Depends(get_db),
    images: ImageStorage = Depends(get_image_storage),
) -> BookService:
    return BookService(db, images)


def _supplied(**fields) -> dict:
    return {k: v for k, v in fields.items() if v is not None}


async def _read_upload(upload: Optional[UploadFile]) -> Optional[UploadedImage]:
    if upload is None or not upload.filename:
        return None
    return UploadedImage(
        filename=upload.filename,
        content=await upload.read(),
        content_type=upload.content_type,
    )


def _to_wire(book) -> dict:
    return schemas.Book.model_validate(book).to_wire()


router = APIRouter(prefix=settings.api_prefix)

@router.post("", include_in_schema=False)
@router.post("/")
async def add_book(
    title: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    publish_year: Optional[str] = Form(None),
    isbn_num: Optional[str] = Form(None),
    cover_image: Optional[UploadFile] = File(None),
    service: BookService = Depends(get_book_service),
):
    try:
        image = await _read_upload(cover_image)
        if image is None:
            return error_response(400, msg.IMAGE_NOT_FOUND)

        try:
            data = BookCreate.model_validate(_supplied(
                title=title, author=author, category=category,
                price=price, publish_year=publish_year, isbn_num=isbn_num,
            ))
            check_image(image)
        except ValidationError as e:
            return error_response(400, describe_errors(e))
        except InvalidImageError as e:
            return error_response(400, str(e))

        new_book = await service.add_book(data.model_dump(exclude_none=True), image)
        if not new_book:
            return error_response(400, msg.BOOK_CREATION_FAILED)

        return success_response(201, msg.BOOK_CREATED, _to_wire(new_book))
    except Exception:
        logger.exception("add_book failed")
        return error_response(500, msg.SERVER_ERROR)

@router.get("", include_in_schema=False)
@router.get("/")
async def get_all_books(service: BookService = Depends(get_book_service)):
    try:
        books = await service.list_books()
        return success_response(200, msg.BOOKS_FETCH_SUCCESS, [_to_wire(b) for b in books])
    except Exception:
        logger.exception("get_all_books failed")
        return error_response(500, msg.SERVER_ERROR)

@router.get("/{book_id}")
async def get_single_book(book_id: str, service: BookService = Depends(get_book_service)):
    try:
        book = await service.get_book(book_id)
        if not book:
            return error_response(400, msg.BOOK_NOT_FOUND)
        return success_response(200, msg.BOOK_FETCH_SUCCESS, _to_wire(book))
    except Exception:
        logger.exception("get_single_book failed for %s", book_id)
        return error_response(500, msg.SERVER_ERROR)

@router.put("/{book_id}")
async def update_book(
    book_id: str,
    title: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    publish_year: Optional[str] = Form(None),
    isbn_num: Optional[str] = Form(None),
    cover_image: Optional[UploadFile] = File(None),
    service: BookService = Depends(get_book_service),
):
    try:
        image = await _read_upload(cover_image)
        try:
            data = BookUpdate.model_validate(_supplied(
                title=title, author=author, category=category,
                price=price, publish_year=publish_year, isbn_num=isbn_num,
            ))
            if image is not None:
                check_image(image)
        except ValidationError as e:
            return error_response(400, describe_errors(e))
        except InvalidImageError as e:
            return error_response(400, str(e))

        updated = await service.update_book(book_id, data.model_dump(exclude_unset=True), image)
        if not updated:
            return error_response(400, msg.BOOK_NOT_FOUND)

        return success_response(200, msg.BOOK_UPDATED, _to_wire(updated))
    except Exception:
        logger.exception("update_book failed for %s", book_id)
        return error_response(500, msg.SERVER_ERROR)

@router.delete("/{book_id}")
async def delete_book(book_id: str, service: BookService = Depends(get_book_service)):
    try:
        deleted = await service.delete_book(book_id)
        if not deleted:
            return error_response(400, msg.BOOK_NOT_FOUND)
        return success_response(200, msg.BOOK_DELETED, _to_wire(deleted))
    except Exception:
        logger.exception("delete_book failed for %s", book_id)
        return error_response(500, msg.SERVER_ERROR)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.api_host, port=settings.api_port)
