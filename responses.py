# responses.py: the {status, error, message, result} envelope every endpoint returns
from typing import Any

from fastapi.responses import JSONResponse

BOOK_CREATED = "Book added successfully"
BOOK_CREATION_FAILED = "Failed to add book"
BOOK_UPDATED = "Book updated successfully"
BOOK_DELETED = "Book deleted successfully"
BOOK_FETCH_SUCCESS = "Book fetch success"
BOOKS_FETCH_SUCCESS = "Books fetched successfully"
BOOK_NOT_FOUND = "Book not found"
IMAGE_NOT_FOUND = "Image is not Found"
SERVER_ERROR = "Internal server error"


def success_response(status: int, message: str, result: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"status": status, "error": False, "message": message, "result": result},
    )


def error_response(status: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"status": status, "error": True, "message": message},
    )
