# crud/book.py: thin record mapping, None means "not found"
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Book
from typing import List, Optional

_COLUMNS = {c.name for c in Book.__table__.columns} - {"id"}

def _writable(fields: dict) -> dict:
    return {k: v for k, v in fields.items() if k in _COLUMNS}

async def create_book(db: AsyncSession, fields: dict) -> Optional[Book]:
    new_book = Book(**_writable(fields))
    db.add(new_book)
    await db.commit()
    await db.refresh(new_book)
    return new_book

async def get_books(db: AsyncSession) -> List[Book]:
    result = await db.execute(select(Book))
    return list(result.scalars().all())

async def get_book(db: AsyncSession, book_id: str) -> Optional[Book]:
    result = await db.execute(select(Book).where(Book.id == book_id))
    return result.scalar_one_or_none()

async def update_book(db: AsyncSession, book_id: str, fields: dict) -> Optional[Book]:
    book = await get_book(db, book_id)
    if not book:
        return None
    for key, value in _writable(fields).items():
        setattr(book, key, value)
    await db.commit()
    await db.refresh(book)
    return book

async def delete_book(db: AsyncSession, book_id: str) -> Optional[Book]:
    book = await get_book(db, book_id)
    if not book:
        return None
    await db.delete(book)
    await db.commit()
    return book
