# models.py
import uuid

from sqlalchemy import Column, String, Integer, BigInteger, Float
from database import Base


def new_book_id() -> str:
    return uuid.uuid4().hex


class Book(Base):
    __tablename__ = "books"
    id = Column(String(32), primary_key=True, default=new_book_id)
    title = Column(String, nullable=False, index=True)
    author = Column(String, nullable=False, index=True)
    category = Column(String, nullable=True)
    publish_year = Column(Integer, nullable=True)
    isbn_num = Column(BigInteger, nullable=True)
    price = Column(Float, nullable=True)
    cover_image = Column(String, nullable=True)
    # display strings, e.g. "05/03/2024, 9:07:02 pm"
    created_at = Column(String, nullable=True)
    updated_at = Column(String, nullable=True)
