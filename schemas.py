from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator
from typing import Optional

class BookFields(BaseModel):
    category: Optional[str] = None
    publish_year: Optional[int] = None
    isbn_num: Optional[int] = None
    price: Optional[float] = None

    class Config:
        str_strip_whitespace = True
        extra = "ignore"

# Bounds match what the books table can hold (SQLite INTEGER is signed 64-bit)
# and what JSON can render (no inf/nan).
class BookInput(BookFields):
    publish_year: Optional[int] = Field(None, ge=0, le=9999)
    isbn_num: Optional[int] = Field(None, ge=0, le=2**63 - 1)
    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)

class BookCreate(BookInput):
    title: str = Field(min_length=1)
    author: str = Field(min_length=1)

class BookUpdate(BookInput):
    title: Optional[str] = None
    author: Optional[str] = None

    @field_validator("title", "author")
    @classmethod
    def not_blank(cls, value):
        if value is not None and not value:
            raise ValueError("must not be blank")
        return value

class Book(BookFields):
    id: str = Field(validation_alias=AliasChoices("id", "_id"), serialization_alias="_id")
    title: str
    author: str
    cover_image: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    class Config:
        from_attributes = True
        populate_by_name = True

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


def describe_errors(exc: ValidationError) -> str:
    """Flatten a ValidationError into one line, e.g. "title: Field required"."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)
