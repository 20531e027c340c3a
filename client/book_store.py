"""Client-side book state.

``BookStore`` holds the list the UI renders. State only changes through
``dispatch`` and the pure ``reduce`` function; the async tasks talk to the
API through an injected ``BookClient`` and report back with a ``Result``
instead of raising. The list is a projection of the server: a fetch replaces
it wholesale and each mutation swaps in the snapshot the server returned.
"""
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Callable, List, Optional, Union

from client.book_client import BookApiError, BookClient, CoverImage
from schemas import Book

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookState:
    books: List[Book] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class FetchStarted:
    pass

@dataclass(frozen=True)
class FetchSucceeded:
    books: List[Book]

@dataclass(frozen=True)
class FetchFailed:
    error: str

@dataclass(frozen=True)
class BookAdded:
    book: Book

@dataclass(frozen=True)
class BookUpdated:
    book: Book

@dataclass(frozen=True)
class BookDeleted:
    book_id: str


Action = Union[FetchStarted, FetchSucceeded, FetchFailed, BookAdded, BookUpdated, BookDeleted]


@dataclass(frozen=True)
class Result:
    ok: bool
    value: Any = None
    error: Optional[str] = None


def reduce(state: BookState, action: Action) -> BookState:
    if isinstance(action, FetchStarted):
        return replace(state, loading=True, error=None)
    if isinstance(action, FetchSucceeded):
        return replace(state, loading=False, books=list(action.books))
    if isinstance(action, FetchFailed):
        return replace(state, loading=False, error=action.error)
    if isinstance(action, BookAdded):
        return replace(state, books=state.books + [action.book])
    if isinstance(action, BookUpdated):
        return replace(state, books=[action.book if b.id == action.book.id else b for b in state.books])
    if isinstance(action, BookDeleted):
        return replace(state, books=[b for b in state.books if b.id != action.book_id])
    return state


SORTS = {
    "newest": (lambda b: b.publish_year or 0, True),
    "price_asc": (lambda b: b.price or 0, False),
    "price_desc": (lambda b: b.price or 0, True),
    "title": (lambda b: b.title.casefold(), False),
}


class BookStore:
    def __init__(self, client: BookClient, state: Optional[BookState] = None):
        self.client = client
        self._state = state or BookState()
        self._listeners: List[Callable[[BookState], None]] = []

    @property
    def state(self) -> BookState:
        return self._state

    def dispatch(self, action: Action) -> BookState:
        self._state = reduce(self._state, action)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def subscribe(self, listener: Callable[[BookState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    # selectors

    @property
    def books(self) -> List[Book]:
        return self._state.books

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    def book_by_id(self, book_id: str) -> Optional[Book]:
        return next((b for b in self._state.books if b.id == book_id), None)

    def categories(self) -> List[str]:
        seen = []
        for b in self._state.books:
            if b.category and b.category not in seen:
                seen.append(b.category)
        return seen

    def visible_books(self, search: str = "", category: str = "all", sort_by: str = "newest") -> List[Book]:
        term = search.strip().casefold()

        def matches(b: Book) -> bool:
            if category != "all" and b.category != category:
                return False
            if not term:
                return True
            return any(term in (v or "").casefold() for v in (b.title, b.author, b.category))

        key, descending = SORTS.get(sort_by, SORTS["newest"])
        return sorted(filter(matches, self._state.books), key=key, reverse=descending)

    # tasks

    async def fetch_books(self) -> Result:
        self.dispatch(FetchStarted())
        try:
            books = await self.client.get_all()
        except BookApiError as e:
            self.dispatch(FetchFailed(e.message))
            return Result(ok=False, error=e.message)
        self.dispatch(FetchSucceeded(books))
        return Result(ok=True, value=books)

    async def add_book(self, book, cover_image: Optional[CoverImage] = None) -> Result:
        try:
            created = await self.client.add(book, cover_image)
        except BookApiError as e:
            return Result(ok=False, error=e.message)
        self.dispatch(BookAdded(created))
        return Result(ok=True, value=created)

    async def update_book(self, book_id: str, book, cover_image: Optional[CoverImage] = None) -> Result:
        try:
            updated = await self.client.update(book_id, book, cover_image)
        except BookApiError as e:
            return Result(ok=False, error=e.message)
        self.dispatch(BookUpdated(updated))
        return Result(ok=True, value=updated)

    async def delete_book(self, book_id: str) -> Result:
        try:
            await self.client.delete(book_id)
        except BookApiError as e:
            return Result(ok=False, error=e.message)
        self.dispatch(BookDeleted(book_id))
        return Result(ok=True, value=book_id)


def validate_book_form(form: dict, cover_image: Optional[CoverImage] = None,
                       edit_mode: bool = False, today: Optional[date] = None) -> dict:
    """Field -> message for everything wrong with a book form; empty when valid."""
    errors = {}
    current_year = (today or date.today()).year

    def number(name):
        try:
            return float(form.get(name))
        except (TypeError, ValueError):
            return None

    if len((form.get("title") or "").strip()) < 3:
        errors["title"] = "Title must be at least 3 characters."
    if not (form.get("author") or "").strip():
        errors["author"] = "Author is required."
    if not (form.get("category") or "").strip():
        errors["category"] = "Category is required."
    price = number("price")
    if price is None or price <= 0:
        errors["price"] = "Price must be a positive number."
    year = number("publish_year")
    if year is None or year < 1900 or year > current_year:
        errors["publish_year"] = f"Year must be between 1900 and {current_year}."
    isbn = number("isbn_num")
    if isbn is None or isbn <= 0:
        errors["isbn_num"] = "Valid ISBN number is required."
    if not edit_mode and not cover_image:
        errors["cover_image"] = "Cover image is required."
    return errors
