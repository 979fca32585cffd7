"""In-memory ordered collection of journal entries."""
import logging
import time
from dataclasses import replace
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from journal.errors import BookNotFoundError
from journal.models import (
    Book, BookDraft, STATUS_TBR, STATUS_FINISHED, STATUSES,
    clean_text, check_read_level, check_rating
)

logger = logging.getLogger(__name__)

Listener = Callable[[Tuple[Book, ...]], None]


class StatusView:
    """Live, order-preserving view of the books on one shelf.

    Every iteration reads the store's current list; a single iteration is
    unaffected by mutations made while it runs.
    """

    def __init__(self, store: "CollectionStore", status: str):
        if status not in STATUSES:
            raise ValueError(f"Unknown status: {status!r}")
        self._store = store
        self.status = status

    def __iter__(self) -> Iterator[Book]:
        return (book for book in self._store.books if book.status == self.status)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self):
        return f"StatusView({self.status!r}, {len(self)} books)"


class CollectionStore:
    """Ordered book collection keyed by id.

    Mutations never modify the current list in place; each one swaps in a new
    list, so snapshots handed out earlier stay valid. Listeners get the new
    snapshot after every successful mutation.
    """

    def __init__(
        self,
        books: Optional[Sequence[Book]] = None,
        strict: bool = False,
        clock: Callable[[], float] = time.time
    ):
        """
        Args:
            books: Initial collection, in display order
            strict: Raise BookNotFoundError for unknown ids instead of ignoring them
            clock: Seconds since the epoch, used for new ids
        """
        self._books: Tuple[Book, ...] = tuple(books or ())
        self.strict = strict
        self._clock = clock
        self._last_id = max((book.id for book in self._books), default=0)
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------ reads

    @property
    def books(self) -> Tuple[Book, ...]:
        return self._books

    def get(self, book_id: int) -> Optional[Book]:
        for book in self._books:
            if book.id == book_id:
                return book
        return None

    def view_by_status(self, status: str) -> StatusView:
        return StatusView(self, status)

    def missing_covers(self) -> List[Book]:
        """Snapshot of books that still have no cover."""
        return [book for book in self._books if not book.cover_url]

    def __iter__(self) -> Iterator[Book]:
        return iter(self._books)

    def __len__(self) -> int:
        return len(self._books)

    def __contains__(self, book_id) -> bool:
        return self.get(book_id) is not None

    # -------------------------------------------------------------- listeners

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, books: Tuple[Book, ...]):
        self._books = books
        for listener in list(self._listeners):
            listener(books)

    # -------------------------------------------------------------- mutations

    def _next_id(self) -> int:
        candidate = int(self._clock() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return candidate

    def _not_found(self, book_id):
        if self.strict:
            raise BookNotFoundError(book_id)
        logger.debug(f"Ignoring operation on unknown book id {book_id}")
        return None

    def _update(self, book_id: int, change: Callable[[Book], Book]) -> Optional[Book]:
        for index, book in enumerate(self._books):
            if book.id == book_id:
                updated = change(book)
                self._commit(self._books[:index] + (updated,) + self._books[index + 1:])
                return updated
        return self._not_found(book_id)

    def add(self, draft: BookDraft) -> Book:
        """Append a new to-be-read book without a cover."""
        draft = draft.normalized()
        book = Book(
            id=self._next_id(),
            title=draft.title,
            author=draft.author,
            read_level=draft.read_level,
            status=STATUS_TBR,
            cover_url=None
        )
        self._commit(self._books + (book,))
        logger.info(f"Added book {book.id}: {book.title!r}")
        return book

    def edit_details(
        self,
        book_id: int,
        title: Optional[str] = None,
        author: Optional[str] = None,
        read_level: Optional[str] = None
    ) -> Optional[Book]:
        """Partially update title/author/read level.

        The cover is always cleared, even if nothing actually changed.
        """
        changes = {"cover_url": None}
        if title is not None:
            changes["title"] = clean_text(title, "title")
        if author is not None:
            changes["author"] = clean_text(author, "author")
        if read_level is not None:
            changes["read_level"] = check_read_level(read_level)
        return self._update(book_id, lambda book: replace(book, **changes))

    def mark_finished(self, book_id: int) -> Optional[Book]:
        return self._update(
            book_id,
            lambda book: replace(book, status=STATUS_FINISHED, rating=0, notes="")
        )

    def mark_to_be_read(self, book_id: int) -> Optional[Book]:
        return self._update(
            book_id,
            lambda book: replace(book, status=STATUS_TBR, rating=None, notes=None)
        )

    def update_finished_fields(
        self,
        book_id: int,
        rating: Optional[int] = None,
        notes: Optional[str] = None
    ) -> Optional[Book]:
        """Set rating and/or notes.

        Meant for finished books; callers are responsible for not using it on
        the to-be-read shelf.
        """
        changes = {}
        if rating is not None:
            changes["rating"] = check_rating(rating)
        if notes is not None:
            changes["notes"] = notes
        if not changes:
            book = self.get(book_id)
            return book if book is not None else self._not_found(book_id)
        return self._update(book_id, lambda book: replace(book, **changes))

    def set_cover(self, book_id: int, cover_url: str) -> Optional[Book]:
        """Merge a resolved cover by id. Unknown ids are always ignored."""
        if self.get(book_id) is None:
            logger.debug(f"Discarding cover for missing book {book_id}")
            return None
        return self._update(book_id, lambda book: replace(book, cover_url=cover_url))

    def remove(self, book_id: int) -> bool:
        remaining = tuple(book for book in self._books if book.id != book_id)
        if len(remaining) == len(self._books):
            self._not_found(book_id)
            return False
        self._commit(remaining)
        logger.info(f"Removed book {book_id}")
        return True
