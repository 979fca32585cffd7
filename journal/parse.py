"""Parse and normalize stored collections and cover search responses."""
import logging
from typing import Dict, Any, List, Optional, Iterable
from journal.models import (
    Book, STATUS_TBR, STATUS_FINISHED, STATUSES, READ_LEVELS, DEFAULT_READ_LEVEL,
    MIN_RATING, MAX_RATING
)

logger = logging.getLogger(__name__)


def _valid_rating(rating: Any) -> bool:
    return (
        isinstance(rating, int)
        and not isinstance(rating, bool)
        and MIN_RATING <= rating <= MAX_RATING
    )


def parse_book(item: Dict[str, Any], strict: bool = False) -> Optional[Book]:
    """
    Parse a single stored book entry.

    Args:
        item: One element of the stored collection array
        strict: Reject finished entries whose rating or notes would have
            to be rewritten instead of repairing them

    Returns:
        Book object or None if the entry is unusable
    """
    try:
        book_id = item.get("id")
        if book_id is None or isinstance(book_id, bool):
            return None
        book_id = int(book_id)

        title = (item.get("title") or "").strip()
        author = (item.get("author") or "").strip()
        if not title or not author:
            return None

        read_level = item.get("readLevel")
        if read_level not in READ_LEVELS:
            read_level = DEFAULT_READ_LEVEL

        # Status is never null; anything unknown lands on the to-be-read shelf
        status = item.get("status")
        if status not in STATUSES:
            status = STATUS_TBR

        rating = None
        notes = None
        if status == STATUS_FINISHED:
            rating = item.get("rating")
            if rating is None:
                rating = 0
            elif not _valid_rating(rating):
                if strict:
                    return None
                if not isinstance(rating, int) or isinstance(rating, bool):
                    rating = 0
                rating = max(MIN_RATING, min(MAX_RATING, rating))
            notes = item.get("notes")
            if notes is None:
                notes = ""
            elif not isinstance(notes, str):
                if strict:
                    return None
                notes = str(notes)

        return Book(
            id=book_id,
            title=title,
            author=author,
            read_level=read_level,
            status=status,
            cover_url=item.get("coverUrl") or None,
            rating=rating,
            notes=notes
        )
    except Exception as e:
        # Stored data may have been written by older clients
        logger.error(f"Failed to parse book entry: {e}")
        return None


def parse_collection(payload: Any, strict: bool = False) -> List[Book]:
    """
    Parse a full stored collection.

    Args:
        payload: Decoded JSON of the stored collection
        strict: Raise instead of dropping unusable or duplicate entries

    Returns:
        List of Book objects in stored order

    Raises:
        ValueError: if the payload is not a JSON array, or in strict mode
            if any entry would be dropped or rewritten
    """
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of books, got {type(payload).__name__}")

    books = []
    for item in payload:
        book = parse_book(item, strict=strict) if isinstance(item, dict) else None
        if book:
            books.append(book)
        elif strict:
            raise ValueError(f"Invalid collection entry: {item!r}")
        else:
            logger.error(f"Dropping invalid collection entry: {item!r}")

    unique = deduplicate_books(books)
    if len(unique) != len(books):
        if strict:
            raise ValueError("Collection contains duplicate book ids")
        logger.error(f"Dropped {len(books) - len(unique)} books with duplicate ids")
    return unique


def serialize_collection(books: Iterable[Book]) -> List[Dict[str, Any]]:
    """Convert books to the stored JSON array."""
    return [book.to_dict() for book in books]


def deduplicate_books(books: List[Book]) -> List[Book]:
    """
    Remove duplicate books by ID, keeping the first occurrence.

    Args:
        books: List of Book objects

    Returns:
        Deduplicated list of books
    """
    seen_ids = set()
    unique_books = []

    for book in books:
        if book.id not in seen_ids:
            seen_ids.add(book.id)
            unique_books.append(book)

    return unique_books


def parse_cover_url(response_json: Dict[str, Any], image_template: str) -> Optional[str]:
    """
    Pull a cover image URL out of a search response.

    Only the first (best ranked) match is considered.

    Args:
        response_json: Search response with a "docs" list
        image_template: Format string with a {cover_id} placeholder

    Returns:
        Image URL or None if the top match has no image
    """
    if not isinstance(response_json, dict):
        return None

    docs = response_json.get("docs") or []
    if not isinstance(docs, list) or not docs or not isinstance(docs[0], dict):
        return None

    cover_id = docs[0].get("cover_i")
    if not cover_id:
        return None

    return image_template.format(cover_id=cover_id)
