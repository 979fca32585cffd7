"""Exceptions raised by the reading journal."""


class JournalError(Exception):
    """Base class for journal errors."""


class BookNotFoundError(JournalError, LookupError):
    """Raised in strict mode when an operation targets an unknown book id."""
    
    def __init__(self, book_id):
        super().__init__(f"No book with id {book_id}")
        self.book_id = book_id


class JournalNotReadyError(JournalError):
    """Raised when the collection is accessed before the initial load finished."""


class RemoteStoreError(JournalError):
    """Remote store was unreachable or answered with something unusable."""
