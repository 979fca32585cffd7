"""Data models for journal entries."""
from dataclasses import dataclass
from typing import Optional, Dict, Any


STATUS_TBR = "tbr"
STATUS_FINISHED = "finished"
STATUSES = (STATUS_TBR, STATUS_FINISHED)

READ_LEVELS = ("easy", "moderate", "academic")
DEFAULT_READ_LEVEL = "moderate"
READ_LEVEL_LABELS = {
    "easy": "Easy / Relaxing",
    "moderate": "Moderate",
    "academic": "Academic / Dense",
}

MIN_RATING = 0
MAX_RATING = 5


def clean_text(value: str, field_name: str) -> str:
    """Strip a required text field, rejecting empty values."""
    text = (value or "").strip()
    if not text:
        raise ValueError(f"{field_name} must not be empty")
    return text


def check_read_level(level: str) -> str:
    if level not in READ_LEVELS:
        raise ValueError(f"Unknown read level: {level!r}")
    return level


def check_rating(rating: int) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValueError(f"Rating must be an integer, got {rating!r}")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    return rating


@dataclass(frozen=True)
class BookDraft:
    """User input for a new book, before it gets an id."""
    title: str
    author: str
    read_level: str = DEFAULT_READ_LEVEL

    def normalized(self) -> "BookDraft":
        return BookDraft(
            title=clean_text(self.title, "title"),
            author=clean_text(self.author, "author"),
            read_level=check_read_level(self.read_level)
        )


@dataclass(frozen=True)
class Book:
    """A single journal entry.

    rating and notes are only set while status is finished.
    """
    id: int
    title: str
    author: str
    read_level: str = DEFAULT_READ_LEVEL
    status: str = STATUS_TBR
    cover_url: Optional[str] = None
    rating: Optional[int] = None
    notes: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.status == STATUS_FINISHED

    @property
    def read_level_label(self) -> str:
        """Human readable read level."""
        return READ_LEVEL_LABELS.get(self.read_level, self.read_level)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the stored JSON shape."""
        data = {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "readLevel": self.read_level,
            "status": self.status,
            "coverUrl": self.cover_url,
        }
        if self.is_finished:
            data["rating"] = self.rating
            data["notes"] = self.notes
        return data
