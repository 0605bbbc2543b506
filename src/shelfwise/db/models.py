"""SQLAlchemy ORM models for local SQLite database.

Tables:
- books: Library entries with status and progress
- reading_sessions: Immutable reading session entries
- reading_goals: One yearly book-count goal per year
"""

import json
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .schemas import BookStatus


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as a UTC ISO-8601 string.

    Naive datetimes are taken to be UTC already. Storing every timestamp in
    the same offset keeps string range comparisons in SQL correct.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def from_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO-8601 string back to an aware datetime."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Book(Base):
    """Book model - a library entry and its reading state."""

    __tablename__ = "books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # Core fields
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    genre: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    pages: Mapped[Optional[int]] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(
        String(20), default=BookStatus.WANT_TO_READ.value, index=True
    )
    progress: Mapped[Optional[int]] = mapped_column(Integer, default=0)

    # Dates (ISO datetimes, UTC)
    date_added: Mapped[Optional[str]] = mapped_column(String(32))
    date_started: Mapped[Optional[str]] = mapped_column(String(32))
    date_finished: Mapped[Optional[str]] = mapped_column(String(32), index=True)

    # Metadata
    cover_url: Mapped[Optional[str]] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_wishlist: Mapped[bool] = mapped_column(Boolean, default=False)
    tags: Mapped[Optional[str]] = mapped_column(Text)  # JSON array

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=lambda: utc_now().isoformat())
    updated_at: Mapped[str] = mapped_column(
        String(32),
        default=lambda: utc_now().isoformat(),
        onupdate=lambda: utc_now().isoformat(),
    )

    # Relationships
    reading_sessions: Mapped[list["ReadingSession"]] = relationship(
        "ReadingSession", back_populates="book", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', status={self.status})>"

    def get_tags(self) -> list[str]:
        """Get tags as list."""
        if self.tags:
            return json.loads(self.tags)
        return []

    def set_tags(self, tags: list[str]) -> None:
        """Set tags from list."""
        self.tags = json.dumps(tags) if tags else None

    @property
    def finished_at(self) -> Optional[datetime]:
        """Finished date as a datetime."""
        return from_iso(self.date_finished)

    @property
    def started_at(self) -> Optional[datetime]:
        """Started date as a datetime."""
        return from_iso(self.date_started)


class ReadingSession(Base):
    """Reading session model - one immutable log entry for a book."""

    __tablename__ = "reading_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    book_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True
    )
    pages_read: Mapped[int] = mapped_column(Integer, nullable=False)
    minutes_spent: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[str] = mapped_column(
        String(32), nullable=False, index=True, default=lambda: utc_now().isoformat()
    )

    created_at: Mapped[str] = mapped_column(String(32), default=lambda: utc_now().isoformat())

    # Relationships
    book: Mapped["Book"] = relationship("Book", back_populates="reading_sessions")

    def __repr__(self) -> str:
        return (
            f"<ReadingSession(id={self.id}, book_id={self.book_id}, "
            f"pages_read={self.pages_read})>"
        )

    @property
    def occurred_at(self) -> datetime:
        """Session date as a datetime."""
        return from_iso(self.date)


class ReadingGoal(Base):
    """Reading goal model - a yearly target book count."""

    __tablename__ = "reading_goals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    year: Mapped[int] = mapped_column(Integer, nullable=False, unique=True, index=True)
    target_books: Mapped[int] = mapped_column(Integer, nullable=False)
    books_read: Mapped[int] = mapped_column(Integer, default=0)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return (
            f"<ReadingGoal(year={self.year}, books_read={self.books_read}, "
            f"target_books={self.target_books})>"
        )

    @property
    def progress_percent(self) -> float:
        """Calculate progress percentage, capped at 100."""
        if not self.target_books or self.target_books <= 0:
            return 0.0
        return min(100.0, round(((self.books_read or 0) / self.target_books) * 100, 1))

    @property
    def remaining(self) -> int:
        """Books still needed to reach the target."""
        return max(0, self.target_books - (self.books_read or 0))
