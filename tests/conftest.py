"""Pytest configuration and shared fixtures.

This module provides fixtures for testing shelfwise, including temporary
databases, sample data, and in-memory repositories for the engine.
"""

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator, Optional

import pytest
from sqlalchemy.orm import Session

from shelfwise.config import reset_config
from shelfwise.db.models import Book, ReadingGoal, ReadingSession, generate_uuid, to_iso
from shelfwise.db.repository import (
    BookRepository,
    GoalRepository,
    ReadingSessionRepository,
    ReviewRepository,
)
from shelfwise.db.schemas import (
    BookCreate,
    BookStatus,
    BookUpdate,
    ReadingGoalCreate,
    ReadingGoalUpdate,
    ReadingSessionCreate,
)
from shelfwise.db.sqlite import Database, reset_db
from shelfwise.reading.session import reset_session_recorder


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)
    yield db_path
    # Cleanup
    if db_path.exists():
        db_path.unlink()


@pytest.fixture(scope="function")
def db(temp_db_path: Path) -> Generator[Database, None, None]:
    """Create a test database instance."""
    # Reset any global state
    reset_db()
    reset_config()
    reset_session_recorder()

    # Set environment variable for test database
    os.environ["SHELFWISE_DB_PATH"] = str(temp_db_path)

    database = Database(str(temp_db_path))
    database.create_tables()
    yield database

    # Cleanup
    database.engine.dispose()
    reset_db()
    reset_session_recorder()
    if "SHELFWISE_DB_PATH" in os.environ:
        del os.environ["SHELFWISE_DB_PATH"]


@pytest.fixture(scope="function")
def memory_db() -> Generator[Database, None, None]:
    """Create an in-memory database instance."""
    database = Database(":memory:")
    database.create_tables()
    yield database
    database.engine.dispose()


@pytest.fixture(scope="function")
def session(db: Database) -> Generator[Session, None, None]:
    """Create a database session for testing."""
    with db.get_session() as sess:
        yield sess


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_book_data() -> BookCreate:
    """Create sample book data for testing."""
    return BookCreate(
        title="The Left Hand of Darkness",
        author="Ursula K. Le Guin",
        genre="Science Fiction",
        pages=300,
        status=BookStatus.READING,
        tags=["classic", "hainish"],
    )


@pytest.fixture
def sample_book_minimal() -> BookCreate:
    """Create minimal book data (only required fields)."""
    return BookCreate(
        title="Minimal Book",
        author="Test Author",
        genre="Fiction",
    )


@pytest.fixture
def sample_book(db: Database, sample_book_data: BookCreate) -> Book:
    """Create a 300 page book currently being read."""
    return db.create_book(sample_book_data)


@pytest.fixture
def sample_books(db: Database) -> list[Book]:
    """Create a small library across statuses and genres."""
    books = [
        BookCreate(title="Dune", author="Frank Herbert", genre="Science Fiction", pages=412,
                   status=BookStatus.COMPLETED),
        BookCreate(title="Emma", author="Jane Austen", genre="Classic", pages=474,
                   status=BookStatus.COMPLETED),
        BookCreate(title="Neuromancer", author="William Gibson", genre="Science Fiction",
                   pages=271, status=BookStatus.READING),
        BookCreate(title="Middlemarch", author="George Eliot", genre="Classic", pages=880),
    ]
    return [db.create_book(b) for b in books]


# ============================================================================
# In-memory Repositories
# ============================================================================


class InMemoryBooks(BookRepository):
    """Dictionary-backed book repository."""

    def __init__(self):
        self.books: dict[str, Book] = {}

    def add(
        self,
        title: str = "Test Book",
        pages: Optional[int] = 100,
        status: BookStatus = BookStatus.READING,
        progress: Optional[int] = 0,
        genre: str = "Fiction",
        date_finished: Optional[datetime] = None,
    ) -> Book:
        book = Book(
            id=generate_uuid(),
            title=title,
            author="Test Author",
            genre=genre,
            pages=pages,
            status=status.value,
            progress=progress,
            date_finished=to_iso(date_finished),
            is_wishlist=False,
        )
        self.books[book.id] = book
        return book

    def get_book(self, book_id: str) -> Optional[Book]:
        return self.books.get(book_id)

    def update_book(self, book_id: str, update: BookUpdate) -> Optional[Book]:
        book = self.books.get(book_id)
        if book is None:
            return None
        for field, value in update.model_dump(exclude_unset=True).items():
            if field == "status":
                value = value.value
            elif field in ("date_started", "date_finished"):
                value = to_iso(value)
            setattr(book, field, value)
        return book

    def get_books_by_status(self, status: str) -> list[Book]:
        return [b for b in self.books.values() if b.status == status]

    def get_all_books(self) -> list[Book]:
        return list(self.books.values())


class InMemorySessions(ReadingSessionRepository):
    """List-backed reading session repository."""

    def __init__(self):
        self.sessions: list[ReadingSession] = []

    def create_reading_session(self, data: ReadingSessionCreate) -> ReadingSession:
        entry = ReadingSession(
            id=generate_uuid(),
            book_id=data.book_id,
            pages_read=data.pages_read,
            minutes_spent=data.minutes_spent,
            date=to_iso(data.date or datetime.now(timezone.utc)),
        )
        self.sessions.append(entry)
        return entry

    def get_reading_sessions_for_book(self, book_id: str) -> list[ReadingSession]:
        return [s for s in self.sessions if s.book_id == book_id]

    def get_reading_sessions_by_date_range(
        self, start: datetime, end: datetime
    ) -> list[ReadingSession]:
        low, high = to_iso(start), to_iso(end)
        return [s for s in self.sessions if low <= s.date <= high]


class InMemoryReviews(ReviewRepository):
    """List-backed review repository holding any objects with a rating."""

    def __init__(self, reviews: Optional[list] = None):
        self.reviews = list(reviews or [])

    def list_reviews(self) -> list:
        return list(self.reviews)

    def get_reviews_for_book(self, book_id: str) -> list:
        return [r for r in self.reviews if r.book_id == book_id]


class InMemoryGoals(GoalRepository):
    """Dictionary-backed goal repository keyed by year."""

    def __init__(self):
        self.goals: dict[int, ReadingGoal] = {}

    def get_reading_goal(self, year: int) -> Optional[ReadingGoal]:
        return self.goals.get(year)

    def get_all_reading_goals(self) -> list[ReadingGoal]:
        return sorted(self.goals.values(), key=lambda g: g.year, reverse=True)

    def update_reading_goal(self, year: int, update: ReadingGoalUpdate) -> Optional[ReadingGoal]:
        goal = self.goals.get(year)
        if goal is None:
            return None
        for field, value in update.model_dump(exclude_unset=True).items():
            setattr(goal, field, value)
        return goal

    def create_reading_goal(self, data: ReadingGoalCreate) -> ReadingGoal:
        goal = self.goals.get(data.year)
        if goal is None:
            goal = ReadingGoal(
                id=generate_uuid(),
                year=data.year,
                target_books=data.target_books,
                books_read=0,
                completed=False,
            )
            self.goals[data.year] = goal
        else:
            goal.target_books = data.target_books
            goal.completed = goal.books_read >= data.target_books
        return goal


@pytest.fixture
def fake_books() -> InMemoryBooks:
    """In-memory book repository."""
    return InMemoryBooks()


@pytest.fixture
def fake_sessions() -> InMemorySessions:
    """In-memory reading session repository."""
    return InMemorySessions()


@pytest.fixture
def fake_reviews() -> InMemoryReviews:
    """In-memory review repository."""
    return InMemoryReviews()


@pytest.fixture
def fake_goals() -> InMemoryGoals:
    """In-memory goal repository."""
    return InMemoryGoals()
