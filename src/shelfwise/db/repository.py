"""Repository interfaces consumed by the reading and statistics engine.

The engine only talks to these abstract collaborators, so it can be run
against the SQLite ``Database``, the ``ReviewManager``, or an in-memory fake.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from .models import Book, ReadingGoal, ReadingSession
from .schemas import BookUpdate, ReadingGoalCreate, ReadingGoalUpdate, ReadingSessionCreate


class BookRepository(ABC):
    """CRUD-plus-query access to book records."""

    @abstractmethod
    def get_book(self, book_id: str) -> Optional[Book]:
        """Get a book by ID, or None."""
        pass

    @abstractmethod
    def update_book(self, book_id: str, update: BookUpdate) -> Optional[Book]:
        """Apply a partial update. Returns the updated book or None if missing."""
        pass

    @abstractmethod
    def get_books_by_status(self, status: str) -> list[Book]:
        """Get all books with a given status."""
        pass

    @abstractmethod
    def get_all_books(self) -> list[Book]:
        """Get all books."""
        pass


class ReadingSessionRepository(ABC):
    """Append-only storage of reading sessions."""

    @abstractmethod
    def create_reading_session(self, data: ReadingSessionCreate) -> ReadingSession:
        """Persist a new session."""
        pass

    @abstractmethod
    def get_reading_sessions_for_book(self, book_id: str) -> list[ReadingSession]:
        """Get every session recorded for a book."""
        pass

    @abstractmethod
    def get_reading_sessions_by_date_range(
        self, start: datetime, end: datetime
    ) -> list[ReadingSession]:
        """Get sessions with ``start <= date <= end``."""
        pass


class ReviewRepository(ABC):
    """Read access to reviews."""

    @abstractmethod
    def list_reviews(self) -> list:
        """Get all reviews."""
        pass

    @abstractmethod
    def get_reviews_for_book(self, book_id: str) -> list:
        """Get all reviews of one book."""
        pass


class GoalRepository(ABC):
    """Storage of yearly reading goals, keyed by year."""

    @abstractmethod
    def get_reading_goal(self, year: int) -> Optional[ReadingGoal]:
        """Get the goal for a year, or None."""
        pass

    @abstractmethod
    def get_all_reading_goals(self) -> list[ReadingGoal]:
        """Get every goal, most recent year first."""
        pass

    @abstractmethod
    def update_reading_goal(
        self, year: int, update: ReadingGoalUpdate
    ) -> Optional[ReadingGoal]:
        """Apply a partial update. Returns the updated goal or None if missing."""
        pass

    @abstractmethod
    def create_reading_goal(self, data: ReadingGoalCreate) -> ReadingGoal:
        """Create the goal for a year, or update the target if one exists."""
        pass
