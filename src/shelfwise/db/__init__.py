"""Database module for local SQLite storage."""

from .models import Book, ReadingGoal, ReadingSession
from .repository import (
    BookRepository,
    GoalRepository,
    ReadingSessionRepository,
    ReviewRepository,
)
from .schemas import (
    BookCreate,
    BookStatus,
    BookUpdate,
    ReadingGoalCreate,
    ReadingGoalUpdate,
    ReadingSessionCreate,
)
from .sqlite import Database, get_db

__all__ = [
    "Book",
    "ReadingGoal",
    "ReadingSession",
    "BookRepository",
    "GoalRepository",
    "ReadingSessionRepository",
    "ReviewRepository",
    "BookCreate",
    "BookStatus",
    "BookUpdate",
    "ReadingGoalCreate",
    "ReadingGoalUpdate",
    "ReadingSessionCreate",
    "Database",
    "get_db",
]
