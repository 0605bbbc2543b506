"""SQLite database operations.

Handles database connection, session management, and CRUD operations for
books, reading sessions and reading goals.
"""

import logging
import os
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, delete, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base, Book, ReadingGoal, ReadingSession, to_iso, utc_now
from .repository import BookRepository, GoalRepository, ReadingSessionRepository
from .schemas import (
    BookCreate,
    BookStatus,
    BookUpdate,
    ReadingGoalCreate,
    ReadingGoalUpdate,
    ReadingSessionCreate,
)

logger = logging.getLogger(__name__)

DATETIME_FIELDS = ("date_started", "date_finished")


class Database(BookRepository, ReadingSessionRepository, GoalRepository):
    """Database connection and operations manager."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses
                     SHELFWISE_DB_PATH env var or default location.
        """
        if db_path is None:
            db_path = os.environ.get(
                "SHELFWISE_DB_PATH",
                str(Path.home() / ".shelfwise" / "books.db"),
            )

        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # In-memory databases must share one connection across sessions
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False},
            )
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        # Import review models to register them with Base
        from ..reviews.models import Review  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ========================================================================
    # Book Operations
    # ========================================================================

    def create_book(self, book: BookCreate, session: Optional[Session] = None) -> Book:
        """Create a new book record.

        The start and finish dates are stamped from the initial status.
        """

        def _create(s: Session) -> Book:
            now = utc_now()
            status = book.status
            progress = book.progress
            if status == BookStatus.COMPLETED:
                progress = 100

            db_book = Book(
                title=book.title,
                author=book.author,
                genre=book.genre,
                pages=book.pages,
                status=status.value,
                progress=progress,
                cover_url=book.cover_url,
                description=book.description,
                is_wishlist=book.is_wishlist,
                date_added=to_iso(now),
                date_started=to_iso(now) if status in (BookStatus.READING, BookStatus.COMPLETED) else None,
                date_finished=to_iso(now) if status == BookStatus.COMPLETED else None,
            )
            db_book.set_tags(book.tags or [])

            s.add(db_book)
            s.flush()
            logger.debug("Created book %s (%s)", db_book.id, db_book.title)
            return db_book

        if session:
            return _create(session)
        else:
            with self.get_session() as s:
                book_obj = _create(s)
                s.expunge(book_obj)
                return book_obj

    def get_book(self, book_id: str, session: Optional[Session] = None) -> Optional[Book]:
        """Get a book by ID."""

        def _get(s: Session) -> Optional[Book]:
            return s.get(Book, book_id)

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                book = _get(s)
                if book:
                    s.expunge(book)
                return book

    def get_books_by_status(
        self, status: str, session: Optional[Session] = None
    ) -> list[Book]:
        """Get all books with a given status."""
        if isinstance(status, BookStatus):
            status = status.value

        def _get(s: Session) -> list[Book]:
            stmt = select(Book).where(Book.status == status).order_by(Book.title)
            return list(s.execute(stmt).scalars().all())

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                books = _get(s)
                for book in books:
                    s.expunge(book)
                return books

    def get_all_books(self, session: Optional[Session] = None) -> list[Book]:
        """Get all books."""

        def _get(s: Session) -> list[Book]:
            stmt = select(Book).order_by(Book.title)
            return list(s.execute(stmt).scalars().all())

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                books = _get(s)
                for book in books:
                    s.expunge(book)
                return books

    def get_wishlist_books(self, session: Optional[Session] = None) -> list[Book]:
        """Get all books flagged as wishlist."""

        def _get(s: Session) -> list[Book]:
            stmt = select(Book).where(Book.is_wishlist == True).order_by(Book.title)  # noqa: E712
            return list(s.execute(stmt).scalars().all())

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                books = _get(s)
                for book in books:
                    s.expunge(book)
                return books

    def get_books_by_tags(
        self, tags: list[str], session: Optional[Session] = None
    ) -> list[Book]:
        """Get books carrying any of the given tags."""
        wanted = set(tags)
        books = self.get_all_books(session)
        return [book for book in books if wanted.intersection(book.get_tags())]

    def search_books(
        self, query: str, limit: int = 20, session: Optional[Session] = None
    ) -> list[Book]:
        """Search books by title or author."""

        def _search(s: Session) -> list[Book]:
            pattern = f"%{query}%"
            stmt = (
                select(Book)
                .where((Book.title.ilike(pattern)) | (Book.author.ilike(pattern)))
                .order_by(Book.title)
                .limit(limit)
            )
            return list(s.execute(stmt).scalars().all())

        if session:
            return _search(session)
        else:
            with self.get_session() as s:
                books = _search(s)
                for book in books:
                    s.expunge(book)
                return books

    def update_book(
        self, book_id: str, update: BookUpdate, session: Optional[Session] = None
    ) -> Optional[Book]:
        """Update a book record.

        Direct edits are authoritative: ``progress`` may be set to any value,
        including one lower than the session-derived progress. Status changes
        stamp the matching date when the caller did not supply one.
        """

        def _update(s: Session) -> Optional[Book]:
            book = s.get(Book, book_id)
            if not book:
                return None

            update_data = update.model_dump(exclude_unset=True)
            new_status = update_data.get("status")
            if new_status and new_status.value != book.status:
                now = utc_now()
                if new_status == BookStatus.READING and not book.date_started:
                    update_data.setdefault("date_started", now)
                elif new_status == BookStatus.COMPLETED:
                    if not book.date_finished:
                        update_data.setdefault("date_finished", now)
                    update_data["progress"] = 100

            for field, value in update_data.items():
                if field == "tags":
                    book.set_tags(value or [])
                elif field in DATETIME_FIELDS:
                    setattr(book, field, to_iso(value))
                elif field == "status" and value:
                    book.status = value.value
                else:
                    setattr(book, field, value)

            book.updated_at = utc_now().isoformat()
            s.flush()
            return book

        if session:
            return _update(session)
        else:
            with self.get_session() as s:
                book = _update(s)
                if book:
                    s.expunge(book)
                return book

    def delete_book(self, book_id: str, session: Optional[Session] = None) -> bool:
        """Delete a book record with its reading sessions and reviews."""
        from ..reviews.models import Review

        def _delete(s: Session) -> bool:
            book = s.get(Book, book_id)
            if not book:
                return False

            s.execute(delete(Review).where(Review.book_id == book_id))
            s.delete(book)
            logger.debug("Deleted book %s", book_id)
            return True

        if session:
            return _delete(session)
        else:
            with self.get_session() as s:
                return _delete(s)

    # ========================================================================
    # Reading Session Operations
    # ========================================================================

    def create_reading_session(
        self, data: ReadingSessionCreate, session: Optional[Session] = None
    ) -> ReadingSession:
        """Create a new reading session entry."""

        def _create(s: Session) -> ReadingSession:
            db_session = ReadingSession(
                book_id=data.book_id,
                pages_read=data.pages_read,
                minutes_spent=data.minutes_spent,
                date=to_iso(data.date or utc_now()),
            )
            s.add(db_session)
            s.flush()
            return db_session

        if session:
            return _create(session)
        else:
            with self.get_session() as s:
                reading_session = _create(s)
                s.expunge(reading_session)
                return reading_session

    def get_reading_sessions_for_book(
        self, book_id: str, session: Optional[Session] = None
    ) -> list[ReadingSession]:
        """Get all reading sessions for a book, oldest first."""

        def _get(s: Session) -> list[ReadingSession]:
            stmt = (
                select(ReadingSession)
                .where(ReadingSession.book_id == book_id)
                .order_by(ReadingSession.date)
            )
            return list(s.execute(stmt).scalars().all())

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                sessions = _get(s)
                for item in sessions:
                    s.expunge(item)
                return sessions

    def get_reading_sessions_by_date_range(
        self,
        start: datetime,
        end: datetime,
        session: Optional[Session] = None,
    ) -> list[ReadingSession]:
        """Get reading sessions within a date range.

        Args:
            start: Inclusive lower bound
            end: Inclusive upper bound
        """
        start_iso = to_iso(start)
        end_iso = to_iso(end)

        def _get(s: Session) -> list[ReadingSession]:
            stmt = (
                select(ReadingSession)
                .where(
                    ReadingSession.date >= start_iso,
                    ReadingSession.date <= end_iso,
                )
                .order_by(ReadingSession.date)
            )
            return list(s.execute(stmt).scalars().all())

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                sessions = _get(s)
                for item in sessions:
                    s.expunge(item)
                return sessions

    # ========================================================================
    # Reading Goal Operations
    # ========================================================================

    def get_reading_goal(
        self, year: int, session: Optional[Session] = None
    ) -> Optional[ReadingGoal]:
        """Get the reading goal for a year."""

        def _get(s: Session) -> Optional[ReadingGoal]:
            stmt = select(ReadingGoal).where(ReadingGoal.year == year)
            return s.execute(stmt).scalar_one_or_none()

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                goal = _get(s)
                if goal:
                    s.expunge(goal)
                return goal

    def get_all_reading_goals(self, session: Optional[Session] = None) -> list[ReadingGoal]:
        """Get all reading goals, most recent year first."""

        def _get(s: Session) -> list[ReadingGoal]:
            stmt = select(ReadingGoal).order_by(ReadingGoal.year.desc())
            return list(s.execute(stmt).scalars().all())

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                goals = _get(s)
                for goal in goals:
                    s.expunge(goal)
                return goals

    def create_reading_goal(
        self, data: ReadingGoalCreate, session: Optional[Session] = None
    ) -> ReadingGoal:
        """Create a goal for a year, or retarget the existing one."""

        def _create(s: Session) -> ReadingGoal:
            goal = self.get_reading_goal(data.year, s)
            if goal:
                goal.target_books = data.target_books
                goal.completed = (goal.books_read or 0) >= goal.target_books
                s.flush()
                return goal

            goal = ReadingGoal(
                year=data.year,
                target_books=data.target_books,
                books_read=0,
                completed=False,
            )
            s.add(goal)
            s.flush()
            return goal

        if session:
            return _create(session)
        else:
            with self.get_session() as s:
                goal = _create(s)
                s.expunge(goal)
                return goal

    def update_reading_goal(
        self, year: int, update: ReadingGoalUpdate, session: Optional[Session] = None
    ) -> Optional[ReadingGoal]:
        """Update the reading goal for a year."""

        def _update(s: Session) -> Optional[ReadingGoal]:
            goal = self.get_reading_goal(year, s)
            if not goal:
                return None

            for field, value in update.model_dump(exclude_unset=True).items():
                setattr(goal, field, value)
            s.flush()
            return goal

        if session:
            return _update(session)
        else:
            with self.get_session() as s:
                goal = _update(s)
                if goal:
                    s.expunge(goal)
                return goal


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    _db = None
