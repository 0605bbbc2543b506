"""Reading session recording.

A reading session is an immutable log entry of pages read and minutes spent
on one book. Recording one immediately re-derives the book's progress.
"""

import logging
import threading
import weakref
from datetime import datetime
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from ..db.models import ReadingSession
from ..db.repository import BookRepository, ReadingSessionRepository
from ..db.schemas import ReadingSessionCreate
from ..db.sqlite import Database, get_db
from ..errors import NotFoundError, ValidationError, describe_validation_error
from .progress import ProgressUpdater

logger = logging.getLogger(__name__)


class SessionRecorder:
    """Records reading sessions and drives progress updates."""

    def __init__(
        self,
        db: Optional[Database] = None,
        books: Optional[BookRepository] = None,
        sessions: Optional[ReadingSessionRepository] = None,
        progress_updater: Optional[ProgressUpdater] = None,
    ):
        """Initialize session recorder.

        Args:
            db: Database used for any collaborator not given explicitly
            books: Book repository
            sessions: Reading session repository
            progress_updater: Updater run after every recorded session
        """
        if books is None or sessions is None or progress_updater is None:
            db = db or get_db()
        self.books = books if books is not None else db
        self.sessions = sessions if sessions is not None else db
        self.progress_updater = (
            progress_updater
            if progress_updater is not None
            else ProgressUpdater(db, books=self.books, sessions=self.sessions)
        )
        # Locks live only while a write for their book holds them
        self._locks = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _lock_for(self, book_id: str) -> threading.Lock:
        """Get the lock serializing writes for one book."""
        with self._locks_guard:
            lock = self._locks.get(book_id)
            if lock is None:
                lock = self._locks[book_id] = threading.Lock()
            return lock

    def record_session(
        self,
        book_id: str,
        pages_read: int,
        minutes_spent: int,
        timestamp: Optional[datetime] = None,
    ) -> ReadingSession:
        """Record a reading session for a book.

        Args:
            book_id: ID of the book read
            pages_read: Pages read in this session (positive)
            minutes_spent: Time spent reading (zero or more)
            timestamp: When the session happened (default: now)

        Returns:
            The persisted ReadingSession

        Raises:
            ValidationError: If pages or minutes are out of range
            NotFoundError: If the book does not exist
        """
        try:
            data = ReadingSessionCreate(
                book_id=book_id,
                pages_read=pages_read,
                minutes_spent=minutes_spent,
                date=timestamp,
            )
        except PydanticValidationError as e:
            raise ValidationError(describe_validation_error(e)) from e

        if not self.books.get_book(book_id):
            raise NotFoundError("Book", book_id)

        # Session write, progress update and goal update run as one unit per book
        with self._lock_for(book_id):
            book = self.books.get_book(book_id)
            if not book:
                raise NotFoundError("Book", book_id)

            session = self.sessions.create_reading_session(data)
            logger.info(
                "Logged %s pages / %s min for '%s'",
                session.pages_read,
                session.minutes_spent,
                book.title,
            )

            self.progress_updater.recompute_progress(book_id)

        return session

    def get_sessions_for_book(self, book_id: str) -> list[ReadingSession]:
        """Get every session recorded for a book, oldest first.

        Raises:
            NotFoundError: If the book does not exist
        """
        if not self.books.get_book(book_id):
            raise NotFoundError("Book", book_id)
        return self.sessions.get_reading_sessions_for_book(book_id)

    def get_sessions_in_range(self, start: datetime, end: datetime) -> list[ReadingSession]:
        """Get sessions with ``start <= date <= end``.

        Raises:
            ValidationError: If the range is reversed
        """
        if end < start:
            raise ValidationError("end must not be before start")
        return self.sessions.get_reading_sessions_by_date_range(start, end)


# Global session recorder instance
_session_recorder: Optional[SessionRecorder] = None


def get_session_recorder(db: Optional[Database] = None) -> SessionRecorder:
    """Get or create the global session recorder instance."""
    global _session_recorder
    if _session_recorder is None:
        _session_recorder = SessionRecorder(db)
    return _session_recorder


def reset_session_recorder() -> None:
    """Reset the global session recorder. Used for testing."""
    global _session_recorder
    _session_recorder = None
