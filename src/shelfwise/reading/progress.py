"""Reading progress derivation.

Progress is re-derived from a book's full session history on every call
rather than kept as a running total, so the result does not depend on the
order in which sessions were recorded.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..db.models import Book, utc_now
from ..db.repository import BookRepository, ReadingSessionRepository
from ..db.schemas import BookStatus, BookUpdate
from ..db.sqlite import Database, get_db
from ..errors import NotFoundError
from ..stats.goals import GoalTracker

logger = logging.getLogger(__name__)


@dataclass
class ProgressChange:
    """Outcome of one progress recomputation."""

    book_id: str
    previous: Optional[int]
    derived: Optional[int]  # None when the page count is unknown
    applied: bool = False
    completed: bool = False

    @property
    def current(self) -> Optional[int]:
        """Progress stored on the book after the recomputation."""
        if self.completed:
            return 100
        return self.derived if self.applied else self.previous


class ProgressUpdater:
    """Derives book progress from session history and finishes books."""

    def __init__(
        self,
        db: Optional[Database] = None,
        books: Optional[BookRepository] = None,
        sessions: Optional[ReadingSessionRepository] = None,
        goal_tracker: Optional[GoalTracker] = None,
    ):
        """Initialize progress updater.

        Args:
            db: Database used for any collaborator not given explicitly
            books: Book repository
            sessions: Reading session repository
            goal_tracker: Goal tracker notified when a book is finished
        """
        if books is None or sessions is None or goal_tracker is None:
            db = db or get_db()
        self.books = books if books is not None else db
        self.sessions = sessions if sessions is not None else db
        self.goal_tracker = goal_tracker if goal_tracker is not None else GoalTracker(db)

    def recompute_progress(self, book_id: str) -> ProgressChange:
        """Recompute a book's progress after a session was recorded.

        The derived percentage is only written when it is higher than the
        stored one. A derived value of exactly 100 finishes the book and
        counts it towards the goal for the finish year.

        Args:
            book_id: Book ID

        Returns:
            ProgressChange describing what happened

        Raises:
            NotFoundError: If the book does not exist
        """
        book = self.books.get_book(book_id)
        if not book:
            raise NotFoundError("Book", book_id)

        change = ProgressChange(book_id=book_id, previous=book.progress, derived=None)

        sessions = self.sessions.get_reading_sessions_for_book(book_id)
        total_pages_read = sum(s.pages_read for s in sessions)
        change.derived = calculate_progress(total_pages_read, book.pages)
        if change.derived is None:
            logger.debug("'%s' has no page count, progress left unchanged", book.title)
            return change

        if book.progress is None or change.derived > book.progress:
            self.books.update_book(book_id, BookUpdate(progress=change.derived))
            change.applied = True
            logger.debug("'%s' progress %s%% -> %s%%", book.title, book.progress, change.derived)

        if change.derived == 100 and book.status != BookStatus.COMPLETED.value:
            self._complete(book)
            change.completed = True

        return change

    def _complete(self, book: Book) -> None:
        """Mark a book completed and count it towards its year's goal."""
        finished = utc_now()
        self.books.update_book(
            book.id,
            BookUpdate(
                status=BookStatus.COMPLETED,
                progress=100,
                date_finished=finished,
            ),
        )
        logger.info("Finished '%s' by %s", book.title, book.author)

        # The book stays completed even if the goal update fails
        self.goal_tracker.on_book_completed(finished.year)

    def get_book_progress(self, book_id: str) -> dict:
        """Get progress info for a specific book.

        Args:
            book_id: Book ID

        Returns:
            Dictionary with progress info:
            - progress_percent: Stored progress percentage
            - total_pages: Book's page count
            - pages_read: Total pages read across sessions
            - time_spent_minutes: Total reading time
            - sessions_count: Number of reading sessions
            - reading_speed: Pages per hour
            - estimated_time_remaining: Minutes to finish at current pace
        """
        book = self.books.get_book(book_id)
        if not book:
            raise NotFoundError("Book", book_id)

        sessions = self.sessions.get_reading_sessions_for_book(book_id)
        total_pages_read = sum(s.pages_read for s in sessions)
        total_minutes = sum(s.minutes_spent for s in sessions)

        # Estimate remaining time
        estimated_remaining = None
        if total_pages_read > 0 and total_minutes > 0 and book.pages:
            pages_per_minute = total_pages_read / total_minutes
            remaining_pages = max(0, book.pages - total_pages_read)
            estimated_remaining = int(remaining_pages / pages_per_minute)

        return {
            "book_id": book_id,
            "book_title": book.title,
            "status": book.status,
            "progress_percent": book.progress,
            "total_pages": book.pages,
            "pages_read": total_pages_read,
            "time_spent_minutes": total_minutes,
            "sessions_count": len(sessions),
            "reading_speed": calculate_reading_speed(total_pages_read, total_minutes),
            "estimated_time_remaining": estimated_remaining,
        }


def calculate_progress(pages_read: int, total_pages: Optional[int]) -> Optional[int]:
    """Calculate whole-percent progress, clamped at 100.

    Args:
        pages_read: Pages read across all sessions
        total_pages: Book length, None or 0 if unknown

    Returns:
        Progress 0-100, or None when the length is unknown
    """
    if not total_pages or total_pages <= 0:
        return None
    # floor(min(read / total, 1) * 100) in integer arithmetic
    return min(pages_read, total_pages) * 100 // total_pages


def calculate_reading_speed(pages: int, minutes: int) -> float:
    """Calculate reading speed in pages per hour.

    Args:
        pages: Number of pages read
        minutes: Time spent reading

    Returns:
        Pages per hour
    """
    if minutes <= 0:
        return 0.0
    return round((pages / minutes) * 60, 1)
