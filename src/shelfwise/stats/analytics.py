"""Reading analytics and statistics calculations.

Provides the yearly statistics report:
- Books and pages read
- Reading time from sessions
- Average review rating
- Genre distribution of finished books
- Monthly completion histogram
- The year's reading goal
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from ..db.models import Book, ReadingGoal
from ..db.repository import (
    BookRepository,
    GoalRepository,
    ReadingSessionRepository,
    ReviewRepository,
)
from ..db.schemas import BookStatus
from ..db.sqlite import Database, get_db
from ..errors import InconsistentStateError, ValidationError

logger = logging.getLogger(__name__)

# Same range accepted for reading goals
MIN_YEAR = 1900
MAX_YEAR = 9999


@dataclass
class GenreShare:
    """Share of finished books in one genre."""

    genre: str
    count: int
    percentage: float


@dataclass
class MonthlyCount:
    """Books finished in one month (0 = January)."""

    month: int
    count: int


@dataclass
class DailyActivity:
    """Reading done on one day."""

    day: date
    minutes: int = 0
    pages: int = 0


@dataclass
class StatisticsReport:
    """Reading statistics for a reporting year."""

    year: int
    books_read: int = 0
    pages_read: int = 0
    average_rating: float = 0.0
    reading_time_minutes: int = 0
    reading_goal: Optional[ReadingGoal] = None
    genre_distribution: list[GenreShare] = field(default_factory=list)
    monthly_progress: list[MonthlyCount] = field(
        default_factory=lambda: [MonthlyCount(month=m, count=0) for m in range(12)]
    )


def year_bounds(year: int) -> tuple[datetime, datetime]:
    """First and last instant of a calendar year in UTC."""
    start = datetime(year, 1, 1, tzinfo=timezone.utc)
    end = datetime(year, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)
    return start, end


class StatisticsAggregator:
    """Computes reporting statistics from the current library state."""

    def __init__(
        self,
        db: Optional[Database] = None,
        books: Optional[BookRepository] = None,
        sessions: Optional[ReadingSessionRepository] = None,
        reviews: Optional[ReviewRepository] = None,
        goals: Optional[GoalRepository] = None,
    ):
        """Initialize statistics aggregator.

        Args:
            db: Database used for any collaborator not given explicitly
            books: Book repository
            sessions: Reading session repository
            reviews: Review repository
            goals: Goal repository
        """
        if None in (books, sessions, reviews, goals):
            db = db or get_db()
        self.books = books if books is not None else db
        self.sessions = sessions if sessions is not None else db
        self.goals = goals if goals is not None else db
        if reviews is None:
            from ..reviews.manager import ReviewManager

            reviews = ReviewManager(db)
        self.reviews = reviews

    def compute_statistics(self, year: Optional[int] = None) -> StatisticsReport:
        """Compute the statistics report for a year.

        Read-only: every call re-scans the full collections.

        Args:
            year: Reporting year (default: current year)

        Returns:
            StatisticsReport with all metrics

        Raises:
            ValidationError: If the year is outside 1900-9999
        """
        if year is None:
            year = date.today().year
        if not MIN_YEAR <= year <= MAX_YEAR:
            raise ValidationError(
                f"year must be between {MIN_YEAR} and {MAX_YEAR}, got {year}"
            )

        # Books read and pages read count every completed book
        completed_books = self.books.get_books_by_status(BookStatus.COMPLETED.value)
        pages_read = sum(book.pages or 0 for book in completed_books)

        # Reading time counts only sessions inside the year
        start, end = year_bounds(year)
        sessions = self.sessions.get_reading_sessions_by_date_range(start, end)
        reading_time = sum(s.minutes_spent or 0 for s in sessions)

        # Average rating across all reviews, unrated ones count as 0
        reviews = self.reviews.list_reviews()
        average_rating = (
            sum(r.rating or 0 for r in reviews) / len(reviews) if reviews else 0.0
        )

        report = StatisticsReport(
            year=year,
            books_read=len(completed_books),
            pages_read=pages_read,
            average_rating=average_rating,
            reading_time_minutes=reading_time,
            reading_goal=self.goals.get_reading_goal(year),
            genre_distribution=genre_distribution(completed_books),
            monthly_progress=monthly_progress(completed_books, year),
        )

        issues = self._inconsistencies(completed_books)
        if issues:
            logger.warning(
                "%d completed book(s) without a page count counted as 0 pages", len(issues)
            )

        return report

    def reading_activity(
        self, days: int = 7, end: Optional[date] = None
    ) -> list[DailyActivity]:
        """Get per-day reading minutes and pages for a trailing window.

        Args:
            days: Number of days, ending with ``end``
            end: Last day of the window (default: today, UTC)

        Returns:
            One DailyActivity per day, oldest first
        """
        if end is None:
            end = datetime.now(timezone.utc).date()
        first = end - timedelta(days=days - 1)

        window = [first + timedelta(days=i) for i in range(days)]
        activity = {day: DailyActivity(day=day) for day in window}

        sessions = self.sessions.get_reading_sessions_by_date_range(
            datetime.combine(first, time.min, tzinfo=timezone.utc),
            datetime.combine(end, time.max, tzinfo=timezone.utc),
        )
        for session in sessions:
            day = session.occurred_at.date()
            if day in activity:
                activity[day].minutes += session.minutes_spent or 0
                activity[day].pages += session.pages_read or 0

        return [activity[day] for day in window]

    def find_inconsistencies(self) -> list[InconsistentStateError]:
        """List completed books whose page count is missing."""
        completed_books = self.books.get_books_by_status(BookStatus.COMPLETED.value)
        return self._inconsistencies(completed_books)

    @staticmethod
    def _inconsistencies(completed_books: list[Book]) -> list[InconsistentStateError]:
        return [
            InconsistentStateError(book.id, book.title, "completed without a page count")
            for book in completed_books
            if book.pages is None
        ]


def genre_distribution(completed_books: list[Book]) -> list[GenreShare]:
    """Group finished books by genre with count and percentage share.

    Args:
        completed_books: Books with status completed

    Returns:
        One entry per genre, most common first; empty when no books
    """
    if not completed_books:
        return []

    total = len(completed_books)
    counts = Counter(book.genre for book in completed_books)
    return [
        GenreShare(genre=genre, count=count, percentage=count / total * 100)
        for genre, count in counts.most_common()
    ]


def monthly_progress(completed_books: list[Book], year: int) -> list[MonthlyCount]:
    """Count finished books per month of ``year``.

    Args:
        completed_books: Books with status completed
        year: Reporting year

    Returns:
        Twelve entries, month 0 (January) to 11 (December)
    """
    counts = [0] * 12
    for book in completed_books:
        finished = book.finished_at
        if finished and finished.year == year:
            counts[finished.month - 1] += 1
    return [MonthlyCount(month=month, count=count) for month, count in enumerate(counts)]
