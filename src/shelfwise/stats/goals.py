"""Reading goals tracking.

One goal per calendar year, counting finished books. The completed-book
counter is advanced by the progress engine when a book reaches 100%; goals
are not linked to books, so completions that happen before a goal exists
are never counted retroactively.
"""

import logging
import threading
from datetime import date
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from ..db.models import ReadingGoal
from ..db.repository import GoalRepository
from ..db.schemas import ReadingGoalCreate, ReadingGoalUpdate
from ..db.sqlite import get_db
from ..errors import NotFoundError, ValidationError, describe_validation_error

logger = logging.getLogger(__name__)


class GoalTracker:
    """Tracks and manages yearly reading goals."""

    # Serializes read-modify-write of goal rows across all trackers
    _write_lock = threading.Lock()

    def __init__(self, goals: Optional[GoalRepository] = None):
        """Initialize goal tracker.

        Args:
            goals: Goal repository (default: the global database)
        """
        self.goals = goals if goals is not None else get_db()

    def set_goal(self, target_books: int, year: Optional[int] = None) -> ReadingGoal:
        """Set the reading goal for a year.

        Setting a goal for a year that already has one changes its target
        and keeps the completed-book count.

        Args:
            target_books: Number of books to finish
            year: Year for goal (default: current year)

        Returns:
            The created/updated goal

        Raises:
            ValidationError: If the target or year is out of range
        """
        if year is None:
            year = date.today().year

        try:
            data = ReadingGoalCreate(year=year, target_books=target_books)
        except PydanticValidationError as e:
            raise ValidationError(describe_validation_error(e)) from e

        with self._write_lock:
            goal = self.goals.create_reading_goal(data)
        logger.info("Reading goal for %s set to %s books", year, target_books)
        return goal

    def get_goal(self, year: Optional[int] = None) -> Optional[ReadingGoal]:
        """Get the goal for a year (default: current year), or None."""
        if year is None:
            year = date.today().year
        return self.goals.get_reading_goal(year)

    def get_all_goals(self) -> list[ReadingGoal]:
        """Get all goals, most recent year first."""
        return self.goals.get_all_reading_goals()

    def update_goal(self, year: int, update: ReadingGoalUpdate) -> ReadingGoal:
        """Apply a direct edit to a goal.

        Raises:
            NotFoundError: If no goal exists for the year
        """
        with self._write_lock:
            goal = self.goals.update_reading_goal(year, update)
        if goal is None:
            raise NotFoundError("Reading goal", year)
        return goal

    def on_book_completed(self, year: int) -> Optional[ReadingGoal]:
        """Count one finished book towards the goal for ``year``.

        Args:
            year: Calendar year of the book's finish date

        Returns:
            The updated goal, or None when the year has no goal
        """
        with self._write_lock:
            goal = self.goals.get_reading_goal(year)
            if goal is None:
                logger.debug("No reading goal for %s, completion not counted", year)
                return None

            books_read = (goal.books_read or 0) + 1
            updated = self.goals.update_reading_goal(
                year,
                ReadingGoalUpdate(
                    books_read=books_read,
                    completed=books_read >= goal.target_books,
                ),
            )
        logger.info(
            "Reading goal %s: %s/%s books", year, books_read, goal.target_books
        )
        return updated

    def calculate_required_pace(
        self, goal: ReadingGoal, today: Optional[date] = None
    ) -> dict:
        """Calculate required pace to meet goal.

        Args:
            goal: Goal to analyze
            today: Reference date (default: today)

        Returns:
            Dictionary with pace requirements
        """
        if today is None:
            today = date.today()

        if goal.year == today.year:
            remaining_days = (date(goal.year, 12, 31) - today).days
        elif goal.year > today.year:
            remaining_days = (date(goal.year, 12, 31) - date(goal.year, 1, 1)).days + 1
        else:
            remaining_days = 0

        remaining = goal.remaining

        if remaining_days <= 0 or remaining <= 0:
            per_week = 0.0
            per_month = 0.0
        else:
            per_week = remaining / remaining_days * 7
            per_month = remaining / remaining_days * 30

        return {
            "remaining": remaining,
            "remaining_days": remaining_days,
            "per_week": round(per_week, 2),
            "per_month": round(per_month, 2),
            "is_achievable": remaining == 0 or remaining_days > 0,
        }
