"""Review manager for book review operations."""

import logging
from typing import Optional

from sqlalchemy import select

from ..db.models import Book
from ..db.repository import ReviewRepository
from ..db.sqlite import Database, get_db
from ..errors import NotFoundError
from .models import Review
from .schemas import ReviewCreate, ReviewUpdate

logger = logging.getLogger(__name__)


class ReviewManager(ReviewRepository):
    """Manages book review operations."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize review manager.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    # -------------------------------------------------------------------------
    # Review CRUD
    # -------------------------------------------------------------------------

    def create_review(self, data: ReviewCreate) -> Review:
        """Create a new review.

        Args:
            data: Review creation data

        Returns:
            Created review

        Raises:
            NotFoundError: If the book does not exist
        """
        with self.db.get_session() as session:
            book = session.get(Book, data.book_id)
            if not book:
                raise NotFoundError("Book", data.book_id)

            review = Review(
                book_id=data.book_id,
                rating=data.rating,
                content=data.content,
                tags=",".join(data.tags) if data.tags else None,
            )

            session.add(review)
            session.flush()
            session.refresh(review)
            logger.info("Reviewed '%s' (rating=%s)", book.title, review.rating)
            session.expunge(review)
            return review

    def get_review(self, review_id: str) -> Optional[Review]:
        """Get a review by ID."""
        with self.db.get_session() as session:
            review = session.get(Review, review_id)
            if review:
                session.expunge(review)
            return review

    def get_reviews_for_book(self, book_id: str) -> list[Review]:
        """Get all reviews of one book, newest first.

        Args:
            book_id: Book ID

        Returns:
            List of reviews
        """
        with self.db.get_session() as session:
            stmt = (
                select(Review)
                .where(Review.book_id == book_id)
                .order_by(Review.date_reviewed.desc())
            )
            reviews = list(session.execute(stmt).scalars().all())
            for review in reviews:
                session.expunge(review)
            return reviews

    def list_reviews(self, min_rating: Optional[float] = None) -> list[Review]:
        """List all reviews, optionally filtered by minimum rating.

        Args:
            min_rating: Minimum rating filter

        Returns:
            List of reviews, newest first
        """
        with self.db.get_session() as session:
            stmt = select(Review)
            if min_rating is not None:
                stmt = stmt.where(Review.rating >= min_rating)
            stmt = stmt.order_by(Review.date_reviewed.desc())

            reviews = list(session.execute(stmt).scalars().all())
            for review in reviews:
                session.expunge(review)
            return reviews

    def update_review(self, review_id: str, data: ReviewUpdate) -> Optional[Review]:
        """Update a review.

        Args:
            review_id: Review ID
            data: Fields to change

        Returns:
            Updated review or None if not found
        """
        with self.db.get_session() as session:
            review = session.get(Review, review_id)
            if not review:
                return None

            update_data = data.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if field == "tags":
                    review.tags = ",".join(value) if value else None
                else:
                    setattr(review, field, value)

            session.flush()
            session.refresh(review)
            session.expunge(review)
            return review

    def delete_review(self, review_id: str) -> bool:
        """Delete a review.

        Returns:
            True if deleted, False if not found
        """
        with self.db.get_session() as session:
            review = session.get(Review, review_id)
            if not review:
                return False
            session.delete(review)
            return True
