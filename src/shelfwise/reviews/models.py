"""SQLAlchemy models for book reviews.

Tables:
- reviews: Book reviews with ratings and text
"""

from typing import Optional

from sqlalchemy import Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..db.models import Base, Book, generate_uuid, utc_now


class Review(Base):
    """Review model - book reviews with ratings."""

    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # Book being reviewed (several reviews per book are allowed)
    book_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Rating (0.5-5 stars in half steps), None until first rated
    rating: Mapped[Optional[float]] = mapped_column(Float)

    content: Mapped[Optional[str]] = mapped_column(Text)

    # Tags for categorizing reviews
    tags: Mapped[Optional[str]] = mapped_column(Text)  # Comma-separated

    date_reviewed: Mapped[str] = mapped_column(
        String(32), default=lambda: utc_now().isoformat()
    )

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=lambda: utc_now().isoformat())
    updated_at: Mapped[str] = mapped_column(
        String(32),
        default=lambda: utc_now().isoformat(),
        onupdate=lambda: utc_now().isoformat(),
    )

    # Relationships
    book: Mapped["Book"] = relationship("Book")

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, book_id={self.book_id}, rating={self.rating})>"

    @property
    def tag_list(self) -> list[str]:
        """Get tags as a list."""
        if not self.tags:
            return []
        return [t.strip() for t in self.tags.split(",") if t.strip()]

    @property
    def star_display(self) -> str:
        """Get star rating display string."""
        if self.rating is None:
            return "No rating"

        full_stars = int(self.rating)
        half_star = self.rating - full_stars >= 0.5
        empty_stars = 5 - full_stars - (1 if half_star else 0)

        return "★" * full_stars + ("½" if half_star else "") + "☆" * empty_stars
