"""Pydantic schemas for book reviews."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _half_step(v: Optional[float]) -> Optional[float]:
    """Snap a rating to the nearest half star within 0.5-5.0."""
    if v is None:
        return None
    v = round(v * 2) / 2
    return min(5.0, max(0.5, v))


class ReviewCreate(BaseModel):
    """Schema for creating a review."""

    book_id: str = Field(..., min_length=1)
    rating: Optional[float] = Field(None, ge=0.5, le=5.0)
    content: Optional[str] = None
    tags: Optional[list[str]] = None

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v):
        """Validate rating is in 0.5 increments."""
        return _half_step(v)


class ReviewUpdate(BaseModel):
    """Schema for updating a review."""

    rating: Optional[float] = Field(None, ge=0.5, le=5.0)
    content: Optional[str] = None
    tags: Optional[list[str]] = None

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v):
        """Validate rating is in 0.5 increments."""
        return _half_step(v)
