"""Pydantic schemas for data validation.

These schemas validate every write that reaches the database layer:
books, reading sessions and reading goals.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class BookStatus(str, Enum):
    """Lifecycle stage of a library entry."""

    WANT_TO_READ = "want_to_read"
    READING = "reading"
    COMPLETED = "completed"


# ============================================================================
# Book Schemas
# ============================================================================


class BookBase(BaseModel):
    """Base book fields common to create/update operations."""

    title: str = Field(..., min_length=1, description="Book title")
    author: str = Field(..., min_length=1, description="Primary author")
    genre: str = Field(..., min_length=1, description="Primary genre")
    pages: Optional[int] = Field(None, ge=0, description="Total page count, None if unknown")
    status: BookStatus = Field(default=BookStatus.WANT_TO_READ)
    progress: Optional[int] = Field(0, ge=0, le=100, description="Percent read")
    cover_url: Optional[str] = None
    description: Optional[str] = None
    is_wishlist: bool = False
    tags: Optional[list[str]] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v) -> Optional[list[str]]:
        """Strip whitespace and drop empty or duplicate tags."""
        if v is None:
            return None
        if isinstance(v, str):
            v = v.split(",")
        seen: list[str] = []
        for tag in v:
            tag = str(tag).strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class BookCreate(BookBase):
    """Schema for creating a new book."""

    pass


class BookUpdate(BaseModel):
    """Schema for updating an existing book. All fields optional."""

    title: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = Field(None, min_length=1)
    genre: Optional[str] = Field(None, min_length=1)
    pages: Optional[int] = Field(None, ge=0)
    status: Optional[BookStatus] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    date_started: Optional[datetime] = None
    date_finished: Optional[datetime] = None
    cover_url: Optional[str] = None
    description: Optional[str] = None
    is_wishlist: Optional[bool] = None
    tags: Optional[list[str]] = None


# ============================================================================
# Reading Session Schemas
# ============================================================================


class ReadingSessionCreate(BaseModel):
    """Schema for recording a reading session."""

    book_id: str = Field(..., min_length=1)
    pages_read: int = Field(..., gt=0, description="Pages read in this session")
    minutes_spent: int = Field(..., ge=0, description="Minutes spent reading")
    date: Optional[datetime] = Field(None, description="When the session happened (default: now)")

    @field_validator("pages_read", "minutes_spent", mode="before")
    @classmethod
    def reject_non_integers(cls, v):
        """Reject floats and booleans instead of silently truncating them."""
        if isinstance(v, bool) or (isinstance(v, float) and not v.is_integer()):
            raise ValueError("must be a whole number")
        return v


# ============================================================================
# Reading Goal Schemas
# ============================================================================


class ReadingGoalCreate(BaseModel):
    """Schema for creating a yearly reading goal."""

    year: int = Field(..., ge=1900, le=9999)
    target_books: int = Field(..., ge=1, description="Number of books to finish")


class ReadingGoalUpdate(BaseModel):
    """Schema for updating a reading goal. All fields optional."""

    target_books: Optional[int] = Field(None, ge=1)
    books_read: Optional[int] = Field(None, ge=0)
    completed: Optional[bool] = None
