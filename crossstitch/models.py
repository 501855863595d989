from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, field_validator


class CatalogItem(BaseModel):
    id: int
    title: str
    size: str
    price: int
    description: str
    image_url: str
    # YYYY-MM-DD HH:MM:SS
    created_at: Optional[str] = None


class FeedbackEntry(BaseModel):
    id: int
    name: str
    email: str
    description: str
    # DD.MM.YYYY HH:MM
    created_at: str


class FeedbackStats(BaseModel):
    total_count: int
    last_7_days_count: int
    most_recent_display_timestamp: Optional[str] = None


class DatabaseStats(BaseModel):
    catalog_count: int
    feedback_count: int


class FeedbackSubmission(BaseModel):
    """
    Visitor feedback form. All three fields are required; a blank or
    whitespace-only value fails validation (pydantic ValidationError, a ValueError).
    Values are kept as submitted.
    """
    name: str
    email: str
    description: str

    @field_validator("name", "email", "description")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("field is required")
        return v
