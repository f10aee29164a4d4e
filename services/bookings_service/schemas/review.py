"""Review request/response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReviewCreateRequest(BaseModel):
    # Range is enforced by the review operation so the error carries its code
    rating: int
    review_text: Optional[str] = Field(None, max_length=2000)


class ReviewResponse(BaseModel):
    id: uuid.UUID
    booking_id: uuid.UUID
    reviewer_id: str
    reviewee_id: str
    rating: int
    review_text: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReviewListResponse(BaseModel):
    reviews: list[ReviewResponse]
    total: int
