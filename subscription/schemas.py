# src/subscription/schemas.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class SubscriptionCreate(BaseModel):
    """Schema for subscribing to a course."""
    course_id: int
    payment_id: Optional[int] = None


class RatingUpdate(BaseModel):
    rating: int = Field(ge=1, le=5)


class SubscriptionResponse(BaseModel):
    """Schema for subscription response."""
    id: int
    student_id: int
    course_id: int
    status: str
    start_date: datetime
    end_date: Optional[datetime]
    progress: int
    completed: bool
    rating: Optional[int]

    class Config:
        from_attributes = True
