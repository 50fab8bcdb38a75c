# src/course/schemas.py
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from config import settings

Level = Literal["beginner", "intermediate", "advanced"]
ContentType = Literal["video", "document", "assignment", "quiz", "text"]


class CourseCreate(BaseModel):
    """Schema for creating a course."""
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    short_description: Optional[str] = Field(default=None, max_length=500)
    category: Optional[str] = None
    price: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    currency: str = Field(default_factory=lambda: settings.DEFAULT_CURRENCY, min_length=3, max_length=3)
    thumbnail: Optional[str] = None
    level: Optional[Level] = None
    duration: Optional[int] = Field(default=None, ge=0)


class CourseUpdate(BaseModel):
    """Schema for partially updating a course."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    short_description: Optional[str] = Field(default=None, max_length=500)
    category: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    thumbnail: Optional[str] = None
    level: Optional[Level] = None
    duration: Optional[int] = Field(default=None, ge=0)


class CourseResponse(BaseModel):
    """Schema for course response, with derived statistics."""
    id: int
    teacher_id: int
    title: str
    description: Optional[str]
    short_description: Optional[str]
    category: Optional[str]
    price: Decimal
    currency: str
    thumbnail: Optional[str]
    status: str
    level: Optional[str]
    duration: Optional[int]
    rating: float
    total_students: int
    created_at: datetime

    class Config:
        from_attributes = True


class ContentCreate(BaseModel):
    """Schema for adding content to a course."""
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    type: ContentType
    file_url: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, ge=0)
    order: Optional[int] = Field(default=None, ge=0)
    is_free: bool = False


class ContentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[ContentType] = None
    file_url: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, ge=0)
    order: Optional[int] = Field(default=None, ge=0)
    is_free: Optional[bool] = None


class ContentResponse(BaseModel):
    """Schema for course content response."""
    id: int
    course_id: int
    title: str
    description: Optional[str]
    type: str
    file_url: Optional[str]
    file_size: Optional[int]
    duration: Optional[int]
    order: int
    is_free: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ContentSummary(BaseModel):
    """Content listing entry; file_url is only exposed when the viewer has access."""
    id: int
    title: str
    type: str
    order: int
    is_free: bool
    duration: Optional[int]
    accessible: bool
