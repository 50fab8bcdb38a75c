# src/course/models.py
from sqlalchemy import (
    Column, Integer, String, ForeignKey, Text, Boolean, DateTime, Numeric,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from config import settings
from database import Base, utcnow
from datetime import datetime
from decimal import Decimal
from typing import Optional


class Course(Base):
    """Represents a course owned by a teacher."""
    __tablename__ = "courses"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_courses_price_non_negative"),
    )

    id: int = Column(Integer, primary_key=True, index=True)
    teacher_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title: str = Column(String(255), nullable=False)
    description: Optional[str] = Column(Text, nullable=True)
    short_description: Optional[str] = Column(String(500), nullable=True)
    category: Optional[str] = Column(String(100), nullable=True)
    price: Decimal = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    currency: str = Column(String(3), nullable=False, default=lambda: settings.DEFAULT_CURRENCY)
    thumbnail: Optional[str] = Column(String(500), nullable=True)
    status: str = Column(String, nullable=False, default="draft")  # draft, published, archived
    level: Optional[str] = Column(String, nullable=True)  # beginner, intermediate, advanced
    duration: Optional[int] = Column(Integer, nullable=True)  # hours
    created_at: datetime = Column(DateTime, default=utcnow)
    updated_at: datetime = Column(DateTime, default=utcnow, onupdate=utcnow)

    teacher = relationship("User", back_populates="courses")
    contents = relationship(
        "CourseContent",
        back_populates="course",
        order_by="CourseContent.order",
        cascade="all, delete-orphan",
    )
    subscriptions = relationship("Subscription", back_populates="course")
    payments = relationship("Payment", back_populates="course")

    @property
    def is_free(self) -> bool:
        return (self.price or 0) == 0

    @property
    def total_students(self) -> int:
        """Number of currently active subscriptions, counted on read."""
        now = utcnow()
        return sum(1 for sub in self.subscriptions if sub.is_active_at(now))

    @property
    def rating(self) -> float:
        """Average subscriber rating (0-5), 0 when nobody has rated."""
        scores = [sub.rating for sub in self.subscriptions if sub.rating is not None]
        if not scores:
            return 0.0
        return round(sum(scores) / len(scores), 2)


class CourseContent(Base):
    """Represents a single piece of course material."""
    __tablename__ = "course_contents"
    __table_args__ = (
        UniqueConstraint("course_id", "order", name="uq_course_contents_course_order"),
    )

    id: int = Column(Integer, primary_key=True, index=True)
    course_id: int = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    title: str = Column(String(255), nullable=False)
    description: Optional[str] = Column(Text, nullable=True)
    type: str = Column(String, nullable=False)  # video, document, assignment, quiz, text
    file_url: Optional[str] = Column(String(500), nullable=True)
    file_size: Optional[int] = Column(Integer, nullable=True)
    duration: Optional[int] = Column(Integer, nullable=True)  # minutes, for video
    order: int = Column(Integer, nullable=False, default=0)
    is_free: bool = Column(Boolean, nullable=False, default=False)
    created_at: datetime = Column(DateTime, default=utcnow)
    updated_at: datetime = Column(DateTime, default=utcnow, onupdate=utcnow)

    course = relationship("Course", back_populates="contents")
