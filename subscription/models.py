# src/subscription/models.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base, utcnow
from datetime import datetime
from typing import Optional


class Subscription(Base):
    """Links one student to one course; at most one row per pair."""
    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_subscriptions_student_course"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_subscriptions_progress_range"),
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_subscriptions_rating_range"),
    )

    id: int = Column(Integer, primary_key=True, index=True)
    student_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id: int = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    status: str = Column(String, nullable=False, default="active")  # active, expired, cancelled
    start_date: datetime = Column(DateTime, nullable=False, default=utcnow)
    end_date: Optional[datetime] = Column(DateTime, nullable=True)  # None: no fixed end
    progress: int = Column(Integer, nullable=False, default=0)
    completed: bool = Column(Boolean, nullable=False, default=False)
    rating: Optional[int] = Column(Integer, nullable=True)
    created_at: datetime = Column(DateTime, default=utcnow)
    updated_at: datetime = Column(DateTime, default=utcnow, onupdate=utcnow)

    student = relationship("User", back_populates="subscriptions")
    course = relationship("Course", back_populates="subscriptions")
    payments = relationship("Payment", back_populates="subscription", order_by="Payment.created_at")

    def is_due_for_expiry(self, now: datetime) -> bool:
        return self.status == "active" and self.end_date is not None and now > self.end_date

    def is_active_at(self, now: datetime) -> bool:
        """Status as observed at ``now``, whether or not the sweep has run."""
        return self.status == "active" and not self.is_due_for_expiry(now)
