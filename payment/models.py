# src/payment/models.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base, utcnow
from datetime import datetime
from decimal import Decimal
from typing import Optional


class Payment(Base):
    """Represents a monetary transaction reported by the payment gateway."""
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_payments_amount_non_negative"),
    )

    id: int = Column(Integer, primary_key=True, index=True)
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id: int = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    subscription_id: Optional[int] = Column(Integer, ForeignKey("subscriptions.id"), nullable=True)  # set once consumed
    amount: Decimal = Column(Numeric(10, 2), nullable=False)
    currency: str = Column(String(3), nullable=False)
    status: str = Column(String, nullable=False, default="pending")  # gateway-defined
    transaction_id: Optional[str] = Column(String, nullable=True, unique=True)
    created_at: datetime = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="payments")
    course = relationship("Course", back_populates="payments")
    subscription = relationship("Subscription", back_populates="payments")
