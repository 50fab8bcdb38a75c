# src/payment/schemas.py
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional


class PaymentCreate(BaseModel):
    """Schema for recording a gateway payment outcome."""
    user_id: int
    course_id: int
    amount: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    currency: str = Field(min_length=3, max_length=3)
    status: str = "pending"
    transaction_id: Optional[str] = None


class PaymentStatusUpdate(BaseModel):
    status: str = Field(min_length=1)


class PaymentResponse(BaseModel):
    """Schema for payment response."""
    id: int
    user_id: int
    course_id: int
    subscription_id: Optional[int]
    amount: Decimal
    currency: str
    status: str
    transaction_id: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
