# src/payment/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from payment.services import PaymentService
from payment.schemas import PaymentCreate, PaymentResponse, PaymentStatusUpdate
from auth.routes import get_current_user, check_admin_role
from auth.models import User
from database import get_db

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/", response_model=PaymentResponse, dependencies=[Depends(check_admin_role)])
def record_payment(payment_data: PaymentCreate, db: Session = Depends(get_db)):
    """Record a payment outcome reported by the gateway."""
    return PaymentResponse.from_orm(PaymentService.record_payment(payment_data, db))


@router.patch("/{payment_id}/status", response_model=PaymentResponse, dependencies=[Depends(check_admin_role)])
def update_payment_status(payment_id: int, status_data: PaymentStatusUpdate, db: Session = Depends(get_db)):
    return PaymentResponse.from_orm(PaymentService.update_status(payment_id, status_data.status, db))


@router.get("/", response_model=List[PaymentResponse])
def get_user_payments(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return [PaymentResponse.from_orm(p) for p in PaymentService.get_user_payments(current_user.id, db)]
