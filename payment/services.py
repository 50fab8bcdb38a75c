# src/payment/services.py
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional, List
from auth.models import User
from course.models import Course
from payment.models import Payment
from payment.schemas import PaymentCreate
from config import settings
from exceptions import ConstraintViolation, NotFound

logger = logging.getLogger(__name__)


class PaymentService:
    @staticmethod
    def is_successful(payment: Payment) -> bool:
        return (payment.status or "").lower() in settings.PAYMENT_SUCCESS_STATUSES

    @staticmethod
    def record_payment(payment_data: PaymentCreate, db: Session) -> Payment:
        """Store a payment outcome reported by the gateway."""
        if not db.query(User.id).filter(User.id == payment_data.user_id).first():
            raise ConstraintViolation(f"User {payment_data.user_id} does not exist")
        if not db.query(Course.id).filter(Course.id == payment_data.course_id).first():
            raise ConstraintViolation(f"Course {payment_data.course_id} does not exist")

        payment = Payment(
            user_id=payment_data.user_id,
            course_id=payment_data.course_id,
            amount=payment_data.amount,
            currency=payment_data.currency.upper(),
            status=payment_data.status.lower(),
            transaction_id=payment_data.transaction_id,
        )
        db.add(payment)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConstraintViolation(f"Transaction {payment_data.transaction_id} is already recorded")
        db.refresh(payment)
        logger.info(f"Recorded payment {payment.id}: user={payment.user_id}, course={payment.course_id}, amount={payment.amount} {payment.currency}, status={payment.status}")
        return payment

    @staticmethod
    def get_payment(payment_id: int, db: Session) -> Payment:
        payment = db.query(Payment).filter(Payment.id == payment_id).first()
        if not payment:
            raise NotFound(f"Payment {payment_id} not found")
        return payment

    @staticmethod
    def update_status(payment_id: int, status: str, db: Session) -> Payment:
        payment = PaymentService.get_payment(payment_id, db)
        previous = payment.status
        payment.status = status.lower()
        db.commit()
        db.refresh(payment)
        logger.info(f"Payment {payment_id} status {previous} -> {payment.status}")
        return payment

    @staticmethod
    def find_successful_payment(student_id: int, course: Course, db: Session, payment_id: Optional[int] = None) -> Optional[Payment]:
        """Answer "has this student paid for this course?".

        A payment counts when it belongs to the student and course, succeeded,
        covers the course price in the course currency and has not yet backed
        a subscription cycle.
        """
        query = db.query(Payment).filter(
            Payment.user_id == student_id,
            Payment.course_id == course.id,
            Payment.subscription_id.is_(None),
        )
        if payment_id is not None:
            query = query.filter(Payment.id == payment_id)
        for payment in query.order_by(Payment.created_at, Payment.id).all():
            if not PaymentService.is_successful(payment):
                continue
            if payment.currency.upper() != course.currency.upper():
                continue
            if payment.amount < course.price:
                logger.info(f"Payment {payment.id} amount {payment.amount} does not cover price {course.price}")
                continue
            return payment
        return None

    @staticmethod
    def get_user_payments(user_id: int, db: Session) -> List[Payment]:
        return db.query(Payment).filter(Payment.user_id == user_id).order_by(Payment.created_at.desc()).all()

    @staticmethod
    def list_payments(db: Session, status: Optional[str] = None) -> List[Payment]:
        query = db.query(Payment)
        if status:
            query = query.filter(Payment.status == status.lower())
        return query.order_by(Payment.id).all()
