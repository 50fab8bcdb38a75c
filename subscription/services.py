# src/subscription/services.py
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import List, Optional
from auth.models import User
from course.models import Course
from course import state as course_state
from payment.models import Payment
from payment.services import PaymentService
from subscription.models import Subscription
from subscription import state
from config import settings
from database import utcnow
from exceptions import (
    ConstraintViolation, CourseNotPublished, InvalidInput, NotFound, PaymentRequired,
    PermissionDenied, ServiceError, SubscriptionNotActive,
)

logger = logging.getLogger(__name__)


class SubscriptionService:
    @staticmethod
    def compute_end_date(course: Course, start: datetime) -> Optional[datetime]:
        days = settings.FREE_SUBSCRIPTION_DURATION_DAYS if course.is_free else settings.PAID_SUBSCRIPTION_DURATION_DAYS
        if days is None:
            return None
        return start + timedelta(days=days)

    @staticmethod
    def _find_subscription(student_id: int, course_id: int, db: Session) -> Optional[Subscription]:
        return (
            db.query(Subscription)
            .filter(Subscription.student_id == student_id, Subscription.course_id == course_id)
            .with_for_update()
            .first()
        )

    @staticmethod
    def _expire_due(db: Session, now: datetime, **filters) -> int:
        """Conditionally flip due rows to expired; rows cancelled or renewed meanwhile are left alone."""
        query = db.query(Subscription).filter(
            Subscription.status == state.ACTIVE,
            Subscription.end_date.isnot(None),
            Subscription.end_date < now,
        )
        for column, value in filters.items():
            query = query.filter(getattr(Subscription, column) == value)
        return query.update(
            {Subscription.status: state.next_subscription_status(state.ACTIVE, state.EXPIRE), Subscription.updated_at: now},
            synchronize_session="fetch",
        )

    @staticmethod
    def subscribe(student_id: int, course_id: int, db: Session, payment_id: Optional[int] = None) -> Subscription:
        """Start, resume or return the student's subscription to a published course.

        The unique (student_id, course_id) index is the arbiter between
        concurrent callers: a losing insert is rolled back and the call is
        replayed once against the row that won.
        """
        for attempt in range(2):
            try:
                return SubscriptionService._subscribe_once(student_id, course_id, db, payment_id)
            except IntegrityError:
                db.rollback()
                if attempt:
                    logger.exception(f"Duplicate subscription row for student {student_id}, course {course_id}")
                    raise ConstraintViolation(
                        f"Subscription uniqueness broken for student {student_id}, course {course_id}",
                        fatal=True,
                    )
                logger.warning(f"Concurrent subscribe for student {student_id}, course {course_id}; retrying")
            except ServiceError:
                db.rollback()
                raise

    @staticmethod
    def _subscribe_once(student_id: int, course_id: int, db: Session, payment_id: Optional[int]) -> Subscription:
        student = db.query(User).filter(User.id == student_id).first()
        if not student or student.role != "student":
            raise NotFound(f"Student {student_id} not found")
        course = db.query(Course).filter(Course.id == course_id).first()
        if not course:
            raise NotFound(f"Course {course_id} not found")
        if course.status != course_state.PUBLISHED:
            raise CourseNotPublished(f"Course {course_id} is {course.status}")

        now = utcnow()
        SubscriptionService._expire_due(db, now, student_id=student_id, course_id=course_id)
        subscription = SubscriptionService._find_subscription(student_id, course_id, db)
        if subscription is not None and subscription.status == state.ACTIVE:
            db.commit()
            return subscription

        payment: Optional[Payment] = None
        if not course.is_free:
            payment = PaymentService.find_successful_payment(student_id, course, db, payment_id=payment_id)
            if payment is None:
                raise PaymentRequired(f"Course {course_id} costs {course.price} {course.currency}")

        if subscription is None:
            subscription = Subscription(
                student_id=student_id,
                course_id=course_id,
                status=state.ACTIVE,
                start_date=now,
                end_date=SubscriptionService.compute_end_date(course, now),
                progress=0,
                completed=False,
            )
            db.add(subscription)
            db.flush()
            action = "created"
        else:
            previous = subscription.status
            subscription.status = state.next_subscription_status(subscription.status, state.RESUBSCRIBE)
            subscription.start_date = now
            subscription.end_date = SubscriptionService.compute_end_date(course, now)
            subscription.progress = 0
            subscription.completed = False
            action = f"renewed from {previous}"

        if payment is not None:
            payment.subscription_id = subscription.id
        db.commit()
        db.refresh(subscription)
        logger.info(f"Subscription {subscription.id} {action}: student={student_id}, course={course_id}, payment={payment.id if payment else None}")
        return subscription

    @staticmethod
    def get_subscription(subscription_id: int, db: Session) -> Subscription:
        """Load a subscription, expiring it first when its end date has passed."""
        if SubscriptionService._expire_due(db, utcnow(), id=subscription_id):
            db.commit()
            logger.info(f"Subscription {subscription_id} expired on read")
        subscription = db.query(Subscription).filter(Subscription.id == subscription_id).first()
        if not subscription:
            raise NotFound(f"Subscription {subscription_id} not found")
        return subscription

    @staticmethod
    def cancel(subscription_id: int, db: Session, actor: Optional[User] = None) -> Subscription:
        """Cancel a subscription; cancelling an expired or cancelled one returns it unchanged."""
        subscription = SubscriptionService.get_subscription(subscription_id, db)
        if actor is not None and actor.role != "admin" and actor.id != subscription.student_id:
            raise PermissionDenied("Only the subscriber or an admin can cancel this subscription")
        new_status = state.next_subscription_status(subscription.status, state.CANCEL)
        if new_status != subscription.status:
            subscription.status = new_status
            db.commit()
            db.refresh(subscription)
            logger.info(f"Subscription {subscription_id} cancelled")
        return subscription

    @staticmethod
    def expire(subscription_id: int, db: Session) -> Subscription:
        """Expire a subscription whose end date has passed; otherwise a no-op."""
        if SubscriptionService._expire_due(db, utcnow(), id=subscription_id):
            logger.info(f"Subscription {subscription_id} expired")
        db.commit()
        subscription = db.query(Subscription).filter(Subscription.id == subscription_id).first()
        if not subscription:
            raise NotFound(f"Subscription {subscription_id} not found")
        return subscription

    @staticmethod
    def expire_due_subscriptions(db: Session) -> int:
        """Lifecycle sweep; returns how many subscriptions were expired."""
        count = SubscriptionService._expire_due(db, utcnow())
        db.commit()
        if count:
            logger.info(f"Expired {count} subscriptions")
        return count

    @staticmethod
    def get_user_subscriptions(student_id: int, db: Session, status: Optional[str] = None) -> List[Subscription]:
        if SubscriptionService._expire_due(db, utcnow(), student_id=student_id):
            db.commit()
        query = db.query(Subscription).filter(Subscription.student_id == student_id)
        if status:
            query = query.filter(Subscription.status == status)
        return query.order_by(Subscription.id).all()

    @staticmethod
    def list_subscriptions(db: Session, status: Optional[str] = None, course_id: Optional[int] = None) -> List[Subscription]:
        SubscriptionService.expire_due_subscriptions(db)
        query = db.query(Subscription)
        if status:
            query = query.filter(Subscription.status == status)
        if course_id:
            query = query.filter(Subscription.course_id == course_id)
        return query.order_by(Subscription.id).all()

    @staticmethod
    def rate(subscription_id: int, score: int, actor: User, db: Session) -> Subscription:
        """Record the subscriber's 1-5 rating of the course."""
        if isinstance(score, bool) or not isinstance(score, int) or not 1 <= score <= 5:
            raise InvalidInput("Rating must be an integer between 1 and 5")
        subscription = SubscriptionService.get_subscription(subscription_id, db)
        if actor.id != subscription.student_id:
            raise PermissionDenied("Only the subscriber can rate this course")
        if subscription.status != state.ACTIVE and not subscription.completed:
            raise SubscriptionNotActive(f"Subscription {subscription_id} is {subscription.status}")
        subscription.rating = score
        db.commit()
        db.refresh(subscription)
        return subscription
