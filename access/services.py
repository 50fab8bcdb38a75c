# src/access/services.py
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional
from access.schemas import AccessDecision
from auth.models import User
from course.models import CourseContent
from course import state as course_state
from subscription.models import Subscription
from database import utcnow
from exceptions import NotFound

COURSE_OWNER = "CourseOwner"
ADMIN = "Admin"
FREE_PREVIEW = "FreePreview"
SUBSCRIPTION_ACTIVE = "SubscriptionActive"
NO_ACTIVE_SUBSCRIPTION = "NoActiveSubscription"


class AccessResolver:
    """Read-only gating decision for course content; never writes."""

    @staticmethod
    def can_access(user_id: Optional[int], content_id: int, db: Session, now: Optional[datetime] = None) -> AccessDecision:
        content = db.query(CourseContent).filter(CourseContent.id == content_id).first()
        if not content:
            raise NotFound(f"Content {content_id} not found")
        user = None
        if user_id is not None:
            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                raise NotFound(f"User {user_id} not found")
        return AccessResolver.decide(user, content, db, now=now)

    @staticmethod
    def decide(user: Optional[User], content: CourseContent, db: Session, now: Optional[datetime] = None) -> AccessDecision:
        course = content.course
        if user is not None and course.teacher_id == user.id:
            return AccessDecision(allowed=True, reason=COURSE_OWNER)
        if user is not None and user.role == "admin":
            return AccessDecision(allowed=True, reason=ADMIN)
        if content.is_free and course.status == course_state.PUBLISHED:
            return AccessDecision(allowed=True, reason=FREE_PREVIEW)
        if user is None:
            return AccessDecision(allowed=False, reason=NO_ACTIVE_SUBSCRIPTION)

        subscription = db.query(Subscription).filter(
            Subscription.student_id == user.id,
            Subscription.course_id == course.id,
        ).first()
        # a row past its end date counts as expired even before the sweep writes it
        if subscription is None or not subscription.is_active_at(now or utcnow()):
            return AccessDecision(allowed=False, reason=NO_ACTIVE_SUBSCRIPTION)
        return AccessDecision(allowed=True, reason=SUBSCRIPTION_ACTIVE)
