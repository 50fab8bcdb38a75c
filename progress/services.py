# src/progress/services.py
import logging

from sqlalchemy.orm import Session
from typing import Optional
from auth.models import User
from subscription.models import Subscription
from subscription.services import SubscriptionService
from subscription import state
from config import settings
from exceptions import InvalidProgress, PermissionDenied, ProgressRegression, SubscriptionNotActive

logger = logging.getLogger(__name__)


class ProgressService:
    @staticmethod
    def record_progress(subscription_id: int, new_progress: int, db: Session, actor: Optional[User] = None) -> Subscription:
        """Set completion progress (0-100) on an active subscription.

        ``completed`` is true exactly when progress is 100. With
        ENFORCE_MONOTONIC_PROGRESS a lower value than the stored one is rejected.
        """
        if isinstance(new_progress, bool) or not isinstance(new_progress, int) or not 0 <= new_progress <= 100:
            raise InvalidProgress(f"Progress {new_progress!r} is outside 0-100")

        subscription = SubscriptionService.get_subscription(subscription_id, db)
        if actor is not None and actor.role != "admin" and actor.id != subscription.student_id:
            raise PermissionDenied("Only the subscriber can report progress")
        if subscription.status != state.ACTIVE:
            raise SubscriptionNotActive(f"Subscription {subscription_id} is {subscription.status}")
        if settings.ENFORCE_MONOTONIC_PROGRESS and new_progress < subscription.progress:
            raise ProgressRegression(f"Progress cannot go from {subscription.progress} to {new_progress}")

        subscription.progress = new_progress
        subscription.completed = new_progress == 100
        db.commit()
        db.refresh(subscription)
        if subscription.completed:
            logger.info(f"Subscription {subscription_id} completed")
        return subscription
