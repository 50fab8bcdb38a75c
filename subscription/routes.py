# src/subscription/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from subscription.services import SubscriptionService
from subscription.schemas import SubscriptionCreate, SubscriptionResponse, RatingUpdate
from auth.routes import get_current_user
from database import get_db
from auth.models import User
from exceptions import NotFound

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("/", response_model=SubscriptionResponse)
def create_subscription(
    subscription_data: SubscriptionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Subscribe the current student to a course, or return the active subscription."""
    subscription = SubscriptionService.subscribe(
        current_user.id, subscription_data.course_id, db, payment_id=subscription_data.payment_id
    )
    return SubscriptionResponse.from_orm(subscription)


@router.get("/", response_model=List[SubscriptionResponse])
def get_user_subscriptions(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Retrieve the current user's subscriptions."""
    return [SubscriptionResponse.from_orm(s) for s in SubscriptionService.get_user_subscriptions(current_user.id, db, status=status)]


@router.get("/{subscription_id}", response_model=SubscriptionResponse)
def get_subscription(
    subscription_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    subscription = SubscriptionService.get_subscription(subscription_id, db)
    if current_user.role != "admin" and subscription.student_id != current_user.id:
        raise NotFound(f"Subscription {subscription_id} not found")
    return SubscriptionResponse.from_orm(subscription)


@router.post("/{subscription_id}/cancel", response_model=SubscriptionResponse)
def cancel_subscription(
    subscription_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Cancel a subscription (idempotent)."""
    return SubscriptionResponse.from_orm(SubscriptionService.cancel(subscription_id, db, actor=current_user))


@router.put("/{subscription_id}/rating", response_model=SubscriptionResponse)
def rate_course(
    subscription_id: int,
    rating_data: RatingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return SubscriptionResponse.from_orm(SubscriptionService.rate(subscription_id, rating_data.rating, current_user, db))
