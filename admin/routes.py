# src/admin/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from auth.models import User
from auth.schemas import UserResponse, AdminActionLogResponse, RoleUpdate
from auth.services import UserService
from auth.routes import check_admin_role
from course.schemas import CourseResponse
from course.services import CourseService
from subscription.schemas import SubscriptionResponse
from subscription.services import SubscriptionService
from payment.schemas import PaymentResponse
from payment.services import PaymentService
from database import get_db

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=List[UserResponse], dependencies=[Depends(check_admin_role)])
def get_users(role: Optional[str] = None, db: Session = Depends(get_db)):
    """Retrieve users with optional role filter."""
    return [UserResponse.from_orm(user) for user in UserService.list_users(db, role=role)]


@router.get("/users/{user_id}", response_model=UserResponse, dependencies=[Depends(check_admin_role)])
def get_user(user_id: int, db: Session = Depends(get_db)):
    return UserResponse.from_orm(UserService.get_user(user_id, db))


@router.delete("/users/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(check_admin_role)):
    """Delete a user that owns no courses, subscriptions or payments."""
    UserService.delete_user(user_id, current_user, db)
    return {"message": "User deleted"}


@router.patch("/users/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    role_data: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(check_admin_role)
):
    """Change a user's role."""
    return UserResponse.from_orm(UserService.change_role(user_id, role_data.role, current_user, db))


@router.post("/courses/{course_id}/restore", response_model=CourseResponse)
def restore_course(course_id: int, db: Session = Depends(get_db), current_user: User = Depends(check_admin_role)):
    """Return an archived course to published."""
    return CourseResponse.from_orm(CourseService.restore_course(course_id, current_user, db))


@router.get("/subscriptions", response_model=List[SubscriptionResponse], dependencies=[Depends(check_admin_role)])
def get_subscriptions(status: Optional[str] = None, course_id: Optional[int] = None, db: Session = Depends(get_db)):
    """Retrieve subscriptions with optional status and course filters."""
    return [SubscriptionResponse.from_orm(sub) for sub in SubscriptionService.list_subscriptions(db, status=status, course_id=course_id)]


@router.post("/subscriptions/expire", dependencies=[Depends(check_admin_role)])
def run_expiry_sweep(db: Session = Depends(get_db)):
    """Run the lifecycle sweep now."""
    return {"expired": SubscriptionService.expire_due_subscriptions(db)}


@router.get("/payments", response_model=List[PaymentResponse], dependencies=[Depends(check_admin_role)])
def get_payments(status: Optional[str] = None, db: Session = Depends(get_db)):
    """Retrieve payments with optional status filter."""
    return [PaymentResponse.from_orm(payment) for payment in PaymentService.list_payments(db, status=status)]


@router.get("/logs", response_model=List[AdminActionLogResponse], dependencies=[Depends(check_admin_role)])
def get_admin_logs(db: Session = Depends(get_db)):
    """Retrieve admin action logs."""
    return [AdminActionLogResponse.from_orm(log) for log in UserService.get_admin_logs(db)]
