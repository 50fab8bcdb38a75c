# src/progress/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from progress.services import ProgressService
from progress.schemas import ProgressUpdate, ProgressResponse
from auth.routes import get_current_user
from database import get_db
from auth.models import User

router = APIRouter(prefix="/subscriptions", tags=["progress"])


@router.put("/{subscription_id}/progress", response_model=ProgressResponse)
def record_progress(
    subscription_id: int,
    progress_data: ProgressUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Record completion progress for a subscription."""
    subscription = ProgressService.record_progress(subscription_id, progress_data.progress, db, actor=current_user)
    return ProgressResponse.from_orm(subscription)
