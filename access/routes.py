# src/access/routes.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Optional
from access.services import AccessResolver
from access.schemas import AccessDecision
from course.services import ContentService
from course.schemas import ContentResponse
from auth.routes import get_optional_user
from database import get_db
from auth.models import User

router = APIRouter(prefix="/content", tags=["content"])


@router.get("/{content_id}/access", response_model=AccessDecision)
def check_access(content_id: int, db: Session = Depends(get_db), current_user: Optional[User] = Depends(get_optional_user)):
    """Report whether the caller may view a content item, and why."""
    return AccessResolver.can_access(current_user.id if current_user else None, content_id, db)


@router.get("/{content_id}", response_model=ContentResponse)
def get_content(content_id: int, db: Session = Depends(get_db), current_user: Optional[User] = Depends(get_optional_user)):
    """Return a content item if the caller is allowed to view it."""
    decision = AccessResolver.can_access(current_user.id if current_user else None, content_id, db)
    if not decision.allowed:
        raise HTTPException(status_code=403, detail=decision.reason)
    return ContentResponse.from_orm(ContentService.get_content(content_id, db))
