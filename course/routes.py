# src/course/routes.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from course.services import CourseService, ContentService
from course.schemas import (
    CourseCreate, CourseUpdate, CourseResponse, ContentCreate, ContentUpdate, ContentResponse, ContentSummary,
)
from access.services import AccessResolver
from auth.routes import get_current_user, get_optional_user
from database import get_db
from auth.models import User

router = APIRouter(prefix="/courses", tags=["courses"])


def check_teacher_role(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the user has teacher role."""
    if current_user.role != "teacher":
        raise HTTPException(status_code=403, detail="Teacher access required")
    return current_user


@router.post("/", response_model=CourseResponse)
def create_course(
    course_data: CourseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(check_teacher_role)
):
    """Create a draft course owned by the current teacher."""
    return CourseResponse.from_orm(CourseService.create_course(course_data, current_user.id, db))


@router.get("/", response_model=List[CourseResponse])
def list_courses(category: Optional[str] = None, level: Optional[str] = None, db: Session = Depends(get_db)):
    """List published courses."""
    return [CourseResponse.from_orm(c) for c in CourseService.list_courses(db, category=category, level=level)]


@router.get("/mine", response_model=List[CourseResponse])
def list_my_courses(db: Session = Depends(get_db), current_user: User = Depends(check_teacher_role)):
    """List every course of the current teacher, whatever its status."""
    return [CourseResponse.from_orm(c) for c in CourseService.list_teacher_courses(current_user.id, db)]


@router.get("/{course_id}", response_model=CourseResponse)
def get_course(course_id: int, db: Session = Depends(get_db), current_user: Optional[User] = Depends(get_optional_user)):
    return CourseResponse.from_orm(CourseService.get_visible_course(course_id, current_user, db))


@router.patch("/{course_id}", response_model=CourseResponse)
def update_course(
    course_id: int,
    course_data: CourseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return CourseResponse.from_orm(CourseService.update_course(course_id, course_data, current_user, db))


@router.post("/{course_id}/publish", response_model=CourseResponse)
def publish_course(course_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return CourseResponse.from_orm(CourseService.publish_course(course_id, current_user, db))


@router.post("/{course_id}/archive", response_model=CourseResponse)
def archive_course(course_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Archive a course; the way to retire a course that has subscribers."""
    return CourseResponse.from_orm(CourseService.archive_course(course_id, current_user, db))


@router.delete("/{course_id}")
def delete_course(course_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    CourseService.delete_course(course_id, current_user, db)
    return {"message": "Course deleted"}


@router.get("/{course_id}/contents", response_model=List[ContentSummary])
def list_contents(course_id: int, db: Session = Depends(get_db), current_user: Optional[User] = Depends(get_optional_user)):
    """List a course's content in display order with per-item access flags."""
    course = CourseService.get_visible_course(course_id, current_user, db)
    return [
        ContentSummary(
            id=content.id,
            title=content.title,
            type=content.type,
            order=content.order,
            is_free=content.is_free,
            duration=content.duration,
            accessible=AccessResolver.decide(current_user, content, db).allowed,
        )
        for content in ContentService.list_contents(course.id, db)
    ]


@router.post("/{course_id}/contents", response_model=ContentResponse)
def add_content(
    course_id: int,
    content_data: ContentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return ContentResponse.from_orm(ContentService.add_content(course_id, content_data, current_user, db))


@router.patch("/contents/{content_id}", response_model=ContentResponse)
def update_content(
    content_id: int,
    content_data: ContentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return ContentResponse.from_orm(ContentService.update_content(content_id, content_data, current_user, db))


@router.delete("/contents/{content_id}")
def delete_content(content_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    ContentService.delete_content(content_id, current_user, db)
    return {"message": "Content deleted"}
