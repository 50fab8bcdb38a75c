# src/course/services.py
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
from auth.models import User, AdminActionLog
from course.models import Course, CourseContent
from course.schemas import CourseCreate, CourseUpdate, ContentCreate, ContentUpdate
from course import state
from payment.models import Payment
from subscription.models import Subscription
from config import settings
from exceptions import ConstraintViolation, NotFound, PermissionDenied

logger = logging.getLogger(__name__)


def is_owner_or_admin(user: Optional[User], course: Course) -> bool:
    return user is not None and (user.role == "admin" or user.id == course.teacher_id)


class CourseService:
    @staticmethod
    def create_course(course_data: CourseCreate, teacher_id: int, db: Session) -> Course:
        """Create a draft course owned by a teacher."""
        teacher = db.query(User).filter(User.id == teacher_id).first()
        if not teacher:
            raise ConstraintViolation(f"Teacher {teacher_id} does not exist")
        if teacher.role != "teacher":
            raise ConstraintViolation(f"User {teacher_id} is not a teacher")

        course = Course(teacher_id=teacher_id, status=state.DRAFT, **course_data.dict())
        course.currency = course.currency.upper()
        db.add(course)
        db.commit()
        db.refresh(course)
        logger.info(f"Teacher {teacher_id} created course {course.id}")
        return course

    @staticmethod
    def get_course(course_id: int, db: Session) -> Course:
        course = db.query(Course).filter(Course.id == course_id).first()
        if not course:
            raise NotFound(f"Course {course_id} not found")
        return course

    @staticmethod
    def get_visible_course(course_id: int, viewer: Optional[User], db: Session) -> Course:
        """Draft and archived courses are only visible to their teacher and admins."""
        course = CourseService.get_course(course_id, db)
        if course.status != state.PUBLISHED and not is_owner_or_admin(viewer, course):
            raise NotFound(f"Course {course_id} not found")
        return course

    @staticmethod
    def list_courses(db: Session, category: Optional[str] = None, level: Optional[str] = None) -> List[Course]:
        query = db.query(Course).filter(Course.status == state.PUBLISHED)
        if category:
            query = query.filter(Course.category == category)
        if level:
            query = query.filter(Course.level == level)
        return query.order_by(Course.created_at.desc(), Course.id.desc()).all()

    @staticmethod
    def list_teacher_courses(teacher_id: int, db: Session) -> List[Course]:
        return db.query(Course).filter(Course.teacher_id == teacher_id).order_by(Course.id).all()

    @staticmethod
    def update_course(course_id: int, course_data: CourseUpdate, actor: User, db: Session) -> Course:
        course = CourseService.get_course(course_id, db)
        if actor.id != course.teacher_id:
            raise PermissionDenied("Only the course teacher can edit this course")
        for key, value in course_data.dict(exclude_unset=True).items():
            if value is None and key in ("title", "price", "currency"):
                continue
            setattr(course, key, value.upper() if key == "currency" else value)
        db.commit()
        db.refresh(course)
        return course

    @staticmethod
    def _apply_transition(course: Course, event: str, db: Session) -> Course:
        previous = course.status
        course.status = state.next_course_status(course.status, event)
        db.commit()
        db.refresh(course)
        logger.info(f"Course {course.id}: {previous} -> {course.status}")
        return course

    @staticmethod
    def publish_course(course_id: int, actor: User, db: Session) -> Course:
        course = CourseService.get_course(course_id, db)
        if not is_owner_or_admin(actor, course):
            raise PermissionDenied("Only the course teacher can publish this course")
        return CourseService._apply_transition(course, state.PUBLISH, db)

    @staticmethod
    def archive_course(course_id: int, actor: User, db: Session) -> Course:
        course = CourseService.get_course(course_id, db)
        if not is_owner_or_admin(actor, course):
            raise PermissionDenied("Only the course teacher can archive this course")
        return CourseService._apply_transition(course, state.ARCHIVE, db)

    @staticmethod
    def restore_course(course_id: int, admin: User, db: Session) -> Course:
        """Admin override returning an archived course to published."""
        if admin.role != "admin":
            raise PermissionDenied("Admin access required")
        if not settings.ALLOW_ADMIN_UNARCHIVE:
            raise PermissionDenied("Restoring archived courses is disabled")
        course = CourseService.get_course(course_id, db)
        course.status = state.next_course_status(course.status, state.RESTORE)
        db.add(AdminActionLog(admin_id=admin.id, action=f"Restored archived course {course_id}"))
        db.commit()
        db.refresh(course)
        logger.info(f"Admin {admin.id} restored course {course_id}")
        return course

    @staticmethod
    def delete_course(course_id: int, actor: User, db: Session) -> None:
        """Hard delete a course that nobody ever subscribed to or paid for."""
        course = CourseService.get_course(course_id, db)
        if not is_owner_or_admin(actor, course):
            raise PermissionDenied("Only the course teacher can delete this course")
        has_subscriptions = db.query(Subscription.id).filter(Subscription.course_id == course_id).first()
        has_payments = db.query(Payment.id).filter(Payment.course_id == course_id).first()
        if has_subscriptions or has_payments:
            raise ConstraintViolation(f"Course {course_id} has subscriptions or payments; archive it instead")
        db.delete(course)
        db.commit()
        logger.info(f"Course {course_id} deleted by user {actor.id}")


class ContentService:
    @staticmethod
    def get_content(content_id: int, db: Session) -> CourseContent:
        content = db.query(CourseContent).filter(CourseContent.id == content_id).first()
        if not content:
            raise NotFound(f"Content {content_id} not found")
        return content

    @staticmethod
    def list_contents(course_id: int, db: Session) -> List[CourseContent]:
        return (
            db.query(CourseContent)
            .filter(CourseContent.course_id == course_id)
            .order_by(CourseContent.order, CourseContent.id)
            .all()
        )

    @staticmethod
    def _order_taken(course_id: int, order: int, db: Session, exclude_id: Optional[int] = None) -> bool:
        query = db.query(CourseContent.id).filter(
            CourseContent.course_id == course_id,
            CourseContent.order == order,
        )
        if exclude_id is not None:
            query = query.filter(CourseContent.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def _commit(db: Session, detail: str) -> None:
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConstraintViolation(detail)

    @staticmethod
    def add_content(course_id: int, content_data: ContentCreate, actor: User, db: Session) -> CourseContent:
        """Append content to a course; without an explicit order it goes last."""
        course = CourseService.get_course(course_id, db)
        if actor.id != course.teacher_id:
            raise PermissionDenied("Only the course teacher can add content")

        data = content_data.dict()
        if data["order"] is None:
            max_order = db.query(func.max(CourseContent.order)).filter(CourseContent.course_id == course_id).scalar()
            data["order"] = 0 if max_order is None else max_order + 1
        elif ContentService._order_taken(course_id, data["order"], db):
            raise ConstraintViolation(f"Order {data['order']} is already used in course {course_id}")

        content = CourseContent(course_id=course_id, **data)
        db.add(content)
        ContentService._commit(db, f"Order {data['order']} is already used in course {course_id}")
        db.refresh(content)
        return content

    @staticmethod
    def update_content(content_id: int, content_data: ContentUpdate, actor: User, db: Session) -> CourseContent:
        content = ContentService.get_content(content_id, db)
        if actor.id != content.course.teacher_id:
            raise PermissionDenied("Only the course teacher can edit content")

        changes = content_data.dict(exclude_unset=True)
        new_order = changes.get("order")
        if new_order is not None and ContentService._order_taken(content.course_id, new_order, db, exclude_id=content.id):
            raise ConstraintViolation(f"Order {new_order} is already used in course {content.course_id}")
        for key, value in changes.items():
            if value is None and key in ("title", "type", "order", "is_free"):
                continue
            setattr(content, key, value)
        ContentService._commit(db, f"Order {new_order} is already used in course {content.course_id}")
        db.refresh(content)
        return content

    @staticmethod
    def delete_content(content_id: int, actor: User, db: Session) -> None:
        content = ContentService.get_content(content_id, db)
        if not is_owner_or_admin(actor, content.course):
            raise PermissionDenied("Only the course teacher or an admin can delete content")
        db.delete(content)
        db.commit()
