"""
Shared fixtures: in-memory SQLite session and entity factories.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import itertools
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
from auth.models import User
from course.models import Course, CourseContent
from payment.models import Payment
import subscription.models  # noqa: F401

_ids = itertools.count(1)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make(role: str = "student", username: str = None) -> User:
        n = next(_ids)
        username = username or f"{role}{n}"
        user = User(username=username, email=f"{username}@school.org", password_hash="not-a-hash", role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_course(db):
    def _make(teacher: User, status: str = "published", price: str = "0", currency: str = "USD", **kwargs) -> Course:
        course = Course(
            teacher_id=teacher.id,
            title=kwargs.pop("title", f"Course {next(_ids)}"),
            status=status,
            price=Decimal(price),
            currency=currency,
            **kwargs,
        )
        db.add(course)
        db.commit()
        db.refresh(course)
        return course
    return _make


@pytest.fixture
def make_content(db):
    def _make(course: Course, is_free: bool = False, order: int = None, type: str = "video") -> CourseContent:
        if order is None:
            order = len(course.contents)
        content = CourseContent(course_id=course.id, title=f"Lesson {order}", type=type, order=order, is_free=is_free)
        db.add(content)
        db.commit()
        db.refresh(content)
        db.refresh(course)
        return content
    return _make


@pytest.fixture
def make_payment(db):
    def _make(user: User, course: Course, amount=None, currency: str = None, status: str = "succeeded") -> Payment:
        payment = Payment(
            user_id=user.id,
            course_id=course.id,
            amount=course.price if amount is None else Decimal(str(amount)),
            currency=currency or course.currency,
            status=status,
        )
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment
    return _make


@pytest.fixture
def student(make_user):
    return make_user("student")


@pytest.fixture
def other_student(make_user):
    return make_user("student")


@pytest.fixture
def teacher(make_user):
    return make_user("teacher")


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def free_course(make_course, teacher):
    return make_course(teacher, status="published", price="0")


@pytest.fixture
def paid_course(make_course, teacher):
    return make_course(teacher, status="published", price="49.99")
