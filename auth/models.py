# src/auth/models.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database import Base, utcnow
from datetime import datetime

ROLES = ("student", "teacher", "admin")


class User(Base):
    """Represents a user in the system."""
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)
    username: str = Column(String, unique=True, index=True, nullable=False)
    email: str = Column(String, unique=True, index=True, nullable=False)
    password_hash: str = Column(String, nullable=False)
    created_at: datetime = Column(DateTime, default=utcnow)
    role: str = Column(String, nullable=False, default="student")  # student, teacher, admin

    courses = relationship("Course", back_populates="teacher")
    subscriptions = relationship("Subscription", back_populates="student")
    payments = relationship("Payment", back_populates="user")
    admin_actions = relationship("AdminActionLog", back_populates="admin")


class AdminActionLog(Base):
    """Represents a log of admin actions."""
    __tablename__ = "admin_action_logs"

    id: int = Column(Integer, primary_key=True, index=True)
    admin_id: int = Column(Integer, ForeignKey("users.id"), nullable=False)
    action: str = Column(String, nullable=False)
    timestamp: datetime = Column(DateTime, nullable=False, default=utcnow)

    admin = relationship("User", back_populates="admin_actions")
