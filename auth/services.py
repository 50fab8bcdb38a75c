# src/auth/services.py
import logging

from sqlalchemy.orm import Session
from jose import jwt
from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from auth.models import User, AdminActionLog, ROLES
from auth.schemas import UserCreate
from config import settings
from exceptions import ConstraintViolation, InvalidInput, NotFound, PermissionDenied

logger = logging.getLogger(__name__)


class AuthService:
    pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using bcrypt."""
        return AuthService.pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        return AuthService.pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token."""
        to_encode = data.copy()
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_access_token(token: str) -> Optional[str]:
        """Return the subject (email) of a valid token, raising JWTError otherwise."""
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload.get("sub")

    @staticmethod
    def get_user_by_email(email: str, db: Session) -> Optional[User]:
        """Retrieve a user by email."""
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def authenticate_user(email: str, password: str, db: Session) -> Optional[User]:
        user = AuthService.get_user_by_email(email, db)
        if not user or not AuthService.verify_password(password, user.password_hash):
            return None
        return user

    @staticmethod
    def create_user(user_data: UserCreate, db: Session) -> User:
        if db.query(User).filter(User.email == user_data.email).first():
            raise ConstraintViolation("Email already registered")
        if db.query(User).filter(User.username == user_data.username).first():
            raise ConstraintViolation("Username already taken")

        new_user = User(
            username=user_data.username,
            email=user_data.email,
            password_hash=AuthService.hash_password(user_data.password),
            role=user_data.role,
        )
        db.add(new_user)
        db.commit()
        db.refresh(new_user)
        logger.info(f"Registered user {new_user.id} with role {new_user.role}")
        return new_user


class UserService:
    @staticmethod
    def get_user(user_id: int, db: Session) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound(f"User {user_id} not found")
        return user

    @staticmethod
    def list_users(db: Session, role: Optional[str] = None) -> List[User]:
        query = db.query(User)
        if role:
            query = query.filter(User.role == role)
        return query.order_by(User.id).all()

    @staticmethod
    def change_role(user_id: int, role: str, admin: User, db: Session) -> User:
        """Change a user's role. Roles are immutable except by admin action."""
        if admin.role != "admin":
            raise PermissionDenied("Admin access required")
        if role not in ROLES:
            raise InvalidInput(f"Unknown role {role}")
        user = UserService.get_user(user_id, db)
        if role != "teacher" and user.courses:
            raise ConstraintViolation(f"User {user_id} owns courses and must stay a teacher")
        if role != "student" and user.subscriptions:
            raise ConstraintViolation(f"User {user_id} holds subscriptions and must stay a student")
        previous = user.role
        user.role = role
        db.add(AdminActionLog(admin_id=admin.id, action=f"Changed role of user {user_id} from {previous} to {role}"))
        db.commit()
        db.refresh(user)
        logger.info(f"Admin {admin.id} changed role of user {user_id}: {previous} -> {role}")
        return user

    @staticmethod
    def delete_user(user_id: int, admin: User, db: Session) -> None:
        """Hard-delete a user nothing else references."""
        if admin.role != "admin":
            raise PermissionDenied("Admin access required")
        if user_id == admin.id:
            raise ConstraintViolation("Admins cannot delete their own account")
        user = UserService.get_user(user_id, db)
        for name in ("courses", "subscriptions", "payments", "admin_actions"):
            if getattr(user, name):
                raise ConstraintViolation(f"User {user_id} is still referenced by {name.replace('_', ' ')}")
        db.delete(user)
        db.add(AdminActionLog(admin_id=admin.id, action=f"Deleted user {user_id} ({user.email})"))
        db.commit()
        logger.info(f"Admin {admin.id} deleted user {user_id}")

    @staticmethod
    def get_admin_logs(db: Session) -> List[AdminActionLog]:
        return db.query(AdminActionLog).order_by(AdminActionLog.timestamp.desc()).all()
